"""Host-key trust (Trust-On-First-Use).

Usage:
    from stax_security.trust import TrustStore, StaticConfirmer, HostKey

    store = TrustStore.from_settings()
    decision = store.verify_host_key("ssh.example.net:22", HostKey.from_blob(blob))

The paramiko adapters live in :mod:`stax_security.trust.ssh` and are not
imported here.
"""

from stax_security.exceptions import (
    HostNotFoundError,
    InvalidHostKeyError,
    InvalidHostnameError,
    TrustError,
    TrustIOError,
    TrustRejected,
)
from stax_security.trust.confirm import (
    CallbackConfirmer,
    Confirmer,
    ConsoleConfirmer,
    StaticConfirmer,
    confirmer_for_policy,
    is_affirmative,
)
from stax_security.trust.known_hosts import (
    HostKeyCallback,
    TrustStore,
    normalize_hostname,
)
from stax_security.trust.models import (
    HostKey,
    HostKeyRecord,
    TrustDecision,
    TrustPrompt,
    fingerprint,
    parse_key_type,
)

__all__ = [
    # Store
    "TrustStore",
    "HostKeyCallback",
    "normalize_hostname",
    # Confirmation
    "Confirmer",
    "ConsoleConfirmer",
    "StaticConfirmer",
    "CallbackConfirmer",
    "confirmer_for_policy",
    "is_affirmative",
    # Models
    "HostKey",
    "HostKeyRecord",
    "TrustDecision",
    "TrustPrompt",
    "fingerprint",
    "parse_key_type",
    # Errors
    "TrustError",
    "TrustRejected",
    "TrustIOError",
    "HostNotFoundError",
    "InvalidHostKeyError",
    "InvalidHostnameError",
]
