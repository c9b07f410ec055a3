"""stax-security - remote trust and verification for WordPress hosting tooling.

This package holds the parts of the stax toolchain that carry security and
correctness invariants:

- Trust-On-First-Use host-key store that gates every SSH connection
- Whitelist sanitizers for shell tokens, paths and SQL identifiers
- Credential redaction for logs and user-facing errors
- Remote-vs-local checksum verification after file transfers

SSH transport, rsync, provider APIs and local environment orchestration
live elsewhere and talk to this package through small capabilities
(a host-key callback, an ``execute_command`` executor, a confirmer).
"""

from stax_security.checksum import ChecksumReport, ChecksumVerifier
from stax_security.config import (
    SettingsContext,
    SettingsValidationError,
    StaxSettings,
    get_context_settings,
    get_settings,
    reload_settings,
    set_context_settings,
    set_settings,
    validate_settings,
)
from stax_security.exceptions import (
    ChecksumComputationError,
    HostNotFoundError,
    InvalidHostKeyError,
    InvalidHostnameError,
    RemoteCommandError,
    StaxSecurityError,
    TrustError,
    TrustIOError,
    TrustRejected,
    ValidationError,
)
from stax_security.logging import configure_logging, get_logger
from stax_security.sanitize import (
    remove_sensitive_data,
    sanitize_error_for_user,
    sanitize_log_message,
)
from stax_security.trust import HostKey, TrustDecision, TrustStore

__version__ = "0.1.0"

__all__ = [
    # Core components
    "TrustStore",
    "HostKey",
    "TrustDecision",
    "ChecksumVerifier",
    "ChecksumReport",
    "remove_sensitive_data",
    "sanitize_error_for_user",
    "sanitize_log_message",
    # Configuration
    "StaxSettings",
    "SettingsContext",
    "SettingsValidationError",
    "get_settings",
    "set_settings",
    "set_context_settings",
    "get_context_settings",
    "validate_settings",
    "reload_settings",
    # Logging
    "configure_logging",
    "get_logger",
    # Errors
    "StaxSecurityError",
    "TrustError",
    "TrustRejected",
    "TrustIOError",
    "HostNotFoundError",
    "InvalidHostKeyError",
    "InvalidHostnameError",
    "ValidationError",
    "ChecksumComputationError",
    "RemoteCommandError",
]
