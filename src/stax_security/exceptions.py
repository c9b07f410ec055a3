"""Exception hierarchy for stax-security.

Trust and sanitization errors mark security boundaries: callers must treat
them as hard failures. Checksum mismatches are not errors, they are reported
through :class:`~stax_security.checksum.models.ChecksumReport`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from stax_security.trust.models import TrustDecision


class StaxSecurityError(Exception):
    """Base exception for the whole package."""


# ── Trust ───────────────────────────────────────────────────────────────────


class TrustError(StaxSecurityError):
    """Base class for host-key trust failures."""

    def __init__(self, message: str, hostname: str = ""):
        super().__init__(message)
        self.hostname = hostname


class TrustRejected(TrustError):
    """The user declined a first-use or changed host key.

    Fatal to the connection attempt; never retried.
    """

    def __init__(
        self,
        message: str,
        hostname: str = "",
        decision: "TrustDecision | None" = None,
        previous: "TrustDecision | None" = None,
    ):
        super().__init__(message, hostname=hostname)
        self.decision = decision
        self.previous = previous


class TrustIOError(TrustError):
    """The known-hosts file could not be read or written."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path


class HostNotFoundError(TrustError):
    """The hostname has no record in the known-hosts file."""


class InvalidHostKeyError(TrustError):
    """Key bytes are not a valid SSH wire-format public key."""


class InvalidHostnameError(TrustError):
    """Hostname cannot be stored as a single known-hosts record.

    Raised for empty names, names containing whitespace or control
    characters, and names starting with ``#``.
    """


# ── Sanitization ────────────────────────────────────────────────────────────


class ValidationError(StaxSecurityError, ValueError):
    """A sanitizer rejected an input.

    Always recoverable: reject that one input and carry on.
    """

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}" if field else message)
        self.field = field
        self.message = message

    def user_message(self, internal_marker: str | None = None) -> str:
        """Render the error for a terminal with secrets and internal paths removed."""
        from stax_security.sanitize.redaction import sanitize_error_for_user

        return sanitize_error_for_user(self, internal_marker=internal_marker)


# ── Checksums ───────────────────────────────────────────────────────────────


class ChecksumComputationError(StaxSecurityError):
    """Computing remote or local digests failed.

    Fatal to that one verification call; trust state is untouched.
    """

    def __init__(self, message: str, side: str = "", path: str = ""):
        super().__init__(message)
        self.side = side
        self.path = path


class RemoteCommandError(StaxSecurityError):
    """A remote command exited with a non-zero status."""

    def __init__(self, message: str, returncode: int = -1, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr
