"""Data models for host-key trust.

Provides the host key value type, the persisted record, the derived trust
decision and the prompt shown to the operator.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import struct
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from stax_security.exceptions import InvalidHostKeyError


class TrustDecision(Enum):
    """Outcome of checking a host key against the store. Never persisted."""

    TRUSTED = "trusted"  # Stored key matches
    FIRST_USE = "first_use"  # No stored key for this host
    MISMATCH = "mismatch"  # Stored key differs
    REJECTED = "rejected"  # Operator declined


def fingerprint(key_bytes: bytes) -> str:
    """Format a key fingerprint the way OpenSSH does: ``SHA256:<base64>``.

    The base64 text is unpadded.
    """
    digest = hashlib.sha256(key_bytes).digest()
    return "SHA256:" + base64.b64encode(digest).decode("ascii").rstrip("=")


def parse_key_type(blob: bytes) -> str:
    """Read the key type name from an SSH wire-format public key.

    The blob starts with a big-endian uint32 length followed by the type
    name (e.g. ``ssh-ed25519``).

    Raises:
        InvalidHostKeyError: If the blob is truncated or the name is not
            printable ASCII.
    """
    if len(blob) < 4:
        raise InvalidHostKeyError("public key blob is truncated")

    (length,) = struct.unpack(">I", blob[:4])
    if length == 0 or len(blob) < 4 + length:
        raise InvalidHostKeyError("public key blob has an invalid type length")

    try:
        key_type = blob[4 : 4 + length].decode("ascii")
    except UnicodeDecodeError:
        raise InvalidHostKeyError("public key type is not ASCII")

    if not key_type.isprintable() or any(c.isspace() for c in key_type):
        raise InvalidHostKeyError("public key type contains invalid characters")
    return key_type


@dataclass(frozen=True)
class HostKey:
    """A server public key in SSH wire format."""

    key_type: str  # e.g. "ssh-ed25519"
    blob: bytes  # Marshaled key, compared byte for byte

    @classmethod
    def from_blob(cls, blob: bytes) -> HostKey:
        """Build a key from its wire bytes, deriving the type name."""
        return cls(key_type=parse_key_type(blob), blob=bytes(blob))

    @classmethod
    def from_base64(cls, data: str) -> HostKey:
        """Build a key from the base64 field of a known_hosts line."""
        try:
            blob = base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidHostKeyError(f"failed to decode host key: {e}")
        return cls.from_blob(blob)

    @property
    def fingerprint(self) -> str:
        return fingerprint(self.blob)

    def to_base64(self) -> str:
        return base64.b64encode(self.blob).decode("ascii")


@dataclass(frozen=True)
class HostKeyRecord:
    """One known_hosts entry: ``hostname keyType base64(key)``."""

    hostname: str
    key_type: str
    key_bytes: bytes

    @classmethod
    def for_key(cls, hostname: str, key: HostKey) -> HostKeyRecord:
        return cls(hostname=hostname, key_type=key.key_type, key_bytes=key.blob)

    @classmethod
    def from_line(cls, line: str) -> HostKeyRecord:
        """Parse a known_hosts line.

        Fields past the third are ignored, matching OpenSSH's comment field.

        Raises:
            ValueError: If the line has fewer than three fields or the key
                field is not valid base64.
        """
        parts = line.split()
        if len(parts) < 3:
            raise ValueError(f"expected 3 fields, found {len(parts)}")

        try:
            key_bytes = base64.b64decode(parts[2], validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"failed to decode host key: {e}")

        return cls(hostname=parts[0], key_type=parts[1], key_bytes=key_bytes)

    def to_line(self) -> str:
        encoded = base64.b64encode(self.key_bytes).decode("ascii")
        return f"{self.hostname} {self.key_type} {encoded}"

    @property
    def key(self) -> HostKey:
        return HostKey(key_type=self.key_type, blob=self.key_bytes)

    @property
    def fingerprint(self) -> str:
        return fingerprint(self.key_bytes)


@dataclass(frozen=True)
class TrustPrompt:
    """Everything an operator needs to decide whether to trust a key.

    Attributes:
        decision: FIRST_USE or MISMATCH.
        hostname: Normalized hostname.
        key_type: Type of the presented key.
        fingerprint: Fingerprint of the presented key.
        known_hosts_file: Store location, shown so the operator can inspect it.
        previous_fingerprint: Stored fingerprint (MISMATCH only).
    """

    decision: TrustDecision
    hostname: str
    key_type: str
    fingerprint: str
    known_hosts_file: Path
    previous_fingerprint: str | None = None

    @property
    def is_mismatch(self) -> bool:
        return self.decision == TrustDecision.MISMATCH

    @property
    def title(self) -> str:
        if self.is_mismatch:
            return "WARNING: REMOTE HOST IDENTIFICATION HAS CHANGED!"
        return "Unknown host"

    @property
    def lines(self) -> list[str]:
        """Body text of the prompt."""
        if not self.is_mismatch:
            return [
                f"WARNING: The authenticity of host '{self.hostname}' can't be established.",
                f"{self.key_type} key fingerprint is: {self.fingerprint}",
                "",
                f"Known hosts file: {self.known_hosts_file}",
            ]
        return [
            "IT IS POSSIBLE THAT SOMEONE IS DOING SOMETHING NASTY!",
            "Someone could be eavesdropping on you right now (man-in-the-middle attack)!",
            "It is also possible that the host key has just been changed.",
            "",
            f"Host: {self.hostname}",
            f"Old fingerprint: {self.previous_fingerprint}",
            f"New fingerprint: {self.fingerprint}",
            "",
            f"Known hosts file: {self.known_hosts_file}",
        ]

    @property
    def question(self) -> str:
        if self.is_mismatch:
            return "Do you want to update the host key? (yes/no): "
        return "Are you sure you want to continue connecting? (yes/no): "
