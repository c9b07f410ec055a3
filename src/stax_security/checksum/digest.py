"""Pluggable content digests.

A Digest pairs a local hash implementation with the remote tool that
prints the same hash, so the two sides of a comparison always agree.
These digests detect drift (did the sync finish?). They are not tamper
evidence against a hostile remote.
"""

import hashlib
from pathlib import Path
from typing import Protocol, runtime_checkable

CHUNK_SIZE = 1024 * 1024


@runtime_checkable
class Digest(Protocol):
    """Hash a local file and name the remote tool that hashes the same way."""

    name: str
    remote_tool: str

    def hash_file(self, path: Path) -> str:
        """Return the hex digest of a file's content."""
        ...


class HashlibDigest:
    """Digest backed by a hashlib algorithm and a coreutils ``*sum`` tool."""

    def __init__(self, name: str, remote_tool: str):
        self.name = name
        self.remote_tool = remote_tool

    def _new(self):
        return hashlib.new(self.name)

    def hash_file(self, path: Path) -> str:
        hasher = self._new()
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
                hasher.update(chunk)
        return hasher.hexdigest()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r}, {self.remote_tool!r})"


class MD5Digest(HashlibDigest):
    """MD5 via ``md5sum``; the default, chosen for speed."""

    def __init__(self):
        super().__init__("md5", "md5sum")

    def _new(self):
        # Not a security use; keeps FIPS-mode interpreters happy
        return hashlib.md5(usedforsecurity=False)


class SHA256Digest(HashlibDigest):
    """SHA-256 via ``sha256sum``."""

    def __init__(self):
        super().__init__("sha256", "sha256sum")


_DIGESTS = {
    "md5": MD5Digest,
    "sha256": SHA256Digest,
}


def get_digest(name: str) -> Digest:
    """Look up a digest by algorithm name.

    Raises:
        ValueError: For an unsupported algorithm.
    """
    try:
        return _DIGESTS[name]()
    except KeyError:
        raise ValueError(
            f"unsupported checksum algorithm: {name} (available: {', '.join(_DIGESTS)})"
        )
