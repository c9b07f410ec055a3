"""Data models for checksum verification."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ChecksumEntry:
    """Digest of one file, keyed by its path relative to the tree root."""

    relative_path: str
    digest: str


@dataclass(frozen=True)
class FileMismatch:
    """A file present on both sides with different content."""

    relative_path: str
    remote_digest: str
    local_digest: str


@dataclass
class ChecksumReport:
    """Comparison of a remote tree against a local copy.

    Mismatches are data, not errors: callers decide whether drift fails a
    build, triggers a re-sync or only warrants a warning.
    """

    matched: list[str] = field(default_factory=list)
    mismatched: list[FileMismatch] = field(default_factory=list)
    missing_local: list[str] = field(default_factory=list)  # remote only
    missing_remote: list[str] = field(default_factory=list)  # local only
    algorithm: str = "md5"

    @property
    def total_files(self) -> int:
        """Number of files in the remote tree."""
        return len(self.matched) + len(self.mismatched) + len(self.missing_local)

    @property
    def matched_count(self) -> int:
        return len(self.matched)

    @property
    def mismatched_count(self) -> int:
        return len(self.mismatched)

    @property
    def missing_local_count(self) -> int:
        return len(self.missing_local)

    @property
    def missing_remote_count(self) -> int:
        return len(self.missing_remote)

    @property
    def is_clean(self) -> bool:
        """True when both trees hold the same files with the same content."""
        return not (self.mismatched or self.missing_local or self.missing_remote)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "algorithm": self.algorithm,
            "total_files": self.total_files,
            "matched": self.matched_count,
            "mismatched": [
                {
                    "path": m.relative_path,
                    "remote": m.remote_digest,
                    "local": m.local_digest,
                }
                for m in self.mismatched
            ],
            "missing_local": list(self.missing_local),
            "missing_remote": list(self.missing_remote),
            "clean": self.is_clean,
        }
