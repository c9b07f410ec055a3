"""Settings mixins for application layout, logging and verification.

AppSettingsMixin: Application identity and disk layout (app_dir, known_hosts).
LoggingSettingsMixin: Log level, format and redaction limits.
VerificationSettingsMixin: Trust policy and checksum behaviour.

These live outside config.py so each concern stays small and testable.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator


class AppSettingsMixin:
    """Settings for application identity and disk layout.

    Should be composed with BaseSettings via multiple inheritance.
    """

    app_name: str = Field(
        default="stax",
        title="App Name",
        description="Application name; names the ~/.<app_name> config directory",
    )

    app_dir: Path = Field(
        default_factory=lambda data: Path.home() / f".{data.get('app_name', 'stax')}",
        title="App Directory",
        description="User-scoped directory holding known_hosts (default: ~/.<app_name>)",
    )

    known_hosts_path: Path | None = Field(
        default=None,
        title="Known Hosts File",
        description="Override for the known_hosts location (default: <app_dir>/known_hosts)",
    )

    @field_validator("app_dir", "known_hosts_path", mode="before")
    @classmethod
    def expand_path(cls, v: str | Path | None) -> Path | None:
        """Expand ~ in paths."""
        if isinstance(v, str):
            return Path(v).expanduser()
        if isinstance(v, Path):
            return v.expanduser()
        return v

    @property
    def known_hosts_file(self) -> Path:
        """Resolved known_hosts location."""
        if self.known_hosts_path is not None:
            return self.known_hosts_path
        return self.app_dir / "known_hosts"


class LoggingSettingsMixin:
    """Settings for log output.

    Note: This is a mixin, not a BaseSettings subclass, to avoid
    MRO issues when composed with other settings classes.
    """

    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="warning",
        title="Log Level",
        description="Logging verbosity level",
    )
    log_format: Literal["console", "json"] = Field(
        default="console",
        title="Log Format",
        description="Log output format (console for dev, json for production)",
    )
    log_max_length: int = Field(
        default=2000,
        ge=0,
        title="Log Value Length",
        description="Maximum length of a logged string value after redaction (0 = unlimited)",
    )
    internal_path_marker: str = Field(
        default="stax",
        title="Internal Path Marker",
        description="Paths containing this marker are hidden from user-facing errors",
    )


class VerificationSettingsMixin:
    """Settings for host-key trust and checksum verification."""

    trust_policy: Literal["prompt", "reject", "accept"] = Field(
        default="prompt",
        title="Trust Policy",
        description=(
            "How unknown or changed host keys are confirmed: prompt on the "
            "terminal, reject without asking (CI), or accept without asking"
        ),
    )
    checksum_algorithm: Literal["md5", "sha256"] = Field(
        default="md5",
        title="Checksum Algorithm",
        description="Digest used for drift detection (not tamper evidence)",
    )
    checksum_parallel: bool = Field(
        default=True,
        title="Parallel Checksums",
        description="Compute remote and local digests concurrently",
    )
    checksum_timeout: float | None = Field(
        default=None,
        gt=0,
        title="Checksum Timeout",
        description="Deadline in seconds for a whole verification (None = wait forever)",
    )
