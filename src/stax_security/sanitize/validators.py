"""Validators for paths, SQL identifiers and operator-supplied names.

Each validator returns the accepted (possibly normalized) value or raises
:class:`~stax_security.exceptions.ValidationError`.
"""

import os

from stax_security.exceptions import ValidationError
from stax_security.sanitize.policies import TRAVERSAL_SEQUENCES, get_policy

VALID_ENVIRONMENTS: tuple[str, ...] = (
    "dev",
    "development",
    "staging",
    "stage",
    "production",
    "prod",
)


def is_path_traversal(path: str) -> bool:
    """Check for ``../``, ``..\\``, ``/..`` or ``\\..`` anywhere in path."""
    return any(seq in path for seq in TRAVERSAL_SEQUENCES)


def sanitize_path(path: str) -> str:
    """Reject path traversal and return the normalized path.

    The traversal check runs on the raw input and again on the normalized
    form, so sequences that only appear after cleaning are caught too.

    Raises:
        ValidationError: If the path is empty or traverses upwards.
    """
    if path == "":
        raise ValidationError("path", "path cannot be empty")

    if is_path_traversal(path):
        raise ValidationError("path", f"path traversal detected: {path}")

    cleaned = os.path.normpath(path)
    if is_path_traversal(cleaned):
        raise ValidationError("path", f"path contains traversal after cleaning: {cleaned}")

    return cleaned


def validate_file_path(path: str, allowed_dir: str) -> str:
    """Ensure path stays inside allowed_dir.

    Args:
        path: Candidate file path (relative paths resolve against the cwd).
        allowed_dir: Directory the path must live under.

    Returns:
        The absolute form of path.

    Raises:
        ValidationError: If either argument is empty, the path traverses,
            or it resolves outside allowed_dir.
    """
    if path == "":
        raise ValidationError("path", "path cannot be empty")
    if allowed_dir == "":
        raise ValidationError("allowed_dir", "allowed directory cannot be empty")

    if is_path_traversal(path):
        raise ValidationError("path", f"path traversal detected: {path}")

    abs_path = os.path.abspath(path)
    abs_allowed = os.path.abspath(allowed_dir)

    try:
        common = os.path.commonpath([abs_path, abs_allowed])
    except ValueError:
        # Different drives on Windows
        raise ValidationError("path", f"path is outside allowed directory: {path}")

    if common != abs_allowed:
        raise ValidationError("path", f"path is outside allowed directory: {path}")

    return abs_path


def validate_table_prefix(prefix: str) -> str:
    """Validate a WordPress table prefix such as ``wp_``."""
    if prefix == "":
        raise ValidationError("table_prefix", "table prefix cannot be empty")

    policy = get_policy("table_prefix")
    if not policy.matches(prefix):
        raise ValidationError(
            "table_prefix",
            "invalid table prefix format (only alphanumeric and underscores allowed)",
        )
    if policy.too_long(prefix):
        raise ValidationError(
            "table_prefix", f"table prefix too long (max {policy.max_length} characters)"
        )
    return prefix


def validate_table_name(table_name: str) -> str:
    """Validate a database table name."""
    if table_name == "":
        raise ValidationError("table_name", "table name cannot be empty")

    policy = get_policy("table_name")
    if not policy.matches(table_name):
        raise ValidationError("table_name", "invalid table name format")
    if policy.too_long(table_name):
        raise ValidationError(
            "table_name", f"table name too long (max {policy.max_length} characters)"
        )
    return table_name


def validate_rsync_pattern(pattern: str) -> str:
    """Validate an rsync include/exclude pattern.

    Glob characters are legal here; command separators, substitutions and
    redirects are not.
    """
    if pattern == "":
        raise ValidationError("rsync_pattern", "pattern cannot be empty")

    policy = get_policy("rsync_pattern")
    bad = policy.first_forbidden(pattern)
    if bad is not None:
        raise ValidationError("rsync_pattern", f"pattern contains dangerous character: {bad!r}")
    if policy.too_long(pattern):
        raise ValidationError(
            "rsync_pattern", f"pattern too long (max {policy.max_length} characters)"
        )
    return pattern


def validate_command(cmd: str, allowlist: list[str] | tuple[str, ...]) -> str:
    """Require cmd to be one of the caller-supplied allowed commands."""
    if cmd == "":
        raise ValidationError("command", "command cannot be empty")
    if cmd not in allowlist:
        raise ValidationError("command", f"command not in allowlist: {cmd}")
    return cmd


def validate_project_name(name: str) -> str:
    """Validate a local project name."""
    if name == "":
        raise ValidationError("project_name", "project name cannot be empty")

    policy = get_policy("project_name")
    if policy.too_long(name):
        raise ValidationError(
            "project_name", f"project name too long (max {policy.max_length} characters)"
        )
    if not policy.matches(name):
        raise ValidationError(
            "project_name",
            "project name contains invalid characters "
            "(only alphanumeric, hyphens, and underscores allowed)",
        )
    # Would be parsed as a flag
    if name.startswith("-"):
        raise ValidationError("project_name", "project name cannot start with hyphen")
    return name


def validate_hostname(hostname: str) -> str:
    """Validate an RFC 1123 hostname."""
    if hostname == "":
        raise ValidationError("hostname", "hostname cannot be empty")

    policy = get_policy("hostname")
    if policy.too_long(hostname):
        raise ValidationError(
            "hostname", f"hostname too long (max {policy.max_length} characters)"
        )
    if not policy.matches(hostname):
        raise ValidationError(
            "hostname", "invalid hostname format (must comply with RFC 1123)"
        )
    for reserved in policy.reserved:
        if hostname.lower() == reserved:
            raise ValidationError("hostname", f"hostname cannot be reserved name: {reserved}")
    return hostname


def validate_url(url: str) -> str:
    """Validate an http(s) URL that will be passed to remote tooling."""
    if url == "":
        raise ValidationError("url", "URL cannot be empty")

    if not url.startswith(("http://", "https://")):
        raise ValidationError("url", "URL must start with http:// or https://")

    policy = get_policy("url")
    bad = policy.first_forbidden(url)
    if bad is not None:
        raise ValidationError("url", f"URL contains unsafe character: {bad!r}")
    if policy.too_long(url):
        raise ValidationError("url", f"URL too long (max {policy.max_length} characters)")
    return url


def validate_environment(env: str) -> str:
    """Validate a hosting environment name and return it normalized."""
    normalized = env.strip().lower()
    if normalized not in VALID_ENVIRONMENTS:
        raise ValidationError(
            "environment",
            f"invalid environment: {normalized} (allowed: dev, staging, production)",
        )
    return normalized
