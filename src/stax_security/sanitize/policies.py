"""Sanitization policies.

Each policy is a named character-class contract for one input context.
Policies are defined once, here, and never mutated.
"""

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping


# Characters that let a string escape its position in a shell command line.
SHELL_METACHARACTERS: tuple[str, ...] = (
    ";",  # command separator
    "|",  # pipe
    "&",  # background / AND
    "$",  # variable expansion
    "`",  # command substitution
    "(",
    ")",
    "<",
    ">",
    "\n",
    "\r",
    "*",  # glob
    "?",
    "[",
    "]",
    "{",  # brace expansion
    "}",
    "\\",
    "'",
    '"',
)

# Subset rejected inside rsync include/exclude patterns; globs stay legal.
RSYNC_FORBIDDEN: tuple[str, ...] = (";", "|", "&", "$", "`", "(", ")", "<", ">", "\n", "\r")

# Flag syntax removed from a scratch copy of a WP-CLI argument before rescanning.
WP_CLI_FLAG_CHARACTERS: tuple[str, ...] = ("-", "=", "/", ".", "_", ":", ",")

# Literal sequences that always mean command substitution.
COMMAND_SUBSTITUTION: tuple[str, ...] = ("$(", "`")

# Traversal sequences, checked before and after path normalization.
TRAVERSAL_SEQUENCES: tuple[str, ...] = ("../", "..\\", "/..", "\\..")

URL_FORBIDDEN: tuple[str, ...] = (" ", "\n", "\r", "\t", "<", ">", '"', "{", "}", "|", "\\", "^", "`")


@dataclass(frozen=True)
class SanitizationPolicy:
    """Contract for one input context.

    Attributes:
        name: Context name (e.g. "table_prefix").
        allowed: Whole-string regex the value must match, if any.
        forbidden: Substrings that reject the value outright.
        max_length: Maximum accepted length (0 = unlimited).
        reserved: Exact values that are never accepted.
    """

    name: str
    allowed: re.Pattern[str] | None = None
    forbidden: tuple[str, ...] = ()
    max_length: int = 0
    reserved: tuple[str, ...] = field(default_factory=tuple)

    def matches(self, value: str) -> bool:
        """Check the value against the allowed character class."""
        if self.allowed is None:
            return True
        return self.allowed.fullmatch(value) is not None

    def first_forbidden(self, value: str) -> str | None:
        """Return the first forbidden substring present in value."""
        for token in self.forbidden:
            if token in value:
                return token
        return None

    def too_long(self, value: str) -> bool:
        return self.max_length > 0 and len(value) > self.max_length


_POLICIES = {
    "path": SanitizationPolicy(name="path", forbidden=TRAVERSAL_SEQUENCES),
    "filename": SanitizationPolicy(
        name="filename",
        allowed=re.compile(r"[A-Za-z0-9._-]+"),
        max_length=255,
        reserved=("..", ".", "~"),
    ),
    "table_prefix": SanitizationPolicy(
        name="table_prefix",
        allowed=re.compile(r"[A-Za-z0-9_]+"),
        max_length=64,
    ),
    "table_name": SanitizationPolicy(
        name="table_name",
        allowed=re.compile(r"[A-Za-z0-9_-]+"),
        max_length=64,
    ),
    "rsync_pattern": SanitizationPolicy(
        name="rsync_pattern",
        forbidden=RSYNC_FORBIDDEN,
        max_length=256,
    ),
    "shell_token": SanitizationPolicy(
        name="shell_token",
        allowed=re.compile(r"[A-Za-z0-9/_.-]+"),
    ),
    "command_arg": SanitizationPolicy(name="command_arg", forbidden=SHELL_METACHARACTERS),
    "wp_cli_arg": SanitizationPolicy(name="wp_cli_arg", forbidden=SHELL_METACHARACTERS),
    "project_name": SanitizationPolicy(
        name="project_name",
        allowed=re.compile(r"[A-Za-z0-9_-]+"),
        max_length=64,
    ),
    "hostname": SanitizationPolicy(
        name="hostname",
        allowed=re.compile(
            r"([a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?\.)*"
            r"[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
        ),
        max_length=253,
        reserved=("localhost", "broadcasthost"),
    ),
    "url": SanitizationPolicy(name="url", forbidden=URL_FORBIDDEN, max_length=2048),
}

POLICIES: Mapping[str, SanitizationPolicy] = MappingProxyType(_POLICIES)


def get_policy(name: str) -> SanitizationPolicy:
    """Look up a policy by context name.

    Raises:
        KeyError: If no policy exists for the name.
    """
    return POLICIES[name]
