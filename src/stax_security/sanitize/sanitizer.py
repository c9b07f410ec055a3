"""Whitelist sanitizers for strings bound for a shell.

Every function here is pure: it returns the accepted value or raises
:class:`~stax_security.exceptions.ValidationError`. Nothing is escaped or
quoted; unsafe input is rejected instead.
"""

from stax_security.exceptions import ValidationError
from stax_security.sanitize.policies import (
    COMMAND_SUBSTITUTION,
    SHELL_METACHARACTERS,
    WP_CLI_FLAG_CHARACTERS,
    get_policy,
)


def contains_shell_metachars(value: str) -> bool:
    """Check whether value contains any shell metacharacter."""
    return any(char in value for char in SHELL_METACHARACTERS)


def sanitize_for_shell(value: str) -> str:
    """Accept a single shell token only if it is made of safe characters.

    Safe characters are letters, digits, ``/``, ``_``, ``.`` and ``-``.
    Quotes, pipes, redirects, globs, braces, whitespace and control
    characters are all rejected. An empty string passes through unchanged.

    Args:
        value: Token to place on a command line.

    Returns:
        The token, unchanged.

    Raises:
        ValidationError: If the token contains any other character.
    """
    if value == "":
        return ""

    if not get_policy("shell_token").matches(value):
        raise ValidationError(
            "shell_input", "input contains unsafe characters for shell execution"
        )
    return value


def sanitize_command_args(args: list[str]) -> list[str]:
    """Reject the whole argument list if any argument has a metacharacter.

    Raises:
        ValidationError: On the first argument containing a metacharacter.
    """
    policy = get_policy("command_arg")
    sanitized = []
    for arg in args:
        if policy.first_forbidden(arg) is not None:
            raise ValidationError("command_arg", "argument contains shell metacharacters")
        sanitized.append(arg)
    return sanitized


def sanitize_wp_cli_arg(arg: str) -> str:
    """Sanitize one WP-CLI argument.

    ``--flag=value`` syntax is allowed: when the argument trips the
    metacharacter scan, the flag characters are removed from a scratch copy
    and the residue is scanned again. The original argument is returned if
    the residue is clean.

    Raises:
        ValidationError: On command substitution or shell metacharacters.
    """
    if any(seq in arg for seq in COMMAND_SUBSTITUTION):
        raise ValidationError("wp_cli_arg", "argument contains command substitution")

    policy = get_policy("wp_cli_arg")
    if policy.first_forbidden(arg) is not None:
        residue = arg
        for char in WP_CLI_FLAG_CHARACTERS:
            residue = residue.replace(char, "")
        if policy.first_forbidden(residue) is not None:
            raise ValidationError("wp_cli_arg", "argument contains shell metacharacters")

    return arg


def sanitize_wp_cli_args(args: list[str]) -> list[str]:
    """Sanitize a WP-CLI argument list; one bad argument rejects them all."""
    return [sanitize_wp_cli_arg(arg) for arg in args]


def sanitize_filename(filename: str) -> str:
    """Reduce a filename to a safe basename.

    Path separators are stripped first, so ``path/file.txt`` becomes
    ``pathfile.txt``. The result must then use only ``[A-Za-z0-9._-]``,
    must not be ``.``, ``..`` or ``~`` and must fit in 255 characters.

    Raises:
        ValidationError: If the filename is empty or unsafe.
    """
    if filename == "":
        raise ValidationError("filename", "filename cannot be empty")

    policy = get_policy("filename")
    filename = filename.replace("/", "").replace("\\", "")

    if not policy.matches(filename):
        raise ValidationError("filename", "filename contains unsafe characters")

    if filename in policy.reserved:
        raise ValidationError("filename", f"filename is reserved: {filename}")

    if policy.too_long(filename):
        raise ValidationError(
            "filename", f"filename too long (max {policy.max_length} characters)"
        )

    return filename


def build_wp_cli_command(args: list[str]) -> str:
    """Compose a ``wp`` command line from sanitized arguments."""
    return " ".join(["wp", *sanitize_wp_cli_args(args)])
