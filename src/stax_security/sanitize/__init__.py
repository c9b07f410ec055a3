"""Input sanitization and credential redaction.

Sanitizers sit between user-supplied strings and anything that interprets
them: a remote shell, an SQL identifier position or a filesystem path.
They reject rather than escape.

Usage:
    from stax_security.sanitize import sanitize_for_shell, validate_table_prefix

    safe_root = sanitize_for_shell("/sites/mysite")
    validate_table_prefix("wp_")                        # ok
    validate_table_prefix("wp_'; DROP TABLE users--")   # raises ValidationError

The redaction helpers scrub credentials from text headed for logs or a
terminal:
    from stax_security.sanitize import sanitize_error_for_user
    print(sanitize_error_for_user(exc))
"""

from stax_security.exceptions import ValidationError
from stax_security.sanitize.policies import (
    POLICIES,
    SHELL_METACHARACTERS,
    SanitizationPolicy,
    get_policy,
)
from stax_security.sanitize.redaction import (
    DEFAULT_RULES,
    RedactionResult,
    RedactionRule,
    Redactor,
    remove_sensitive_data,
    sanitize_error_for_user,
    sanitize_log_message,
)
from stax_security.sanitize.sanitizer import (
    build_wp_cli_command,
    contains_shell_metachars,
    sanitize_command_args,
    sanitize_filename,
    sanitize_for_shell,
    sanitize_wp_cli_arg,
    sanitize_wp_cli_args,
)
from stax_security.sanitize.validators import (
    VALID_ENVIRONMENTS,
    is_path_traversal,
    sanitize_path,
    validate_command,
    validate_environment,
    validate_file_path,
    validate_hostname,
    validate_project_name,
    validate_rsync_pattern,
    validate_table_name,
    validate_table_prefix,
    validate_url,
)

__all__ = [
    # Errors
    "ValidationError",
    # Policies
    "POLICIES",
    "SHELL_METACHARACTERS",
    "SanitizationPolicy",
    "get_policy",
    # Shell
    "build_wp_cli_command",
    "contains_shell_metachars",
    "sanitize_command_args",
    "sanitize_filename",
    "sanitize_for_shell",
    "sanitize_wp_cli_arg",
    "sanitize_wp_cli_args",
    # Validators
    "VALID_ENVIRONMENTS",
    "is_path_traversal",
    "sanitize_path",
    "validate_command",
    "validate_environment",
    "validate_file_path",
    "validate_hostname",
    "validate_project_name",
    "validate_rsync_pattern",
    "validate_table_name",
    "validate_table_prefix",
    "validate_url",
    # Redaction
    "DEFAULT_RULES",
    "RedactionResult",
    "RedactionRule",
    "Redactor",
    "remove_sensitive_data",
    "sanitize_error_for_user",
    "sanitize_log_message",
]
