"""Structured logging configuration for stax-security.

Uses structlog for structured, context-rich logging that supports
both human-readable console output and machine-readable JSON format.
Every event passes through a redaction processor before rendering, so
credentials caught in exception text or command output never reach a sink.
"""

import logging
import sys
from typing import TYPE_CHECKING, Any, MutableMapping

import structlog
from structlog.types import Processor

from stax_security.sanitize.redaction import sanitize_log_message

if TYPE_CHECKING:
    from stax_security.config import StaxSettings

DEFAULT_MAX_VALUE_LENGTH = 2000


class RedactSensitive:
    """structlog processor that redacts and truncates event values.

    Strings are redacted and capped. Exception instances are rendered with
    ``str()`` first, and dicts, lists and tuples are walked recursively.
    Other values pass through untouched.

    Args:
        max_length: Per-value length cap (0 disables truncation).
    """

    def __init__(self, max_length: int = DEFAULT_MAX_VALUE_LENGTH):
        self.max_length = max_length

    def __call__(
        self, logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
    ) -> MutableMapping[str, Any]:
        for key, value in event_dict.items():
            if key == "exc_info":
                continue
            event_dict[key] = self._redact(value)
        return event_dict

    def _redact(self, value: Any) -> Any:
        if isinstance(value, str):
            return sanitize_log_message(value, self.max_length)
        if isinstance(value, BaseException):
            return sanitize_log_message(str(value), self.max_length)
        if isinstance(value, dict):
            return {k: self._redact(v) for k, v in value.items()}
        if isinstance(value, list):
            return [self._redact(v) for v in value]
        if isinstance(value, tuple):
            return tuple(self._redact(v) for v in value)
        return value


def configure_logging(settings: "StaxSettings | None" = None) -> None:
    """Configure structured logging based on settings.

    Args:
        settings: Application settings. If None, uses defaults.
    """
    log_level = logging.WARNING
    log_format = "console"
    max_length = DEFAULT_MAX_VALUE_LENGTH

    if settings is not None:
        log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
        log_format = settings.log_format
        max_length = settings.log_max_length

    # Common processors for all outputs
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            RedactSensitive(max_length),
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            # Tracebacks must be text before redaction sees them
            structlog.processors.format_exc_info,
            RedactSensitive(max_length),
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    # Also configure standard library logging for third-party libs
    logging.basicConfig(
        format="%(message)s",
        level=log_level,
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    # paramiko logs full transport chatter at INFO
    logging.getLogger("paramiko").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a logger instance.

    Args:
        name: Optional logger name (typically __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name) if name else structlog.get_logger()


def bind_context(**kwargs: object) -> None:
    """Bind context variables to all subsequent log calls in the current context.

    Example:
        bind_context(install="mysite", environment="production")
        logger.info("verifying")  # Will include install and environment

    Args:
        **kwargs: Key-value pairs to bind to logging context
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()


def unbind_context(*keys: str) -> None:
    """Remove specific keys from the logging context.

    Args:
        *keys: Keys to remove from context
    """
    structlog.contextvars.unbind_contextvars(*keys)


class Loggers:
    """Pre-configured logger instances for stax-security components."""

    @staticmethod
    def trust() -> structlog.stdlib.BoundLogger:
        """Logger for host-key trust decisions."""
        return get_logger("stax_security.trust")

    @staticmethod
    def checksum() -> structlog.stdlib.BoundLogger:
        """Logger for checksum verification."""
        return get_logger("stax_security.checksum")
