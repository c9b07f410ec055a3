"""Configuration for stax-security.

Provides StaxSettings plus global and context-based accessors:

    1. Global singleton (simple cases):
        set_settings(my_settings)
        settings = get_settings()

    2. Context-based (isolated contexts, tests):
        with SettingsContext(my_settings):
            settings = get_settings()  # Returns my_settings

Settings Loading Priority (highest to lowest):
    1. Constructor arguments
    2. Environment variables (STAX_* prefix)
    3. User config (~/.<app_name>/settings.json, ~/.stax by default)
    4. .env file
    5. Default values
"""

from contextlib import contextmanager
from contextvars import ContextVar, Token
from pathlib import Path
from typing import Generator, Tuple, Type

from pydantic_settings import (
    BaseSettings as PydanticBaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from stax_security.settings_mixins import (
    AppSettingsMixin,
    LoggingSettingsMixin,
    VerificationSettingsMixin,
)

__all__ = [
    "StaxSettings",
    "SettingsContext",
    "SettingsValidationError",
    "get_settings",
    "set_settings",
    "set_context_settings",
    "get_context_settings",
    "validate_settings",
    "reload_settings",
]


def _get_json_config_source(
    settings_cls: Type[PydanticBaseSettings],
    json_file: Path,
) -> PydanticBaseSettingsSource | None:
    """Create a JSON config source if the file exists.

    Args:
        settings_cls: The settings class
        json_file: Path to JSON config file

    Returns:
        JsonConfigSettingsSource if file exists, None otherwise
    """
    if not json_file.exists():
        return None

    from pydantic_settings import JsonConfigSettingsSource

    return JsonConfigSettingsSource(settings_cls, json_file=json_file)


class StaxSettings(
    VerificationSettingsMixin,
    LoggingSettingsMixin,
    AppSettingsMixin,
    PydanticBaseSettings,
):
    """Settings for the trust and verification subsystem.

    Mixins provide organized settings:
    - AppSettingsMixin: app directory and known_hosts location
    - LoggingSettingsMixin: log level, format and redaction limits
    - VerificationSettingsMixin: trust policy and checksum options
    """

    model_config = SettingsConfigDict(
        env_prefix="STAX_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[PydanticBaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """Insert the user-level JSON config between env vars and .env.

        Note: The JSON source is only included if the file exists.
        """
        sources: list[PydanticBaseSettingsSource] = [
            init_settings,
            env_settings,
        ]

        app_name = "stax"
        if "app_name" in cls.model_fields:
            field_info = cls.model_fields["app_name"]
            if isinstance(field_info.default, str):
                app_name = field_info.default

        user_json = _get_json_config_source(
            settings_cls,
            Path.home() / f".{app_name}" / "settings.json",
        )
        if user_json:
            sources.append(user_json)

        sources.append(dotenv_settings)
        return tuple(sources)


# Context variable for settings (takes precedence over global singleton)
_settings_context: ContextVar[StaxSettings | None] = ContextVar(
    "settings_context", default=None
)

# Global settings instance holder (fallback when no context)
_settings_instance: StaxSettings | None = None


def get_settings() -> StaxSettings:
    """Get the current settings instance.

    Settings resolution order:
    1. Context variable (set via SettingsContext or set_context_settings)
    2. Global singleton (set via set_settings)
    3. Fresh StaxSettings instance (created on first access)

    Returns:
        StaxSettings instance for the current context
    """
    context_settings = _settings_context.get()
    if context_settings is not None:
        return context_settings

    global _settings_instance
    if _settings_instance is None:
        _settings_instance = StaxSettings()
    return _settings_instance


def set_settings(settings: StaxSettings) -> None:
    """Set the global settings instance.

    Note: For isolated contexts (e.g., testing), prefer using
    SettingsContext instead.

    Args:
        settings: Settings instance to use globally
    """
    global _settings_instance
    _settings_instance = settings


def set_context_settings(settings: StaxSettings | None) -> Token:
    """Set settings for the current context.

    Args:
        settings: Settings to use in current context, or None to clear

    Returns:
        Token that can be used to reset the context variable.
    """
    return _settings_context.set(settings)


def get_context_settings() -> StaxSettings | None:
    """Get settings from current context (if any)."""
    return _settings_context.get()


@contextmanager
def SettingsContext(settings: StaxSettings) -> Generator[StaxSettings, None, None]:
    """Context manager for isolated settings.

    Example:
        with SettingsContext(test_settings) as s:
            store = TrustStore.from_settings()  # uses test_settings

    Args:
        settings: Settings to use within the context

    Yields:
        The settings instance
    """
    token = _settings_context.set(settings)
    try:
        yield settings
    finally:
        _settings_context.reset(token)


def reload_settings() -> StaxSettings:
    """Reload settings (clears global singleton and context cache).

    Returns:
        Fresh StaxSettings instance
    """
    global _settings_instance
    _settings_instance = None
    _settings_context.set(None)
    return get_settings()


class SettingsValidationError(Exception):
    """Raised when settings validation fails."""

    pass


def validate_settings(settings: StaxSettings) -> None:
    """Validate settings for runtime use.

    Checks that can only be done at runtime:
    - known_hosts location is a file path, not a directory
    - app directory is not a regular file
    - internal path marker is not blank

    Args:
        settings: Settings to validate

    Raises:
        SettingsValidationError: If validation fails
    """
    errors = []

    known_hosts = settings.known_hosts_file
    if known_hosts.exists() and known_hosts.is_dir():
        errors.append(f"known_hosts path is a directory: {known_hosts}")

    if settings.app_dir.exists() and not settings.app_dir.is_dir():
        errors.append(f"app directory is not a directory: {settings.app_dir}")

    if not settings.internal_path_marker.strip():
        errors.append("internal_path_marker must not be blank")

    if errors:
        raise SettingsValidationError("\n".join(errors))
