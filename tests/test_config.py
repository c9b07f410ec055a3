"""Tests for configuration module."""

import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError as PydanticValidationError

from stax_security.config import (
    SettingsContext,
    SettingsValidationError,
    StaxSettings,
    get_context_settings,
    get_settings,
    reload_settings,
    set_context_settings,
    set_settings,
    validate_settings,
)


@pytest.fixture(autouse=True)
def _restore_global_settings(monkeypatch):
    """Keep the global singleton from leaking between tests."""
    monkeypatch.setattr("stax_security.config._settings_instance", None)


class TestStaxSettings:
    """Tests for StaxSettings defaults and sources."""

    def test_default_values(self, temp_app_dir: Path):
        """Test default settings values."""
        with patch.dict(os.environ, {}, clear=True):
            settings = StaxSettings(app_dir=temp_app_dir)

        assert settings.app_name == "stax"
        assert settings.log_level == "warning"
        assert settings.log_format == "console"
        assert settings.log_max_length == 2000
        assert settings.internal_path_marker == "stax"
        assert settings.trust_policy == "prompt"
        assert settings.checksum_algorithm == "md5"
        assert settings.checksum_parallel is True
        assert settings.checksum_timeout is None

    def test_default_app_dir(self):
        """Test app_dir defaults to ~/.stax."""
        with patch.dict(os.environ, {}, clear=True):
            settings = StaxSettings()

        assert settings.app_dir == Path.home() / ".stax"

    def test_app_dir_follows_app_name(self):
        """Test the default app directory is named after app_name."""
        with patch.dict(os.environ, {}, clear=True):
            settings = StaxSettings(app_name="acme")

        assert settings.app_dir == Path.home() / ".acme"
        assert settings.known_hosts_file == Path.home() / ".acme" / "known_hosts"

    def test_known_hosts_derived_from_app_dir(self, temp_app_dir: Path):
        """Test known_hosts lives in the app directory by default."""
        with patch.dict(os.environ, {}, clear=True):
            settings = StaxSettings(app_dir=temp_app_dir)

        assert settings.known_hosts_file == temp_app_dir / "known_hosts"

    def test_known_hosts_override(self, temp_app_dir: Path, tmp_path: Path):
        """Test an explicit known_hosts path wins over app_dir."""
        with patch.dict(os.environ, {}, clear=True):
            settings = StaxSettings(
                app_dir=temp_app_dir, known_hosts_path=tmp_path / "custom_hosts"
            )

        assert settings.known_hosts_file == tmp_path / "custom_hosts"

    def test_path_expansion(self):
        """Test that ~ is expanded in path settings."""
        with patch.dict(os.environ, {}, clear=True):
            settings = StaxSettings(app_dir="~/stax_test", known_hosts_path="~/kh")

        assert settings.app_dir == Path.home() / "stax_test"
        assert settings.known_hosts_path == Path.home() / "kh"

    def test_env_overrides(self, temp_app_dir: Path):
        """Test STAX_* environment variables are read."""
        env = {
            "STAX_TRUST_POLICY": "reject",
            "STAX_CHECKSUM_ALGORITHM": "sha256",
            "STAX_CHECKSUM_PARALLEL": "false",
            "STAX_CHECKSUM_TIMEOUT": "120",
            "STAX_LOG_FORMAT": "json",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = StaxSettings(app_dir=temp_app_dir)

        assert settings.trust_policy == "reject"
        assert settings.checksum_algorithm == "sha256"
        assert settings.checksum_parallel is False
        assert settings.checksum_timeout == 120
        assert settings.log_format == "json"

    def test_constructor_beats_env(self, temp_app_dir: Path):
        """Test constructor arguments take priority over the environment."""
        with patch.dict(os.environ, {"STAX_TRUST_POLICY": "reject"}, clear=True):
            settings = StaxSettings(app_dir=temp_app_dir, trust_policy="accept")

        assert settings.trust_policy == "accept"

    def test_user_json_config(self, tmp_path: Path, temp_app_dir: Path):
        """Test ~/.stax/settings.json is loaded when present."""
        config_dir = tmp_path / "home" / ".stax"
        config_dir.mkdir(parents=True)
        (config_dir / "settings.json").write_text(json.dumps({"checksum_algorithm": "sha256"}))

        with patch.dict(os.environ, {}, clear=True), patch(
            "stax_security.config.Path.home", return_value=tmp_path / "home"
        ):
            settings = StaxSettings(app_dir=temp_app_dir)

        assert settings.checksum_algorithm == "sha256"

    def test_user_json_config_follows_app_name(self, tmp_path: Path, temp_app_dir: Path):
        """Test a subclass with another app_name reads its own settings.json."""

        class AcmeSettings(StaxSettings):
            app_name: str = "acme"

        home = tmp_path / "home"
        (home / ".acme").mkdir(parents=True)
        (home / ".acme" / "settings.json").write_text(json.dumps({"trust_policy": "reject"}))
        (home / ".stax").mkdir()
        (home / ".stax" / "settings.json").write_text(json.dumps({"trust_policy": "accept"}))

        with patch.dict(os.environ, {}, clear=True), patch(
            "stax_security.config.Path.home", return_value=home
        ):
            settings = AcmeSettings(app_dir=temp_app_dir)

        assert settings.trust_policy == "reject"

    @pytest.mark.parametrize(
        "field,value",
        [
            ("trust_policy", "sometimes"),
            ("checksum_algorithm", "crc32"),
            ("log_level", "verbose"),
            ("checksum_timeout", 0),
            ("log_max_length", -1),
        ],
    )
    def test_invalid_values_rejected(self, temp_app_dir: Path, field, value):
        """Test invalid field values fail pydantic validation."""
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(PydanticValidationError):
                StaxSettings(app_dir=temp_app_dir, **{field: value})


class TestGlobalSettings:
    """Tests for global settings management."""

    def test_get_settings_creates_default(self):
        """Test get_settings creates default instance."""
        with patch.dict(os.environ, {}, clear=True):
            settings = get_settings()

        assert isinstance(settings, StaxSettings)
        assert get_settings() is settings

    def test_set_settings(self, temp_app_dir: Path):
        """Test set_settings replaces global instance."""
        with patch.dict(os.environ, {}, clear=True):
            custom = StaxSettings(app_dir=temp_app_dir, app_name="custom_app")

        set_settings(custom)
        assert get_settings().app_name == "custom_app"

    def test_reload_settings(self, temp_app_dir: Path):
        """Test reload_settings clears and recreates."""
        with patch.dict(os.environ, {}, clear=True):
            custom = StaxSettings(app_dir=temp_app_dir, app_name="custom")
        set_settings(custom)

        with patch.dict(os.environ, {}, clear=True):
            reloaded = reload_settings()

        assert reloaded.app_name == "stax"


class TestSettingsContext:
    """Tests for context-based settings management."""

    def test_settings_context_basic(self, temp_app_dir: Path):
        """Test SettingsContext sets and clears context."""
        with patch.dict(os.environ, {}, clear=True):
            global_settings = StaxSettings(app_dir=temp_app_dir)
            context_settings = StaxSettings(app_dir=temp_app_dir, app_name="context_app")

        set_settings(global_settings)
        assert get_settings().app_name == "stax"

        with SettingsContext(context_settings) as s:
            assert s is context_settings
            assert get_settings().app_name == "context_app"

        assert get_settings().app_name == "stax"

    def test_settings_context_nested(self, temp_app_dir: Path):
        """Test nested SettingsContext works correctly."""
        with patch.dict(os.environ, {}, clear=True):
            outer = StaxSettings(app_dir=temp_app_dir, app_name="outer")
            inner = StaxSettings(app_dir=temp_app_dir, app_name="inner")

        with SettingsContext(outer):
            assert get_settings().app_name == "outer"
            with SettingsContext(inner):
                assert get_settings().app_name == "inner"
            assert get_settings().app_name == "outer"

    def test_set_context_settings_direct(self, temp_app_dir: Path):
        """Test set_context_settings function."""
        with patch.dict(os.environ, {}, clear=True):
            context_settings = StaxSettings(app_dir=temp_app_dir, app_name="direct")

        set_context_settings(context_settings)
        try:
            assert get_context_settings() is context_settings
            assert get_settings().app_name == "direct"
        finally:
            set_context_settings(None)

        assert get_context_settings() is None


class TestSettingsValidation:
    """Tests for runtime settings validation."""

    def test_valid_settings(self, temp_app_dir: Path):
        """Test validation passes for a fresh app directory."""
        with patch.dict(os.environ, {}, clear=True):
            settings = StaxSettings(app_dir=temp_app_dir)

        validate_settings(settings)

    def test_known_hosts_is_directory(self, temp_app_dir: Path):
        """Test a directory at the known_hosts location is rejected."""
        (temp_app_dir / "known_hosts").mkdir()
        with patch.dict(os.environ, {}, clear=True):
            settings = StaxSettings(app_dir=temp_app_dir)

        with pytest.raises(SettingsValidationError, match="known_hosts path is a directory"):
            validate_settings(settings)

    def test_app_dir_is_file(self, tmp_path: Path):
        """Test a regular file at the app directory location is rejected."""
        app_file = tmp_path / "app_file"
        app_file.write_text("")
        with patch.dict(os.environ, {}, clear=True):
            settings = StaxSettings(app_dir=app_file)

        with pytest.raises(SettingsValidationError, match="app directory is not a directory"):
            validate_settings(settings)

    def test_blank_marker(self, temp_app_dir: Path):
        """Test a blank internal path marker is rejected."""
        with patch.dict(os.environ, {}, clear=True):
            settings = StaxSettings(app_dir=temp_app_dir, internal_path_marker="  ")

        with pytest.raises(SettingsValidationError, match="internal_path_marker"):
            validate_settings(settings)
