"""
Tests for configuration system.
"""

import pytest

from web_macro.config import (
    BrowserSettings,
    ConfigLoader,
    ReplaySettings,
    Settings,
    get_settings,
    load_config,
    reset_settings,
)
from web_macro.exceptions import ConfigurationError


class TestSettings:
    """Test the Settings classes."""

    def test_default_settings(self):
        """Test default settings are created correctly."""
        settings = Settings()

        assert settings.browser.headless is True
        assert settings.browser.browser_type == "chromium"
        assert settings.replay.min_delay_ms == 200
        assert settings.replay.max_delay_ms == 15000
        assert settings.replay.default_delay_ms == 400
        assert settings.replay.element_timeout_ms == 15000
        assert settings.replay.navigation_settle_ms == 700
        assert settings.selectors.max_alternates == 4
        assert settings.storage.backend == "json"

    def test_override_settings(self):
        """Test overriding settings."""
        settings = Settings(
            browser=BrowserSettings(browser_type="firefox", headless=False),
            replay=ReplaySettings(default_speed=2.0),
        )

        assert settings.browser.browser_type == "firefox"
        assert settings.browser.headless is False
        assert settings.replay.default_speed == 2.0

    def test_merge_with_overrides(self):
        """Test merging settings with overrides."""
        settings = Settings()
        new_settings = settings.merge_with({
            "browser": {"headless": False},
            "replay": {"default_speed": 3.0},
        })

        assert new_settings.browser.headless is False
        assert new_settings.replay.default_speed == 3.0
        # Other settings should remain default
        assert new_settings.browser.browser_type == "chromium"
        assert new_settings.replay.min_delay_ms == 200

    def test_browser_settings_validation(self):
        """Test validation of browser settings."""
        settings = BrowserSettings(timeout_ms=5000)
        assert settings.timeout_ms == 5000

        with pytest.raises(ValueError):
            BrowserSettings(timeout_ms=100)

    def test_replay_speed_must_be_positive(self):
        """Test a zero speed is rejected."""
        with pytest.raises(ValueError):
            ReplaySettings(default_speed=0)

    def test_delay_bounds_validation(self):
        """Test min_delay_ms may not exceed max_delay_ms."""
        with pytest.raises(ValueError):
            ReplaySettings(min_delay_ms=5000, max_delay_ms=1000)

    def test_env_vars(self, monkeypatch):
        """Test nested settings are read from WEB_MACRO__ variables."""
        monkeypatch.setenv("WEB_MACRO__REPLAY__DEFAULT_SPEED", "2.5")
        monkeypatch.setenv("WEB_MACRO__BROWSER__HEADLESS", "false")

        settings = Settings()

        assert settings.replay.default_speed == 2.5
        assert settings.browser.headless is False


class TestConfigLoader:
    """Test loading configuration from files."""

    def test_load_yaml(self, tmp_path, monkeypatch):
        """Test values are read from an explicit YAML file."""
        monkeypatch.chdir(tmp_path)
        config = tmp_path / "custom.yaml"
        config.write_text("replay:\n  min_delay_ms: 50\nstorage:\n  backend: memory\n")

        settings = load_config(config_path=config)

        assert settings.replay.min_delay_ms == 50
        assert settings.storage.backend == "memory"

    def test_overrides_beat_file(self, tmp_path, monkeypatch):
        """Test keyword overrides take priority over the file."""
        monkeypatch.chdir(tmp_path)
        config = tmp_path / "custom.yaml"
        config.write_text("replay:\n  default_speed: 2.0\n")

        settings = load_config(config_path=config, replay={"default_speed": 4.0})

        assert settings.replay.default_speed == 4.0

    def test_default_file_discovered(self, tmp_path, monkeypatch):
        """Test web_macro.yaml in the working directory is picked up."""
        monkeypatch.chdir(tmp_path)
        (tmp_path / "web_macro.yaml").write_text("browser:\n  browser_type: webkit\n")

        assert ConfigLoader().find_config_file().name == "web_macro.yaml"
        assert load_config().browser.browser_type == "webkit"

    def test_empty_file(self, tmp_path):
        """Test an empty YAML file yields no values."""
        config = tmp_path / "empty.yaml"
        config.write_text("")
        assert ConfigLoader(config).load_yaml_config(config) == {}

    def test_invalid_yaml(self, tmp_path):
        """Test malformed YAML raises ConfigurationError."""
        config = tmp_path / "bad.yaml"
        config.write_text("replay: [unclosed\n")
        with pytest.raises(ConfigurationError):
            ConfigLoader(config).load_yaml_config(config)

    def test_non_mapping_yaml(self, tmp_path):
        """Test a YAML list is rejected."""
        config = tmp_path / "list.yaml"
        config.write_text("- one\n- two\n")
        with pytest.raises(ConfigurationError):
            ConfigLoader(config).load_yaml_config(config)

    def test_invalid_values(self, tmp_path, monkeypatch):
        """Test out-of-range values raise ConfigurationError."""
        monkeypatch.chdir(tmp_path)
        config = tmp_path / "custom.yaml"
        config.write_text("replay:\n  min_delay_ms: 9000\n  max_delay_ms: 10\n")
        with pytest.raises(ConfigurationError):
            load_config(config_path=config)


class TestGlobalSettings:
    """Test the settings singleton."""

    def test_get_settings_cached(self, tmp_path, monkeypatch):
        """Test get_settings returns the same instance until reset."""
        monkeypatch.chdir(tmp_path)
        reset_settings()
        try:
            first = get_settings()
            assert get_settings() is first
            reset_settings()
            assert get_settings() is not first
        finally:
            reset_settings()
