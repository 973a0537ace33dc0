"""Unit tests for service settings loading."""

import pytest
import yaml

from netcapture.capture.config import (
    IframeReloadScope,
    InterceptionRules,
    ScraperSettings,
    SettingsManager,
)


class TestScraperSettings:
    """Tests for ScraperSettings defaults and validation."""

    def test_defaults(self):
        settings = ScraperSettings()

        assert settings.environment == "production"
        assert settings.browser.viewport_width == 1280
        assert settings.browser.viewport_height == 720
        assert settings.browser.locale == "en-US"
        assert settings.browser.executable_path is None
        assert settings.timeouts.element_timeout_ms == 5000
        assert settings.timeouts.settle_delay_ms == 5000
        assert settings.iframe_reload_scope == IframeReloadScope.FRAME
        assert settings.cache_control == "s-maxage=3600, stale-while-revalidate"

    def test_default_interception_rules(self):
        rules = InterceptionRules()

        assert rules.blocked_resource_types == ['image', 'stylesheet', 'font']
        assert '.woff2' in rules.blocked_extensions
        assert 'googletagmanager' in rules.tracking_markers

    def test_extensions_normalized(self):
        rules = InterceptionRules(blocked_extensions=['PNG', '.Gif'])
        assert rules.blocked_extensions == ['.png', '.gif']

    def test_invalid_environment(self):
        with pytest.raises(ValueError):
            ScraperSettings(environment="moon")

    def test_invalid_reload_scope(self):
        with pytest.raises(ValueError):
            ScraperSettings(iframe_reload_scope="window")

    def test_environment_overrides(self):
        settings = ScraperSettings(
            environment="test",
            environments={"test": {"timeouts": {"settle_delay_ms": 0}}},
        ).resolved()

        assert settings.timeouts.settle_delay_ms == 0
        assert settings.timeouts.element_timeout_ms == 5000


class TestSettingsManager:
    """Tests for SettingsManager."""

    @pytest.fixture
    def config_file(self, tmp_path):
        path = tmp_path / "capture.yaml"
        path.write_text(yaml.safe_dump({
            "browser": {"locale": "de-DE"},
            "timeouts": {"element_timeout_ms": 3000},
            "environments": {
                "staging": {"timeouts": {"element_timeout_ms": 1000}},
            },
        }))
        return path

    def test_load_from_file(self, config_file, monkeypatch):
        monkeypatch.delenv("NETCAPTURE_ENV", raising=False)
        monkeypatch.delenv("NETCAPTURE_CHROMIUM_PATH", raising=False)

        settings = SettingsManager(config_file).load_settings()

        assert settings.browser.locale == "de-DE"
        assert settings.timeouts.element_timeout_ms == 3000

    def test_environment_from_env_var(self, config_file, monkeypatch):
        monkeypatch.setenv("NETCAPTURE_ENV", "staging")
        monkeypatch.delenv("NETCAPTURE_CHROMIUM_PATH", raising=False)

        manager = SettingsManager(config_file)
        settings = manager.load_settings()

        assert manager.environment == "staging"
        assert settings.timeouts.element_timeout_ms == 1000

    def test_missing_file_uses_defaults(self, tmp_path, monkeypatch):
        monkeypatch.delenv("NETCAPTURE_ENV", raising=False)
        monkeypatch.delenv("NETCAPTURE_CHROMIUM_PATH", raising=False)

        settings = SettingsManager(tmp_path / "missing.yaml").load_settings()

        assert settings == ScraperSettings()

    def test_chromium_path_override(self, config_file, monkeypatch):
        monkeypatch.delenv("NETCAPTURE_ENV", raising=False)
        monkeypatch.setenv("NETCAPTURE_CHROMIUM_PATH", "/opt/chromium/chrome")

        settings = SettingsManager(config_file).load_settings()

        assert settings.browser.executable_path == "/opt/chromium/chrome"
        assert settings.browser.locale == "de-DE"

    def test_invalid_yaml(self, tmp_path, monkeypatch):
        monkeypatch.delenv("NETCAPTURE_ENV", raising=False)
        path = tmp_path / "broken.yaml"
        path.write_text("browser: [unclosed")

        with pytest.raises(yaml.YAMLError):
            SettingsManager(path).load_settings()

    def test_settings_cached(self, config_file, monkeypatch):
        monkeypatch.delenv("NETCAPTURE_ENV", raising=False)
        manager = SettingsManager(config_file)

        assert manager.settings is manager.settings
