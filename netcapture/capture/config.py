"""Configuration system for scrape sessions.

This module provides settings management for the capture pipeline,
including YAML loading, validation, and environment-specific overrides.
Per-request parameters live in ``SessionConfig``; everything here is a
service-wide default or tunable.
"""

import logging
import os
import yaml
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

VALID_ENVIRONMENTS = {'production', 'staging', 'development', 'test'}


class IframeReloadScope:
    """What to re-navigate after clearing storage in iframe mode."""
    FRAME = "frame"
    PAGE = "page"


class InterceptionRules(BaseModel):
    """Blocking rules applied to every outgoing request."""

    blocked_resource_types: List[str] = Field(
        default_factory=lambda: ['image', 'stylesheet', 'font'],
        description="Playwright resource types that are always aborted"
    )
    blocked_extensions: List[str] = Field(
        default_factory=lambda: [
            '.jpg', '.jpeg', '.png', '.gif', '.webp', '.svg',
            '.css', '.woff', '.woff2', '.ttf', '.otf',
        ],
        description="URL path suffixes that are always aborted"
    )
    tracking_markers: List[str] = Field(
        default_factory=lambda: ['google-analytics', 'googletagmanager'],
        description="URL substrings identifying tracking services"
    )

    @field_validator('blocked_extensions')
    @classmethod
    def normalize_extensions(cls, v):
        return [ext.lower() if ext.startswith('.') else f".{ext.lower()}" for ext in v]


class BrowserSettings(BaseModel):
    """Browser launch and context defaults."""

    executable_path: Optional[str] = Field(
        default=None,
        description="Chromium executable; None uses the Playwright-managed build"
    )
    extra_args: List[str] = Field(default_factory=list, description="Additional launch arguments")
    viewport_width: int = Field(default=1280, ge=1)
    viewport_height: int = Field(default=720, ge=1)
    locale: str = Field(default="en-US")
    chrome_major_version: int = Field(default=120, ge=1)
    platform: str = Field(default="Windows", description="Platform advertised in UA and client hints")
    scratch_prefix: str = Field(default="netcapture-", description="Prefix for the engine scratch directory")


class TimeoutSettings(BaseModel):
    """Bounded waits used by the navigation orchestrator."""

    element_timeout_ms: int = Field(default=5000, ge=0, description="Iframe/selector discovery bound")
    settle_delay_ms: int = Field(default=5000, ge=0, description="Delay after DOM-mutating actions")
    navigation_timeout_ms: int = Field(default=30000, ge=0, description="Playwright navigation timeout")


class ScraperSettings(BaseModel):
    """Root settings for the scrape service."""

    environment: str = Field(default="production", description="Environment name")
    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    timeouts: TimeoutSettings = Field(default_factory=TimeoutSettings)
    interception: InterceptionRules = Field(default_factory=InterceptionRules)
    iframe_reload_scope: str = Field(default=IframeReloadScope.FRAME)
    cache_control: str = Field(default="s-maxage=3600, stale-while-revalidate")
    environments: Dict[str, Dict[str, Any]] = Field(
        default_factory=dict,
        description="Environment-specific overrides"
    )

    @field_validator('environment')
    @classmethod
    def validate_environment(cls, v):
        if v not in VALID_ENVIRONMENTS:
            raise ValueError(f"Environment must be one of: {VALID_ENVIRONMENTS}")
        return v

    @field_validator('iframe_reload_scope')
    @classmethod
    def validate_reload_scope(cls, v):
        valid = {IframeReloadScope.FRAME, IframeReloadScope.PAGE}
        if v not in valid:
            raise ValueError(f"iframe_reload_scope must be one of: {valid}")
        return v

    def resolved(self) -> 'ScraperSettings':
        """Return a copy with the active environment's overrides merged in."""
        overrides = self.environments.get(self.environment)
        if not overrides:
            return self

        data = self.model_dump()
        for section, values in overrides.items():
            if isinstance(values, dict) and isinstance(data.get(section), dict):
                data[section].update(values)
            else:
                data[section] = values
        return ScraperSettings(**data)


class SettingsManager:
    """Manager for settings loading and caching."""

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        """Initialize settings manager.

        Args:
            config_path: Path to the YAML settings file. Defaults to
                ``$NETCAPTURE_CONFIG`` or config/capture.yaml in the project root.
        """
        if config_path is None:
            config_path = os.environ.get('NETCAPTURE_CONFIG')
        if config_path is None:
            project_root = Path(__file__).parent.parent.parent
            config_path = project_root / "config" / "capture.yaml"

        self.config_path = Path(config_path)
        self._settings: Optional[ScraperSettings] = None
        self._loaded_env = None

    def load_settings(self, force_reload: bool = False) -> ScraperSettings:
        """Load settings from YAML, falling back to defaults if the file is absent.

        Raises:
            yaml.YAMLError: If YAML is invalid
            ValueError: If settings validation fails
        """
        current_env = os.environ.get('NETCAPTURE_ENV', 'production')

        if self._settings is not None and not force_reload and current_env == self._loaded_env:
            return self._settings

        config_data: Dict[str, Any] = {}
        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    config_data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise yaml.YAMLError(f"Invalid YAML in {self.config_path}: {e}")
        else:
            logger.info(f"Settings file not found, using defaults: {self.config_path}")

        if current_env != 'production':
            config_data['environment'] = current_env

        try:
            settings = ScraperSettings(**config_data).resolved()
        except Exception as e:
            raise ValueError(f"Settings validation failed: {e}")

        if chromium_path := os.environ.get('NETCAPTURE_CHROMIUM_PATH'):
            browser = settings.browser.model_copy(update={'executable_path': chromium_path})
            settings = settings.model_copy(update={'browser': browser})

        self._settings = settings
        self._loaded_env = current_env
        return settings

    @property
    def settings(self) -> ScraperSettings:
        """Get current settings, loading if necessary."""
        if self._settings is None:
            return self.load_settings()
        return self._settings

    @property
    def environment(self) -> str:
        return self.settings.environment


_settings_manager: Optional[SettingsManager] = None


def get_settings_manager(config_path: Optional[Union[str, Path]] = None) -> SettingsManager:
    """Get the global settings manager.

    Args:
        config_path: Path to settings file (only used on first call)
    """
    global _settings_manager
    if _settings_manager is None:
        _settings_manager = SettingsManager(config_path)
    return _settings_manager


def get_settings() -> ScraperSettings:
    """Shortcut for the current resolved settings."""
    return get_settings_manager().settings
