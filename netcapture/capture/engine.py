"""Scrape engine that coordinates one browser session end to end.

This module provides the ``ScrapeEngine`` that builds the browser profile,
launches the browser, attaches the request interceptor, runs the navigator
and aggregates the captured requests into a ``ScrapeResult``. Browser and
scratch resources are released on every exit path.
"""

import logging
from typing import Mapping, Optional

from .browser_factory import BrowserFactory, BrowserProfile, build_browser_profile
from .config import ScraperSettings, get_settings
from .interception import RequestClassifier, RequestInterceptor
from .navigation import Navigator
from .resolver import resolve_session_config
from ..exceptions import ScrapeError
from ..models.session import ScrapeMeta, ScrapeResult, SessionConfig

logger = logging.getLogger(__name__)


def build_result(config: SessionConfig, interceptor: RequestInterceptor) -> ScrapeResult:
    """Aggregate captured requests into the final result."""
    return ScrapeResult(
        message=f"Successfully scraped {config.target_url}",
        requests=interceptor.get_records(),
        meta=ScrapeMeta(stealth_enabled=config.stealth_enabled, headful=config.headful),
    )


class ScrapeEngine:
    """Runs scrape sessions with shared service settings."""

    def __init__(self, settings: Optional[ScraperSettings] = None):
        """Initialize scrape engine.

        Args:
            settings: Service settings (loaded from config/capture.yaml if None)
        """
        self.settings = settings or get_settings()

    def build_profile(self, config: SessionConfig) -> BrowserProfile:
        return build_browser_profile(config, self.settings.browser)

    def create_factory(self, profile: BrowserProfile) -> BrowserFactory:
        return BrowserFactory(profile)

    async def scrape(self, config: SessionConfig) -> ScrapeResult:
        """Run one scrape session.

        Args:
            config: Resolved session configuration

        Returns:
            ScrapeResult with requests in arrival order

        Raises:
            LaunchError: If the browser cannot be started
            NavigationError: If loading the target fails
        """
        logger.info(f"Starting scrape session: {config.target_url}")

        profile = self.build_profile(config)
        factory = self.create_factory(profile)
        interceptor = RequestInterceptor(
            RequestClassifier(self.settings.interception, config.filter_substring)
        )

        async with factory.session():
            page = await factory.new_page()
            await interceptor.attach(page)

            navigator = Navigator(
                page,
                config,
                timeouts=self.settings.timeouts,
                iframe_reload_scope=self.settings.iframe_reload_scope,
            )
            await navigator.run()

            result = build_result(config, interceptor)

        logger.info(
            f"Scrape session completed: {config.target_url} "
            f"({len(result.requests)} recorded, stats={interceptor.get_stats()})"
        )
        return result

    async def scrape_params(self, params: Mapping[str, Optional[str]]) -> ScrapeResult:
        """Resolve raw parameters and run a session.

        Raises:
            MissingTargetError: If no URL was supplied (before any browser work)
        """
        config = resolve_session_config(params)
        return await self.scrape(config)


async def run_scrape(params: Mapping[str, Optional[str]], settings: Optional[ScraperSettings] = None) -> ScrapeResult:
    """Convenience wrapper for a single session."""
    engine = ScrapeEngine(settings)
    try:
        return await engine.scrape_params(params)
    except ScrapeError as e:
        logger.error(f"Scrape failed ({e.error_code}): {e.message}")
        raise
