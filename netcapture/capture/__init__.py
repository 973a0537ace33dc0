"""Browser capture pipeline for netcapture.

This package loads a page in Playwright-driven Chromium and records the
network requests it issues.

Main Components:
- Resolver: raw parameters to SessionConfig
- Browser Factory: profile building, launch, stealth and teardown
- Interception: per-request abort/record/continue decisions
- Navigation: load, storage reset, click and wait state machine
- Scrape Engine: session coordination and result aggregation

Usage:
    from netcapture.capture import ScrapeEngine

    engine = ScrapeEngine()
    result = await engine.scrape_params({"url": "https://example.com"})
"""

__all__ = [
    "ScrapeEngine",
    "run_scrape",
    "BrowserFactory",
    "BrowserProfile",
    "build_browser_profile",
    "RequestClassifier",
    "RequestInterceptor",
    "Verdict",
    "Navigator",
    "NavigationState",
    "NavigationReport",
    "resolve_session_config",
    "ScraperSettings",
    "get_settings",
]

from .browser_factory import BrowserFactory, BrowserProfile, build_browser_profile
from .config import ScraperSettings, get_settings
from .engine import ScrapeEngine, run_scrape
from .interception import RequestClassifier, RequestInterceptor, Verdict
from .navigation import Navigator, NavigationState, NavigationReport
from .resolver import resolve_session_config
