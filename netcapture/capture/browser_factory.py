"""Browser profile building and browser lifecycle management.

This module derives a ``BrowserProfile`` from a session configuration and
provides the ``BrowserFactory`` that launches Chromium with that profile,
creates the browsing context and guarantees teardown of the browser,
Playwright and the engine scratch directory on every exit path.
"""

import asyncio
import logging
import shutil
import tempfile
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Any, List, AsyncGenerator

from playwright.async_api import (
    Browser,
    BrowserContext,
    Playwright,
    async_playwright,
    Page
)
from playwright_stealth import Stealth

from .config import BrowserSettings
from ..exceptions import LaunchError
from ..models.session import SessionConfig

logger = logging.getLogger(__name__)


# Chromium flags suited to short-lived, single-page serverless sessions
ENGINE_ARGS: List[str] = [
    '--allow-pre-commit-input',
    '--disable-background-networking',
    '--disable-background-timer-throttling',
    '--disable-backgrounding-occluded-windows',
    '--disable-breakpad',
    '--disable-client-side-phishing-detection',
    '--disable-component-update',
    '--disable-default-apps',
    '--disable-extensions',
    '--disable-hang-monitor',
    '--disable-ipc-flooding-protection',
    '--disable-popup-blocking',
    '--disable-prompt-on-repost',
    '--disable-renderer-backgrounding',
    '--disable-sync',
    '--disable-gpu',
    '--hide-scrollbars',
    '--metrics-recording-only',
    '--mute-audio',
    '--no-first-run',
    '--no-zygote',
    '--password-store=basic',
    '--use-mock-keychain',
]

SANDBOX_ARGS: List[str] = [
    '--disable-dev-shm-usage',
    '--no-sandbox',
    '--disable-setuid-sandbox',
    '--single-process',
]

STEALTH_ARGS: List[str] = [
    '--disable-blink-features=AutomationControlled',
]

_PLATFORM_TOKENS = {
    'Windows': 'Windows NT 10.0; Win64; x64',
    'macOS': 'Macintosh; Intel Mac OS X 10_15_7',
    'Linux': 'X11; Linux x86_64',
}


def build_user_agent(chrome_major_version: int, platform: str = 'Windows') -> str:
    """Desktop Chrome user agent without any headless marker."""
    token = _PLATFORM_TOKENS.get(platform, _PLATFORM_TOKENS['Windows'])
    return (
        f"Mozilla/5.0 ({token}) AppleWebKit/537.36 (KHTML, like Gecko) "
        f"Chrome/{chrome_major_version}.0.0.0 Safari/537.36"
    )


def build_client_hints(chrome_major_version: int, platform: str = 'Windows') -> Dict[str, str]:
    """Accept headers and client hints consistent with ``build_user_agent``."""
    return {
        'accept': (
            'text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,'
            'image/webp,image/apng,*/*;q=0.8,application/signed-exchange;v=b3;q=0.7'
        ),
        'accept-language': 'en-US,en;q=0.5',
        'sec-gpc': '1',
        'upgrade-insecure-requests': '1',
        'sec-ch-ua': (
            f'"Chromium";v="{chrome_major_version}", '
            f'"Google Chrome";v="{chrome_major_version}", "Not A;Brand";v="99"'
        ),
        'sec-ch-ua-mobile': '?0',
        'sec-ch-ua-platform': f'"{platform}"',
    }


@dataclass(frozen=True)
class BrowserProfile:
    """Launch and context options for one session. Never shared."""

    launch_args: List[str]
    headless: bool
    user_agent: str
    headers: Dict[str, str]
    viewport: Dict[str, int]
    locale: str
    stealth: bool = False
    executable_path: Optional[str] = None
    scratch_prefix: str = "netcapture-"
    extra_options: Dict[str, Any] = field(default_factory=dict)

    def to_launch_options(self, scratch_dir: Optional[Path] = None) -> Dict[str, Any]:
        """Convert to Playwright ``chromium.launch`` options."""
        args = list(self.launch_args)
        options: Dict[str, Any] = {'headless': self.headless}

        if scratch_dir is not None:
            args.append(f"--disk-cache-dir={scratch_dir / 'cache'}")
            args.append(f"--crash-dumps-dir={scratch_dir / 'crashes'}")
            options['downloads_path'] = str(scratch_dir / 'downloads')

        options['args'] = args

        if self.executable_path:
            options['executable_path'] = self.executable_path

        options.update(self.extra_options)
        return options

    def to_context_options(self) -> Dict[str, Any]:
        """Convert to Playwright ``browser.new_context`` options."""
        return {
            'user_agent': self.user_agent,
            'viewport': dict(self.viewport),
            'locale': self.locale,
            'extra_http_headers': dict(self.headers),
        }


def _set_header(headers: Dict[str, str], name: str, value: str) -> None:
    for existing in [key for key in headers if key.lower() == name.lower()]:
        del headers[existing]
    headers[name] = value


def build_browser_profile(config: SessionConfig, settings: Optional[BrowserSettings] = None) -> BrowserProfile:
    """Derive the browser profile for a session.

    Args:
        config: Resolved session configuration
        settings: Browser defaults (built-in defaults if None)

    Returns:
        Immutable profile used to launch the browser and build its context
    """
    settings = settings or BrowserSettings()

    launch_args = list(ENGINE_ARGS) + list(SANDBOX_ARGS)
    if config.stealth_enabled:
        launch_args.extend(STEALTH_ARGS)
    launch_args.extend(settings.extra_args)

    headers = build_client_hints(settings.chrome_major_version, settings.platform)
    if config.custom_origin:
        _set_header(headers, 'Origin', config.custom_origin)
    if config.custom_referer:
        _set_header(headers, 'Referer', config.custom_referer)

    return BrowserProfile(
        launch_args=launch_args,
        headless=not config.headful,
        user_agent=build_user_agent(settings.chrome_major_version, settings.platform),
        headers=headers,
        viewport={'width': settings.viewport_width, 'height': settings.viewport_height},
        locale=settings.locale,
        stealth=config.stealth_enabled,
        executable_path=settings.executable_path,
        scratch_prefix=settings.scratch_prefix,
    )


class BrowserFactory:
    """Launches one browser for one session and tears it down exactly once."""

    def __init__(self, profile: BrowserProfile):
        """Initialize browser factory with a session profile.

        Args:
            profile: Browser profile for this session
        """
        self.profile = profile
        self.playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.scratch_dir: Optional[Path] = None
        self._stopped = False

    async def start(self) -> None:
        """Create the scratch directory, start Playwright and launch Chromium.

        Raises:
            LaunchError: If Playwright or the browser fails to start
        """
        if self.playwright is not None:
            logger.warning("Browser factory already started")
            return

        logger.info(f"Launching browser (headless={self.profile.headless}, stealth={self.profile.stealth})")

        try:
            self.scratch_dir = Path(await asyncio.to_thread(tempfile.mkdtemp, prefix=self.profile.scratch_prefix))
            self.playwright = await async_playwright().start()
            launch_options = self.profile.to_launch_options(self.scratch_dir)
            self.browser = await self.playwright.chromium.launch(**launch_options)
            logger.info(f"Browser launched successfully (version={self.browser.version})")

        except Exception as e:
            logger.error(f"Failed to start browser: {e}")
            await self.stop()
            raise LaunchError(
                f"Failed to launch browser: {e}",
                executable_path=self.profile.executable_path
            ) from e

    async def stop(self) -> None:
        """Close the browser, stop Playwright and remove scratch files.

        Runs once; later calls are no-ops. Errors are logged, never raised.
        """
        if self._stopped:
            return
        self._stopped = True
        logger.info("Stopping browser factory")

        if self.browser:
            try:
                await self.browser.close()
            except Exception as e:
                logger.warning(f"Error closing browser: {e}")
            self.browser = None

        if self.playwright:
            try:
                await self.playwright.stop()
            except Exception as e:
                logger.warning(f"Error stopping Playwright: {e}")
            self.playwright = None

        await asyncio.to_thread(self.cleanup_scratch)

    def cleanup_scratch(self) -> None:
        """Best-effort removal of the engine scratch directory."""
        if self.scratch_dir is None:
            return
        try:
            shutil.rmtree(self.scratch_dir)
            logger.debug(f"Removed scratch directory: {self.scratch_dir}")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Failed to remove scratch directory {self.scratch_dir}: {e}")
        self.scratch_dir = None

    async def create_context(self) -> BrowserContext:
        """Create the session's browsing context, applying stealth if requested.

        Raises:
            LaunchError: If the browser is not running or the context fails
        """
        if not self.browser:
            raise LaunchError("Browser factory not started. Call start() first.")

        try:
            context = await self.browser.new_context(**self.profile.to_context_options())
            if self.profile.stealth:
                await Stealth().apply_stealth_async(context)
                logger.debug("Stealth patches applied to browser context")
            return context

        except Exception as e:
            logger.error(f"Failed to create browser context: {e}")
            raise LaunchError(f"Failed to create browser context: {e}") from e

    async def new_page(self) -> Page:
        """Create a context and a page inside it."""
        context = await self.create_context()
        try:
            return await context.new_page()
        except Exception as e:
            raise LaunchError(f"Failed to open page: {e}") from e

    @asynccontextmanager
    async def session(self) -> AsyncGenerator['BrowserFactory', None]:
        """Context manager for the browser lifecycle.

        Yields:
            Started factory that is always stopped on exit
        """
        try:
            await self.start()
            yield self
        finally:
            await self.stop()

    @property
    def is_running(self) -> bool:
        """Check if the browser is up."""
        if self.browser is None:
            return False
        return self.browser.is_connected()

    def __repr__(self) -> str:
        return (
            f"BrowserFactory(headless={self.profile.headless}, "
            f"stealth={self.profile.stealth}, running={self.is_running})"
        )
