"""Navigation orchestration for scrape sessions.

This module provides the ``Navigator`` that drives a page through the
session's linear state machine::

    INIT -> LOADED -> (STORAGE_CLEARED) -> (CLICKED) -> (WAITED) -> DONE

Loading and re-loading failures are fatal and raise ``NavigationError``.
Iframe discovery and clicking are best-effort: failures are recorded as
``InteractionOutcome`` values and the session carries on.
"""

import html
import logging
from enum import Enum
from typing import List, Optional, Union

from playwright.async_api import Frame, Page, TimeoutError as PlaywrightTimeoutError

from .config import IframeReloadScope, TimeoutSettings
from ..exceptions import InteractionTimeout, NavigationError
from ..models.session import InteractionOutcome, InteractionStatus, SessionConfig

logger = logging.getLogger(__name__)

CLEAR_LOCAL_STORAGE_JS = "() => localStorage.clear()"
WAIT_UNTIL = "domcontentloaded"


class NavigationState(str, Enum):
    """States of the navigation state machine, in order."""
    INIT = "init"
    LOADED = "loaded"
    STORAGE_CLEARED = "storage_cleared"
    CLICKED = "clicked"
    WAITED = "waited"
    DONE = "done"


def build_iframe_wrapper(url: str) -> str:
    """Markup that embeds the target in a full-size iframe."""
    src = html.escape(url, quote=True)
    return f'<iframe src="{src}" style="width:100%; height:100vh;" frameBorder="0"></iframe>'


class NavigationReport:
    """What the navigator did during a session."""

    def __init__(self):
        self.states: List[NavigationState] = [NavigationState.INIT]
        self.outcomes: List[InteractionOutcome] = []
        self.active_document: str = "page"
        self.reloads: int = 0

    def advance(self, state: NavigationState) -> None:
        self.states.append(state)
        logger.debug(f"Navigation state: {state.value}")

    @property
    def state(self) -> NavigationState:
        return self.states[-1]

    def summary(self) -> str:
        steps = " -> ".join(state.value for state in self.states)
        skipped = [o.action for o in self.outcomes if not o.succeeded]
        return f"{steps} (document={self.active_document}, reloads={self.reloads}, unfulfilled={skipped})"


class Navigator:
    """Drives one page through load, storage reset, click and wait."""

    def __init__(
        self,
        page: Page,
        config: SessionConfig,
        timeouts: Optional[TimeoutSettings] = None,
        iframe_reload_scope: str = IframeReloadScope.FRAME
    ):
        """Initialize navigator.

        Args:
            page: Top-level page for the session
            config: Session configuration
            timeouts: Element, settle and navigation bounds
            iframe_reload_scope: What to re-navigate after a storage reset in iframe mode
        """
        self.page = page
        self.config = config
        self.timeouts = timeouts or TimeoutSettings()
        self.iframe_reload_scope = iframe_reload_scope
        self.frame: Optional[Frame] = None
        self.report = NavigationReport()

    @property
    def active_document(self) -> Union[Page, Frame]:
        """The embedded frame in iframe mode, otherwise the page."""
        return self.frame if self.frame is not None else self.page

    async def run(self) -> NavigationReport:
        """Run the state machine to completion.

        Raises:
            NavigationError: If loading or re-loading the target fails
        """
        await self._load()
        self.report.advance(NavigationState.LOADED)

        if self.config.clear_local_storage:
            await self._clear_storage_and_reload()
            self.report.advance(NavigationState.STORAGE_CLEARED)

        if self.config.click_selector:
            await self._click(self.config.click_selector)
            self.report.advance(NavigationState.CLICKED)

        if self.config.wait_seconds > 0:
            logger.info(f"Waiting for {self.config.wait_seconds} seconds before returning requests...")
            await self.page.wait_for_timeout(self.config.wait_ms)
            self.report.advance(NavigationState.WAITED)

        self.report.advance(NavigationState.DONE)
        logger.info(f"Navigation finished: {self.report.summary()}")
        return self.report

    async def _load(self) -> None:
        if self.config.use_iframe_mode:
            await self._embed_target()
        else:
            await self._goto(self.page, step="load")

    async def _goto(self, document: Union[Page, Frame], step: str) -> None:
        url = self.config.target_url
        try:
            await document.goto(url, wait_until=WAIT_UNTIL, timeout=self.timeouts.navigation_timeout_ms)
            logger.info(f"Loaded {url} ({step})")
        except Exception as e:
            logger.error(f"Navigation failed for {url}: {e}")
            raise NavigationError(f"Navigation to {url} failed: {e}", url=url, step=step) from e

    async def _embed_target(self) -> None:
        """Inject the iframe wrapper and resolve the embedded document."""
        url = self.config.target_url
        try:
            await self.page.set_content(
                build_iframe_wrapper(url),
                timeout=self.timeouts.navigation_timeout_ms
            )
        except Exception as e:
            logger.error(f"Failed to inject iframe for {url}: {e}")
            raise NavigationError(f"Failed to embed {url}: {e}", url=url, step="embed") from e

        self.frame = None
        try:
            element = await self._wait_for_element(self.page, 'iframe')
            self.frame = await element.content_frame()
            if self.frame is None:
                self._record('iframe', InteractionStatus.FAILED, 'iframe', "iframe has no content frame")
            else:
                self._record('iframe', InteractionStatus.COMPLETED, 'iframe')
        except InteractionTimeout as e:
            self._record('iframe', InteractionStatus.NOT_FOUND, 'iframe', e.message)
        except Exception as e:
            self.frame = None
            self._record('iframe', InteractionStatus.FAILED, 'iframe', str(e))

        self.report.active_document = "frame" if self.frame is not None else "page"
        await self.page.wait_for_timeout(self.timeouts.settle_delay_ms)

    async def _clear_storage_and_reload(self) -> None:
        """Clear localStorage in the active document, then fetch the target again."""
        logger.info("Clearing localStorage for this site...")
        try:
            await self.active_document.evaluate(CLEAR_LOCAL_STORAGE_JS)
        except Exception as e:
            logger.error(f"Failed to clear localStorage: {e}")
            raise NavigationError(
                f"Failed to clear localStorage: {e}",
                url=self.config.target_url,
                step="clear_storage"
            ) from e

        logger.info("Reloading page after clearing localStorage...")
        if self.frame is not None:
            if self.iframe_reload_scope == IframeReloadScope.PAGE:
                await self._embed_target()
            else:
                await self._goto(self.frame, step="reload")
        elif self.config.use_iframe_mode:
            await self._goto(self.page, step="reload")
        else:
            try:
                await self.page.reload(wait_until=WAIT_UNTIL, timeout=self.timeouts.navigation_timeout_ms)
            except Exception as e:
                logger.error(f"Reload failed: {e}")
                raise NavigationError(
                    f"Reload of {self.config.target_url} failed: {e}",
                    url=self.config.target_url,
                    step="reload"
                ) from e
        self.report.reloads += 1

    async def _click(self, selector: str) -> InteractionOutcome:
        """Click the selector in the active document; never fatal."""
        try:
            element = await self._wait_for_element(self.active_document, selector)
            await element.click()
            logger.info(f"Clicked element with selector: {selector}")
            await self.page.wait_for_timeout(self.timeouts.settle_delay_ms)
            return self._record('click', InteractionStatus.COMPLETED, selector)

        except InteractionTimeout as e:
            return self._record('click', InteractionStatus.NOT_FOUND, selector, e.message)
        except Exception as e:
            return self._record('click', InteractionStatus.FAILED, selector, str(e))

    async def _wait_for_element(self, document: Union[Page, Frame], selector: str):
        """Wait for a selector within the element timeout.

        Raises:
            InteractionTimeout: If the element does not appear in time
        """
        timeout_ms = self.timeouts.element_timeout_ms
        try:
            element = await document.wait_for_selector(selector, timeout=timeout_ms)
        except PlaywrightTimeoutError as e:
            raise InteractionTimeout(selector, timeout_ms) from e
        if element is None:
            raise InteractionTimeout(selector, timeout_ms)
        return element

    def _record(
        self,
        action: str,
        status: InteractionStatus,
        selector: Optional[str] = None,
        message: Optional[str] = None
    ) -> InteractionOutcome:
        outcome = InteractionOutcome(action=action, status=status, selector=selector, message=message)
        self.report.outcomes.append(outcome)
        if not outcome.succeeded:
            logger.warning(f'Could not complete {action} for selector "{selector}": {message}')
        return outcome
