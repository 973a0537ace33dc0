"""Network interception for scrape sessions.

This module provides the request classifier that decides, per outgoing
request, whether to abort it, record it or let it through, and the
``RequestInterceptor`` that registers the classifier as a Playwright route
handler and keeps the ordered capture list.
"""

import logging
from enum import Enum
from typing import Dict, List, Mapping, Optional
from urllib.parse import urlparse

from playwright.async_api import Page, Route

from .config import InterceptionRules
from ..models.session import CapturedRequestRecord

logger = logging.getLogger(__name__)


class Verdict(str, Enum):
    """Decision for a single intercepted request."""
    ABORT = "abort"
    RECORD = "record"
    CONTINUE = "continue"


class RequestClassifier:
    """Pure, per-request decision function."""

    def __init__(self, rules: Optional[InterceptionRules] = None, filter_substring: Optional[str] = None):
        """Initialize classifier.

        Args:
            rules: Blocking rules (defaults if None)
            filter_substring: Record only URLs containing this substring
        """
        self.rules = rules or InterceptionRules()
        self.filter_substring = filter_substring or None
        self._blocked_types = frozenset(self.rules.blocked_resource_types)
        self._blocked_extensions = tuple(self.rules.blocked_extensions)

    def is_blocked_asset(self, resource_type: str, url: str) -> bool:
        """Static assets: images, styles and fonts by type or path suffix."""
        if resource_type in self._blocked_types:
            return True
        path = urlparse(url).path.lower()
        return path.endswith(self._blocked_extensions)

    def is_tracker(self, url: str) -> bool:
        return any(marker in url for marker in self.rules.tracking_markers)

    def matches_filter(self, url: str) -> bool:
        return self.filter_substring is None or self.filter_substring in url

    def classify(
        self,
        resource_type: str,
        url: str,
        method: str = "GET",
        headers: Optional[Mapping[str, str]] = None
    ) -> Verdict:
        """Classify a request; first matching rule wins."""
        if self.is_blocked_asset(resource_type, url):
            return Verdict.ABORT
        if self.is_tracker(url):
            return Verdict.ABORT
        if self.matches_filter(url):
            return Verdict.RECORD
        return Verdict.CONTINUE


class RequestInterceptor:
    """Routes every page request through the classifier and records matches."""

    def __init__(self, classifier: RequestClassifier):
        self.classifier = classifier
        self.records: List[CapturedRequestRecord] = []
        self.counts: Dict[str, int] = {verdict.value: 0 for verdict in Verdict}

    async def attach(self, page: Page) -> None:
        """Register the route handler for all URLs on the page."""
        await page.route("**/*", self.handle_route)
        logger.debug("Request interceptor attached")

    def evaluate(self, resource_type: str, url: str, method: str, headers: Mapping[str, str]) -> Verdict:
        """Classify a request and record it when it matches.

        Recording happens before any await so the capture list keeps the
        order in which requests arrived.
        """
        verdict = self.classifier.classify(resource_type, url, method, headers)
        self.counts[verdict.value] += 1

        if verdict == Verdict.RECORD:
            self.records.append(CapturedRequestRecord(
                url=url,
                method=method,
                headers=dict(headers),
            ))

        logger.debug(f"{verdict.value}: {method} {url} ({resource_type})")
        return verdict

    async def handle_route(self, route: Route) -> None:
        """Playwright route handler."""
        request = route.request
        verdict = self.evaluate(request.resource_type, request.url, request.method, request.headers)

        if verdict == Verdict.ABORT:
            await route.abort()
        else:
            await route.continue_()

    def get_records(self) -> List[CapturedRequestRecord]:
        """Snapshot of the captured requests in arrival order."""
        return list(self.records)

    def get_stats(self) -> Dict[str, int]:
        stats = dict(self.counts)
        stats['total'] = sum(self.counts.values())
        return stats
