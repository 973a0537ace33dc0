"""Scrape session exceptions for netcapture.

Fatal errors abort the session and surface to the caller as non-2xx
responses. ``InteractionTimeout`` is the one recoverable error: the
navigation orchestrator catches it locally and records an
``InteractionOutcome`` instead of failing the session.
"""

from typing import Optional


class ScrapeError(Exception):
    """Base error for scrape sessions."""

    def __init__(
        self,
        message: str = "Scrape session failed",
        error_code: str = "scrape_failed",
        details: Optional[dict] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class MissingTargetError(ScrapeError):
    """Raised when no target URL was supplied."""

    def __init__(self, message: str = "Please provide a URL parameter."):
        super().__init__(message=message, error_code="missing_target")


class LaunchError(ScrapeError):
    """Raised when the browser or its context cannot be started."""

    def __init__(self, message: str = "Failed to launch browser", executable_path: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="launch_failed",
            details={"executable_path": executable_path} if executable_path else {}
        )


class NavigationError(ScrapeError):
    """Raised when loading or re-loading the target fails."""

    def __init__(self, message: str = "Navigation failed", url: Optional[str] = None, step: Optional[str] = None):
        details = {}
        if url:
            details["url"] = url
        if step:
            details["step"] = step
        super().__init__(message=message, error_code="navigation_failed", details=details)


class InteractionTimeout(ScrapeError):
    """Raised when an element needed for an optional interaction never appears."""

    def __init__(self, selector: str, timeout_ms: int):
        super().__init__(
            message=f'Element "{selector}" not found within {timeout_ms}ms',
            error_code="interaction_timeout",
            details={"selector": selector, "timeout_ms": timeout_ms}
        )
        self.selector = selector
        self.timeout_ms = timeout_ms
