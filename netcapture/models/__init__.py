"""Data models for netcapture scrape sessions."""

from .session import (
    SessionConfig,
    CapturedRequestRecord,
    ScrapeMeta,
    ScrapeResult,
    InteractionStatus,
    InteractionOutcome,
)

__all__ = [
    'SessionConfig',
    'CapturedRequestRecord',
    'ScrapeMeta',
    'ScrapeResult',
    'InteractionStatus',
    'InteractionOutcome',
]
