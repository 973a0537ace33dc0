"""API schemas for the netcapture REST API."""

from .responses import (
    CapturedRequest,
    ScrapeMetaResponse,
    ScrapeResponse,
    HealthResponse,
)

__all__ = [
    "CapturedRequest",
    "ScrapeMetaResponse",
    "ScrapeResponse",
    "HealthResponse",
]
