"""API routes for the netcapture REST API."""

from .scrape import router as scrape_router

__all__ = [
    "scrape_router",
]
