"""Scrape API route for netcapture.

``GET /api/scrape`` runs one browser session and returns the requests the
target page issued. Errors are returned as plain text: 400 when no URL is
given, 500 for anything that aborts the session.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, PlainTextResponse

from netcapture.api.schemas import ScrapeResponse
from netcapture.capture.engine import ScrapeEngine
from netcapture.capture.resolver import resolve_session_config
from netcapture.exceptions import MissingTargetError

logger = logging.getLogger(__name__)

CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}

router = APIRouter(tags=["Scrape"])

_engine_instance: Optional[ScrapeEngine] = None


def get_scrape_engine() -> ScrapeEngine:
    """Dependency to provide the scrape engine.

    Settings are loaded once; each call to ``scrape`` still gets its own
    browser.
    """
    global _engine_instance
    if _engine_instance is None:
        _engine_instance = ScrapeEngine()
    return _engine_instance


@router.get(
    "/scrape",
    response_model=ScrapeResponse,
    summary="Capture the network requests of a page",
    responses={
        400: {"description": "Missing url parameter", "content": {"text/plain": {}}},
        500: {"description": "Scrape failed", "content": {"text/plain": {}}},
    },
)
async def scrape(
    url: Optional[str] = Query(default=None, description="Page to load"),
    filter_substring: Optional[str] = Query(default=None, alias="filter", description="Record only URLs containing this"),
    click_selector: Optional[str] = Query(default=None, alias="clickSelector", description="Element to click"),
    origin: Optional[str] = Query(default=None, description="Origin header override"),
    referer: Optional[str] = Query(default=None, description="Referer header override"),
    iframe: Optional[str] = Query(default=None, description="Load the page inside an iframe"),
    wait: Optional[str] = Query(default=None, description="Extra seconds to wait before returning"),
    clearlocalstorage: Optional[str] = Query(default=None, description='"true" to clear localStorage and reload'),
    stealth: Optional[str] = Query(default=None, description='"true" to enable anti-fingerprinting'),
    headful: Optional[str] = Query(default=None, description='"true" to run with a visible window'),
    engine: ScrapeEngine = Depends(get_scrape_engine),
):
    params = {
        "url": url,
        "filter": filter_substring,
        "clickSelector": click_selector,
        "origin": origin,
        "referer": referer,
        "iframe": iframe,
        "wait": wait,
        "clearlocalstorage": clearlocalstorage,
        "stealth": stealth,
        "headful": headful,
    }

    try:
        config = resolve_session_config(params)
    except MissingTargetError as e:
        return PlainTextResponse(e.message, status_code=400, headers=CORS_HEADERS)

    try:
        result = await engine.scrape(config)
    except Exception as e:
        logger.error(f"Scrape of {config.target_url} failed: {e}", exc_info=True)
        return PlainTextResponse(
            f"An error occurred while scraping the page: {e}",
            status_code=500,
            headers=CORS_HEADERS,
        )

    return JSONResponse(
        content=result.to_payload(),
        headers={**CORS_HEADERS, "Cache-Control": engine.settings.cache_control},
    )
