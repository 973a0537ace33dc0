"""FastAPI application for the netcapture REST API.

This module configures the FastAPI application with middleware, error
handling and the scrape and health endpoints.
"""

import logging
import time
from datetime import datetime
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from netcapture import __version__
from netcapture.api.schemas import HealthResponse
from netcapture.api.routes import scrape_router


# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

APP_VERSION = __version__
APP_TITLE = "netcapture API"
APP_DESCRIPTION = """
netcapture loads a web page in a controlled Chromium instance and reports the
network requests the page issued.

## Features

* **Request capture**: every request the page makes, in arrival order
* **Filtering**: static assets and trackers are blocked, results can be narrowed by substring
* **Scripted interaction**: iframe embedding, localStorage reset, element click and trailing delay
* **Stealth profile**: optional anti-fingerprinting for the browser context
"""

app_start_time = datetime.utcnow()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title=APP_TITLE,
        description=APP_DESCRIPTION,
        version=APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    @app.middleware("http")
    async def tag_and_log_request(request: Request, call_next):
        """Tag each request with an id and log the target and outcome."""
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        target = request.query_params.get("url")
        label = f" url={target}" if target else ""
        started = time.monotonic()

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        elapsed_ms = round((time.monotonic() - started) * 1000, 2)
        logger.info(
            f"[{request_id}] {request.method} {request.url.path}"
            f"{label} -> {response.status_code} in {elapsed_ms}ms"
        )
        return response

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions as plain-text 500s."""
        request_id = getattr(request.state, "request_id", None)
        logger.error(f"Unhandled exception in request {request_id}: {str(exc)}", exc_info=True)

        return PlainTextResponse(
            f"An error occurred while scraping the page: {exc}",
            status_code=500,
            headers={"Access-Control-Allow-Origin": "*"},
        )

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check():
        """Health check endpoint for monitoring."""
        uptime = (datetime.utcnow() - app_start_time).total_seconds()
        return HealthResponse(
            status="healthy",
            version=APP_VERSION,
            timestamp=datetime.utcnow(),
            uptime_seconds=uptime,
        )

    @app.get("/", include_in_schema=False)
    async def root():
        return JSONResponse(
            content={
                "message": APP_TITLE,
                "version": APP_VERSION,
                "documentation": "/docs",
                "openapi": "/openapi.json"
            }
        )

    app.include_router(scrape_router, prefix="/api")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "netcapture.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
        access_log=True,
    )
