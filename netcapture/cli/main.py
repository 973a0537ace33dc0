#!/usr/bin/env python3
"""Command-line interface for netcapture using Typer.

Runs a single scrape session from the terminal and prints the JSON payload,
or serves the REST API with uvicorn.
"""

import asyncio
import json
import logging
from enum import Enum
from typing import Annotated, Optional

import typer

from netcapture import __version__
from netcapture.capture.engine import ScrapeEngine
from netcapture.exceptions import MissingTargetError

logger = logging.getLogger(__name__)


class ExitCode(Enum):
    """CLI exit codes."""
    SUCCESS = 0
    SCRAPE_FAILED = 1
    MISSING_TARGET = 2


app = typer.Typer(
    name="netcapture",
    help="netcapture - capture the network requests a web page makes",
    add_completion=False,
)


@app.callback()
def main():
    """
    netcapture - capture the network requests a web page makes.
    """
    pass


@app.command(name="version")
def show_version():
    """Show version information."""
    typer.echo(f"netcapture v{__version__}")


@app.command()
def scrape(
    url: Annotated[
        Optional[str],
        typer.Argument(help="Page to load")
    ] = None,

    filter_substring: Annotated[
        Optional[str],
        typer.Option("--filter", "-f", help="Record only request URLs containing this substring")
    ] = None,

    click_selector: Annotated[
        Optional[str],
        typer.Option("--click-selector", "-c", help="CSS selector to click after load")
    ] = None,

    origin: Annotated[
        Optional[str],
        typer.Option("--origin", help="Origin header to send")
    ] = None,

    referer: Annotated[
        Optional[str],
        typer.Option("--referer", help="Referer header to send")
    ] = None,

    iframe: Annotated[
        bool,
        typer.Option("--iframe", help="Load the page inside a wrapping iframe")
    ] = False,

    wait: Annotated[
        Optional[float],
        typer.Option("--wait", "-w", help="Seconds to wait before collecting results")
    ] = None,

    clear_local_storage: Annotated[
        bool,
        typer.Option("--clear-local-storage", help="Clear localStorage and reload once")
    ] = False,

    stealth: Annotated[
        bool,
        typer.Option("--stealth", help="Apply anti-fingerprinting patches")
    ] = False,

    headful: Annotated[
        bool,
        typer.Option("--headful", help="Run browser with GUI (for debugging)")
    ] = False,

    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Verbose logging")
    ] = False,
):
    """
    Load URL and print the requests it issued as JSON.

    Examples:

        netcapture scrape https://example.com --filter api

        netcapture scrape https://example.com --click-selector "#play" --wait 2.5 --stealth
    """
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)

    params = {
        "url": url,
        "filter": filter_substring,
        "clickSelector": click_selector,
        "origin": origin,
        "referer": referer,
        "iframe": "true" if iframe else None,
        "wait": str(wait) if wait is not None else None,
        "clearlocalstorage": "true" if clear_local_storage else None,
        "stealth": "true" if stealth else None,
        "headful": "true" if headful else None,
    }

    try:
        result = asyncio.run(ScrapeEngine().scrape_params(params))
    except MissingTargetError as e:
        typer.echo(f"❌ {e.message}", err=True)
        raise typer.Exit(code=ExitCode.MISSING_TARGET.value)
    except Exception as e:
        logger.debug("Scrape failed", exc_info=True)
        typer.echo(f"❌ An error occurred while scraping the page: {e}", err=True)
        raise typer.Exit(code=ExitCode.SCRAPE_FAILED.value)

    typer.echo(json.dumps(result.to_payload(), indent=2))


@app.command()
def serve(
    host: Annotated[str, typer.Option("--host", help="Bind address")] = "0.0.0.0",
    port: Annotated[int, typer.Option("--port", "-p", help="Bind port")] = 8000,
    reload: Annotated[bool, typer.Option("--reload", help="Reload on code changes")] = False,
):
    """Serve the REST API."""
    import uvicorn

    uvicorn.run(
        "netcapture.api.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info",
        access_log=True,
    )


if __name__ == "__main__":
    app()
