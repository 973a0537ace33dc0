"""API response schemas for the netcapture REST API."""

from datetime import datetime
from typing import Dict, List

from pydantic import BaseModel, Field


class CapturedRequest(BaseModel):
    """A recorded network request."""

    url: str = Field(description="Request URL", examples=["https://api.example.com/v1/config"])
    method: str = Field(description="HTTP method", examples=["GET"])
    headers: Dict[str, str] = Field(default_factory=dict, description="Request headers")


class ScrapeMetaResponse(BaseModel):
    stealthEnabled: bool = Field(description="Whether anti-fingerprinting was applied")
    headful: bool = Field(description="Whether the browser ran with a visible window")


class ScrapeResponse(BaseModel):
    """Successful scrape payload."""

    message: str = Field(examples=["Successfully scraped https://example.com"])
    requests: List[CapturedRequest] = Field(default_factory=list)
    meta: ScrapeMetaResponse


class HealthResponse(BaseModel):
    """Health check payload."""

    status: str = Field(description="Overall service status", examples=["healthy"])
    version: str = Field(description="API version")
    timestamp: datetime = Field(description="Time of the check")
    uptime_seconds: float = Field(ge=0, description="Seconds since the app started")
