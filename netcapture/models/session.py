"""Pydantic models for scrape session configuration and results.

This module defines the data models shared by the capture pipeline:
the resolved session configuration, captured request records, the final
scrape result and the non-fatal interaction outcomes reported by the
navigation orchestrator.
"""

import math
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class SessionConfig(BaseModel):
    """Typed configuration for a single scrape session."""

    model_config = {"frozen": True}

    target_url: str = Field(description="Page to load")
    filter_substring: Optional[str] = Field(
        default=None,
        description="Only record requests whose URL contains this substring"
    )
    click_selector: Optional[str] = Field(
        default=None,
        description="CSS selector to click after the page loads"
    )
    custom_origin: Optional[str] = Field(default=None, description="Origin header override")
    custom_referer: Optional[str] = Field(default=None, description="Referer header override")
    use_iframe_mode: bool = Field(default=False, description="Load the target inside a wrapping iframe")
    wait_seconds: float = Field(default=0.0, ge=0, description="Trailing delay before finishing")
    clear_local_storage: bool = Field(default=False, description="Clear localStorage and reload once")
    stealth_enabled: bool = Field(default=False, description="Apply anti-fingerprinting patches")
    headful: bool = Field(default=False, description="Run the browser with a visible window")

    @field_validator('target_url')
    @classmethod
    def validate_target_url(cls, v):
        """Require a non-empty target; URL syntax is left to navigation."""
        if not v or not v.strip():
            raise ValueError("target_url must not be empty")
        return v

    @field_validator('wait_seconds')
    @classmethod
    def validate_wait_seconds(cls, v):
        """Delay must stay finite once converted to milliseconds."""
        if not math.isfinite(v * 1000):
            raise ValueError("wait_seconds must be finite in milliseconds")
        return v

    @property
    def wait_ms(self) -> float:
        """Trailing delay in milliseconds."""
        return self.wait_seconds * 1000


class CapturedRequestRecord(BaseModel):
    """A network request the page issued, as seen by the interceptor."""

    model_config = {"frozen": True}

    url: str = Field(description="Request URL")
    method: str = Field(description="HTTP method")
    headers: Dict[str, str] = Field(default_factory=dict, description="Request headers")


class ScrapeMeta(BaseModel):
    """Flags actually used for the session."""

    model_config = {"frozen": True, "populate_by_name": True}

    stealth_enabled: bool = Field(alias="stealthEnabled")
    headful: bool


class ScrapeResult(BaseModel):
    """Outcome of a successful scrape session."""

    model_config = {"frozen": True}

    message: str
    requests: List[CapturedRequestRecord] = Field(default_factory=list)
    meta: ScrapeMeta

    def to_payload(self) -> dict:
        """Serialize to the JSON shape returned to callers."""
        return self.model_dump(mode='json', by_alias=True)


class InteractionStatus(str, Enum):
    """Result of an optional, non-fatal interaction."""
    COMPLETED = "completed"
    NOT_FOUND = "not_found"
    FAILED = "failed"
    SKIPPED = "skipped"


class InteractionOutcome(BaseModel):
    """Non-fatal outcome of an interaction step (iframe discovery, click)."""

    model_config = {"frozen": True}

    action: str = Field(description="Interaction name, e.g. 'click' or 'iframe'")
    status: InteractionStatus
    selector: Optional[str] = None
    message: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == InteractionStatus.COMPLETED
