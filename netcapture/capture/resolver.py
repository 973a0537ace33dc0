"""Resolve raw request parameters into a typed SessionConfig.

Callers hand over whatever they received (query string, CLI options) as a
mapping of optional strings. Absent or malformed optional values resolve to
documented defaults; only a missing target URL is an error.
"""

import logging
import math
from typing import Mapping, Optional

from ..exceptions import MissingTargetError
from ..models.session import SessionConfig

logger = logging.getLogger(__name__)


class SessionParam:
    """Names of the inbound parameters."""
    URL = "url"
    FILTER = "filter"
    CLICK_SELECTOR = "clickSelector"
    ORIGIN = "origin"
    REFERER = "referer"
    IFRAME = "iframe"
    WAIT = "wait"
    CLEAR_LOCAL_STORAGE = "clearlocalstorage"
    STEALTH = "stealth"
    HEADFUL = "headful"


def parse_flag(value: Optional[str]) -> bool:
    """Only the literal string "true" enables a flag."""
    return value == "true"


def parse_presence_flag(value: Optional[str]) -> bool:
    """Enabled by any non-empty value except the literal "false"."""
    return bool(value) and value != "false"


def parse_wait_seconds(value: Optional[str]) -> float:
    """Parse a decimal delay in seconds, never negative.

    Unparsable, non-finite or negative values resolve to 0.
    """
    if value is None or not value.strip():
        return 0.0
    try:
        seconds = float(value)
    except ValueError:
        logger.warning(f"Ignoring unparsable wait value: {value!r}")
        return 0.0
    if not math.isfinite(seconds) or seconds < 0 or not math.isfinite(seconds * 1000):
        logger.warning(f"Ignoring out of range wait value: {value!r}")
        return 0.0
    return seconds


def _optional(value: Optional[str]) -> Optional[str]:
    return value if value else None


def resolve_session_config(params: Mapping[str, Optional[str]]) -> SessionConfig:
    """Build a SessionConfig from raw parameters.

    Args:
        params: Mapping of parameter name to raw string value (or None)

    Returns:
        Validated session configuration

    Raises:
        MissingTargetError: If no target URL was supplied
    """
    url = params.get(SessionParam.URL)
    if not url or not url.strip():
        raise MissingTargetError()

    return SessionConfig(
        target_url=url,
        filter_substring=_optional(params.get(SessionParam.FILTER)),
        click_selector=_optional(params.get(SessionParam.CLICK_SELECTOR)),
        custom_origin=_optional(params.get(SessionParam.ORIGIN)),
        custom_referer=_optional(params.get(SessionParam.REFERER)),
        use_iframe_mode=parse_presence_flag(params.get(SessionParam.IFRAME)),
        wait_seconds=parse_wait_seconds(params.get(SessionParam.WAIT)),
        clear_local_storage=parse_flag(params.get(SessionParam.CLEAR_LOCAL_STORAGE)),
        stealth_enabled=parse_flag(params.get(SessionParam.STEALTH)),
        headful=parse_flag(params.get(SessionParam.HEADFUL)),
    )
