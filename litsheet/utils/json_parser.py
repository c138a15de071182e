"""Lenient JSON parsing for LLM responses."""

import json
import re
from typing import Any, Optional

from litsheet.utils.logging import get_logger

LOGGER = get_logger(__name__)

_FENCE_PATTERN = re.compile(r"```(?:json)?\s*|\s*```", re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences that models like to wrap JSON in."""
    return _FENCE_PATTERN.sub("", text).strip()


def parse_json_safely(text: Optional[str]) -> Optional[Any]:
    """Parse a JSON payload out of raw model output.

    Tries the whole (fence-stripped) text first, then the first
    object or array found inside it.

    Args:
        text: Raw model output

    Returns:
        Parsed JSON value, or None when nothing parseable is present
    """
    if not text or not isinstance(text, str):
        return None

    cleaned = strip_code_fences(text)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        pass

    for opener, closer in (("{", "}"), ("[", "]")):
        start = cleaned.find(opener)
        end = cleaned.rfind(closer)
        if start != -1 and end > start:
            try:
                return json.loads(cleaned[start:end + 1])
            except json.JSONDecodeError:
                continue

    LOGGER.debug("Could not parse JSON from model output", extra={"preview": cleaned[:120]})
    return None
