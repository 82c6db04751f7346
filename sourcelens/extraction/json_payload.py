"""JSON payload cleanup for JSON-mode task responses."""

from __future__ import annotations

import json
import logging
import re

from sourcelens.errors import MalformedStructuredResponse

logger = logging.getLogger(__name__)

_OUTER_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def strip_fences(raw_text: str) -> str:
    """Remove a surrounding markdown code fence (```json ... ```), if any."""
    text = raw_text.strip()
    if text.startswith("```"):
        parts = text.split("\n", 1)
        text = parts[1] if len(parts) > 1 else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


def parse_json_object(raw_text: str, *, allow_embedded: bool = False) -> dict:
    """Parse a provider response as a single JSON object.

    With *allow_embedded*, a response that is not valid JSON on its own is
    searched for its outermost ``{...}`` block.

    Raises:
        MalformedStructuredResponse: If no JSON object can be recovered.
    """
    text = strip_fences(raw_text)
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        if not allow_embedded:
            raise MalformedStructuredResponse(f"Response is not valid JSON: {exc}", raw_text) from exc
        match = _OUTER_OBJECT.search(text)
        if match is None:
            raise MalformedStructuredResponse("No JSON object found in response", raw_text) from exc
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError as inner:
            raise MalformedStructuredResponse(
                f"Embedded JSON object is not valid: {inner}", raw_text
            ) from inner
        logger.debug("Recovered JSON object embedded in surrounding text")

    if not isinstance(parsed, dict):
        raise MalformedStructuredResponse(
            f"Expected a JSON object, got {type(parsed).__name__}", raw_text
        )
    return parsed
