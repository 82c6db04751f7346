"""Topic distribution extraction, reconciled against the requested topics."""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Sequence

from sourcelens.errors import MalformedStructuredResponse
from sourcelens.extraction.json_payload import parse_json_object
from sourcelens.models.result import TopicDistribution, TopicSeries

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def coerce_position(value: object) -> int | None:
    """Read a position the way a lenient integer parser would.

    Ints pass through, finite floats are truncated, and strings contribute
    their leading integer (``"42px"`` -> 42). Anything else yields ``None``.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        return int(match.group(1)) if match else None
    return None


def _series(entry: dict) -> TopicSeries:
    raw_positions = entry.get("positions") or []
    if not isinstance(raw_positions, list):
        raw_positions = []
    positions = sorted(p for p in map(coerce_position, raw_positions) if p is not None)

    examples: dict[int, str] = {}
    raw_examples = entry.get("examples") or {}
    if isinstance(raw_examples, dict):
        for key, quote in raw_examples.items():
            offset = coerce_position(key)
            if offset is not None and quote is not None:
                examples[offset] = str(quote)
    return TopicSeries(positions=positions, examples=examples)


def extract_distribution(
    raw_json_text: str, requested_topics: Sequence[str], document_length: int
) -> TopicDistribution:
    """Build a distribution whose topics are exactly *requested_topics*.

    The model's own topic list is not trusted: each requested topic takes the
    first case-insensitive match from ``distributions``, and topics the model
    left out get an empty series.

    Raises:
        MalformedStructuredResponse: If no JSON object can be recovered or it
            lacks the ``topics``/``distributions`` arrays.
    """
    data = parse_json_object(raw_json_text, allow_embedded=True)
    if not isinstance(data.get("topics"), list) or not isinstance(
        data.get("distributions"), list
    ):
        raise MalformedStructuredResponse(
            "Topic response is missing 'topics' or 'distributions'", raw_json_text
        )

    by_topic: dict[str, dict] = {}
    for entry in data["distributions"]:
        if not isinstance(entry, dict) or not isinstance(entry.get("topic"), str):
            logger.debug("Skipping distribution entry without a topic: %r", entry)
            continue
        by_topic.setdefault(entry["topic"].strip().lower(), entry)

    topics = list(requested_topics)
    per_topic: dict[str, TopicSeries] = {}
    missing = []
    for topic in topics:
        entry = by_topic.get(topic.strip().lower())
        if entry is None:
            missing.append(topic)
            per_topic[topic] = TopicSeries()
        else:
            per_topic[topic] = _series(entry)

    if missing:
        logger.info("No occurrences returned for topics: %s", ", ".join(missing))
    return TopicDistribution(topics=topics, per_topic=per_topic, document_length=document_length)
