"""Span extraction and validation for relevance highlighting."""

from __future__ import annotations

import logging
import math

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from sourcelens.errors import MalformedStructuredResponse
from sourcelens.extraction.json_payload import parse_json_object
from sourcelens.models.result import HighlightSegment, SegmentExtraction

logger = logging.getLogger(__name__)


class RawSegment(BaseModel):
    """One segment as the model reported it, before validation."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    text: str
    start_index: float | None = Field(default=None, alias="startIndex")
    end_index: float | None = Field(default=None, alias="endIndex")
    score: float | None = 0.0
    explanation: str | None = ""


class RawSegmentPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    segments: list[RawSegment]


def clamp_score(score: float | None) -> float:
    if score is None or math.isnan(score):
        return 0.0
    return max(0.0, min(1.0, float(score)))


def position_hint(start_index: float | None) -> int:
    """Reported start offset as an int; unusable values give 0."""
    if start_index is None or not math.isfinite(start_index):
        return 0
    return max(int(start_index), 0)


def anchor(source_text: str, text: str, hint: int) -> int:
    """Return the occurrence of *text* in *source_text* closest to *hint*.

    Reported offsets are approximate, so the literal match nearest to them is
    taken as the segment's real position. Returns -1 if *text* never occurs.
    """
    best = -1
    pos = source_text.find(text)
    while pos != -1:
        if best == -1 or abs(pos - hint) < abs(best - hint):
            best = pos
        if pos > hint:
            break
        pos = source_text.find(text, pos + 1)
    return best


def _overlaps(start: int, end: int, taken: list[tuple[int, int]]) -> bool:
    return any(start < t_end and t_start < end for t_start, t_end in taken)


def extract_segments(
    raw_json_text: str, source_text: str, requested_count: int
) -> SegmentExtraction:
    """Turn a span-highlight response into validated, anchored segments.

    Scores are clamped into [0, 1], segments are ordered by score (stable)
    and cut to *requested_count*. Segments whose text is not found in
    *source_text*, or whose range overlaps a better-scored segment, are
    dropped and counted. Ids are assigned last, densely from 0.

    Raises:
        MalformedStructuredResponse: If the response is not a JSON object
            with a well-formed ``segments`` array.
    """
    payload = parse_json_object(raw_json_text)
    try:
        parsed = RawSegmentPayload.model_validate(payload)
    except ValidationError as exc:
        raise MalformedStructuredResponse(
            f"Segment payload does not match schema: {exc.error_count()} error(s)",
            raw_json_text,
        ) from exc

    ranked = sorted(parsed.segments, key=lambda s: clamp_score(s.score), reverse=True)
    ranked = ranked[: max(requested_count, 0)]

    kept: list[tuple[RawSegment, int]] = []
    taken: list[tuple[int, int]] = []
    dropped = 0
    dropped_overlapping = 0
    for raw in ranked:
        if not raw.text.strip():
            dropped += 1
            continue
        start = anchor(source_text, raw.text, position_hint(raw.start_index))
        if start == -1:
            dropped += 1
            continue
        end = start + len(raw.text)
        if _overlaps(start, end, taken):
            dropped_overlapping += 1
            continue
        taken.append((start, end))
        kept.append((raw, start))

    segments = [
        HighlightSegment(
            id=i,
            text=raw.text,
            start_index=start,
            end_index=start + len(raw.text),
            score=clamp_score(raw.score),
            explanation=raw.explanation or "",
        )
        for i, (raw, start) in enumerate(kept)
    ]

    if dropped or dropped_overlapping:
        logger.warning(
            "Dropped %d segment(s) not found in source and %d overlapping segment(s)",
            dropped, dropped_overlapping,
        )
    logger.info("Extracted %d of %d requested segments", len(segments), requested_count)
    return SegmentExtraction(
        segments=segments, dropped=dropped, dropped_overlapping=dropped_overlapping
    )
