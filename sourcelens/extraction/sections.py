"""Sectioned-document parser for six-part source analyses.

Model output only usually follows the ``###LABEL:`` format it is asked for,
so each section is located with an ordered cascade of patterns, first match
wins. A section no pattern can find gets a fixed placeholder; the result
always has all six sections, in order.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass

from sourcelens.models.result import AnalysisSection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SectionSpec:
    key: str
    label: str
    title: str
    aliases: tuple[str, ...]
    placeholder: str


SECTION_SPECS: tuple[SectionSpec, ...] = (
    SectionSpec(
        "context", "CONTEXT", "Context",
        ("HISTORICAL CONTEXT", "CONTEXT"),
        "Context analysis not available.",
    ),
    SectionSpec(
        "perspective", "PERSPECTIVE", "Author Perspective",
        ("AUTHOR'S PERSPECTIVE", "AUTHOR PERSPECTIVE", "PERSPECTIVE"),
        "Author perspective analysis not available.",
    ),
    SectionSpec(
        "themes", "THEMES", "Key Themes",
        ("KEY THEMES", "THEMES"),
        "Theme analysis not available.",
    ),
    SectionSpec(
        "evidence", "EVIDENCE", "Evidence & Rhetoric",
        ("EVIDENCE AND RHETORIC", "EVIDENCE & RHETORIC", "EVIDENCE"),
        "Evidence and rhetoric analysis not available.",
    ),
    SectionSpec(
        "significance", "SIGNIFICANCE", "Significance",
        ("SIGNIFICANCE",),
        "Significance analysis not available.",
    ),
    SectionSpec(
        "references", "REFERENCES", "References",
        ("REFERENCES",),
        "References not available.",
    ),
)

SECTION_KEYS: tuple[str, ...] = tuple(s.key for s in SECTION_SPECS)


def _alternation(aliases: tuple[str, ...]) -> str:
    ordered = sorted(aliases, key=len, reverse=True)
    return "|".join(re.escape(a).replace(r"\ ", r"\s+") for a in ordered)


_ALL_ALIASES = _alternation(tuple(a for s in SECTION_SPECS for a in s.aliases))

# Exact delimiter, optionally preceded by "N. "
_ANY_DELIMITER = r"(?:\d+\.\s*)?###(?:%s):" % "|".join(s.label for s in SECTION_SPECS)

# Any recognisable section start: markdown heading or a labelled line
_ANY_HEADING = (
    rf"(?:\d+\.\s*)?\#{{1,6}}\s*(?:\d+\.\s*)?(?:{_ALL_ALIASES})\b"
    rf"|^[ \t]*(?:\d+\.\s*)?\*{{0,2}}\s*(?:{_ALL_ALIASES})\s*\*{{0,2}}\s*:"
)


@dataclass(frozen=True)
class SectionPattern:
    """One step of the cascade: a compiled pattern and how to read its match."""

    name: str
    regex: re.Pattern[str]
    handler: Callable[[re.Match[str]], str]


def _body(match: re.Match[str]) -> str:
    return match.group("body").strip()


def _bold_body(match: re.Match[str]) -> str:
    return match.group("body").strip().strip("*").strip()


def _patterns_for(spec: SectionSpec) -> tuple[SectionPattern, ...]:
    aliases = _alternation(spec.aliases)
    return (
        SectionPattern(
            "delimiter",
            re.compile(
                rf"###{spec.label}:[ \t]*(?P<body>.*?)(?={_ANY_DELIMITER}|\Z)",
                re.DOTALL,
            ),
            _body,
        ),
        SectionPattern(
            "heading",
            re.compile(
                rf"(?:\d+\.\s*)?\#{{1,6}}\s*(?:\d+\.\s*)?(?:{aliases})\b\s*:?"
                rf"(?P<body>.*?)(?={_ANY_HEADING}|\Z)",
                re.DOTALL | re.IGNORECASE | re.MULTILINE,
            ),
            _body,
        ),
        SectionPattern(
            "numbered",
            re.compile(
                rf"^[ \t]*(?:\d+\.\s*)?\*{{0,2}}\s*(?:{aliases})\s*\*{{0,2}}\s*:"
                rf"(?P<body>.*?)(?={_ANY_HEADING}|\Z)",
                re.DOTALL | re.IGNORECASE | re.MULTILINE,
            ),
            _bold_body,
        ),
    )


SECTION_PATTERNS: dict[str, tuple[SectionPattern, ...]] = {
    spec.key: _patterns_for(spec) for spec in SECTION_SPECS
}

_RESIDUAL_LABELS: dict[str, re.Pattern[str]] = {
    spec.key: re.compile(
        rf"^\**\s*(?:{_alternation(spec.aliases)})\s*\**\s*:\s*\**\s*", re.IGNORECASE
    )
    for spec in SECTION_SPECS
}


def _strip_residual_label(key: str, body: str) -> str:
    """Drop a header the model echoed at the start of its own answer."""
    pattern = _RESIDUAL_LABELS[key]
    stripped = pattern.sub("", body, count=1).strip()
    while stripped != body:
        body = stripped
        stripped = pattern.sub("", body, count=1).strip()
    return body


def extract_section(spec: SectionSpec, text: str) -> tuple[str, str | None]:
    """Return ``(body, pattern name)`` for *spec*, or ``("", None)`` if nothing matched."""
    for pattern in SECTION_PATTERNS[spec.key]:
        match = pattern.regex.search(text)
        if match is None:
            continue
        body = _strip_residual_label(spec.key, pattern.handler(match))
        if body:
            return body, pattern.name
    return "", None


def parse_sections(raw_text: str) -> list[AnalysisSection]:
    """Split a sectioned analysis into its six fixed sections.

    Never raises on malformed input: unmatched sections are filled with a
    placeholder and flagged as degraded.
    """
    text = (raw_text or "").strip()
    sections: list[AnalysisSection] = []
    for spec in SECTION_SPECS:
        body, matched_by = extract_section(spec, text)
        if matched_by is None:
            logger.warning("Section %s not found; using placeholder", spec.key)
            sections.append(AnalysisSection(spec.key, spec.title, spec.placeholder, degraded=True))
            continue
        if matched_by != "delimiter":
            logger.info("Section %s recovered by %s pattern", spec.key, matched_by)
        sections.append(AnalysisSection(spec.key, spec.title, body))
    return sections
