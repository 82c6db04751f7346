"""Reference parsing and inline citation linking."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from sourcelens.models.result import Reference

logger = logging.getLogger(__name__)

_LIST_MARKER = re.compile(r"^\s*(?:[-*•]|\d+[.)]|\[\d+\])\s*")
_HAS_LETTER = re.compile(r"[A-Za-z]")
_YEAR = re.compile(r"\b(?:19|20)\d{2}\b")

# Surname patterns, most specific bibliography style first
_CHICAGO = re.compile(r"^([^,.]+),")
_ABBREVIATED = re.compile(r"^((?:[A-Z][a-z]{0,2}\.\s*)?[^,.]+),\s*[^.]+\.")
_FIRST_LAST = re.compile(r"^([A-Z][a-z]+\s+[A-Z][a-z]+)\.")
_BEFORE_PERIOD = re.compile(r"^([^,.]+)\.")

_MARKER = re.compile(r"\U0001F4DA\s*\(([^)]+)\)")


@dataclass
class CitationIndex:
    references: list[Reference] = field(default_factory=list)
    keys: dict[str, int] = field(default_factory=dict)

    def lookup(self, key: str) -> int | None:
        """Reference id for a citation key such as ``"Smith, 1999"``, if known."""
        normalized = re.sub(r"\s+", " ", key.strip().lower())
        return self.keys.get(normalized)


def split_references(references_body: str) -> list[str]:
    entries = []
    for line in references_body.splitlines():
        entry = _LIST_MARKER.sub("", line, count=1).strip()
        if entry and _HAS_LETTER.search(entry):
            entries.append(entry)
    return entries


def extract_surname(entry: str) -> str | None:
    """Author surname of a reference entry, or None.

    A comma always ends the surname. A period ends it only when neither the
    abbreviated form (``St. John, Mary.``) nor ``First Last.`` applies.
    """
    match = _CHICAGO.match(entry)
    if match:
        return match.group(1).strip()
    match = _ABBREVIATED.match(entry)
    if match:
        return match.group(1).strip()
    match = _FIRST_LAST.match(entry)
    if match:
        return match.group(1).split()[-1]
    match = _BEFORE_PERIOD.match(entry)
    if match:
        return match.group(1).strip()
    return None


def build_citation_index(references_body: str) -> CitationIndex:
    """Parse a references section into entries and a citation-key index.

    Each entry is keyed by its lowercased author surname and, when it mentions
    a year, by ``"surname, year"`` and ``"surname,year"``. Entries sharing a
    key resolve to the last one.
    """
    index = CitationIndex()
    for ref_id, text in enumerate(split_references(references_body)):
        surname = extract_surname(text)
        key = surname.lower() if surname else None
        index.references.append(Reference(id=ref_id, text=text, citation_key=key))
        if key is None:
            continue
        index.keys[key] = ref_id
        year = _YEAR.search(text)
        if year:
            index.keys[f"{key}, {year.group(0)}"] = ref_id
            index.keys[f"{key},{year.group(0)}"] = ref_id

    logger.debug(
        "Indexed %d references under %d citation keys", len(index.references), len(index.keys)
    )
    return index


def link_citations(text: str, index: CitationIndex) -> str:
    """Turn resolvable ``📚(Key)`` markers into ``#reference-N`` links."""
    if not index.keys:
        return text

    def _link(match: re.Match[str]) -> str:
        key = match.group(1)
        ref_id = index.lookup(key)
        if ref_id is None:
            # "Smith, p. 12" still resolves to Smith
            ref_id = index.lookup(key.split(",", 1)[0])
        if ref_id is None:
            return match.group(0)
        return f"[\U0001F4DA({key})](#reference-{ref_id})"

    return _MARKER.sub(_link, text)
