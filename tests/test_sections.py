"""Tests for the sectioned-document parser."""

from __future__ import annotations

import pytest

from sourcelens.extraction.sections import SECTION_KEYS, SECTION_SPECS, parse_sections

WELL_FORMED = (
    "###CONTEXT: A\n###PERSPECTIVE: B\n###THEMES: C\n"
    "###EVIDENCE: D\n###SIGNIFICANCE: E\n###REFERENCES: F"
)


def _bodies(raw: str) -> dict[str, str]:
    return {s.key: s.body_text for s in parse_sections(raw)}


class TestDelimiters:
    def test_well_formed_response(self):
        sections = parse_sections(WELL_FORMED)
        assert [s.key for s in sections] == list(SECTION_KEYS)
        assert [s.body_text for s in sections] == ["A", "B", "C", "D", "E", "F"]
        assert not any(s.degraded for s in sections)

    def test_missing_section_gets_placeholder(self):
        raw = WELL_FORMED.replace("###THEMES: C\n", "")
        sections = {s.key: s for s in parse_sections(raw)}
        assert sections["themes"].body_text == "Theme analysis not available."
        assert sections["themes"].degraded
        assert [sections[k].body_text for k in ("context", "perspective", "evidence")] == ["A", "B", "D"]
        assert sections["significance"].body_text == "E"
        assert sections["references"].body_text == "F"

    def test_multiline_bodies(self):
        raw = "###CONTEXT:\nLine one.\n\nLine two.\n###PERSPECTIVE: B"
        assert _bodies(raw)["context"] == "Line one.\n\nLine two."

    def test_numbered_delimiters(self):
        raw = "1. ###CONTEXT: A\n2. ###PERSPECTIVE: B"
        bodies = _bodies(raw)
        assert bodies["context"] == "A"
        assert bodies["perspective"] == "B"

    def test_empty_delimiter_body_is_degraded(self):
        sections = {s.key: s for s in parse_sections("###THEMES:\n###EVIDENCE: D")}
        assert sections["themes"].degraded
        assert sections["evidence"].body_text == "D"


class TestFallbackPatterns:
    def test_markdown_headings(self):
        raw = (
            "## 1. Historical Context\nThe war.\n"
            "### 3. KEY THEMES\nLiberty.\n"
            "#### Evidence & Rhetoric\nAnecdotes."
        )
        bodies = _bodies(raw)
        assert bodies["context"] == "The war."
        assert bodies["themes"] == "Liberty."
        assert bodies["evidence"] == "Anecdotes."

    def test_lowercase_delimiter(self):
        assert _bodies("###Context: A\n###Themes: C")["context"] == "A"

    def test_numbered_bold_labels(self):
        raw = "1. **Context**: Early days.\n2. **Author Perspective:** A planter.\n"
        bodies = _bodies(raw)
        assert bodies["context"] == "Early days."
        assert bodies["perspective"] == "A planter."

    def test_repeated_label_stripped(self):
        assert _bodies("###CONTEXT: CONTEXT: A\n###PERSPECTIVE: B")["context"] == "A"


class TestTotality:
    @pytest.mark.parametrize(
        "raw",
        ["", "no structure at all", "###", "###UNKNOWN: x", "{\"json\": true}", "\n\n\n"],
    )
    def test_always_six_sections(self, raw):
        sections = parse_sections(raw)
        assert [s.key for s in sections] == list(SECTION_KEYS)
        assert all(s.degraded for s in sections)
        assert [s.body_text for s in sections] == [spec.placeholder for spec in SECTION_SPECS]

    def test_idempotent(self):
        raw = WELL_FORMED.replace("###EVIDENCE: D\n", "## Evidence\nD2\n")
        assert parse_sections(raw) == parse_sections(raw)

    def test_titles(self):
        titles = [s.title for s in parse_sections(WELL_FORMED)]
        assert titles == [
            "Context", "Author Perspective", "Key Themes",
            "Evidence & Rhetoric", "Significance", "References",
        ]
