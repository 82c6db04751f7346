"""Tests for topic distribution extraction."""

from __future__ import annotations

import json

import pytest

from sourcelens.errors import MalformedStructuredResponse
from sourcelens.extraction.distribution import coerce_position, extract_distribution


def _response(*distributions, topics=None) -> str:
    return json.dumps(
        {
            "topics": topics if topics is not None else [d["topic"] for d in distributions],
            "distributions": list(distributions),
        }
    )


class TestReconciliation:
    def test_missing_topic_synthesised_empty(self):
        raw = _response({"topic": "Economy", "positions": [10, 5], "examples": {"5": "trade"}})
        result = extract_distribution(raw, ["Economy", "War"], 100)

        assert result.topics == ["Economy", "War"]
        assert result.per_topic["War"].positions == []
        assert result.per_topic["War"].count == 0
        assert result.per_topic["Economy"].positions == [5, 10]
        assert result.total_counts == {"Economy": 2, "War": 0}

    def test_extra_topics_ignored(self):
        raw = _response(
            {"topic": "War", "positions": [1]},
            {"topic": "Religion", "positions": [2]},
        )
        result = extract_distribution(raw, ["War"], 10)
        assert list(result.per_topic) == ["War"]

    def test_case_insensitive_and_requested_label_kept(self):
        raw = _response({"topic": "ECONOMY", "positions": [3]})
        result = extract_distribution(raw, ["economy"], 10)
        assert list(result.per_topic) == ["economy"]
        assert result.per_topic["economy"].positions == [3]

    def test_first_match_wins(self):
        raw = _response({"topic": "War", "positions": [1]}, {"topic": "war", "positions": [9]})
        assert extract_distribution(raw, ["War"], 10).per_topic["War"].positions == [1]

    def test_requested_order_preserved(self):
        raw = _response({"topic": "B", "positions": []}, {"topic": "A", "positions": []})
        result = extract_distribution(raw, ["A", "B"], 10)
        assert result.topics == ["A", "B"]
        assert list(result.per_topic) == ["A", "B"]

    def test_document_length_passed_through(self):
        raw = _response()
        assert extract_distribution(raw, ["A"], 1234).document_length == 1234


class TestCoercion:
    def test_positions_coerced_and_sorted(self):
        raw = _response({"topic": "War", "positions": ["40", 12.9, "7px", "n/a", None, 41]})
        series = extract_distribution(raw, ["War"], 100).per_topic["War"]
        assert series.positions == [7, 12, 40, 41]
        assert series.count == len(series.positions)

    def test_repeated_positions_all_counted(self):
        raw = _response({"topic": "War", "positions": [5, 5, "5", 2]})
        series = extract_distribution(raw, ["War"], 100).per_topic["War"]
        assert series.positions == [2, 5, 5, 5]
        assert series.count == 4

    def test_example_keys_become_ints(self):
        raw = _response({"topic": "War", "positions": [4], "examples": {"4": "battle", "x": "?"}})
        assert extract_distribution(raw, ["War"], 10).per_topic["War"].examples == {4: "battle"}

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(5, 5), (5.7, 5), ("  -3", -3), ("12abc", 12), ("abc", None), (True, None), ([], None)],
    )
    def test_coerce_position(self, value, expected):
        assert coerce_position(value) == expected


class TestMalformed:
    @pytest.mark.parametrize(
        "raw",
        ["nothing here", '{"topics": []}', '{"distributions": []}', '{"topics": "A", "distributions": []}'],
    )
    def test_hard_errors(self, raw):
        with pytest.raises(MalformedStructuredResponse):
            extract_distribution(raw, ["A"], 10)

    def test_json_embedded_in_prose(self):
        raw = "Here is the result:\n" + _response({"topic": "A", "positions": [1]}) + "\nDone."
        assert extract_distribution(raw, ["A"], 10).per_topic["A"].positions == [1]

    def test_entries_without_topic_skipped(self):
        raw = json.dumps({"topics": ["A"], "distributions": [{"positions": [1]}, "junk"]})
        assert extract_distribution(raw, ["A"], 10).per_topic["A"].count == 0


def test_idempotent():
    raw = _response({"topic": "A", "positions": [3, 1]})
    assert extract_distribution(raw, ["A", "B"], 5) == extract_distribution(raw, ["A", "B"], 5)


def test_to_dict_shape():
    raw = _response({"topic": "A", "positions": [2], "examples": {"2": "q"}})
    data = extract_distribution(raw, ["A"], 5).to_dict()
    assert data["per_topic"]["A"] == {"positions": [2], "examples": {"2": "q"}, "count": 1}
    assert data["total_counts"] == {"A": 1}
