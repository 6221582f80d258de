"""
Tests for the structured output extractor.

These tests verify:
- JSON embedded in prose or code fences is found and parsed
- Trailing separators and missing commas between objects are repaired
- Truncated output is closed by delimiter balancing
- Failure classification (no JSON at all vs. unrecoverable JSON)
"""

import json

import pytest

from screendoc.ai import extraction
from screendoc.ai.extraction import (
    balance_delimiters,
    extract_json,
    find_json_span,
    repair_separators,
    unclosed_delimiters,
)
from screendoc.core.exceptions import NoStructuredOutput, UnrecoverableStructuredOutput


SAMPLE = {
    "elements": [
        {"id": "btn-1", "label": "Open", "bounds": [10, 20, 30, 40]},
        {"id": "btn-2", "label": "Save {draft}", "nested": {"flag": True}},
    ],
    "metadata": {"total_elements": 2},
}


class TestEmbeddedJson:
    """Well-formed JSON surrounded by prose."""

    @pytest.mark.parametrize("wrapper", [
        "{}",
        "Here is the analysis:\n{}\nLet me know if you need more.",
        "```json\n{}\n```",
        "Result -> {} <- end",
    ])
    def test_returns_same_value_as_direct_parse(self, wrapper):
        text = wrapper.format(json.dumps(SAMPLE, indent=2))

        assert extract_json(text) == SAMPLE

    def test_span_runs_from_first_open_to_last_close(self):
        assert find_json_span('noise {"a": {"b": 1}} tail') == '{"a": {"b": 1}}'


class TestSeparatorRepair:
    """Recoverable punctuation mistakes."""

    @pytest.mark.parametrize("broken,expected", [
        ('{"a": 1,}', {"a": 1}),
        ('{"a": [1, 2, 3,]}', {"a": [1, 2, 3]}),
        ('{"a": [1, 2],\n}', {"a": [1, 2]}),
        ('{"items": [{"x": 1},\n  ]}', {"items": [{"x": 1}]}),
    ])
    def test_trailing_separator_before_closer(self, broken, expected):
        assert extract_json(broken) == expected

    def test_missing_comma_between_objects(self):
        text = '{"items": [{"x": 1}\n{"x": 2}  {"x": 3}]}'

        assert extract_json(text) == {"items": [{"x": 1}, {"x": 2}, {"x": 3}]}

    def test_repair_separators_is_pure_text_transform(self):
        assert repair_separators('[1, 2, ]') == '[1, 2 ]'
        assert repair_separators('{"a":1}{"b":2}') == '{"a":1},\n{"b":2}'

    def test_separators_inside_strings_are_kept(self):
        text = '{"hint": "press ,] to close", "items": [1, 2,]}'

        assert extract_json(text) == {"hint": "press ,] to close", "items": [1, 2]}

    def test_adjacent_braces_inside_strings_are_kept(self):
        text = '{"items": [{"tpl": "{a}{b}"} {"tpl": "x,}"},]}'

        assert extract_json(text) == {"items": [{"tpl": "{a}{b}"}, {"tpl": "x,}"}]}

    def test_escaped_quote_does_not_end_string(self):
        assert repair_separators('{"a": "say \\",]\\" now",}') == '{"a": "say \\",]\\" now"}'


class TestTruncationRecovery:
    """Output cut off by the token ceiling."""

    @pytest.mark.parametrize("cut", [1, 2, 3])
    def test_suffix_of_closers_removed(self, cut):
        full = json.dumps({"elements": [{"id": "a", "tags": ["x", "y"]}, {"id": "b"}]})
        # Suffix is '}]}' ; drop 1..3 closing delimiters
        truncated = full[:-cut]

        value = extract_json(truncated)

        assert isinstance(value, dict)
        assert "elements" in value

    def test_brackets_closed_before_braces(self):
        value = extract_json('{"elements": [1, 2, 3')

        assert value == {"elements": [1, 2, 3]}

    def test_nested_object_inside_array_closed_innermost_first(self):
        value = extract_json('{"a": [{"b": [1, 2')

        assert value == {"a": [{"b": [1, 2]}]}

    def test_dangling_separator_after_truncation(self):
        value = extract_json('{"elements": [{"id": 1},\n')

        assert value == {"elements": [{"id": 1}]}

    def test_balance_appends_closers_in_nesting_order(self):
        assert balance_delimiters('{"a": [1') == '{"a": [1\n]\n}'

    def test_delimiters_in_strings_are_ignored(self):
        assert unclosed_delimiters('{"label": "a [b {c", "x": [') == ["{", "["]


class TestFailures:
    """Classified failures."""

    @pytest.mark.parametrize("text", ["", "no json here", "[1, 2, 3]", "} only closers ]"])
    def test_no_open_brace_is_no_structured_output(self, text):
        with pytest.raises(NoStructuredOutput):
            extract_json(text)

    def test_no_open_brace_makes_no_recovery_attempt(self, monkeypatch):
        calls = []
        monkeypatch.setattr(extraction, "repair_separators", lambda s: calls.append(s) or s)
        monkeypatch.setattr(extraction, "balance_delimiters", lambda s: calls.append(s) or s)

        with pytest.raises(NoStructuredOutput):
            extract_json("plain prose answer")

        assert calls == []

    def test_unrecoverable_carries_raw_text_and_position(self):
        text = 'Sure! {"a": tru, "b": 2}'

        with pytest.raises(UnrecoverableStructuredOutput) as exc_info:
            extract_json(text)

        error = exc_info.value
        assert error.raw_text == text
        assert error.position is not None
        assert "JSON parsing failed" in str(error)

    def test_extraction_is_deterministic(self):
        text = '{"a": [1, 2,'

        assert extract_json(text) == extract_json(text)
