from __future__ import annotations

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from copyeditor.llm.json_utils import (
    coerce_suggestion_array,
    parse_json_response,
    parse_suggestions,
)


def test_parse_json_object_in_text():
    text = "Here is the result: {\"key\": \"value\"}. Thanks"
    result = parse_json_response(text)
    assert isinstance(result, dict)
    assert result["key"] == "value"


def test_parse_json_array_in_text():
    text = "Some preamble text [ {\"page_number\": 4, \"issue\": \"Grammar\"} ] end"
    result = parse_json_response(text)
    assert isinstance(result, list)
    assert result[0]["page_number"] == 4


def test_parse_json_repairs_trailing_comma():
    result = parse_json_response('[{"page_number": 1, "issue": "Typo",}]')
    assert result == [{"page_number": 1, "issue": "Typo"}]


def test_parse_json_without_delimiters_raises():
    with pytest.raises(ValueError):
        parse_json_response("No issues found.")


def test_coerce_accepts_bare_array():
    assert coerce_suggestion_array([{"a": 1}]) == [{"a": 1}]


def test_coerce_prefers_suggestions_key():
    value = {"notes": ["x"], "suggestions": [{"a": 1}]}
    assert coerce_suggestion_array(value) == [{"a": 1}]


def test_coerce_unwraps_single_list_value():
    assert coerce_suggestion_array({"items": [{"a": 1}], "count": 1}) == [{"a": 1}]


@pytest.mark.parametrize(
    "value",
    [{"a": [1], "b": [2]}, {"page_number": 1}, "text", 3],
)
def test_coerce_rejects_values_without_one_array(value):
    with pytest.raises(ValueError):
        coerce_suggestion_array(value)


def test_parse_suggestions_normalises_records():
    body = """```json
    {"suggestions": [
      {"page_number": "3", "issue": " Spelling ", "original_text": "teh",
       "suggested_edit": "the", "severity": "CRITICAL", "confidence": 1.7,
       "source": "model"}
    ]}
    ```"""

    suggestions, warnings = parse_suggestions(body)

    assert warnings == []
    assert len(suggestions) == 1
    s = suggestions[0]
    assert s.page_number == 3
    assert s.issue == "Spelling"
    assert s.severity.value == "critical"
    assert s.confidence == 1.0
    assert s.model_extra == {"source": "model"}


@pytest.mark.parametrize("body", ["", "   ", None])
def test_parse_suggestions_empty_body_warns(body):
    suggestions, warnings = parse_suggestions(body)
    assert suggestions == []
    assert len(warnings) == 1


def test_parse_suggestions_unusable_object_warns():
    suggestions, warnings = parse_suggestions('{"status": "ok"}')
    assert suggestions == []
    assert "Failed to parse" in warnings[0]
