"""Shared JSON extraction and repair utilities for LLM responses.

This module provides common functionality for parsing JSON from LLM responses,
including repair of malformed JSON and extraction from text that may contain
additional commentary or code fences, and for coercing the parsed value into
a list of suggestion records.
"""

from __future__ import annotations

import json
from typing import Any

from json_repair import repair_json
from pydantic import ValidationError

from copyeditor.models import Suggestion


def parse_json_response(text: str) -> Any:
    """Extract and repair JSON content from LLM response text.

    This function:
    1. Locates the outermost JSON object or array delimiters
    2. Extracts the JSON fragment
    3. Repairs common JSON formatting issues
    4. Parses and returns the result

    Args:
        text: The response text from an LLM that should contain JSON

    Returns:
        The parsed JSON value (typically a dict or list)

    Raises:
        ValueError: If JSON delimiters are not found or text is invalid
        json.JSONDecodeError: If the repaired text still cannot be parsed

    Example:
        >>> text = "Here's the result: [{\"page_number\": 2}] Thanks!"
        >>> parse_json_response(text)[0]["page_number"]
        2
    """
    if not isinstance(text, str):
        raise ValueError(f"Expected string input, got {type(text)}")

    # Choose whichever of an object or an array starts first in the text.
    start_obj = text.find("{")
    start_arr = text.find("[")

    if start_obj == -1 and start_arr == -1:
        raise ValueError("Response text does not contain JSON object or array delimiters.")

    if start_obj == -1:
        start, end_char = start_arr, "]"
    elif start_arr == -1:
        start, end_char = start_obj, "}"
    elif start_arr < start_obj:
        start, end_char = start_arr, "]"
    else:
        start, end_char = start_obj, "}"

    end = text.rfind(end_char)

    if end == -1 or end <= start:
        raise ValueError("Response text does not contain matching JSON delimiters.")

    json_fragment = text[start : end + 1]
    repaired = repair_json(json_fragment)
    if not repaired.strip():
        raise ValueError("Response JSON could not be repaired.")
    return json.loads(repaired)


def coerce_suggestion_array(value: Any) -> list[Any]:
    """Return the list of suggestion objects held by a parsed response.

    Accepts a bare array, an object with a ``suggestions`` array, or an object
    whose only list value is the array.

    Raises:
        ValueError: If no suggestion array can be found
    """
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        wrapped = value.get("suggestions")
        if isinstance(wrapped, list):
            return wrapped
        list_values = [v for v in value.values() if isinstance(v, list)]
        if len(list_values) == 1:
            return list_values[0]
        raise ValueError("Response object does not wrap a suggestion array.")
    raise ValueError(f"Expected a JSON array of suggestions, got {type(value).__name__}")


def parse_suggestions(text: str | None) -> tuple[list[Suggestion], list[str]]:
    """Parse a model response body into suggestions.

    Never raises for bad content: malformed bodies produce an empty list and a
    warning message instead.

    Returns:
        Tuple of (suggestions, warnings)
    """
    warnings: list[str] = []
    if text is None or not text.strip():
        return [], ["Response body was empty; no suggestions recorded."]

    try:
        items = coerce_suggestion_array(parse_json_response(text))
    except (ValueError, json.JSONDecodeError) as exc:
        snippet = text.strip()[:200]
        return [], [f"Failed to parse response as JSON: {exc}. Raw content: {snippet}"]

    suggestions: list[Suggestion] = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            warnings.append(f"Skipped suggestion {index}: not a JSON object")
            continue
        try:
            suggestions.append(Suggestion.model_validate(item))
        except ValidationError as exc:
            warnings.append(f"Skipped suggestion {index}: {exc}")
    return suggestions, warnings
