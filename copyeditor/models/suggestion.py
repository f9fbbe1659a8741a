"""Suggestion records returned by the copyediting model.

The model is asked for a JSON array of objects with the fields below. Responses
are loosely typed, so every field is optional and normalised once here with
documented defaults:

- page_number: None when missing or not an integer
- issue, original_text, suggested_edit, rationale: "" when missing
- severity: "recommended" when missing or unrecognised
- confidence: 0.5 when missing or not numeric, clamped into [0, 1]

Unknown keys are preserved so nothing the model returns is lost on export.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from .enums import Severity

DEFAULT_SEVERITY = Severity.RECOMMENDED
DEFAULT_CONFIDENCE = 0.5


class Suggestion(BaseModel):
    """One flagged issue: location, offending text, proposed edit and rationale."""

    model_config = ConfigDict(extra="allow")

    page_number: int | None = None
    issue: str = ""
    original_text: str = ""
    suggested_edit: str = ""
    rationale: str = ""
    severity: Severity = DEFAULT_SEVERITY
    confidence: float = DEFAULT_CONFIDENCE

    @field_validator("page_number", mode="before")
    def _coerce_page_number(cls, value: object) -> int | None:
        if value is None or isinstance(value, bool):
            return None
        try:
            number = int(str(value).strip())
        except (TypeError, ValueError):
            return None
        return number if number >= 1 else None

    @field_validator(
        "issue",
        "original_text",
        "suggested_edit",
        "rationale",
        mode="before",
    )
    def _strip_strings(cls, value: object) -> str:
        if value is None:
            return ""
        return str(value).strip()

    @field_validator("severity", mode="before")
    def _normalise_severity(cls, value: object) -> Severity:
        if isinstance(value, Severity):
            return value
        try:
            return Severity(str(value or "").strip().lower())
        except ValueError:
            return DEFAULT_SEVERITY

    @field_validator("confidence", mode="before")
    def _normalise_confidence(cls, value: Any) -> float:
        if value is None or isinstance(value, bool):
            return DEFAULT_CONFIDENCE
        try:
            score = float(value)
        except (TypeError, ValueError):
            return DEFAULT_CONFIDENCE
        if score != score:  # NaN
            return DEFAULT_CONFIDENCE
        return min(1.0, max(0.0, score))

    @property
    def is_valid(self) -> bool:
        """True when the record can be located in the document."""
        return self.page_number is not None and bool(self.original_text)
