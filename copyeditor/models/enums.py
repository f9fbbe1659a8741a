"""Enumerations shared by the copyediting pipeline models.

Values are lower-case strings so they can be passed straight through from
CLI flags, environment variables and LLM JSON responses.
"""

from __future__ import annotations

from enum import Enum


class ContentMode(str, Enum):
    """How a document's pages are sent to the model.

    Values:
        TEXT: extracted page text, one string per request
        IMAGES: rendered page images, one attachment per page
    """

    TEXT = "text"
    IMAGES = "images"

    @classmethod
    def all_values(cls) -> list[str]:
        return [m.value for m in cls]


class DetailLevel(str, Enum):
    """Image rendering quality requested from a vision model."""

    HIGH = "high"
    LOW = "low"

    @classmethod
    def all_values(cls) -> list[str]:
        return [m.value for m in cls]


class Severity(str, Enum):
    """Importance of a suggested edit, as reported by the model."""

    CRITICAL = "critical"
    RECOMMENDED = "recommended"
    OPTIONAL = "optional"

    @classmethod
    def all_values(cls) -> list[str]:
        return [m.value for m in cls]


class FailureKind(str, Enum):
    """Classification of a failed transport call.

    Values:
        RATE_LIMIT: HTTP 429 or an equivalent rate-limit signal (retryable)
        SERVER: HTTP 5xx, timeouts and connection failures (retryable)
        CLIENT: anything else, e.g. bad request or auth failure (fatal)
    """

    RATE_LIMIT = "rate_limit"
    SERVER = "server"
    CLIENT = "client"

    @property
    def retryable(self) -> bool:
        return self is not FailureKind.CLIENT
