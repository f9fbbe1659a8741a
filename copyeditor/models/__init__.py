"""Public model exports for the project.

Keep the :mod:`copyeditor` namespace clean: tests and other modules should
import ``from copyeditor.models import PageUnit, Suggestion``.
"""

from __future__ import annotations

from .enums import ContentMode, DetailLevel, FailureKind, Severity
from .outcome import (
    ChunkError,
    FailedChunk,
    PipelineResult,
    RequestOutcome,
    TokenUsage,
)
from .page import Chunk, ImageAttachment, PageUnit, Payload, PayloadPart
from .suggestion import Suggestion

__all__ = [
    "Chunk",
    "ChunkError",
    "ContentMode",
    "DetailLevel",
    "FailedChunk",
    "FailureKind",
    "ImageAttachment",
    "PageUnit",
    "Payload",
    "PayloadPart",
    "PipelineResult",
    "RequestOutcome",
    "Severity",
    "Suggestion",
    "TokenUsage",
]
