"""Per-chunk outcomes and the aggregated pipeline result."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .enums import FailureKind
from .suggestion import Suggestion


def _add_optional(left: int | None, right: int | None) -> int | None:
    if left is None and right is None:
        return None
    return (left or 0) + (right or 0)


@dataclass(frozen=True)
class TokenUsage:
    """Token accounting reported by the API for one request."""

    prompt_tokens: int | None = None
    completion_tokens: int | None = None
    total_tokens: int | None = None

    def __add__(self, other: "TokenUsage") -> "TokenUsage":
        if not isinstance(other, TokenUsage):
            return NotImplemented
        return TokenUsage(
            prompt_tokens=_add_optional(self.prompt_tokens, other.prompt_tokens),
            completion_tokens=_add_optional(
                self.completion_tokens, other.completion_tokens
            ),
            total_tokens=_add_optional(self.total_tokens, other.total_tokens),
        )

    def as_dict(self) -> dict[str, int | None]:
        return {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
        }


@dataclass(frozen=True)
class ChunkError:
    """Why a chunk could not be processed."""

    kind: FailureKind
    message: str
    status_code: int | None = None
    detail: dict[str, Any] | None = None
    attempts: int = 1

    def __str__(self) -> str:
        status = f" (HTTP {self.status_code})" if self.status_code else ""
        return (
            f"{self.kind.value} failure{status} after {self.attempts} "
            f"attempt(s): {self.message}"
        )


@dataclass(frozen=True)
class RequestOutcome:
    """Result of sending one chunk to the model, including all retries."""

    chunk_id: int
    page_start: int
    page_end: int
    suggestions: tuple[Suggestion, ...] = ()
    usage: TokenUsage | None = None
    error: ChunkError | None = None
    attempts: int = 1
    warnings: tuple[str, ...] = ()

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class FailedChunk:
    """A chunk whose request exhausted its attempts or failed fatally."""

    chunk_id: int
    page_start: int
    page_end: int
    error: ChunkError

    @property
    def page_range(self) -> tuple[int, int]:
        return (self.page_start, self.page_end)


@dataclass
class PipelineResult:
    """Aggregated output of a pipeline run.

    ``all_suggestions`` holds suggestions from successful chunks only, in chunk
    order. Every failed chunk is listed in ``failed_chunks``.
    """

    all_suggestions: list[Suggestion] = field(default_factory=list)
    failed_chunks: list[FailedChunk] = field(default_factory=list)
    outcomes: list[RequestOutcome] = field(default_factory=list)

    def record(self, outcome: RequestOutcome) -> None:
        self.outcomes.append(outcome)
        if outcome.error is None:
            self.all_suggestions.extend(outcome.suggestions)
            return
        self.failed_chunks.append(
            FailedChunk(
                chunk_id=outcome.chunk_id,
                page_start=outcome.page_start,
                page_end=outcome.page_end,
                error=outcome.error,
            )
        )

    @property
    def chunk_count(self) -> int:
        return len(self.outcomes)

    @property
    def failed_chunk_ids(self) -> list[int]:
        return [failed.chunk_id for failed in self.failed_chunks]

    @property
    def has_failures(self) -> bool:
        return bool(self.failed_chunks)

    @property
    def status(self) -> str:
        """One of ``partial``, ``suggestions`` or ``no_suggestions``."""
        if self.failed_chunks:
            return "partial"
        if self.all_suggestions:
            return "suggestions"
        return "no_suggestions"

    @property
    def total_usage(self) -> TokenUsage | None:
        usages = [o.usage for o in self.outcomes if o.usage is not None]
        if not usages:
            return None
        total = usages[0]
        for usage in usages[1:]:
            total = total + usage
        return total

    @property
    def warnings(self) -> list[str]:
        return [w for outcome in self.outcomes for w in outcome.warnings]
