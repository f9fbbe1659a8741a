from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from copyeditor.models import FailureKind, Payload, TokenUsage

_RATE_LIMIT_PATTERN = re.compile(r"rate[\s_-]?limit|too many requests", re.IGNORECASE)


class LLMProviderError(Exception):
    """Generic failure raised by an LLM provider."""


class LLMProviderConfigurationError(LLMProviderError):
    """Raised when a provider cannot be configured or authenticated."""


@dataclass(frozen=True)
class TransportFailure:
    """A classified failure from a single transport call."""

    kind: FailureKind
    message: str
    status_code: int | None = None
    error_type: str | None = None
    detail: dict[str, Any] | None = None


@dataclass(frozen=True)
class TransportResult:
    """Outcome of one call to the upstream API: response text or a failure."""

    text: str | None = None
    usage: TokenUsage | None = None
    failure: TransportFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, text: str, usage: TokenUsage | None = None) -> "TransportResult":
        return cls(text=text, usage=usage)

    @classmethod
    def failed(
        cls,
        kind: FailureKind,
        message: str,
        *,
        status_code: int | None = None,
        error_type: str | None = None,
        detail: dict[str, Any] | None = None,
    ) -> "TransportResult":
        return cls(
            failure=TransportFailure(
                kind=kind,
                message=message,
                status_code=status_code,
                error_type=error_type,
                detail=detail,
            )
        )


def classify_status(status_code: int | None, message: str = "") -> FailureKind:
    """Map an HTTP status (or, lacking one, an error message) to a failure kind.

    The message is only inspected when the transport exposes no status code.
    """
    if status_code is not None:
        if status_code == 429:
            return FailureKind.RATE_LIMIT
        if status_code == 408 or 500 <= status_code < 600:
            return FailureKind.SERVER
        return FailureKind.CLIENT
    if _RATE_LIMIT_PATTERN.search(message or ""):
        return FailureKind.RATE_LIMIT
    return FailureKind.CLIENT


def resolve_system_prompt(system_prompt: str | Path) -> str:
    """Accept either prompt text or a ``Path`` to a file containing it.

    Strings are always treated as the prompt itself, never as file names.
    """
    if isinstance(system_prompt, Path):
        try:
            text = system_prompt.read_text(encoding="utf-8")
        except OSError as exc:
            raise LLMProviderConfigurationError(
                f"Cannot read system prompt file {system_prompt}: {exc}"
            ) from exc
    elif isinstance(system_prompt, str):
        text = system_prompt
    else:
        raise TypeError(
            f"system_prompt must be str or Path, got {type(system_prompt)}"
        )

    if not text.strip():
        raise LLMProviderConfigurationError("system_prompt must not be empty")
    return text


class LLMProvider(Protocol):
    """Shared contract for LLM transports.

    ``complete`` sends one request made of the provider's system prompt and the
    given user payload. API failures are returned as classified
    :class:`TransportResult` failures rather than raised.
    """

    name: str
    model: str

    def complete(self, payload: Payload, *, timeout: float) -> TransportResult:
        """Send one request and return its text or a classified failure."""
        ...


class ProviderFactory(Protocol):
    def __call__(
        self,
        *,
        system_prompt: str | Path,
        model: str | None,
        dotenv_path: str | Path | None,
        **options: Any,
    ) -> LLMProvider: ...
