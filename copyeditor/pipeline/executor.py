"""Send one chunk to the model, retrying transient failures with linear backoff."""

from __future__ import annotations

import logging
import time
from typing import Callable

from copyeditor.llm.json_utils import parse_suggestions
from copyeditor.llm.provider import LLMProvider, TransportFailure
from copyeditor.models import Chunk, ChunkError, FailureKind, RequestOutcome, TokenUsage

from .config import (
    DEFAULT_BACKOFF_SECONDS,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_REQUEST_TIMEOUT,
    ConfigurationError,
)

logger = logging.getLogger(__name__)


class RequestExecutor:
    """Drive the request loop for a single chunk.

    Each attempt makes exactly one transport call. Rate-limit and server
    failures are retried after ``attempt * backoff_seconds`` seconds until
    ``max_attempts`` calls have been made; client failures end the loop at
    once, as does any exception the provider raises. The outcome never raises
    for provider failures: they are returned on ``RequestOutcome.error``.
    """

    def __init__(
        self,
        provider: LLMProvider,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        _check_attempts(max_attempts)
        self.provider = provider
        self.max_attempts = max_attempts
        self.timeout = timeout
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep

    def execute(self, chunk: Chunk, max_attempts: int | None = None) -> RequestOutcome:
        attempts_allowed = self.max_attempts if max_attempts is None else max_attempts
        _check_attempts(attempts_allowed)

        attempt = 0
        while True:
            attempt += 1
            logger.debug(
                "Sending %s to %s (attempt %d/%d)",
                chunk.describe(),
                self.provider.name,
                attempt,
                attempts_allowed,
            )
            try:
                result = self.provider.complete(
                    chunk.assembled_payload, timeout=self.timeout
                )
            except Exception as exc:
                # Unclassified provider errors are fatal for this chunk only
                failure = TransportFailure(
                    kind=FailureKind.CLIENT,
                    message=str(exc) or type(exc).__name__,
                    error_type=type(exc).__name__,
                )
                _log_fatal(chunk, failure)
                return self._failure(chunk, failure, attempt)

            if result.failure is None:
                return self._success(chunk, result.text or "", result.usage, attempt)

            failure = result.failure
            if not failure.kind.retryable:
                _log_fatal(chunk, failure)
                return self._failure(chunk, failure, attempt)

            if attempt >= attempts_allowed:
                logger.error(
                    "%s failed after %d attempt(s): %s",
                    chunk.describe().capitalize(),
                    attempt,
                    failure.message,
                )
                return self._failure(chunk, failure, attempt)

            delay = attempt * self.backoff_seconds
            logger.warning(
                "%s: %s failure (%s); retrying in %.0fs (attempt %d/%d)",
                chunk.describe().capitalize(),
                failure.kind.value,
                failure.message,
                delay,
                attempt,
                attempts_allowed,
            )
            self._sleep(delay)

    def _success(
        self, chunk: Chunk, text: str, usage: TokenUsage | None, attempts: int
    ) -> RequestOutcome:
        suggestions, warnings = parse_suggestions(text)
        for warning in warnings:
            logger.warning("%s: %s", chunk.describe().capitalize(), warning)
        return RequestOutcome(
            chunk_id=chunk.chunk_id,
            page_start=chunk.page_start,
            page_end=chunk.page_end,
            suggestions=tuple(suggestions),
            usage=usage,
            attempts=attempts,
            warnings=tuple(warnings),
        )

    @staticmethod
    def _failure(chunk: Chunk, failure: TransportFailure, attempts: int) -> RequestOutcome:
        return RequestOutcome(
            chunk_id=chunk.chunk_id,
            page_start=chunk.page_start,
            page_end=chunk.page_end,
            error=ChunkError(
                kind=failure.kind,
                message=failure.message,
                status_code=failure.status_code,
                detail=failure.detail,
                attempts=attempts,
            ),
            attempts=attempts,
        )


def _check_attempts(max_attempts: int) -> None:
    if max_attempts < 1:
        raise ConfigurationError(f"max_attempts must be at least 1, got {max_attempts}")


def _log_fatal(chunk: Chunk, failure: TransportFailure) -> None:
    logger.error(
        "%s failed with a non-retryable %s error: %s | status=%s type=%s detail=%s",
        chunk.describe().capitalize(),
        failure.kind.value,
        failure.message,
        failure.status_code,
        failure.error_type,
        failure.detail,
    )
