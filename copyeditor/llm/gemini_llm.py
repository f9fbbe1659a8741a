from __future__ import annotations

from pathlib import Path
from typing import Any

import httpx
from dotenv import load_dotenv
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from copyeditor.models import DetailLevel, FailureKind, ImageAttachment, Payload, TokenUsage

from .provider import (
    LLMProviderConfigurationError,
    TransportResult,
    classify_status,
    resolve_system_prompt,
)

_MEDIA_RESOLUTION = {
    DetailLevel.HIGH: types.MediaResolution.MEDIA_RESOLUTION_HIGH,
    DetailLevel.LOW: types.MediaResolution.MEDIA_RESOLUTION_LOW,
}


class GeminiLLM:
    """Wrapper around the Gemini SDK with system instructions.

    The system prompt can be provided either as a string directly or as a Path to a file.
    """

    name = "gemini"
    DEFAULT_MODEL = "gemini-2.5-flash"

    def __init__(
        self,
        system_prompt: str | Path,
        *,
        model: str | None = None,
        client: genai.Client | None = None,
        dotenv_path: str | Path | None = None,
        temperature: float = 0.2,
    ) -> None:
        self._system_prompt = resolve_system_prompt(system_prompt)

        if dotenv_path is not None:
            load_dotenv(dotenv_path=Path(dotenv_path))
        else:
            load_dotenv()

        if client is None:
            try:
                client = genai.Client()
            except ValueError as exc:
                raise LLMProviderConfigurationError(
                    f"Gemini client could not be created: {exc}"
                ) from exc
        self._client = client
        self.model = model or self.DEFAULT_MODEL
        self._temperature = temperature

    @property
    def system_prompt(self) -> str:
        return self._system_prompt

    def complete(self, payload: Payload, *, timeout: float) -> TransportResult:
        try:
            contents, detail = self._build_contents(payload)
        except OSError as exc:
            return TransportResult.failed(
                FailureKind.CLIENT,
                f"Could not read page image for request: {exc}",
                error_type=type(exc).__name__,
            )

        config_kwargs: dict[str, Any] = dict(
            system_instruction=self._system_prompt,
            temperature=self._temperature,
            http_options=types.HttpOptions(timeout=int(timeout * 1000)),
        )
        if detail is not None:
            config_kwargs["media_resolution"] = _MEDIA_RESOLUTION[detail]
        config = types.GenerateContentConfig(**config_kwargs)

        try:
            response = self._client.models.generate_content(
                model=self.model,
                contents=contents,
                config=config,
            )
        except genai_errors.APIError as exc:
            detail_body = exc.details if isinstance(exc.details, dict) else None
            return TransportResult.failed(
                classify_status(exc.code, str(exc)),
                exc.message or str(exc),
                status_code=exc.code,
                error_type=type(exc).__name__,
                detail=detail_body,
            )
        except httpx.TimeoutException as exc:
            return TransportResult.failed(
                FailureKind.SERVER,
                f"Request timed out after {timeout}s",
                error_type=type(exc).__name__,
            )
        except httpx.TransportError as exc:
            return TransportResult.failed(
                FailureKind.SERVER,
                f"Connection error: {exc}",
                error_type=type(exc).__name__,
            )

        text = getattr(response, "text", None) or ""
        return TransportResult.success(text, self._usage(response))

    def _build_contents(
        self, payload: Payload
    ) -> tuple[str | list[types.Part], DetailLevel | None]:
        if isinstance(payload, str):
            return payload, None

        parts: list[types.Part] = []
        detail: DetailLevel | None = None
        for part in payload:
            if isinstance(part, ImageAttachment):
                detail = part.detail
                parts.append(
                    types.Part.from_bytes(
                        data=Path(part.reference).read_bytes(),
                        mime_type="image/png",
                    )
                )
            else:
                parts.append(types.Part.from_text(text=part))
        return parts, detail

    @staticmethod
    def _usage(response: Any) -> TokenUsage | None:
        metadata = getattr(response, "usage_metadata", None)
        if metadata is None:
            return None
        return TokenUsage(
            prompt_tokens=getattr(metadata, "prompt_token_count", None),
            completion_tokens=getattr(metadata, "candidates_token_count", None),
            total_tokens=getattr(metadata, "total_token_count", None),
        )
