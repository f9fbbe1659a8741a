from __future__ import annotations

import base64
import os
from pathlib import Path
from typing import Any

import openai
from dotenv import load_dotenv
from openai import OpenAI

from copyeditor.models import FailureKind, ImageAttachment, Payload, TokenUsage

from .provider import (
    LLMProviderConfigurationError,
    TransportResult,
    classify_status,
    resolve_system_prompt,
)


def encode_image(image_path: Path) -> str:
    """Read a PNG page image and return it as a base64 data URL."""
    raw_bytes = Path(image_path).read_bytes()
    encoded = base64.b64encode(raw_bytes).decode("ascii")
    return f"data:image/png;base64,{encoded}"


def build_user_content(payload: Payload) -> str | list[dict[str, Any]]:
    """Convert a chunk payload into chat-completions user message content."""
    if isinstance(payload, str):
        return payload

    content: list[dict[str, Any]] = []
    for part in payload:
        if isinstance(part, ImageAttachment):
            content.append(
                {
                    "type": "image_url",
                    "image_url": {
                        "url": encode_image(part.reference),
                        "detail": part.detail.value,
                    },
                }
            )
        else:
            content.append({"type": "text", "text": part})
    return content


REASONING_MODEL_PREFIXES = ("gpt-5", "o1", "o3", "o4")


def supports_reasoning_effort(model: str) -> bool:
    return model.lower().startswith(REASONING_MODEL_PREFIXES)


def _usage_from_response(response: Any) -> TokenUsage | None:
    usage = getattr(response, "usage", None)
    if usage is None:
        return None
    return TokenUsage(
        prompt_tokens=getattr(usage, "prompt_tokens", None),
        completion_tokens=getattr(usage, "completion_tokens", None),
        total_tokens=getattr(usage, "total_tokens", None),
    )


class OpenAILLM:
    """Wrapper around the OpenAI chat completions API with system instructions.

    The system prompt can be provided either as a string directly or as a Path
    to a file. The SDK's own retries are disabled; retrying is the caller's job.
    """

    name = "openai"
    DEFAULT_MODEL = "gpt-5"

    def __init__(
        self,
        system_prompt: str | Path,
        *,
        model: str | None = None,
        client: OpenAI | None = None,
        dotenv_path: str | Path | None = None,
        max_completion_tokens: int | None = None,
        reasoning_effort: str | None = None,
        temperature: float | None = None,
    ) -> None:
        self._system_prompt = resolve_system_prompt(system_prompt)

        if dotenv_path is not None:
            load_dotenv(dotenv_path=Path(dotenv_path))
        else:
            load_dotenv()

        if client is None:
            api_key = os.environ.get("OPENAI_API_KEY")
            if not api_key:
                raise LLMProviderConfigurationError(
                    "OPENAI_API_KEY environment variable is required but not set. "
                    "Please set it in your .env file or environment."
                )
            client = OpenAI(api_key=api_key, max_retries=0)
        self._client = client

        self.model = model or self.DEFAULT_MODEL
        self._max_completion_tokens = max_completion_tokens
        self._reasoning_effort = reasoning_effort
        self._temperature = temperature

    @property
    def system_prompt(self) -> str:
        return self._system_prompt

    def complete(self, payload: Payload, *, timeout: float) -> TransportResult:
        try:
            user_content = build_user_content(payload)
        except OSError as exc:
            return TransportResult.failed(
                FailureKind.CLIENT,
                f"Could not read page image for request: {exc}",
                error_type=type(exc).__name__,
            )

        request: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": self._system_prompt},
                {"role": "user", "content": user_content},
            ],
            "timeout": timeout,
        }
        if self._max_completion_tokens is not None:
            request["max_completion_tokens"] = self._max_completion_tokens
        # Reasoning models reject temperature; only one of the two is sent.
        if self._reasoning_effort is not None and supports_reasoning_effort(self.model):
            request["reasoning_effort"] = self._reasoning_effort
        elif self._temperature is not None:
            request["temperature"] = self._temperature

        try:
            response = self._client.chat.completions.create(**request)
        except openai.APITimeoutError as exc:
            return TransportResult.failed(
                FailureKind.SERVER,
                f"Request timed out after {timeout}s",
                error_type=type(exc).__name__,
            )
        except openai.APIConnectionError as exc:
            return TransportResult.failed(
                FailureKind.SERVER,
                f"Connection error: {exc}",
                error_type=type(exc).__name__,
            )
        except openai.APIStatusError as exc:
            body = exc.body if isinstance(exc.body, dict) else None
            return TransportResult.failed(
                classify_status(exc.status_code, str(exc)),
                str(exc),
                status_code=exc.status_code,
                error_type=type(exc).__name__,
                detail=body,
            )
        except openai.OpenAIError as exc:
            return TransportResult.failed(
                classify_status(None, str(exc)),
                str(exc),
                error_type=type(exc).__name__,
            )

        choices = getattr(response, "choices", None) or []
        text = ""
        if choices:
            text = getattr(choices[0].message, "content", None) or ""
        return TransportResult.success(text, _usage_from_response(response))
