from __future__ import annotations

import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any, cast

import httpx
import pytest
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from copyeditor.llm.gemini_llm import GeminiLLM
from copyeditor.models import DetailLevel, FailureKind, ImageAttachment, TokenUsage


class _DummyResponse:
    def __init__(self, text: Any, usage_metadata: Any = None) -> None:
        self.text = text
        self.usage_metadata = usage_metadata


class _DummyModels:
    def __init__(self, outcome: Any = None) -> None:
        self.calls: list[dict[str, object]] = []
        self._outcome = outcome if outcome is not None else _DummyResponse("[]")

    def generate_content(self, **kwargs: object) -> _DummyResponse:
        self.calls.append(kwargs)
        if isinstance(self._outcome, Exception):
            raise self._outcome
        return self._outcome


class _DummyClient:
    def __init__(self, outcome: Any = None) -> None:
        self.models = _DummyModels(outcome)


def _llm(client: _DummyClient, **kwargs: Any) -> GeminiLLM:
    return GeminiLLM("Flag errors.", client=cast(genai.Client, client), **kwargs)


def test_text_request_sets_system_instruction_and_timeout() -> None:
    usage = SimpleNamespace(
        prompt_token_count=40, candidates_token_count=8, total_token_count=48
    )
    client = _DummyClient(_DummyResponse('[{"page_number": 2}]', usage))
    llm = _llm(client)

    result = llm.complete("HEADER\n\nFile:\n\npage 1:\ntext", timeout=30.0)

    assert result.ok
    assert result.text == '[{"page_number": 2}]'
    assert result.usage == TokenUsage(prompt_tokens=40, completion_tokens=8, total_tokens=48)
    call = client.models.calls[0]
    assert call["model"] == GeminiLLM.DEFAULT_MODEL
    assert call["contents"] == "HEADER\n\nFile:\n\npage 1:\ntext"
    config = call["config"]
    assert isinstance(config, types.GenerateContentConfig)
    assert config.system_instruction == "Flag errors."
    assert config.http_options.timeout == 30000
    assert config.media_resolution is None


def test_image_payload_becomes_parts(tmp_path: Path) -> None:
    image = tmp_path / "page_0001.png"
    image.write_bytes(b"\x89PNG fake")
    client = _DummyClient()

    _llm(client).complete(
        ("HEADER", "\nPage 1:", ImageAttachment(image, DetailLevel.LOW)), timeout=10.0
    )

    call = client.models.calls[0]
    contents = call["contents"]
    assert len(contents) == 3
    assert contents[0].text == "HEADER"
    assert contents[2].inline_data.data == b"\x89PNG fake"
    assert contents[2].inline_data.mime_type == "image/png"
    assert call["config"].media_resolution == types.MediaResolution.MEDIA_RESOLUTION_LOW


@pytest.mark.parametrize(
    ("code", "expected"),
    [(429, FailureKind.RATE_LIMIT), (503, FailureKind.SERVER), (400, FailureKind.CLIENT)],
)
def test_api_errors_are_classified(code: int, expected: FailureKind) -> None:
    body = {"error": {"code": code, "message": "problem", "status": "X"}}
    error_cls = genai_errors.ClientError if code < 500 else genai_errors.ServerError

    result = _llm(_DummyClient(error_cls(code, body))).complete("x", timeout=1.0)

    assert result.failure is not None
    assert result.failure.kind is expected
    assert result.failure.status_code == code
    assert result.failure.detail == body


def test_http_timeout_is_a_server_failure() -> None:
    error = httpx.ReadTimeout("timed out")

    result = _llm(_DummyClient(error)).complete("x", timeout=1.0)

    assert result.failure.kind is FailureKind.SERVER


def test_missing_text_gives_empty_body() -> None:
    result = _llm(_DummyClient(_DummyResponse(None))).complete("x", timeout=1.0)

    assert result.ok
    assert result.text == ""
    assert result.usage is None


def test_model_override() -> None:
    client = _DummyClient()

    _llm(client, model="gemini-2.5-pro").complete("x", timeout=1.0)

    assert client.models.calls[0]["model"] == "gemini-2.5-pro"
