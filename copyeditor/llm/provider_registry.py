from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .gemini_llm import GeminiLLM
from .openai_llm import OpenAILLM
from .provider import LLMProvider, ProviderFactory

DEFAULT_PROVIDER = "openai"


def _openai_factory(
    *,
    system_prompt: str | Path,
    model: str | None,
    dotenv_path: str | Path | None,
    **options: Any,
) -> LLMProvider:
    return OpenAILLM(
        system_prompt=system_prompt,
        model=model,
        dotenv_path=dotenv_path,
        max_completion_tokens=options.get("max_completion_tokens"),
        reasoning_effort=options.get("reasoning_effort"),
        temperature=options.get("temperature"),
    )


def _gemini_factory(
    *,
    system_prompt: str | Path,
    model: str | None,
    dotenv_path: str | Path | None,
    **options: Any,
) -> LLMProvider:
    temperature = options.get("temperature")
    return GeminiLLM(
        system_prompt=system_prompt,
        model=model,
        dotenv_path=dotenv_path,
        temperature=0.2 if temperature is None else temperature,
    )


_PROVIDER_FACTORIES: dict[str, ProviderFactory] = {
    "openai": _openai_factory,
    "gemini": _gemini_factory,
}


_DEFAULT_MODELS: dict[str, str] = {
    "openai": OpenAILLM.DEFAULT_MODEL,
    "gemini": GeminiLLM.DEFAULT_MODEL,
}


def available_providers() -> list[str]:
    return list(_PROVIDER_FACTORIES)


def resolve_provider_name(name: str | None = None) -> str:
    """Return the provider to use: ``name``, else LLM_PROVIDER, else openai."""
    chosen = (name or os.environ.get("LLM_PROVIDER") or DEFAULT_PROVIDER).strip().lower()
    if chosen not in _PROVIDER_FACTORIES:
        raise ValueError(
            f"Unknown LLM provider '{chosen}'. "
            f"Valid options are: {', '.join(available_providers())}"
        )
    return chosen


def default_model_for(name: str) -> str:
    return _DEFAULT_MODELS.get(name, OpenAILLM.DEFAULT_MODEL)


def create_provider(
    name: str | None = None,
    *,
    system_prompt: str | Path,
    model: str | None = None,
    dotenv_path: str | Path | None = None,
    **options: Any,
) -> LLMProvider:
    """Return the configured transport, honouring the LLM_PROVIDER hint."""

    # If dotenv_path was supplied, load it early so that LLM_PROVIDER is
    # available before we read it.
    if dotenv_path is not None:
        load_dotenv(dotenv_path=str(dotenv_path), override=True)

    chosen = resolve_provider_name(name)
    return _PROVIDER_FACTORIES[chosen](
        system_prompt=system_prompt,
        model=model,
        dotenv_path=dotenv_path,
        **options,
    )
