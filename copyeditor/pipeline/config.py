from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from copyeditor.models import ContentMode, DetailLevel

DEFAULT_MODEL = "gpt-5"
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_REQUEST_TIMEOUT = 120.0
DEFAULT_BACKOFF_SECONDS = 2.0
# USD per million input tokens (gpt-5 list price)
DEFAULT_COST_PER_1M_INPUT = 1.25

# Per-mode defaults applied by PipelineConfiguration.for_mode
_MODE_DEFAULTS: dict[ContentMode, dict[str, Any]] = {
    ContentMode.TEXT: {
        "context_window": 400_000,
        "max_units_per_chunk": None,
        "max_completion_tokens": None,
    },
    ContentMode.IMAGES: {
        "context_window": 180_000,
        "max_units_per_chunk": 20,
        "max_completion_tokens": 16_000,
    },
}

# Environment variable -> (field name, parser)
_ENV_FIELDS: dict[str, tuple[str, type]] = {
    "COPYEDITOR_MODEL": ("model", str),
    "COPYEDITOR_CONTEXT_WINDOW": ("context_window", int),
    "COPYEDITOR_IMAGES_PER_CHUNK": ("max_units_per_chunk", int),
    "COPYEDITOR_MAX_ATTEMPTS": ("max_attempts", int),
    "COPYEDITOR_DETAIL": ("detail", str),
    "COPYEDITOR_REQUEST_TIMEOUT": ("request_timeout", float),
    "COPYEDITOR_COST_PER_1M_INPUT": ("cost_per_1m_input", float),
}


class ConfigurationError(ValueError):
    """Raised when pipeline settings cannot produce a valid run."""


@dataclass
class PipelineConfiguration:
    """Settings for one copyediting run."""

    # Content
    mode: ContentMode = ContentMode.TEXT
    detail: DetailLevel = DetailLevel.HIGH

    # Model and budget
    model: str = DEFAULT_MODEL
    context_window: int = 400_000
    max_units_per_chunk: int | None = None
    max_completion_tokens: int | None = None
    reasoning_effort: str | None = "minimal"

    # Retry behaviour
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    backoff_seconds: float = DEFAULT_BACKOFF_SECONDS

    # Cost reporting
    cost_per_1m_input: float = DEFAULT_COST_PER_1M_INPUT

    def __post_init__(self) -> None:
        try:
            self.mode = ContentMode(self.mode)
        except ValueError as exc:
            raise ConfigurationError(
                f"Unknown mode '{self.mode}'. Valid options are: "
                f"{', '.join(ContentMode.all_values())}"
            ) from exc
        try:
            self.detail = DetailLevel(self.detail)
        except ValueError as exc:
            raise ConfigurationError(
                f"Unknown detail level '{self.detail}'. Valid options are: "
                f"{', '.join(DetailLevel.all_values())}"
            ) from exc

        if not self.model or not self.model.strip():
            raise ConfigurationError("model must be a non-empty string")
        if self.context_window <= 0:
            raise ConfigurationError(
                f"context_window must be positive, got {self.context_window}"
            )
        if self.max_units_per_chunk is not None and self.max_units_per_chunk < 1:
            raise ConfigurationError(
                f"max_units_per_chunk must be at least 1, got {self.max_units_per_chunk}"
            )
        if self.max_attempts < 1:
            raise ConfigurationError(
                f"max_attempts must be at least 1, got {self.max_attempts}"
            )
        if self.request_timeout <= 0:
            raise ConfigurationError(
                f"request_timeout must be positive, got {self.request_timeout}"
            )
        if self.backoff_seconds < 0:
            raise ConfigurationError(
                f"backoff_seconds cannot be negative, got {self.backoff_seconds}"
            )
        if self.cost_per_1m_input < 0:
            raise ConfigurationError(
                f"cost_per_1m_input cannot be negative, got {self.cost_per_1m_input}"
            )

    @property
    def units_per_chunk(self) -> int | None:
        """The unit cap that applies to this mode (text chunks are uncapped)."""
        if self.mode is ContentMode.IMAGES:
            return self.max_units_per_chunk
        return None

    @classmethod
    def for_mode(
        cls, mode: ContentMode | str, **overrides: Any
    ) -> "PipelineConfiguration":
        """Build a configuration with the defaults for ``mode``."""
        try:
            resolved = ContentMode(mode)
        except ValueError as exc:
            raise ConfigurationError(f"Unknown mode '{mode}'") from exc
        values: dict[str, Any] = {"mode": resolved, **_MODE_DEFAULTS[resolved]}
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    @classmethod
    def from_env(
        cls,
        mode: ContentMode | str,
        dotenv_path: str | Path | None = None,
        **overrides: Any,
    ) -> "PipelineConfiguration":
        """Build a configuration from mode defaults, the environment and overrides.

        Explicit overrides win over environment values. ``None`` overrides are
        ignored so CLI flags that were not given fall through.
        """
        if dotenv_path is not None:
            load_dotenv(dotenv_path=Path(dotenv_path))
        else:
            load_dotenv()

        values: dict[str, Any] = {}
        for env_name, (field_name, parser) in _ENV_FIELDS.items():
            raw = os.environ.get(env_name)
            if raw is None or not raw.strip():
                continue
            try:
                values[field_name] = parser(raw.strip())
            except ValueError as exc:
                raise ConfigurationError(
                    f"{env_name} has an invalid value: {raw!r}"
                ) from exc

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.for_mode(mode, **values)

