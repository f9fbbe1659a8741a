"""Token cost estimation for page text and page images."""

from __future__ import annotations

import logging
from functools import lru_cache

import tiktoken

from copyeditor.models import ContentMode, DetailLevel, PageUnit

from .config import ConfigurationError

logger = logging.getLogger(__name__)

# Fixed per-image costs charged by the API for a rendered page
IMAGE_TOKEN_COSTS: dict[DetailLevel, int] = {
    DetailLevel.HIGH: 2805,
    DetailLevel.LOW: 85,
}

FALLBACK_TOKENIZER_MODEL = "gpt-4o"


@lru_cache(maxsize=None)
def resolve_encoding(model: str) -> tiktoken.Encoding:
    """Return the tiktoken encoding for ``model``.

    Models tiktoken does not know (Gemini models, or GPT releases newer than
    the installed tiktoken) use the gpt-4o encoding. The substitution is
    logged once per model name.
    """
    try:
        return tiktoken.encoding_for_model(model)
    except KeyError:
        logger.info(
            "Tokenizer for model '%s' not found, using %s encoding instead",
            model,
            FALLBACK_TOKENIZER_MODEL,
        )
        return tiktoken.encoding_for_model(FALLBACK_TOKENIZER_MODEL)


class TokenEstimator:
    """Estimate how many tokens a unit of content costs in a request."""

    def __init__(self, model: str) -> None:
        if not model:
            raise ConfigurationError("TokenEstimator requires a model name")
        self.model = model

    @property
    def encoding(self) -> tiktoken.Encoding:
        return resolve_encoding(self.model)

    def count_text(self, text: str) -> int:
        if not text:
            return 0
        return len(self.encoding.encode(text, disallowed_special=()))

    def estimate(
        self,
        unit: str | PageUnit,
        mode: ContentMode | str,
        detail_level: DetailLevel | str | None = None,
    ) -> int:
        """Return the token cost of ``unit`` in ``mode``.

        Text is counted exactly with the model's tokenizer. Images cost a fixed
        amount that depends only on the requested detail level.
        """
        try:
            mode = ContentMode(mode)
        except ValueError as exc:
            raise ConfigurationError(f"Unknown mode '{mode}'") from exc

        if mode is ContentMode.IMAGES:
            return image_token_cost(detail_level)

        if isinstance(unit, PageUnit):
            if unit.content is None:
                raise ConfigurationError(
                    f"Page {unit.page_number} has no text to estimate in text mode"
                )
            return self.count_text(unit.content)
        return self.count_text(unit)


def image_token_cost(detail_level: DetailLevel | str | None) -> int:
    if detail_level is None:
        raise ConfigurationError("Image mode requires a detail level")
    try:
        return IMAGE_TOKEN_COSTS[DetailLevel(detail_level)]
    except ValueError as exc:
        raise ConfigurationError(
            f"Unknown detail level '{detail_level}'. Valid options are: "
            f"{', '.join(DetailLevel.all_values())}"
        ) from exc
