"""Partition a document's pages into chunks that fit a model's context window.

Pages are never split. A chunk is closed before adding a page whose cost
would push it over the available budget, or (image mode) once it holds the
maximum number of images. A single page that cannot fit even on its own is
still sent, alone, and flagged as an overflow.
"""

from __future__ import annotations

import logging
from typing import Iterable, Protocol, Sequence

from copyeditor.models import Chunk, ContentMode, DetailLevel, PageUnit

from .config import ConfigurationError
from .prompt_factory import (
    assemble_image_payload,
    assemble_text_payload,
    format_text_page,
    frame_header,
)

logger = logging.getLogger(__name__)

SAFETY_NUMERATOR = 9
SAFETY_DENOMINATOR = 10


class Estimator(Protocol):
    def estimate(
        self,
        unit: str | PageUnit,
        mode: ContentMode | str,
        detail_level: DetailLevel | str | None = None,
    ) -> int:
        ...


def safety_budget(window_budget: int) -> int:
    """Return 90% of the window, rounded down."""
    return window_budget * SAFETY_NUMERATOR // SAFETY_DENOMINATOR


def _ordered_units(units: Iterable[PageUnit]) -> tuple[list[PageUnit], ContentMode | None]:
    ordered = sorted(units, key=lambda unit: unit.page_number)
    if not ordered:
        return ordered, None

    seen: set[int] = set()
    for unit in ordered:
        if unit.page_number in seen:
            raise ConfigurationError(f"Duplicate page number {unit.page_number}")
        seen.add(unit.page_number)

    modes = {unit.mode for unit in ordered}
    if len(modes) > 1:
        raise ConfigurationError(
            "A document must contain only text pages or only image pages"
        )
    return ordered, ordered[0].mode


def _unit_cost(
    unit: PageUnit, mode: ContentMode, estimator: Estimator, detail: DetailLevel
) -> int:
    if mode is ContentMode.TEXT:
        return estimator.estimate(
            format_text_page(unit.page_number, unit.content or ""), mode
        )
    return estimator.estimate(unit, mode, detail)


def _build_chunk(
    chunk_id: int,
    units: Sequence[PageUnit],
    mode: ContentMode,
    header: str,
    detail: DetailLevel,
    estimated_tokens: int,
    overflow: bool = False,
) -> Chunk:
    if mode is ContentMode.TEXT:
        payload = assemble_text_payload(header, units)
    else:
        payload = assemble_image_payload(header, units, detail)
    page_numbers = tuple(unit.page_number for unit in units)
    return Chunk(
        chunk_id=chunk_id,
        page_start=page_numbers[0],
        page_end=page_numbers[-1],
        mode=mode,
        assembled_payload=payload,
        estimated_tokens=estimated_tokens,
        page_numbers=page_numbers,
        overflow=overflow,
    )


def plan_chunks(
    units: Iterable[PageUnit],
    header: str,
    window_budget: int,
    *,
    estimator: Estimator,
    max_units_per_chunk: int | None = None,
    detail: DetailLevel | str = DetailLevel.HIGH,
) -> list[Chunk]:
    """Split ``units`` into ordered, page-aligned chunks.

    Args:
        units: Pages of a single document, all text or all images
        header: Context header sent at the start of every request
        window_budget: Model context window in tokens
        estimator: Object with an ``estimate(unit, mode, detail)`` method
        max_units_per_chunk: Cap on pages per chunk, applied in image mode only
        detail: Image detail level used for image costs and attachments

    Returns:
        Chunks with sequential ids from 1. Zero units give zero chunks.

    Raises:
        ConfigurationError: If the budget, cap or input pages are unusable.
    """
    if window_budget <= 0:
        raise ConfigurationError(f"window_budget must be positive, got {window_budget}")
    if max_units_per_chunk is not None and max_units_per_chunk < 1:
        raise ConfigurationError(
            f"max_units_per_chunk must be at least 1, got {max_units_per_chunk}"
        )
    try:
        detail = DetailLevel(detail)
    except ValueError as exc:
        raise ConfigurationError(f"Unknown detail level '{detail}'") from exc

    ordered, mode = _ordered_units(units)
    if mode is None:
        return []

    budget = safety_budget(window_budget)
    header_tokens = estimator.estimate(frame_header(header, mode), ContentMode.TEXT)
    available = budget - header_tokens
    if available <= 0:
        raise ConfigurationError(
            f"Header needs {header_tokens} tokens, leaving no room within the "
            f"safety budget of {budget} tokens"
        )

    cap = max_units_per_chunk if mode is ContentMode.IMAGES else None

    chunks: list[Chunk] = []
    current: list[PageUnit] = []
    current_tokens = 0

    def close_current() -> None:
        nonlocal current, current_tokens
        if not current:
            return
        chunks.append(
            _build_chunk(
                len(chunks) + 1,
                current,
                mode,
                header,
                detail,
                header_tokens + current_tokens,
            )
        )
        current = []
        current_tokens = 0

    for unit in ordered:
        cost = _unit_cost(unit, mode, estimator, detail)

        if cost > available:
            close_current()
            logger.warning(
                "Page %d needs %d tokens, more than the %d available per chunk; "
                "sending it on its own",
                unit.page_number,
                cost,
                available,
            )
            chunks.append(
                _build_chunk(
                    len(chunks) + 1,
                    [unit],
                    mode,
                    header,
                    detail,
                    header_tokens + cost,
                    overflow=True,
                )
            )
            continue

        if current and (
            current_tokens + cost > available
            or (cap is not None and len(current) >= cap)
        ):
            close_current()

        current.append(unit)
        current_tokens += cost

    close_current()

    logger.debug(
        "Planned %d chunk(s) for %d page(s) (budget %d, header %d)",
        len(chunks),
        len(ordered),
        budget,
        header_tokens,
    )
    return chunks
