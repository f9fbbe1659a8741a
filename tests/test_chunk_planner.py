from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from copyeditor.models import ContentMode, DetailLevel, ImageAttachment, PageUnit
from copyeditor.pipeline.chunk_planner import plan_chunks, safety_budget
from copyeditor.pipeline.config import ConfigurationError
from copyeditor.pipeline.tokens import IMAGE_TOKEN_COSTS


class _TagEstimator:
    """Counts occurrences of ``tok`` in text; images use the real fixed costs."""

    def __init__(self) -> None:
        self.calls: list[tuple[object, ContentMode]] = []

    def estimate(self, unit, mode, detail_level=None) -> int:
        mode = ContentMode(mode)
        self.calls.append((unit, mode))
        if mode is ContentMode.IMAGES:
            return IMAGE_TOKEN_COSTS[DetailLevel(detail_level)]
        text = unit if isinstance(unit, str) else unit.content
        return text.count("tok")


def _text_units(costs: list[int]) -> list[PageUnit]:
    return [PageUnit.text(i, "tok " * cost) for i, cost in enumerate(costs, start=1)]


def _image_units(count: int) -> list[PageUnit]:
    return [PageUnit.image(i, f"page_{i:04d}.png") for i in range(1, count + 1)]


HEADER_50 = "tok " * 50


def test_safety_budget_rounds_down() -> None:
    assert safety_budget(400_000) == 360_000
    assert safety_budget(1001) == 900
    assert safety_budget(9) == 8


def test_text_document_that_fits_is_one_chunk() -> None:
    units = _text_units([4000] * 25)

    chunks = plan_chunks(units, HEADER_50, 400_000, estimator=_TagEstimator())

    assert len(chunks) == 1
    chunk = chunks[0]
    assert chunk.chunk_id == 1
    assert chunk.page_range == (1, 25)
    assert chunk.estimated_tokens == 100_050
    assert not chunk.overflow


def test_image_document_splits_on_image_cap() -> None:
    chunks = plan_chunks(
        _image_units(45),
        "---\nType of Document: Report\nAudience: Staff\n---",
        180_000,
        estimator=_TagEstimator(),
        max_units_per_chunk=20,
        detail=DetailLevel.HIGH,
    )

    assert [c.page_range for c in chunks] == [(1, 20), (21, 40), (41, 45)]
    assert [c.page_count for c in chunks] == [20, 20, 5]
    assert [c.chunk_id for c in chunks] == [1, 2, 3]
    assert all(c.mode is ContentMode.IMAGES for c in chunks)


def test_every_page_appears_once_in_order() -> None:
    units = _text_units([300, 200, 400, 100, 350, 50, 500, 250])

    chunks = plan_chunks(units, HEADER_50, 1000, estimator=_TagEstimator())

    covered = [n for c in chunks for n in c.page_numbers]
    assert covered == list(range(1, 9))
    for chunk in chunks:
        assert chunk.page_numbers == tuple(range(chunk.page_start, chunk.page_end + 1))
    assert [c.chunk_id for c in chunks] == list(range(1, len(chunks) + 1))


def test_chunks_stay_within_safety_budget() -> None:
    units = _text_units([300, 200, 400, 100, 350, 50, 500, 250])

    chunks = plan_chunks(units, HEADER_50, 1000, estimator=_TagEstimator())

    assert len(chunks) > 1
    for chunk in chunks:
        assert chunk.estimated_tokens <= safety_budget(1000)


def test_page_that_exactly_fills_the_budget_is_kept() -> None:
    # 900 safety budget - 50 header leaves 850
    fits = plan_chunks(_text_units([425, 425]), HEADER_50, 1000, estimator=_TagEstimator())
    spills = plan_chunks(_text_units([425, 426]), HEADER_50, 1000, estimator=_TagEstimator())

    assert [c.page_range for c in fits] == [(1, 2)]
    assert [c.page_range for c in spills] == [(1, 1), (2, 2)]


def test_image_cap_applies_even_when_tokens_fit() -> None:
    chunks = plan_chunks(
        _image_units(7),
        "header",
        1_000_000,
        estimator=_TagEstimator(),
        max_units_per_chunk=3,
        detail="low",
    )

    assert [c.page_count for c in chunks] == [3, 3, 1]
    assert all(c.page_count <= 3 for c in chunks)


def test_unit_cap_is_ignored_in_text_mode() -> None:
    chunks = plan_chunks(
        _text_units([10] * 30),
        HEADER_50,
        400_000,
        estimator=_TagEstimator(),
        max_units_per_chunk=5,
    )

    assert len(chunks) == 1


def test_oversized_page_gets_its_own_overflow_chunk(
    caplog: pytest.LogCaptureFixture,
) -> None:
    caplog.set_level(logging.WARNING, logger="copyeditor.pipeline.chunk_planner")
    units = _text_units([100, 2000, 100])

    chunks = plan_chunks(units, HEADER_50, 1000, estimator=_TagEstimator())

    assert [c.page_range for c in chunks] == [(1, 1), (2, 2), (3, 3)]
    assert [c.overflow for c in chunks] == [False, True, False]
    assert chunks[1].estimated_tokens == 2050
    assert any("Page 2" in r.getMessage() for r in caplog.records)


def test_header_that_leaves_no_room_is_rejected() -> None:
    with pytest.raises(ConfigurationError):
        plan_chunks(_text_units([1]), "tok " * 900, 1000, estimator=_TagEstimator())


@pytest.mark.parametrize("window", [0, -10])
def test_non_positive_window_is_rejected(window: int) -> None:
    with pytest.raises(ConfigurationError):
        plan_chunks(_text_units([1]), HEADER_50, window, estimator=_TagEstimator())


def test_non_positive_unit_cap_is_rejected() -> None:
    with pytest.raises(ConfigurationError):
        plan_chunks(
            _image_units(2),
            "header",
            180_000,
            estimator=_TagEstimator(),
            max_units_per_chunk=0,
        )


def test_zero_units_give_zero_chunks() -> None:
    assert plan_chunks([], HEADER_50, 1000, estimator=_TagEstimator()) == []


def test_units_are_planned_in_page_order() -> None:
    units = list(reversed(_text_units([10, 10, 10])))

    chunks = plan_chunks(units, HEADER_50, 1000, estimator=_TagEstimator())

    assert chunks[0].page_numbers == (1, 2, 3)


def test_duplicate_page_numbers_are_rejected() -> None:
    units = [PageUnit.text(1, "a"), PageUnit.text(1, "b")]

    with pytest.raises(ConfigurationError, match="Duplicate"):
        plan_chunks(units, HEADER_50, 1000, estimator=_TagEstimator())


def test_mixed_text_and_image_pages_are_rejected() -> None:
    units = [PageUnit.text(1, "a"), PageUnit.image(2, "p.png")]

    with pytest.raises(ConfigurationError):
        plan_chunks(units, HEADER_50, 1000, estimator=_TagEstimator())


def test_text_payload_wire_format() -> None:
    units = [PageUnit.text(1, "First page."), PageUnit.text(2, "Second page.")]

    chunks = plan_chunks(units, "HEADER", 10_000, estimator=_TagEstimator())

    assert chunks[0].assembled_payload == (
        "HEADER\n\nFile:\n\npage 1:\nFirst page.\n\npage 2:\nSecond page."
    )


def test_image_payload_interleaves_labels_and_attachments() -> None:
    chunks = plan_chunks(
        _image_units(2),
        "HEADER",
        180_000,
        estimator=_TagEstimator(),
        max_units_per_chunk=20,
        detail=DetailLevel.LOW,
    )

    payload = chunks[0].assembled_payload
    assert isinstance(payload, tuple)
    assert payload[0].startswith("HEADER\n\nFile:\n\nThe following pages")
    assert payload[1] == "\nPage 1:"
    assert payload[2] == ImageAttachment(Path("page_0001.png"), DetailLevel.LOW)
    assert payload[3] == "\nPage 2:"
    assert payload[4].reference == Path("page_0002.png")


def test_text_pages_are_measured_with_their_page_label() -> None:
    estimator = _TagEstimator()

    plan_chunks([PageUnit.text(7, "tok")], "HEADER", 10_000, estimator=estimator)

    measured = [unit for unit, mode in estimator.calls if mode is ContentMode.TEXT]
    assert "page 7:\ntok" in measured
    assert "HEADER\n\nFile:\n\n" in measured
