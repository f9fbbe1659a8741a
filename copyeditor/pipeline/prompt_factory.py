"""Assemble the user-message body sent for a chunk of pages.

The header (document type and audience) is framed once per request and the
pages follow it. Token estimates are taken on exactly these strings, so any
change to the framing here changes chunk planning too.
"""

from __future__ import annotations

from typing import Sequence

from copyeditor.models import ContentMode, DetailLevel, ImageAttachment, PageUnit, PayloadPart

FILE_SEPARATOR = "\n\nFile:\n\n"
PAGE_SEPARATOR = "\n\n"
IMAGE_INSTRUCTIONS = (
    "The following pages are from a document that needs copyediting. "
    "Please review each page for errors according to the instructions provided."
)


def format_text_page(page_number: int, content: str) -> str:
    return f"page {page_number}:\n{content}"


def format_image_label(page_number: int) -> str:
    return f"\nPage {page_number}:"


def frame_header(header: str, mode: ContentMode) -> str:
    """Return the header text exactly as it opens the user message."""
    if mode is ContentMode.IMAGES:
        return f"{header}{FILE_SEPARATOR}{IMAGE_INSTRUCTIONS}"
    return f"{header}{FILE_SEPARATOR}"


def assemble_text_payload(header: str, units: Sequence[PageUnit]) -> str:
    pages = PAGE_SEPARATOR.join(
        format_text_page(unit.page_number, unit.content or "") for unit in units
    )
    return frame_header(header, ContentMode.TEXT) + pages


def assemble_image_payload(
    header: str, units: Sequence[PageUnit], detail: DetailLevel
) -> tuple[PayloadPart, ...]:
    parts: list[PayloadPart] = [frame_header(header, ContentMode.IMAGES)]
    for unit in units:
        parts.append(format_image_label(unit.page_number))
        parts.append(ImageAttachment(reference=unit.image_reference, detail=detail))
    return tuple(parts)
