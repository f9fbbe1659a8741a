"""Page-level input records and the chunks assembled from them."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .enums import ContentMode, DetailLevel


class PageUnit(BaseModel):
    """One page of an extracted document.

    A page carries either its extracted text (text mode) or a reference to a
    rendered page image (image mode), never both.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    page_number: int = Field(ge=1)
    content: str | None = None
    image_reference: Path | None = None

    @model_validator(mode="after")
    def _exactly_one_payload(self) -> "PageUnit":
        has_text = self.content is not None
        has_image = self.image_reference is not None
        if has_text == has_image:
            raise ValueError(
                "PageUnit requires exactly one of content or image_reference"
            )
        return self

    @property
    def mode(self) -> ContentMode:
        if self.content is not None:
            return ContentMode.TEXT
        return ContentMode.IMAGES

    @classmethod
    def text(cls, page_number: int, content: str) -> "PageUnit":
        return cls(page_number=page_number, content=content)

    @classmethod
    def image(cls, page_number: int, image_reference: str | Path) -> "PageUnit":
        return cls(page_number=page_number, image_reference=Path(image_reference))


@dataclass(frozen=True)
class ImageAttachment:
    """A page image to attach to a request.

    The file is only read when a provider builds its request body.
    """

    reference: Path
    detail: DetailLevel


PayloadPart = Union[str, ImageAttachment]
Payload = Union[str, tuple[PayloadPart, ...]]


@dataclass(frozen=True)
class Chunk:
    """A contiguous run of pages assembled into one request body.

    Attributes:
        chunk_id: Sequential identifier starting at 1
        page_start: First page in the chunk (inclusive)
        page_end: Last page in the chunk (inclusive)
        mode: Content mode shared by every page in the chunk
        assembled_payload: A single string in text mode, or an ordered tuple
            of text fragments and image attachments in image mode
        estimated_tokens: Header estimate plus the estimate of every page
        page_numbers: Page numbers covered, ascending
        overflow: True when a single page alone exceeds the chunk budget
    """

    chunk_id: int
    page_start: int
    page_end: int
    mode: ContentMode
    assembled_payload: Payload
    estimated_tokens: int
    page_numbers: tuple[int, ...]
    overflow: bool = False

    @property
    def page_range(self) -> tuple[int, int]:
        return (self.page_start, self.page_end)

    @property
    def page_count(self) -> int:
        return len(self.page_numbers)

    def describe(self) -> str:
        if self.page_start == self.page_end:
            return f"chunk {self.chunk_id} (page {self.page_start})"
        return f"chunk {self.chunk_id} (pages {self.page_start}-{self.page_end})"
