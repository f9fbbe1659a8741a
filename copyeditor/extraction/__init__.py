"""Document extraction into page units."""

from .pdf_extractor import (
    DocumentExtractionError,
    extract_document,
    extract_image_pages,
    extract_text_pages,
)

__all__ = [
    "DocumentExtractionError",
    "extract_document",
    "extract_image_pages",
    "extract_text_pages",
]
