"""PDF page extraction with PyMuPDF."""

from __future__ import annotations

import logging
from pathlib import Path

import fitz  # PyMuPDF

from copyeditor.models import ContentMode, PageUnit

logger = logging.getLogger(__name__)

DEFAULT_DPI = 150


class DocumentExtractionError(Exception):
    """Raised when a document cannot be opened or has no pages."""


def _open_pdf(pdf_path: str | Path) -> fitz.Document:
    pdf_path = Path(pdf_path)
    if not pdf_path.is_file():
        raise DocumentExtractionError(f"PDF file not found: {pdf_path}")

    try:
        doc = fitz.open(pdf_path)
    except RuntimeError as exc:
        raise DocumentExtractionError(f"Failed to open PDF {pdf_path}: {exc}") from exc

    if not doc.is_pdf:
        doc.close()
        raise DocumentExtractionError(f"Not a PDF document: {pdf_path}")
    if doc.page_count == 0:
        doc.close()
        raise DocumentExtractionError(f"PDF has no pages: {pdf_path}")
    return doc


def extract_text_pages(pdf_path: str | Path) -> list[PageUnit]:
    """Return one text unit per page, numbered from 1."""
    with _open_pdf(pdf_path) as doc:
        units = [
            PageUnit.text(index + 1, page.get_text())
            for index, page in enumerate(doc)
        ]

    empty = [unit.page_number for unit in units if not (unit.content or "").strip()]
    if empty:
        logger.warning(
            "%d page(s) of %s have no extractable text (scanned pages?): %s",
            len(empty),
            Path(pdf_path).name,
            ", ".join(str(n) for n in empty),
        )
    logger.info("Extracted text from %d page(s) of %s", len(units), Path(pdf_path).name)
    return units


def extract_image_pages(
    pdf_path: str | Path,
    image_dir: str | Path,
    *,
    dpi: int = DEFAULT_DPI,
) -> list[PageUnit]:
    """Render every page to ``image_dir`` as PNG and return one image unit per page."""
    if dpi <= 0:
        raise DocumentExtractionError(f"dpi must be positive, got {dpi}")

    out_dir = Path(image_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    stem = Path(pdf_path).stem
    matrix = fitz.Matrix(dpi / 72, dpi / 72)

    units: list[PageUnit] = []
    with _open_pdf(pdf_path) as doc:
        for index, page in enumerate(doc):
            page_number = index + 1
            image_path = out_dir / f"{stem}_page_{page_number:04d}.png"
            pix = page.get_pixmap(matrix=matrix, alpha=False)
            pix.save(str(image_path))
            units.append(PageUnit.image(page_number, image_path))

    logger.info(
        "Rendered %d page image(s) of %s at %d dpi into %s",
        len(units),
        Path(pdf_path).name,
        dpi,
        out_dir,
    )
    return units


def extract_document(
    pdf_path: str | Path,
    mode: ContentMode | str,
    *,
    image_dir: str | Path | None = None,
    dpi: int = DEFAULT_DPI,
) -> list[PageUnit]:
    """Extract ``pdf_path`` as ordered page units for ``mode``.

    Image mode needs ``image_dir``; the rendered PNGs must outlive the run.
    """
    mode = ContentMode(mode)
    if mode is ContentMode.TEXT:
        return extract_text_pages(pdf_path)
    if image_dir is None:
        raise DocumentExtractionError("Image mode requires an image_dir for rendered pages")
    return extract_image_pages(pdf_path, image_dir, dpi=dpi)
