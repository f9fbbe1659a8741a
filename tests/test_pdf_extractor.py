from __future__ import annotations

import sys
from pathlib import Path

import fitz
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from copyeditor.extraction import (
    DocumentExtractionError,
    extract_document,
    extract_image_pages,
    extract_text_pages,
)
from copyeditor.models import ContentMode


def _make_pdf(path: Path, texts: list[str]) -> Path:
    doc = fitz.open()
    for text in texts:
        page = doc.new_page()
        page.insert_text((72, 72), text)
    doc.save(str(path))
    doc.close()
    return path


def test_text_pages_are_numbered_from_one(tmp_path: Path) -> None:
    pdf = _make_pdf(tmp_path / "doc.pdf", ["First page", "Second page", "Third page"])

    units = extract_text_pages(pdf)

    assert [u.page_number for u in units] == [1, 2, 3]
    assert "Second page" in units[1].content
    assert all(u.mode is ContentMode.TEXT for u in units)


def test_image_pages_render_png_files(tmp_path: Path) -> None:
    pdf = _make_pdf(tmp_path / "doc.pdf", ["One", "Two"])

    units = extract_image_pages(pdf, tmp_path / "images", dpi=72)

    assert [u.page_number for u in units] == [1, 2]
    for unit in units:
        assert unit.image_reference.exists()
        assert unit.image_reference.read_bytes().startswith(b"\x89PNG")
    assert units[0].image_reference.name == "doc_page_0001.png"


def test_extract_document_dispatches_on_mode(tmp_path: Path) -> None:
    pdf = _make_pdf(tmp_path / "doc.pdf", ["Only page"])

    assert extract_document(pdf, "text")[0].content is not None
    assert extract_document(pdf, ContentMode.IMAGES, image_dir=tmp_path / "img", dpi=50)[0].image_reference is not None


def test_image_mode_requires_image_dir(tmp_path: Path) -> None:
    pdf = _make_pdf(tmp_path / "doc.pdf", ["Only page"])

    with pytest.raises(DocumentExtractionError):
        extract_document(pdf, "images")


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(DocumentExtractionError, match="not found"):
        extract_text_pages(tmp_path / "missing.pdf")


def test_non_pdf_file(tmp_path: Path) -> None:
    bogus = tmp_path / "notes.pdf"
    bogus.write_bytes(b"this is not a pdf at all")

    with pytest.raises(DocumentExtractionError):
        extract_text_pages(bogus)
