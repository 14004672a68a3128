"""Tests for zotero_summarizer/parser.py — docling / pypdf text extraction."""

import logging
from io import BytesIO
from unittest.mock import MagicMock, patch

import pytest
from pypdf import PdfWriter
from pypdf.generic import DecodedStreamObject, DictionaryObject, NameObject

from zotero_summarizer.models import ExtractionError
from zotero_summarizer.parser import extract_text

PDF_BYTES = b"%PDF-1.4 fake content"


def _docling_returning(text: str):
    """Patch DocumentConverter so that conversion yields ``text``."""
    patcher = patch("zotero_summarizer.parser.DocumentConverter")
    mock_cls = patcher.start()
    mock_cls.return_value.convert.return_value.document.export_to_markdown.return_value = text
    return patcher, mock_cls


def _pypdf_reader(
    pages: list[str | None], encrypted: bool = False, decrypts: bool = False
) -> MagicMock:
    reader = MagicMock()
    reader.is_encrypted = encrypted
    reader.decrypt.return_value = 1 if decrypts else 0
    reader.pages = [MagicMock(**{"extract_text.return_value": p}) for p in pages]
    return reader


def _owner_locked_pdf(text: str) -> bytes:
    """A one-page PDF with an owner password and an empty user password."""
    writer = PdfWriter()
    page = writer.add_blank_page(width=300, height=200)
    font = DictionaryObject(
        {
            NameObject("/Type"): NameObject("/Font"),
            NameObject("/Subtype"): NameObject("/Type1"),
            NameObject("/BaseFont"): NameObject("/Helvetica"),
        }
    )
    page[NameObject("/Resources")] = DictionaryObject(
        {NameObject("/Font"): DictionaryObject({NameObject("/F1"): font})}
    )
    content = DecodedStreamObject()
    content.set_data(f"BT /F1 12 Tf 20 100 Td ({text}) Tj ET".encode("latin-1"))
    page[NameObject("/Contents")] = writer._add_object(content)
    writer.encrypt(user_password="", owner_password="secret", algorithm="RC4-128")
    buf = BytesIO()
    writer.write(buf)
    return buf.getvalue()


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------


def test_extract_text_rejects_empty_bytes():
    with pytest.raises(ExtractionError, match="empty"):
        extract_text(b"", name="empty.pdf")


# ---------------------------------------------------------------------------
# docling path
# ---------------------------------------------------------------------------


def test_extract_text_docling_returns_markdown():
    patcher, mock_cls = _docling_returning("# Paper\n\nBody text")
    try:
        result = extract_text(PDF_BYTES, name="paper.pdf", extractor="docling")
    finally:
        patcher.stop()
    assert result == "# Paper\n\nBody text"
    source = mock_cls.return_value.convert.call_args[0][0]
    assert source.name == "paper.pdf"
    assert source.stream.read() == PDF_BYTES


def test_extract_text_docling_failure_raises_extraction_error():
    with patch("zotero_summarizer.parser.DocumentConverter") as mock_cls:
        mock_cls.return_value.convert.side_effect = RuntimeError("docling internal error")
        with pytest.raises(ExtractionError, match="bad.pdf") as exc_info:
            extract_text(PDF_BYTES, name="bad.pdf", extractor="docling")
    assert isinstance(exc_info.value.__cause__, RuntimeError)


def test_extract_text_docling_empty_output_is_an_error():
    patcher, _ = _docling_returning("   \n")
    try:
        with pytest.raises(ExtractionError, match="empty text"):
            extract_text(PDF_BYTES, name="scan.pdf", extractor="docling")
    finally:
        patcher.stop()


# ---------------------------------------------------------------------------
# pypdf path
# ---------------------------------------------------------------------------


def test_extract_text_pypdf_joins_pages():
    reader = _pypdf_reader(["Page one", None, "Page three"])
    with (
        patch("zotero_summarizer.parser.PdfReader", return_value=reader),
        patch("zotero_summarizer.parser.DocumentConverter") as mock_docling,
    ):
        result = extract_text(PDF_BYTES, name="p.pdf", extractor="pypdf")
    assert result == "Page one\n\n\n\nPage three"
    mock_docling.assert_not_called()


def test_extract_text_pypdf_encrypted_without_password_is_an_error():
    reader = _pypdf_reader(["secret"], encrypted=True)
    with patch("zotero_summarizer.parser.PdfReader", return_value=reader):
        with pytest.raises(ExtractionError, match="encrypted"):
            extract_text(PDF_BYTES, name="locked.pdf", extractor="pypdf")
    reader.decrypt.assert_called_once_with("")


def test_extract_text_pypdf_decrypts_empty_user_password():
    reader = _pypdf_reader(["Readable"], encrypted=True, decrypts=True)
    with patch("zotero_summarizer.parser.PdfReader", return_value=reader):
        assert extract_text(PDF_BYTES, name="p.pdf", extractor="pypdf") == "Readable"


def test_extract_text_pypdf_reads_owner_locked_pdf():
    raw = _owner_locked_pdf("Hello research")
    assert extract_text(raw, name="publisher.pdf", extractor="pypdf") == "Hello research"


def test_extract_text_pypdf_not_a_pdf():
    with patch(
        "zotero_summarizer.parser.PdfReader",
        side_effect=ValueError("EOF marker not found"),
    ):
        with pytest.raises(ExtractionError, match="EOF marker"):
            extract_text(b"<html>not a pdf</html>", name="fake.pdf", extractor="pypdf")


# ---------------------------------------------------------------------------
# auto: docling with pypdf fallback
# ---------------------------------------------------------------------------


def test_extract_text_auto_prefers_docling():
    patcher, _ = _docling_returning("docling text")
    try:
        with patch("zotero_summarizer.parser.PdfReader") as mock_reader:
            result = extract_text(PDF_BYTES, name="p.pdf")
    finally:
        patcher.stop()
    assert result == "docling text"
    mock_reader.assert_not_called()


def test_extract_text_auto_falls_back_to_pypdf(caplog):
    reader = _pypdf_reader(["fallback text"])
    with (
        patch("zotero_summarizer.parser.DocumentConverter") as mock_cls,
        patch("zotero_summarizer.parser.PdfReader", return_value=reader),
        caplog.at_level(logging.WARNING, logger="zotero_summarizer.parser"),
    ):
        mock_cls.return_value.convert.side_effect = RuntimeError("layout model crashed")
        result = extract_text(PDF_BYTES, name="p.pdf", extractor="auto")
    assert result == "fallback text"
    assert any("pypdf fallback" in r.message for r in caplog.records)


def test_extract_text_auto_both_fail():
    with (
        patch("zotero_summarizer.parser.DocumentConverter") as mock_cls,
        patch("zotero_summarizer.parser.PdfReader", side_effect=ValueError("bad xref")),
    ):
        mock_cls.return_value.convert.side_effect = RuntimeError("docling failed")
        with pytest.raises(ExtractionError, match="docling and pypdf fallback failed"):
            extract_text(PDF_BYTES, name="corrupt.pdf")


# ---------------------------------------------------------------------------
# Truncation
# ---------------------------------------------------------------------------


def test_extract_text_no_truncation_by_default():
    patcher, _ = _docling_returning("x" * 1000)
    try:
        assert len(extract_text(PDF_BYTES)) == 1000
    finally:
        patcher.stop()


def test_extract_text_truncates_to_max_chars():
    patcher, _ = _docling_returning("x" * 1000)
    try:
        assert extract_text(PDF_BYTES, max_chars=100) == "x" * 100
    finally:
        patcher.stop()
