"""PDF to text extraction — thin wrapper around docling with a pypdf fallback.

Works on raw bytes held in memory: nothing is written next to the source PDF,
since the source tree belongs to the reference manager.
"""

import logging
from io import BytesIO

from docling.datamodel.base_models import DocumentStream
from docling.document_converter import DocumentConverter
from pypdf import PdfReader

from zotero_summarizer.models import ExtractionError

logger = logging.getLogger(__name__)


def extract_text(
    raw: bytes,
    name: str = "document.pdf",
    extractor: str = "auto",
    max_chars: int | None = None,
) -> str:
    """Extract the text content of a PDF given as bytes.

    Args:
        raw:       The PDF file content.
        name:      File name, used for docling's stream and in messages.
        extractor: ``auto`` (docling with pypdf fallback), ``docling``
                   (docling only), or ``pypdf`` (pypdf only).
        max_chars: If set, truncate the result to this many characters.

    Returns:
        The extracted text (markdown when docling succeeds).

    Raises:
        ExtractionError: for empty input, unparseable or encrypted PDFs, and
            PDFs that yield no text.
    """
    if not raw:
        raise ExtractionError(f"Failed to parse {name}: file is empty")

    logger.info("Running %s extraction on: %s", extractor, name)
    text = _extract_text(raw, name, extractor=extractor)
    logger.info("Extraction complete: %s chars", f"{len(text):,}")

    if max_chars is not None and len(text) > max_chars:
        logger.debug("Truncating %s to %s chars", name, f"{max_chars:,}")
        return text[:max_chars]
    return text


def _extract_text(raw: bytes, name: str, extractor: str) -> str:
    if extractor == "docling":
        return _run_docling(raw, name)
    if extractor == "pypdf":
        return _extract_text_with_pypdf(raw, name)
    return _run_docling_with_fallback(raw, name)


def _run_docling_with_fallback(raw: bytes, name: str) -> str:
    """Run docling, then fall back to pypdf text extraction on failure."""
    try:
        return _run_docling(raw, name)
    except ExtractionError as docling_exc:
        logger.warning(
            "Docling parse failed for %s; attempting pypdf fallback: %s",
            name,
            docling_exc,
        )
        try:
            text = _extract_text_with_pypdf(raw, name)
        except ExtractionError as fallback_exc:
            root_cause = docling_exc.__cause__ or docling_exc
            raise ExtractionError(
                f"Failed to parse {name}: docling and pypdf fallback failed ({fallback_exc})"
            ) from root_cause

        logger.warning(
            "Using pypdf fallback text extraction for %s (%s chars)",
            name,
            f"{len(text):,}",
        )
        return text


def _run_docling(raw: bytes, name: str) -> str:
    """Run docling on the PDF bytes and return the full markdown string.

    Raises:
        ExtractionError: wrapping any exception raised by docling, or if the
            document converts to empty text.
    """
    try:
        converter = DocumentConverter()
        result = converter.convert(DocumentStream(name=name, stream=BytesIO(raw)))
        text = result.document.export_to_markdown().strip()
    except Exception as e:
        raise ExtractionError(f"Failed to parse {name}: {e}", cause=e) from e
    if not text:
        raise ExtractionError(f"Failed to parse {name}: docling extracted empty text")
    return text


def _extract_text_with_pypdf(raw: bytes, name: str) -> str:
    """Extract text with pypdf as a robust fallback path."""
    try:
        reader = PdfReader(BytesIO(raw))
        if reader.is_encrypted and not reader.decrypt(""):
            raise ExtractionError(f"Failed to parse {name}: PDF is encrypted")
        pages: list[str] = []
        for page in reader.pages:
            pages.append(page.extract_text() or "")
        text = "\n\n".join(pages).strip()
        if not text:
            raise ExtractionError(f"Failed to parse {name}: pypdf extracted empty text")
        return text
    except ExtractionError:
        raise
    except Exception as e:
        raise ExtractionError(
            f"Failed to parse {name}: pypdf error: {e}", cause=e
        ) from e
