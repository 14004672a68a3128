"""Per-paper orchestration — turns one PDF into a ``PaperSummary``.

Steps: read bytes → extract text → one LLM call → wrap the reply. Writing
the outputs and updating the processing log happen in ``batch.py``.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path

from zotero_summarizer.llm import ChatClient, summarize
from zotero_summarizer.models import Config, ExtractionError, PaperSummary, PipelineError
from zotero_summarizer.parser import extract_text

logger = logging.getLogger(__name__)


def build_summary(
    client: ChatClient, paper_text: str, file_name: str, file_hash: str
) -> PaperSummary:
    """Summarise ``paper_text`` and wrap the reply in a ``PaperSummary``.

    Only ``markdown_content`` is filled from the reply; the structured fields
    (title, authors, tags, ...) are left unpopulated.

    Raises:
        ModelCallError: if the model call fails.
    """
    markdown = summarize(client, paper_text)
    return PaperSummary(
        processed_date=datetime.now(timezone.utc),
        file_hash=file_hash,
        markdown_content=markdown,
        source_file_name=file_name,
    )


def process_pdf(
    pdf_path: Path, file_hash: str, config: Config, client: ChatClient
) -> PaperSummary:
    """Process a single PDF end-to-end and return its ``PaperSummary``.

    Raises:
        PipelineError: an ``ExtractionError`` or ``ModelCallError`` with
            ``pdf_path`` attached.
    """
    try:
        raw = _read_pdf(pdf_path)
        paper_text = extract_text(
            raw,
            name=pdf_path.name,
            extractor=config.extractor,
            max_chars=config.max_chars,
        )
        return build_summary(client, paper_text, pdf_path.name, file_hash)
    except PipelineError as e:
        e.pdf_path = pdf_path
        raise


def _read_pdf(pdf_path: Path) -> bytes:
    try:
        return pdf_path.read_bytes()
    except OSError as e:
        raise ExtractionError(f"Cannot read {pdf_path}: {e}", cause=e) from e
