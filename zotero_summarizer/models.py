"""Pydantic models, dataclass Config, and exceptions for the summarizer pipeline.

This module only defines the *schema* of the data that flows through the
pipeline — the per-paper summary record, the processing-log entries, per-item
run results, and runtime configuration.
"""

import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# ---------------------------------------------------------------------------
# Paper summary
# ---------------------------------------------------------------------------


class PaperSummary(BaseModel):
    """The summary record written to ``{base_name}_summary.json``.

    Only ``markdown_content`` (the raw model reply) is populated by the
    pipeline. The structured fields are part of the output contract but are
    not parsed out of the reply; they stay ``None`` / empty.

    Serialized with camelCase keys (``researchQuestions``, ``keyFindings``,
    ``processedDate``, ``fileHash``, ``markdownContent``, ``sourceFileName``).
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    title: str | None = None
    authors: list[str] = Field(default_factory=list)
    tags: set[str] = Field(default_factory=set)
    research_questions: list[str] = Field(default_factory=list)
    methodology: str | None = None
    key_findings: list[str] = Field(default_factory=list)
    processed_date: datetime
    file_hash: str
    markdown_content: str
    source_file_name: str


# ---------------------------------------------------------------------------
# Processing log
# ---------------------------------------------------------------------------


class ProcessingRecord(BaseModel):
    """One entry of the processing log, keyed by the file's content hash.

    Serialized as ``{"path", "processedDate", "summaryPath"}``.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    source_path: str = Field(alias="path")
    processed_date: datetime = Field(alias="processedDate")
    summary_path: str = Field(alias="summaryPath")


# ---------------------------------------------------------------------------
# Run reporting
# ---------------------------------------------------------------------------

ItemStatus = Literal["processed", "skipped", "failed", "pending"]
"""Outcome of one candidate PDF. ``pending`` is only produced by dry runs."""


class ItemResult(BaseModel):
    """Outcome of a single candidate PDF within a run."""

    pdf_path: str
    status: ItemStatus
    file_hash: str | None = None
    error: str | None = None
    summary_path: str | None = None


class RunReport(BaseModel):
    """Aggregate result of one run over the storage tree."""

    processed: int = 0
    skipped: int = 0
    failed: int = 0
    pending: int = 0
    log_size: int = 0
    cap_reached: bool = False
    results: list[ItemResult] = Field(default_factory=list)

    @property
    def failed_items(self) -> list[ItemResult]:
        return [r for r in self.results if r.status == "failed"]

    def add(self, result: ItemResult) -> None:
        """Append ``result`` and bump the counter for its status."""
        self.results.append(result)
        setattr(self, result.status, getattr(self, result.status) + 1)


# ---------------------------------------------------------------------------
# Config (dataclass — not pydantic; holds runtime settings)
# ---------------------------------------------------------------------------


def _default_root_dir() -> Path:
    return Path(os.environ.get("ZOTERO_STORAGE", Path.home() / "Zotero" / "storage"))


@dataclass
class Config:
    """Runtime configuration for the summarizer.

    All fields correspond to CLI flags.

    Attributes:
        root_dir:    Reference-manager storage root. One subdirectory per
                     paper, each holding one or more PDFs.
        export_dir:  Flat directory receiving ``{dir}_summary.json`` and
                     ``{dir}_summary.md`` per processed paper.
        log_path:    JSON processing log (content hash -> record).
        max_papers:  Cap on newly processed files per run. ``None`` means
                     unbounded. Checked between items only.
        base_url:    OpenAI-compatible API base URL. Ollama serves one at
                     ``http://localhost:11434/v1``.
        model:       Model identifier passed to the API.
        api_key:     API key for the backend. ``None`` means the key is read
                     from ``LLM_API_KEY``; if that is also unset the
                     placeholder ``"ollama"`` is used (Ollama ignores it).
        extractor:   PDF text extraction strategy: ``auto`` (docling with
                     pypdf fallback), ``docling`` or ``pypdf``.
        max_chars:   If set, truncate extracted text to this many characters
                     before the model call. ``None`` sends the full text.
        timeout_s:   If set, forwarded to the client as the request timeout.
                     ``None`` leaves the client library's default in place.
        dry_run:     If True, report candidates without extracting, calling
                     the model, or writing anything.
        verbose:     If True, log at DEBUG level.
    """

    root_dir: Path = field(default_factory=_default_root_dir)
    export_dir: Path = Path("exports")
    log_path: Path = Path("processed_papers_log.json")
    max_papers: int | None = None
    base_url: str = "http://localhost:11434/v1"
    model: str = "llama3.2:3b"
    api_key: str | None = None
    extractor: Literal["auto", "docling", "pypdf"] = "auto"
    max_chars: int | None = None
    timeout_s: int | None = None
    dry_run: bool = False
    verbose: bool = False

    def __post_init__(self) -> None:
        for name in ("max_papers", "max_chars"):
            value = getattr(self, name)
            if value is not None and value < 1:
                raise ValueError(f"{name} must be a positive integer or None, got {value}")


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class PipelineError(Exception):
    """Base class for failures confined to a single PDF.

    The run loop catches these at the item boundary; the file is left
    unlogged so the next run retries it.

    Attributes:
        pdf_path: Path to the PDF that failed (``None`` if not known yet).
        cause:    The original exception, if any.
    """

    def __init__(
        self,
        message: str,
        pdf_path: Path | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.pdf_path = pdf_path
        self.cause = cause
        super().__init__(message)


class ExtractionError(PipelineError):
    """Raised when the PDF bytes cannot be turned into text (corrupt,
    encrypted, empty, or not actually a PDF)."""


class ModelCallError(PipelineError):
    """Raised when the model backend is unreachable or returns an error."""


class OutputWriteError(PipelineError):
    """Raised when a summary file or the processing log cannot be written."""


class FatalRunError(Exception):
    """Base class for conditions that abort the whole run."""


class LogStoreCorruptError(FatalRunError):
    """Raised when the processing log exists but is not a valid mapping."""


class RootDirectoryMissingError(FatalRunError):
    """Raised when the storage root cannot be listed."""
