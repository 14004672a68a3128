"""Batch processing — scan the storage tree and summarise each new PDF.

Discovery
---------
The storage root holds one directory per attachment (Zotero's
``storage/<KEY>/`` layout). Only that one level is scanned; files whose name
ends in ``.pdf`` (any case) are candidates. The root itself is listed eagerly
so a missing root fails before any work; subdirectories are walked lazily.

Skip detection
--------------
A candidate is skipped when the MD5 of its bytes is already a key in the
processing log, whatever its path or name. Duplicate copies found later in
the same run are skipped too, since the log is updated after every success.

Per-item flow
-------------
hash → dedup check → extract → LLM call → write JSON + markdown → add record
and save the log. Any failure is caught at the item boundary, recorded as a
``failed`` ``ItemResult``, and the loop moves on; the log is not touched, so
the next run retries the file. ``max_papers`` caps how many new files one run
processes; it is checked between items.
"""

import hashlib
import logging
import sys
from collections.abc import Container, Iterable, Iterator
from datetime import datetime, timezone
from pathlib import Path

from tqdm.auto import tqdm

from zotero_summarizer.llm import ChatClient, create_client
from zotero_summarizer.models import (
    Config,
    ItemResult,
    ProcessingRecord,
    RootDirectoryMissingError,
    RunReport,
)
from zotero_summarizer.output import base_name_for, write_summary
from zotero_summarizer.pipeline import process_pdf
from zotero_summarizer.store import LogStore

logger = logging.getLogger(__name__)

_HASH_CHUNK = 1 << 16


# ---------------------------------------------------------------------------
# PDF discovery
# ---------------------------------------------------------------------------


def discover(root_dir: Path) -> Iterator[Path]:
    """Return a lazy iterator over candidate PDFs one level below ``root_dir``.

    Raises:
        RootDirectoryMissingError: if ``root_dir`` cannot be listed.
    """
    try:
        entries = sorted(root_dir.iterdir())
    except OSError as e:
        raise RootDirectoryMissingError(
            f"Cannot list storage root {root_dir}: {e}"
        ) from e
    return _iter_pdfs(entries)


def _iter_pdfs(entries: Iterable[Path]) -> Iterator[Path]:
    for entry in entries:
        if not entry.is_dir():
            continue
        try:
            files = sorted(entry.iterdir())
        except OSError as e:
            logger.warning("Cannot list %s: %s", entry, e)
            continue
        for path in files:
            if path.name.lower().endswith(".pdf") and path.is_file():
                yield path


# ---------------------------------------------------------------------------
# Dedup
# ---------------------------------------------------------------------------


def compute_file_hash(path: Path) -> str:
    """Return the MD5 hex digest of the file's bytes (dedup key, not security)."""
    hasher = hashlib.md5(usedforsecurity=False)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_HASH_CHUNK), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


def check_candidate(
    pdf_path: Path, store: LogStore, seen: Container[str] = frozenset()
) -> tuple[str, bool]:
    """Hash ``pdf_path`` and decide whether it still needs processing.

    Returns:
        ``(file_hash, is_new)``. ``is_new`` is False when the hash is already
        in ``store`` or in ``seen`` (hashes claimed earlier in this run).

    Raises:
        OSError: if the file cannot be read.
    """
    file_hash = compute_file_hash(pdf_path)
    return file_hash, file_hash not in store and file_hash not in seen


def should_process(pdf_path: Path, store: LogStore) -> bool:
    """Return ``False`` iff the content of ``pdf_path`` is already in the log."""
    return check_candidate(pdf_path, store)[1]


# ---------------------------------------------------------------------------
# Single item
# ---------------------------------------------------------------------------


def process_candidate(
    pdf_path: Path,
    file_hash: str,
    config: Config,
    client: ChatClient,
    store: LogStore,
) -> ItemResult:
    """Summarise one unprocessed PDF, write its outputs, and log it.

    Never raises for per-file problems: any ``Exception`` becomes a
    ``failed`` result and the log is left as it was.
    """
    logger.info("Processing %s...", pdf_path.name)
    try:
        summary = process_pdf(pdf_path, file_hash, config, client)
        _, md_path = write_summary(
            summary, config.export_dir, base_name_for(pdf_path)
        )
        md_path = md_path.resolve()
        store.record(
            file_hash,
            ProcessingRecord(
                source_path=str(pdf_path),
                processed_date=datetime.now(timezone.utc),
                summary_path=str(md_path),
            ),
        )
    except Exception as exc:
        logger.error("Error processing %s: %s", pdf_path.name, exc)
        return ItemResult(
            pdf_path=str(pdf_path),
            status="failed",
            file_hash=file_hash,
            error=str(exc),
        )

    logger.info("Created summary for %s -> %s", pdf_path.name, md_path)
    return ItemResult(
        pdf_path=str(pdf_path),
        status="processed",
        file_hash=file_hash,
        summary_path=str(md_path),
    )


# ---------------------------------------------------------------------------
# Batch runner
# ---------------------------------------------------------------------------


def run_batch(
    config: Config, store: LogStore, client: ChatClient | None = None
) -> RunReport:
    """Process every new PDF under ``config.root_dir`` and return a report.

    For each candidate:

    1. Hash its bytes; if the hash is in ``store``, count it as skipped.
    2. In dry-run mode, count it as pending and do nothing else.
    3. Otherwise extract, summarise, write both outputs, then add a
       ``ProcessingRecord`` and save the log.
    4. On any failure, record it and continue with the next candidate.

    Stops early once ``config.max_papers`` new files were processed (or
    would be, in dry-run mode).

    Args:
        config: Runtime configuration.
        store:  The loaded processing log; updated and saved in place.
        client: Chat client; created from ``config`` when omitted.

    Raises:
        RootDirectoryMissingError: if the storage root cannot be listed.
    """
    candidates = discover(config.root_dir)
    logger.info("Scanning %s", config.root_dir)
    logger.info("Processing-log entries loaded: %d", len(store))
    if config.max_papers is not None:
        logger.info("At most %d new paper(s) this run", config.max_papers)

    if client is None and not config.dry_run:
        client = create_client(config)

    report = RunReport()
    pending_hashes: set[str] = set()
    show_progress = sys.stderr.isatty()

    for pdf_path in tqdm(
        candidates, desc="Scan", unit="pdf", disable=not show_progress, leave=False
    ):
        try:
            file_hash, is_new = check_candidate(pdf_path, store, pending_hashes)
        except OSError as exc:
            logger.error("Error hashing %s: %s", pdf_path.name, exc)
            report.add(
                ItemResult(pdf_path=str(pdf_path), status="failed", error=str(exc))
            )
            continue

        if not is_new:
            logger.info("Skipping already processed file: %s", pdf_path.name)
            report.add(
                ItemResult(pdf_path=str(pdf_path), status="skipped", file_hash=file_hash)
            )
            continue

        if config.dry_run:
            logger.info("Would process: %s", pdf_path)
            pending_hashes.add(file_hash)
            report.add(
                ItemResult(pdf_path=str(pdf_path), status="pending", file_hash=file_hash)
            )
        else:
            report.add(process_candidate(pdf_path, file_hash, config, client, store))

        if _cap_reached(report, config.max_papers):
            logger.info("Reached max_papers=%d; stopping scan", config.max_papers)
            report.cap_reached = True
            break

    report.log_size = len(store)
    return report


def _cap_reached(report: RunReport, max_papers: int | None) -> bool:
    if max_papers is None:
        return False
    return report.processed + report.pending >= max_papers
