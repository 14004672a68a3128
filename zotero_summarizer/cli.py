"""Command-line interface for the Zotero paper summarizer.

Entry point: ``summarize-zotero`` (configured in ``pyproject.toml``).

Usage:
    summarize-zotero [--root DIR] [options]   # scan the storage tree
    summarize-zotero --file PDF [options]     # single-file mode

Key options:
    --root, --export-dir, --processed-log, --max-papers, --dry-run,
    --model, --base-url, --extractor, --max-chars, --timeout,
    --verbose/--no-verbose, --log-file.

Environment (``.env`` is honoured): ``ZOTERO_STORAGE``, ``LLM_MODEL``,
``LLM_BASE_URL``, ``LLM_API_KEY``.

Before processing (except in dry-run mode), the CLI performs a lightweight
reachability check against the root host of the configured ``--base-url``.
A corrupt processing log or an unreadable storage root aborts with status 1;
individual failed papers do not change the exit status of a batch run.
"""

import argparse
import logging
import os
import sys
import urllib.error
import urllib.parse
import urllib.request
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv

from zotero_summarizer.batch import check_candidate, process_candidate, run_batch
from zotero_summarizer.llm import create_client
from zotero_summarizer.log import setup_logging
from zotero_summarizer.models import Config, FatalRunError, RunReport
from zotero_summarizer.store import LogStore

logger = logging.getLogger(__name__)

_DEFAULT_MODEL = "llama3.2:3b"
_DEFAULT_BASE_URL = "http://localhost:11434/v1"


def _positive_int(value: str) -> int:
    parsed = int(value)
    if parsed < 1:
        raise argparse.ArgumentTypeError("must be >= 1")
    return parsed


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    """Parse CLI arguments, validate environment, and run the summarizer."""
    load_dotenv()

    parser = _build_parser()
    args = parser.parse_args()

    # Configure logging before any other output
    if args.log_file:
        log_file = Path(args.log_file)
    else:
        ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = Path("logs") / f"run_{ts}.log"
    setup_logging(verbose=args.verbose, log_file=log_file)

    config = Config(
        root_dir=Path(args.root).expanduser(),
        export_dir=Path(args.export_dir),
        log_path=Path(args.processed_log),
        max_papers=args.max_papers,
        base_url=args.base_url,
        model=args.model,
        extractor=args.extractor,
        max_chars=args.max_chars,
        timeout_s=args.timeout,
        dry_run=args.dry_run,
        verbose=args.verbose,
    )

    # Validate the model backend is reachable before starting any work
    if not args.dry_run:
        _check_backend(config.base_url)

    try:
        store = LogStore.load(config.log_path)
        if args.file:
            _run_single(Path(args.file), config, store)
        else:
            _run_batch(config, store)
    except FatalRunError as exc:
        logger.error("%s", exc)
        sys.exit(1)


# ---------------------------------------------------------------------------
# Single-file mode
# ---------------------------------------------------------------------------


def _run_single(pdf_path: Path, config: Config, store: LogStore) -> None:
    """Process one PDF with the same dedup, output, and log rules as a batch."""
    if not pdf_path.is_file():
        logger.error("File not found: %s", pdf_path)
        sys.exit(1)

    try:
        file_hash, is_new = check_candidate(pdf_path, store)
    except OSError as exc:
        logger.error("Error hashing %s: %s", pdf_path.name, exc)
        sys.exit(1)
    if not is_new:
        logger.info(
            "Already processed: %s (summary: %s)",
            pdf_path.name,
            store.get(file_hash).summary_path,
        )
        sys.exit(0)

    if config.dry_run:
        logger.info("Would process: %s", pdf_path)
        return

    result = process_candidate(
        pdf_path, file_hash, config, create_client(config), store
    )
    if result.status == "failed":
        sys.exit(1)


# ---------------------------------------------------------------------------
# Batch mode
# ---------------------------------------------------------------------------


def _run_batch(config: Config, store: LogStore) -> None:
    """Scan the storage root and report the outcome."""
    report = run_batch(config, store)
    _log_report(report, dry_run=config.dry_run)


def _log_report(report: RunReport, dry_run: bool = False) -> None:
    logger.info("Processing Summary:")
    if dry_run:
        logger.info("Would process %d new papers", report.pending)
    else:
        logger.info("Processed %d new papers", report.processed)
    logger.info("Skipped %d already processed papers", report.skipped)
    if report.failed:
        logger.info("Failed %d papers (will be retried next run)", report.failed)
    if report.cap_reached:
        logger.info("Stopped early at --max-papers; remaining papers left for next run")
    logger.info("Total papers in log: %d", report.log_size)

    for item in report.failed_items:
        logger.error("  %s: %s", item.pdf_path, item.error)


# ---------------------------------------------------------------------------
# Backend health check
# ---------------------------------------------------------------------------


def _check_backend(base_url: str) -> None:
    """Verify that the LLM backend (Ollama or another compatible server) is reachable."""
    parsed = urllib.parse.urlparse(base_url)
    health_url = f"{parsed.scheme}://{parsed.netloc}"
    try:
        with urllib.request.urlopen(health_url, timeout=5):
            pass
    except urllib.error.HTTPError:
        # Any HTTP response (4xx/5xx) means the server is up.
        return
    except Exception as exc:
        logger.error("Cannot reach LLM backend at %s\n  Details: %s", health_url, exc)
        sys.exit(1)


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="summarize-zotero",
        description=(
            "Summarise the PDFs in a Zotero storage directory with a local LLM. "
            "Each file is summarised once; a JSON log keyed by content hash "
            "records what has been done."
        ),
    )

    _default_root = os.environ.get(
        "ZOTERO_STORAGE", str(Path.home() / "Zotero" / "storage")
    )
    parser.add_argument(
        "--root",
        metavar="DIR",
        default=_default_root,
        help=f"Storage root to scan (default: ZOTERO_STORAGE env var, currently {_default_root!r}).",
    )
    parser.add_argument(
        "--file",
        metavar="PDF",
        default=None,
        help="Process a single PDF instead of scanning --root.",
    )
    parser.add_argument(
        "--export-dir",
        metavar="DIR",
        default="exports",
        help="Directory for <dir>_summary.json / <dir>_summary.md (default: exports).",
    )
    parser.add_argument(
        "--processed-log",
        metavar="FILE",
        default="processed_papers_log.json",
        help="Processing log keyed by content hash (default: processed_papers_log.json).",
    )
    parser.add_argument(
        "--max-papers",
        metavar="N",
        type=_positive_int,
        default=None,
        help="Stop after N newly processed papers (default: no limit).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="List PDFs that would be processed without calling the LLM.",
    )
    _default_model = os.environ.get("LLM_MODEL", _DEFAULT_MODEL)
    parser.add_argument(
        "--model",
        metavar="MODEL",
        default=_default_model,
        help=f"LLM model identifier (default: LLM_MODEL env var, currently {_default_model!r}).",
    )
    _default_base_url = os.environ.get("LLM_BASE_URL", _DEFAULT_BASE_URL)
    parser.add_argument(
        "--base-url",
        metavar="URL",
        default=_default_base_url,
        help=f"OpenAI-compatible API base URL (default: LLM_BASE_URL env var, currently {_default_base_url!r}).",
    )
    parser.add_argument(
        "--extractor",
        choices=["auto", "docling", "pypdf"],
        default="auto",
        help="PDF extraction backend strategy (default: auto).",
    )
    parser.add_argument(
        "--max-chars",
        metavar="N",
        type=_positive_int,
        default=None,
        help="Truncate paper text to N characters before the LLM call (default: no limit).",
    )
    parser.add_argument(
        "--timeout",
        metavar="S",
        type=_positive_int,
        default=None,
        help="Request timeout in seconds handed to the API client (default: client default).",
    )
    parser.add_argument(
        "--verbose",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Enable DEBUG-level logging (default: off).",
    )
    parser.add_argument(
        "--log-file",
        metavar="FILE",
        default=None,
        help="Write log output to FILE (default: logs/run_TIMESTAMP.log).",
    )

    return parser


if __name__ == "__main__":
    main()
