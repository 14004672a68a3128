"""Run logging for ``summarize-zotero``.

Every module logs through a child of the ``"zotero_summarizer"`` logger
(``logging.getLogger(__name__)``); ``setup_logging`` is the only place that
attaches handlers to it. A run produces, at INFO:

* the scan header (storage root, log entries loaded, the per-run cap),
* one line per candidate: ``Skipping already processed file``,
  ``Processing ...`` followed by the LLM call/await/response lines, or
  ``Error processing ...``,
* the closing ``Processing Summary:`` block with the counts and failed items.

DEBUG adds prompt sizes, text truncation and the names of the written files.
The same records go to stderr and, when given, to a per-run file (the CLI
defaults to ``logs/run_<timestamp>.log``).
"""

import logging
import sys
from pathlib import Path

_FMT = "%(asctime)s  %(levelname)-7s %(message)s"
_DATE = "%H:%M:%S"


def setup_logging(verbose: bool = False, log_file: Path | None = None) -> None:
    """Attach stderr (and optionally file) handlers to the package logger.

    Args:
        verbose:  DEBUG instead of INFO.
        log_file: Run log path; missing parent directories are created.

    Handlers from an earlier call are closed and replaced, so only one run
    log file is ever held open. Records do not propagate to the root logger,
    which keeps the openai/docling/httpx loggers' own configuration separate.
    """
    logger = logging.getLogger("zotero_summarizer")
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False

    fmt = logging.Formatter(_FMT, datefmt=_DATE)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(fmt)
    logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setFormatter(fmt)
        logger.addHandler(fh)
