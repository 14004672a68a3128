"""Processing log — content hash -> ``ProcessingRecord``, persisted as JSON.

The log is the source of truth for deduplication. It is loaded once at the
start of a run and rewritten in full after every successfully processed file,
so an interrupted run loses at most the item that was in flight.

File format (``processed_papers_log.json`` by default)::

    {
      "<md5 hex>": {
        "path": "/home/me/Zotero/storage/ABCD1234/paper.pdf",
        "processedDate": "2024-11-02T09:14:03.512000Z",
        "summaryPath": "exports/ABCD1234_summary.md"
      }
    }
"""

import logging
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from zotero_summarizer.models import (
    LogStoreCorruptError,
    OutputWriteError,
    ProcessingRecord,
)

logger = logging.getLogger(__name__)

_LOG_ADAPTER = TypeAdapter(dict[str, ProcessingRecord])


class LogStore:
    """In-memory view of the processing log with explicit load/save.

    Records are only ever added; nothing in this package mutates or removes a
    persisted record. Single writer, full overwrite on every save.
    """

    def __init__(
        self, path: Path, records: dict[str, ProcessingRecord] | None = None
    ) -> None:
        self.path = path
        self._records: dict[str, ProcessingRecord] = dict(records or {})

    @classmethod
    def load(cls, path: Path) -> "LogStore":
        """Read the log at ``path``.

        A missing file yields an empty store.

        Raises:
            LogStoreCorruptError: if the file exists but cannot be read or is
                not a JSON object of well-formed records.
        """
        if not path.exists():
            logger.info("No processing log at %s; starting empty", path)
            return cls(path)

        try:
            raw = path.read_bytes()
        except OSError as e:
            raise LogStoreCorruptError(f"Cannot read processing log {path}: {e}") from e

        try:
            records = _LOG_ADAPTER.validate_json(raw)
        except ValidationError as e:
            raise LogStoreCorruptError(
                f"Processing log {path} is malformed: {e.error_count()} error(s); "
                f"first: {e.errors()[0]['msg']}"
            ) from e

        logger.info("Loaded processing log %s (%d entries)", path, len(records))
        return cls(path, records)

    def save(self) -> None:
        """Overwrite the log file with the current mapping.

        Raises:
            OutputWriteError: if the file cannot be written.
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_bytes(
                _LOG_ADAPTER.dump_json(self._records, indent=2, by_alias=True)
            )
        except OSError as e:
            raise OutputWriteError(
                f"Failed to write processing log {self.path}: {e}", cause=e
            ) from e

    def record(self, file_hash: str, entry: ProcessingRecord) -> None:
        """Add ``entry`` under ``file_hash`` and persist immediately.

        If the save fails the entry is dropped again, so the file is not
        treated as processed for the rest of the run.
        """
        self._records[file_hash] = entry
        try:
            self.save()
        except OutputWriteError:
            del self._records[file_hash]
            raise

    def get(self, file_hash: str) -> ProcessingRecord | None:
        return self._records.get(file_hash)

    def __contains__(self, file_hash: object) -> bool:
        return file_hash in self._records

    def __len__(self) -> int:
        return len(self._records)

    def as_dict(self) -> dict[str, ProcessingRecord]:
        return dict(self._records)
