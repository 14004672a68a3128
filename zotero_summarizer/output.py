"""Write a ``PaperSummary`` to the flat export directory.

Two artifacts per paper, both full overwrites:

* ``{base_name}_summary.json`` — the whole record, camelCase keys.
* ``{base_name}_summary.md``   — just the model's markdown reply.

``base_name`` is the name of the directory holding the PDF (Zotero gives every
attachment its own uniquely named storage folder), not the PDF's file name.
"""

import logging
from pathlib import Path

from zotero_summarizer.models import OutputWriteError, PaperSummary

logger = logging.getLogger(__name__)


def base_name_for(pdf_path: Path) -> str:
    """Return the export base name for ``pdf_path``: its parent directory's name."""
    return pdf_path.parent.name


def get_output_paths(export_dir: Path, base_name: str) -> tuple[Path, Path]:
    """Return ``(json_path, markdown_path)`` for ``base_name`` under ``export_dir``."""
    return (
        export_dir / f"{base_name}_summary.json",
        export_dir / f"{base_name}_summary.md",
    )


def write_summary(
    summary: PaperSummary, export_dir: Path, base_name: str
) -> tuple[Path, Path]:
    """Write the JSON record and the markdown file for one paper.

    Returns:
        ``(json_path, markdown_path)``.

    Raises:
        OutputWriteError: if the directory or either file cannot be written.
    """
    json_path, md_path = get_output_paths(export_dir, base_name)
    try:
        export_dir.mkdir(parents=True, exist_ok=True)
        json_path.write_text(
            summary.model_dump_json(by_alias=True, indent=2), encoding="utf-8"
        )
        md_path.write_text(summary.markdown_content, encoding="utf-8")
    except OSError as e:
        raise OutputWriteError(
            f"Failed to write summary for {base_name}: {e}", cause=e
        ) from e

    logger.debug("Wrote %s and %s", json_path.name, md_path.name)
    return json_path, md_path
