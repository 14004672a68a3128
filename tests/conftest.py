"""Shared pytest fixtures for the zotero_summarizer test suite."""

import logging
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from zotero_summarizer.models import Config


# ---------------------------------------------------------------------------
# Logger isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Clear the package logger between tests.

    Tests that call ``main()`` trigger ``setup_logging()``, which attaches
    handlers and sets ``propagate=False``.  Without this fixture the state
    leaks into subsequent tests and breaks ``caplog`` capture.
    """
    logger = logging.getLogger("zotero_summarizer")

    def _clear():
        for h in logger.handlers[:]:
            h.close()
            logger.removeHandler(h)
        logger.propagate = True
        logger.setLevel(logging.NOTSET)

    _clear()
    yield
    _clear()


# ---------------------------------------------------------------------------
# Storage tree helpers
# ---------------------------------------------------------------------------

MOCK_SUMMARY_MARKDOWN = """\
# Spiking Neural Networks for Continuous Control

## Authors
- Jan Huebotter
- Sirko Straube

## Tags
- SNN
- robotics

## Research Questions
- Can SNNs be trained end-to-end for continuous control?

## Methodology
Surrogate gradient training through a differentiable world model.

## Key Findings
- SNN matches the ANN baseline within 5%.
"""


def add_pdf(root: Path, key: str, name: str = "paper.pdf", content: bytes = b"%PDF-1.4 a") -> Path:
    """Create ``root/key/name`` with ``content`` and return its path."""
    folder = root / key
    folder.mkdir(parents=True, exist_ok=True)
    path = folder / name
    path.write_bytes(content)
    return path


@pytest.fixture
def storage_root(tmp_path) -> Path:
    """An empty Zotero-like storage root."""
    root = tmp_path / "storage"
    root.mkdir()
    return root


@pytest.fixture
def config(tmp_path, storage_root) -> Config:
    """Config with every path pointing inside ``tmp_path``."""
    return Config(
        root_dir=storage_root,
        export_dir=tmp_path / "exports",
        log_path=tmp_path / "processed_papers_log.json",
        base_url="http://localhost:11434/v1",
        model="test-model",
    )


@pytest.fixture
def mock_client() -> MagicMock:
    """Chat client whose ``complete`` returns a canned six-section summary."""
    client = MagicMock()
    client.model = "test-model"
    client.base_url = "http://localhost:11434/v1"
    client.complete.return_value = MOCK_SUMMARY_MARKDOWN
    return client
