"""Shared test fixtures for docsync."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

FALLBACK_TEXT = "# Coming soon\n\nThis content is being synchronized.\n"


@pytest.fixture()
def tmp_project(tmp_path: Path) -> Path:
    """Create a minimal docs project with the default fallback document."""
    fallback = tmp_path / "contents" / "snippets" / "common" / "notContent.mdx"
    fallback.parent.mkdir(parents=True)
    fallback.write_text(FALLBACK_TEXT, encoding="utf-8")
    return tmp_path


@pytest.fixture(autouse=True)
def _reset_docsync_logger() -> Iterator[None]:
    """Undo handlers and levels installed by CLI runs."""
    yield
    logger = logging.getLogger("docsync")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
