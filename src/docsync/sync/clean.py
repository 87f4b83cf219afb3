"""Remove everything inside the content cache directory."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class CleanSummary:
    deleted_files: int = 0
    deleted_dirs: int = 0
    total_size: int = 0
    errors: list[str] = field(default_factory=list)


def _delete_contents(directory: Path, root: Path, summary: CleanSummary) -> None:
    """Depth-first delete of *directory*'s children, recording into *summary*."""
    try:
        children = sorted(directory.iterdir())
    except OSError as exc:
        logger.error("Failed to read directory %s: %s", directory, exc)
        summary.errors.append(f"{directory.relative_to(root)}: {exc}")
        return

    for child in children:
        rel = child.relative_to(root)
        try:
            if child.is_dir() and not child.is_symlink():
                _delete_contents(child, root, summary)
                child.rmdir()
                summary.deleted_dirs += 1
                logger.info("Deleted directory: %s", rel)
            else:
                size = child.lstat().st_size
                child.unlink()
                summary.deleted_files += 1
                summary.total_size += size
                logger.info("Deleted file: %s", rel)
        except OSError as exc:
            logger.error("Failed to delete %s: %s", rel, exc)
            summary.errors.append(f"{rel}: {exc}")


def clean_cache(cache_dir: Path) -> CleanSummary:
    """Delete all files and subdirectories in *cache_dir*, keeping the directory.

    A missing cache directory is not an error; the summary is simply empty.
    Per-item failures are logged and collected in ``errors``.
    """
    summary = CleanSummary()
    if not cache_dir.is_dir():
        logger.warning("Cache directory does not exist: %s", cache_dir)
        return summary

    _delete_contents(cache_dir, cache_dir, summary)
    return summary


def format_size(num_bytes: int) -> str:
    """Human-readable byte count (B, KB, MB)."""
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.2f} KB"
    return f"{num_bytes / (1024 * 1024):.2f} MB"
