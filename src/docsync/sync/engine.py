"""Sync engine: download every configured source into the content cache.

Sources are processed strictly one after another, in configuration
order. A source that cannot be fetched (or written) gets the fallback
document instead, so every configured output exists after a run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from docsync.config import ConfigurationError
from docsync.log import event
from docsync.sync.fetcher import (
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_TIMEOUT,
    FetchFailure,
)
from docsync.sync.transform import clean_markdown_for_mdx, is_markup_output

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from pathlib import Path

    from docsync.config import Settings, SyncSource
    from docsync.sync.fetcher import ContentFetcher

logger = logging.getLogger(__name__)

PLACEHOLDER_CONTENT = (
    "# Content not available\n\nThe requested content could not be synchronized."
)


class FallbackReadError(Exception):
    """The fallback document could not be read."""


class AllSourcesFailedError(Exception):
    """Every configured source ended up with fallback content."""


@dataclass(frozen=True)
class SyncOutcome:
    """Result of synchronizing one source."""

    url: str
    output: str
    success: bool
    error: str | None = None


@dataclass(frozen=True)
class SyncSummary:
    total: int
    success: int
    failed: int
    results: tuple[SyncOutcome, ...] = ()

    @property
    def failures(self) -> list[SyncOutcome]:
        return [r for r in self.results if not r.success]


def summarize(outcomes: Iterable[SyncOutcome]) -> SyncSummary:
    """Aggregate per-source outcomes, preserving their order."""
    results = tuple(outcomes)
    success = sum(1 for r in results if r.success)
    return SyncSummary(
        total=len(results),
        success=success,
        failed=len(results) - success,
        results=results,
    )


def all_failed(summary: SyncSummary) -> bool:
    return summary.total > 0 and summary.failed == summary.total


def exit_code(summary: SyncSummary) -> int:
    """Process exit code: 1 only when every source failed."""
    return 1 if all_failed(summary) else 0


def check_summary(summary: SyncSummary) -> None:
    """Raise :class:`AllSourcesFailedError` if no source synchronized.

    Partial failures are tolerated; the fallback content is already on disk.
    """
    if all_failed(summary):
        msg = f"All sources failed to synchronize ({summary.failed}/{summary.total})"
        raise AllSourcesFailedError(msg)


def report_summary(summary: SyncSummary) -> None:
    """Log end-of-run counts and an itemized list of failures."""
    if summary.total == 0:
        return

    logger.info(
        "Synchronization complete (total=%d, success=%d, failed=%d)",
        summary.total,
        summary.success,
        summary.failed,
    )

    if summary.failed == 0:
        event(logger, "success", "All sources synchronized successfully")
        return

    event(logger, "warn", f"{summary.failed} source(s) failed to download")
    for result in summary.failures:
        logger.error("  - %s: %s", result.url, result.error)

    if summary.success == 0:
        event(logger, "failure", "All sources failed to synchronize")
    else:
        event(logger, "warn", "Some sources failed but continuing with available content")


def _write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


class SyncEngine:
    """Fetch, clean and cache external content for the documentation site."""

    def __init__(
        self,
        settings: Settings,
        fetcher: ContentFetcher,
        *,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.settings = settings
        self.fetcher = fetcher
        self.max_redirects = max_redirects
        self.timeout = timeout

    def read_fallback(self) -> str:
        """Read the fallback document.

        Raises
        ------
        FallbackReadError
            If the file is missing or unreadable.
        """
        path = self.settings.fallback_path
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            msg = f"Could not read fallback content {path}: {exc}"
            raise FallbackReadError(msg) from exc

    def fallback_content(self) -> str:
        """Fallback document text, or a built-in placeholder if it is unreadable."""
        try:
            return self.read_fallback()
        except FallbackReadError as exc:
            event(logger, "warn", str(exc))
            return PLACEHOLDER_CONTENT

    def _fall_back(self, source: SyncSource, output_path: Path, error: str) -> SyncOutcome:
        event(logger, "failure", f"Failed to download {source.url}: {error}")
        event(logger, "warn", f"Creating fallback content for {source.output}")

        content = self.fallback_content()
        try:
            _write_text(output_path, content)
        except OSError as exc:
            logger.error("Could not write fallback content to %s: %s", source.output, exc)
            error = f"{error}; fallback write failed: {exc}"

        return SyncOutcome(url=source.url, output=source.output, success=False, error=error)

    def sync_source(self, source: SyncSource) -> SyncOutcome:
        """Download one source and write it under the cache directory.

        Never raises for fetch or write problems; those produce a failed
        outcome with the fallback document written in place.
        """
        output_path = self.settings.cache_path / source.output
        event(logger, "download", f"Downloading from {source.url}")

        fetched = self.fetcher.try_fetch(
            source.url,
            token=self.settings.github_token or None,
            is_private=source.private,
            max_redirects=self.max_redirects,
            timeout=self.timeout,
        )

        if isinstance(fetched, FetchFailure):
            return self._fall_back(source, output_path, fetched.message)

        content = fetched.content
        if is_markup_output(source.output):
            content = clean_markdown_for_mdx(content)

        try:
            _write_text(output_path, content)
        except OSError as exc:
            return self._fall_back(source, output_path, f"Could not write {source.output}: {exc}")

        size_kb = len(content.encode("utf-8")) / 1024
        event(logger, "success", f"Saved to {source.output}", size=f"{size_kb:.2f} KB")
        return SyncOutcome(url=source.url, output=source.output, success=True)

    def sync_all(self, sources: Sequence[SyncSource] | None = None) -> SyncSummary:
        """Synchronize *sources* (default: all configured sources) in order.

        Raises
        ------
        ConfigurationError
            If the cache directory cannot be created. Nothing is fetched
            in that case.
        """
        if sources is None:
            sources = self.settings.sync.sources

        event(logger, "start", "Synchronizing external content")

        if not sources:
            event(logger, "warn", "No sources configured for synchronization")
            return summarize([])

        if any(s.private for s in sources) and not self.settings.github_token:
            event(
                logger,
                "warn",
                "Some sources are private but GITHUB_TOKEN is not set",
                hint="Set GITHUB_TOKEN environment variable or update config.yaml",
            )

        cache_path = self.settings.cache_path
        try:
            cache_path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            msg = f"Cannot create cache directory {cache_path}: {exc}"
            raise ConfigurationError(msg) from exc

        logger.info("Processing %d sources", len(sources))

        outcomes = [self.sync_source(source) for source in sources]

        summary = summarize(outcomes)
        report_summary(summary)
        return summary
