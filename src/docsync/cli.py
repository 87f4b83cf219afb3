"""docsync CLI entry point."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click

from docsync import __version__

if TYPE_CHECKING:
    from docsync.config import Settings
    from docsync.sync.fetcher import ContentFetcher

logger = logging.getLogger(__name__)


@click.group()
@click.version_option(version=__version__, prog_name="docsync")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to the configuration file (default: config.yaml).",
)
@click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root (default: current directory).",
)
@click.pass_context
def main(
    ctx: click.Context,
    *,
    verbose: bool,
    quiet: bool,
    config_path: Path | None,
    project: Path | None,
) -> None:
    """docsync - keep external documentation content in sync."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["config_path"] = config_path
    ctx.obj["project"] = project


def _load_settings(ctx: click.Context) -> Settings:
    """Load settings and configure logging, exiting with 1 on bad config."""
    from docsync.config import ConfigurationError, load_settings
    from docsync.log import configure_logging, event

    obj = ctx.find_root().obj or {}
    try:
        settings = load_settings(obj.get("config_path"), project_root=obj.get("project"))
    except ConfigurationError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    configure_logging(
        settings.logger,
        verbose=bool(obj.get("verbose")),
        quiet=bool(obj.get("quiet")),
    )
    event(logger, "start", f"Starting {settings.app.name} v{__version__}")
    logger.debug("Environment: %s", settings.app.environment)
    return settings


def _check_sources(settings: Settings, fetcher: ContentFetcher) -> None:
    """Report whether each configured source is reachable; write nothing."""
    sources = settings.sync.sources
    if not sources:
        click.echo("Nothing to check: no sources configured.")
        return

    unreachable = 0
    for source in sources:
        ok = fetcher.is_accessible(source.url, is_private=source.private)
        if not ok:
            unreachable += 1
        mark = "[ok]" if ok else "[unreachable]"
        click.echo(f"  {mark} {source.url}")

    click.echo(f"Reachable: {len(sources) - unreachable}/{len(sources)}")
    if unreachable:
        sys.exit(1)


@main.command("sync-readme")
@click.option(
    "--check",
    "check_only",
    is_flag=True,
    default=False,
    help="Only check that every source is reachable; write nothing.",
)
@click.pass_context
def sync_readme(ctx: click.Context, *, check_only: bool) -> None:
    """Synchronize external content from GitHub and other sources.

    Every configured source is downloaded into the cache directory.
    Sources that fail get the fallback document instead. Exits with 1
    only when every source failed.
    """
    from docsync.config import ConfigurationError
    from docsync.sync.engine import AllSourcesFailedError, SyncEngine, check_summary
    from docsync.sync.fetcher import ContentFetcher

    settings = _load_settings(ctx)

    with ContentFetcher(settings.github_token) as fetcher:
        if check_only:
            _check_sources(settings, fetcher)
            return

        engine = SyncEngine(settings, fetcher)
        try:
            summary = engine.sync_all()
        except ConfigurationError as exc:
            click.echo(f"Error: {exc}", err=True)
            sys.exit(1)

    if summary.total == 0:
        click.echo("Nothing to synchronize: no sources configured.")
        return

    for result in summary.results:
        mark = "[ok]" if result.success else "[fallback]"
        click.echo(f"  {mark} {result.output} <- {result.url}")

    click.echo("")
    click.echo(f"Total:   {summary.total}")
    click.echo(f"Success: {summary.success}")
    click.echo(f"Failed:  {summary.failed}")

    if summary.failures:
        click.echo("")
        click.echo("Failed sources:")
        for result in summary.failures:
            click.echo(f"  - {result.url}: {result.error}")

    try:
        check_summary(summary)
    except AllSourcesFailedError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


@main.command()
@click.pass_context
def clean(ctx: click.Context) -> None:
    """Remove all cached files from the cache directory."""
    from docsync.sync.clean import clean_cache, format_size

    settings = _load_settings(ctx)
    summary = clean_cache(settings.cache_path)

    click.echo(f"Cache:   {settings.sync.cache_dir}")
    click.echo(f"Files:   {summary.deleted_files}")
    click.echo(f"Dirs:    {summary.deleted_dirs}")
    click.echo(f"Freed:   {format_size(summary.total_size)}")

    if summary.errors:
        click.echo("")
        for err in summary.errors:
            click.echo(f"  [ERR] {err}")
        sys.exit(1)
