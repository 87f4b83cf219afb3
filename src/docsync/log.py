"""Logging setup and event-tagged log helpers."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from docsync.config import LoggerSettings

ROOT_LOGGER = "docsync"

_LEVELS = {
    "trace": logging.DEBUG,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
}

EVENT_EMOJIS = {
    "success": "✅",
    "failure": "❌",
    "start": "🚀",
    "stop": "🛑",
    "download": "⬇️",
    "warn": "⚠️",
    "file": "📄",
    "folder": "📁",
    "security": "🔒",
}

_EVENT_LEVELS = {
    "failure": logging.ERROR,
    "warn": logging.WARNING,
}


class EventFormatter(logging.Formatter):
    """Formatter that prefixes event-tagged messages with their emoji.

    Only the output of this formatter changes; the record itself is left
    alone so other handlers see the plain message.
    """

    def __init__(self, fmt: str | None = None, *, emojis: bool = True) -> None:
        super().__init__(fmt)
        self.emojis = emojis

    def formatMessage(self, record: logging.LogRecord) -> str:  # noqa: N802
        emoji = EVENT_EMOJIS.get(getattr(record, "event", ""))
        if self.emojis and emoji:
            record = logging.makeLogRecord(
                {**record.__dict__, "message": f"{emoji} {record.message}"}
            )
        return super().formatMessage(record)


def configure_logging(
    settings: LoggerSettings,
    *,
    verbose: bool = False,
    quiet: bool = False,
) -> logging.Logger:
    """Attach a console handler to the ``docsync`` logger.

    ``verbose`` forces DEBUG and ``quiet`` forces ERROR, overriding the
    configured level. Calling this again replaces the previous handler.
    """
    level = _LEVELS.get(settings.level, logging.INFO)
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR

    handler: logging.Handler
    if settings.pretty_print:
        from rich.console import Console
        from rich.logging import RichHandler

        handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        fmt = "[%(name)s] %(message)s"
    else:
        handler = logging.StreamHandler()
        fmt = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
    handler.setFormatter(EventFormatter(fmt, emojis=settings.enable_emojis))

    logger = logging.getLogger(ROOT_LOGGER)
    for old in list(logger.handlers):
        logger.removeHandler(old)
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger


def _format_context(context: dict[str, Any]) -> str:
    return " ".join(f"{key}={value}" for key, value in context.items())


def event(logger: logging.Logger, kind: str, msg: str, **context: Any) -> None:
    """Log *msg* tagged with an event *kind* and structured *context*.

    Failure events log at ERROR, warn events at WARNING, everything
    else at INFO. Context is appended as ``key=value`` pairs and kept on
    the record as ``record.context``; the kind is kept as ``record.event``
    for :class:`EventFormatter`.
    """
    level = _EVENT_LEVELS.get(kind, logging.INFO)
    if not logger.isEnabledFor(level):
        return

    text = msg
    if context:
        text = f"{text} ({_format_context(context)})"

    logger.log(level, "%s", text, extra={"event": kind, "context": context})
