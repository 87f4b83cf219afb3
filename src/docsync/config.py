"""Settings loading: config.yaml → typed, immutable Settings."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any

import yaml

DEFAULT_CONFIG_FILE = "config.yaml"
DEFAULT_CACHE_DIR = "contents/snippets/.cache"
DEFAULT_FALLBACK_CONTENT_PATH = "contents/snippets/common/notContent.mdx"

LOG_LEVELS = ("trace", "debug", "info", "warn", "error", "fatal")

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)\}")


class ConfigurationError(Exception):
    """Raised when settings cannot be loaded or are invalid."""


@dataclass(frozen=True)
class SyncSource:
    """One remote document to fetch into the cache."""

    url: str
    output: str
    private: bool = False


@dataclass(frozen=True)
class SyncSettings:
    cache_dir: str = DEFAULT_CACHE_DIR
    fallback_content_path: str = DEFAULT_FALLBACK_CONTENT_PATH
    sources: tuple[SyncSource, ...] = ()


@dataclass(frozen=True)
class LoggerSettings:
    level: str = "info"
    pretty_print: bool = True
    enable_emojis: bool = True


@dataclass(frozen=True)
class AppSettings:
    name: str = "docsync"
    environment: str = "development"
    folder: str = "contents"


@dataclass(frozen=True)
class Settings:
    """Complete runtime settings, built once at process start."""

    project_root: Path
    app: AppSettings = field(default_factory=AppSettings)
    logger: LoggerSettings = field(default_factory=LoggerSettings)
    github_token: str = ""
    sync: SyncSettings = field(default_factory=SyncSettings)

    @property
    def cache_path(self) -> Path:
        return self.project_root / self.sync.cache_dir

    @property
    def fallback_path(self) -> Path:
        return self.project_root / self.sync.fallback_content_path


def _replace_env_vars(value: Any) -> Any:
    """Recursively substitute ``${VAR}`` placeholders from the environment.

    Unknown variables are left untouched so the placeholder stays visible.
    """
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), m.group(0)), value)
    if isinstance(value, list):
        return [_replace_env_vars(item) for item in value]
    if isinstance(value, dict):
        return {key: _replace_env_vars(item) for key, item in value.items()}
    return value


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    raw = data.get(name)
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        msg = f"Section '{name}' must be a mapping, got {type(raw).__name__}"
        raise ConfigurationError(msg)
    return raw


def _parse_source(index: int, raw: Any) -> SyncSource:
    if not isinstance(raw, dict):
        msg = f"sync.sources[{index}] must be a mapping"
        raise ConfigurationError(msg)

    url = raw.get("url")
    output = raw.get("output")
    if not url or not isinstance(url, str):
        msg = f"sync.sources[{index}] requires a 'url'"
        raise ConfigurationError(msg)
    if not output or not isinstance(output, str):
        msg = f"sync.sources[{index}] requires an 'output'"
        raise ConfigurationError(msg)

    out_path = PurePosixPath(output)
    if out_path.is_absolute() or ".." in out_path.parts:
        msg = f"sync.sources[{index}].output must stay inside the cache directory: {output!r}"
        raise ConfigurationError(msg)

    private = raw.get("private", False)
    if not isinstance(private, bool):
        msg = f"sync.sources[{index}].private must be true or false, got {private!r}"
        raise ConfigurationError(msg)

    return SyncSource(url=url, output=output, private=private)


def _parse_sync(raw: dict[str, Any]) -> SyncSettings:
    cache_dir = raw.get("cacheDir", DEFAULT_CACHE_DIR)
    fallback = raw.get("fallbackContentPath", DEFAULT_FALLBACK_CONTENT_PATH)
    if not cache_dir or not isinstance(cache_dir, str):
        msg = "sync.cacheDir must be a non-empty string"
        raise ConfigurationError(msg)
    if not fallback or not isinstance(fallback, str):
        msg = "sync.fallbackContentPath must be a non-empty string"
        raise ConfigurationError(msg)

    raw_sources = raw.get("sources") or []
    if not isinstance(raw_sources, list):
        msg = "sync.sources must be a list"
        raise ConfigurationError(msg)

    sources = tuple(_parse_source(i, item) for i, item in enumerate(raw_sources))

    seen: dict[str, int] = {}
    for i, source in enumerate(sources):
        key = PurePosixPath(source.output).as_posix()
        if key in seen:
            msg = (
                f"sync.sources[{i}] writes to {source.output!r}, "
                f"already used by sync.sources[{seen[key]}]"
            )
            raise ConfigurationError(msg)
        seen[key] = i

    return SyncSettings(cache_dir=cache_dir, fallback_content_path=fallback, sources=sources)


def _parse_logger(raw: dict[str, Any]) -> LoggerSettings:
    level = str(raw.get("level", "info")).lower()
    if level not in LOG_LEVELS:
        msg = f"Unsupported logger.level: {level!r}. Use one of: {', '.join(LOG_LEVELS)}"
        raise ConfigurationError(msg)
    return LoggerSettings(
        level=level,
        pretty_print=bool(raw.get("prettyPrint", True)),
        enable_emojis=bool(raw.get("enableEmojis", True)),
    )


def load_settings_from_mapping(data: dict[str, Any], *, project_root: Path) -> Settings:
    """Build :class:`Settings` from an already-parsed configuration mapping.

    Raises
    ------
    ConfigurationError
        If a section has the wrong shape or a value is invalid.
    """
    data = _replace_env_vars(data)

    app_raw = _section(data, "app")
    github_raw = _section(data, "github")

    token = str(github_raw.get("token") or "")
    if _ENV_VAR_RE.fullmatch(token):
        # Unresolved placeholder: the variable is not set.
        token = ""
    token = token or os.environ.get("GITHUB_TOKEN", "")

    return Settings(
        project_root=project_root,
        app=AppSettings(
            name=str(app_raw.get("name", "docsync")),
            environment=str(app_raw.get("environment", "development")),
            folder=str(app_raw.get("folder", "contents")),
        ),
        logger=_parse_logger(_section(data, "logger")),
        github_token=str(token),
        sync=_parse_sync(_section(data, "sync")),
    )


def load_settings(path: Path | None = None, *, project_root: Path | None = None) -> Settings:
    """Load settings from a YAML file.

    Parameters
    ----------
    path:
        Settings file. Relative paths resolve against *project_root*.
        Defaults to ``config.yaml``.
    project_root:
        Directory that ``cacheDir`` and ``fallbackContentPath`` are
        relative to. Defaults to the current working directory.

    Raises
    ------
    ConfigurationError
        If the file is missing, is not valid YAML, or holds invalid values.
    """
    root = (project_root or Path.cwd()).resolve()
    config_path = path or Path(DEFAULT_CONFIG_FILE)
    if not config_path.is_absolute():
        config_path = root / config_path

    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError:
        msg = f"Configuration file not found: {config_path}"
        raise ConfigurationError(msg) from None

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        msg = f"Invalid YAML in configuration file: {exc}"
        raise ConfigurationError(msg) from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        msg = f"Configuration file must contain a mapping: {config_path}"
        raise ConfigurationError(msg)

    return load_settings_from_mapping(data, project_root=root)
