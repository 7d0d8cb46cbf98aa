"""
Lifestream source registry loader.

Parses configs/lifestream_sources.yml into LifestreamSource objects. A missing
or broken file falls back to "every source enabled, no options" so the worker
keeps running.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from app.config import settings
from app.core.logging import get_logger
from app.models.lifestream_events import EventSource

logger = get_logger()

THIS_FILE = Path(__file__).resolve()
APP_DIR = THIS_FILE.parent.parent  # Backend/app
BACKEND_DIR = APP_DIR.parent       # Backend
REPO_ROOT = BACKEND_DIR.parent     # repo root
LIFESTREAM_SOURCES_YML = REPO_ROOT / "configs" / "lifestream_sources.yml"


@dataclass(frozen=True)
class LifestreamSource:
    key: EventSource
    enabled: bool = True
    options: Dict[str, Any] = field(default_factory=dict)

    def option_int(self, name: str, default: int) -> int:
        raw_value = self.options.get(name)
        if raw_value is None:
            return default
        try:
            return max(1, int(raw_value))
        except (TypeError, ValueError):
            logger.warning(
                "lifestream_source_invalid_option",
                source=self.key.value,
                option=name,
                value=raw_value,
            )
            return default


def default_sources() -> List[LifestreamSource]:
    return [LifestreamSource(key=source) for source in EventSource]


def _config_path(path: Optional[Path] = None) -> Path:
    if path:
        return Path(path)
    if settings.LIFESTREAM_SOURCES_YML:
        return Path(settings.LIFESTREAM_SOURCES_YML)
    return LIFESTREAM_SOURCES_YML


def load_lifestream_sources_config(path: Optional[Path] = None) -> Dict[str, object]:
    """
    Load raw YAML config.

    Returns empty dict if file is missing or invalid to keep workers running.
    """
    cfg_path = _config_path(path)
    try:
        text = cfg_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.error("lifestream_sources_config_not_found", path=str(cfg_path))
        return {}
    except OSError as exc:
        logger.error("lifestream_sources_config_read_error", path=str(cfg_path), error=str(exc))
        return {}

    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        logger.error("lifestream_sources_config_parse_error", path=str(cfg_path), error=str(exc))
        return {}

    if not isinstance(data, dict):
        logger.error(
            "lifestream_sources_config_invalid_root",
            path=str(cfg_path),
            root_type=type(data).__name__,
        )
        return {}

    return data


def _validate_source(raw: Dict[str, object]) -> Optional[LifestreamSource]:
    key_raw = raw.get("key")
    try:
        key = EventSource(str(key_raw).strip().lower())
    except ValueError:
        logger.warning(
            "lifestream_source_invalid_key",
            key=key_raw,
            allowed=[source.value for source in EventSource],
        )
        return None

    enabled = raw.get("enabled", True)
    if not isinstance(enabled, bool):
        logger.warning("lifestream_source_invalid_enabled_flag", source=key.value, value=enabled)
        enabled = True

    options = raw.get("options") or {}
    if not isinstance(options, dict):
        logger.warning("lifestream_source_invalid_options", source=key.value)
        options = {}

    return LifestreamSource(key=key, enabled=enabled, options=dict(options))


@lru_cache(maxsize=8)
def _load_sources_from_path(path_str: str) -> List[LifestreamSource]:
    cfg_path = Path(path_str)
    cfg = load_lifestream_sources_config(cfg_path)
    if not cfg:
        return default_sources()

    raw_sources = cfg.get("sources", [])
    if not isinstance(raw_sources, list):
        logger.error(
            "lifestream_sources_invalid_sources_type",
            actual_type=type(raw_sources).__name__,
            path=str(cfg_path),
        )
        return default_sources()

    by_key: Dict[EventSource, LifestreamSource] = {}
    for idx, raw in enumerate(raw_sources):
        if not isinstance(raw, dict):
            logger.warning("lifestream_source_invalid_entry", index=idx)
            continue
        source = _validate_source(raw)
        if source is None:
            continue
        if source.key in by_key:
            logger.warning("lifestream_source_duplicate_key", source=source.key.value)
            continue
        by_key[source.key] = source

    return list(by_key.values())


def get_lifestream_sources(path: Optional[Path] = None) -> List[LifestreamSource]:
    return list(_load_sources_from_path(str(_config_path(path))))


def get_enabled_sources(path: Optional[Path] = None) -> List[LifestreamSource]:
    return [source for source in get_lifestream_sources(path) if source.enabled]


def clear_lifestream_sources_cache() -> None:
    _load_sources_from_path.cache_clear()
