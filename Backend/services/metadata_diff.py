from __future__ import annotations

import json
from typing import Any, Dict, Mapping

from pydantic import BaseModel


def _as_mapping(metadata: Any) -> Dict[str, Any]:
    if metadata is None:
        return {}
    if isinstance(metadata, BaseModel):
        return metadata.model_dump(mode="json")
    if isinstance(metadata, (str, bytes)):
        decoded = json.loads(metadata) if metadata else {}
        return decoded if isinstance(decoded, dict) else {"value": decoded}
    if isinstance(metadata, Mapping):
        return dict(metadata)
    raise TypeError(f"unsupported metadata type: {type(metadata).__name__}")


def has_changed(stored: Any, fresh: Any) -> bool:
    """
    Deep structural comparison of a stored metadata snapshot against a freshly
    computed one. Models, JSON strings and mappings are compared as plain
    dicts, so key order never counts but key presence does.
    """
    return _as_mapping(stored) != _as_mapping(fresh)
