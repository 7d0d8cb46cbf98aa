from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Tuple

from app.models.lifestream_events import EventSource, RawRecord
from services.sync_errors import UnsupportedEventSubtype
from services.sync_service import SourceSynchronizer

Descriptions = Tuple[str, str]

CODE_DESCRIPTION = "wrote some code"


# -------- Describers (one per supported GitHub event subtype) ---------------

def describe_create_ref(event: Mapping[str, Any]) -> Descriptions:
    return CODE_DESCRIPTION, CODE_DESCRIPTION


def describe_create_repository(event: Mapping[str, Any]) -> Descriptions:
    return CODE_DESCRIPTION, CODE_DESCRIPTION


def describe_fork(event: Mapping[str, Any]) -> Descriptions:
    return CODE_DESCRIPTION, CODE_DESCRIPTION


def describe_pull_request(event: Mapping[str, Any]) -> Descriptions:
    return CODE_DESCRIPTION, CODE_DESCRIPTION


def describe_push(event: Mapping[str, Any]) -> Descriptions:
    return CODE_DESCRIPTION, CODE_DESCRIPTION


def describe_create(event: Mapping[str, Any]) -> Descriptions:
    ref_type = event["payload"]["ref_type"]
    if ref_type in ("branch", "tag"):
        return describe_create_ref(event)
    if ref_type == "repository":
        return describe_create_repository(event)
    raise UnsupportedEventSubtype(f"Skipping create event: {ref_type}")


CODE_DESCRIBERS: Dict[str, Callable[[Mapping[str, Any]], Descriptions]] = {
    "CreateEvent": describe_create,
    "ForkEvent": describe_fork,
    "PullRequestEvent": describe_pull_request,
    "PushEvent": describe_push,
}


def describe_code_event(kind: str, event: Mapping[str, Any]) -> Descriptions:
    describer = CODE_DESCRIBERS.get(kind)
    if describer is None:
        raise UnsupportedEventSubtype(f"Skipping an event type: {kind}")
    return describer(event)


class CodeSynchronizer(SourceSynchronizer):
    source = EventSource.CODE

    def build_metadata(self, record: RawRecord) -> Dict[str, Any]:
        return {}

    def describe(self, record: RawRecord) -> Tuple[str, str]:
        kind = record.kind or record.payload.get("type") or ""
        return describe_code_event(kind, record.payload)
