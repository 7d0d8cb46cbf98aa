# Backend/tests/fixtures/__init__.py
"""
Test fixtures for the lifestream sync tests.

Factory functions for creating test data:
- make_tweet()
- make_github_event()
- make_blog_entry()
- make_raw_record()

In-memory collaborators:
- InMemoryEventStore
- StaticSourceClient
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from app.models.lifestream_events import EventSource, RawRecord, UnifiedEvent

DEFAULT_OCCURRED_AT = datetime(2016, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_tweet(
    tweet_id: str = "700000000000000001",
    text: str = "just a regular tweet",
    favorites: int = 0,
    retweets: int = 0,
    in_reply_to_user_id: Optional[int] = None,
    entities: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Factory function to create a test tweet (extended mode) dict."""
    return {
        "id": int(tweet_id),
        "id_str": tweet_id,
        "created_at": "Tue Mar 01 12:00:00 +0000 2016",
        "full_text": text,
        "favorite_count": favorites,
        "retweet_count": retweets,
        "in_reply_to_user_id": in_reply_to_user_id,
        "entities": entities if entities is not None else {},
    }


def make_github_event(
    event_id: str = "3700000001",
    event_type: str = "PushEvent",
    payload: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Factory function to create a test GitHub public event dict."""
    return {
        "id": event_id,
        "type": event_type,
        "created_at": "2016-03-01T12:00:00Z",
        "repo": {"name": "jacobemerick/lifestream"},
        "payload": payload if payload is not None else {},
    }


def make_blog_entry(
    guid: str = "https://blog.example/some-post",
    title: str = "Some Post",
    link: str = "https://blog.example/some-post",
) -> Dict[str, Any]:
    """Factory function to create a test blog payload dict."""
    return {
        "guid": guid,
        "title": title,
        "link": link,
        "description": "A post about things",
        "published": "Tue, 01 Mar 2016 12:00:00 +0000",
    }


def make_raw_record(
    source: EventSource,
    payload: Dict[str, Any],
    foreign_id: Optional[str] = None,
    kind: Optional[str] = None,
    occurred_at: datetime = DEFAULT_OCCURRED_AT,
) -> RawRecord:
    """Wrap a payload into a RawRecord, deriving foreign_id/kind where possible."""
    if foreign_id is None:
        foreign_id = payload.get("id_str") or payload.get("guid") or payload.get("id")
    if kind is None and source is EventSource.CODE:
        kind = payload.get("type")
    return RawRecord(
        source=source,
        foreign_id=foreign_id,
        occurred_at=occurred_at,
        kind=kind,
        payload=payload,
    )


class InMemoryEventStore:
    """Dict-backed event store with call recording and failure switches."""

    def __init__(self) -> None:
        self.events: Dict[Tuple[str, str], UnifiedEvent] = {}
        self.inserts: List[UnifiedEvent] = []
        self.updates: List[Tuple[int, Dict[str, Any]]] = []
        self.lookups: List[Tuple[str, str]] = []
        self.fail_insert = False
        self.raise_on_insert: Optional[Exception] = None
        self._next_id = 1

    async def find_by_source_and_foreign_id(
        self, source: EventSource, foreign_id: str
    ) -> Optional[UnifiedEvent]:
        key = (EventSource(source).value, foreign_id)
        self.lookups.append(key)
        return self.events.get(key)

    async def insert(self, event: UnifiedEvent) -> bool:
        if self.raise_on_insert is not None:
            raise self.raise_on_insert
        key = (event.source.value, event.foreign_id)
        if self.fail_insert or key in self.events:
            return False
        stored = event.model_copy(update={"id": self._next_id})
        self._next_id += 1
        self.events[key] = stored
        self.inserts.append(stored)
        return True

    async def update_metadata(self, event_id: int, metadata: Dict[str, Any]) -> bool:
        for key, event in self.events.items():
            if event.id == event_id:
                self.events[key] = event.model_copy(update={"metadata": dict(metadata)})
                self.updates.append((event_id, dict(metadata)))
                return True
        return False

    def seed(self, event: UnifiedEvent) -> UnifiedEvent:
        stored = event.model_copy(update={"id": self._next_id})
        self._next_id += 1
        self.events[(stored.source.value, stored.foreign_id)] = stored
        return stored


class StaticSourceClient:
    """Source client returning a fixed batch, or raising the given error."""

    def __init__(
        self,
        records: Sequence[RawRecord] = (),
        error: Optional[Exception] = None,
    ) -> None:
        self.records = list(records)
        self.error = error
        self.fetch_calls = 0
        self.entered = False
        self.closed = False

    async def __aenter__(self) -> "StaticSourceClient":
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.closed = True

    async def fetch_records(self) -> List[RawRecord]:
        self.fetch_calls += 1
        if self.error is not None:
            raise self.error
        return list(self.records)
