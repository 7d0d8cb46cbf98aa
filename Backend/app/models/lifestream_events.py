from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EventSource(str, Enum):
    """Upstream origin of a lifestream event; also the event type tag."""

    BLOG = "blog"
    TWITTER = "twitter"
    CODE = "code"


class RawRecord(BaseModel):
    """
    One record as returned by a source client, before normalization.

    `payload` is the decoded source record (feed entry, tweet JSON, GitHub
    event JSON). `kind` carries the source's own event subtype where it has
    one (GitHub `PushEvent`, `ForkEvent`, ...).
    """

    model_config = ConfigDict(frozen=True)

    source: EventSource
    foreign_id: str = Field(..., min_length=1)
    occurred_at: datetime
    kind: Optional[str] = None
    payload: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("foreign_id", mode="before")
    @classmethod
    def _coerce_foreign_id(cls, value: Any) -> str:
        if isinstance(value, (int, str)):
            return str(value).strip()
        raise ValueError("foreign_id must be a string or integer")


class UnifiedEvent(BaseModel):
    """
    Persisted, normalized timeline entry. (source, foreign_id) is unique.
    Only `metadata` changes after insert.
    """

    id: Optional[int] = None
    source: EventSource
    foreign_id: str
    description: str
    description_html: str
    occurred_at: datetime
    metadata: Dict[str, Any] = Field(default_factory=dict)
    author: str
    event_type: str


class TweetMetadata(BaseModel):
    """Engagement snapshot kept on twitter events and refreshed on change."""

    model_config = ConfigDict(frozen=True)

    favorites: int = 0
    retweets: int = 0
