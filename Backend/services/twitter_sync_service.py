from __future__ import annotations

from typing import Any, Dict, Mapping, Tuple

from app.models.lifestream_events import EventSource, RawRecord, TweetMetadata
from services.sync_errors import RecordNotAdmitted
from services.sync_service import SourceSynchronizer
from services.tweet_rendering import render_tweet, tweet_text


def tweet_metadata(payload: Mapping[str, Any]) -> TweetMetadata:
    return TweetMetadata(
        favorites=payload["favorite_count"],
        retweets=payload["retweet_count"],
    )


def is_reply(payload: Mapping[str, Any]) -> bool:
    if payload.get("in_reply_to_user_id") is not None:
        return True
    return tweet_text(payload).startswith("@")


class TwitterSynchronizer(SourceSynchronizer):
    source = EventSource.TWITTER

    def build_metadata(self, record: RawRecord) -> Dict[str, Any]:
        return tweet_metadata(record.payload).model_dump()

    def admit(self, record: RawRecord, metadata: Dict[str, Any]) -> None:
        # replies only make the timeline once somebody engaged with them
        if not is_reply(record.payload):
            return
        if metadata["favorites"] < 1 and metadata["retweets"] < 1:
            raise RecordNotAdmitted(f"Skipping tweet, generic reply: {record.foreign_id}")

    def describe(self, record: RawRecord) -> Tuple[str, str]:
        rendered = render_tweet(record.payload)
        return rendered.plain, rendered.html
