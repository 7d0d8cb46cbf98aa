from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

import httpx

from app.config import require_setting
from app.core.logging import get_logger
from app.models.lifestream_events import EventSource, RawRecord
from services.http_source_client import HttpSourceClient
from services.sync_errors import FetchFailure

logger = get_logger()

USER_TIMELINE_URL = "https://api.twitter.com/1.1/statuses/user_timeline.json"
TWITTER_DATE_FORMAT = "%a %b %d %H:%M:%S %z %Y"
DEFAULT_TWEET_COUNT = 200


def parse_twitter_datetime(value: str) -> datetime:
    """`Wed Oct 10 20:19:24 +0000 2018` → aware datetime."""
    return datetime.strptime(value, TWITTER_DATE_FORMAT)


class TwitterTimelineClient(HttpSourceClient):
    source = EventSource.TWITTER

    def __init__(
        self,
        *,
        screen_name: Optional[str] = None,
        bearer_token: Optional[str] = None,
        count: int = DEFAULT_TWEET_COUNT,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.screen_name = screen_name or require_setting("TWITTER_SCREEN_NAME")
        self.bearer_token = bearer_token or require_setting("TWITTER_BEARER_TOKEN")
        self.count = max(1, int(count))
        super().__init__(timeout_s=timeout_s, transport=transport)

    def _default_headers(self) -> Dict[str, str]:
        headers = super()._default_headers()
        headers["Authorization"] = f"Bearer {self.bearer_token}"
        return headers

    async def fetch_records(self) -> List[RawRecord]:
        tweets = await self._get_json_list(
            USER_TIMELINE_URL,
            params={
                "screen_name": self.screen_name,
                "count": self.count,
                "tweet_mode": "extended",
            },
        )

        records: List[RawRecord] = []
        for tweet in tweets:
            try:
                record = RawRecord(
                    source=self.source,
                    foreign_id=tweet.get("id_str") or tweet["id"],
                    occurred_at=parse_twitter_datetime(tweet["created_at"]),
                    payload=tweet,
                )
            except (KeyError, TypeError, ValueError) as exc:
                raise FetchFailure(f"Malformed tweet in timeline: {exc}") from exc
            records.append(record)

        logger.info("lifestream_twitter_timeline_fetched", screen_name=self.screen_name, tweets=len(records))
        return records
