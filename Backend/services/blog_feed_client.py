from __future__ import annotations

import calendar
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

import feedparser
import httpx

from app.config import require_setting, settings
from app.core.logging import get_logger
from app.models.lifestream_events import EventSource, RawRecord
from services.http_source_client import HttpSourceClient
from services.sync_errors import FetchFailure

logger = get_logger()


def _struct_time_to_datetime(value: Any, tz: ZoneInfo) -> Optional[datetime]:
    if value is None:
        return None
    try:
        timestamp = calendar.timegm(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).astimezone(tz)


def _entry_foreign_id(entry: Dict[str, Any]) -> str:
    # feedparser exposes <guid> as `id`
    for key in ("id", "guid", "link"):
        value = entry.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def _entry_payload(entry: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "guid": entry.get("id"),
        "title": entry.get("title"),
        "link": entry.get("link"),
        "description": entry.get("summary"),
        "published": entry.get("published") or entry.get("updated"),
    }


class BlogFeedClient(HttpSourceClient):
    source = EventSource.BLOG

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        feed_path: Optional[str] = None,
        tz_name: Optional[str] = None,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(timeout_s=timeout_s, transport=transport)
        self.base_url = base_url or require_setting("BLOG_BASE_URL")
        self.feed_path = feed_path or settings.BLOG_FEED_PATH
        self.tz = ZoneInfo(tz_name or settings.LIFESTREAM_TIMEZONE)

    @property
    def feed_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/{self.feed_path.lstrip('/')}"

    async def fetch_records(self) -> List[RawRecord]:
        response = await self._get(self.feed_url)
        if response.status_code != 200:
            raise FetchFailure(
                f"Error while trying to fetch rss feed: {response.status_code}",
                status_code=response.status_code,
            )

        parsed = feedparser.parse(response.content)
        if getattr(parsed, "bozo", False) and not parsed.entries:
            raise FetchFailure(
                f"Malformed rss feed: {getattr(parsed, 'bozo_exception', 'unknown error')}",
                status_code=response.status_code,
            )

        records: List[RawRecord] = []
        for entry in parsed.entries:
            foreign_id = _entry_foreign_id(entry)
            occurred_at = _struct_time_to_datetime(
                entry.get("published_parsed") or entry.get("updated_parsed"),
                self.tz,
            )
            if not foreign_id or occurred_at is None:
                logger.warning(
                    "lifestream_blog_entry_invalid",
                    foreign_id=foreign_id or None,
                    has_date=occurred_at is not None,
                )
                continue
            records.append(
                RawRecord(
                    source=self.source,
                    foreign_id=foreign_id,
                    occurred_at=occurred_at,
                    payload=_entry_payload(entry),
                )
            )

        logger.info("lifestream_blog_feed_fetched", url=self.feed_url, entries=len(records))
        return records
