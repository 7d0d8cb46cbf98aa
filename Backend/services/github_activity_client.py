from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

import httpx

from app.config import require_setting, settings
from app.core.logging import get_logger
from app.models.lifestream_events import EventSource, RawRecord
from services.http_source_client import HttpSourceClient
from services.sync_errors import FetchFailure

logger = get_logger()

GITHUB_API_BASE = "https://api.github.com"


def parse_github_datetime(value: str) -> datetime:
    # GitHub sends `2016-03-01T12:00:00Z`
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class GithubActivityClient(HttpSourceClient):
    source = EventSource.CODE

    def __init__(
        self,
        *,
        username: Optional[str] = None,
        token: Optional[str] = None,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.username = username or require_setting("GITHUB_USERNAME")
        self.token = token if token is not None else settings.GITHUB_TOKEN
        super().__init__(timeout_s=timeout_s, transport=transport)

    @property
    def events_url(self) -> str:
        return f"{GITHUB_API_BASE}/users/{self.username}/events/public"

    def _default_headers(self) -> Dict[str, str]:
        headers = super()._default_headers()
        headers["Accept"] = "application/vnd.github+json"
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def fetch_records(self) -> List[RawRecord]:
        events = await self._get_json_list(self.events_url)

        records: List[RawRecord] = []
        for event in events:
            try:
                record = RawRecord(
                    source=self.source,
                    foreign_id=event["id"],
                    occurred_at=parse_github_datetime(event["created_at"]),
                    kind=event.get("type"),
                    payload=event,
                )
            except (KeyError, TypeError, ValueError) as exc:
                raise FetchFailure(f"Malformed github event: {exc}") from exc
            records.append(record)

        logger.info("lifestream_github_events_fetched", username=self.username, events=len(records))
        return records
