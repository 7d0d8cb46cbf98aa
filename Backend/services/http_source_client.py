from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

import httpx

from app.config import settings
from app.core.logging import get_logger
from app.models.lifestream_events import EventSource, RawRecord
from services.sync_errors import FetchFailure

logger = get_logger()

USER_AGENT = "lifestream-sync/1.0"


class HttpSourceClient(ABC):
    """
    Base for the per-source clients. Owns one httpx.AsyncClient for the
    lifetime of an `async with` block; `transport` is injectable so tests can
    plug an httpx.MockTransport in.
    """

    source: EventSource

    def __init__(
        self,
        *,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout_s = timeout_s if timeout_s is not None else settings.FETCH_TIMEOUT_S
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _default_headers(self) -> Dict[str, str]:
        return {"User-Agent": USER_AGENT}

    async def __aenter__(self) -> "HttpSourceClient":
        self._client = httpx.AsyncClient(
            timeout=self.timeout_s,
            headers=self._default_headers(),
            transport=self._transport,
            follow_redirects=True,
        )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _get(self, url: str, *, params: Optional[Mapping[str, Any]] = None) -> httpx.Response:
        if not self._client:
            raise RuntimeError(f"{type(self).__name__} client not initialized")
        try:
            return await self._client.get(url, params=params)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning(
                "lifestream_fetch_transport_error",
                source=self.source.value,
                url=url,
                error=str(exc),
            )
            raise FetchFailure(f"Error while trying to reach {url}: {exc}") from exc

    async def _get_json_list(
        self, url: str, *, params: Optional[Mapping[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        response = await self._get(url, params=params)
        if response.status_code != 200:
            raise FetchFailure(
                f"Error while trying to fetch {self.source.value} records: {response.status_code}",
                status_code=response.status_code,
            )
        try:
            body = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise FetchFailure(
                f"Malformed {self.source.value} response: {exc}",
                status_code=response.status_code,
            ) from exc
        if not isinstance(body, list):
            raise FetchFailure(
                f"Malformed {self.source.value} response: expected a list, got {type(body).__name__}",
                status_code=response.status_code,
            )
        return [item for item in body if isinstance(item, dict)]

    @abstractmethod
    async def fetch_records(self) -> List[RawRecord]:
        ...
