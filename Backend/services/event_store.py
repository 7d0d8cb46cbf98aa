from __future__ import annotations

import json
from typing import Any, Dict, Optional, Protocol, Union

from app.core.logging import get_logger
from app.models.lifestream_events import EventSource, UnifiedEvent
from services.db_service import execute, fetchrow

logger = get_logger()

LIFESTREAM_EVENTS_DDL = """
CREATE TABLE IF NOT EXISTS lifestream_events (
    id BIGSERIAL PRIMARY KEY,
    source TEXT NOT NULL,
    foreign_id TEXT NOT NULL,
    description TEXT NOT NULL,
    description_html TEXT NOT NULL,
    occurred_at TIMESTAMPTZ NOT NULL,
    metadata JSONB NOT NULL DEFAULT '{}'::jsonb,
    author TEXT NOT NULL,
    event_type TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    CONSTRAINT uq_lifestream_events_source_foreign_id UNIQUE (source, foreign_id)
);
"""


class EventStore(Protocol):
    async def find_by_source_and_foreign_id(
        self, source: EventSource, foreign_id: str
    ) -> Optional[UnifiedEvent]:
        ...

    async def insert(self, event: UnifiedEvent) -> bool:
        ...

    async def update_metadata(self, event_id: int, metadata: Dict[str, Any]) -> bool:
        ...


def _decode_metadata(value: Union[str, bytes, Dict[str, Any], None]) -> Dict[str, Any]:
    # asyncpg hands JSONB back as text unless a codec is registered
    if value is None:
        return {}
    if isinstance(value, (str, bytes)):
        decoded = json.loads(value) if value else {}
        return decoded if isinstance(decoded, dict) else {}
    return dict(value)


def _affected_rows(status: Optional[str]) -> int:
    # command tags look like "INSERT 0 1" / "UPDATE 1"
    if not status:
        return 0
    try:
        return int(status.strip().split()[-1])
    except (ValueError, IndexError):
        return 0


class PostgresEventStore:
    """Event store backed by the shared asyncpg pool in services.db_service."""

    async def ensure_schema(self) -> None:
        await execute(LIFESTREAM_EVENTS_DDL)
        logger.info("lifestream_schema_ensured", table="lifestream_events")

    async def find_by_source_and_foreign_id(
        self, source: EventSource, foreign_id: str
    ) -> Optional[UnifiedEvent]:
        row = await fetchrow(
            """
            SELECT id, source, foreign_id, description, description_html,
                   occurred_at, metadata, author, event_type
            FROM lifestream_events
            WHERE source = $1 AND foreign_id = $2
            """,
            EventSource(source).value,
            str(foreign_id),
        )
        if not row:
            return None
        data = dict(row)
        data["metadata"] = _decode_metadata(data.get("metadata"))
        return UnifiedEvent.model_validate(data)

    async def insert(self, event: UnifiedEvent) -> bool:
        result = await execute(
            """
            INSERT INTO lifestream_events (
                source, foreign_id, description, description_html,
                occurred_at, metadata, author, event_type
            )
            VALUES ($1, $2, $3, $4, $5, CAST($6 AS JSONB), $7, $8)
            ON CONFLICT (source, foreign_id) DO NOTHING
            """,
            event.source.value,
            event.foreign_id,
            event.description,
            event.description_html,
            event.occurred_at,
            json.dumps(event.metadata, ensure_ascii=False),
            event.author,
            event.event_type,
        )
        return _affected_rows(result) == 1

    async def update_metadata(self, event_id: int, metadata: Dict[str, Any]) -> bool:
        result = await execute(
            """
            UPDATE lifestream_events
            SET metadata = CAST($2 AS JSONB),
                updated_at = NOW()
            WHERE id = $1
            """,
            int(event_id),
            json.dumps(metadata, ensure_ascii=False),
        )
        return _affected_rows(result) == 1
