"""
Per-source synchronization engine.

One run of a synchronizer:

    fetch  →  for each record, strictly in fetch order:
                  lookup (source, foreign_id)
                  fresh metadata
                  admission rule
                  new      → describe + insert
                  existing → metadata diff → update_metadata | skip

Skips are recovered per record, malformed payloads fail a single record,
and fetch or store errors abort the run. Outcomes land in a SyncReport.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Tuple, TypeVar

from app.config import settings
from app.core.logging import get_logger
from app.models.lifestream_events import EventSource, RawRecord, UnifiedEvent
from services.event_store import EventStore
from services.metadata_diff import has_changed
from services.sync_errors import (
    FetchFailure,
    PersistenceFailure,
    RecordNormalizationError,
    RecordSkipped,
)

T = TypeVar("T")


class SourceClient(Protocol):
    async def fetch_records(self) -> List[RawRecord]:
        ...


class RecordOutcome(str, Enum):
    INSERTED = "inserted"
    UPDATED = "updated"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class SyncReport:
    source: str
    inserted: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    aborted: bool = False

    def record(self, outcome: RecordOutcome) -> None:
        setattr(self, outcome.value, getattr(self, outcome.value) + 1)

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


class SourceSynchronizer(ABC):
    source: EventSource

    def __init__(
        self,
        client: SourceClient,
        store: EventStore,
        *,
        author: Optional[str] = None,
        logger: Any = None,
    ) -> None:
        self.client = client
        self.store = store
        self.author = author or settings.EVENT_AUTHOR
        self.logger = logger if logger is not None else get_logger().bind(source=self.source.value)

    # -------- Source-specific hooks ------------------------------------------

    @abstractmethod
    def build_metadata(self, record: RawRecord) -> Dict[str, Any]:
        ...

    @abstractmethod
    def describe(self, record: RawRecord) -> Tuple[str, str]:
        """Return (description, description_html) for a new event."""

    def admit(self, record: RawRecord, metadata: Dict[str, Any]) -> None:
        """Raise RecordNotAdmitted to drop the record regardless of existence."""

    def build_event(self, record: RawRecord, metadata: Dict[str, Any]) -> UnifiedEvent:
        description, description_html = self.describe(record)
        return UnifiedEvent(
            source=self.source,
            foreign_id=record.foreign_id,
            description=description,
            description_html=description_html,
            occurred_at=record.occurred_at,
            metadata=metadata,
            author=self.author,
            event_type=self.source.value,
        )

    # -------- Engine ---------------------------------------------------------

    def _normalize(self, step: Callable[..., T], record: RawRecord, *args: Any) -> T:
        try:
            return step(record, *args)
        except (KeyError, TypeError, ValueError) as exc:
            raise RecordNormalizationError(
                f"Malformed {self.source.value} record {record.foreign_id}: {exc!r}",
                payload=record.payload,
            ) from exc

    async def _store_call(self, operation: str, call: Awaitable[T]) -> T:
        try:
            return await call
        except PersistenceFailure:
            raise
        except Exception as exc:
            raise PersistenceFailure(f"Event store {operation} failed: {exc}") from exc

    async def process_record(self, record: RawRecord) -> RecordOutcome:
        existing = await self._store_call(
            "lookup",
            self.store.find_by_source_and_foreign_id(self.source, record.foreign_id),
        )
        metadata = self._normalize(self.build_metadata, record)
        self._normalize(self.admit, record, metadata)

        if existing is None:
            event = self._normalize(self.build_event, record, metadata)
            if not await self._store_call("insert", self.store.insert(event)):
                raise PersistenceFailure(
                    f"Failed to insert {self.source.value} event: {record.foreign_id}"
                )
            self.logger.debug("lifestream_event_inserted", foreign_id=record.foreign_id)
            return RecordOutcome.INSERTED

        if not has_changed(existing.metadata, metadata):
            self.logger.debug("lifestream_event_unchanged", foreign_id=record.foreign_id)
            return RecordOutcome.SKIPPED

        if existing.id is None:
            raise PersistenceFailure(
                f"Stored {self.source.value} event {record.foreign_id} has no id"
            )
        if not await self._store_call(
            "update_metadata", self.store.update_metadata(existing.id, metadata)
        ):
            raise PersistenceFailure(
                f"Failed to update {self.source.value} event metadata: {record.foreign_id}"
            )
        self.logger.debug("lifestream_event_metadata_updated", foreign_id=record.foreign_id)
        return RecordOutcome.UPDATED

    async def sync(self) -> SyncReport:
        report = SyncReport(source=self.source.value)

        try:
            records = await self.client.fetch_records()
        except FetchFailure as exc:
            self.logger.error(
                "lifestream_fetch_failed",
                error=str(exc),
                status_code=exc.status_code,
            )
            report.aborted = True
            return report

        for record in records:
            try:
                outcome = await self.process_record(record)
            except RecordSkipped as exc:
                self.logger.debug(
                    "lifestream_record_skipped",
                    foreign_id=record.foreign_id,
                    reason=str(exc),
                )
                outcome = RecordOutcome.SKIPPED
            except RecordNormalizationError as exc:
                self.logger.warning(
                    "lifestream_record_failed",
                    foreign_id=record.foreign_id,
                    error=str(exc),
                )
                outcome = RecordOutcome.FAILED
            except PersistenceFailure as exc:
                self.logger.error(
                    "lifestream_persistence_failed",
                    foreign_id=record.foreign_id,
                    error=str(exc),
                )
                report.record(RecordOutcome.FAILED)
                report.aborted = True
                break
            report.record(outcome)

        self.logger.info("lifestream_sync_completed", fetched=len(records), **report.as_dict())
        return report
