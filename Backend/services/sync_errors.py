from __future__ import annotations

from typing import Any, Dict, Optional


class LifestreamSyncError(Exception):
    """Base class for everything the sync engine raises on purpose."""


# -------- Per-record: skip ---------------------------------------------------

class RecordSkipped(LifestreamSyncError):
    """
    The record does not match any normalization rule. Recovered inside the
    per-record loop; logged at debug and counted as skipped.
    """


class UnsupportedEventSubtype(RecordSkipped):
    pass


class UnsupportedEntityCategory(RecordSkipped):
    pass


class RecordNotAdmitted(RecordSkipped):
    """A source admission rule rejected the record (e.g. a generic reply)."""


# -------- Per-record: fail ---------------------------------------------------

class RecordNormalizationError(LifestreamSyncError):
    """
    The record looked supported but its payload could not be normalized.
    Only that record fails; the run continues.
    """

    def __init__(self, message: str, payload: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.payload = payload or {}


class RenderFailure(RecordNormalizationError):
    """Entity offsets overlap or fall outside the text."""


# -------- Whole run ----------------------------------------------------------

class FetchFailure(LifestreamSyncError):
    """Source client could not retrieve or decode records. Aborts the run."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class PersistenceFailure(LifestreamSyncError):
    """Event store rejected or raised on a call. Aborts the rest of the run."""
