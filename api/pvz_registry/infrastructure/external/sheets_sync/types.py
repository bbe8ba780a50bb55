"""
Tipos y utilidades puras para el pipeline Google Sheets -> sites.

Se mantienen libres de I/O para poder testearlos fácilmente.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


def utc_now() -> datetime:
    """Retorna la hora actual en UTC, como datetime aware."""
    return datetime.now(timezone.utc)


RawRow = dict[str, Any]


class SkipReason(str, Enum):
    """Motivos por los que una fila no llega a escribirse."""

    MISSING_KEY = "missing_key"
    DUPLICATE_IN_BATCH = "duplicate_in_batch"
    RESOLUTION_FAILED = "resolution_failed"
    UPSERT_FAILED = "upsert_failed"


class OutcomeKind(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"


class RunStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class RunType(str, Enum):
    MANUAL = "manual"
    SCHEDULED = "scheduled"


@dataclass(frozen=True)
class SiteRecord:
    """
    Fila validada de la hoja, con todos los campos ya como texto.

    organization_id queda en None hasta que el OrganizationResolver la asigna.
    """

    site_id: str
    row_number: int
    region: str = ""
    address: str = ""
    service_name: str = ""
    status_date: str = ""
    status_name: str = ""
    organization_name: str = ""
    organization_phone: str = ""
    transaction_date: str = ""
    transaction_amount: str = ""
    postal_code: str = ""
    fitting_room: str = ""
    organization_id: Optional[str] = None


@dataclass(frozen=True)
class RowSkip:
    """Fila excluida del batch y su motivo."""

    row_number: int
    reason: SkipReason
    site_id: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class UpsertOutcome:
    """
    Resultado explícito por registro: CREATED | UPDATED | SKIPPED(reason).
    """

    site_id: str
    kind: OutcomeKind
    reason: Optional[SkipReason] = None
    error: Optional[str] = None

    @classmethod
    def created(cls, site_id: str) -> "UpsertOutcome":
        return cls(site_id=site_id, kind=OutcomeKind.CREATED)

    @classmethod
    def updated(cls, site_id: str) -> "UpsertOutcome":
        return cls(site_id=site_id, kind=OutcomeKind.UPDATED)

    @classmethod
    def skipped(cls, site_id: str, reason: SkipReason, error: Optional[str] = None) -> "UpsertOutcome":
        return cls(site_id=site_id, kind=OutcomeKind.SKIPPED, reason=reason, error=error)


def classify_outcome(site_id: str, previously_synced: bool) -> UpsertOutcome:
    """
    Decide CREATED vs UPDATED. Solo sirve para reporte: la escritura
    es siempre el mismo UPSERT incondicional.
    """
    if previously_synced:
        return UpsertOutcome.updated(site_id)
    return UpsertOutcome.created(site_id)


@dataclass
class SyncRunSummary:
    """
    Acumulador mutable de una corrida; se persiste en sync_log al final.
    """

    run_type: RunType
    status: RunStatus = RunStatus.SUCCESS
    message: str = ""
    details: Optional[str] = None
    processed: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    duration_ms: int = 0
    started_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class SyncResult:
    """Resultado devuelto al caller (API, scheduler o CLI)."""

    processed: int
    created: int
    updated: int
    skipped: int
    valid_records: int
    skip_reasons: dict[str, int]
    duration_ms: int

    def as_dict(self) -> dict[str, Any]:
        return {
            "processed": self.processed,
            "created": self.created,
            "updated": self.updated,
            "skipped": self.skipped,
            "valid_records": self.valid_records,
            "skip_reasons": dict(self.skip_reasons),
            "duration_ms": self.duration_ms,
        }
