"""
Servicio de sincronización Google Sheets -> sites.

Diseño (resumen):
- Lee las coordenadas de la hoja (pvzTableId, pvzSheetName) desde la tabla settings
- Descarga la hoja completa (cliente bloqueante, se ejecuta en un thread)
- Normaliza y valida filas (clave ausente / duplicada -> omitida)
- Resuelve organizaciones por nombre (caché nueva por corrida)
- UPSERT por site_id, con fallback fila a fila
- Escribe lastUpdate solo si la corrida terminó bien
- Siempre deja una entrada en sync_log (bloque finally)

No hay reintentos: el próximo disparo del scheduler es el reintento.
"""

from __future__ import annotations

import asyncio
import json
import time
from collections import Counter
from dataclasses import replace
from typing import Optional, Protocol

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pvz_registry.shared.exceptions.sync import ResolutionFailedError, SyncConfigError

from .organization_resolver import OrganizationResolver
from .row_normalizer import normalize_rows
from .run_logger import SyncRunLogger
from .site_upsert import SiteUpsertExecutor
from .types import (
    OutcomeKind,
    RawRow,
    RunStatus,
    RunType,
    SiteRecord,
    SkipReason,
    SyncResult,
    SyncRunSummary,
    utc_now,
)

SETTING_TABLE_ID = "pvzTableId"
SETTING_SHEET_NAME = "pvzSheetName"
SETTING_LAST_UPDATE = "lastUpdate"


class SourceReader(Protocol):
    def fetch_rows(self, spreadsheet_id: str, sheet_name: str) -> list[RawRow]: ...


class SyncSettingsSource(Protocol):
    async def get_sync_settings(self, *, use_cache: bool = True): ...

    async def set_value(self, key: str, value: str, description: Optional[str] = None) -> None: ...


def format_skip_breakdown(skip_reasons: dict[str, int]) -> Optional[str]:
    """{'missing_key': 2} -> '{"missing_key": 2}' (None si no hubo omitidas)."""
    if not skip_reasons:
        return None
    return json.dumps(dict(sorted(skip_reasons.items())), ensure_ascii=False)


class SheetsToSitesSync:
    """
    Orquestador de una corrida completa.

    Es seguro llamar a run_once de forma concurrente: cada corrida crea su
    propio resolver y sus propias sesiones, y el UPSERT es idempotente.
    """

    def __init__(
        self,
        *,
        session_factory: async_sessionmaker[AsyncSession],
        settings_store: SyncSettingsSource,
        reader: SourceReader,
        run_logger: Optional[SyncRunLogger] = None,
        upsert_executor: Optional[SiteUpsertExecutor] = None,
        creation_lock: Optional[asyncio.Lock] = None,
    ) -> None:
        self._session_factory = session_factory
        self._settings = settings_store
        self._reader = reader
        self._run_logger = run_logger or SyncRunLogger(session_factory)
        self._upsert = upsert_executor or SiteUpsertExecutor(session_factory)
        self._creation_lock = creation_lock

    async def run_once(self, run_type: RunType = RunType.MANUAL) -> SyncResult:
        """
        Ejecuta una corrida. Retorna el resultado o relanza el error fatal
        (configuración o fuente), después de registrarlo en sync_log.
        """
        summary = SyncRunSummary(run_type=run_type)
        started = time.monotonic()
        logger.info(f"Iniciando sincronización de PVZ ({run_type.value})")

        try:
            result = await self._run(summary, started)
            summary.message = (
                f"Sincronizadas {result.valid_records} filas: {result.created} creadas, "
                f"{result.updated} actualizadas, {result.skipped} omitidas"
            )
            logger.success(f"Sincronización completada: {summary.message}")
            return result
        except Exception as e:
            summary.status = RunStatus.ERROR
            summary.message = f"Error de sincronización: {e}"
            summary.details = type(e).__name__
            logger.error(summary.message)
            raise
        except asyncio.CancelledError:
            summary.status = RunStatus.ERROR
            summary.message = "Sincronización cancelada"
            summary.details = "CancelledError"
            logger.warning("Sincronización cancelada antes de terminar")
            raise
        finally:
            summary.duration_ms = int((time.monotonic() - started) * 1000)
            await self._run_logger.log(summary)

    async def _run(self, summary: SyncRunSummary, started: float) -> SyncResult:
        sync_settings = await self._settings.get_sync_settings(use_cache=False)
        if not sync_settings.table_id:
            raise SyncConfigError("No está configurado el ID de la tabla de PVZ", setting=SETTING_TABLE_ID)
        if not sync_settings.sheet_name:
            raise SyncConfigError("No está configurada la hoja de PVZ", setting=SETTING_SHEET_NAME)

        raw_rows = await asyncio.to_thread(
            self._reader.fetch_rows, sync_settings.table_id, sync_settings.sheet_name
        )
        summary.processed = len(raw_rows)

        normalized = normalize_rows(raw_rows)
        skip_counts = Counter(normalized.skip_counts())

        records, resolution_skips = await self._resolve_organizations(normalized.records)
        skip_counts[SkipReason.RESOLUTION_FAILED.value] += resolution_skips

        outcomes = await self._upsert.upsert(records)
        kinds = Counter(o.kind for o in outcomes)
        for outcome in outcomes:
            if outcome.kind is OutcomeKind.SKIPPED and outcome.reason is not None:
                skip_counts[outcome.reason.value] += 1

        skip_reasons = {reason: count for reason, count in skip_counts.items() if count}
        summary.created = kinds[OutcomeKind.CREATED]
        summary.updated = kinds[OutcomeKind.UPDATED]
        summary.skipped = sum(skip_reasons.values())
        summary.details = format_skip_breakdown(skip_reasons)

        await self._settings.set_value(SETTING_LAST_UPDATE, utc_now().isoformat())

        if skip_reasons:
            breakdown = ", ".join(f"{reason}={count}" for reason, count in sorted(skip_reasons.items()))
            logger.warning(f"Filas omitidas: {summary.skipped} ({breakdown})")

        return SyncResult(
            processed=summary.processed,
            created=summary.created,
            updated=summary.updated,
            skipped=summary.skipped,
            valid_records=len(normalized.records),
            skip_reasons=skip_reasons,
            duration_ms=int((time.monotonic() - started) * 1000),
        )

    async def _resolve_organizations(self, records: list[SiteRecord]) -> tuple[list[SiteRecord], int]:
        resolver = OrganizationResolver(self._session_factory, creation_lock=self._creation_lock)
        resolved: list[SiteRecord] = []
        failed = 0

        for record in records:
            try:
                organization_id = await resolver.resolve(record.organization_name, record.organization_phone)
            except ResolutionFailedError as e:
                logger.error(f"Fila {record.row_number} (PVZ {record.site_id}) omitida: {e.message}")
                failed += 1
                continue
            resolved.append(_with_organization(record, organization_id))

        if resolver.created_count:
            logger.info(f"Organizaciones nuevas en esta corrida: {resolver.created_count}")
        return resolved, failed


def _with_organization(record: SiteRecord, organization_id: Optional[str]) -> SiteRecord:
    return replace(record, organization_id=organization_id)
