"""
Ejecutor de UPSERT de PVZ.

Estrategia:
- Primario: una sola transacción con un INSERT ... ON CONFLICT (site_id)
  DO UPDATE por registro. Es idempotente: repetir el batch deja el mismo estado.
- Fallback: si la transacción batch falla por cualquier motivo, cada registro
  se procesa en su propia transacción; los que fallan aislados quedan
  SKIPPED(upsert_failed) con el texto del error.

CREATED vs UPDATED se decide por si el registro ya tenía synced_at antes de
escribir. Es solo para reporte; la escritura es siempre la misma.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Sequence

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pvz_registry.infrastructure.repositories.site_repository import SiteRepository
from pvz_registry.shared.exceptions.sync import UpsertFailedError

from .types import SiteRecord, SkipReason, UpsertOutcome, classify_outcome, utc_now


def build_site_values(record: SiteRecord, synced_at: datetime) -> dict[str, Any]:
    """
    Mapea un SiteRecord a columnas de `sites`.

    El teléfono de la hoja se guarda también en el PVZ (la organización solo
    recibe el teléfono al crearse).
    """
    return {
        "site_id": record.site_id,
        "region": record.region,
        "address": record.address,
        "service_name": record.service_name,
        "status_date": record.status_date,
        "status_name": record.status_name,
        "organization_id": record.organization_id,
        "transaction_date": record.transaction_date,
        "transaction_amount": record.transaction_amount,
        "phone": record.organization_phone,
        "postal_code": record.postal_code,
        "fitting_room": record.fitting_room,
        "synced_at": synced_at,
    }


class SiteUpsertExecutor:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def upsert(self, records: Sequence[SiteRecord]) -> list[UpsertOutcome]:
        """
        Mezcla los registros en `sites` y retorna un resultado por registro,
        en el mismo orden de entrada.
        """
        if not records:
            return []

        synced_at = utc_now()
        try:
            return await self._upsert_batch(records, synced_at)
        except UpsertFailedError as e:
            logger.error(f"{e.message}. Reintentando registro por registro...")

        outcomes = [await self._upsert_single(record, synced_at) for record in records]
        skipped = sum(1 for o in outcomes if o.reason is SkipReason.UPSERT_FAILED)
        logger.warning(
            f"Fallback UPSERT: {len(outcomes) - skipped} registros escritos, {skipped} fallidos"
        )
        return outcomes

    async def _upsert_batch(self, records: Sequence[SiteRecord], synced_at: datetime) -> list[UpsertOutcome]:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    repo = SiteRepository(session)
                    previously_synced = await repo.get_synced_site_ids(r.site_id for r in records)
                    await repo.upsert_rows([build_site_values(r, synced_at) for r in records])
        except Exception as e:
            raise UpsertFailedError(len(records), str(e)) from e

        logger.info(f"UPSERT batch completado: {len(records)} registros")
        return [classify_outcome(r.site_id, r.site_id in previously_synced) for r in records]

    async def _upsert_single(self, record: SiteRecord, synced_at: datetime) -> UpsertOutcome:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    repo = SiteRepository(session)
                    previously_synced = await repo.get_synced_site_ids([record.site_id])
                    await repo.upsert_row(build_site_values(record, synced_at))
        except Exception as e:
            logger.error(f"Error UPSERT del PVZ {record.site_id}: {e}")
            return UpsertOutcome.skipped(record.site_id, SkipReason.UPSERT_FAILED, error=str(e))

        return classify_outcome(record.site_id, record.site_id in previously_synced)
