"""
Repositorio del historial de sincronizaciones (tabla sync_log, append-only).
"""
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from pvz_registry.infrastructure.database.models import SyncLogModel
from pvz_registry.infrastructure.external.sheets_sync.types import SyncRunSummary, utc_now


class SyncLogRepository:
    """Escritura (solo inserción) y consultas para observabilidad."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(self, summary: SyncRunSummary) -> SyncLogModel:
        entry = SyncLogModel(
            sync_type=summary.run_type.value,
            status=summary.status.value,
            message=summary.message,
            details=summary.details,
            records_processed=summary.processed,
            records_created=summary.created,
            records_updated=summary.updated,
            records_skipped=summary.skipped,
            execution_time_ms=summary.duration_ms,
            created_at=utc_now(),
        )
        self.db.add(entry)
        await self.db.flush()
        return entry

    def _filtered(
        self,
        query,
        status: Optional[str],
        sync_type: Optional[str],
        date_from: Optional[datetime],
        date_to: Optional[datetime],
    ):
        if status:
            query = query.where(SyncLogModel.status == status)
        if sync_type:
            query = query.where(SyncLogModel.sync_type == sync_type)
        if date_from:
            query = query.where(SyncLogModel.created_at >= date_from)
        if date_to:
            query = query.where(SyncLogModel.created_at <= date_to)
        return query

    async def list_logs(
        self,
        *,
        status: Optional[str] = None,
        sync_type: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        page: int = 1,
        limit: int = 50,
    ) -> Tuple[List[SyncLogModel], int]:
        """
        Lista paginada (más recientes primero) y total de registros del filtro.
        """
        count_query = self._filtered(
            select(func.count()).select_from(SyncLogModel), status, sync_type, date_from, date_to
        )
        total = int((await self.db.execute(count_query)).scalar_one())

        query = self._filtered(select(SyncLogModel), status, sync_type, date_from, date_to)
        query = (
            query.order_by(SyncLogModel.created_at.desc(), SyncLogModel.id.desc())
            .limit(limit)
            .offset((max(page, 1) - 1) * limit)
        )
        result = await self.db.execute(query)
        return result.scalars().all(), total

    async def recent(self, limit: int = 5) -> List[SyncLogModel]:
        result = await self.db.execute(
            select(SyncLogModel)
            .order_by(SyncLogModel.created_at.desc(), SyncLogModel.id.desc())
            .limit(limit)
        )
        return result.scalars().all()

    async def get_stats(self, days: int = 30) -> List[Dict[str, Any]]:
        """
        Estadísticas por status de los últimos `days` días.
        """
        since = utc_now() - timedelta(days=days)
        result = await self.db.execute(
            select(
                SyncLogModel.status,
                func.count().label("runs"),
                func.avg(SyncLogModel.execution_time_ms).label("avg_execution_time"),
                func.sum(SyncLogModel.records_processed).label("total_processed"),
                func.sum(SyncLogModel.records_created).label("total_created"),
                func.sum(SyncLogModel.records_updated).label("total_updated"),
                func.sum(SyncLogModel.records_skipped).label("total_skipped"),
            )
            .where(SyncLogModel.created_at >= since)
            .group_by(SyncLogModel.status)
        )
        return [
            {
                "status": row.status,
                "count": int(row.runs),
                "avg_execution_time": float(row.avg_execution_time or 0),
                "total_processed": int(row.total_processed or 0),
                "total_created": int(row.total_created or 0),
                "total_updated": int(row.total_updated or 0),
                "total_skipped": int(row.total_skipped or 0),
            }
            for row in result.all()
        ]
