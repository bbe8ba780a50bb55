"""
Casos de uso de la sincronización Google Sheets -> PVZ y su configuración.
"""
import asyncio
import math
from datetime import datetime
from typing import Any, Dict, Optional

from loguru import logger

from pvz_registry.application.dto.sync_dto import (
    ConnectionTestDTO,
    ConnectionTestResultDTO,
    PaginationDTO,
    SchedulerStatusDTO,
    SyncLogDTO,
    SyncLogPageDTO,
    SyncRunResultDTO,
    SyncSettingsUpdateDTO,
    SyncStatsDTO,
    SyncStatsEntryDTO,
)
from pvz_registry.application.services.settings_store import (
    KEY_SHEET_NAME,
    KEY_TABLE_ID,
    KEY_UPDATE_FREQUENCY,
)
from pvz_registry.application.services.sync_runtime import SyncRuntime
from pvz_registry.infrastructure.external.sheets_sync.types import RunType
from pvz_registry.infrastructure.repositories.sync_log_repository import SyncLogRepository
from pvz_registry.shared.exceptions.sync import SyncConfigError

STATS_WINDOW_DAYS = 30
RECENT_RUNS = 5


class SyncUseCases:
    """
    Disparo manual, control del scheduler y consulta del historial.
    """

    def __init__(self, runtime: SyncRuntime):
        self.runtime = runtime

    async def run_now(self) -> SyncRunResultDTO:
        result = await self.runtime.run_sync(RunType.MANUAL)
        return SyncRunResultDTO(
            message="Sincronización completada",
            **result.as_dict(),
        )

    async def start_scheduler(self) -> SchedulerStatusDTO:
        return SchedulerStatusDTO(**await self.runtime.scheduler.start())

    async def stop_scheduler(self) -> SchedulerStatusDTO:
        return SchedulerStatusDTO(**await self.runtime.scheduler.stop())

    def get_scheduler_status(self) -> SchedulerStatusDTO:
        return SchedulerStatusDTO(**self.runtime.scheduler.get_status())

    async def update_frequency(self, minutes: int) -> SchedulerStatusDTO:
        """
        Reprograma el job y guarda la frecuencia para el próximo reinicio.
        """
        status = await self.runtime.scheduler.reconfigure(minutes)
        await self.runtime.settings_store.set_value(KEY_UPDATE_FREQUENCY, str(minutes))
        return SchedulerStatusDTO(**status)

    async def list_logs(
        self,
        *,
        status: Optional[str] = None,
        sync_type: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        page: int = 1,
        limit: int = 50,
    ) -> SyncLogPageDTO:
        async with self.runtime.session_factory() as session:
            rows, total = await SyncLogRepository(session).list_logs(
                status=status,
                sync_type=sync_type,
                date_from=date_from,
                date_to=date_to,
                page=page,
                limit=limit,
            )

        return SyncLogPageDTO(
            logs=[SyncLogDTO.model_validate(row) for row in rows],
            pagination=PaginationDTO(
                page=page,
                limit=limit,
                total=total,
                pages=math.ceil(total / limit) if limit else 0,
            ),
        )

    async def get_stats(self) -> SyncStatsDTO:
        async with self.runtime.session_factory() as session:
            repo = SyncLogRepository(session)
            stats = await repo.get_stats(days=STATS_WINDOW_DAYS)
            recent = await repo.recent(limit=RECENT_RUNS)

        return SyncStatsDTO(
            stats=[SyncStatsEntryDTO(**entry) for entry in stats],
            recent=[SyncLogDTO.model_validate(row) for row in recent],
        )


class SettingsUseCases:
    """
    Lectura y guardado de la configuración del sync desde la UI.
    """

    def __init__(self, runtime: SyncRuntime):
        self.runtime = runtime

    async def get_settings(self) -> Dict[str, str]:
        return await self.runtime.settings_store.get_all()

    async def update_settings(self, dto: SyncSettingsUpdateDTO) -> Dict[str, Any]:
        """
        Guarda tabla, hoja y frecuencia en una transacción (invalida la caché)
        y reprograma el scheduler con la nueva frecuencia.
        """
        store = self.runtime.settings_store
        await store.set_many(
            {
                KEY_TABLE_ID: dto.pvzTableId,
                KEY_SHEET_NAME: dto.pvzSheetName,
                KEY_UPDATE_FREQUENCY: str(dto.updateFrequency),
            }
        )
        status = await self.runtime.scheduler.reconfigure(dto.updateFrequency)
        logger.info(
            f"Configuración de sync guardada: tabla={dto.pvzTableId}, hoja='{dto.pvzSheetName}', "
            f"frecuencia={dto.updateFrequency} min"
        )
        return {
            "success": True,
            "message": "Configuración guardada correctamente",
            "scheduler": SchedulerStatusDTO(**status),
        }

    async def test_connection(self, dto: Optional[ConnectionTestDTO] = None) -> ConnectionTestResultDTO:
        """
        Verifica el acceso a la tabla. Sin body, usa la tabla y hoja guardadas.
        """
        dto = dto or ConnectionTestDTO()
        stored = await self.runtime.settings_store.get_sync_settings()
        table_id = (dto.pvzTableId or stored.table_id or "").strip()
        sheet_name = (dto.pvzSheetName or stored.sheet_name or "").strip()
        if not table_id:
            raise SyncConfigError("Es necesario indicar el ID de la tabla", setting=KEY_TABLE_ID)

        table = await asyncio.to_thread(self.runtime.sheets_client.test_connection, table_id)
        sheet_found = sheet_name in (table.get("sheets") or []) if sheet_name else None

        if sheet_found is False:
            logger.warning(f"La hoja '{sheet_name}' no existe en la tabla {table_id}")
            return ConnectionTestResultDTO(
                success=False,
                message=f"La tabla es accesible pero no contiene la hoja '{sheet_name}'",
                details={"table": table, "sheet_found": False},
            )

        logger.info(f"Conexión con Google Sheets correcta: {table.get('title')}")
        return ConnectionTestResultDTO(
            success=True,
            message="Conexión con Google Sheets correcta",
            details={"table": table, "sheet_found": sheet_found},
        )
