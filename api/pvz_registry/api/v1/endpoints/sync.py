"""
Endpoints para sincronizacion Google Sheets -> PVZ.
Permite disparar corridas manuales, controlar el scheduler y consultar el historial.
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from pvz_registry.api.v1.dependencies.sync_deps import get_sync_use_cases
from pvz_registry.application.dto.sync_dto import (
    SchedulerStatusDTO,
    SyncLogPageDTO,
    SyncRunResultDTO,
    SyncStatsDTO,
)
from pvz_registry.application.use_cases.sync_use_cases import SyncUseCases


router = APIRouter(prefix="/sync", tags=["Sync"])


@router.post(
    "/run",
    response_model=SyncRunResultDTO,
    status_code=status.HTTP_200_OK,
    summary="Sincronizar PVZ desde Google Sheets",
)
async def run_sync(use_cases: SyncUseCases = Depends(get_sync_use_cases)) -> SyncRunResultDTO:
    """
    Ejecuta una corrida manual completa y espera su resultado.

    Errores:
    - 400 si falta la tabla o la hoja en la configuración
    - 502 si Google Sheets no responde o rechaza las credenciales
    """
    return await use_cases.run_now()


@router.post("/scheduler/start", response_model=SchedulerStatusDTO)
async def start_scheduler(use_cases: SyncUseCases = Depends(get_sync_use_cases)):
    """Arranca la sincronización automática (no-op si ya corre)."""
    return await use_cases.start_scheduler()


@router.post("/scheduler/stop", response_model=SchedulerStatusDTO)
async def stop_scheduler(use_cases: SyncUseCases = Depends(get_sync_use_cases)):
    """Detiene la sincronización automática. Una corrida en curso termina normalmente."""
    return await use_cases.stop_scheduler()


@router.get("/scheduler/status", response_model=SchedulerStatusDTO)
async def scheduler_status(use_cases: SyncUseCases = Depends(get_sync_use_cases)):
    return use_cases.get_scheduler_status()


@router.post("/scheduler/frequency", response_model=SchedulerStatusDTO)
async def update_frequency(
    minutes: int = Query(..., gt=0, description="Nueva frecuencia en minutos"),
    use_cases: SyncUseCases = Depends(get_sync_use_cases),
):
    """
    Actualiza la frecuencia. Si el scheduler corre, el próximo disparo
    queda dentro de la nueva frecuencia.
    """
    return await use_cases.update_frequency(minutes)


@router.get("/logs", response_model=SyncLogPageDTO)
async def list_sync_logs(
    status_filter: Optional[str] = Query(None, alias="status", description="success | error"),
    sync_type: Optional[str] = Query(None, description="manual | scheduled"),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    use_cases: SyncUseCases = Depends(get_sync_use_cases),
):
    """Historial de corridas, más recientes primero."""
    return await use_cases.list_logs(
        status=status_filter,
        sync_type=sync_type,
        date_from=date_from,
        date_to=date_to,
        page=page,
        limit=limit,
    )


@router.get("/logs/stats", response_model=SyncStatsDTO)
async def sync_log_stats(use_cases: SyncUseCases = Depends(get_sync_use_cases)):
    """Estadísticas por status de los últimos 30 días y las 5 corridas más recientes."""
    return await use_cases.get_stats()
