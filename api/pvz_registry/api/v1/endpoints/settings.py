"""
Endpoints para la configuración del sync (tabla, hoja, frecuencia).
"""
from typing import Dict, Optional

from fastapi import APIRouter, Body, Depends

from pvz_registry.api.v1.dependencies.sync_deps import get_settings_use_cases
from pvz_registry.application.dto.sync_dto import (
    ConnectionTestDTO,
    ConnectionTestResultDTO,
    SyncSettingsUpdateDTO,
)
from pvz_registry.application.use_cases.sync_use_cases import SettingsUseCases

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get("", response_model=Dict[str, str])
async def get_settings(use_cases: SettingsUseCases = Depends(get_settings_use_cases)):
    """
    Obtiene todas las configuraciones del sistema.
    """
    return await use_cases.get_settings()


@router.put("")
async def update_settings(
    dto: SyncSettingsUpdateDTO,
    use_cases: SettingsUseCases = Depends(get_settings_use_cases),
):
    """
    Guarda tabla, hoja y frecuencia, y reprograma el scheduler.
    """
    return await use_cases.update_settings(dto)


@router.post("/test-connection", response_model=ConnectionTestResultDTO)
async def test_connection(
    dto: Optional[ConnectionTestDTO] = Body(None),
    use_cases: SettingsUseCases = Depends(get_settings_use_cases),
):
    """
    Verifica el acceso a Google Sheets con la tabla indicada (o la guardada).
    """
    return await use_cases.test_connection(dto)
