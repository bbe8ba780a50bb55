"""
DTOs de la sincronización Google Sheets -> PVZ y de la configuración.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SyncRunResultDTO(BaseModel):
    """Resultado de una corrida manual."""

    success: bool = True
    message: str
    processed: int = Field(0, description="Filas leídas de la hoja")
    created: int = Field(0, description="PVZ sincronizados por primera vez")
    updated: int = Field(0, description="PVZ ya sincronizados antes")
    skipped: int = Field(0, description="Filas omitidas por cualquier motivo")
    valid_records: int = Field(0, description="Filas con clave válida y no duplicada")
    skip_reasons: Dict[str, int] = Field(default_factory=dict)
    duration_ms: int = 0


class SchedulerStatusDTO(BaseModel):
    running: bool
    frequency_minutes: int
    next_run: Optional[datetime] = None
    runs_in_progress: int = 0


class SyncLogDTO(BaseModel):
    """Entrada de sync_log."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    sync_type: str
    status: str
    message: Optional[str] = None
    details: Optional[str] = None
    records_processed: int = 0
    records_created: int = 0
    records_updated: int = 0
    records_skipped: int = 0
    execution_time_ms: int = 0
    created_at: datetime


class PaginationDTO(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class SyncLogPageDTO(BaseModel):
    logs: List[SyncLogDTO]
    pagination: PaginationDTO


class SyncStatsEntryDTO(BaseModel):
    status: str
    count: int
    avg_execution_time: float
    total_processed: int
    total_created: int
    total_updated: int
    total_skipped: int


class SyncStatsDTO(BaseModel):
    """Estadísticas de los últimos 30 días y las últimas corridas."""

    stats: List[SyncStatsEntryDTO]
    recent: List[SyncLogDTO]


class SyncSettingsUpdateDTO(BaseModel):
    """Body de PUT /settings."""

    pvzTableId: str = Field(..., min_length=1, description="ID de la tabla de Google Sheets")
    pvzSheetName: str = Field(..., min_length=1, description="Nombre de la hoja con los PVZ")
    updateFrequency: int = Field(60, gt=0, description="Frecuencia de sincronización (minutos)")

    @field_validator("pvzTableId", "pvzSheetName")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("no puede estar vacío")
        return value


class ConnectionTestDTO(BaseModel):
    """Body opcional de POST /settings/test-connection (si falta se usa lo guardado)."""

    pvzTableId: Optional[str] = None
    pvzSheetName: Optional[str] = None


class ConnectionTestResultDTO(BaseModel):
    success: bool
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)
