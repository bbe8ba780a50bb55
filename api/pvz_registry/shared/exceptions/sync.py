"""
Excepciones del motor de sincronización Google Sheets -> sites.

Política de propagación:
- SourceUnavailableError y SyncConfigError abortan la corrida completa.
- ResolutionFailedError y UpsertFailedError se recuperan localmente y se
  convierten en filas omitidas (skipped); nunca abortan la corrida.
"""
from typing import Any, Optional

from pvz_registry.shared.exceptions.base import AppException


class SyncException(AppException):
    """Excepción base del pipeline de sincronización."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "SYNC_ERROR",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            status_code=status_code,
            error_code=error_code,
            details=details,
        )


class SyncConfigError(SyncException):
    """Configuración del sync incompleta o inválida (tabla, hoja, frecuencia)."""

    def __init__(self, message: str, setting: Optional[str] = None):
        super().__init__(
            message=message,
            status_code=400,
            error_code="SYNC_CONFIG_ERROR",
            details={"setting": setting} if setting else None,
        )


class SourceUnavailableError(SyncException):
    """No se pudo autenticar o alcanzar Google Sheets."""

    def __init__(self, message: str, spreadsheet_id: Optional[str] = None):
        super().__init__(
            message=message,
            status_code=502,
            error_code="SOURCE_UNAVAILABLE",
            details={"spreadsheet_id": spreadsheet_id} if spreadsheet_id else None,
        )


class ResolutionFailedError(SyncException):
    """Fallo buscando o creando una organización (afecta solo a una fila)."""

    def __init__(self, organization_name: str, reason: str):
        super().__init__(
            message=f"No se pudo resolver la organización '{organization_name}': {reason}",
            error_code="ORGANIZATION_RESOLUTION_FAILED",
            details={"organization_name": organization_name},
        )
        self.organization_name = organization_name
        self.reason = reason


class UpsertFailedError(SyncException):
    """Fallo de la transacción batch de UPSERT (dispara el fallback fila a fila)."""

    def __init__(self, batch_size: int, reason: str):
        super().__init__(
            message=f"UPSERT batch de {batch_size} registros falló: {reason}",
            error_code="UPSERT_FAILED",
            details={"batch_size": batch_size},
        )
        self.batch_size = batch_size
        self.reason = reason
