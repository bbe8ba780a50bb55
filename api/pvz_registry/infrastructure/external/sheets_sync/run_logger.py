"""
Registro de corridas en sync_log.

Se invoca exactamente una vez por corrida desde un bloque finally. Un fallo
al escribir el log se reporta por loguru y nunca se relanza: el log no puede
hacer fallar la corrida que está reportando.
"""
from __future__ import annotations

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pvz_registry.infrastructure.repositories.sync_log_repository import SyncLogRepository

from .types import SyncRunSummary


class SyncRunLogger:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def log(self, summary: SyncRunSummary) -> bool:
        """Persiste el resumen; retorna False si no se pudo escribir."""
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await SyncLogRepository(session).add(summary)
        except Exception:
            logger.exception(
                f"Error escribiendo sync_log ({summary.status.value}: {summary.message})"
            )
            return False

        logger.info(f"Log de sincronización escrito: {summary.status.value} - {summary.message}")
        return True
