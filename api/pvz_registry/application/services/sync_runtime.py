"""
Contenedor de las piezas de larga vida del sync (una instancia por proceso).

Se construye en el startup y se guarda en `app.state.sync_runtime`; los
endpoints lo obtienen por dependencia y los tests lo reemplazan.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pvz_registry.application.services.settings_store import SettingsStore
from pvz_registry.application.services.sync_scheduler import SyncScheduler
from pvz_registry.infrastructure.external.sheets_sync.sheets_client import GoogleSheetsClient
from pvz_registry.infrastructure.external.sheets_sync.sync_service import SheetsToSitesSync, SourceReader
from pvz_registry.infrastructure.external.sheets_sync.types import RunType, SyncResult


@dataclass
class SyncRuntime:
    session_factory: async_sessionmaker[AsyncSession]
    settings_store: SettingsStore
    sheets_client: Any
    sync: SheetsToSitesSync
    scheduler: SyncScheduler

    async def run_sync(self, run_type: RunType = RunType.MANUAL) -> SyncResult:
        return await self.sync.run_once(run_type)

    @classmethod
    def build(
        cls,
        app_settings: Any,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        reader: Optional[SourceReader] = None,
    ) -> "SyncRuntime":
        """
        Arma el grafo de dependencias a partir de la configuración del proceso.
        `reader` permite inyectar un lector falso en tests.
        """
        settings_store = SettingsStore(
            session_factory,
            ttl_s=app_settings.SETTINGS_CACHE_TTL_S,
            default_frequency=app_settings.SYNC_DEFAULT_FREQUENCY_MINUTES,
        )
        sheets_client = reader or GoogleSheetsClient.from_settings(app_settings)
        sync = SheetsToSitesSync(
            session_factory=session_factory,
            settings_store=settings_store,
            reader=sheets_client,
        )
        scheduler = SyncScheduler(
            settings_store=settings_store,
            run_sync=sync.run_once,
            timezone=app_settings.SYNC_SCHEDULER_TIMEZONE,
            default_frequency=app_settings.SYNC_DEFAULT_FREQUENCY_MINUTES,
            prevent_overlap=app_settings.SYNC_PREVENT_OVERLAP,
        )
        return cls(
            session_factory=session_factory,
            settings_store=settings_store,
            sheets_client=sheets_client,
            sync=sync,
            scheduler=scheduler,
        )
