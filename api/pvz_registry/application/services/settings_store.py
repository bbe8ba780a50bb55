"""
Acceso a la tabla settings con caché TTL en memoria.

Las lecturas de la API y del scheduler pasan por la caché (5 minutos por
defecto). El orquestador del sync lee con use_cache=False para trabajar con
una foto fresca de la configuración en cada corrida.
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Dict, Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pvz_registry.infrastructure.repositories.system_settings_repository import SystemSettingsRepository

KEY_TABLE_ID = "pvzTableId"
KEY_SHEET_NAME = "pvzSheetName"
KEY_UPDATE_FREQUENCY = "updateFrequency"
KEY_SCHEDULER_RUNNING = "scheduler_running"
KEY_LAST_UPDATE = "lastUpdate"

DEFAULT_UPDATE_FREQUENCY = "60"

DEFAULT_SETTINGS = [
    {
        "key": KEY_UPDATE_FREQUENCY,
        "value": DEFAULT_UPDATE_FREQUENCY,
        "description": "Frecuencia de sincronización automática con Google Sheets (minutos).",
    },
    {
        "key": KEY_SCHEDULER_RUNNING,
        "value": "false",
        "description": "Estado persistido del scheduler de sincronización.",
    },
]


def parse_frequency(value: Optional[str], default: int) -> int:
    """'15' -> 15. Valores vacíos, no numéricos o <= 0 -> default."""
    try:
        minutes = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    return minutes if minutes > 0 else default


@dataclass(frozen=True)
class SyncSettings:
    """Foto de la configuración del sync."""

    table_id: str
    sheet_name: str
    update_frequency: int
    scheduler_running: bool
    last_update: Optional[str] = None


class SettingsStore:
    """
    Lecturas/escrituras de settings. Cada operación abre su propia sesión.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        ttl_s: float = 300.0,
        default_frequency: int = 60,
    ) -> None:
        self._session_factory = session_factory
        self._ttl_s = ttl_s
        self._default_frequency = default_frequency
        self._cache: Optional[Dict[str, str]] = None
        self._cache_loaded_at = 0.0

    def _cache_valid(self) -> bool:
        return self._cache is not None and (time.monotonic() - self._cache_loaded_at) < self._ttl_s

    async def get_all(self, *, use_cache: bool = True) -> Dict[str, str]:
        if use_cache and self._cache_valid():
            return dict(self._cache)

        async with self._session_factory() as session:
            values = await SystemSettingsRepository(session).get_all()

        self._cache = dict(values)
        self._cache_loaded_at = time.monotonic()
        return dict(values)

    async def get_value(self, key: str, default: Optional[str] = None, *, use_cache: bool = True) -> Optional[str]:
        values = await self.get_all(use_cache=use_cache)
        value = values.get(key)
        return value if value is not None else default

    async def set_value(self, key: str, value: str, description: Optional[str] = None) -> None:
        await self.set_many({key: value}, descriptions={key: description} if description else None)

    async def set_many(self, values: Dict[str, str], *, descriptions: Optional[Dict[str, str]] = None) -> None:
        """Guarda varias claves en una sola transacción e invalida la caché."""
        descriptions = descriptions or {}
        async with self._session_factory() as session:
            async with session.begin():
                repo = SystemSettingsRepository(session)
                for key, value in values.items():
                    await repo.set_value(key, value, descriptions.get(key))
        self.clear_cache()

    def clear_cache(self) -> None:
        self._cache = None
        self._cache_loaded_at = 0.0
        logger.debug("Caché de configuraciones limpiada")

    async def get_sync_settings(self, *, use_cache: bool = True) -> SyncSettings:
        values = await self.get_all(use_cache=use_cache)
        return SyncSettings(
            table_id=(values.get(KEY_TABLE_ID) or "").strip(),
            sheet_name=(values.get(KEY_SHEET_NAME) or "").strip(),
            update_frequency=parse_frequency(values.get(KEY_UPDATE_FREQUENCY), self._default_frequency),
            scheduler_running=values.get(KEY_SCHEDULER_RUNNING) == "true",
            last_update=values.get(KEY_LAST_UPDATE),
        )

    async def seed_defaults(self) -> None:
        """
        Puebla configuraciones iniciales si no existen.
        """
        existing = await self.get_all(use_cache=False)
        missing = {s["key"]: s for s in DEFAULT_SETTINGS if s["key"] not in existing}
        if not missing:
            return

        await self.set_many(
            {key: s["value"] for key, s in missing.items()},
            descriptions={key: s["description"] for key, s in missing.items()},
        )
        logger.info(f"Configuraciones por defecto inicializadas: {', '.join(missing)}")
