"""
Scheduler de la sincronización periódica (APScheduler, un único job de intervalo).

Estado:
- `scheduler_running` en la tabla settings es la fuente de verdad entre
  reinicios ("true"/"false").
- La cadencia vive en memoria; al reiniciar se vuelve a leer de
  `updateFrequency` (60 minutos si no hay valor válido).

Cada disparo lanza una corrida completa como tarea asyncio y retorna de
inmediato, así APScheduler nunca bloquea un disparo por una corrida larga.
Con SYNC_PREVENT_OVERLAP=True un disparo se omite si hay otra corrida en curso.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from pvz_registry.application.services.settings_store import (
    KEY_SCHEDULER_RUNNING,
    SettingsStore,
)
from pvz_registry.infrastructure.external.sheets_sync.types import RunType
from pvz_registry.shared.exceptions.sync import SyncConfigError

SYNC_JOB_ID = "sites_sync"

RunSync = Callable[[RunType], Awaitable[Any]]


@dataclass
class SchedulerState:
    running: bool = False
    cadence_minutes: int = 60


class SyncScheduler:
    """
    Start/stop/reconfigure del job de sincronización.

    Las transiciones se serializan con un lock para que dos requests
    concurrentes no instalen dos jobs.
    """

    def __init__(
        self,
        *,
        settings_store: SettingsStore,
        run_sync: RunSync,
        scheduler: Optional[AsyncIOScheduler] = None,
        timezone: str = "Europe/Moscow",
        default_frequency: int = 60,
        prevent_overlap: bool = False,
    ) -> None:
        self._settings = settings_store
        self._run_sync = run_sync
        self._timezone = timezone
        self._scheduler = scheduler or AsyncIOScheduler(timezone=timezone)
        self._default_frequency = default_frequency
        self._prevent_overlap = prevent_overlap

        self._state = SchedulerState(running=False, cadence_minutes=default_frequency)
        self._cadence_override: Optional[int] = None
        self._transition_lock = asyncio.Lock()
        self._tasks: Set[asyncio.Task] = set()
        self._in_flight = 0

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def pending_tasks(self) -> Set[asyncio.Task]:
        return set(self._tasks)

    async def initialize(self) -> None:
        """
        Restaura el estado persistido al iniciar el proceso.
        Si el scheduler estaba corriendo, se re-arma de inmediato.
        """
        sync_settings = await self._settings.get_sync_settings(use_cache=False)
        self._state.cadence_minutes = sync_settings.update_frequency

        if sync_settings.scheduler_running:
            logger.info("Restaurando scheduler de sincronización (estaba activo)")
            await self.start()
        else:
            logger.info("Scheduler de sincronización detenido (estado persistido)")

    async def start(self) -> Dict[str, Any]:
        async with self._transition_lock:
            if self._state.running:
                logger.debug("Scheduler ya está corriendo")
                return self.get_status()
            await self._arm()
            return self.get_status()

    async def stop(self) -> Dict[str, Any]:
        async with self._transition_lock:
            await self._disarm()
            return self.get_status()

    async def reconfigure(self, cadence_minutes: int) -> Dict[str, Any]:
        """
        Cambia la cadencia. Si está corriendo, detiene y vuelve a arrancar
        para que el próximo disparo ocurra dentro de la nueva cadencia.
        """
        if cadence_minutes is None or int(cadence_minutes) <= 0:
            raise SyncConfigError(
                f"Frecuencia inválida: {cadence_minutes} (debe ser > 0 minutos)",
                setting="updateFrequency",
            )

        async with self._transition_lock:
            self._cadence_override = int(cadence_minutes)
            self._state.cadence_minutes = self._cadence_override
            if self._state.running:
                await self._disarm()
                await self._arm()
            logger.info(f"Frecuencia de sincronización actualizada a {cadence_minutes} minutos")
            return self.get_status()

    def get_status(self) -> Dict[str, Any]:
        job = self._scheduler.get_job(SYNC_JOB_ID) if self._scheduler.running else None
        next_run: Optional[datetime] = job.next_run_time if job else None
        return {
            "running": self._state.running,
            "frequency_minutes": self._state.cadence_minutes,
            "next_run": next_run,
            "runs_in_progress": self._in_flight,
        }

    async def shutdown(self) -> None:
        """
        Detiene APScheduler al cerrar el proceso sin tocar el estado persistido.
        Las corridas en curso se cancelan y se esperan antes de cerrar la base.
        """
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._state.running = False

        pending = self.pending_tasks
        if pending:
            logger.warning(f"Cancelando {len(pending)} sincronizaciones en curso")
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
        logger.info("Scheduler de sincronización detenido (shutdown)")

    async def _resolve_cadence(self) -> int:
        if self._cadence_override is not None:
            return self._cadence_override
        sync_settings = await self._settings.get_sync_settings()
        return sync_settings.update_frequency or self._default_frequency

    async def _arm(self) -> None:
        cadence = await self._resolve_cadence()
        if not self._scheduler.running:
            self._scheduler.start()

        self._remove_job()
        self._scheduler.add_job(
            self._on_tick,
            trigger=IntervalTrigger(minutes=cadence, timezone=self._timezone),
            id=SYNC_JOB_ID,
            name="Sincronización Google Sheets -> PVZ",
            replace_existing=True,
            coalesce=True,
        )
        self._state.running = True
        self._state.cadence_minutes = cadence
        await self._settings.set_value(KEY_SCHEDULER_RUNNING, "true")
        logger.success(f"Scheduler iniciado con frecuencia de {cadence} minutos")

    async def _disarm(self) -> None:
        self._remove_job()
        self._state.running = False
        await self._settings.set_value(KEY_SCHEDULER_RUNNING, "false")
        logger.info("Scheduler de sincronización detenido")

    def _remove_job(self) -> None:
        if self._scheduler.get_job(SYNC_JOB_ID) is not None:
            self._scheduler.remove_job(SYNC_JOB_ID)

    async def _on_tick(self) -> None:
        if self._prevent_overlap and self._in_flight:
            logger.warning("Disparo omitido: hay una sincronización en curso")
            return

        logger.info(f"Autosincronización ({self._state.cadence_minutes} min)...")
        self._in_flight += 1
        task = asyncio.create_task(self._run_scheduled())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_scheduled(self) -> None:
        try:
            await self._run_sync(RunType.SCHEDULED)
        except Exception as e:
            # La corrida ya quedó registrada en sync_log; el próximo disparo es el reintento
            logger.error(f"Error en autosincronización: {e}")
        finally:
            self._in_flight -= 1
