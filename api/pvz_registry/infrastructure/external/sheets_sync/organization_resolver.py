"""
Resolución de organizaciones por nombre: nombre libre -> organization_id estable.

Garantía: como máximo una organización por nombre normalizado, incluso con
resoluciones concurrentes dentro del proceso. Se apoya en dos capas:
- UNIQUE(name) en la tabla (INSERT OR IGNORE + relectura por nombre).
- Un lock asyncio a nivel de proceso alrededor de la creación, para que dos
  corridas no calculen el mismo ID secuencial a la vez.

La caché nombre -> id es por instancia: se crea un resolver nuevo por corrida.
"""
from __future__ import annotations

import asyncio
import re
import weakref
from typing import Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pvz_registry.infrastructure.repositories.organization_repository import OrganizationRepository
from pvz_registry.shared.exceptions.sync import ResolutionFailedError

_WHITESPACE_RE = re.compile(r"\s+")

# Un lock por event loop (los tests crean un loop por test)
_creation_locks: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, asyncio.Lock]" = (
    weakref.WeakKeyDictionary()
)

_MAX_CREATE_ATTEMPTS = 3


def normalize_organization_name(name: Optional[str]) -> str:
    """'  Acme   Co ' -> 'Acme Co'."""
    if not name:
        return ""
    return _WHITESPACE_RE.sub(" ", str(name)).strip()


def organization_creation_lock() -> asyncio.Lock:
    """Lock de creación compartido por todo el proceso (para el loop actual)."""
    loop = asyncio.get_running_loop()
    lock = _creation_locks.get(loop)
    if lock is None:
        lock = asyncio.Lock()
        _creation_locks[loop] = lock
    return lock


class OrganizationResolver:
    """
    Busca o crea organizaciones. Cada escritura usa su propia transacción.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        creation_lock: Optional[asyncio.Lock] = None,
    ) -> None:
        self._session_factory = session_factory
        self._creation_lock = creation_lock
        self._cache: dict[str, str] = {}
        self.created_count = 0

    @property
    def cache(self) -> dict[str, str]:
        return self._cache

    async def resolve(self, name: Optional[str], phone: Optional[str] = None) -> Optional[str]:
        """
        Retorna el organization_id para `name`, creándolo si no existe.

        Nombre vacío -> None (un PVZ puede no tener organización).

        Raises:
            ResolutionFailedError: error de base de datos al buscar o crear
        """
        normalized = normalize_organization_name(name)
        if not normalized:
            return None

        cached = self._cache.get(normalized)
        if cached is not None:
            return cached

        try:
            async with self._session_factory() as session:
                existing = await OrganizationRepository(session).get_id_by_name(normalized)
        except SQLAlchemyError as e:
            raise ResolutionFailedError(normalized, str(e)) from e

        if existing is not None:
            self._cache[normalized] = existing
            return existing

        organization_id = await self._create(normalized, (phone or "").strip() or None)
        self._cache[normalized] = organization_id
        return organization_id

    async def _create(self, name: str, phone: Optional[str]) -> str:
        lock = self._creation_lock or organization_creation_lock()
        async with lock:
            for attempt in range(1, _MAX_CREATE_ATTEMPTS + 1):
                try:
                    organization_id, created = await self._create_once(name, phone)
                except SQLAlchemyError as e:
                    raise ResolutionFailedError(name, str(e)) from e

                if organization_id is not None:
                    if created:
                        self.created_count += 1
                        logger.info(f"Creada nueva organización: {name} (ID: {organization_id})")
                    return organization_id

                # El ID calculado ya estaba tomado por otra organización: recalcular
                logger.warning(
                    f"Colisión de ID creando organización '{name}' (intento {attempt}/{_MAX_CREATE_ATTEMPTS})"
                )

        raise ResolutionFailedError(name, "no se pudo asignar un ID secuencial libre")

    async def _create_once(self, name: str, phone: Optional[str]) -> tuple[Optional[str], bool]:
        """
        Una transacción: re-chequeo, siguiente ID, INSERT OR IGNORE y relectura.
        """
        async with self._session_factory() as session:
            async with session.begin():
                repo = OrganizationRepository(session)

                # Otra corrida pudo crearla mientras esperábamos el lock
                existing = await repo.get_id_by_name(name)
                if existing is not None:
                    return existing, False

                candidate_id = await repo.next_sequential_id()
                await repo.insert_ignore(candidate_id, name, phone)
                authoritative = await repo.get_id_by_name(name)
                return authoritative, authoritative == candidate_id
