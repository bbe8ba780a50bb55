"""
Repositorio de PVZ (tabla sites).

El UPSERT solo reemplaza columnas sincronizadas desde la hoja: `problems`
(escrita por la UI) y `created_at` se preservan siempre.
"""
from typing import Any, Iterable, Sequence
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from pvz_registry.infrastructure.database.dialect import dialect_insert
from pvz_registry.infrastructure.database.models import SiteModel


SYNCED_COLUMNS: tuple[str, ...] = (
    "region",
    "address",
    "service_name",
    "status_date",
    "status_name",
    "organization_id",
    "transaction_date",
    "transaction_amount",
    "phone",
    "postal_code",
    "fitting_room",
    "synced_at",
)

# Límite conservador de parámetros por IN (...) para SQLite
_IN_CHUNK_SIZE = 500


class SiteRepository:
    """Repositorio para gestionar PVZ en la base de datos."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_synced_site_ids(self, site_ids: Iterable[str]) -> set[str]:
        """
        Retorna el subconjunto de site_ids que ya tenían synced_at
        (se usa solo para clasificar CREATED vs UPDATED).
        """
        ids = list(site_ids)
        synced: set[str] = set()
        for start in range(0, len(ids), _IN_CHUNK_SIZE):
            chunk = ids[start:start + _IN_CHUNK_SIZE]
            result = await self.db.execute(
                select(SiteModel.site_id).where(
                    SiteModel.site_id.in_(chunk),
                    SiteModel.synced_at.is_not(None),
                )
            )
            synced.update(result.scalars())
        return synced

    def _upsert_statement(self):
        stmt = dialect_insert(self.db, SiteModel)
        set_cols: dict[str, Any] = {col: getattr(stmt.excluded, col) for col in SYNCED_COLUMNS}
        set_cols["updated_at"] = func.now()
        return stmt.on_conflict_do_update(index_elements=[SiteModel.site_id], set_=set_cols)

    async def upsert_rows(self, rows: Sequence[dict[str, Any]]) -> None:
        """
        INSERT ... ON CONFLICT (site_id) DO UPDATE, un statement por fila.
        No hace commit: el caller controla la transacción.
        """
        if not rows:
            return
        await self.db.execute(self._upsert_statement(), list(rows))

    async def upsert_row(self, row: dict[str, Any]) -> None:
        await self.db.execute(self._upsert_statement().values(**row))
