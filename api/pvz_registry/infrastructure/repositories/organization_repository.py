"""
Repositorio de organizaciones (tabla organizations).
"""
from typing import Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pvz_registry.infrastructure.database.dialect import dialect_insert
from pvz_registry.infrastructure.database.models import OrganizationModel


ORGANIZATION_ID_WIDTH = 6


def format_organization_id(number: int, width: int = ORGANIZATION_ID_WIDTH) -> str:
    """42 -> "000042"."""
    return str(number).zfill(width)


class OrganizationRepository:
    """Repositorio para gestionar organizaciones en la base de datos."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_id_by_name(self, name: str) -> Optional[str]:
        """
        Busca una organización por nombre exacto (ya normalizado).
        """
        result = await self.db.execute(
            select(OrganizationModel.organization_id).where(OrganizationModel.name == name)
        )
        return result.scalars().first()

    async def next_sequential_id(self, width: int = ORGANIZATION_ID_WIDTH) -> str:
        """
        Calcula el siguiente ID secuencial: max(IDs puramente numéricos) + 1.

        IDs no numéricos (cargados a mano) se ignoran.
        """
        result = await self.db.execute(select(OrganizationModel.organization_id))
        numeric = [int(value) for value in result.scalars() if value and value.isdigit()]
        return format_organization_id(max(numeric, default=0) + 1, width)

    async def insert_ignore(self, organization_id: str, name: str, phone: Optional[str]) -> None:
        """
        INSERT OR IGNORE: si el nombre (o el ID) ya existe, no hace nada.
        """
        stmt = dialect_insert(self.db, OrganizationModel).values(
            organization_id=organization_id,
            name=name,
            phone=phone or None,
        ).on_conflict_do_nothing()
        await self.db.execute(stmt)
