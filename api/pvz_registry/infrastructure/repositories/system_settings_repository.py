"""
Repositorio para gestionar la tabla `settings` (clave/valor en texto).
"""
from typing import Optional, Dict
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from loguru import logger

from pvz_registry.infrastructure.database.dialect import dialect_insert
from pvz_registry.infrastructure.database.models import SettingModel


class SystemSettingsRepository:
    """
    Gestiona la tabla settings. No hace commit: el caller controla la transacción.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_all(self) -> Dict[str, str]:
        """
        Obtiene todas las configuraciones como un diccionario.
        """
        result = await self.db.execute(select(SettingModel.key, SettingModel.value))
        return {key: value for key, value in result.all()}

    async def set_value(self, key: str, value: str, description: Optional[str] = None) -> None:
        """
        Crea o actualiza una configuración (INSERT OR REPLACE por clave).
        """
        values = {"key": key, "value": str(value)}
        if description:
            values["description"] = description

        stmt = dialect_insert(self.db, SettingModel).values(**values)
        update_cols = {"value": stmt.excluded.value, "updated_at": func.now()}
        if description:
            update_cols["description"] = stmt.excluded.description
        stmt = stmt.on_conflict_do_update(index_elements=[SettingModel.key], set_=update_cols)

        await self.db.execute(stmt)
        logger.debug(f"Configuración '{key}' actualizada a: {value}")
