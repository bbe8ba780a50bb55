"""
INSERT ... ON CONFLICT portable entre PostgreSQL (producción) y SQLite (tests).

Ambos dialectos exponen `insert()` con on_conflict_do_update/do_nothing y
la pseudo-tabla `excluded`; solo cambia el módulo de origen.
"""
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession


def dialect_insert(session: AsyncSession, table):
    """Retorna el constructor `insert` del dialecto de la sesión."""
    dialect_name = session.get_bind().dialect.name
    if dialect_name == "postgresql":
        return postgresql.insert(table)
    if dialect_name == "sqlite":
        return sqlite.insert(table)
    raise NotImplementedError(f"Dialecto sin soporte de ON CONFLICT: {dialect_name}")
