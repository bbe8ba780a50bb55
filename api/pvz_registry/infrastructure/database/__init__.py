"""
Configuración de base de datos.

Importa todos los modelos para que se registren con Base
antes de crear las tablas.
"""
from pvz_registry.infrastructure.database.models import (
    OrganizationModel,
    SiteModel,
    SyncLogModel,
    SettingModel,
)
