"""
Configuracion central de la aplicacion.
Gestiona variables de entorno y configuraciones globales.
Soporta configuracion dinamica para desarrollo (ENVIRONMENT=development)
y produccion (ENVIRONMENT=production).

Nota: los parametros de negocio del sync (ID de la tabla, hoja, frecuencia)
no viven aqui sino en la tabla `settings`, editable desde la API.
"""
import json
from typing import List
from pydantic_settings import BaseSettings
from pydantic import Field, computed_field


class Settings(BaseSettings):
    """
    Clase de configuracion de la aplicacion.
    Lee variables de entorno y proporciona valores por defecto.

    Configuracion de desarrollo vs produccion:
    - ENVIRONMENT: 'development' o 'production'
    - DATABASE_URL se puede especificar completa o por componentes
    - Credenciales de Google: JSON inline (GOOGLE_CREDENTIALS) o ruta a archivo
      (GOOGLE_CREDENTIALS_PATH)
    """

    # Configuracion de la aplicacion
    APP_NAME: str = Field(default="Registro de PVZ")
    APP_VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=False)
    ENVIRONMENT: str = Field(default="production")

    # Configuracion del servidor
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)

    # Base de datos - Componentes separados (recomendado para flexibilidad)
    DATABASE_HOST: str = Field(default="localhost")
    DATABASE_PORT: int = Field(default=5432)
    DATABASE_USER: str = Field(default="pvz_user")
    DATABASE_PASSWORD: str = Field(default="pvz_pass")
    DATABASE_NAME: str = Field(default="pvz_db")

    # Base de datos - URL completa (override de componentes si se proporciona)
    DATABASE_URL: str = Field(default="")
    DB_POOL_SIZE: int = Field(default=5)
    DB_MAX_OVERFLOW: int = Field(default=10)

    # Google Sheets
    GOOGLE_CREDENTIALS: str = Field(default="")
    GOOGLE_CREDENTIALS_PATH: str = Field(default="")
    # Timeout del transporte HTTP hacia la API de Sheets (tablas grandes tardan)
    SHEETS_TIMEOUT_S: int = Field(default=60)

    # Sincronizacion
    SYNC_DEFAULT_FREQUENCY_MINUTES: int = Field(default=60)
    SETTINGS_CACHE_TTL_S: float = Field(default=300.0)
    # Si True, un disparo del scheduler se omite mientras otra corrida sigue en curso
    SYNC_PREVENT_OVERLAP: bool = Field(default=False)
    SYNC_SCHEDULER_TIMEZONE: str = Field(default="Europe/Moscow")

    # CORS (acepta lista JSON o "*" para todos los origenes)
    CORS_ORIGINS: str = Field(default="*")

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE: str = Field(default="logs/app.log")

    @computed_field
    @property
    def effective_database_url(self) -> str:
        """
        Retorna la URL de base de datos efectiva.
        Si DATABASE_URL esta definida, la usa directamente.
        Si no, construye la URL desde los componentes individuales.
        """
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.DATABASE_USER}:{self.DATABASE_PASSWORD}"
            f"@{self.DATABASE_HOST}:{self.DATABASE_PORT}/{self.DATABASE_NAME}"
        )

    @computed_field
    @property
    def is_development(self) -> bool:
        """Indica si el entorno es de desarrollo."""
        return self.ENVIRONMENT.lower() == "development"

    class Config:
        """Configuracion de Pydantic."""
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignorar campos extra del .env


def get_cors_origins(cors_string: str) -> List[str]:
    """
    Parsea la configuracion de CORS.
    Acepta "*" para todos los origenes o una lista JSON.
    """
    if cors_string == "*":
        return ["*"]
    try:
        return json.loads(cors_string)
    except json.JSONDecodeError:
        return [origin.strip() for origin in cors_string.split(",")]


# Instancia global de configuracion
settings = Settings()
