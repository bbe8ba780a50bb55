"""
Modelos de base de datos (ORM).

Solo se modelan las tablas que toca el motor de sincronizacion:
sites, organizations, sync_log y settings.
"""
from sqlalchemy import Column, String, Integer, DateTime, Text, ForeignKey
from sqlalchemy.sql import func

from pvz_registry.infrastructure.database.session import Base


class OrganizationModel(Base):
    """
    Organizacion propietaria de PVZ.

    organization_id es un identificador secuencial con ceros a la izquierda
    (p.ej. "000042"). El nombre se guarda normalizado y es unico.
    """

    __tablename__ = "organizations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(String(16), nullable=False, unique=True, index=True)
    name = Column(String(500), nullable=False, unique=True)
    phone = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Organization(organization_id={self.organization_id}, name={self.name})>"


class SiteModel(Base):
    """
    Punto de servicio (PVZ) sincronizado desde Google Sheets.

    Columnas sincronizadas: todo excepto `problems`, que pertenece a la UI
    y nunca se sobreescribe en el UPSERT.
    """

    __tablename__ = "sites"

    id = Column(Integer, primary_key=True, autoincrement=True)
    site_id = Column(String(255), nullable=False, unique=True, index=True)
    region = Column(String(255), nullable=True, index=True)
    address = Column(Text, nullable=True)
    service_name = Column(String(255), nullable=True)
    status_date = Column(String(100), nullable=True)
    status_name = Column(String(255), nullable=True, index=True)
    organization_id = Column(
        String(16),
        ForeignKey("organizations.organization_id"),
        nullable=True,
        index=True,
    )
    transaction_date = Column(String(100), nullable=True)
    # Se guarda como texto tal cual llega de la hoja (sin parseo de moneda)
    transaction_amount = Column(String(100), nullable=True)
    phone = Column(String(100), nullable=True)
    postal_code = Column(String(50), nullable=True)
    fitting_room = Column(String(255), nullable=True)
    problems = Column(Text, nullable=True)
    synced_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Site(site_id={self.site_id}, region={self.region}, organization_id={self.organization_id})>"


class SyncLogModel(Base):
    """Registro inmutable de cada corrida de sincronizacion."""

    __tablename__ = "sync_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sync_type = Column(String(50), nullable=False, default="manual")
    status = Column(String(20), nullable=False, index=True)
    message = Column(Text, nullable=True)
    details = Column(Text, nullable=True)
    records_processed = Column(Integer, nullable=False, default=0)
    records_created = Column(Integer, nullable=False, default=0)
    records_updated = Column(Integer, nullable=False, default=0)
    records_skipped = Column(Integer, nullable=False, default=0)
    execution_time_ms = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)

    def __repr__(self):
        return f"<SyncLog(id={self.id}, status={self.status}, processed={self.records_processed})>"


class SettingModel(Base):
    """Configuracion clave/valor editable desde la API."""

    __tablename__ = "settings"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Setting(key={self.key}, value={self.value})>"
