"""
Mapeo de encabezados de la hoja de PVZ -> campos de SiteRecord.

Este es el punto único para ajustar los nombres de columnas de la hoja:
- Cada campo acepta varios alias de encabezado (el primero no vacío gana).
- El campo `site_id` es la clave natural y es obligatorio.

Este módulo no realiza I/O: solo define configuración.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldMapping:
    """
    Define el mapeo de una columna de la hoja a un campo de SiteRecord.

    - source_headers: alias de encabezado, en orden de preferencia
    - field: nombre del campo en SiteRecord
    """

    source_headers: tuple[str, ...]
    field: str


SITE_KEY_MAPPING = FieldMapping(
    source_headers=("Внешний ID ПВЗ", "PVZID"),
    field="site_id",
)

SITE_FIELD_MAPPINGS: list[FieldMapping] = [
    FieldMapping(source_headers=("Регион",), field="region"),
    FieldMapping(source_headers=("Адрес",), field="address"),
    FieldMapping(source_headers=("Наименование сервиса",), field="service_name"),
    FieldMapping(source_headers=("Дата статуса",), field="status_date"),
    FieldMapping(source_headers=("Наименование статуса",), field="status_name"),
    FieldMapping(source_headers=("Наименование компании",), field="organization_name"),
    FieldMapping(source_headers=("Телефон",), field="organization_phone"),
    FieldMapping(source_headers=("Дата транзакции",), field="transaction_date"),
    # Se conserva como texto: evita redondeos por locale/precisión
    FieldMapping(source_headers=("Сумма транзакции, руб",), field="transaction_amount"),
    FieldMapping(source_headers=("Индекс",), field="postal_code"),
    FieldMapping(source_headers=("Примерочная",), field="fitting_room"),
]
