"""
Normalizador y validador de filas de la hoja de PVZ.

Por cada fila cruda:
- Extrae la clave natural (varios alias de encabezado).
- Omite filas sin clave (missing_key) sin abortar el batch.
- Omite claves repetidas dentro del mismo batch (duplicate_in_batch):
  gana la primera aparición, las siguientes se descartan sin mezclar.
- Convierte el resto de valores a texto, sin parsear números.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from .table_mappings import SITE_FIELD_MAPPINGS, SITE_KEY_MAPPING, FieldMapping
from .types import RawRow, RowSkip, SiteRecord, SkipReason


def to_text(value: Any) -> str:
    """
    Convierte un valor crudo de Sheets a texto sin perder información.

    Los floats enteros se renderizan sin ".0" (1500.0 -> "1500"), el resto
    con su representación más corta (repr) para no perder precisión.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def extract_value(row: RawRow, mapping: FieldMapping) -> str:
    """Retorna el primer alias con valor no vacío, o ""."""
    for header in mapping.source_headers:
        text = to_text(row.get(header))
        if text.strip():
            return text
    return ""


@dataclass
class NormalizationResult:
    """Registros válidos + motivos de omisión (en paralelo)."""

    records: list[SiteRecord] = field(default_factory=list)
    skips: list[RowSkip] = field(default_factory=list)

    def skip_counts(self) -> dict[str, int]:
        return dict(Counter(s.reason.value for s in self.skips))


def normalize_row(row: RawRow, row_number: int) -> Optional[SiteRecord]:
    """Normaliza una fila; retorna None si no tiene clave natural."""
    site_id = extract_value(row, SITE_KEY_MAPPING).strip()
    if not site_id:
        return None

    values = {m.field: extract_value(row, m) for m in SITE_FIELD_MAPPINGS}
    return SiteRecord(site_id=site_id, row_number=row_number, **values)


def normalize_rows(rows: Iterable[RawRow]) -> NormalizationResult:
    # row_number es 1-based respecto a las filas de datos (sin encabezado)
    result = NormalizationResult()
    seen: set[str] = set()

    for row_number, row in enumerate(rows, start=1):
        record = normalize_row(row, row_number)
        if record is None:
            result.skips.append(RowSkip(row_number=row_number, reason=SkipReason.MISSING_KEY))
            continue

        if record.site_id in seen:
            result.skips.append(
                RowSkip(
                    row_number=row_number,
                    reason=SkipReason.DUPLICATE_IN_BATCH,
                    site_id=record.site_id,
                )
            )
            continue

        seen.add(record.site_id)
        result.records.append(record)

    return result
