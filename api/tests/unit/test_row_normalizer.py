"""
Tests unitarios para el normalizador de filas de la hoja de PVZ.

Verifica:
- Extracción de la clave natural por alias de encabezado.
- Omisión de filas sin clave y de claves repetidas (gana la primera).
- Conversión a texto sin parsear montos.
"""
import pytest

from pvz_registry.infrastructure.external.sheets_sync.row_normalizer import (
    normalize_row,
    normalize_rows,
    to_text,
)
from pvz_registry.infrastructure.external.sheets_sync.types import SkipReason
from tests.fakes import sheet_row


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, ""),
        ("", ""),
        (1500.0, "1500"),
        (1234.56, "1234.56"),
        (42, "42"),
        (True, "true"),
        ("1 234,50", "1 234,50"),
    ],
)
def test_to_text(value, expected):
    assert to_text(value) == expected


def test_key_is_trimmed_and_fields_mapped():
    row = sheet_row(" A1 ", "Acme Co", transaction_amount=1500.0, postal_code=101000)

    record = normalize_row(row, row_number=1)

    assert record is not None
    assert record.site_id == "A1"
    assert record.organization_name == "Acme Co"
    assert record.organization_phone == "+7 900 000-00-00"
    assert record.transaction_amount == "1500"
    assert record.postal_code == "101000"
    assert record.region == "Москва"
    assert record.organization_id is None


def test_key_alias_pvzid_is_used_when_primary_header_is_blank():
    row = {"Внешний ID ПВЗ": "  ", "PVZID": "Z9", "Адрес": "ул. Ленина, 5"}

    record = normalize_row(row, row_number=3)

    assert record.site_id == "Z9"
    assert record.address == "ул. Ленина, 5"
    # Campos ausentes -> texto vacío
    assert record.region == ""


def test_missing_key_is_skipped_without_aborting_batch():
    rows = [sheet_row("", "Acme"), sheet_row("B2", "Acme"), {"Адрес": "без ключа"}]

    result = normalize_rows(rows)

    assert [r.site_id for r in result.records] == ["B2"]
    assert [(s.row_number, s.reason) for s in result.skips] == [
        (1, SkipReason.MISSING_KEY),
        (3, SkipReason.MISSING_KEY),
    ]


def test_duplicate_key_first_occurrence_wins():
    rows = [
        sheet_row("A1", "Acme Co", address="первый"),
        sheet_row("A1", "Other", address="второй"),
        sheet_row("B2", " Acme Co "),
    ]

    result = normalize_rows(rows)

    assert [r.site_id for r in result.records] == ["A1", "B2"]
    assert result.records[0].address == "первый"
    assert len(result.skips) == 1
    skip = result.skips[0]
    assert skip.reason is SkipReason.DUPLICATE_IN_BATCH
    assert skip.site_id == "A1"
    assert skip.row_number == 2
    assert result.skip_counts() == {"duplicate_in_batch": 1}


def test_skip_accounting_adds_up():
    rows = [
        sheet_row("A1"),
        sheet_row(""),
        sheet_row("A1"),
        sheet_row("C3"),
        sheet_row(None),
    ]

    result = normalize_rows(rows)
    counts = result.skip_counts()

    assert len(rows) == len(result.records) + counts["missing_key"] + counts["duplicate_in_batch"]
    assert counts == {"missing_key": 2, "duplicate_in_batch": 1}


def test_empty_input():
    result = normalize_rows([])
    assert result.records == []
    assert result.skips == []
