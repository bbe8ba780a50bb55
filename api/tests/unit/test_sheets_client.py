"""
Tests unitarios para el cliente de Google Sheets (con servicio mockeado).
"""
from unittest.mock import MagicMock

import httplib2
import pytest

from pvz_registry.infrastructure.external.sheets_sync.sheets_client import (
    GoogleSheetsClient,
    build_values_range,
    grid_to_rows,
    load_service_account_credentials,
)
from pvz_registry.shared.exceptions.sync import SourceUnavailableError


def _service(meta=None, values=None, meta_error=None, values_error=None) -> MagicMock:
    service = MagicMock()
    spreadsheets = service.spreadsheets.return_value

    get_request = spreadsheets.get.return_value
    if meta_error is not None:
        get_request.execute.side_effect = meta_error
    else:
        get_request.execute.return_value = meta or {}

    values_request = spreadsheets.values.return_value.get.return_value
    if values_error is not None:
        values_request.execute.side_effect = values_error
    else:
        values_request.execute.return_value = values or {}
    return service


def _meta(row_count=3):
    return {
        "properties": {"title": "Реестр ПВЗ"},
        "sheets": [{"properties": {"title": "PVZ", "gridProperties": {"rowCount": row_count}}}],
    }


def test_grid_to_rows_pads_short_rows_and_ignores_blank_headers():
    values = [
        ["Внешний ID ПВЗ", "", "Регион"],
        ["A1", "ignored", "Москва"],
        ["B2"],
    ]

    rows = grid_to_rows(values)

    assert rows == [
        {"Внешний ID ПВЗ": "A1", "Регион": "Москва"},
        {"Внешний ID ПВЗ": "B2", "Регион": ""},
    ]


def test_grid_to_rows_header_only_is_empty():
    assert grid_to_rows([["Внешний ID ПВЗ", "Регион"]]) == []
    assert grid_to_rows(None) == []


def test_build_values_range_quotes_sheet_name():
    assert build_values_range("Лист 1", 120) == "'Лист 1'!A1:Z120"
    assert build_values_range("O'Hara", None) == "'O''Hara'!A:Z"


def test_fetch_rows_reads_metadata_then_values():
    service = _service(
        meta=_meta(row_count=3),
        values={"values": [["Внешний ID ПВЗ", "Сумма транзакции, руб"], ["A1", 1500.5]]},
    )
    client = GoogleSheetsClient(service=service)

    rows = client.fetch_rows("sheet-id", "PVZ")

    assert rows == [{"Внешний ID ПВЗ": "A1", "Сумма транзакции, руб": 1500.5}]
    meta_kwargs = service.spreadsheets.return_value.get.call_args.kwargs
    assert meta_kwargs["includeGridData"] is False
    values_kwargs = service.spreadsheets.return_value.values.return_value.get.call_args.kwargs
    assert values_kwargs["range"] == "'PVZ'!A1:Z3"
    assert values_kwargs["valueRenderOption"] == "UNFORMATTED_VALUE"
    assert values_kwargs["dateTimeRenderOption"] == "FORMATTED_STRING"


def test_fetch_rows_empty_sheet_returns_empty_list():
    client = GoogleSheetsClient(service=_service(meta=_meta(), values={}))
    assert client.fetch_rows("sheet-id", "PVZ") == []


def test_transport_error_becomes_source_unavailable():
    client = GoogleSheetsClient(service=_service(meta_error=httplib2.HttpLib2Error("timed out")))

    with pytest.raises(SourceUnavailableError) as exc_info:
        client.fetch_rows("sheet-id", "PVZ")

    assert exc_info.value.status_code == 502
    assert exc_info.value.details == {"spreadsheet_id": "sheet-id"}


def test_values_error_becomes_source_unavailable():
    client = GoogleSheetsClient(
        service=_service(meta=_meta(), values_error=OSError("connection reset"))
    )

    with pytest.raises(SourceUnavailableError):
        client.fetch_rows("sheet-id", "PVZ")


def test_missing_credentials_raise_source_unavailable():
    with pytest.raises(SourceUnavailableError):
        load_service_account_credentials("", "")

    with pytest.raises(SourceUnavailableError):
        load_service_account_credentials("{not json", "")


def test_test_connection_returns_title_and_sheets():
    client = GoogleSheetsClient(service=_service(meta=_meta()))

    assert client.test_connection("sheet-id") == {"title": "Реестр ПВЗ", "sheets": ["PVZ"]}
