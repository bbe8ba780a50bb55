"""
Cliente de lectura de Google Sheets (API v4, service account).

Requisitos cubiertos:
- Autenticación por service account (JSON inline o archivo).
- Consulta previa de metadatos para conocer el tamaño de la hoja.
- Lectura de valores sin formato, excepto fechas (como texto visible).
- Conversión de la grilla encabezado/filas a dicts.

No hay reintentos en esta capa: el siguiente tick del scheduler es el reintento.
El cliente es bloqueante; el orquestador lo ejecuta con asyncio.to_thread.
"""

from __future__ import annotations

import json
from typing import Any, Optional

import google_auth_httplib2
import httplib2
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from loguru import logger

from pvz_registry.shared.exceptions.sync import SourceUnavailableError

from .types import RawRow

SCOPES = ["https://www.googleapis.com/auth/spreadsheets.readonly"]

# La hoja de PVZ no supera la columna Z
COLUMN_SPAN = ("A", "Z")

_TRANSPORT_ERRORS = (HttpError, GoogleAuthError, httplib2.HttpLib2Error, OSError)


def quote_sheet_title(title: str) -> str:
    """Formatea el nombre de la hoja para notación A1 ('Hoja 1' -> "'Hoja 1'")."""
    return "'" + (title or "").strip().replace("'", "''") + "'"


def build_values_range(sheet_name: str, row_count: Optional[int]) -> str:
    first_col, last_col = COLUMN_SPAN
    quoted = quote_sheet_title(sheet_name)
    if row_count and row_count > 0:
        return f"{quoted}!{first_col}1:{last_col}{row_count}"
    return f"{quoted}!{first_col}:{last_col}"


def grid_to_rows(values: Optional[list[list[Any]]]) -> list[RawRow]:
    """
    Convierte la grilla [encabezado, fila, fila, ...] en una lista de dicts.

    - Celdas faltantes al final de una fila se rellenan con "".
    - Encabezados vacíos se ignoran.
    - Sin datos (o solo encabezado) -> lista vacía.
    """
    if not values:
        return []

    headers = [str(h).strip() if h is not None else "" for h in values[0]]
    indexed = [(idx, h) for idx, h in enumerate(headers) if h]

    rows: list[RawRow] = []
    for raw in values[1:]:
        row: RawRow = {}
        for idx, header in indexed:
            value = raw[idx] if idx < len(raw) else ""
            row[header] = "" if value is None else value
        rows.append(row)
    return rows


def load_service_account_credentials(
    credentials_json: str = "",
    credentials_path: str = "",
) -> service_account.Credentials:
    """
    Construye credenciales de service account.

    Prioridad: JSON inline (GOOGLE_CREDENTIALS) y luego archivo
    (GOOGLE_CREDENTIALS_PATH).
    """
    try:
        if credentials_json:
            info = json.loads(credentials_json)
            return service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
        if credentials_path:
            return service_account.Credentials.from_service_account_file(credentials_path, scopes=SCOPES)
    except (ValueError, OSError) as e:
        raise SourceUnavailableError(f"Credenciales de Google inválidas: {e}") from e

    raise SourceUnavailableError(
        "No están definidas GOOGLE_CREDENTIALS ni GOOGLE_CREDENTIALS_PATH"
    )


class GoogleSheetsClient:
    """
    Lector de la hoja de PVZ.

    Importante:
    - No hace cast de tipos: eso lo decide el normalizador.
    - `service` es inyectable (tests); si no se pasa, se construye de forma
      perezosa en la primera llamada.
    """

    def __init__(
        self,
        *,
        credentials_json: str = "",
        credentials_path: str = "",
        timeout_s: int = 60,
        service: Any = None,
    ) -> None:
        self._credentials_json = credentials_json
        self._credentials_path = credentials_path
        self._timeout_s = timeout_s
        self._service = service

    @classmethod
    def from_settings(cls, app_settings: Any) -> "GoogleSheetsClient":
        return cls(
            credentials_json=app_settings.GOOGLE_CREDENTIALS,
            credentials_path=app_settings.GOOGLE_CREDENTIALS_PATH,
            timeout_s=app_settings.SHEETS_TIMEOUT_S,
        )

    def _get_service(self) -> Any:
        if self._service is None:
            credentials = load_service_account_credentials(
                self._credentials_json, self._credentials_path
            )
            # El timeout vive en el transporte HTTP, no en el pipeline
            http = google_auth_httplib2.AuthorizedHttp(
                credentials, http=httplib2.Http(timeout=self._timeout_s)
            )
            self._service = build("sheets", "v4", http=http, cache_discovery=False)
        return self._service

    def get_row_count(self, spreadsheet_id: str, sheet_name: str) -> Optional[int]:
        """Consulta metadatos de la hoja (sin datos de celdas) y retorna rowCount."""
        service = self._get_service()
        first_col, last_col = COLUMN_SPAN
        try:
            meta = service.spreadsheets().get(
                spreadsheetId=spreadsheet_id,
                ranges=[f"{quote_sheet_title(sheet_name)}!{first_col}:{last_col}"],
                includeGridData=False,
            ).execute()
        except _TRANSPORT_ERRORS as e:
            raise SourceUnavailableError(
                f"No se pudo leer metadatos de la hoja '{sheet_name}': {e}",
                spreadsheet_id=spreadsheet_id,
            ) from e

        sheets = meta.get("sheets") or []
        if not sheets:
            return None
        grid = (sheets[0].get("properties") or {}).get("gridProperties") or {}
        return grid.get("rowCount")

    def fetch_rows(self, spreadsheet_id: str, sheet_name: str) -> list[RawRow]:
        """
        Lee la hoja completa y retorna filas como dicts encabezado -> valor crudo.

        Raises:
            SourceUnavailableError: fallo de autenticación, red o API
        """
        logger.info(f"Leyendo Google Sheets: {spreadsheet_id}, hoja '{sheet_name}'")
        row_count = self.get_row_count(spreadsheet_id, sheet_name)
        logger.info(f"Tamaño de la hoja '{sheet_name}': {row_count} filas")

        service = self._get_service()
        try:
            response = service.spreadsheets().values().get(
                spreadsheetId=spreadsheet_id,
                range=build_values_range(sheet_name, row_count),
                valueRenderOption="UNFORMATTED_VALUE",
                dateTimeRenderOption="FORMATTED_STRING",
            ).execute()
        except _TRANSPORT_ERRORS as e:
            raise SourceUnavailableError(
                f"No se pudo leer datos de Google Sheets: {e}",
                spreadsheet_id=spreadsheet_id,
            ) from e

        rows = grid_to_rows(response.get("values"))
        if not rows:
            logger.warning(f"La hoja '{sheet_name}' no contiene filas de datos")
            return []

        logger.info(f"Leídas {len(rows)} filas de la hoja '{sheet_name}'")
        return rows

    def test_connection(self, spreadsheet_id: str) -> dict[str, Any]:
        """Verifica acceso a la tabla; retorna título y nombres de hojas."""
        service = self._get_service()
        try:
            meta = service.spreadsheets().get(
                spreadsheetId=spreadsheet_id,
                includeGridData=False,
            ).execute()
        except _TRANSPORT_ERRORS as e:
            raise SourceUnavailableError(
                f"No se pudo conectar a la tabla: {e}",
                spreadsheet_id=spreadsheet_id,
            ) from e

        return {
            "title": (meta.get("properties") or {}).get("title"),
            "sheets": [
                (s.get("properties") or {}).get("title") for s in meta.get("sheets") or []
            ],
        }
