"""
CLI: Google Sheets -> sites (una corrida, fuera de la API).

Uso recomendado:
  - Cargas iniciales o diagnóstico sin levantar el servidor.
  - Usa la misma configuración que la API: tabla/hoja/frecuencia en la tabla
    settings y credenciales de Google por entorno.

Variables de entorno:
  - DATABASE_URL (o DATABASE_HOST/PORT/USER/PASSWORD/NAME)
  - GOOGLE_CREDENTIALS o GOOGLE_CREDENTIALS_PATH

Ejecución:
  python scripts/sheets_sync_once.py
  python scripts/sheets_sync_once.py --init-db
  python scripts/sheets_sync_once.py --test-connection
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from loguru import logger
from dotenv import load_dotenv

# Permite ejecutar este script desde cualquier cwd sin configurar PYTHONPATH.
# La carpeta "api" contiene el paquete raíz `pvz_registry/`.
_API_ROOT = Path(__file__).resolve().parents[1]
if str(_API_ROOT) not in sys.path:
    sys.path.insert(0, str(_API_ROOT))

# Cargar variables desde .env antes de importar la configuración
load_dotenv(_API_ROOT / ".env", override=False)
load_dotenv(_API_ROOT.parent / ".env", override=False)

from pvz_registry.application.services.sync_runtime import SyncRuntime
from pvz_registry.core.config import settings
from pvz_registry.infrastructure.database.session import AsyncSessionLocal, close_db, init_db
from pvz_registry.infrastructure.external.sheets_sync.types import RunType
from pvz_registry.shared.exceptions.base import AppException


async def _run(args: argparse.Namespace) -> int:
    if args.init_db:
        await init_db()
        logger.info("Tablas verificadas/creadas")

    runtime = SyncRuntime.build(settings, AsyncSessionLocal)
    await runtime.settings_store.seed_defaults()

    try:
        if args.test_connection:
            sync_settings = await runtime.settings_store.get_sync_settings()
            if not sync_settings.table_id:
                logger.error("pvzTableId no está configurado en settings")
                return 2
            table = await asyncio.to_thread(runtime.sheets_client.test_connection, sync_settings.table_id)
            print(json.dumps(table, ensure_ascii=False, indent=2))
            return 0

        result = await runtime.run_sync(RunType.MANUAL)
        logger.info(f"Sync OK: {json.dumps(result.as_dict(), ensure_ascii=False)}")
        return 0
    except AppException as e:
        logger.error(f"Sync falló ({e.error_code}): {e.message}")
        return 1
    finally:
        await close_db()


def main() -> int:
    parser = argparse.ArgumentParser(description="Sincroniza PVZ desde Google Sheets una vez.")
    parser.add_argument(
        "--init-db",
        action="store_true",
        help="Crea las tablas si no existen antes de sincronizar.",
    )
    parser.add_argument(
        "--test-connection",
        action="store_true",
        help="Solo verifica acceso a la tabla configurada (no sincroniza).",
    )
    args = parser.parse_args()

    logger.info("Iniciando Google Sheets -> PVZ sync...")
    return asyncio.run(_run(args))


if __name__ == "__main__":
    raise SystemExit(main())
