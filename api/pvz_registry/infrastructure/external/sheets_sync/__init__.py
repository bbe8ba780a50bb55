"""
Pipeline de sincronización one-way: Google Sheets -> tabla sites.

Se dispara desde el scheduler (APScheduler), desde la API (corrida manual)
o desde scripts/sheets_sync_once.py.

Objetivos de diseño:
- Idempotencia: UPSERT por site_id, se puede ejecutar N veces sin duplicar datos.
- Una fila mala nunca aborta la corrida: se omite y se cuenta por motivo.
- Cada corrida deja exactamente una entrada en sync_log.
"""
