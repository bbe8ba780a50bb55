"""
Tests del SettingsStore: defaults, caché TTL e invalidación.
"""
import pytest

from pvz_registry.application.services.settings_store import SettingsStore, parse_frequency
from pvz_registry.infrastructure.repositories.system_settings_repository import SystemSettingsRepository


@pytest.mark.parametrize(
    "raw, expected",
    [("15", 15), (" 30 ", 30), ("0", 60), ("-5", 60), ("abc", 60), (None, 60), ("", 60)],
)
def test_parse_frequency(raw, expected):
    assert parse_frequency(raw, default=60) == expected


@pytest.mark.asyncio
async def test_seed_defaults_does_not_overwrite(session_factory):
    store = SettingsStore(session_factory)
    await store.set_value("updateFrequency", "15")

    await store.seed_defaults()

    values = await store.get_all(use_cache=False)
    assert values["updateFrequency"] == "15"
    assert values["scheduler_running"] == "false"


@pytest.mark.asyncio
async def test_get_all_is_cached_until_cleared(session_factory):
    store = SettingsStore(session_factory, ttl_s=300)
    await store.set_value("pvzSheetName", "PVZ")
    assert await store.get_value("pvzSheetName") == "PVZ"

    # Escritura por fuera del store: la caché no se entera
    async with session_factory() as session:
        await SystemSettingsRepository(session).set_value("pvzSheetName", "Новый лист")
        await session.commit()

    assert await store.get_value("pvzSheetName") == "PVZ"
    assert await store.get_value("pvzSheetName", use_cache=False) == "Новый лист"

    store.clear_cache()
    await store.set_value("pvzTableId", "abc")
    assert await store.get_value("pvzSheetName") == "Новый лист"


@pytest.mark.asyncio
async def test_zero_ttl_always_reads_store(session_factory):
    store = SettingsStore(session_factory, ttl_s=0)
    await store.get_all()

    async with session_factory() as session:
        await SystemSettingsRepository(session).set_value("pvzTableId", "fresh")
        await session.commit()

    assert await store.get_value("pvzTableId") == "fresh"


@pytest.mark.asyncio
async def test_set_value_updates_existing_key(session_factory):
    store = SettingsStore(session_factory)
    await store.set_value("updateFrequency", "60", "Frecuencia")
    await store.set_value("updateFrequency", "15")

    assert await store.get_value("updateFrequency") == "15"


@pytest.mark.asyncio
async def test_get_sync_settings(session_factory):
    store = SettingsStore(session_factory, default_frequency=45)
    await store.set_many(
        {"pvzTableId": " sheet-id ", "pvzSheetName": "PVZ", "updateFrequency": "nope", "scheduler_running": "true"}
    )

    sync_settings = await store.get_sync_settings()

    assert sync_settings.table_id == "sheet-id"
    assert sync_settings.sheet_name == "PVZ"
    assert sync_settings.update_frequency == 45
    assert sync_settings.scheduler_running is True
    assert sync_settings.last_update is None
