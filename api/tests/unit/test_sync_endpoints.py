"""
Tests de los endpoints /api/v1/sync y /api/v1/settings.

El runtime se arma con un lector falso y se inyecta en app.state; el
cliente httpx no dispara el startup, así que no se toca PostgreSQL.
"""
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from main import create_application
from pvz_registry.application.services.sync_runtime import SyncRuntime
from pvz_registry.core.config import Settings
from pvz_registry.shared.exceptions.sync import SourceUnavailableError
from tests.fakes import FakeSheetsReader, sheet_row


@pytest.fixture
def reader():
    return FakeSheetsReader(
        [sheet_row("A1", "Acme Co"), sheet_row("A1", "Acme Co"), sheet_row("B2", " Acme Co ")],
        sheets=["PVZ", "Архив"],
    )


@pytest_asyncio.fixture
async def runtime(session_factory, reader):
    app_settings = Settings(SYNC_SCHEDULER_TIMEZONE="UTC")
    sync_runtime = SyncRuntime.build(app_settings, session_factory, reader=reader)
    await sync_runtime.settings_store.seed_defaults()
    yield sync_runtime
    await sync_runtime.scheduler.shutdown()


@pytest_asyncio.fixture
async def client(runtime):
    app = create_application()
    app.state.sync_runtime = runtime
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


async def _configure(client, frequency=60):
    return await client.put(
        "/api/v1/settings",
        json={"pvzTableId": "sheet-id", "pvzSheetName": "PVZ", "updateFrequency": frequency},
    )


@pytest.mark.asyncio
async def test_update_and_read_settings(client):
    response = await _configure(client, frequency=30)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["scheduler"]["frequency_minutes"] == 30
    assert body["scheduler"]["running"] is False

    settings = (await client.get("/api/v1/settings")).json()
    assert settings["pvzTableId"] == "sheet-id"
    assert settings["pvzSheetName"] == "PVZ"
    assert settings["updateFrequency"] == "30"
    assert settings["scheduler_running"] == "false"


@pytest.mark.asyncio
async def test_update_settings_validation(client):
    response = await client.put(
        "/api/v1/settings",
        json={"pvzTableId": "   ", "pvzSheetName": "PVZ", "updateFrequency": 0},
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_run_without_configuration_is_400(client):
    response = await client.post("/api/v1/sync/run")

    assert response.status_code == 400
    assert response.json()["error"] == "SYNC_CONFIG_ERROR"

    logs = (await client.get("/api/v1/sync/logs")).json()
    assert logs["pagination"]["total"] == 1
    assert logs["logs"][0]["status"] == "error"


@pytest.mark.asyncio
async def test_manual_run_and_history(client, reader):
    await _configure(client)

    response = await client.post("/api/v1/sync/run")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["processed"] == 3
    assert body["created"] == 2
    assert body["skipped"] == 1
    assert body["skip_reasons"] == {"duplicate_in_batch": 1}
    assert reader.calls == [("sheet-id", "PVZ")]

    logs = (await client.get("/api/v1/sync/logs", params={"status": "success", "limit": 10})).json()
    assert logs["pagination"] == {"page": 1, "limit": 10, "total": 1, "pages": 1}
    entry = logs["logs"][0]
    assert entry["sync_type"] == "manual"
    assert entry["records_processed"] == 3

    empty = (await client.get("/api/v1/sync/logs", params={"sync_type": "scheduled"})).json()
    assert empty["logs"] == []
    assert empty["pagination"]["pages"] == 0


@pytest.mark.asyncio
async def test_source_failure_is_502(client, reader):
    await _configure(client)
    reader.error = SourceUnavailableError("Google Sheets no responde", spreadsheet_id="sheet-id")

    response = await client.post("/api/v1/sync/run")

    assert response.status_code == 502
    assert response.json()["error"] == "SOURCE_UNAVAILABLE"


@pytest.mark.asyncio
async def test_stats(client):
    await _configure(client)
    await client.post("/api/v1/sync/run")
    await client.post("/api/v1/sync/run")

    stats = (await client.get("/api/v1/sync/logs/stats")).json()

    assert len(stats["recent"]) == 2
    (success,) = stats["stats"]
    assert success["status"] == "success"
    assert success["count"] == 2
    assert success["total_processed"] == 6
    assert success["total_created"] == 2
    assert success["total_updated"] == 2


@pytest.mark.asyncio
async def test_scheduler_lifecycle(client, runtime):
    await _configure(client, frequency=60)

    started = (await client.post("/api/v1/sync/scheduler/start")).json()
    assert started["running"] is True
    assert started["next_run"] is not None
    assert await runtime.settings_store.get_value("scheduler_running", use_cache=False) == "true"

    status = (await client.get("/api/v1/sync/scheduler/status")).json()
    assert status["running"] is True
    assert status["frequency_minutes"] == 60

    updated = await client.post("/api/v1/sync/scheduler/frequency", params={"minutes": 15})
    assert updated.status_code == 200
    assert updated.json()["frequency_minutes"] == 15
    assert await runtime.settings_store.get_value("updateFrequency", use_cache=False) == "15"

    stopped = (await client.post("/api/v1/sync/scheduler/stop")).json()
    assert stopped["running"] is False
    assert stopped["next_run"] is None
    assert await runtime.settings_store.get_value("scheduler_running", use_cache=False) == "false"


@pytest.mark.asyncio
async def test_frequency_must_be_positive(client):
    response = await client.post("/api/v1/sync/scheduler/frequency", params={"minutes": 0})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_connection_with_stored_settings(client):
    await _configure(client)

    response = await client.post("/api/v1/settings/test-connection")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["details"]["table"]["title"] == "Реестр ПВЗ"
    assert body["details"]["sheet_found"] is True


@pytest.mark.asyncio
async def test_connection_reports_missing_sheet(client):
    response = await client.post(
        "/api/v1/settings/test-connection",
        json={"pvzTableId": "other-id", "pvzSheetName": "Нет такой"},
    )

    body = response.json()
    assert response.status_code == 200
    assert body["success"] is False
    assert body["details"]["sheet_found"] is False


@pytest.mark.asyncio
async def test_connection_without_table_is_400(client):
    response = await client.post("/api/v1/settings/test-connection")

    assert response.status_code == 400
    assert response.json()["error"] == "SYNC_CONFIG_ERROR"
