"""
Tests del ciclo de vida de la app: inicio y cierre pasan por `lifespan`.
"""
import pytest

import main


@pytest.mark.asyncio
async def test_lifespan_runs_startup_and_shutdown(monkeypatch):
    calls = []

    def fake_handler(name):
        def factory(app):
            async def handler():
                calls.append((name, app))
            return handler
        return factory

    monkeypatch.setattr(main, "startup_handler", fake_handler("startup"))
    monkeypatch.setattr(main, "shutdown_handler", fake_handler("shutdown"))
    app = main.create_application()

    async with app.router.lifespan_context(app):
        assert calls == [("startup", app)]

    assert calls == [("startup", app), ("shutdown", app)]


@pytest.mark.asyncio
async def test_shutdown_runs_even_if_app_body_fails(monkeypatch):
    calls = []

    def fake_handler(name):
        def factory(app):
            async def handler():
                calls.append(name)
            return handler
        return factory

    monkeypatch.setattr(main, "startup_handler", fake_handler("startup"))
    monkeypatch.setattr(main, "shutdown_handler", fake_handler("shutdown"))
    app = main.create_application()

    with pytest.raises(RuntimeError):
        async with app.router.lifespan_context(app):
            raise RuntimeError("boom")

    assert calls == ["startup", "shutdown"]
