"""
Dependencias para inyeccion del runtime de sincronizacion y sus casos de uso.
"""
from fastapi import Depends, Request

from pvz_registry.application.services.sync_runtime import SyncRuntime
from pvz_registry.application.use_cases.sync_use_cases import SettingsUseCases, SyncUseCases


def get_sync_runtime(request: Request) -> SyncRuntime:
    """
    Retorna el runtime creado en el startup (app.state.sync_runtime).
    """
    return request.app.state.sync_runtime


def get_sync_use_cases(runtime: SyncRuntime = Depends(get_sync_runtime)) -> SyncUseCases:
    return SyncUseCases(runtime)


def get_settings_use_cases(runtime: SyncRuntime = Depends(get_sync_runtime)) -> SettingsUseCases:
    return SettingsUseCases(runtime)
