"""Administrator settings and store maintenance endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Request

from ppd.schemas import DebugAction, SettingUpdate
from ppd.services.maintenance_service import MaintenanceService
from ppd.services.settings_service import SettingsService

router = APIRouter(prefix="/api", tags=["admin"])


def _get_settings_service(request: Request) -> SettingsService:
    svc = getattr(getattr(request.app, "state", None), "settings_service", None)
    if not svc:
        raise RuntimeError("SettingsService nao configurado")
    return svc


def _get_maintenance_service(request: Request) -> MaintenanceService:
    svc = getattr(getattr(request.app, "state", None), "maintenance_service", None)
    if not svc:
        raise RuntimeError("MaintenanceService nao configurado")
    return svc


@router.get("/admin/settings")
def list_settings(request: Request, admin_id: str = ""):
    svc = _get_settings_service(request)
    return {"settings": svc.list_settings(admin_id)}


@router.put("/admin/settings/{key}")
def update_setting(key: str, body: SettingUpdate, request: Request):
    svc = _get_settings_service(request)
    setting = svc.update_setting(body.admin_id, key, body.value, body.description)
    return {"message": "Configuracao atualizada com sucesso", "setting": setting}


@router.post("/debug")
def debug(body: DebugAction, request: Request):
    svc = _get_maintenance_service(request)
    if body.action == "reset":
        svc.reset(body.admin_id)
        return {"message": "Banco de dados resetado com sucesso"}
    if body.action == "backup":
        path = svc.backup(body.admin_id)
        return {"message": "Backup criado com sucesso", "backup_path": str(path)}
    return {"message": "Estatisticas do banco", "stats": svc.stats(body.admin_id)}
