from __future__ import annotations

from fastapi import APIRouter, Request

from ppd.schemas import MemberUpdate
from ppd.services.member_service import MemberService

router = APIRouter(prefix="/api/members", tags=["members"])


def _get_member_service(request: Request) -> MemberService:
    svc = getattr(getattr(request.app, "state", None), "member_service", None)
    if not svc:
        raise RuntimeError("MemberService nao configurado")
    return svc


@router.get("")
def list_members(request: Request, admin_id: str = "", include_inactive: bool = False):
    svc = _get_member_service(request)
    return {"members": svc.list_members(admin_id, include_inactive=include_inactive)}


@router.get("/{consumer_code}")
def get_member(consumer_code: str, request: Request):
    svc = _get_member_service(request)
    return {"member": svc.get_by_consumer_code(consumer_code)}


@router.put("/{member_id}")
def update_member(member_id: str, body: MemberUpdate, request: Request):
    svc = _get_member_service(request)
    member = svc.update_member(body.admin_id, member_id, body.changes())
    return {"message": "Membro atualizado com sucesso", "member": member}
