from __future__ import annotations

from fastapi import APIRouter, Request

from ppd.services.member_service import MemberService
from ppd.services.notification_service import NotificationService

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


def _get_member_service(request: Request) -> MemberService:
    svc = getattr(getattr(request.app, "state", None), "member_service", None)
    if not svc:
        raise RuntimeError("MemberService nao configurado")
    return svc


def _get_notification_service(request: Request) -> NotificationService:
    svc = getattr(getattr(request.app, "state", None), "notification_service", None)
    if not svc:
        raise RuntimeError("NotificationService nao configurado")
    return svc


@router.get("")
def list_notifications(request: Request, member_id: str = ""):
    _get_member_service(request).get_active(member_id)
    svc = _get_notification_service(request)
    return {"notifications": svc.list_for_member(member_id)}
