from __future__ import annotations

from fastapi import APIRouter, Request

from ppd.core.rate_limiter import rate_limit_ip
from ppd.schemas import LoginRequest, RegisterRequest
from ppd.services.member_service import MemberService

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _get_member_service(request: Request) -> MemberService:
    svc = getattr(getattr(request.app, "state", None), "member_service", None)
    if not svc:
        raise RuntimeError("MemberService nao configurado")
    return svc


@router.post("/register", status_code=201)
def register(body: RegisterRequest, request: Request):
    svc = _get_member_service(request)
    member = svc.register(**body.model_dump())
    return {"message": "Cadastro realizado com sucesso", "member": member}


@router.post("/login")
def login(body: LoginRequest, request: Request):
    rate_limit_ip(request, "login")
    svc = _get_member_service(request)
    member = svc.authenticate(body.consumer_code, body.password)
    return {"message": "Login realizado com sucesso", "member": member}


@router.post("/admin-login")
def admin_login(body: LoginRequest, request: Request):
    rate_limit_ip(request, "admin-login")
    svc = _get_member_service(request)
    member = svc.authenticate_admin(body.consumer_code, body.password)
    return {"message": "Login de administrador realizado com sucesso", "member": member}
