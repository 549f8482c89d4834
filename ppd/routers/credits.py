from __future__ import annotations

from fastapi import APIRouter, Request

from ppd.schemas import AdminCreditCreate, CreditDecision, CreditRequest
from ppd.services.credit_service import CreditService

router = APIRouter(prefix="/api", tags=["credits"])


def _get_credit_service(request: Request) -> CreditService:
    svc = getattr(getattr(request.app, "state", None), "credit_service", None)
    if not svc:
        raise RuntimeError("CreditService nao configurado")
    return svc


@router.post("/credits", status_code=201)
def request_credit(body: CreditRequest, request: Request):
    svc = _get_credit_service(request)
    credit = svc.request_credit(body.member_id, body.amount, body.description)
    return {"message": "Solicitacao de credito enviada com sucesso", "credit": credit}


@router.get("/credits")
def member_credits(request: Request, member_id: str = ""):
    svc = _get_credit_service(request)
    return {"credits": svc.list_for_member(member_id)}


@router.post("/credits/approve")
def decide_credit(body: CreditDecision, request: Request):
    svc = _get_credit_service(request)
    approved = body.action == "approve"
    credit = svc.decide(body.admin_id, body.credit_id, approved)
    message = "Credito aprovado com sucesso" if approved else "Credito rejeitado com sucesso"
    return {"message": message, "credit": credit}


@router.get("/admin/credits")
def all_credits(request: Request, admin_id: str = ""):
    svc = _get_credit_service(request)
    return {"credits": svc.list_all(admin_id)}


@router.post("/admin/credits", status_code=201)
def create_credit(body: AdminCreditCreate, request: Request):
    svc = _get_credit_service(request)
    credit = svc.create_approved_credit(body.admin_id, body.member_id, body.amount, body.description)
    return {"message": "Credito criado e aprovado com sucesso", "credit": credit}
