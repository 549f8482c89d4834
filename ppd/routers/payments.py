from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from ppd.schemas import MonthlyPaymentCreate, PaymentAction, PaymentCreate
from ppd.services.payment_service import PaymentService

router = APIRouter(prefix="/api/payments", tags=["payments"])


def _get_payment_service(request: Request) -> PaymentService:
    svc = getattr(getattr(request.app, "state", None), "payment_service", None)
    if not svc:
        raise RuntimeError("PaymentService nao configurado")
    return svc


@router.post("", status_code=201)
def register_payment(body: PaymentCreate, request: Request):
    svc = _get_payment_service(request)
    payment = svc.register_payment(body.member_id, body.credit_id, body.amount, body.method, body.description)
    return {"message": "Pagamento registrado, aguardando confirmacao", "payment": payment}


@router.get("")
def list_payments(request: Request, member_id: str = "", credit_id: str = ""):
    svc = _get_payment_service(request)
    if credit_id:
        return {"payments": svc.list_for_credit(credit_id)}
    return {"payments": svc.list_for_member(member_id)}


@router.post("/confirm")
def confirm_payment(body: PaymentAction, request: Request):
    svc = _get_payment_service(request)
    result = svc.confirm_payment(body.admin_id, body.payment_id)
    return {"message": "Pagamento confirmado com sucesso", "payment": result.payment, "credit": result.credit}


@router.post("/fail")
def fail_payment(body: PaymentAction, request: Request):
    svc = _get_payment_service(request)
    payment = svc.fail_payment(body.admin_id, body.payment_id)
    return {"message": "Pagamento marcado como falho", "payment": payment}


@router.post("/monthly", status_code=201)
def monthly_payment(body: MonthlyPaymentCreate, request: Request):
    svc = _get_payment_service(request)
    result = svc.register_monthly_payment(body.member_id, body.amount, body.description, admin_id=body.admin_id)
    return {
        "message": "Pagamento mensal registrado com sucesso",
        "payment": result.payment,
        "credit": result.credit,
        "payments": result.payments,
        "credits": result.credits,
        "previous_debt": float(result.previous_debt),
        "new_balance": float(result.new_balance),
    }


@router.get("/monthly")
def monthly_summary(request: Request, member_id: str = "", admin_id: str = ""):
    svc = _get_payment_service(request)
    if admin_id:
        return svc.members_overview(admin_id)
    if member_id:
        return svc.member_summary(member_id)
    raise HTTPException(400, "Informe member_id ou admin_id")
