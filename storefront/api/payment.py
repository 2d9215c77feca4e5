from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from storefront.api.deps import get_db, get_payment_gateway, require_superadmin_principal
from storefront.application.auth import AdminPrincipal
from storefront.application.payment import PaymentConfirmationHandler
from storefront.application.ports import PaymentGateway
from storefront.application.schemas import RefundRequest

router = APIRouter(prefix="/payment", tags=["payment"])

@router.get("/{payment_id}")
def get_payment(
    payment_id: str,
    db: Session = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    payment = PaymentConfirmationHandler(db, gateway=gateway).fetch_payment(payment_id)
    return {"success": True, "payment": payment}

@router.post("/refund")
def refund_payment(
    payload: RefundRequest,
    db: Session = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    admin: AdminPrincipal = Depends(require_superadmin_principal),
):
    refund = PaymentConfirmationHandler(db, gateway=gateway).refund(payload.payment_id, payload.amount)
    return {"success": True, "message": "Refund processed successfully", "refund": refund}
