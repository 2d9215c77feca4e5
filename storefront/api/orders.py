from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from storefront.api.deps import get_db, get_payment_gateway, require_admin
from storefront.application.auth import AdminPrincipal
from storefront.application.checkout import CheckoutService, PaymentGatewaySessionProvider
from storefront.application.ledger import OrderLedger
from storefront.application.payment import PaymentConfirmationHandler
from storefront.application.ports import PaymentGateway
from storefront.application.schemas import CreateSessionRequest, OrderRead, StatusUpdateRequest, VerifyPaymentRequest

router = APIRouter(prefix="/orders", tags=["orders"])

@router.post("/create")
def create_order(
    payload: CreateSessionRequest,
    db: Session = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    """Open a payment-gateway checkout; totals come from catalog prices only."""
    service = CheckoutService(db, session_provider=PaymentGatewaySessionProvider(gateway))
    session = service.create_session(payload.items, payload.customer, payload.pickup_postcode, payload.currency)
    return {
        "success": True,
        "order_id": session.order_id,
        "razorpay_order_id": session.session_ref,
        "amount": float(session.amount),
        "currency": session.currency,
        "key": session.extras.get("key"),
    }

@router.post("/verify-payment")
def verify_payment(payload: VerifyPaymentRequest, db: Session = Depends(get_db)):
    order = PaymentConfirmationHandler(db).confirm(
        payload.razorpay_order_id,
        payload.razorpay_payment_id,
        payload.razorpay_signature,
        order_id=payload.order_id,
    )
    return {
        "success": True,
        "message": "Payment verified successfully",
        "order": OrderRead.model_validate(order),
    }

@router.get("", response_model=list[OrderRead])
def list_orders(db: Session = Depends(get_db), admin: AdminPrincipal = Depends(require_admin)):
    return OrderLedger(db).list_orders()

@router.get("/{order_id}", response_model=OrderRead)
def get_order(order_id: str, db: Session = Depends(get_db)):
    return OrderLedger(db).find_by_order_id(order_id)

@router.patch("/{order_id}/status", response_model=OrderRead)
def update_order_status(
    order_id: str,
    payload: StatusUpdateRequest,
    db: Session = Depends(get_db),
    admin: AdminPrincipal = Depends(require_admin),
):
    """Manual status change; the transition table still applies."""
    return OrderLedger(db).transition_to(order_id, payload.status)
