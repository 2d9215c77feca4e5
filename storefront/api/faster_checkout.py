from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from storefront.api.deps import (
    get_checkout_provider,
    get_db,
    get_shipping_provider,
    parse_payload,
    require_admin,
    verified_webhook_body,
)
from storefront.application.auth import AdminPrincipal
from storefront.application.checkout import CheckoutService, FasterCheckoutSessionProvider
from storefront.application.partner_schemas import CheckoutWebhookEvent
from storefront.application.payment import PaymentConfirmationHandler
from storefront.application.ports import CheckoutProvider, ShippingProvider
from storefront.application.schemas import (
    FasterCheckoutCreateRequest,
    FasterVerifyRequest,
    OrderRead,
    OrderRefRequest,
    ServiceabilityRequest,
)
from storefront.application.shipment import ShipmentCoordinator

router = APIRouter(prefix="/faster-checkout", tags=["faster-checkout"])

@router.post("/create")
def create_checkout(
    payload: FasterCheckoutCreateRequest,
    db: Session = Depends(get_db),
    checkout: CheckoutProvider = Depends(get_checkout_provider),
):
    service = CheckoutService(db, session_provider=FasterCheckoutSessionProvider(checkout))
    session = service.create_session(payload.items, payload.customer, payload.pickup_postcode)
    return {
        "success": True,
        "order_id": session.order_id,
        "checkout_id": session.extras.get("checkout_id"),
        "checkout_url": session.checkout_url,
        "amount": float(session.amount),
        "currency": session.currency,
    }

@router.post("/verify")
def verify_checkout(
    payload: FasterVerifyRequest,
    db: Session = Depends(get_db),
    checkout: CheckoutProvider = Depends(get_checkout_provider),
):
    order, data = PaymentConfirmationHandler(db, checkout=checkout).check_status(payload.checkout_id, payload.order_id)
    return {
        "success": True,
        "message": "Checkout verified successfully",
        "order": OrderRead.model_validate(order),
        "payment_status": data.get("payment_status"),
        "tracking_url": order.tracking_url,
    }

@router.get("/status/{order_id}")
def checkout_status(
    order_id: str,
    db: Session = Depends(get_db),
    checkout: CheckoutProvider = Depends(get_checkout_provider),
):
    data = PaymentConfirmationHandler(db, checkout=checkout).remote_status(order_id)
    return {
        "success": True,
        "status": data.get("status"),
        "payment_status": data.get("payment_status"),
        "shipment_status": data.get("shipment_status"),
        "tracking_url": data.get("tracking_url"),
        "data": data.get("response"),
    }

@router.post("/cancel")
def cancel_checkout(
    payload: OrderRefRequest,
    db: Session = Depends(get_db),
    checkout: CheckoutProvider = Depends(get_checkout_provider),
    admin: AdminPrincipal = Depends(require_admin),
):
    order = CheckoutService(db, checkout_provider=checkout).cancel_session(payload.order_id)
    return {"success": True, "message": "Order cancelled successfully", "order": OrderRead.model_validate(order)}

@router.post("/check-serviceability")
def check_serviceability(
    payload: ServiceabilityRequest,
    db: Session = Depends(get_db),
    shipping: ShippingProvider = Depends(get_shipping_provider),
):
    result = ShipmentCoordinator(db, shipping).check_serviceability(
        payload.pickup_postcode, payload.delivery_postcode, payload.weight, payload.cod
    )
    return {"success": True, **result}

@router.post("/webhook")
def checkout_webhook(
    body: bytes = Depends(verified_webhook_body),
    db: Session = Depends(get_db),
    shipping: ShippingProvider = Depends(get_shipping_provider),
):
    """Signed hosted-checkout callback carrying payment and shipment progress."""
    event = parse_payload(CheckoutWebhookEvent, body)
    handler = PaymentConfirmationHandler(db, shipments=ShipmentCoordinator(db, shipping))
    order = handler.apply_checkout_webhook(event)
    return {"success": True, "message": "Webhook processed successfully", "status": order.status}
