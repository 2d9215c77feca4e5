"""Payment Confirmation Handler.

Client confirmations are signed by the payment gateway and verified
before the ledger is touched. Collaborator callbacks arrive through the
signed webhook route and are reconciled idempotently, since the same
callback may be delivered more than once.
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from shared.core import get_logger
from storefront.application.ledger import OrderLedger
from storefront.application.partner_schemas import CheckoutWebhookEvent
from storefront.application.ports import CheckoutProvider, PaymentGateway
from storefront.application.shipment import ShipmentCoordinator
from storefront.application.signature import verify_payment_signature
from storefront.core_settings import get_settings
from storefront.domain.errors import InvalidSignatureError, NotFoundError, ValidationError
from storefront.domain.models import Order
from storefront.domain.order_state import OrderStatus

logger = get_logger(__name__)

PAID_OUTCOME = "paid"
CANCELLED_OUTCOME = "cancelled"
# Collaborator payment statuses that end a checkout without payment
CANCELLED_PAYMENT_STATUSES = {"failed", "cancelled", "canceled"}
# States in which an outcome is already reflected; payment precedes shipping
RECORDED_STATES = {
    OrderStatus.PAID: {OrderStatus.PAID.value, OrderStatus.SHIPPED.value, OrderStatus.DELIVERED.value},
    OrderStatus.FAILED: {OrderStatus.FAILED.value},
}

class PaymentConfirmationHandler:
    def __init__(
        self,
        db: Session,
        gateway: Optional[PaymentGateway] = None,
        checkout: Optional[CheckoutProvider] = None,
        shipments: Optional[ShipmentCoordinator] = None,
    ):
        self.db = db
        self.ledger = OrderLedger(db)
        self.gateway = gateway
        self.checkout = checkout
        self.shipments = shipments

    def _resolve(self, session_ref: str, order_id: Optional[str]) -> Order:
        if order_id:
            return self.ledger.find_by_order_id(order_id)
        order = self.ledger.find_by_session_ref(session_ref)
        if not order:
            raise NotFoundError("Order not found")
        return order

    def confirm(self, order_ref: str, payment_ref: str, signature: str, order_id: Optional[str] = None) -> Order:
        """Verify the gateway signature, then mark the order paid."""
        verify_payment_signature(order_ref, payment_ref, signature, get_settings().RAZORPAY_KEY_SECRET)

        order = self._resolve(order_ref, order_id)
        if order.session_ref != order_ref:
            logger.warning(
                "Payment confirmation for another order rejected",
                extra={'extra_fields': {'order_id': order.order_id, 'order_ref': order_ref}}
            )
            raise InvalidSignatureError()
        if order.status == OrderStatus.PAID.value and order.payment_id == payment_ref:
            logger.info("Duplicate payment confirmation ignored", extra={'extra_fields': {'order_id': order.order_id}})
            return order
        return self.ledger.mark_paid(order.order_id, payment_id=payment_ref, signature=signature)

    def check_status(self, session_ref: str, order_id: Optional[str] = None) -> tuple[Order, dict]:
        """Poll the hosted checkout and bring the ledger in line with it."""
        data = self.checkout.verify_checkout(session_ref).unwrap()
        order = self._resolve(session_ref, order_id)

        if data.get("payment_status") == PAID_OUTCOME:
            order = self.reconcile(order.order_id, PAID_OUTCOME)
        order = self.ledger.attach_shipping_refs(
            order.order_id,
            shipping_order_id=data.get("order_id"),
            shipment_id=data.get("shipment_id"),
            awb_code=data.get("awb_code"),
            tracking_url=data.get("tracking_url"),
        )
        return order, data

    def reconcile(self, order_id: str, outcome: str) -> Order:
        if outcome == PAID_OUTCOME:
            target = OrderStatus.PAID
        elif outcome == CANCELLED_OUTCOME:
            target = OrderStatus.FAILED
        else:
            raise ValidationError(f"Unknown payment outcome: {outcome}")

        order = self.ledger.find_by_order_id(order_id)
        if order.status in RECORDED_STATES[target]:
            logger.info(
                "Payment outcome already recorded",
                extra={'extra_fields': {'order_id': order_id, 'status': target.value}}
            )
            return order
        if target == OrderStatus.PAID:
            return self.ledger.mark_paid(order_id)
        return self.ledger.mark_failed(order_id)

    def apply_checkout_webhook(self, event: CheckoutWebhookEvent) -> Order:
        order = self.ledger.find_by_order_id(event.order_id)

        if event.payment_status:
            status = event.payment_status.lower()
            if status == PAID_OUTCOME:
                order = self.reconcile(order.order_id, PAID_OUTCOME)
            elif status in CANCELLED_PAYMENT_STATUSES:
                order = self.reconcile(order.order_id, CANCELLED_OUTCOME)
            else:
                logger.info(
                    "Payment status left unchanged",
                    extra={'extra_fields': {'order_id': order.order_id, 'payment_status': status}}
                )

        shipment_status = (event.shipment_status or "").lower()
        if shipment_status in (OrderStatus.SHIPPED.value, OrderStatus.DELIVERED.value):
            order = self.shipments.record_carrier_update(
                order.order_id, shipment_status, tracking_url=event.tracking_url, awb_code=event.awb_code,
            )
        elif event.tracking_url or event.awb_code:
            order = self.ledger.attach_tracking(order.order_id, awb_code=event.awb_code, tracking_url=event.tracking_url)

        logger.info("Checkout webhook applied", extra={'extra_fields': {'order_id': order.order_id, 'status': order.status}})
        return order

    # Gateway passthroughs

    def fetch_payment(self, payment_id: str) -> dict:
        return self.gateway.fetch_payment(payment_id).unwrap()

    def refund(self, payment_id: str, amount: Optional[Decimal] = None) -> dict:
        refund = self.gateway.refund_payment(payment_id, amount).unwrap()
        logger.info(
            "Refund processed",
            extra={'extra_fields': {'payment_id': payment_id, 'amount': str(amount) if amount is not None else 'full'}}
        )
        return refund

    def remote_status(self, order_id: str) -> dict:
        return self.checkout.checkout_status(order_id).unwrap()
