"""Order Ledger.

The only code allowed to change an order's status. Every mutation looks
the order up by its business identifier, checks the transition table in
``storefront.domain.order_state`` and only then writes. Orders carry a
version counter, so two requests racing on the same order cannot both
commit: the loser gets ``PreconditionFailedError`` and nothing of its
update is kept.
"""

import secrets
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from shared.core import get_logger
from storefront.application.schemas import CustomerIn
from storefront.core_settings import get_settings
from storefront.domain.errors import NotFoundError, PreconditionFailedError
from storefront.domain.models import Order, OrderItem
from storefront.domain.order_state import OrderStatus, check_transition

logger = get_logger(__name__)

@dataclass(frozen=True)
class OrderLine:
    """A cart line resolved against the catalog; ``unit_price`` is the server-held price."""
    product_id: str
    name: str
    quantity: int
    unit_price: Decimal
    variant_id: Optional[str] = None

    @property
    def total(self) -> Decimal:
        return self.unit_price * self.quantity

def new_order_id(prefix: str) -> str:
    return f"{prefix}_{int(time.time() * 1000)}_{secrets.token_hex(4)}"

class OrderLedger:
    def __init__(self, db: Session):
        self.db = db

    # Reads

    def find_by_order_id(self, order_id: str) -> Order:
        order = self.db.query(Order).filter(Order.order_id == order_id).first()
        if not order:
            raise NotFoundError(f"Order {order_id} not found")
        return order

    def find_by_session_ref(self, session_ref: str) -> Optional[Order]:
        return self.db.query(Order).filter(Order.session_ref == session_ref).first()

    def find_by_shipment_id(self, shipment_id: str) -> Optional[Order]:
        return self.db.query(Order).filter(Order.shipment_id == shipment_id).first()

    def list_orders(self) -> list[Order]:
        return self.db.query(Order).order_by(Order.created_at.desc(), Order.id.desc()).all()

    # Creation

    def create_order(self, customer: CustomerIn, lines: list[OrderLine], currency: Optional[str] = None) -> Order:
        settings = get_settings()
        amount = sum((line.total for line in lines), Decimal("0"))
        order = Order(
            order_id=new_order_id(settings.ORDER_ID_PREFIX),
            amount=amount,
            currency=currency or settings.DEFAULT_CURRENCY,
            status=OrderStatus.CREATED.value,
            customer_name=customer.name,
            customer_email=customer.email,
            customer_phone=customer.phone,
            shipping_address=customer.address.model_dump(),
            items=[
                OrderItem(
                    product_id=line.product_id,
                    variant_id=line.variant_id,
                    name=line.name,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                )
                for line in lines
            ],
        )
        self.db.add(order)
        self.db.commit()
        self.db.refresh(order)
        logger.info(
            "Order created",
            extra={'extra_fields': {'order_id': order.order_id, 'amount': str(amount), 'items': len(lines)}}
        )
        return order

    # Transitions

    def ensure_transition(self, order: Order, target: OrderStatus) -> None:
        """Raise InvalidTransitionError if ``order`` may not move to ``target``; writes nothing."""
        check_transition(order.order_id, order.status, target)

    def _commit(self, order: Order) -> Order:
        try:
            self.db.commit()
        except StaleDataError as exc:
            self.db.rollback()
            logger.warning(
                "Concurrent order update rejected",
                extra={'extra_fields': {'order_id': order.order_id}}
            )
            raise PreconditionFailedError(
                f"Order {order.order_id} was modified concurrently, reload and retry"
            ) from exc
        self.db.refresh(order)
        return order

    def _transition(self, order_id: str, target: OrderStatus, **fields) -> Order:
        order = self.find_by_order_id(order_id)
        previous = order.status
        try:
            self.ensure_transition(order, target)
        except PreconditionFailedError:
            logger.warning(
                "Order transition rejected",
                extra={'extra_fields': {'order_id': order_id, 'from': previous, 'to': target.value}}
            )
            raise
        order.status = target.value
        for name, value in fields.items():
            if value is not None:
                setattr(order, name, value)
        self._commit(order)
        logger.info(
            "Order transitioned",
            extra={'extra_fields': {'order_id': order_id, 'from': previous, 'to': target.value}}
        )
        return order

    def mark_paid(self, order_id: str, payment_id: Optional[str] = None, signature: Optional[str] = None) -> Order:
        return self._transition(order_id, OrderStatus.PAID, payment_id=payment_id, payment_signature=signature)

    def mark_shipped(
        self,
        order_id: str,
        shipping_order_id: Optional[str] = None,
        shipment_id: Optional[str] = None,
        tracking_url: Optional[str] = None,
    ) -> Order:
        return self._transition(
            order_id, OrderStatus.SHIPPED,
            shipping_order_id=shipping_order_id, shipment_id=shipment_id, tracking_url=tracking_url,
        )

    def mark_delivered(self, order_id: str) -> Order:
        return self._transition(order_id, OrderStatus.DELIVERED)

    def mark_failed(self, order_id: str) -> Order:
        return self._transition(order_id, OrderStatus.FAILED)

    def transition_to(self, order_id: str, status: OrderStatus) -> Order:
        """Administrative status change; still bound by the transition table."""
        return self._transition(order_id, OrderStatus(status))

    # Reference updates (no status change)

    def _attach(self, order_id: str, **fields) -> Order:
        order = self.find_by_order_id(order_id)
        for name, value in fields.items():
            if value is not None:
                setattr(order, name, value)
        return self._commit(order)

    def attach_session(self, order_id: str, session_ref: str) -> Order:
        return self._attach(order_id, session_ref=session_ref)

    def attach_tracking(self, order_id: str, awb_code: Optional[str] = None, tracking_url: Optional[str] = None) -> Order:
        return self._attach(order_id, awb_code=awb_code, tracking_url=tracking_url)

    def attach_shipping_refs(
        self,
        order_id: str,
        shipping_order_id: Optional[str] = None,
        shipment_id: Optional[str] = None,
        awb_code: Optional[str] = None,
        tracking_url: Optional[str] = None,
    ) -> Order:
        return self._attach(
            order_id,
            shipping_order_id=shipping_order_id, shipment_id=shipment_id,
            awb_code=awb_code, tracking_url=tracking_url,
        )
