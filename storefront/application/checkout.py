"""Checkout Session Initiator.

Resolves a cart against the catalog with server-held prices, records the
order in ``created`` and only then opens a session with the payment or
checkout collaborator. A collaborator failure is reported as received
and the ``created`` order is kept for manual reconciliation.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from shared.core import get_logger
from storefront.application.ledger import OrderLedger, OrderLine
from storefront.application.ports import CheckoutProvider, CheckoutTokenProvider, PaymentGateway
from storefront.application.schemas import CartItem, CheckoutCartItem, CustomerIn
from storefront.core_settings import get_settings
from storefront.domain.errors import CollaboratorError, NotFoundError, UnavailableError, ValidationError
from storefront.domain.models import Order, Product, ProductVariant
from storefront.domain.order_state import OrderStatus

logger = get_logger(__name__)

@dataclass
class SessionCreated:
    order_id: str
    session_ref: str
    amount: Decimal
    currency: str
    checkout_url: Optional[str] = None
    extras: dict = field(default_factory=dict)

@dataclass(frozen=True)
class OpenedSession:
    session_ref: str
    checkout_url: Optional[str] = None
    extras: dict = field(default_factory=dict)

class CheckoutSessionProvider(ABC):
    """Opens a collaborator session for an order already persisted in ``created``."""

    requires_pickup_region = False

    def check_request(self, pickup_region: Optional[str] = None) -> None:
        """Raise ValidationError for a request this provider cannot serve; called before the order is saved."""
        if self.requires_pickup_region and not pickup_region:
            raise ValidationError("pickup_postcode is required")

    @abstractmethod
    def open_session(self, order: Order, pickup_region: Optional[str] = None) -> OpenedSession:
        ...

class PaymentGatewaySessionProvider(CheckoutSessionProvider):
    def __init__(self, gateway: PaymentGateway):
        self.gateway = gateway

    def open_session(self, order: Order, pickup_region: Optional[str] = None) -> OpenedSession:
        data = self.gateway.create_order(
            amount=order.amount,
            currency=order.currency,
            receipt=order.order_id,
            notes={"order_id": order.order_id, "customer_email": order.customer_email},
        ).unwrap()
        gateway_order_id = data.get("id")
        if not gateway_order_id:
            raise CollaboratorError("Payment gateway returned no order id")
        return OpenedSession(
            session_ref=str(gateway_order_id),
            extras={"razorpay_order_id": str(gateway_order_id), "key": self.gateway.key_id},
        )

class FasterCheckoutSessionProvider(CheckoutSessionProvider):
    """Hosted checkout that collects payment and books shipping in one session."""

    requires_pickup_region = True

    def __init__(self, checkout: CheckoutProvider):
        self.checkout = checkout

    def open_session(self, order: Order, pickup_region: Optional[str] = None) -> OpenedSession:
        self.check_request(pickup_region)
        settings = get_settings()
        data = self.checkout.create_checkout({
            "order_id": order.order_id,
            "order_amount": float(order.amount),
            "order_currency": order.currency,
            "customer_email": order.customer_email,
            "customer_phone": order.customer_phone,
            "customer_name": order.customer_name,
            "products": [
                {
                    "name": item.name,
                    "sku": item.variant_id or item.product_id,
                    "units": item.quantity,
                    "selling_price": float(item.unit_price),
                    "discount": 0,
                }
                for item in order.items
            ],
            "pickup_postcode": pickup_region,
            "callback_url": f"{settings.FRONTEND_URL}/checkout/callback",
            "redirect_url": f"{settings.FRONTEND_URL}/checkout/success",
            "webhook_url": f"{settings.BACKEND_URL}/faster-checkout/webhook",
        }).unwrap()
        checkout_id = data.get("checkout_id")
        return OpenedSession(
            session_ref=checkout_id or order.order_id,
            checkout_url=data.get("checkout_url"),
            extras={"checkout_id": checkout_id},
        )

class CheckoutService:
    def __init__(
        self,
        db: Session,
        session_provider: Optional[CheckoutSessionProvider] = None,
        token_provider: Optional[CheckoutTokenProvider] = None,
        checkout_provider: Optional[CheckoutProvider] = None,
    ):
        self.db = db
        self.ledger = OrderLedger(db)
        self.session_provider = session_provider
        self.token_provider = token_provider
        self.checkout_provider = checkout_provider

    def _resolve(self, reference: str) -> tuple[Product, Optional[ProductVariant]]:
        """Find a product by its own id or by one of its variant ids."""
        product = self.db.query(Product).filter(Product.external_id == reference).first()
        if product:
            return product, None
        variant = self.db.query(ProductVariant).filter(ProductVariant.variant_id == reference).first()
        if variant:
            return variant.product, variant
        raise NotFoundError(f"Product {reference} not found")

    @staticmethod
    def _ensure_available(product: Product, variant: Optional[ProductVariant]) -> None:
        if not product.available_for_sale or (variant is not None and not variant.available_for_sale):
            raise UnavailableError(f"Product {product.name} is not available")

    def resolve_lines(self, items: list[CartItem]) -> list[OrderLine]:
        lines = []
        for item in items:
            if item.variant_id:
                product, variant = self._resolve(item.variant_id)
                if item.product_id and product.external_id != item.product_id:
                    raise NotFoundError(f"Product {item.product_id} not found")
            else:
                product = self.db.query(Product).filter(Product.external_id == item.product_id).first()
                variant = None
                if not product:
                    raise NotFoundError(f"Product {item.product_id} not found")
            self._ensure_available(product, variant)
            lines.append(OrderLine(
                product_id=product.external_id,
                variant_id=variant.variant_id if variant else item.variant_id,
                name=product.name,
                quantity=item.quantity,
                unit_price=variant.price if variant else product.price,
            ))
        return lines

    def create_session(
        self,
        items: list[CartItem],
        customer: CustomerIn,
        pickup_region: Optional[str] = None,
        currency: Optional[str] = None,
    ) -> SessionCreated:
        self.session_provider.check_request(pickup_region)
        lines = self.resolve_lines(items)
        order = self.ledger.create_order(customer, lines, currency)

        try:
            opened = self.session_provider.open_session(order, pickup_region)
        except CollaboratorError as exc:
            logger.error(
                "Checkout session could not be opened, order left in created",
                extra={'extra_fields': {'order_id': order.order_id, 'error': exc.message}}
            )
            raise

        order = self.ledger.attach_session(order.order_id, opened.session_ref)
        logger.info(
            "Checkout session opened",
            extra={'extra_fields': {'order_id': order.order_id, 'session_ref': opened.session_ref}}
        )
        return SessionCreated(
            order_id=order.order_id,
            session_ref=opened.session_ref,
            amount=order.amount,
            currency=order.currency,
            checkout_url=opened.checkout_url,
            extras=opened.extras,
        )

    def generate_checkout_token(self, items: list[CheckoutCartItem], redirect_url: str) -> str:
        for item in items:
            product, variant = self._resolve(item.variant_id)
            if not product.available_for_sale or (variant is not None and not variant.available_for_sale):
                raise UnavailableError(f"Product {product.name} is not available for sale")
        cart_data = {"items": [item.model_dump() for item in items]}
        data = self.token_provider.generate_access_token(cart_data, redirect_url).unwrap()
        return data["token"]

    def cancel_session(self, order_id: str) -> Order:
        order = self.ledger.find_by_order_id(order_id)
        self.ledger.ensure_transition(order, OrderStatus.FAILED)
        self.checkout_provider.cancel_checkout(order_id).unwrap()
        logger.info("Checkout session cancelled", extra={'extra_fields': {'order_id': order_id}})
        return self.ledger.mark_failed(order_id)
