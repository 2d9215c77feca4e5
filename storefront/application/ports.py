"""Collaborator ports.

The application services program against these contracts; the httpx
clients in ``storefront.infrastructure`` implement them for the real
payment and shipping APIs and the test suite swaps in fakes.

Every call returns a ``CollaboratorResponse`` rather than raising, so a
collaborator's own error message survives to the caller untouched.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from storefront.domain.errors import CollaboratorError


@dataclass(frozen=True)
class CollaboratorResponse:
    success: bool
    data: dict = field(default_factory=dict)
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: Optional[dict] = None) -> "CollaboratorResponse":
        return cls(success=True, data=data or {})

    @classmethod
    def fail(cls, error: str) -> "CollaboratorResponse":
        return cls(success=False, error=error)

    def unwrap(self) -> dict:
        """Return the payload or raise CollaboratorError with the collaborator's message."""
        if not self.success:
            raise CollaboratorError(self.error)
        return self.data


class PaymentGateway(ABC):
    """Payment processor (orders, payments, refunds)."""

    key_id: str = ""

    @abstractmethod
    def create_order(self, amount: Decimal, currency: str, receipt: str, notes: dict) -> CollaboratorResponse:
        """Open a payment order. ``data["id"]`` is the gateway order id."""

    @abstractmethod
    def fetch_payment(self, payment_id: str) -> CollaboratorResponse:
        ...

    @abstractmethod
    def refund_payment(self, payment_id: str, amount: Optional[Decimal] = None) -> CollaboratorResponse:
        ...


class ShippingProvider(ABC):
    """Logistics API: shipment orders, AWBs, pickups, tracking."""

    @abstractmethod
    def create_order(self, payload: dict) -> CollaboratorResponse:
        """``data`` carries ``order_id`` and ``shipment_id`` assigned by the provider."""

    @abstractmethod
    def assign_awb(self, shipment_id: str, courier_id: Optional[int] = None) -> CollaboratorResponse:
        """``data["awb_code"]`` is the assigned airway bill."""

    @abstractmethod
    def request_pickup(self, shipment_id: str) -> CollaboratorResponse:
        ...

    @abstractmethod
    def track(self, shipment_id: str) -> CollaboratorResponse:
        ...

    @abstractmethod
    def cancel_orders(self, order_ids: list[str]) -> CollaboratorResponse:
        ...

    @abstractmethod
    def serviceability(self, pickup_postcode: str, delivery_postcode: str, weight: float, cod: bool = False) -> CollaboratorResponse:
        """``data["couriers"]`` lists carriers able to serve the lane."""


class CheckoutProvider(ABC):
    """Hosted checkout combining payment and shipping in one session."""

    @abstractmethod
    def create_checkout(self, payload: dict) -> CollaboratorResponse:
        """``data`` carries ``checkout_id`` and ``checkout_url``."""

    @abstractmethod
    def verify_checkout(self, checkout_id: str) -> CollaboratorResponse:
        """``data`` carries ``payment_status`` and any shipment references."""

    @abstractmethod
    def checkout_status(self, order_id: str) -> CollaboratorResponse:
        ...

    @abstractmethod
    def cancel_checkout(self, order_id: str) -> CollaboratorResponse:
        ...


class CheckoutTokenProvider(ABC):
    """Issues access tokens that let the frontend open a hosted checkout."""

    @abstractmethod
    def generate_access_token(self, cart_data: dict, redirect_url: str) -> CollaboratorResponse:
        """``data["token"]`` is the checkout access token."""
