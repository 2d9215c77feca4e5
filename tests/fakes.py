"""In-process collaborators used in place of the HTTP clients."""

from decimal import Decimal
from typing import Optional

from storefront.application.ports import (
    CheckoutProvider,
    CheckoutTokenProvider,
    CollaboratorResponse,
    PaymentGateway,
    ShippingProvider,
)

class _Recorder:
    def __init__(self):
        self.calls: list[tuple] = []
        # Operation name -> error message returned instead of success
        self.failures: dict[str, str] = {}

    def _reply(self, name: str, data: dict, *args) -> CollaboratorResponse:
        self.calls.append((name, *args))
        if name in self.failures:
            return CollaboratorResponse.fail(self.failures[name])
        return CollaboratorResponse.ok(data)

    def called(self, name: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == name]

class FakeGateway(_Recorder, PaymentGateway):
    key_id = "rzp_test_key"

    def create_order(self, amount: Decimal, currency: str, receipt: str, notes: dict) -> CollaboratorResponse:
        return self._reply(
            "create_order",
            {"id": f"order_rzp_{len(self.calls) + 1}", "amount": int(amount * 100), "currency": currency, "receipt": receipt},
            amount, currency, receipt,
        )

    def fetch_payment(self, payment_id: str) -> CollaboratorResponse:
        return self._reply("fetch_payment", {"id": payment_id, "status": "captured"}, payment_id)

    def refund_payment(self, payment_id: str, amount: Optional[Decimal] = None) -> CollaboratorResponse:
        return self._reply("refund_payment", {"id": "rfnd_1", "payment_id": payment_id}, payment_id, amount)

class FakeShiprocket(_Recorder, ShippingProvider, CheckoutProvider):
    def __init__(self):
        super().__init__()
        self.checkout_state = {"status": "completed", "payment_status": "paid"}

    def create_order(self, payload: dict) -> CollaboratorResponse:
        return self._reply(
            "create_order",
            {"order_id": "SR1001", "shipment_id": "SH2001", "awb_code": None, "response": {}},
            payload,
        )

    def assign_awb(self, shipment_id: str, courier_id: Optional[int] = None) -> CollaboratorResponse:
        return self._reply("assign_awb", {"awb_code": "AWB123", "response": {"awb_assign_status": 1}}, shipment_id, courier_id)

    def request_pickup(self, shipment_id: str) -> CollaboratorResponse:
        return self._reply("request_pickup", {"response": {"pickup_status": 1}}, shipment_id)

    def track(self, shipment_id: str) -> CollaboratorResponse:
        return self._reply("track", {"tracking_data": {"shipment_status": 6}}, shipment_id)

    def cancel_orders(self, order_ids: list[str]) -> CollaboratorResponse:
        return self._reply("cancel_orders", {"response": {}}, order_ids)

    def serviceability(self, pickup_postcode: str, delivery_postcode: str, weight: float, cod: bool = False) -> CollaboratorResponse:
        return self._reply(
            "serviceability",
            {"couriers": [{"courier_company_id": 10, "courier_name": "Delhivery"}], "estimated_delivery_days": "3"},
            pickup_postcode, delivery_postcode, weight, cod,
        )

    def create_checkout(self, payload: dict) -> CollaboratorResponse:
        return self._reply(
            "create_checkout",
            {"checkout_id": "chk_1", "checkout_url": "https://checkout.example/chk_1", "order_id": None},
            payload,
        )

    def verify_checkout(self, checkout_id: str) -> CollaboratorResponse:
        data = {
            "order_id": "SR1001",
            "shipment_id": "SH2001",
            "awb_code": None,
            "tracking_url": None,
            **self.checkout_state,
        }
        return self._reply("verify_checkout", data, checkout_id)

    def checkout_status(self, order_id: str) -> CollaboratorResponse:
        return self._reply("checkout_status", {**self.checkout_state, "response": {}}, order_id)

    def cancel_checkout(self, order_id: str) -> CollaboratorResponse:
        return self._reply("cancel_checkout", {"response": {}}, order_id)

class FakeCheckoutTokens(_Recorder, CheckoutTokenProvider):
    def generate_access_token(self, cart_data: dict, redirect_url: str) -> CollaboratorResponse:
        return self._reply("generate_access_token", {"token": "tok_123"}, cart_data, redirect_url)
