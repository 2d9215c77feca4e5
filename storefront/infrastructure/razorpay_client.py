from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

import httpx

from shared.core import get_logger
from storefront.application.ports import CollaboratorResponse, PaymentGateway
from storefront.infrastructure.http import error_message, json_body

logger = get_logger(__name__)

def to_minor_units(amount: Decimal) -> int:
    """Rupees to paise."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

class RazorpayClient(PaymentGateway):
    """Razorpay REST API over httpx with HTTP basic auth."""

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        base_url: str = "https://api.razorpay.com/v1",
        timeout: float = 15.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.key_id = key_id
        self.key_secret = key_secret
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _call(self, method: str, path: str, default_error: str, json: Optional[dict] = None) -> CollaboratorResponse:
        if not self.key_id or not self.key_secret:
            return CollaboratorResponse.fail("Payment gateway credentials not configured")
        try:
            with httpx.Client(
                base_url=self.base_url,
                auth=(self.key_id, self.key_secret),
                timeout=self.timeout,
                transport=self.transport,
            ) as client:
                response = client.request(method, path, json=json)
            response.raise_for_status()
            return CollaboratorResponse.ok(json_body(response))
        except httpx.HTTPStatusError as exc:
            message = error_message(exc.response, default_error)
            logger.error(
                f"Razorpay call failed: {method} {path}",
                extra={'extra_fields': {'status_code': exc.response.status_code, 'error': message}}
            )
            return CollaboratorResponse.fail(message)
        except httpx.TimeoutException:
            logger.error(f"Razorpay call timed out: {method} {path}")
            return CollaboratorResponse.fail(f"{default_error}: request timed out")
        except (httpx.HTTPError, ValueError) as exc:
            logger.error(f"Razorpay call error: {method} {path}: {exc}")
            return CollaboratorResponse.fail(default_error)

    def create_order(self, amount: Decimal, currency: str, receipt: str, notes: dict) -> CollaboratorResponse:
        return self._call("POST", "/orders", "Failed to create Razorpay order", json={
            "amount": to_minor_units(amount),
            "currency": currency,
            "receipt": receipt,
            "notes": notes,
        })

    def fetch_payment(self, payment_id: str) -> CollaboratorResponse:
        return self._call("GET", f"/payments/{payment_id}", "Failed to fetch payment details")

    def refund_payment(self, payment_id: str, amount: Optional[Decimal] = None) -> CollaboratorResponse:
        payload = {"amount": to_minor_units(amount)} if amount is not None else {}
        return self._call("POST", f"/payments/{payment_id}/refund", "Failed to process refund", json=payload)
