"""Shiprocket logistics and hosted-checkout API client.

Implements the shipping and checkout ports over httpx. Every call uses
the configured timeout, authenticates with the shared bearer token from
``TokenCache`` and is normalized into a ``CollaboratorResponse``. No call
is retried here; callers decide.
"""

from typing import Any, Optional

import httpx

from shared.core import get_logger
from storefront.application.ports import CheckoutProvider, CollaboratorResponse, ShippingProvider
from storefront.domain.errors import CollaboratorError
from storefront.infrastructure.http import as_int_if_numeric, error_message, json_body
from storefront.infrastructure.token_cache import TokenCache

logger = get_logger(__name__)

class ShiprocketClient(ShippingProvider, CheckoutProvider):
    def __init__(
        self,
        base_url: str,
        email: str,
        password: str,
        timeout: float = 15.0,
        token_ttl_seconds: float = 9 * 24 * 60 * 60,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.email = email
        self.password = password
        self.timeout = timeout
        self.transport = transport
        self.tokens = TokenCache(self._login, token_ttl_seconds)

    def _client(self) -> httpx.Client:
        return httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self.transport)

    def _login(self) -> str:
        if not self.email or not self.password:
            raise CollaboratorError("Shiprocket API credentials not configured")
        try:
            with self._client() as client:
                response = client.post("/auth/login", json={"email": self.email, "password": self.password})
            response.raise_for_status()
            token = json_body(response).get("token")
        except httpx.HTTPError as exc:
            logger.error(f"Shiprocket authentication error: {exc}")
            raise CollaboratorError("Failed to authenticate with Shiprocket") from exc
        if not token:
            raise CollaboratorError("Failed to authenticate with Shiprocket")
        logger.info("Shiprocket bearer token refreshed")
        return token

    def _request(
        self,
        method: str,
        path: str,
        default_error: str,
        json: Optional[dict] = None,
        params: Optional[dict] = None,
    ) -> tuple[Optional[dict], Optional[str]]:
        """Return ``(body, None)`` on success or ``(None, message)`` on failure."""
        try:
            token = self.tokens.get_valid_token()
        except CollaboratorError as exc:
            return None, exc.message

        try:
            with self._client() as client:
                response = client.request(
                    method, path, json=json, params=params,
                    headers={"Authorization": f"Bearer {token}"},
                )
            if response.status_code == 401:
                self.tokens.invalidate()
            response.raise_for_status()
            return json_body(response), None
        except httpx.HTTPStatusError as exc:
            message = error_message(exc.response, default_error)
            logger.error(
                f"Shiprocket call failed: {method} {path}",
                extra={'extra_fields': {'status_code': exc.response.status_code, 'error': message}}
            )
            return None, message
        except httpx.TimeoutException:
            logger.error(f"Shiprocket call timed out: {method} {path}")
            return None, f"{default_error}: request timed out"
        except (httpx.HTTPError, ValueError) as exc:
            logger.error(f"Shiprocket call error: {method} {path}: {exc}")
            return None, default_error

    def _respond(self, body: Optional[dict], error: Optional[str], **data: Any) -> CollaboratorResponse:
        if error is not None:
            return CollaboratorResponse.fail(error)
        return CollaboratorResponse.ok({**data, "response": body})

    # Shipping port

    def create_order(self, payload: dict) -> CollaboratorResponse:
        body, error = self._request("POST", "/orders/create/adhoc", "Failed to create Shiprocket order", json=payload)
        if error is not None:
            return CollaboratorResponse.fail(error)
        return self._respond(
            body, None,
            order_id=_str_or_none(body.get("order_id")),
            shipment_id=_str_or_none(body.get("shipment_id")),
            awb_code=body.get("awb_code") or None,
        )

    def assign_awb(self, shipment_id: str, courier_id: Optional[int] = None) -> CollaboratorResponse:
        payload: dict = {"shipment_id": as_int_if_numeric(shipment_id)}
        if courier_id:
            payload["courier_id"] = courier_id
        body, error = self._request("POST", "/courier/assign/awb", "Failed to generate AWB", json=payload)
        if error is not None:
            return CollaboratorResponse.fail(error)
        awb_data = (body.get("response") or {}).get("data") or {}
        return self._respond(body, None, awb_code=awb_data.get("awb_code"))

    def request_pickup(self, shipment_id: str) -> CollaboratorResponse:
        body, error = self._request(
            "POST", "/courier/generate/pickup", "Failed to request pickup",
            json={"shipment_id": [as_int_if_numeric(shipment_id)]},
        )
        return self._respond(body, error)

    def track(self, shipment_id: str) -> CollaboratorResponse:
        body, error = self._request("GET", f"/courier/track/shipment/{shipment_id}", "Failed to track shipment")
        if error is not None:
            return CollaboratorResponse.fail(error)
        return self._respond(body, None, tracking_data=body.get("tracking_data"))

    def cancel_orders(self, order_ids: list[str]) -> CollaboratorResponse:
        body, error = self._request("POST", "/orders/cancel", "Failed to cancel shipment", json={"ids": order_ids})
        return self._respond(body, error)

    def serviceability(self, pickup_postcode: str, delivery_postcode: str, weight: float, cod: bool = False) -> CollaboratorResponse:
        body, error = self._request(
            "GET", "/courier/serviceability", "Failed to check available couriers",
            params={
                "pickup_postcode": pickup_postcode,
                "delivery_postcode": delivery_postcode,
                "weight": weight,
                "cod": 1 if cod else 0,
            },
        )
        if error is not None:
            return CollaboratorResponse.fail(error)
        lane = body.get("data") or {}
        return self._respond(
            body, None,
            couriers=lane.get("available_courier_companies") or [],
            estimated_delivery_days=lane.get("estimated_delivery_days"),
        )

    # Checkout port

    def create_checkout(self, payload: dict) -> CollaboratorResponse:
        body, error = self._request(
            "POST", "/faster/checkout/create", "Failed to create Faster Checkout session", json=payload,
        )
        if error is not None:
            return CollaboratorResponse.fail(error)
        return self._respond(
            body, None,
            checkout_id=_str_or_none(body.get("checkout_id")),
            checkout_url=body.get("checkout_url"),
            order_id=_str_or_none(body.get("order_id")),
        )

    def verify_checkout(self, checkout_id: str) -> CollaboratorResponse:
        body, error = self._request("GET", f"/faster/checkout/{checkout_id}", "Failed to verify Faster Checkout")
        if error is not None:
            return CollaboratorResponse.fail(error)
        return self._respond(
            body, None,
            status=body.get("status"),
            payment_status=body.get("payment_status"),
            order_id=_str_or_none(body.get("order_id")),
            shipment_id=_str_or_none(body.get("shipment_id")),
            awb_code=body.get("awb_code"),
            tracking_url=body.get("tracking_url"),
        )

    def checkout_status(self, order_id: str) -> CollaboratorResponse:
        body, error = self._request("GET", f"/faster/orders/{order_id}", "Failed to get order status")
        if error is not None:
            return CollaboratorResponse.fail(error)
        return self._respond(
            body, None,
            status=body.get("status"),
            payment_status=body.get("payment_status"),
            shipment_status=body.get("shipment_status"),
            tracking_url=body.get("tracking_url"),
        )

    def cancel_checkout(self, order_id: str) -> CollaboratorResponse:
        body, error = self._request("POST", f"/faster/orders/{order_id}/cancel", "Failed to cancel order", json={})
        return self._respond(body, error)

def _str_or_none(value: Any) -> Optional[str]:
    return None if value is None else str(value)
