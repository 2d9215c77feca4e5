from datetime import datetime, timezone
from typing import Optional

import httpx

from shared.core import get_logger
from storefront.application.ports import CheckoutTokenProvider, CollaboratorResponse
from storefront.application.signature import SignatureVerifier, canonical_body
from storefront.infrastructure.http import error_message, json_body

logger = get_logger(__name__)

class ShiprocketCheckoutClient(CheckoutTokenProvider):
    """Access tokens for the hosted checkout; requests are signed with a base64 HMAC."""

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        base_url: str = "https://checkout-api.shiprocket.com",
        timeout: float = 15.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.signer = SignatureVerifier(api_key, api_secret)
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def generate_access_token(self, cart_data: dict, redirect_url: str, timestamp: Optional[str] = None) -> CollaboratorResponse:
        if not self.signer.api_key or not self.signer.secret:
            return CollaboratorResponse.fail("Shiprocket API credentials not configured")

        payload = {
            "cart_data": cart_data,
            "redirect_url": redirect_url,
            "timestamp": timestamp or datetime.now(timezone.utc).isoformat(),
        }
        # Send exactly the bytes that were signed
        body = canonical_body(payload)
        headers = {
            "Content-Type": "application/json",
            "X-Api-Key": self.signer.api_key,
            "X-Api-HMAC-SHA256": self.signer.sign(body, encoding="base64"),
        }

        logger.info("Generating Shiprocket Checkout access token")
        try:
            with httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self.transport) as client:
                response = client.post("/api/v1/access-token/checkout", content=body, headers=headers)
            response.raise_for_status()
            data = json_body(response)
        except httpx.HTTPStatusError as exc:
            message = error_message(exc.response, "Failed to generate checkout token")
            logger.error("Checkout token generation failed", extra={'extra_fields': {'error': message}})
            return CollaboratorResponse.fail(message)
        except httpx.TimeoutException:
            return CollaboratorResponse.fail("Failed to generate checkout token: request timed out")
        except (httpx.HTTPError, ValueError) as exc:
            logger.error(f"Checkout token generation error: {exc}")
            return CollaboratorResponse.fail("Failed to generate checkout token")

        token = (data.get("result") or {}).get("token")
        if not token:
            return CollaboratorResponse.fail("Token not found in response")
        return CollaboratorResponse.ok({"token": token, "response": data})
