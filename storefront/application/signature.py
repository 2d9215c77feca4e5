"""HMAC-SHA256 signing and verification for collaborator traffic.

Two encodings are in use and each belongs to a collaborator contract:
inbound catalog/checkout webhooks carry a hex digest, outbound checkout
token requests are signed with a base64 digest. Payment callbacks are
signed over ``order_ref|payment_ref`` with the payment secret.

All comparisons are constant time. Verification never mutates anything;
callers must run it before touching the ledger or the catalog.
"""

import base64
import hashlib
import hmac
import json
from typing import Any, Union

from shared.core import get_logger
from storefront.domain.errors import InternalError, InvalidSignatureError, UnauthorizedError

logger = get_logger(__name__)

Body = Union[bytes, str, dict, list]

def canonical_body(body: Body) -> bytes:
    """Compact JSON serialization of ``body``; non-JSON bytes are used as-is."""
    if isinstance(body, (dict, list)):
        return _dumps(body)
    raw = body.encode("utf-8") if isinstance(body, str) else body
    try:
        parsed = json.loads(raw)
    except ValueError:
        return raw
    return _dumps(parsed)

def _dumps(value: Any) -> bytes:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False).encode("utf-8")

def _digest(secret: str, message: bytes) -> bytes:
    if not secret:
        raise InternalError("Signing secret is not configured")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()

def _matches(expected: str, claimed: str) -> bool:
    return hmac.compare_digest(expected.encode("utf-8"), claimed.encode("utf-8"))

class SignatureVerifier:
    """Shared-key + HMAC check for one collaborator."""

    def __init__(self, api_key: str, secret: str):
        self.api_key = api_key
        self.secret = secret

    def sign(self, body: Body, encoding: str = "hex") -> str:
        digest = _digest(self.secret, canonical_body(body))
        if encoding == "hex":
            return digest.hex()
        if encoding == "base64":
            return base64.b64encode(digest).decode("ascii")
        raise ValueError(f"Unsupported signature encoding: {encoding}")

    def verify_webhook(self, body: Body, claimed_api_key: str | None, claimed_signature: str | None) -> None:
        """Raise UnauthorizedError unless both headers are present and match."""
        if not claimed_api_key or not claimed_signature:
            logger.warning("Webhook rejected: missing authentication headers")
            raise UnauthorizedError("Missing authentication headers")

        if not self.api_key or not _matches(self.api_key, claimed_api_key):
            logger.warning("Webhook rejected: API key mismatch")
            raise UnauthorizedError("Invalid API key")

        try:
            expected = self.sign(body, encoding="hex")
        except InternalError:
            logger.error("Webhook signature could not be computed: secret not configured")
            raise
        except Exception as exc:
            logger.error("Webhook signature computation failed", exc_info=True)
            raise InternalError("Failed to verify webhook signature") from exc

        if not _matches(expected, claimed_signature):
            logger.warning("Webhook rejected: HMAC mismatch")
            raise UnauthorizedError("Invalid HMAC signature")

def sign_payment(order_ref: str, payment_ref: str, secret: str) -> str:
    return _digest(secret, f"{order_ref}|{payment_ref}".encode("utf-8")).hex()

def verify_payment_signature(order_ref: str, payment_ref: str, signature: str, secret: str) -> None:
    """Raise InvalidSignatureError unless ``signature`` signs ``order_ref|payment_ref``."""
    expected = sign_payment(order_ref, payment_ref, secret)
    if not signature or not _matches(expected, signature):
        logger.warning(
            "Payment signature mismatch",
            extra={'extra_fields': {'order_ref': order_ref, 'payment_ref': payment_ref}}
        )
        raise InvalidSignatureError()
