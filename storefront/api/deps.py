from functools import lru_cache
from typing import Optional, TypeVar

from fastapi import Depends, Header, Request
from pydantic import BaseModel, ValidationError as PydanticValidationError

from shared.core import set_request_context
from storefront.application.auth import (
    AdminPrincipal,
    AuthenticatorChain,
    JwtAuthenticator,
    StaticSecretAuthenticator,
    require_superadmin,
)
from storefront.application.ports import CheckoutProvider, CheckoutTokenProvider, PaymentGateway, ShippingProvider
from storefront.application.signature import SignatureVerifier
from storefront.core_settings import get_settings
from storefront.domain.errors import ValidationError
from storefront.infrastructure.checkout_client import ShiprocketCheckoutClient
from storefront.infrastructure.db import get_db
from storefront.infrastructure.razorpay_client import RazorpayClient
from storefront.infrastructure.shiprocket_client import ShiprocketClient

__all__ = [
    "get_db",
    "get_payment_gateway",
    "get_shipping_provider",
    "get_checkout_provider",
    "get_checkout_token_provider",
    "get_webhook_verifier",
    "verified_webhook_body",
    "parse_payload",
    "require_admin",
    "require_superadmin_principal",
]

ModelT = TypeVar("ModelT", bound=BaseModel)

@lru_cache
def get_payment_gateway() -> PaymentGateway:
    settings = get_settings()
    return RazorpayClient(
        settings.RAZORPAY_KEY_ID,
        settings.RAZORPAY_KEY_SECRET,
        base_url=settings.RAZORPAY_BASE_URL,
        timeout=settings.COLLABORATOR_TIMEOUT_SECONDS,
    )

@lru_cache
def _shiprocket_client() -> ShiprocketClient:
    # One client per process so the bearer token cache is shared
    settings = get_settings()
    return ShiprocketClient(
        settings.SHIPROCKET_BASE_URL,
        settings.SHIPROCKET_API_KEY,
        settings.SHIPROCKET_API_SECRET,
        timeout=settings.COLLABORATOR_TIMEOUT_SECONDS,
        token_ttl_seconds=settings.SHIPROCKET_TOKEN_TTL_SECONDS,
    )

def get_shipping_provider() -> ShippingProvider:
    return _shiprocket_client()

def get_checkout_provider() -> CheckoutProvider:
    return _shiprocket_client()

@lru_cache
def get_checkout_token_provider() -> CheckoutTokenProvider:
    settings = get_settings()
    return ShiprocketCheckoutClient(
        settings.SHIPROCKET_API_KEY,
        settings.SHIPROCKET_API_SECRET,
        base_url=settings.SHIPROCKET_CHECKOUT_BASE_URL,
        timeout=settings.COLLABORATOR_TIMEOUT_SECONDS,
    )

def get_webhook_verifier() -> SignatureVerifier:
    settings = get_settings()
    return SignatureVerifier(settings.SHIPROCKET_API_KEY, settings.SHIPROCKET_API_SECRET)

async def verified_webhook_body(
    request: Request,
    x_api_key: Optional[str] = Header(default=None),
    x_api_hmac_sha256: Optional[str] = Header(default=None),
    verifier: SignatureVerifier = Depends(get_webhook_verifier),
) -> bytes:
    """Raw body of a webhook whose key and HMAC headers check out."""
    body = await request.body()
    verifier.verify_webhook(body, x_api_key, x_api_hmac_sha256)
    return body

def parse_payload(model: type[ModelT], body: bytes) -> ModelT:
    """Validate a verified webhook body against its payload schema."""
    try:
        return model.model_validate_json(body)
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "body"
        raise ValidationError(f"Invalid webhook payload: {field}: {first['msg']}") from exc

def get_authenticator() -> AuthenticatorChain:
    return AuthenticatorChain([
        StaticSecretAuthenticator(get_settings().ADMIN_PASSWORD),
        JwtAuthenticator(),
    ])

def require_admin(request: Request, chain: AuthenticatorChain = Depends(get_authenticator)) -> AdminPrincipal:
    principal = chain.authenticate(request.headers)
    set_request_context(user_id=principal.username)
    return principal

def require_superadmin_principal(principal: AdminPrincipal = Depends(require_admin)) -> AdminPrincipal:
    require_superadmin(principal)
    return principal
