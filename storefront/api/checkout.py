from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from storefront.api.deps import get_checkout_token_provider, get_db
from storefront.application.checkout import CheckoutService
from storefront.application.ports import CheckoutTokenProvider
from storefront.application.schemas import GenerateTokenRequest

router = APIRouter(prefix="/checkout", tags=["checkout"])

@router.post("/generate-token")
def generate_token(
    payload: GenerateTokenRequest,
    db: Session = Depends(get_db),
    tokens: CheckoutTokenProvider = Depends(get_checkout_token_provider),
):
    """Access token for the hosted checkout; every variant must be sellable."""
    token = CheckoutService(db, token_provider=tokens).generate_checkout_token(
        payload.cart_data.items, payload.redirect_url
    )
    return {"success": True, "token": token, "message": "Checkout token generated successfully"}
