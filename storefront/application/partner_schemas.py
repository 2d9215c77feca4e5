"""Inbound partner payloads (catalog webhooks and checkout callbacks).

The partner sends ids as integers or strings and prices/weights as
strings or numbers; everything is normalized to strings here so the
adapter never sees a loosely typed value.
"""

from pydantic import BaseModel, field_validator
from typing import Literal, Optional, Union

PartnerId = Union[int, str]

def _as_str(value):
    if value is None:
        return None
    return str(value)

class PartnerImage(BaseModel):
    src: Optional[str] = None

    class Config:
        extra = "ignore"

class PartnerVariantPayload(BaseModel):
    id: PartnerId
    title: str = ""
    price: Optional[str] = None
    quantity: Optional[int] = None
    sku: Optional[str] = None
    weight: Optional[str] = None
    image: Optional[PartnerImage] = None

    class Config:
        extra = "ignore"

    @field_validator("price", "weight", mode="before")
    @classmethod
    def _stringify(cls, value):
        return _as_str(value)

class PartnerProductPayload(BaseModel):
    id: PartnerId
    title: str
    body_html: Optional[str] = None
    vendor: Optional[str] = None
    product_type: Optional[str] = None
    updated_at: Optional[str] = None
    status: Literal["active", "draft"] = "active"
    variants: Optional[list[PartnerVariantPayload]] = None
    image: Optional[PartnerImage] = None

    class Config:
        extra = "ignore"

    @property
    def external_id(self) -> str:
        return str(self.id)

class PartnerCollectionPayload(BaseModel):
    id: PartnerId
    title: str
    body_html: Optional[str] = None
    updated_at: Optional[str] = None
    image: Optional[PartnerImage] = None

    class Config:
        extra = "ignore"

    @property
    def external_id(self) -> str:
        return str(self.id)

class CheckoutWebhookEvent(BaseModel):
    """Hosted-checkout callback: payment and/or shipment progress for one order."""
    order_id: str
    payment_status: Optional[str] = None
    shipment_status: Optional[str] = None
    tracking_url: Optional[str] = None
    awb_code: Optional[str] = None

    class Config:
        extra = "ignore"

    @field_validator("order_id", mode="before")
    @classmethod
    def _order_id_str(cls, value):
        return _as_str(value)
