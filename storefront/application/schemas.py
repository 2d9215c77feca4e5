from pydantic import BaseModel, Field, AliasChoices, model_validator
from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional
from storefront.domain.order_state import OrderStatus

# Customers and carts

class AddressIn(BaseModel):
    line1: str = Field(min_length=1)
    line2: Optional[str] = None
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    pincode: str = Field(min_length=1)
    country: str = "India"

class CustomerIn(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+$")
    phone: str = Field(min_length=1)
    address: AddressIn

class CartItem(BaseModel):
    product_id: Optional[str] = None
    variant_id: Optional[str] = None
    quantity: int = Field(gt=0)

    @model_validator(mode="after")
    def _needs_reference(self):
        if not self.product_id and not self.variant_id:
            raise ValueError("product_id or variant_id is required")
        return self

class CreateSessionRequest(BaseModel):
    items: list[CartItem] = Field(min_length=1)
    customer: CustomerIn
    currency: Optional[str] = None
    pickup_postcode: Optional[str] = None

class FasterCheckoutCreateRequest(BaseModel):
    items: list[CartItem] = Field(min_length=1)
    customer: CustomerIn
    pickup_postcode: str = Field(min_length=1)

class CheckoutCartItem(BaseModel):
    variant_id: str = Field(min_length=1)
    quantity: int = Field(ge=1)

class CheckoutCart(BaseModel):
    items: list[CheckoutCartItem] = Field(min_length=1)

class GenerateTokenRequest(BaseModel):
    cart_data: CheckoutCart
    redirect_url: str = Field(min_length=1)

# Payment

class VerifyPaymentRequest(BaseModel):
    razorpay_order_id: str = Field(min_length=1)
    razorpay_payment_id: str = Field(min_length=1)
    razorpay_signature: str = Field(min_length=1)
    order_id: Optional[str] = None

class FasterVerifyRequest(BaseModel):
    checkout_id: str = Field(min_length=1)
    order_id: Optional[str] = None

class RefundRequest(BaseModel):
    payment_id: str = Field(min_length=1)
    amount: Optional[Decimal] = Field(default=None, gt=0)

class OrderRefRequest(BaseModel):
    order_id: str = Field(min_length=1)

class StatusUpdateRequest(BaseModel):
    status: OrderStatus

# Shipment

class ShipmentCreateRequest(BaseModel):
    order_id: str = Field(min_length=1)
    pickup_location: Optional[str] = None

class AwbRequest(BaseModel):
    shipment_id: str = Field(min_length=1)
    courier_id: Optional[int] = None

class PickupRequest(BaseModel):
    shipment_id: str = Field(min_length=1)

class ServiceabilityRequest(BaseModel):
    pickup_postcode: str = Field(min_length=1)
    delivery_postcode: str = Field(min_length=1)
    weight: float = Field(gt=0)
    cod: bool = False

# Catalog administration

class Dimensions(BaseModel):
    length: float = 10
    breadth: float = 10
    height: float = 10
    weight: float = 0.5

class VariantIn(BaseModel):
    id: str = Field(min_length=1)
    title: str
    price: Decimal = Field(ge=0)
    available_for_sale: bool = True
    sku: Optional[str] = None

class ProductCreate(BaseModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    flavor: str = ""
    price: Decimal = Field(ge=0)
    description: str = ""
    handle: Optional[str] = None
    images: list[str] = []
    stock: int = Field(default=0, ge=0)
    available_for_sale: bool = True
    variants: list[VariantIn] = []
    dimensions: Optional[Dimensions] = None

class ProductUpdate(BaseModel):
    name: Optional[str] = None
    flavor: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=0)
    description: Optional[str] = None
    handle: Optional[str] = None
    images: Optional[list[str]] = None
    stock: Optional[int] = Field(default=None, ge=0)
    available_for_sale: Optional[bool] = None
    variants: Optional[list[VariantIn]] = None
    dimensions: Optional[Dimensions] = None

class StockUpdate(BaseModel):
    stock: int = Field(ge=0)

class VariantRead(BaseModel):
    id: str = Field(validation_alias=AliasChoices("variant_id", "id"))
    title: str
    price: float
    available_for_sale: bool
    sku: Optional[str] = None
    class Config:
        from_attributes = True

class ProductRead(BaseModel):
    id: str = Field(validation_alias=AliasChoices("external_id", "id"))
    name: str
    flavor: str
    price: float
    description: str
    handle: str
    images: list[str]
    stock: int
    available_for_sale: bool
    dimensions: Optional[dict] = None
    variants: list[VariantRead]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    class Config:
        from_attributes = True

class CollectionRead(BaseModel):
    id: str = Field(validation_alias=AliasChoices("external_id", "id"))
    name: str
    handle: str
    description: str
    product_ids: list[str]
    image: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    class Config:
        from_attributes = True

class CollectionWithProducts(CollectionRead):
    products: list[ProductRead] = []

# Orders

class OrderItemRead(BaseModel):
    product_id: str
    variant_id: Optional[str] = None
    name: str
    quantity: int
    unit_price: float
    class Config:
        from_attributes = True

class OrderRead(BaseModel):
    order_id: str
    amount: float
    currency: str
    status: str
    customer_name: str
    customer_email: str
    customer_phone: str
    shipping_address: dict
    session_ref: Optional[str] = None
    payment_id: Optional[str] = None
    shipping_order_id: Optional[str] = None
    shipment_id: Optional[str] = None
    awb_code: Optional[str] = None
    tracking_url: Optional[str] = None
    items: list[OrderItemRead]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    class Config:
        from_attributes = True

# Admins

class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: str = Field(min_length=1)

class AdminCreate(BaseModel):
    username: str = Field(min_length=3)
    password: str = Field(min_length=6)
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+$")
    role: Literal["admin", "superadmin"] = "admin"

class ChangePasswordRequest(BaseModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6)

class AdminRead(BaseModel):
    id: Optional[int] = None
    username: str
    email: Optional[str] = None
    role: str
    class Config:
        from_attributes = True
