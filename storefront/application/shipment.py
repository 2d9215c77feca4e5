"""Shipment Coordinator.

Packages paid orders for the logistics collaborator and moves them
through ``shipped`` and ``delivered`` (or ``failed`` on cancellation).
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from shared.core import get_logger
from storefront.application.ledger import OrderLedger
from storefront.application.ports import ShippingProvider
from storefront.core_settings import get_settings
from storefront.domain.errors import PreconditionFailedError, ValidationError
from storefront.domain.models import Order, Product
from storefront.domain.order_state import OrderStatus

logger = get_logger(__name__)

DEFAULT_DIMENSIONS = {"length": 10, "breadth": 10, "height": 10, "weight": 0.5}

@dataclass(frozen=True)
class PackageLine:
    dimensions: Optional[dict]
    quantity: int

@dataclass(frozen=True)
class Package:
    length: float
    breadth: float
    height: float
    weight: float

def build_package(lines: list[PackageLine]) -> Package:
    """Per-axis maximum of the item sizes (items nest) and the summed weight."""
    if not lines:
        return Package(**{k: float(v) for k, v in DEFAULT_DIMENSIONS.items()})
    length = breadth = height = 0.0
    weight = Decimal("0")
    for line in lines:
        dims = {**DEFAULT_DIMENSIONS, **{k: v for k, v in (line.dimensions or {}).items() if v}}
        length = max(length, float(dims["length"]))
        breadth = max(breadth, float(dims["breadth"]))
        height = max(height, float(dims["height"]))
        weight += Decimal(str(dims["weight"])) * line.quantity
    return Package(length=length, breadth=breadth, height=height, weight=float(weight))

def _split_name(full_name: str) -> tuple[str, str]:
    parts = full_name.split()
    if not parts:
        return full_name, ""
    return parts[0], " ".join(parts[1:])

class ShipmentCoordinator:
    def __init__(self, db: Session, shipping: ShippingProvider):
        self.db = db
        self.shipping = shipping
        self.ledger = OrderLedger(db)

    def _tracking_url(self, awb_code: Optional[str]) -> Optional[str]:
        if not awb_code:
            return None
        return get_settings().TRACKING_URL_TEMPLATE.format(awb=awb_code)

    def package_for(self, order: Order) -> Package:
        ids = [item.product_id for item in order.items]
        products = {p.external_id: p for p in self.db.query(Product).filter(Product.external_id.in_(ids)).all()}
        return build_package([
            PackageLine(
                dimensions=products[item.product_id].dimensions if item.product_id in products else None,
                quantity=item.quantity,
            )
            for item in order.items
        ])

    def _shipment_payload(self, order: Order, package: Package, pickup_location: str) -> dict:
        first_name, last_name = _split_name(order.customer_name)
        address = order.shipping_address or {}
        return {
            "order_id": order.order_id,
            "order_date": date.today().isoformat(),
            "pickup_location": pickup_location,
            "billing_customer_name": first_name,
            "billing_last_name": last_name,
            "billing_address": address.get("line1", ""),
            "billing_address_2": address.get("line2") or "",
            "billing_city": address.get("city", ""),
            "billing_pincode": address.get("pincode", ""),
            "billing_state": address.get("state", ""),
            "billing_country": address.get("country", ""),
            "billing_email": order.customer_email,
            "billing_phone": order.customer_phone,
            "shipping_is_billing": True,
            "order_items": [
                {
                    "name": item.name,
                    "sku": item.variant_id or item.product_id,
                    "units": item.quantity,
                    "selling_price": float(item.unit_price),
                    "discount": 0,
                }
                for item in order.items
            ],
            "payment_method": "Prepaid",
            "sub_total": float(order.amount),
            "length": package.length,
            "breadth": package.breadth,
            "height": package.height,
            "weight": package.weight,
        }

    def create_shipment(self, order_id: str, pickup_location: Optional[str] = None) -> dict:
        order = self.ledger.find_by_order_id(order_id)
        if order.status != OrderStatus.PAID.value:
            raise PreconditionFailedError("Order must be paid before creating shipment")

        package = self.package_for(order)
        payload = self._shipment_payload(order, package, pickup_location or get_settings().DEFAULT_PICKUP_LOCATION)
        data = self.shipping.create_order(payload).unwrap()

        awb_code = data.get("awb_code")
        tracking_url = self._tracking_url(awb_code)
        order = self.ledger.mark_shipped(
            order_id,
            shipping_order_id=data.get("order_id"),
            shipment_id=data.get("shipment_id"),
            tracking_url=tracking_url,
        )
        if awb_code:
            order = self.ledger.attach_tracking(order_id, awb_code=awb_code)
        logger.info(
            "Shipment created",
            extra={'extra_fields': {'order_id': order_id, 'shipment_id': order.shipment_id}}
        )
        return {
            "order_id": order.order_id,
            "shipment_ref": order.shipment_id,
            "shipping_order_id": order.shipping_order_id,
            "tracking_url": order.tracking_url,
            "order": order,
        }

    def generate_awb(self, shipment_id: str, courier_id: Optional[int] = None) -> dict:
        data = self.shipping.assign_awb(shipment_id, courier_id).unwrap()
        awb_code = data.get("awb_code")
        tracking_url = self._tracking_url(awb_code)
        order = self.ledger.find_by_shipment_id(shipment_id)
        if order and awb_code:
            self.ledger.attach_tracking(order.order_id, awb_code=awb_code, tracking_url=tracking_url)
        logger.info("AWB assigned", extra={'extra_fields': {'shipment_id': shipment_id, 'awb_code': awb_code}})
        return {"awb_code": awb_code, "tracking_url": tracking_url, "data": data.get("response")}

    def request_pickup(self, shipment_id: str) -> dict:
        data = self.shipping.request_pickup(shipment_id).unwrap()
        return data.get("response") or {}

    def track_shipment(self, shipment_id: str) -> dict:
        data = self.shipping.track(shipment_id).unwrap()
        return data.get("tracking_data") or {}

    def cancel_shipment(self, order_id: str) -> Order:
        order = self.ledger.find_by_order_id(order_id)
        self.ledger.ensure_transition(order, OrderStatus.FAILED)
        self.shipping.cancel_orders([order.shipping_order_id or order.order_id]).unwrap()
        logger.info("Shipment cancelled", extra={'extra_fields': {'order_id': order_id}})
        return self.ledger.mark_failed(order_id)

    def check_serviceability(self, pickup_region: str, delivery_region: str, weight: float, cod: bool = False) -> dict:
        data = self.shipping.serviceability(pickup_region, delivery_region, weight, cod).unwrap()
        couriers = data.get("couriers") or []
        return {
            "serviceable": bool(couriers),
            "couriers": couriers,
            "estimated_delivery_days": data.get("estimated_delivery_days"),
        }

    def record_carrier_update(
        self,
        order_id: str,
        status: str,
        tracking_url: Optional[str] = None,
        awb_code: Optional[str] = None,
    ) -> Order:
        """Apply a carrier-reported ``shipped`` or ``delivered`` status; repeats are no-ops."""
        if status not in (OrderStatus.SHIPPED.value, OrderStatus.DELIVERED.value):
            raise ValidationError(f"Unsupported shipment status: {status}")

        order = self.ledger.find_by_order_id(order_id)
        if order.status in (OrderStatus.CREATED.value, OrderStatus.FAILED.value):
            self.ledger.ensure_transition(order, OrderStatus(status))
        # A missed "shipped" callback is replayed before "delivered"
        if order.status == OrderStatus.PAID.value:
            order = self.ledger.mark_shipped(order_id, tracking_url=tracking_url)
        if status == OrderStatus.DELIVERED.value and order.status == OrderStatus.SHIPPED.value:
            order = self.ledger.mark_delivered(order_id)

        if tracking_url or awb_code:
            order = self.ledger.attach_tracking(order_id, awb_code=awb_code, tracking_url=tracking_url)
        return order
