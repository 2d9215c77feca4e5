from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from storefront.api.deps import get_db, get_shipping_provider, require_admin
from storefront.application.auth import AdminPrincipal
from storefront.application.ports import ShippingProvider
from storefront.application.schemas import (
    AwbRequest,
    OrderRead,
    OrderRefRequest,
    PickupRequest,
    ServiceabilityRequest,
    ShipmentCreateRequest,
)
from storefront.application.shipment import ShipmentCoordinator

router = APIRouter(prefix="/shipment", tags=["shipment"])

@router.post("/create")
def create_shipment(
    payload: ShipmentCreateRequest,
    db: Session = Depends(get_db),
    shipping: ShippingProvider = Depends(get_shipping_provider),
    admin: AdminPrincipal = Depends(require_admin),
):
    result = ShipmentCoordinator(db, shipping).create_shipment(payload.order_id, payload.pickup_location)
    order = result.pop("order")
    return {
        "success": True,
        "message": "Shipment created successfully",
        **result,
        "order": OrderRead.model_validate(order),
    }

@router.post("/generate-awb")
def generate_awb(
    payload: AwbRequest,
    db: Session = Depends(get_db),
    shipping: ShippingProvider = Depends(get_shipping_provider),
    admin: AdminPrincipal = Depends(require_admin),
):
    result = ShipmentCoordinator(db, shipping).generate_awb(payload.shipment_id, payload.courier_id)
    return {"success": True, "message": "AWB generated successfully", **result}

@router.post("/request-pickup")
def request_pickup(
    payload: PickupRequest,
    db: Session = Depends(get_db),
    shipping: ShippingProvider = Depends(get_shipping_provider),
    admin: AdminPrincipal = Depends(require_admin),
):
    data = ShipmentCoordinator(db, shipping).request_pickup(payload.shipment_id)
    return {"success": True, "message": "Pickup requested successfully", "data": data}

@router.get("/track/{shipment_id}")
def track_shipment(
    shipment_id: str,
    db: Session = Depends(get_db),
    shipping: ShippingProvider = Depends(get_shipping_provider),
):
    return {"success": True, "tracking_data": ShipmentCoordinator(db, shipping).track_shipment(shipment_id)}

@router.post("/cancel")
def cancel_shipment(
    payload: OrderRefRequest,
    db: Session = Depends(get_db),
    shipping: ShippingProvider = Depends(get_shipping_provider),
    admin: AdminPrincipal = Depends(require_admin),
):
    order = ShipmentCoordinator(db, shipping).cancel_shipment(payload.order_id)
    return {"success": True, "message": "Shipment cancelled successfully", "order": OrderRead.model_validate(order)}

@router.post("/check-couriers")
def check_couriers(
    payload: ServiceabilityRequest,
    db: Session = Depends(get_db),
    shipping: ShippingProvider = Depends(get_shipping_provider),
):
    result = ShipmentCoordinator(db, shipping).check_serviceability(
        payload.pickup_postcode, payload.delivery_postcode, payload.weight, payload.cod
    )
    return {"success": True, **result}
