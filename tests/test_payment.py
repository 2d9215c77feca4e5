import pytest

from storefront.application.partner_schemas import CheckoutWebhookEvent
from storefront.application.payment import PaymentConfirmationHandler
from storefront.application.shipment import ShipmentCoordinator
from storefront.application.signature import sign_payment
from storefront.domain.errors import ValidationError
from storefront.domain.models import Order
from tests.conftest import CUSTOMER, STATIC_ADMIN

def place_order(client):
    response = client.post("/orders/create", json={
        "items": [{"product_id": "prod_grape", "quantity": 2}],
        "customer": CUSTOMER,
    })
    assert response.status_code == 200
    return response.json()

def confirmation(order, payment_id="pay_1", signature=None):
    return {
        "razorpay_order_id": order["razorpay_order_id"],
        "razorpay_payment_id": payment_id,
        "razorpay_signature": signature or sign_payment(order["razorpay_order_id"], payment_id, "rzp_test_secret"),
    }

def stored(db, order_id):
    db.expire_all()
    return db.query(Order).filter(Order.order_id == order_id).one()

def test_valid_signature_marks_order_paid(client, catalog):
    order = place_order(client)

    response = client.post("/orders/verify-payment", json=confirmation(order))

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Payment verified successfully"
    assert body["order"]["status"] == "paid"
    assert body["order"]["payment_id"] == "pay_1"
    assert stored(catalog, order["order_id"]).status == "paid"

def test_invalid_signature_changes_nothing(client, catalog):
    order = place_order(client)

    response = client.post("/orders/verify-payment", json=confirmation(order, signature="deadbeef"))

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid payment signature"
    record = stored(catalog, order["order_id"])
    assert record.status == "created"
    assert record.payment_id is None

def test_signature_for_another_payment_is_rejected(client, catalog):
    order = place_order(client)
    payload = confirmation(order, payment_id="pay_1")
    payload["razorpay_payment_id"] = "pay_2"

    assert client.post("/orders/verify-payment", json=payload).status_code == 400
    assert stored(catalog, order["order_id"]).status == "created"

def test_duplicate_confirmation_is_a_no_op(client, catalog):
    order = place_order(client)
    client.post("/orders/verify-payment", json=confirmation(order))

    response = client.post("/orders/verify-payment", json=confirmation(order))

    assert response.status_code == 200
    assert response.json()["order"]["status"] == "paid"

def test_confirmation_for_unknown_session(client, catalog):
    payload = confirmation({"razorpay_order_id": "order_unknown"})
    response = client.post("/orders/verify-payment", json=payload)
    assert response.status_code == 404

def test_confirmation_after_failure_is_rejected(client, catalog):
    order = place_order(client)
    client.patch(f"/orders/{order['order_id']}/status", json={"status": "failed"}, headers=STATIC_ADMIN)

    response = client.post("/orders/verify-payment", json=confirmation(order))

    assert response.status_code == 409
    assert stored(catalog, order["order_id"]).status == "failed"

def test_reconcile_is_idempotent(client, catalog):
    order = place_order(client)
    handler = PaymentConfirmationHandler(catalog)

    assert handler.reconcile(order["order_id"], "paid").status == "paid"
    assert handler.reconcile(order["order_id"], "paid").status == "paid"

def test_reconcile_rejects_unknown_outcome(client, catalog):
    order = place_order(client)
    with pytest.raises(ValidationError):
        PaymentConfirmationHandler(catalog).reconcile(order["order_id"], "refunded")

def test_checkout_webhook_payment_and_delivery(client, catalog, shiprocket):
    order = place_order(client)
    handler = PaymentConfirmationHandler(catalog, shipments=ShipmentCoordinator(catalog, shiprocket))

    paid = handler.apply_checkout_webhook(CheckoutWebhookEvent(order_id=order["order_id"], payment_status="PAID"))
    assert paid.status == "paid"

    # Delivery reported without a prior "shipped" callback
    delivered = handler.apply_checkout_webhook(CheckoutWebhookEvent(
        order_id=order["order_id"], shipment_status="delivered", awb_code="AWB9", tracking_url="https://t/AWB9",
    ))
    assert delivered.status == "delivered"
    assert delivered.awb_code == "AWB9"

    again = handler.apply_checkout_webhook(CheckoutWebhookEvent(order_id=order["order_id"], shipment_status="delivered"))
    assert again.status == "delivered"

def test_checkout_webhook_cancellation(client, catalog, shiprocket):
    order = place_order(client)
    handler = PaymentConfirmationHandler(catalog, shipments=ShipmentCoordinator(catalog, shiprocket))

    result = handler.apply_checkout_webhook(CheckoutWebhookEvent(order_id=order["order_id"], payment_status="failed"))
    assert result.status == "failed"

def test_checkout_webhook_ignores_pending_payment(client, catalog, shiprocket):
    order = place_order(client)
    handler = PaymentConfirmationHandler(catalog, shipments=ShipmentCoordinator(catalog, shiprocket))

    result = handler.apply_checkout_webhook(CheckoutWebhookEvent(order_id=order["order_id"], payment_status="pending"))
    assert result.status == "created"

def test_faster_checkout_verify_reconciles(client, catalog, shiprocket):
    created = client.post("/faster-checkout/create", json={
        "items": [{"product_id": "prod_grape", "quantity": 1}],
        "customer": CUSTOMER,
        "pickup_postcode": "110001",
    }).json()

    response = client.post("/faster-checkout/verify", json={"checkout_id": created["checkout_id"]})

    assert response.status_code == 200
    body = response.json()
    assert body["payment_status"] == "paid"
    assert body["order"]["status"] == "paid"
    assert body["order"]["shipment_id"] == "SH2001"
    assert body["order"]["shipping_order_id"] == "SR1001"

def test_faster_checkout_verify_pending(client, catalog, shiprocket):
    shiprocket.checkout_state = {"status": "pending", "payment_status": "pending"}
    created = client.post("/faster-checkout/create", json={
        "items": [{"product_id": "prod_grape", "quantity": 1}],
        "customer": CUSTOMER,
        "pickup_postcode": "110001",
    }).json()

    response = client.post("/faster-checkout/verify", json={"checkout_id": "chk_1", "order_id": created["order_id"]})
    assert response.json()["order"]["status"] == "created"

def test_faster_checkout_remote_status(client, catalog, shiprocket):
    response = client.get("/faster-checkout/status/BREWY_1")
    assert response.json()["payment_status"] == "paid"
    assert shiprocket.called("checkout_status") == [("checkout_status", "BREWY_1")]

def test_fetch_payment_and_refund(client, gateway):
    assert client.get("/payment/pay_1").json()["payment"]["status"] == "captured"

    assert client.post("/payment/refund", json={"payment_id": "pay_1"}, headers=STATIC_ADMIN).status_code == 403
    assert gateway.called("refund_payment") == []

def test_signature_cannot_pay_for_a_different_order(client, catalog):
    cheap = place_order(client)
    pricey = client.post("/orders/create", json={
        "items": [{"variant_id": "var_grape_pack", "quantity": 5}],
        "customer": CUSTOMER,
    }).json()
    payload = {**confirmation(cheap), "order_id": pricey["order_id"]}

    response = client.post("/orders/verify-payment", json=payload)

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid payment signature"
    record = stored(catalog, pricey["order_id"])
    assert record.status == "created"
    assert record.payment_id is None
    assert stored(catalog, cheap["order_id"]).status == "created"

def test_confirmation_with_matching_order_id(client, catalog):
    order = place_order(client)
    payload = {**confirmation(order), "order_id": order["order_id"]}

    response = client.post("/orders/verify-payment", json=payload)

    assert response.status_code == 200
    assert response.json()["order"]["status"] == "paid"

def shipped_checkout_order(client):
    created = client.post("/faster-checkout/create", json={
        "items": [{"product_id": "prod_grape", "quantity": 1}],
        "customer": CUSTOMER,
        "pickup_postcode": "110001",
    }).json()
    client.post("/faster-checkout/verify", json={"checkout_id": created["checkout_id"]})
    shipped = client.post("/shipment/create", json={"order_id": created["order_id"]}, headers=STATIC_ADMIN)
    assert shipped.json()["order"]["status"] == "shipped"
    return created

def test_paid_and_delivered_callback_on_shipped_order(client, catalog, shiprocket):
    created = shipped_checkout_order(client)
    handler = PaymentConfirmationHandler(catalog, shipments=ShipmentCoordinator(catalog, shiprocket))

    result = handler.apply_checkout_webhook(CheckoutWebhookEvent(
        order_id=created["order_id"], payment_status="paid", shipment_status="delivered",
    ))

    assert result.status == "delivered"

def test_paid_outcome_is_recorded_once_order_has_shipped(client, catalog):
    created = shipped_checkout_order(client)
    handler = PaymentConfirmationHandler(catalog)

    assert handler.reconcile(created["order_id"], "paid").status == "shipped"

def test_reverify_shipped_checkout(client, catalog, shiprocket):
    created = shipped_checkout_order(client)

    response = client.post("/faster-checkout/verify", json={"checkout_id": created["checkout_id"]})

    assert response.status_code == 200
    assert response.json()["order"]["status"] == "shipped"
