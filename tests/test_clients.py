import base64
import hashlib
import hmac
import json
from decimal import Decimal

import httpx
import pytest

from storefront.application.signature import canonical_body
from storefront.domain.errors import CollaboratorError
from storefront.infrastructure.checkout_client import ShiprocketCheckoutClient
from storefront.infrastructure.razorpay_client import RazorpayClient, to_minor_units
from storefront.infrastructure.shiprocket_client import ShiprocketClient

@pytest.mark.parametrize("amount,paise", [
    (Decimal("49"), 4900),
    (Decimal("279.99"), 27999),
    (Decimal("0.005"), 1),
])
def test_minor_units(amount, paise):
    assert to_minor_units(amount) == paise

# Razorpay

def test_razorpay_create_order_sends_paise_with_basic_auth():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["auth"] = request.headers["authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "order_ABC", "amount": 9800})

    client = RazorpayClient("key", "secret", base_url="https://rzp.test/v1", transport=httpx.MockTransport(handler))
    result = client.create_order(Decimal("98"), "INR", "BREWY_1", {"order_id": "BREWY_1"})

    assert result.success
    assert result.data["id"] == "order_ABC"
    assert seen["path"] == "/v1/orders"
    assert seen["auth"] == "Basic " + base64.b64encode(b"key:secret").decode()
    assert seen["body"] == {"amount": 9800, "currency": "INR", "receipt": "BREWY_1", "notes": {"order_id": "BREWY_1"}}

def test_razorpay_error_message_is_passed_through():
    def handler(request):
        return httpx.Response(400, json={"error": {"code": "BAD_REQUEST_ERROR", "description": "Authentication failed"}})

    client = RazorpayClient("key", "secret", transport=httpx.MockTransport(handler))
    result = client.fetch_payment("pay_1")

    assert not result.success
    assert result.error == "Authentication failed"
    with pytest.raises(CollaboratorError) as exc:
        result.unwrap()
    assert exc.value.message == "Authentication failed"

def test_razorpay_without_credentials_makes_no_call():
    def handler(request):
        raise AssertionError("no request expected")

    result = RazorpayClient("", "", transport=httpx.MockTransport(handler)).refund_payment("pay_1")
    assert result.error == "Payment gateway credentials not configured"

def test_razorpay_partial_refund():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "rfnd_1"})

    client = RazorpayClient("key", "secret", base_url="https://rzp.test/v1", transport=httpx.MockTransport(handler))
    assert client.refund_payment("pay_1", Decimal("10.50")).data == {"id": "rfnd_1"}
    assert seen == {"path": "/v1/payments/pay_1/refund", "body": {"amount": 1050}}

# Shiprocket

class ShiprocketStub:
    def __init__(self):
        self.logins = 0
        self.reject_next = False
        self.requests = []

    def __call__(self, request):
        if request.url.path == "/auth/login":
            self.logins += 1
            return httpx.Response(200, json={"token": f"bearer-{self.logins}"})
        self.requests.append(request)
        if self.reject_next:
            self.reject_next = False
            return httpx.Response(401, json={"message": "Token has expired"})
        if request.url.path == "/orders/create/adhoc":
            return httpx.Response(200, json={"order_id": 1001, "shipment_id": 2001, "awb_code": ""})
        if request.url.path == "/courier/assign/awb":
            return httpx.Response(200, json={"awb_assign_status": 1, "response": {"data": {"awb_code": "AWB9"}}})
        if request.url.path == "/courier/serviceability":
            return httpx.Response(200, json={"data": {"available_courier_companies": [{"id": 1}], "estimated_delivery_days": "4"}})
        return httpx.Response(404, json={"message": "Not found"})

@pytest.fixture
def stub():
    return ShiprocketStub()

@pytest.fixture
def shiprocket_client(stub):
    return ShiprocketClient("https://sr.test", "ops@example.com", "pw", transport=httpx.MockTransport(stub))

def test_shiprocket_logs_in_once(shiprocket_client, stub):
    created = shiprocket_client.create_order({"order_id": "BREWY_1"})
    awb = shiprocket_client.assign_awb("2001", courier_id=10)

    assert created.data["order_id"] == "1001"
    assert created.data["shipment_id"] == "2001"
    assert created.data["awb_code"] is None
    assert awb.data["awb_code"] == "AWB9"
    assert stub.logins == 1
    assert all(r.headers["authorization"] == "Bearer bearer-1" for r in stub.requests)
    assert json.loads(stub.requests[1].content) == {"shipment_id": 2001, "courier_id": 10}

def test_shiprocket_401_invalidates_token(shiprocket_client, stub):
    shiprocket_client.create_order({})
    stub.reject_next = True

    rejected = shiprocket_client.create_order({})
    assert rejected.error == "Token has expired"

    shiprocket_client.create_order({})
    assert stub.logins == 2
    assert stub.requests[-1].headers["authorization"] == "Bearer bearer-2"

def test_shiprocket_serviceability_params(shiprocket_client, stub):
    result = shiprocket_client.serviceability("110001", "560001", 1.2, cod=True)

    assert result.data["couriers"] == [{"id": 1}]
    assert result.data["estimated_delivery_days"] == "4"
    params = stub.requests[0].url.params
    assert params["pickup_postcode"] == "110001"
    assert params["cod"] == "1"

def test_shiprocket_error_passthrough(shiprocket_client):
    assert shiprocket_client.track("999").error == "Not found"

def test_shiprocket_missing_credentials():
    client = ShiprocketClient("https://sr.test", "", "", transport=httpx.MockTransport(lambda r: httpx.Response(200)))
    assert client.create_order({}).error == "Shiprocket API credentials not configured"

# Hosted checkout tokens

def test_checkout_token_request_is_signed():
    seen = {}

    def handler(request):
        seen["body"] = request.content
        seen["headers"] = request.headers
        return httpx.Response(200, json={"result": {"token": "tok_abc"}})

    client = ShiprocketCheckoutClient("api-key", "api-secret", base_url="https://co.test", transport=httpx.MockTransport(handler))
    result = client.generate_access_token({"items": [{"variant_id": "v1", "quantity": 1}]}, "https://shop/x", timestamp="2024-01-01T00:00:00+00:00")

    assert result.data["token"] == "tok_abc"
    assert seen["body"] == canonical_body(json.loads(seen["body"]))
    digest = hmac.new(b"api-secret", seen["body"], hashlib.sha256).digest()
    assert seen["headers"]["x-api-hmac-sha256"] == base64.b64encode(digest).decode()
    assert seen["headers"]["x-api-key"] == "api-key"
    assert json.loads(seen["body"])["timestamp"] == "2024-01-01T00:00:00+00:00"

def test_checkout_token_missing_from_response():
    client = ShiprocketCheckoutClient(
        "api-key", "api-secret", transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"result": {}}))
    )
    assert client.generate_access_token({"items": []}, "https://shop/x").error == "Token not found in response"
