from decimal import Decimal

import pytest

from storefront.application.ledger import OrderLedger, OrderLine
from storefront.application.schemas import CustomerIn
from storefront.domain.errors import InvalidTransitionError, NotFoundError, PreconditionFailedError
from storefront.domain.order_state import OrderStatus, can_transition
from storefront.infrastructure.db import SessionLocal
from tests.conftest import CUSTOMER

LINES = [
    OrderLine(product_id="prod_grape", name="Grape Brewy", quantity=2, unit_price=Decimal("49")),
    OrderLine(product_id="prod_watermelon", name="Watermelon Brewy", quantity=1, unit_price=Decimal("279"),
              variant_id="var_watermelon_pack"),
]

@pytest.fixture
def ledger(db):
    return OrderLedger(db)

@pytest.fixture
def order(ledger):
    return ledger.create_order(CustomerIn.model_validate(CUSTOMER), LINES)

@pytest.mark.parametrize("current,target,allowed", [
    ("created", "paid", True),
    ("created", "failed", True),
    ("created", "shipped", False),
    ("paid", "shipped", True),
    ("paid", "failed", True),
    ("paid", "created", False),
    ("shipped", "delivered", True),
    ("shipped", "failed", False),
    ("delivered", "failed", False),
    ("failed", "paid", False),
])
def test_transition_table(current, target, allowed):
    assert can_transition(current, target) is allowed

def test_create_order_sums_lines(order):
    assert order.status == OrderStatus.CREATED.value
    assert order.amount == Decimal("377")
    assert order.currency == "INR"
    assert order.order_id.startswith("BREWY_")
    assert order.customer_email == "asha@example.com"
    assert order.shipping_address["city"] == "Bengaluru"
    assert [(i.product_id, i.quantity) for i in order.items] == [("prod_grape", 2), ("prod_watermelon", 1)]

def test_order_ids_are_unique(ledger):
    customer = CustomerIn.model_validate(CUSTOMER)
    first = ledger.create_order(customer, LINES)
    second = ledger.create_order(customer, LINES)
    assert first.order_id != second.order_id

def test_happy_path(ledger, order):
    ledger.mark_paid(order.order_id, payment_id="pay_1", signature="sig")
    ledger.mark_shipped(order.order_id, shipping_order_id="SR1", shipment_id="SH1")
    delivered = ledger.mark_delivered(order.order_id)

    assert delivered.status == "delivered"
    assert delivered.payment_id == "pay_1"
    assert delivered.shipment_id == "SH1"

def test_illegal_transition_leaves_order_unchanged(ledger, order):
    with pytest.raises(PreconditionFailedError) as exc:
        ledger.mark_shipped(order.order_id, shipment_id="SH1")

    assert isinstance(exc.value, InvalidTransitionError)
    assert exc.value.current == "created"
    assert exc.value.target == "shipped"
    reloaded = ledger.find_by_order_id(order.order_id)
    assert reloaded.status == "created"
    assert reloaded.shipment_id is None

def test_terminal_states_reject_everything(ledger, order):
    ledger.mark_failed(order.order_id)
    for target in (OrderStatus.PAID, OrderStatus.SHIPPED, OrderStatus.DELIVERED, OrderStatus.FAILED):
        with pytest.raises(InvalidTransitionError):
            ledger.transition_to(order.order_id, target)

def test_unknown_order(ledger):
    with pytest.raises(NotFoundError) as exc:
        ledger.mark_paid("BREWY_missing")
    assert exc.value.message == "Order BREWY_missing not found"

def test_attach_does_not_change_status(ledger, order):
    updated = ledger.attach_tracking(order.order_id, awb_code="AWB1", tracking_url="https://t/AWB1")
    assert updated.status == "created"
    assert updated.awb_code == "AWB1"
    assert ledger.attach_session(order.order_id, "order_rzp_1").session_ref == "order_rzp_1"
    assert ledger.find_by_session_ref("order_rzp_1").order_id == order.order_id

def test_concurrent_update_is_rejected(ledger, order):
    other = SessionLocal()
    try:
        # Both sessions have read the order at the same version
        stale = OrderLedger(other).find_by_order_id(order.order_id)
        ledger.mark_paid(order.order_id, payment_id="pay_1")

        stale.status = OrderStatus.FAILED.value
        with pytest.raises(PreconditionFailedError):
            OrderLedger(other)._commit(stale)
    finally:
        other.close()

    assert ledger.find_by_order_id(order.order_id).status == "paid"
