import re
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from flowershop.db.session import get_session
from flowershop.models import Order, OrderItem, Product
from flowershop.services.errors import (
    EmptyOrder,
    NotFound,
    PersistenceFailure,
    StockInsufficient,
    ValidationError,
)
from flowershop.services.order_service import OrderService

from helpers import force_status, stock_of


def place(components, seed, lines=None, **kwargs):
    params = {
        "user_id": seed["customer"],
        "lines": lines or [{"product_id": seed["rose"], "quantity": 1}, {"product_id": seed["tulip"], "quantity": 1}],
        "delivery_method": "delivery",
        "payment_method": "cash_on_delivery",
        "address_id": seed["home"],
    }
    params.update(kwargs)
    return components["order_service"].create_order(**params)


def counts():
    with get_session() as s:
        return s.query(Order).count(), s.query(OrderItem).count()


def test_create_order_scenario(components, seed):
    result = place(components, seed)
    assert result["total"] == 2600
    assert re.fullmatch(r"FS-\d{8}-\d{6}", result["order_number"])

    order = components["order_service"].get_order(result["id"], seed["customer"])
    assert order["subtotal"] == 2500
    assert order["delivery_fee"] == 100
    assert order["status"] == "pending"
    assert order["payment_status"] == "to_pay"
    assert order["address"]["city"] == "Quezon City"
    assert [(i["product_name"], i["quantity"], i["unit_price"]) for i in order["items"]] == [
        ("Red Rose Bouquet", 1, 1500),
        ("Tulip Bunch", 1, 1000),
    ]


def test_prepaid_orders_await_confirmation(components, seed):
    result = place(components, seed, payment_method="gcash", receipt_url="/uploads/r1.png")
    order = components["order_service"].get_order(result["id"], seed["customer"])
    assert order["payment_status"] == "awaiting_confirmation"
    assert order["receipt_url"] == "/uploads/r1.png"


def test_order_numbers_are_unique(components, seed):
    first = place(components, seed)
    second = place(components, seed)
    assert first["order_number"] != second["order_number"]
    assert second["id"] > first["id"]


def test_pickup_drops_address(components, seed):
    result = place(components, seed, delivery_method="pickup", address_id=seed["home"])
    order = components["order_service"].get_order(result["id"], seed["customer"])
    assert order["address_id"] is None
    assert order["delivery_fee"] == 0
    assert order["total"] == 2500


def test_delivery_requires_own_address(components, seed):
    with pytest.raises(ValidationError, match="address_id"):
        place(components, seed, address_id=None)
    with pytest.raises(ValidationError, match="address"):
        place(components, seed, address_id=seed["other_home"])
    assert counts() == (0, 0)


def test_empty_order_rejected(components, seed):
    with pytest.raises(EmptyOrder):
        components["order_service"].create_order(
            user_id=seed["customer"], lines=[], delivery_method="pickup", payment_method="cash_on_delivery"
        )


def test_payment_method_required(components, seed):
    with pytest.raises(ValidationError, match="payment_method"):
        place(components, seed, payment_method="  ")


def test_stock_is_decremented(components, seed):
    place(components, seed, lines=[{"product_id": seed["rose"], "quantity": 3}])
    assert stock_of(seed["rose"]) == 7


def test_oversell_aborts_whole_order(components, seed):
    with pytest.raises(StockInsufficient):
        place(
            components,
            seed,
            lines=[{"product_id": seed["rose"], "quantity": 2}, {"product_id": seed["orchid"], "quantity": 2}],
        )
    assert counts() == (0, 0)
    assert stock_of(seed["rose"]) == 10
    assert stock_of(seed["orchid"]) == 1


def test_duplicate_lines_cannot_exceed_stock_together(components, seed):
    with pytest.raises(StockInsufficient):
        place(
            components,
            seed,
            lines=[{"product_id": seed["orchid"], "quantity": 1}, {"product_id": seed["orchid"], "quantity": 1}],
        )
    assert stock_of(seed["orchid"]) == 1


def test_failure_on_later_item_leaves_nothing(components, seed, monkeypatch):
    calls = {"n": 0}
    original = OrderService._add_line_item

    def flaky(self, session, order, line):
        calls["n"] += 1
        if calls["n"] == 2:
            raise OperationalError("INSERT INTO order_item", {}, Exception("disk I/O error"))
        return original(self, session, order, line)

    monkeypatch.setattr(OrderService, "_add_line_item", flaky)
    with pytest.raises(PersistenceFailure) as exc:
        place(
            components,
            seed,
            lines=[
                {"product_id": seed["rose"], "quantity": 1},
                {"product_id": seed["tulip"], "quantity": 1},
                {"product_id": seed["ribbon"], "quantity": 1},
            ],
        )
    assert exc.value.message == "Server error"
    assert counts() == (0, 0)
    assert stock_of(seed["rose"]) == 10


def test_snapshot_survives_price_change(components, seed):
    result = place(components, seed)
    with get_session() as s:
        s.query(Product).filter(Product.id == seed["rose"]).update({Product.price: Decimal("9999.00"), Product.name: "Renamed"})
    order = components["order_service"].get_order(result["id"], seed["customer"])
    assert order["items"][0]["unit_price"] == 1500
    assert order["items"][0]["product_name"] == "Red Rose Bouquet"
    assert order["total"] == 2600


def test_get_order_is_owner_only(components, seed):
    result = place(components, seed)
    with pytest.raises(NotFound):
        components["order_service"].get_order(result["id"], seed["other"])


def test_list_orders_newest_first_and_filtered(components, seed):
    first = place(components, seed)
    second = place(components, seed, delivery_method="pickup")
    place(components, seed, user_id=seed["other"], address_id=seed["other_home"])
    force_status(first["id"], status="processing")

    service = components["order_service"]
    assert [o["id"] for o in service.list_orders(seed["customer"])] == [second["id"], first["id"]]
    assert [o["id"] for o in service.list_orders(seed["customer"], status="processing")] == [first["id"]]
    with pytest.raises(ValidationError):
        service.list_orders(seed["customer"], status="lost")


def test_list_all_orders_includes_customer(components, seed):
    place(components, seed)
    place(components, seed, user_id=seed["other"], address_id=seed["other_home"], payment_method="gcash")
    orders = components["order_service"].list_all_orders(payment_status="awaiting_confirmation")
    assert len(orders) == 1
    assert orders[0]["customer_name"] == "Ben Reyes"
    assert orders[0]["customer_email"] == "ben@example.com"


def test_sales_summary(components, seed):
    paid = place(components, seed)
    cancelled = place(components, seed)
    place(components, seed, delivery_method="pickup")
    force_status(paid["id"], status="completed", payment_status="paid")
    force_status(cancelled["id"], status="cancelled", payment_status="paid")

    summary = components["order_service"].sales_summary()
    assert summary["total_orders"] == 3
    assert summary["pending_orders"] == 1
    assert summary["completed_orders"] == 1
    assert summary["cancelled_orders"] == 1
    assert summary["total_revenue"] == 2600


def test_order_number_uses_creation_date(components, seed):
    result = place(components, seed)
    with get_session() as s:
        created_at = s.query(Order.created_at).filter(Order.id == result["id"]).scalar()
    assert result["order_number"] == f"FS-{created_at:%Y%m%d}-{result['id']:06d}"
