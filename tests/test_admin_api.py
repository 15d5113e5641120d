import pytest


@pytest.fixture
def order_id(client, seed, headers):
    body = {
        "items": [{"product_id": seed["rose"], "quantity": 1}],
        "delivery_method": "delivery",
        "address_id": seed["home"],
        "payment_method": "gcash",
    }
    return client.post("/api/orders", json=body, headers=headers()).get_json()["order"]["id"]


@pytest.mark.parametrize(
    "method,path",
    [
        ("get", "/api/admin/orders"),
        ("put", "/api/admin/orders/1/status"),
        ("put", "/api/admin/orders/1/payment-status"),
        ("put", "/api/admin/orders/1/confirm-payment"),
        ("get", "/api/admin/sales/summary"),
    ],
)
def test_customers_are_forbidden(client, headers, method, path):
    resp = getattr(client, method)(path, json={}, headers=headers("customer"))
    assert resp.status_code == 403
    assert resp.get_json()["success"] is False


def test_sales_summary_is_admin_only(client, headers, order_id):
    assert client.get("/api/admin/sales/summary", headers=headers("employee")).status_code == 403
    resp = client.get("/api/admin/sales/summary", headers=headers("admin"))
    assert resp.status_code == 200
    summary = resp.get_json()["summary"]
    assert summary["total_orders"] == 1
    assert summary["pending_orders"] == 1
    assert summary["total_revenue"] == 0


def test_admin_lists_orders_with_filters(client, headers, order_id):
    resp = client.get("/api/admin/orders?payment_status=awaiting_confirmation", headers=headers("employee"))
    orders = resp.get_json()["orders"]
    assert [o["id"] for o in orders] == [order_id]
    assert orders[0]["customer_email"] == "ana@example.com"

    resp = client.get("/api/admin/orders?status=completed", headers=headers("admin"))
    assert resp.get_json()["orders"] == []

    resp = client.get("/api/admin/orders?status=bogus", headers=headers("admin"))
    assert resp.status_code == 400


def test_status_walkthrough(client, headers, order_id):
    url = f"/api/admin/orders/{order_id}/status"
    for status in ("processing", "out_for_delivery", "completed"):
        resp = client.put(url, json={"status": status}, headers=headers("employee"))
        assert resp.status_code == 200
        assert resp.get_json() == {"success": True, "message": "Status updated", "status": status}

    resp = client.put(url, json={"status": "pending"}, headers=headers("admin"))
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Cannot change status from completed to pending"


def test_status_errors(client, headers, order_id):
    resp = client.put(f"/api/admin/orders/{order_id}/status", json={"status": "lost"}, headers=headers("admin"))
    assert resp.status_code == 400
    resp = client.put("/api/admin/orders/9999/status", json={"status": "processing"}, headers=headers("admin"))
    assert resp.status_code == 404


def test_payment_status_is_monotonic(client, headers, order_id):
    url = f"/api/admin/orders/{order_id}/payment-status"
    resp = client.put(url, json={"payment_status": "paid"}, headers=headers("employee"))
    assert resp.status_code == 200
    resp = client.put(url, json={"payment_status": "to_pay"}, headers=headers("admin"))
    assert resp.status_code == 400
    assert resp.get_json()["success"] is False


def test_confirm_payment(client, headers, order_id):
    url = f"/api/admin/orders/{order_id}/confirm-payment"
    resp = client.put(url, json={"payment_type": "gcash"}, headers=headers("employee"))
    assert resp.status_code == 400
    assert "receipt" in resp.get_json()["message"]

    resp = client.put(url, json={"payment_type": "gcash", "receipt_url": "/r.png"}, headers=headers("employee"))
    assert resp.status_code == 200
    assert resp.get_json()["message"] == "Payment confirmed"

    orders = client.get("/api/admin/orders?payment_status=paid", headers=headers("admin")).get_json()["orders"]
    assert [o["id"] for o in orders] == [order_id]
    assert orders[0]["receipt_url"] == "/r.png"
