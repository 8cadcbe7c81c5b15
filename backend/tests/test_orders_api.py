# Overview: Pytest coverage for the back-office order API.

from orderdesk.extensions import db
from orderdesk.models import AdminOrder, Order, OrderSyncEvent
from orderdesk.services.order_repository import OrderRepository


def _create(client, headers, payload):
    response = client.post("/api/orders", json=payload, headers=headers)
    assert response.status_code == 201
    return response.get_json()["order"]


class TestCreateOrder:

    def test_create(self, client, headers_a, payload):
        order = _create(client, headers_a, payload)

        assert order["serial"].endswith("-0001")
        assert order["source"] == "ui"
        assert order["status"] == "pending"
        assert order["total"] == "190.00"
        assert order["profit"] == "50.00"
        assert order["items"][0]["line_total"] == "180.00"

    def test_requires_auth(self, client, tenant_a, payload):
        response = client.post("/api/orders", json=payload)
        assert response.status_code == 401
        assert db.session.query(Order).count() == 0

    def test_invalid_token(self, client, tenant_a, payload):
        response = client.post("/api/orders", json=payload, headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    def test_validation_error(self, client, headers_a, payload):
        payload["items"][0]["itemDiscount"] = 101
        response = client.post("/api/orders", json=payload, headers=headers_a)

        assert response.status_code == 400
        assert response.get_json()["error"] == "items[0].itemDiscount must not exceed price"

    def test_malformed_body(self, client, headers_a):
        response = client.post("/api/orders", data="nope", content_type="application/json", headers=headers_a)
        assert response.status_code == 400
        assert response.get_json()["error"] == "Invalid JSON format"


class TestReadOrders:

    def test_get_by_serial(self, client, headers_a, payload):
        created = _create(client, headers_a, payload)

        response = client.get(f"/api/orders/{created['serial']}", headers=headers_a)
        assert response.status_code == 200
        assert response.get_json()["order"]["client_name"] == "Mona Adel"

    def test_unknown_serial(self, client, headers_a):
        response = client.get("/api/orders/INV-0000-0001", headers=headers_a)
        assert response.status_code == 404
        assert response.get_json()["error"] == "Order INV-0000-0001 not found"

    def test_list_newest_first(self, client, headers_a, payload):
        first = _create(client, headers_a, payload)
        second = _create(client, headers_a, payload)

        response = client.get("/api/orders", headers=headers_a)
        data = response.get_json()
        assert data["count"] == 2
        assert [o["serial"] for o in data["orders"]] == [second["serial"], first["serial"]]
        assert "items" not in data["orders"][0]

    def test_list_filters_by_status(self, client, headers_a, payload):
        first = _create(client, headers_a, payload)
        _create(client, headers_a, payload)
        client.patch(f"/api/orders/{first['serial']}/status", json={"status": "shipped"}, headers=headers_a)

        response = client.get("/api/orders?status=shipped", headers=headers_a)
        assert [o["serial"] for o in response.get_json()["orders"]] == [first["serial"]]

    def test_list_date_window(self, client, headers_a, payload):
        _create(client, headers_a, payload)

        response = client.get("/api/orders?start=2000-01-01&end=2000-12-31", headers=headers_a)
        assert response.status_code == 200
        assert response.get_json()["count"] == 0

    def test_list_bad_window(self, client, headers_a):
        response = client.get("/api/orders?start=2026-10-10&end=2026-10-01", headers=headers_a)
        assert response.status_code == 400


class TestModifyOrders:

    def test_edit(self, client, headers_a, payload):
        created = _create(client, headers_a, payload)
        payload["items"][0]["quantity"] = 3
        payload["notes"] = "Gift wrap"

        response = client.put(f"/api/orders/{created['serial']}", json=payload, headers=headers_a)

        assert response.status_code == 200
        order = response.get_json()["order"]
        assert order["serial"] == created["serial"]
        assert order["notes"] == "Gift wrap"
        # 270 subtotal + 30 shipping - 20 deposit
        assert order["total"] == "280.00"
        assert order["version_id"] > created["version_id"]

    def test_edit_validation_error(self, client, headers_a, payload):
        created = _create(client, headers_a, payload)
        payload["phone"] = ""
        response = client.put(f"/api/orders/{created['serial']}", json=payload, headers=headers_a)
        assert response.status_code == 400

    def test_status_change(self, client, headers_a, payload):
        created = _create(client, headers_a, payload)

        response = client.patch(
            f"/api/orders/{created['serial']}/status", json={"status": "sentToPrinter"}, headers=headers_a,
        )
        assert response.status_code == 200
        assert response.get_json()["order"]["status"] == "sentToPrinter"
        assert db.session.query(AdminOrder).one().status == "sentToPrinter"

    def test_invalid_status(self, client, headers_a, payload):
        created = _create(client, headers_a, payload)
        response = client.patch(
            f"/api/orders/{created['serial']}/status", json={"status": "lost"}, headers=headers_a,
        )
        assert response.status_code == 400

    def test_delete(self, client, headers_a, payload):
        created = _create(client, headers_a, payload)

        response = client.delete(f"/api/orders/{created['serial']}", headers=headers_a)

        assert response.status_code == 200
        assert response.get_json()["deleted"]["items"] == 1
        assert db.session.query(Order).count() == 0
        assert client.get(f"/api/orders/{created['serial']}", headers=headers_a).status_code == 404


class TestSyncEvents:

    def test_sync_events_route(self, client, headers_a, payload, monkeypatch, store_error):
        def failing(*args, **kwargs):
            raise store_error
        monkeypatch.setattr(OrderRepository, "_write_mirror_header", failing)

        created = _create(client, headers_a, payload)

        response = client.get("/api/orders/sync-events", headers=headers_a)
        data = response.get_json()
        assert data["count"] == 1
        assert data["events"][0]["serial"] == created["serial"]
        assert data["events"][0]["resolved"] is False
        assert db.session.query(OrderSyncEvent).count() == 1
