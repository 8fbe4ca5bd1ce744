"""
Sales tests.

Verifies:
- A sale stores its lines and takes quantities off stock
- Amounts arrive in Taka and are stored in poisha
- Insufficient stock rejects the whole sale and changes nothing
- Deleting a sale restores stock and removes its lines
- A sale with a due cannot be deleted
"""

from datetime import timedelta

import pytest
from sqlalchemy import event

from conftest import stock_of
from shoppos.extensions import db
from shoppos.models import Sale, SaleItem, Customer, Due, Product
from shoppos.services import sales_service
from shoppos.time_utils import utcnow


@pytest.fixture
def shelf(make_product):
    widget = make_product("Widget", 1000, 10, purchase_price_cents=600)
    gadget = make_product("Gadget", 5000, 2, purchase_price_cents=3000)
    return widget, gadget


def _sale_payload(widget, gadget, **extra):
    payload = {
        "items": [
            {"productId": widget.id, "quantity": 3, "price": 10},
            {"productId": gadget.id, "quantity": 1, "price": 50},
        ],
        "total": 80,
    }
    payload.update(extra)
    return payload


class TestCreateSale:

    def test_sale_decrements_stock(self, client, user_headers, shelf):
        widget, gadget = shelf
        resp = client.post("/api/sales", json=_sale_payload(widget, gadget), headers=user_headers)

        assert resp.status_code == 201
        body = resp.json
        assert body["success"] is True
        assert body["sale"]["total_cents"] == 8000
        assert body["sale"]["subtotal_cents"] == 8000
        assert len(body["sale"]["items"]) == 2

        assert stock_of(widget.id) == 7
        assert stock_of(gadget.id) == 1

    def test_fractional_amounts_stored_exactly(self, client, user_headers, make_product):
        candy = make_product("Candy", 1010, 10)
        payload = {
            "items": [{"productId": candy.id, "quantity": 3, "price": "10.10"}],
            "total": 30.3,
            "discount": 0.1,
        }
        resp = client.post("/api/sales", json=payload, headers=user_headers)

        assert resp.status_code == 201
        sale = resp.json["sale"]
        assert sale["total_cents"] == 3030
        assert sale["discount_cents"] == 10
        assert sale["items"][0]["price_cents"] == 1010

    def test_sale_with_customer_creates_customer(self, client, user_headers, shelf):
        widget, gadget = shelf
        payload = _sale_payload(
            widget, gadget,
            discount=5,
            total=75,
            customer={"phone": "01700000000", "name": "Rahim"},
        )
        resp = client.post("/api/sales", json=payload, headers=user_headers)

        assert resp.status_code == 201
        sale = resp.json["sale"]
        assert sale["discount_cents"] == 500
        assert sale["customer"]["phone"] == "01700000000"

        customer = db.session.query(Customer).one()
        assert customer.created_at is not None
        assert abs(customer.created_at - utcnow()) < timedelta(minutes=1)

    def test_customer_without_phone_rejected(self, client, user_headers, shelf):
        widget, gadget = shelf
        payload = _sale_payload(widget, gadget, customer={"name": "No Phone"})
        resp = client.post("/api/sales", json=payload, headers=user_headers)

        assert resp.status_code == 400
        assert resp.json["error"] == "Customer phone is required"
        assert db.session.query(Sale).count() == 0

    def test_insufficient_stock_changes_nothing(self, client, user_headers, shelf):
        widget, gadget = shelf
        payload = {
            "items": [
                {"productId": widget.id, "quantity": 2, "price": 10},
                {"productId": gadget.id, "quantity": 3, "price": 50},
            ],
            "total": 170,
        }
        resp = client.post("/api/sales", json=payload, headers=user_headers)

        assert resp.status_code == 400
        assert resp.json["error"] == "Insufficient stock for Gadget"
        assert resp.json["details"]["on_hand"] == 2
        assert stock_of(widget.id) == 10
        assert stock_of(gadget.id) == 2
        assert db.session.query(Sale).count() == 0
        assert db.session.query(SaleItem).count() == 0

    def test_repeated_product_lines_checked_together(self, client, user_headers, shelf):
        _, gadget = shelf
        payload = {
            "items": [
                {"productId": gadget.id, "quantity": 2, "price": 50},
                {"productId": gadget.id, "quantity": 1, "price": 50},
            ],
            "total": 150,
        }
        resp = client.post("/api/sales", json=payload, headers=user_headers)

        assert resp.status_code == 400
        assert stock_of(gadget.id) == 2

    def test_stock_gone_after_check_rolls_back(self, client, user_headers, make_product, monkeypatch):
        """The conditional decrement still refuses a sale the pre-check let through."""
        widget = make_product("Widget", 1000, 1)

        def stale_check(items):
            return {item["product_id"]: db.session.get(Product, item["product_id"]) for item in items}

        monkeypatch.setattr(sales_service, "_check_stock", stale_check)

        payload = {
            "items": [{"productId": widget.id, "quantity": 5, "price": 10}],
            "total": 50,
            "customer": {"phone": "01800000000", "name": "Karim"},
        }
        resp = client.post("/api/sales", json=payload, headers=user_headers)

        assert resp.status_code == 400
        assert resp.json["error"] == "Insufficient stock for Widget"
        assert stock_of(widget.id) == 1
        assert db.session.query(Sale).count() == 0
        assert db.session.query(SaleItem).count() == 0
        assert db.session.query(Customer).count() == 0

    def test_sale_takes_write_lock_first(self, client, user_headers, shelf):
        widget, gadget = shelf
        statements = []

        def capture(conn, cursor, statement, parameters, context, executemany):
            statements.append(statement.strip().upper())

        event.listen(db.engine, "before_cursor_execute", capture)
        try:
            resp = client.post("/api/sales", json=_sale_payload(widget, gadget), headers=user_headers)
        finally:
            event.remove(db.engine, "before_cursor_execute", capture)

        assert resp.status_code == 201
        assert "BEGIN IMMEDIATE" in statements
        begin = statements.index("BEGIN IMMEDIATE")
        assert any(s.startswith("UPDATE PRODUCTS") for s in statements[begin:])

    @pytest.mark.parametrize(
        "payload,error",
        [
            ({"items": [], "total": 1}, "No items in sale"),
            ({"total": 1}, "No items in sale"),
            ({"items": [{"productId": 1, "quantity": 1, "price": 1}], "total": 0}, "Invalid total amount"),
            ({"items": [{"productId": 1, "quantity": 1, "price": 1}], "total": "abc"}, "Invalid total amount"),
            ({"items": [{"productId": 1, "quantity": 1, "price": 1}], "total": 1, "discount": -5}, "Invalid discount amount"),
            ({"items": [{"productId": 1, "quantity": 1, "price": 1.005}], "total": 1}, "Invalid item price"),
            ({"items": [{"productId": 1, "quantity": 1}], "total": 1}, "Invalid item price"),
        ],
    )
    def test_invalid_input(self, client, user_headers, payload, error):
        resp = client.post("/api/sales", json=payload, headers=user_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == error

    def test_unknown_product(self, client, user_headers):
        payload = {"items": [{"productId": 999, "quantity": 1, "price": 1}], "total": 1}
        resp = client.post("/api/sales", json=payload, headers=user_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == "Product not found: 999"


class TestDeleteSale:

    def _ring_up(self, client, headers, widget, gadget):
        resp = client.post("/api/sales", json=_sale_payload(widget, gadget), headers=headers)
        assert resp.status_code == 201
        return resp.json["sale"]["id"]

    def test_delete_restores_stock(self, client, admin_headers, shelf):
        widget, gadget = shelf
        sale_id = self._ring_up(client, admin_headers, widget, gadget)

        resp = client.delete(f"/api/sales/{sale_id}", headers=admin_headers)

        assert resp.status_code == 200
        assert resp.json["success"] is True
        assert stock_of(widget.id) == 10
        assert stock_of(gadget.id) == 2
        assert db.session.query(SaleItem).count() == 0
        assert client.get(f"/api/sales/{sale_id}", headers=admin_headers).status_code == 404

    def test_delete_unknown_sale(self, client, admin_headers):
        resp = client.delete("/api/sales/424242", headers=admin_headers)
        assert resp.status_code == 404

    def test_regular_user_cannot_delete(self, client, admin_headers, user_headers, shelf):
        widget, gadget = shelf
        sale_id = self._ring_up(client, admin_headers, widget, gadget)

        resp = client.delete(f"/api/sales/{sale_id}", headers=user_headers)

        assert resp.status_code == 403
        assert resp.json["message"] == "Only admins can delete sales"
        assert stock_of(widget.id) == 7

    def test_due_blocks_delete(self, client, admin_headers, shelf):
        widget, gadget = shelf
        sale_id = self._ring_up(client, admin_headers, widget, gadget)
        resp = client.post("/api/dues", json={"sale_id": sale_id, "total_amount_cents": 8000}, headers=admin_headers)
        assert resp.status_code == 201

        resp = client.delete(f"/api/sales/{sale_id}", headers=admin_headers)

        assert resp.status_code == 400
        assert "due" in resp.json["error"]
        assert db.session.query(Due).count() == 1
        assert stock_of(widget.id) == 7


class TestReadSales:

    def test_list_and_receipt(self, client, user_headers, shelf):
        widget, gadget = shelf
        client.post("/api/sales", json=_sale_payload(widget, gadget), headers=user_headers)

        listed = client.get("/api/sales", headers=user_headers)
        assert listed.status_code == 200
        assert len(listed.json) == 1

        sale_id = listed.json[0]["id"]
        receipt = client.get(f"/api/sales/{sale_id}/receipt", headers=user_headers)
        assert receipt.status_code == 200
        assert receipt.mimetype == "text/html"
        html = receipt.get_data(as_text=True)
        assert "TEST SHOP" in html
        assert "$80.00" in html

    def test_export_is_admin_only(self, client, user_headers, admin_headers, shelf):
        widget, gadget = shelf
        client.post("/api/sales", json=_sale_payload(widget, gadget), headers=user_headers)

        assert client.get("/api/sales/export", headers=user_headers).status_code == 403

        resp = client.get("/api/sales/export", headers=admin_headers)
        assert resp.status_code == 200
        assert "sales_export_" in resp.headers["Content-Disposition"]
        assert resp.data[:2] == b"PK"
