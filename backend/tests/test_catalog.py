"""
Catalog tests: categories and products.

Verifies:
- names (and barcodes) are unique
- a category with products cannot be deleted
- a product that was sold cannot be deleted
- search matches name or barcode
"""

import pytest

from shoppos.models import Sale, SaleItem


class TestCategories:

    def test_create_and_list_with_counts(self, client, admin_headers, user_headers, make_product):
        resp = client.post("/api/categories", json={"name": "  Drinks  "}, headers=admin_headers)
        assert resp.status_code == 201
        assert resp.json["name"] == "Drinks"

        listed = client.get("/api/categories", headers=user_headers)
        assert listed.status_code == 200
        assert listed.json[0]["product_count"] == 0

    def test_duplicate_name_rejected(self, client, admin_headers, category):
        resp = client.post("/api/categories", json={"name": category.name}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == "Category with this name already exists"

    def test_missing_name_rejected(self, client, admin_headers):
        resp = client.post("/api/categories", json={"description": "x"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_delete_blocked_by_products(self, client, admin_headers, category, make_product):
        make_product("Crisps", 150, 10, category=category)
        make_product("Bar", 100, 10, category=category)

        resp = client.delete(f"/api/categories/{category.id}", headers=admin_headers)

        assert resp.status_code == 400
        assert resp.json["error"].startswith("This category has 2 product(s).")

    def test_delete_empty_category(self, client, admin_headers, category):
        resp = client.delete(f"/api/categories/{category.id}", headers=admin_headers)
        assert resp.status_code == 200
        assert client.get(f"/api/categories/{category.id}", headers=admin_headers).status_code == 404


class TestProducts:

    def test_create_product(self, client, admin_headers, category):
        resp = client.post(
            "/api/inventory",
            json={
                "name": "Lemonade",
                "selling_price_cents": 250,
                "purchase_price_cents": 120,
                "initial_stock": 24,
                "category_id": category.id,
                "barcode": "4000000000001",
            },
            headers=admin_headers,
        )

        assert resp.status_code == 201
        product = resp.json
        assert product["stock"] == 24
        assert product["initial_stock"] == 24
        assert product["category"]["name"] == "Snacks"

    @pytest.mark.parametrize(
        "payload",
        [
            {"selling_price_cents": 100, "initial_stock": 1},
            {"name": "Neg", "selling_price_cents": -1, "initial_stock": 1},
            {"name": "Neg", "selling_price_cents": 100, "initial_stock": -3},
            {"name": "Float", "selling_price_cents": 1.5, "initial_stock": 1},
        ],
    )
    def test_invalid_product_rejected(self, client, admin_headers, payload):
        resp = client.post("/api/inventory", json=payload, headers=admin_headers)
        assert resp.status_code == 400

    def test_duplicate_name(self, client, admin_headers, make_product):
        make_product("Lemonade", 250, 5)
        resp = client.post(
            "/api/inventory",
            json={"name": "Lemonade", "selling_price_cents": 250, "initial_stock": 1},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json["error"] == "Duplicate product"

    def test_duplicate_barcode(self, client, admin_headers, make_product):
        make_product("Lemonade", 250, 5, barcode="111")
        resp = client.post(
            "/api/inventory",
            json={"name": "Cola", "selling_price_cents": 250, "initial_stock": 1, "barcode": "111"},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json["error"] == "Duplicate barcode"

    def test_regular_user_cannot_create(self, client, user_headers):
        resp = client.post(
            "/api/inventory",
            json={"name": "Cola", "selling_price_cents": 250, "initial_stock": 1},
            headers=user_headers,
        )
        assert resp.status_code == 403

    def test_update_product(self, client, admin_headers, make_product):
        product = make_product("Cola", 250, 5)
        resp = client.put(f"/api/inventory/{product.id}", json={"selling_price_cents": 300}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["selling_price_cents"] == 300
        assert resp.json["name"] == "Cola"

    def test_search_by_name_or_barcode(self, client, user_headers, make_product):
        make_product("Cola", 250, 5, barcode="555")
        make_product("Water", 100, 5, barcode="777")

        by_name = client.get("/api/inventory?search=col", headers=user_headers).json
        by_barcode = client.get("/api/inventory?search=777", headers=user_headers).json

        assert [p["name"] for p in by_name] == ["Cola"]
        assert [p["name"] for p in by_barcode] == ["Water"]

    def test_sold_product_cannot_be_deleted(self, client, admin_headers, admin_user, db_session, make_product):
        product = make_product("Cola", 250, 5)
        sale = Sale(user_id=admin_user.id, total_cents=250)
        db_session.add(sale)
        db_session.flush()
        db_session.add(SaleItem(sale_id=sale.id, product_id=product.id, quantity=1, price_cents=250))
        db_session.commit()

        resp = client.delete(f"/api/inventory/{product.id}", headers=admin_headers)

        assert resp.status_code == 400
        assert resp.json["error"] == "Cannot delete product"

    def test_delete_unsold_product(self, client, admin_headers, make_product):
        product = make_product("Cola", 250, 5)
        assert client.delete(f"/api/inventory/{product.id}", headers=admin_headers).status_code == 200
        assert client.get(f"/api/inventory/{product.id}", headers=admin_headers).status_code == 404
