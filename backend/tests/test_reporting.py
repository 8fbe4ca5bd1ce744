"""
Dashboard analytics tests.
"""

from datetime import datetime

import pytest

from shoppos.models import Sale, SaleItem, Expense, Customer
from shoppos.services.reporting_service import dashboard_analytics


@pytest.fixture
def march_sale(db_session, admin_user, category, make_product):
    """Two units sold at 100.00 that cost 60.00 each, in March 2025."""
    product = make_product("Kettle", 10000, 10, purchase_price_cents=6000, category=category)
    customer = Customer(phone="0123", name="Karim")
    db_session.add(customer)
    db_session.flush()
    sale = Sale(
        user_id=admin_user.id,
        customer_id=customer.id,
        total_cents=20000,
        created_at=datetime(2025, 3, 10, 12, 0),
    )
    db_session.add(sale)
    db_session.flush()
    db_session.add(SaleItem(sale_id=sale.id, product_id=product.id, quantity=2, price_cents=10000))
    db_session.commit()
    return sale


def _expense(db_session, user, amount, created_at):
    expense = Expense(
        amount_cents=amount,
        category="Rent",
        user_id=user.id,
        date=created_at,
        created_at=created_at,
    )
    db_session.add(expense)
    db_session.commit()
    return expense


class TestDashboardAnalytics:

    def test_monthly_profit(self, app, march_sale):
        data = dashboard_analytics(2025)

        assert [m["month"] for m in data["monthly_data"]][:3] == ["Jan", "Feb", "Mar"]
        march = data["monthly_data"][2]
        assert march["sales_cents"] == 20000
        assert march["profit_cents"] == 8000
        assert march["profit_percentage"] == 40.0

        january = data["monthly_data"][0]
        assert january["sales_cents"] == 0
        assert january["profit_percentage"] == 0

        assert data["totals"] == {"sales_cents": 20000, "expenses_cents": 0, "profit_cents": 8000}
        assert data["year"] == 2025

    def test_other_years_excluded(self, app, march_sale):
        data = dashboard_analytics(2024)
        assert data["totals"]["sales_cents"] == 0
        assert data["recent_transactions"] == []
        assert data["category_data"] == []

    def test_month_boundaries_are_half_open(self, db_session, admin_user, app):
        _expense(db_session, admin_user, 500, datetime(2025, 2, 1, 0, 0))
        _expense(db_session, admin_user, 700, datetime(2025, 1, 31, 23, 59, 59))

        months = dashboard_analytics(2025)["monthly_data"]

        assert months[0]["expenses_cents"] == 700
        assert months[1]["expenses_cents"] == 500

    def test_category_share_and_recent(self, app, march_sale):
        data = dashboard_analytics(2025)

        assert data["category_data"] == [{"name": "Snacks", "value": 100, "amount_cents": 20000}]
        recent = data["recent_transactions"]
        assert len(recent) == 1
        assert recent[0]["description"] == "Sale to Karim"
        assert recent[0]["user"] == "Admin"
        assert recent[0]["date"] == "2025-03-10T12:00:00Z"

    def test_uncategorized_products(self, db_session, admin_user, make_product, app):
        product = make_product("Loose", 300, 5)
        sale = Sale(user_id=admin_user.id, total_cents=300, created_at=datetime(2025, 6, 1))
        db_session.add(sale)
        db_session.flush()
        db_session.add(SaleItem(sale_id=sale.id, product_id=product.id, quantity=1, price_cents=300))
        db_session.commit()

        data = dashboard_analytics(2025)

        assert data["category_data"][0]["name"] == "Uncategorized"
        assert data["recent_transactions"][0]["description"] == "Sale to Customer"


class TestAnalyticsRoute:

    def test_admin_only(self, client, user_headers):
        assert client.get("/api/analytics", headers=user_headers).status_code == 403

    def test_year_param(self, client, admin_headers, march_sale):
        resp = client.get("/api/analytics?year=2025", headers=admin_headers)
        assert resp.status_code == 200
        body = resp.json
        assert set(body) == {"monthlyData", "categoryData", "recentTransactions", "totals", "year"}
        assert body["year"] == 2025
        assert body["totals"] == {"sales": 200, "expenses": 0, "profit": 80}

        march = body["monthlyData"][2]
        assert march == {"month": "Mar", "sales": 200, "expenses": 0, "profit": 80, "profitPercentage": 40.0}
        assert body["categoryData"] == [{"name": "Snacks", "value": 100, "amount": 200}]
        assert body["recentTransactions"][0]["amount"] == 200

    def test_bad_year(self, client, admin_headers):
        resp = client.get("/api/analytics?year=abc", headers=admin_headers)
        assert resp.status_code == 400
