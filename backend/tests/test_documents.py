"""
Receipt and Excel export tests.
"""

from datetime import date, datetime
from io import BytesIO

import openpyxl
import pytest

from shoppos.models import Sale, SaleItem, Customer
from shoppos.money import format_money
from shoppos.services import export_service, receipt_service


@pytest.fixture
def sale(db_session, admin_user, make_product):
    product = make_product("Extra Long Product Name", 1000, 10)
    customer = Customer(phone="01811111111")
    db_session.add(customer)
    db_session.flush()
    sale = Sale(
        user_id=admin_user.id,
        customer_id=customer.id,
        total_cents=2500,
        discount_cents=500,
        created_at=datetime(2025, 5, 4, 9, 30, 15),
    )
    db_session.add(sale)
    db_session.flush()
    db_session.add(SaleItem(sale_id=sale.id, product_id=product.id, quantity=3, price_cents=1000))
    db_session.commit()
    return sale


@pytest.mark.parametrize(
    "cents,expected",
    [
        (0, "৳0.00"),
        (5, "৳0.05"),
        (123450, "৳1,234.50"),
        (-250, "-৳2.50"),
    ],
)
def test_format_money(cents, expected):
    assert format_money(cents) == expected


def test_truncate_name():
    assert receipt_service.truncate_name("Short") == "Short"
    assert receipt_service.truncate_name("Extra Long Product Name") == "Extra Long Prod..."


def test_receipt_context(sale):
    context = receipt_service.receipt_context(sale, shop_name="CORNER SHOP", symbol="$")

    assert context["shop_name"] == "CORNER SHOP"
    assert context["date"] == "2025-05-04 09:30:15"
    assert context["customer"] == {"name": "Walk-in", "phone": "01811111111"}
    assert context["lines"] == [{"name": "Extra Long Prod...", "quantity": 3, "total": "$30.00"}]
    assert context["subtotal"] == "$30.00"
    assert context["discount"] == "$5.00"
    assert context["total"] == "$25.00"


def test_export_filename():
    assert export_service.export_filename(date(2025, 1, 9)) == "sales_export_2025-01-09.xlsx"


def test_sales_workbook(sale):
    payload = export_service.sales_workbook_bytes([sale], symbol="$")
    worksheet = openpyxl.load_workbook(BytesIO(payload)).active

    headers = [cell.value for cell in worksheet[1]]
    assert headers == [header for header, _ in export_service.SALES_COLUMNS]
    assert worksheet["A1"].font.bold

    row = [cell.value for cell in worksheet[2]]
    assert row[1] == "Walk-in"
    assert row[2] == "01811111111"
    assert row[4:7] == [30, 5, 25]
    assert row[7:10] == ["2025-05-04", "09:30:15", 1]
    assert row[10] == "Extra Long Product Name (Qty: 3, Price: $10.0)"
