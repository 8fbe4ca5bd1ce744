# Overview: Excel export of sales for bookkeeping.

from __future__ import annotations

from datetime import date
from io import BytesIO

import openpyxl
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from ..models import Sale
from ..money import cents_to_units, CURRENCY_SYMBOL

# (header, column width)
SALES_COLUMNS = (
    ("Sale ID", 15),
    ("Customer Name", 20),
    ("Customer Phone", 15),
    ("Cashier", 15),
    ("Subtotal", 12),
    ("Discount", 10),
    ("Total Amount", 12),
    ("Date", 12),
    ("Time", 10),
    ("Items Count", 12),
    ("Items Details", 50),
)


def export_filename(today: date | None = None) -> str:
    today = today or date.today()
    return f"sales_export_{today.isoformat()}.xlsx"


def _items_details(sale: Sale, symbol: str) -> str:
    return "; ".join(
        f"{item.product.name if item.product else item.product_id} "
        f"(Qty: {item.quantity}, Price: {symbol}{cents_to_units(item.price_cents)})"
        for item in sale.items
    )


def sale_row(sale: Sale, symbol: str = CURRENCY_SYMBOL) -> list:
    """One worksheet row per sale. Money columns are in currency units."""
    customer = sale.customer
    return [
        sale.id,
        (customer.name if customer else None) or "Walk-in",
        customer.phone if customer else "",
        sale.user.name if sale.user else "",
        cents_to_units(sale.subtotal_cents),
        cents_to_units(sale.discount_cents or 0),
        cents_to_units(sale.total_cents),
        sale.created_at.strftime("%Y-%m-%d"),
        sale.created_at.strftime("%H:%M:%S"),
        len(sale.items),
        _items_details(sale, symbol),
    ]


def sales_workbook(sales: list[Sale], symbol: str = CURRENCY_SYMBOL) -> openpyxl.Workbook:
    workbook = openpyxl.Workbook()
    worksheet = workbook.active
    worksheet.title = "Sales"

    for col, (header, width) in enumerate(SALES_COLUMNS, 1):
        cell = worksheet.cell(row=1, column=col, value=header)
        cell.font = Font(bold=True)
        cell.fill = PatternFill(start_color="CCCCCC", end_color="CCCCCC", fill_type="solid")
        worksheet.column_dimensions[get_column_letter(col)].width = width

    for sale in sales:
        worksheet.append(sale_row(sale, symbol))

    return workbook


def sales_workbook_bytes(sales: list[Sale], symbol: str = CURRENCY_SYMBOL) -> bytes:
    buf = BytesIO()
    sales_workbook(sales, symbol).save(buf)
    return buf.getvalue()
