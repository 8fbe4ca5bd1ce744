# Overview: Service-layer operations for the yearly dashboard analytics.

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy.orm import selectinload

from shoppos.extensions import db
from shoppos.models import Sale, SaleItem, Product, Expense
from shoppos.time_utils import month_bounds, to_utc_z, utcnow, year_bounds

MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
UNCATEGORIZED = "Uncategorized"
RECENT_TRANSACTIONS = 10


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


def _line_profit_cents(item: SaleItem) -> int:
    purchase_price = item.product.purchase_price_cents if item.product else 0
    return (item.price_cents - (purchase_price or 0)) * item.quantity


def _sale_profit_cents(sale: Sale) -> int:
    return sum(_line_profit_cents(item) for item in sale.items)


def _percentage(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return round(part / whole * 100, 2)


def _rounded_percent(part: int, whole: int) -> int:
    """Whole-number percentage, halves rounded up."""
    if whole <= 0:
        return 0
    return int((Decimal(part) * 100 / Decimal(whole)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _in_range(moment: datetime, start: datetime, end: datetime) -> bool:
    return start <= moment < end


def dashboard_analytics(year: int | None = None) -> dict:
    """
    Sales, expenses and profit for one calendar year.

    Returns monthly_data (12 entries, Jan..Dec), category_data (share of the
    year's sales per product category, largest first), the 10 most recent
    sales, yearly totals and the year. Profit per line is
    (unit price at sale time - product purchase price) * quantity.
    """
    if year is None:
        year = utcnow().year
    if year < 1 or year > 9998:
        raise ReportError("Invalid year")

    start, end = year_bounds(year)

    sales = (
        db.session.query(Sale)
        .options(
            selectinload(Sale.items).selectinload(SaleItem.product).selectinload(Product.category),
            selectinload(Sale.user),
            selectinload(Sale.customer),
        )
        .filter(Sale.created_at >= start, Sale.created_at < end)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .all()
    )
    expenses = (
        db.session.query(Expense)
        .filter(Expense.created_at >= start, Expense.created_at < end)
        .all()
    )

    monthly_data = []
    category_amounts: dict[str, int] = {}
    for month in range(1, 13):
        m_start, m_end = month_bounds(year, month)
        month_sales = [s for s in sales if _in_range(s.created_at, m_start, m_end)]
        month_expenses = [e for e in expenses if _in_range(e.created_at, m_start, m_end)]

        sales_cents = sum(s.total_cents for s in month_sales)
        expenses_cents = sum(e.amount_cents for e in month_expenses)
        profit_cents = sum(_sale_profit_cents(s) for s in month_sales)

        monthly_data.append({
            "month": MONTH_LABELS[month - 1],
            "sales_cents": sales_cents,
            "expenses_cents": expenses_cents,
            "profit_cents": profit_cents,
            "profit_percentage": _percentage(profit_cents, sales_cents),
        })

        for sale in month_sales:
            for item in sale.items:
                category = item.product.category if item.product else None
                name = category.name if category else UNCATEGORIZED
                category_amounts[name] = category_amounts.get(name, 0) + item.line_total_cents

    total_sales = sum(s.total_cents for s in sales)
    total_expenses = sum(e.amount_cents for e in expenses)
    total_profit = sum(_sale_profit_cents(s) for s in sales)

    category_data = sorted(
        (
            {"name": name, "value": _rounded_percent(amount, total_sales), "amount_cents": amount}
            for name, amount in category_amounts.items()
        ),
        key=lambda row: row["amount_cents"],
        reverse=True,
    )

    recent_transactions = [
        {
            "id": sale.id,
            "type": "sale",
            "description": f"Sale to {(sale.customer.name if sale.customer else None) or 'Customer'}",
            "amount_cents": sale.total_cents,
            "user": (sale.user.name if sale.user else None) or "Unknown",
            "date": to_utc_z(sale.created_at),
        }
        for sale in sales[:RECENT_TRANSACTIONS]
    ]

    return {
        "monthly_data": monthly_data,
        "category_data": category_data,
        "recent_transactions": recent_transactions,
        "totals": {
            "sales_cents": total_sales,
            "expenses_cents": total_expenses,
            "profit_cents": total_profit,
        },
        "year": year,
    }
