# Overview: 57mm thermal receipt rendering for completed sales.

from __future__ import annotations

from flask import current_app, render_template

from ..models import Sale
from ..money import format_money

NAME_WIDTH = 15


def truncate_name(name: str, width: int = NAME_WIDTH) -> str:
    if len(name) > width:
        return name[:width] + "..."
    return name


def receipt_context(sale: Sale, *, shop_name: str, symbol: str) -> dict:
    """Template variables for one sale. Amounts are pre-formatted strings."""
    customer = sale.customer
    lines = [
        {
            "name": truncate_name(item.product.name if item.product else f"#{item.product_id}"),
            "quantity": item.quantity,
            "total": format_money(item.line_total_cents, symbol),
        }
        for item in sale.items
    ]
    return {
        "shop_name": shop_name,
        "sale_ref": str(sale.id)[-8:],
        "date": sale.created_at.strftime("%Y-%m-%d %H:%M:%S"),
        "cashier": sale.user.name if sale.user else None,
        "customer": {
            "name": customer.name or "Walk-in",
            "phone": customer.phone,
        } if customer else None,
        "lines": lines,
        "subtotal": format_money(sale.subtotal_cents, symbol),
        "discount": format_money(sale.discount_cents, symbol) if sale.discount_cents else None,
        "total": format_money(sale.total_cents, symbol),
    }


def render_receipt(sale: Sale) -> str:
    config = current_app.config
    context = receipt_context(
        sale,
        shop_name=config.get("SHOP_NAME", "POINT OF SALE SYSTEM"),
        symbol=config.get("CURRENCY_SYMBOL", "৳"),
    )
    return render_template("receipt.html", **context)
