# Overview: Display helpers for amounts stored as integer poisha (1/100 Taka).

from __future__ import annotations

CURRENCY_SYMBOL = "৳"


def cents_to_units(cents: int | None) -> float:
    """Major units for spreadsheet cells and wire amounts; storage and arithmetic stay in cents."""
    if cents is None:
        return 0.0
    return cents / 100


def format_money(cents: int | None, symbol: str = CURRENCY_SYMBOL) -> str:
    """Format cents as e.g. '৳1,234.50'. Negative amounts get a leading '-'."""
    cents = cents or 0
    sign = "-" if cents < 0 else ""
    whole, frac = divmod(abs(cents), 100)
    return f"{sign}{symbol}{whole:,}.{frac:02d}"
