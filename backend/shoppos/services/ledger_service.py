# Overview: Balance bookkeeping shared by customer dues and supplier purchases.

"""
Payment ledger rules

Dues and purchases have the same shape: a total, what has been paid, what is
still pending, and a status derived from those two. Every mutation path goes
through the helpers here so the three numbers and the status never drift.
"""

from __future__ import annotations

from typing import Protocol

from ..models.ledger import STATUS_PAID, STATUS_PARTIAL, STATUS_PENDING
from ..money import format_money


class LedgerError(Exception):
    """Raised when a payment or re-total would break the balance rules."""
    pass


class LedgerAccount(Protocol):
    total_amount_cents: int
    paid_amount_cents: int
    pending_amount_cents: int
    status: str


def derive_status(paid_cents: int, pending_cents: int) -> str:
    """
    pending == 0              -> paid
    pending > 0 and paid > 0  -> partial
    otherwise                 -> pending
    """
    if pending_cents <= 0:
        return STATUS_PAID
    if paid_cents > 0:
        return STATUS_PARTIAL
    return STATUS_PENDING


def open_account(account: LedgerAccount, total_cents: int) -> None:
    """Initialise a fresh account: nothing paid, everything pending."""
    if total_cents <= 0:
        raise LedgerError("Total amount must be greater than 0")
    account.total_amount_cents = total_cents
    account.paid_amount_cents = 0
    account.pending_amount_cents = total_cents
    account.status = derive_status(0, total_cents)


def apply_payment(account: LedgerAccount, amount_cents: int) -> None:
    """
    Add a payment to the account totals.

    Rejects before touching anything when the amount is not positive or
    exceeds the pending balance.
    """
    if amount_cents <= 0:
        raise LedgerError("Payment amount must be greater than 0")
    if amount_cents > account.pending_amount_cents:
        raise LedgerError(
            "Payment amount cannot exceed pending balance of "
            f"{format_money(account.pending_amount_cents)}"
        )

    paid = account.paid_amount_cents + amount_cents
    pending = max(0, account.total_amount_cents - paid)
    account.paid_amount_cents = paid
    account.pending_amount_cents = pending
    account.status = derive_status(paid, pending)


def retotal(account: LedgerAccount, new_total_cents: int, payments_sum_cents: int) -> None:
    """
    Change the total. Paid is re-read from the payment rows so a re-total
    also repairs any drift; pending is clamped at 0.
    """
    if new_total_cents <= 0:
        raise LedgerError("Total amount must be greater than 0")
    pending = max(0, new_total_cents - payments_sum_cents)
    account.total_amount_cents = new_total_cents
    account.paid_amount_cents = payments_sum_cents
    account.pending_amount_cents = pending
    account.status = derive_status(payments_sum_cents, pending)
