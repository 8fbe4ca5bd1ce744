"""
Balance ledger tests for dues and supplier purchases.

Verifies:
- paid + pending == total after every accepted payment
- status follows pending -> partial -> paid
- an overpayment is refused and leaves the account untouched
- re-totalling re-reads paid from the payment rows
"""

from types import SimpleNamespace

import pytest

from shoppos.extensions import db
from shoppos.models import Due, DuePayment, Sale
from shoppos.services.ledger_service import (
    LedgerError,
    apply_payment,
    derive_status,
    open_account,
    retotal,
)


def _account(total):
    account = SimpleNamespace()
    open_account(account, total)
    return account


class TestLedgerArithmetic:

    @pytest.mark.parametrize(
        "paid,pending,expected",
        [
            (0, 1000, "pending"),
            (400, 600, "partial"),
            (1000, 0, "paid"),
            (1200, 0, "paid"),
        ],
    )
    def test_derive_status(self, paid, pending, expected):
        assert derive_status(paid, pending) == expected

    def test_payments_settle_account(self):
        account = _account(100000)
        assert account.status == "pending"

        apply_payment(account, 40000)
        assert (account.paid_amount_cents, account.pending_amount_cents, account.status) == (40000, 60000, "partial")

        apply_payment(account, 30000)
        apply_payment(account, 30000)
        assert account.paid_amount_cents == 100000
        assert account.pending_amount_cents == 0
        assert account.status == "paid"

    def test_overpayment_refused(self):
        account = _account(100000)
        apply_payment(account, 40000)

        with pytest.raises(LedgerError):
            apply_payment(account, 70000)

        assert account.paid_amount_cents == 40000
        assert account.pending_amount_cents == 60000
        assert account.status == "partial"

    @pytest.mark.parametrize("amount", [0, -100])
    def test_non_positive_payment_refused(self, amount):
        account = _account(1000)
        with pytest.raises(LedgerError):
            apply_payment(account, amount)

    def test_open_requires_positive_total(self):
        with pytest.raises(LedgerError):
            _account(0)

    def test_retotal_below_paid_clamps_pending(self):
        account = _account(100000)
        apply_payment(account, 40000)

        retotal(account, 30000, payments_sum_cents=40000)

        assert account.total_amount_cents == 30000
        assert account.paid_amount_cents == 40000
        assert account.pending_amount_cents == 0
        assert account.status == "paid"

    def test_retotal_repairs_paid_from_rows(self):
        account = _account(100000)
        account.paid_amount_cents = 12345  # drifted

        retotal(account, 100000, payments_sum_cents=40000)

        assert account.paid_amount_cents == 40000
        assert account.pending_amount_cents == 60000
        assert account.status == "partial"


@pytest.fixture
def sale(db_session, admin_user):
    sale = Sale(user_id=admin_user.id, total_cents=100000)
    db_session.add(sale)
    db_session.commit()
    return sale


@pytest.fixture
def due_id(client, admin_headers, sale):
    resp = client.post("/api/dues", json={"sale_id": sale.id, "total_amount_cents": 100000}, headers=admin_headers)
    assert resp.status_code == 201
    return resp.json["id"]


def _pay(client, headers, due_id, amount):
    return client.post(
        f"/api/dues/{due_id}/payments",
        json={"amount": amount, "paymentDate": "2025-03-01"},
        headers=headers,
    )


class TestDueApi:

    def test_three_payments_settle_due(self, client, admin_headers, due_id):
        for amount in (400, 300, 300):
            resp = _pay(client, admin_headers, due_id, amount)
            assert resp.status_code == 201
            due = resp.json["due"]
            assert due["paid_amount_cents"] + due["pending_amount_cents"] == due["total_amount_cents"]

        assert due["status"] == "paid"
        assert due["payment_count"] == 3
        assert resp.json["message"] == "Payment added successfully"

    def test_overpayment_leaves_due_unchanged(self, client, admin_headers, due_id):
        _pay(client, admin_headers, due_id, 400)

        resp = _pay(client, admin_headers, due_id, 700)

        assert resp.status_code == 400
        assert "pending balance" in resp.json["error"]
        db.session.expire_all()
        due = db.session.get(Due, due_id)
        assert due.paid_amount_cents == 40000
        assert due.pending_amount_cents == 60000
        assert due.status == "partial"
        assert db.session.query(DuePayment).count() == 1

    def test_payment_requires_date(self, client, admin_headers, due_id):
        resp = client.post(f"/api/dues/{due_id}/payments", json={"amount": 1}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == "Amount and payment date are required"

    def test_payment_in_taka_stored_in_poisha(self, client, admin_headers, due_id):
        resp = _pay(client, admin_headers, due_id, "250.75")

        assert resp.status_code == 201
        assert resp.json["payment"]["amount_cents"] == 25075
        assert resp.json["due"]["pending_amount_cents"] == 74925

    @pytest.mark.parametrize("amount", ["abc", 1.001, True])
    def test_bad_payment_amount(self, client, admin_headers, due_id, amount):
        resp = _pay(client, admin_headers, due_id, amount)

        assert resp.status_code == 400
        assert resp.json["error"].startswith("amount ")
        assert db.session.query(DuePayment).count() == 0

    def test_one_due_per_sale(self, client, admin_headers, sale, due_id):
        resp = client.post("/api/dues", json={"sale_id": sale.id, "total_amount_cents": 500}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == "A due already exists for this sale"

    def test_due_for_unknown_sale(self, client, admin_headers):
        resp = client.post("/api/dues", json={"sale_id": 9999, "total_amount_cents": 500}, headers=admin_headers)
        assert resp.status_code == 404

    def test_retotal_via_update(self, client, admin_headers, due_id):
        _pay(client, admin_headers, due_id, 400)

        resp = client.put(f"/api/dues/{due_id}", json={"total_amount_cents": 40000}, headers=admin_headers)

        assert resp.status_code == 200
        assert resp.json["pending_amount_cents"] == 0
        assert resp.json["status"] == "paid"

    def test_status_filter(self, client, admin_headers, due_id):
        assert len(client.get("/api/dues?status=pending", headers=admin_headers).json) == 1
        assert client.get("/api/dues?status=paid", headers=admin_headers).json == []
        assert client.get("/api/dues?status=bogus", headers=admin_headers).status_code == 400

    def test_delete_due_removes_payments(self, client, admin_headers, due_id):
        _pay(client, admin_headers, due_id, 1)

        resp = client.delete(f"/api/dues/{due_id}", headers=admin_headers)

        assert resp.status_code == 200
        assert db.session.query(DuePayment).count() == 0


class TestPurchaseApi:

    @pytest.fixture
    def supplier_id(self, client, admin_headers):
        resp = client.post("/api/suppliers", json={"name": "Acme Wholesale", "email": "Sales@Acme.test"}, headers=admin_headers)
        assert resp.status_code == 201
        assert resp.json["email"] == "sales@acme.test"
        return resp.json["id"]

    def test_purchase_payment_flow(self, client, admin_headers, supplier_id):
        resp = client.post(
            "/api/purchases",
            json={"supplier_id": supplier_id, "total_amount_cents": 50000, "invoice_number": "INV-1"},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        purchase_id = resp.json["id"]
        assert resp.json["status"] == "pending"

        resp = client.post(f"/api/purchases/{purchase_id}/payments", json={"amount": 200}, headers=admin_headers)
        assert resp.status_code == 201

        resp = client.post(f"/api/purchases/{purchase_id}/payments", json={"amount": 400}, headers=admin_headers)
        assert resp.status_code == 400

        payments = client.get(f"/api/purchases/{purchase_id}/payments", headers=admin_headers)
        assert len(payments.json) == 1

        purchase = client.get(f"/api/purchases/{purchase_id}", headers=admin_headers).json
        assert purchase["paid_amount_cents"] == 20000
        assert purchase["pending_amount_cents"] == 30000
        assert purchase["status"] == "partial"

    def test_supplier_with_purchases_cannot_be_deleted(self, client, admin_headers, supplier_id):
        client.post("/api/purchases", json={"supplier_id": supplier_id, "total_amount_cents": 100}, headers=admin_headers)

        resp = client.delete(f"/api/suppliers/{supplier_id}", headers=admin_headers)

        assert resp.status_code == 400
        assert "associated purchases" in resp.json["error"]

    def test_unknown_supplier(self, client, admin_headers):
        resp = client.post("/api/purchases", json={"supplier_id": 999, "total_amount_cents": 100}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == "Supplier not found"
