from __future__ import annotations

from ..extensions import db
from shoppos.time_utils import to_utc_z, utcnow


class Expense(db.Model):
    """Operating expense recorded by a staff member."""
    __tablename__ = "expenses"
    __table_args__ = (
        db.Index("ix_expenses_created_at", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    amount_cents = db.Column(db.BigInteger, nullable=False)
    category = db.Column(db.String(64), nullable=False)
    description = db.Column(db.Text, nullable=True)
    date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", backref=db.backref("expenses", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "amount_cents": self.amount_cents,
            "category": self.category,
            "description": self.description,
            "date": to_utc_z(self.date),
            "user_id": self.user_id,
            "user_name": self.user.name if self.user else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Employee(db.Model):
    """HR record. Not linked to a login account."""
    __tablename__ = "employees"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True)
    position = db.Column(db.String(128), nullable=False)
    salary_cents = db.Column(db.BigInteger, nullable=True)
    hire_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "position": self.position,
            "salary_cents": self.salary_cents,
            "hire_date": to_utc_z(self.hire_date),
        }
