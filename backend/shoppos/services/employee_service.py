# Overview: Service-layer operations for HR employee records.

from __future__ import annotations

from ..extensions import db
from ..models import Employee
from ..validation import ValidationError, parse_amount_cents, parse_datetime_field
from shoppos.time_utils import utcnow
from .permission_service import AuthContext, require_admin


class EmployeeNotFoundError(Exception):
    """Raised when an employee is not found."""
    pass


class EmployeeValidationError(Exception):
    """Raised when employee data fails validation."""
    pass


def _fields(name, email, position, salary_cents, hire_date) -> dict:
    if not all(v and str(v).strip() for v in (name, email, position)):
        raise EmployeeValidationError("Missing required fields")
    try:
        salary = None
        if salary_cents not in (None, ""):
            salary = parse_amount_cents("salary_cents", salary_cents, allow_zero=True)
        hired_at = parse_datetime_field("hire_date", hire_date) if hire_date else utcnow()
    except ValidationError as e:
        raise EmployeeValidationError(str(e))
    return {
        "name": str(name).strip(),
        "email": str(email).strip().lower(),
        "position": str(position).strip(),
        "salary_cents": salary,
        "hire_date": hired_at,
    }


def _ensure_email_free(email: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Employee).filter(Employee.email == email)
    if exclude_id is not None:
        query = query.filter(Employee.id != exclude_id)
    if query.first():
        raise EmployeeValidationError("An employee with this email already exists")


def list_employees() -> list[Employee]:
    """Most recently hired first."""
    return db.session.query(Employee).order_by(Employee.hire_date.desc(), Employee.id.desc()).all()


def get_employee(employee_id: int) -> Employee:
    employee = db.session.get(Employee, employee_id)
    if not employee:
        raise EmployeeNotFoundError("Employee not found")
    return employee


def create_employee(auth: AuthContext, *, name, email, position, salary_cents=None, hire_date=None) -> Employee:
    require_admin(auth, "create employees")
    fields = _fields(name, email, position, salary_cents, hire_date)
    _ensure_email_free(fields["email"])

    employee = Employee(**fields)
    db.session.add(employee)
    db.session.commit()
    return employee


def update_employee(auth: AuthContext, employee_id: int, *, name, email, position, salary_cents=None, hire_date=None) -> Employee:
    require_admin(auth, "update employees")
    employee = get_employee(employee_id)
    fields = _fields(name, email, position, salary_cents, hire_date or employee.hire_date)
    _ensure_email_free(fields["email"], exclude_id=employee_id)

    for key, value in fields.items():
        setattr(employee, key, value)
    db.session.commit()
    return employee


def delete_employee(auth: AuthContext, employee_id: int) -> None:
    require_admin(auth, "delete employees")
    employee = get_employee(employee_id)
    db.session.delete(employee)
    db.session.commit()
