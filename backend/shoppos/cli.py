# Overview: Flask CLI command groups for bootstrap and user administration.

# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables, default users, sample categories,
#   products and employees.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with role and status.
# - python -m flask users create --email clerk@pos.com --name "Clerk" --password "secret1" --role user
#   Create a user (prompts if options are omitted).

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User, Category, Product, Employee
from .models.auth import ROLES, ROLE_ADMIN, ROLE_USER
from .services.auth_service import create_user, PasswordValidationError, UserValidationError

DEFAULT_USERS = (
    ("Admin User", "admin@pos.com", "admin123", ROLE_ADMIN),
    ("Regular User", "user@pos.com", "user123", ROLE_USER),
)

SAMPLE_CATEGORIES = (
    ("Electronics", "Electronic devices and accessories"),
    ("Food", "Food and beverages"),
)

# (name, description, purchase cents, selling cents, stock, category, barcode)
SAMPLE_PRODUCTS = (
    ("Laptop", "High-performance laptop", 80000, 99999, 10, "Electronics", "1234567890123"),
    ("Mouse", "Wireless mouse", 2000, 2999, 50, "Electronics", "1234567890124"),
    ("Keyboard", "Mechanical keyboard", 5000, 7999, 25, "Electronics", "1234567890125"),
    ("Monitor", "27-inch 4K monitor", 30000, 39999, 15, "Electronics", "1234567890126"),
    ("Coffee", "Premium coffee beans", 1500, 1999, 100, "Food", "1234567890127"),
)

SAMPLE_EMPLOYEES = (
    ("John Doe", "john@pos.com", "Sales Associate", 3500000),
    ("Jane Smith", "jane@pos.com", "Manager", 5500000),
)


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Create tables and seed default data. Safe to run repeatedly.

    Creates:
    - Users: admin@pos.com / admin123 (admin), user@pos.com / user123 (user)
    - Categories: Electronics, Food
    - Five sample products and two sample employees

    SECURITY: Change passwords immediately in production!
    """
    click.echo("START Initializing shop POS...")
    db.create_all()

    for name, email, password, role in DEFAULT_USERS:
        if db.session.query(User).filter_by(email=email).first():
            click.echo(f"SKIP User exists: {email}")
            continue
        create_user(email=email, password=password, name=name, role=role)
        click.echo(f"PASS Created user: {email} ({role})")

    categories = {}
    for name, description in SAMPLE_CATEGORIES:
        category = db.session.query(Category).filter_by(name=name).first()
        if not category:
            category = Category(name=name, description=description)
            db.session.add(category)
            db.session.flush()
            click.echo(f"PASS Created category: {name}")
        categories[name] = category

    for name, description, purchase, selling, stock, category_name, barcode in SAMPLE_PRODUCTS:
        if db.session.query(Product).filter_by(barcode=barcode).first():
            continue
        db.session.add(Product(
            name=name,
            description=description,
            purchase_price_cents=purchase,
            selling_price_cents=selling,
            initial_stock=stock,
            stock=stock,
            category_id=categories[category_name].id,
            barcode=barcode,
        ))
        click.echo(f"PASS Created product: {name}")

    for name, email, position, salary in SAMPLE_EMPLOYEES:
        if db.session.query(Employee).filter_by(email=email).first():
            continue
        db.session.add(Employee(name=name, email=email, position=position, salary_cents=salary))
        click.echo(f"PASS Created employee: {name}")

    db.session.commit()

    click.echo("\nDONE Initialization complete.")
    click.echo("   admin -> admin@pos.com / admin123")
    click.echo("   user  -> user@pos.com  / user123")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--name', prompt=True, help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(ROLES)), default=ROLE_USER, show_default=True, help='Role')
@with_appcontext
def create_user_cli(email, name, password, role):
    """Create a staff account."""
    try:
        user = create_user(email=email, password=password, name=name, role=role)
    except (UserValidationError, PasswordValidationError) as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)
    click.echo(f"PASS Created user {user.email} (ID: {user.id}, role: {user.role})")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with role and status."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Name':<20} {'Email':<30} {'Role':<8} {'Status'}")
    click.echo("="*80)

    for user in users:
        click.echo(f"{user.id:<5} {(user.name or ''):<20} {user.email:<30} {user.role:<8} {user.status}")

    click.echo("="*80 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
