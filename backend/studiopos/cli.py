# Overview: Flask CLI command groups for bootstrap and inspection.

# backend/studiopos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create missing tables, the default categories and the default admin/cashier users.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users list
# - python -m flask users create --name "Rina" --email rina@studio.local --password "Password123!" --role CASHIER
#
# Catalog:
# - python -m flask categories create --name "Coffee" --type FB
#
# Shifts:
# - python -m flask shifts list --status CLOSED --limit 20

import click
from flask.cli import with_appcontext

from .errors import PosError
from .extensions import db
from .models import Category, User, ROLES, CATEGORY_TYPES
from .services.auth_service import create_user
from .services import products_service, shift_service, reporting_service


DEFAULT_PASSWORD = "Password123!"

DEFAULT_USERS = [
    ("Admin", "admin@studiopos.local", "ADMIN"),
    ("Cashier", "cashier@studiopos.local", "CASHIER"),
]

DEFAULT_CATEGORIES = [
    ("Photo Session", "STUDIO"),
    ("Food & Beverage", "FB"),
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """
    Idempotent bootstrap: tables, default categories and default users.

    Default users (CHANGE IN PRODUCTION!):
    - admin@studiopos.local   / Password123!  (ADMIN)
    - cashier@studiopos.local / Password123!  (CASHIER)
    """
    click.echo("START Initializing Studio POS...")
    db.create_all()

    for name, category_type in DEFAULT_CATEGORIES:
        existing = db.session.query(Category).filter_by(name=name).first()
        if existing:
            click.echo(f"WARN  Category '{name}' already exists, skipping...")
            continue
        products_service.create_category(name, category_type)
        click.echo(f"PASS Created category: {name} ({category_type})")

    for name, email, role in DEFAULT_USERS:
        if db.session.query(User).filter_by(email=email).first():
            click.echo(f"WARN  User '{email}' already exists, skipping...")
            continue
        try:
            create_user(name=name, email=email, password=DEFAULT_PASSWORD, role=role)
            click.echo(f"PASS Created user: {email} with role {role}")
        except PosError as e:
            click.echo(f"FAIL Failed to create user '{email}': {e.message}")

    click.echo("DONE Studio POS initialized. Change default passwords before going live.")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system init-db' to seed defaults.")


@click.group('users')
def users_group():
    """User inspection and creation."""


@users_group.command('create')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Email address (login)')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(ROLES, case_sensitive=False), default='CASHIER', show_default=True)
@with_appcontext
def create_user_cli(name, email, password, role):
    """Create a staff account."""
    try:
        user = create_user(name=name, email=email, password=password, role=role)
    except PosError as e:
        raise click.ClickException(e.message)
    click.echo(f"PASS Created user {user.email} (ID: {user.id}, role: {user.role})")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Name':<20} {'Email':<35} {'Role'}")
    click.echo("="*80)
    for user in users:
        click.echo(f"{user.id:<5} {user.name:<20} {user.email:<35} {user.role}")
    click.echo("="*80 + "\n")


@click.group('categories')
def categories_group():
    """Catalog category commands."""


@categories_group.command('create')
@click.option('--name', required=True, help='Category name')
@click.option('--type', 'category_type', type=click.Choice(CATEGORY_TYPES, case_sensitive=False), required=True)
@with_appcontext
def create_category_cli(name, category_type):
    try:
        category = products_service.create_category(name, category_type)
    except PosError as e:
        raise click.ClickException(e.message)
    click.echo(f"PASS Created category {category.name} (ID: {category.id}, type: {category.type})")


@click.group('shifts')
def shifts_group():
    """Shift inspection."""


@shifts_group.command('list')
@click.option('--status', type=click.Choice(['OPEN', 'CLOSED'], case_sensitive=False), help='Filter by status')
@click.option('--limit', type=int, default=20, show_default=True)
@with_appcontext
def list_shifts_cli(status, limit):
    """List recent shifts with expected vs reported cash."""
    shifts = shift_service.list_shifts(status=status.upper() if status else None, limit=limit)

    if not shifts:
        click.echo("No shifts found.")
        return

    click.echo(f"{'ID':<5} {'Status':<8} {'Opened by':<20} {'Start':<22} {'Expected':>12} {'Reported':>12} {'Variance':>10}")
    for shift in shifts:
        summary = reporting_service.shift_summary(shift.id)
        reported = summary["reported_cash_cents"]
        variance = summary["variance_cents"]
        click.echo(
            f"{shift.id:<5} {shift.status:<8} {(shift.user.name if shift.user else '-'):<20} "
            f"{shift.start_time.strftime('%Y-%m-%d %H:%M'):<22} "
            f"{summary['expected_cash_cents']:>12} "
            f"{(reported if reported is not None else '-'):>12} "
            f"{(variance if variance is not None else '-'):>10}"
        )


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(categories_group)
    app.cli.add_command(shifts_group)
