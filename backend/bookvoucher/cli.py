# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/bookvoucher/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables that do not exist yet.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system seed
#   Idempotent: default admin, outlets, schools, staff, option items and the Grade 1 booklist.
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with role, outlet and active status.
# - python -m flask users create --username jane --name "Jane" --password "secret" --role staff --outlet "Feydhoo Outlet"
#   Create a user (prompts if options are omitted).
#
# Stock inspection:
# - python -m flask stock show --location "Hithadhoo Outlet" [--date 2024-01-05]
#   Print current stock per tracked grade for an outlet.

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import Booklist, OptionItem, Outlet, School, User
from .models.accounts import USER_ROLES
from .services import catalogue_service, stock_service, user_service
from .services.outlet_service import require_location
from .validation import ConflictError, NotFoundError, ValidationError

DEFAULT_ADMIN = ("admin", "Administrator", "admin123")

DEFAULT_OUTLETS = [
    ("Hithadhoo Outlet", "OUT-001"),
    ("Feydhoo Outlet", "OUT-002"),
    ("Maradhoo Outlet", "OUT-003"),
]

DEFAULT_SCHOOLS = ["Nooraanee School", "Sharafuddeen School", "Hiriya School"]

# (username, name, index into DEFAULT_OUTLETS)
DEFAULT_STAFF = [
    ("counter", "Counter Staff", 0),
    ("staff1010", "Staff 1010", 1),
    ("staff1011", "Staff 1011", 2),
]
DEFAULT_STAFF_PASSWORD = "staff123"

# (name, key, enabled, default_checked)
DEFAULT_OPTION_ITEMS = [
    ("Has Textbooks", "hasTextbooks", True, False),
    ("Has Stationary", "hasStationary", True, True),
    ("Lens", "lens", True, False),
    ("No Name", "noName", True, False),
    ("Cellophane", "cellophane", True, False),
]

# (name, quantity, rate in whole currency units)
GRADE_1_ITEMS = [
    ("Drawing Block (No.80)", 1, 38),
    ("A4 Size Scrap Book", 1, 20),
    ("Box of Pencil Colours (24 colours), CE Standard", 1, 90),
    ("Box of Water Colours (12 colours tube), CE Standard, Regular Size", 1, 60),
    ("Box of Crayons, 12 colours, CE Standard", 1, 44),
    ('Pair of Scissors (6")', 1, 20),
    ("Glue stick (8 gm) CE Standard", 2, 15),
    ("Paint Brush (No.8) CE Standard", 1, 12),
    ("Paint Brush (No.12) CE Standard", 1, 18),
    ("Palette (Medium)", 1, 15),
    ("Box of Clay, CE Standard", 2, 16),
    ("Single-ruled Exercise Book (No.80)", 4, 13),
    ("Double-ruled Exercise Book (No.80)", 5, 12),
    ("Square-ruled Exercise Book (No.80)", 2, 12),
    ("Pencil (HB)", 4, 6),
    ("Eraser", 1, 6),
    ("Ruler (plastic: 12 inches)", 1, 8),
    ("Paper Punch File", 3, 12),
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables (existing tables are left untouched)."""
    db.create_all()
    click.echo("PASS Database tables created.")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system seed' to load defaults.")


def seed_defaults() -> bool:
    """
    Load the default data set into an empty database.

    Returns False (and changes nothing) when any user already exists.
    """
    if db.session.query(User).count() > 0:
        return False

    username, name, password = DEFAULT_ADMIN
    user_service.create_user(
        patch={"username": username, "name": name, "role": "admin"},
        password=password,
    )

    outlets = []
    for outlet_name, code in DEFAULT_OUTLETS:
        outlet = Outlet(name=outlet_name, code=code, active=True)
        db.session.add(outlet)
        outlets.append(outlet)
    db.session.flush()

    for school_name in DEFAULT_SCHOOLS:
        db.session.add(School(name=school_name))

    for username, name, outlet_index in DEFAULT_STAFF:
        user_service.create_user(
            patch={
                "username": username,
                "name": name,
                "role": "staff",
                "outlet_id": outlets[outlet_index].id,
            },
            password=DEFAULT_STAFF_PASSWORD,
        )

    for item_name, key, enabled, default_checked in DEFAULT_OPTION_ITEMS:
        db.session.add(OptionItem(name=item_name, key=key, enabled=enabled, default_checked=default_checked))

    catalogue_service.create_booklist(
        patch={
            "code": "VCH-GR1-ALL",
            "name": "Stationary List for Grade 1",
            "grade": "Grade 1",
        },
        items=[
            {"name": item_name, "quantity": quantity, "rate_cents": rate * 100}
            for item_name, quantity, rate in GRADE_1_ITEMS
        ],
    )

    db.session.commit()
    return True


@system_group.command('seed')
@with_appcontext
def seed():
    """
    Seed default users, outlets, schools, option items and booklist.

    Creates:
    - Admin: admin / admin123
    - Outlets: Hithadhoo (OUT-001), Feydhoo (OUT-002), Maradhoo (OUT-003)
    - Staff: counter, staff1010, staff1011 (password: staff123), one per outlet
    - Option items and the Grade 1 stationary booklist

    SECURITY: Change passwords immediately in production!
    """
    click.echo("START Seeding database...")
    if not seed_defaults():
        click.echo("SKIP Database already seeded.")
        return

    booklists = db.session.query(Booklist).count()
    click.echo(f"PASS Seeded {db.session.query(User).count()} users, "
               f"{db.session.query(Outlet).count()} outlets, {booklists} booklist(s).")


@click.group('users')
def users_group():
    """User inspection and bootstrap."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their role and outlet."""
    users = user_service.list_users()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Username':<20} {'Name':<25} {'Role':<8} {'Active':<8} {'Outlet'}")
    click.echo("="*90)

    for user in users:
        active_str = "Yes" if user.active else "No"
        outlet_str = user.outlet.name if user.outlet else "-"
        click.echo(f"{user.id:<5} {user.username:<20} {user.name:<25} {user.role:<8} {active_str:<8} {outlet_str}")

    click.echo("="*90 + "\n")


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--name', prompt=True, help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(sorted(USER_ROLES)), prompt=True, help='Role')
@click.option('--outlet', 'outlet_name', default=None, help='Outlet name (staff only)')
@with_appcontext
def create_user_cli(username, name, password, role, outlet_name):
    """Create a new user."""
    try:
        outlet_id = require_location(outlet_name).id if outlet_name else None
        user = user_service.create_user(
            patch={"username": username, "name": name, "role": role, "outlet_id": outlet_id},
            password=password,
        )
        db.session.commit()
        click.echo(f"PASS Created user {user.username} (ID: {user.id}, role: {user.role})")
    except (ValidationError, NotFoundError, ConflictError) as e:
        db.session.rollback()
        click.echo(f"FAIL {e}")


@click.group('stock')
def stock_group():
    """Voucher stock inspection."""


@stock_group.command('show')
@click.option('--location', required=True, help='Outlet name')
@click.option('--date', 'as_of', default=None, help='As-of date YYYY-MM-DD (default today)')
@with_appcontext
def show_stock(location, as_of):
    """Print current stock for every tracked grade at an outlet."""
    try:
        summary = stock_service.stock_summary(location, list(current_app.config["GRADE_CATALOGUE"]), as_of)
    except (ValidationError, NotFoundError) as e:
        click.echo(f"FAIL {e}")
        return

    click.echo(f"\nStock at {location}" + (f" as of {as_of}" if as_of else ""))
    click.echo("="*30)
    for grade, quantity in summary.items():
        click.echo(f"{grade:<15} {quantity:>10}")
    click.echo("="*30 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(stock_group)
