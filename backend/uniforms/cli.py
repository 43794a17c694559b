# Overview: Flask CLI command groups for bootstrap, stock administration and settings.

# backend/uniforms/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables and the default roles (MANAGER, CASUAL).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system seed-demo
#   Idempotent demo data: one store, a manager, a casual and a few sized items.
#
# Directory:
# - python -m flask stores create --name "Sydney CBD"
# - python -m flask staff create --name "Alex Chen" --store "Sydney CBD" --role casual
# - python -m flask staff list
#
# Stock:
# - python -m flask items create --sku 9300001 --size M --name "Polo Shirt" --stock 20
# - python -m flask items set-stock 3 15
# - python -m flask items list
#
# Settings:
# - python -m flask settings cooldown 45
# - python -m flask settings role-limit CASUAL 3
# - python -m flask settings role-cooldown MANAGER 14

import click
from flask.cli import with_appcontext

from .extensions import db
from .errors import UniformError
from .models import UniformItem
from .services import inventory_service, settings_service, staff_service


DEMO_ITEMS = [
    ("9300001", "S", "Polo Shirt", 12),
    ("9300001", "M", "Polo Shirt", 20),
    ("9300001", "L", "Polo Shirt", 4),
    ("9300002", "M", "Winter Jacket", 6),
    ("9300003", "ONE", "Cap", 30),
]


def _fail(exc: UniformError):
    raise click.ClickException(f"{exc.code}: {exc.message}")


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create tables (if missing) and the default roles."""
    click.echo("START Initializing uniform tracker...")
    db.create_all()
    roles = staff_service.ensure_default_roles()
    click.echo(f"PASS Roles available: {', '.join(r.name for r in roles)}")
    click.echo("DONE System initialized.")


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


@system_group.command('seed-demo')
@with_appcontext
def seed_demo():
    """Load a small, repeatable demo data set."""
    db.create_all()
    staff_service.ensure_default_roles()

    existing_staff = {row["name"] for row in staff_service.list_staff()}
    for name, role in (("Demo Manager", "MANAGER"), ("Demo Casual", "CASUAL")):
        if name in existing_staff:
            click.echo(f"SKIP Staff already present: {name}")
            continue
        staff = staff_service.create_staff(name, "Demo Store", role)
        click.echo(f"PASS Created staff {staff.name} (ID: {staff.id}, role {role})")

    for sku, size, item_name, stock in DEMO_ITEMS:
        if db.session.query(UniformItem).filter_by(sku=sku, size=size).first():
            click.echo(f"SKIP Item already present: {item_name} ({size})")
            continue
        item = inventory_service.create_uniform_item(sku, size, item_name, stock)
        click.echo(f"PASS Created item {item.item_name} ({item.size}) with {item.stock_on_hand} on hand")


@click.group('stores')
def stores_group():
    """Store management commands."""


@stores_group.command('create')
@click.option('--name', required=True, help='Store name')
@with_appcontext
def create_store_cli(name):
    try:
        store = staff_service.create_store(name)
    except UniformError as exc:
        _fail(exc)
    click.echo(f"PASS Created store {store.name} (ID: {store.id})")


@click.group('staff')
def staff_group():
    """Staff directory commands."""


@staff_group.command('create')
@click.option('--name', required=True, help='Display name')
@click.option('--store', 'store_name', required=True, help='Store name (created if missing)')
@click.option('--role', 'role_name', required=True, help='Role name, case-insensitive (created if missing)')
@with_appcontext
def create_staff_cli(name, store_name, role_name):
    try:
        staff = staff_service.create_staff(name, store_name, role_name)
    except UniformError as exc:
        _fail(exc)
    click.echo(f"PASS Created staff {staff.name} (ID: {staff.id})")


@staff_group.command('list')
@with_appcontext
def list_staff_cli():
    """List staff with remaining allowance for the current year."""
    rows = staff_service.list_staff()
    if not rows:
        click.echo("No staff found.")
        return

    click.echo(f"{'ID':<5} {'Name':<30} {'Store':<25} {'Role':<12} Remaining")
    click.echo("-" * 85)
    for row in rows:
        click.echo(
            f"{row['id']:<5} {row['name']:<30} {row['store_name']:<25} "
            f"{row['role']:<12} {row['remaining_allowance']}"
        )


@click.group('items')
def items_group():
    """Uniform stock commands."""


@items_group.command('create')
@click.option('--sku', required=True, help='SKU / EAN')
@click.option('--size', required=True, help='Size label, e.g. M or XXL')
@click.option('--name', 'item_name', required=True, help='Item name')
@click.option('--stock', type=int, default=0, show_default=True, help='Initial stock on hand')
@with_appcontext
def create_item_cli(sku, size, item_name, stock):
    try:
        item = inventory_service.create_uniform_item(sku, size, item_name, stock)
    except UniformError as exc:
        _fail(exc)
    click.echo(f"PASS Created item {item.item_name} ({item.size}) ID: {item.id}")


@items_group.command('set-stock')
@click.argument('item_id', type=int)
@click.argument('quantity', type=int)
@with_appcontext
def set_stock_cli(item_id, quantity):
    """Overwrite stock on hand after a physical count."""
    try:
        item = inventory_service.set_stock_on_hand(item_id, quantity)
    except UniformError as exc:
        _fail(exc)
    click.echo(f"PASS {item.item_name} ({item.size}) now has {item.stock_on_hand} on hand")


@items_group.command('list')
@with_appcontext
def list_items_cli():
    rows = inventory_service.list_uniform_items()
    if not rows:
        click.echo("No uniform items found.")
        return

    click.echo(f"{'ID':<5} {'SKU':<15} {'Size':<6} {'Name':<30} {'Stock':<6} Low")
    click.echo("-" * 75)
    for row in rows:
        low = "LOW" if row["is_low_stock"] else ""
        click.echo(
            f"{row['id']:<5} {row['sku']:<15} {row['size']:<6} {row['item_name']:<30} "
            f"{row['stock_on_hand']:<6} {low}"
        )


@click.group('settings')
def settings_group():
    """Allowance and cooldown configuration."""


@settings_group.command('cooldown')
@click.argument('days', type=int)
@with_appcontext
def set_cooldown_cli(days):
    """Set the global cooldown used by roles without their own override."""
    try:
        days = settings_service.update_cooldown_days(days)
    except UniformError as exc:
        _fail(exc)
    click.echo(f"PASS Global cooldown set to {days} days")


@settings_group.command('role-limit')
@click.argument('role_name')
@click.argument('annual_limit', type=int)
@with_appcontext
def set_role_limit_cli(role_name, annual_limit):
    try:
        result = staff_service.update_role_limit(role_name, annual_limit)
    except UniformError as exc:
        _fail(exc)
    click.echo(f"PASS {result['role']} annual limit set to {result['annual_limit']}")


@settings_group.command('role-cooldown')
@click.argument('role_name')
@click.argument('cooldown_days', type=int)
@with_appcontext
def set_role_cooldown_cli(role_name, cooldown_days):
    try:
        result = staff_service.update_role_cooldown(role_name, cooldown_days)
    except UniformError as exc:
        _fail(exc)
    click.echo(f"PASS {result['role']} cooldown set to {result['cooldown_days']} days")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(stores_group)
    app.cli.add_command(staff_group)
    app.cli.add_command(items_group)
    app.cli.add_command(settings_group)
