# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/boutique_pos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables and the default employees.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Employees:
# - python -m flask employees list
# - python -m flask employees create --name "Sara" --role staff
#
# Catalog:
# - python -m flask products list [--search abaya] [--low-stock]
#
# Document numbering:
# - python -m flask sequences show

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .services import employee_service, products_service
from .services.document_service import list_sequences
from .services.inventory_service import list_low_stock
from .validation import ConflictError, ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize the boutique database.

    Creates:
    - All tables (if missing)
    - Default employees: Abdulrahman (manager), Heba, Hadeel
    """
    click.echo("START Initializing boutique POS...")

    db.create_all()
    click.echo("PASS Tables ready")

    created = employee_service.ensure_default_employees()
    if created:
        for employee in created:
            click.echo(f"PASS Created employee: {employee.name} ({employee.role})")
    else:
        click.echo("PASS Default employees already present")

    click.echo(f"DONE Invoice numbers start at {current_app.config['INVOICE_NUMBER_START']}")


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


@click.group('employees')
def employees_group():
    """Employee roster commands."""


@employees_group.command('list')
@with_appcontext
def list_employees_cli():
    """List all employees."""
    employees = employee_service.list_employees()
    if not employees:
        click.echo("No employees found.")
        return

    click.echo("\n" + "=" * 50)
    click.echo(f"{'ID':<5} {'Name':<30} {'Role'}")
    click.echo("=" * 50)
    for employee in employees:
        click.echo(f"{employee.id:<5} {employee.name:<30} {employee.role}")
    click.echo("=" * 50 + "\n")


@employees_group.command('create')
@click.option('--name', prompt=True, help='Employee display name')
@click.option('--role', type=click.Choice(['staff', 'manager']), default='staff', show_default=True)
@with_appcontext
def create_employee_cli(name, role):
    """Add an employee to the roster."""
    try:
        employee = employee_service.create_employee(name=name, role=role)
    except (ValidationError, ConflictError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created employee: {employee.name} (ID: {employee.id}, Role: {employee.role})")


@click.group('products')
def products_group():
    """Catalog inspection commands."""


@products_group.command('list')
@click.option('--search', default=None, help='Filter by code, name or brand')
@click.option('--limit', type=int, default=50, show_default=True)
@click.option('--low-stock', is_flag=True, help='Only list variants below the low-stock threshold')
@with_appcontext
def list_products_cli(search, limit, low_stock):
    """List products with their total stock."""
    if low_stock:
        rows = list_low_stock(limit=limit)
        if not rows:
            click.echo("No low-stock variants.")
            return
        click.echo(f"{'Code':<20} {'Color':<15} {'Size':<8} {'Qty'}")
        for row in rows:
            click.echo(f"{row['product_code']:<20} {row['color_name']:<15} {row['size_label']:<8} {row['quantity']}")
        return

    products = products_service.list_products(search=search, limit=limit)
    if not products:
        click.echo("No products found.")
        return

    click.echo("\n" + "=" * 90)
    click.echo(f"{'ID':<5} {'Code':<20} {'Name':<30} {'Store':>10} {'Online':>10} {'Stock':>8}")
    click.echo("=" * 90)
    for product in products:
        store = product.store_price_cents if product.store_price_cents is not None else "-"
        online = product.online_price_cents if product.online_price_cents is not None else "-"
        click.echo(
            f"{product.id:<5} {product.product_code:<20} {(product.name or '')[:30]:<30} "
            f"{store:>10} {online:>10} {product.total_stock():>8}"
        )
    click.echo("=" * 90 + "\n")


@click.group('sequences')
def sequences_group():
    """Document numbering inspection."""


@sequences_group.command('show')
@with_appcontext
def show_sequences_cli():
    """Show the next number each document type will receive."""
    rows = list_sequences()
    if not rows:
        click.echo("No document numbers allocated yet.")
        return
    for row in rows:
        click.echo(f"{row['document_type']:<10} next={row['next_number']}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(employees_group)
    app.cli.add_command(products_group)
    app.cli.add_command(sequences_group)
