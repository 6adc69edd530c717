# Overview: Flask CLI command groups for bootstrap, catalog upkeep, and order inspection.

# backend/orderdesk/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to orderdesk (PowerShell: $env:FLASK_APP="orderdesk").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (idempotent). Use "flask db upgrade" for migrated deployments.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Catalog:
# - python -m flask catalog add --id prod_001 --name "Glow Serum" --price-cents 3500 --stock 15
#   Create a product with opening stock.
# - python -m flask catalog receive prod_001 10
#   Add delivered units to a product's stock.
# - python -m flask catalog list [--all]
#   List products with available stock.
#
# Orders:
# - python -m flask orders list --status pending-payment --limit 20
#   List recent orders, newest first.
# - python -m flask orders show ORD-00042
#   Show one order with items and payments.
# - python -m flask orders receivables [--as-of 2026-11-01]
#   Accounts receivable aged against due dates.

from __future__ import annotations

import click
from flask.cli import with_appcontext

from .errors import OrderDeskError
from .extensions import db
from .services import catalog_service, order_service, receivables_service
from .services.ledger_service import get_order_events
from .services.order_schemas import OrderFilter
from .validation import parse_date


def _money(cents: int | None) -> str:
    if cents is None:
        return "-"
    return f"{cents / 100:,.2f}"


# =============================================================================
# SYSTEM COMMANDS
# =============================================================================

@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables ready.")


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

    click.echo("PASS Database reset complete.")


# =============================================================================
# CATALOG COMMANDS
# =============================================================================

@click.group('catalog')
def catalog_group():
    """Catalog and stock commands."""


@catalog_group.command('add')
@click.option('--id', 'product_id', required=True, help='Product code (e.g. prod_001)')
@click.option('--name', required=True, help='Product name')
@click.option('--price-cents', type=int, required=True, help='Unit price in cents')
@click.option('--category', default=None, help='Catalog category')
@click.option('--image', default=None, help='Image URL')
@click.option('--stock', type=int, default=0, show_default=True, help='Opening stock')
@with_appcontext
def add_product_cli(product_id, name, price_cents, category, image, stock):
    """Create a product with opening stock."""
    payload = {"id": product_id, "name": name, "price_cents": price_cents}
    if category:
        payload["category"] = category
    if image:
        payload["image"] = image

    try:
        product = catalog_service.create_product(payload, initial_stock=stock)
    except OrderDeskError as e:
        click.echo(f"FAIL {e.message}")
        return

    click.echo(f"PASS Created product {product.id} ({product.name}), stock {stock}")


@catalog_group.command('receive')
@click.argument('product_id')
@click.argument('quantity', type=int)
@with_appcontext
def receive_stock_cli(product_id, quantity):
    """Add delivered units to a product's stock."""
    try:
        entry = catalog_service.receive_stock(product_id, quantity)
    except OrderDeskError as e:
        click.echo(f"FAIL {e.message}")
        return

    click.echo(f"PASS {product_id}: {entry.quantity_available} available")


@catalog_group.command('list')
@click.option('--all', 'include_inactive', is_flag=True, help='Include inactive products')
@with_appcontext
def list_products_cli(include_inactive):
    """List products with available stock."""
    products = catalog_service.list_products(include_inactive=include_inactive)
    if not products:
        click.echo("No products found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<16} {'Name':<30} {'Price':>12} {'Stock':>8} {'Active':<6}")
    click.echo("="*80)
    for p in products:
        qty = p.stock.quantity_available if p.stock else 0
        active_str = "Yes" if p.is_active else "No"
        click.echo(f"{p.id:<16} {p.name[:30]:<30} {_money(p.price_cents):>12} {qty:>8} {active_str:<6}")
    click.echo("="*80 + "\n")


# =============================================================================
# ORDER COMMANDS
# =============================================================================

@click.group('orders')
def orders_group():
    """Order inspection commands."""


@orders_group.command('list')
@click.option('--status', default=None, help='pending-approval, pending-payment, paid, cancelled')
@click.option('--source', default=None, help='pos or online-store')
@click.option('--limit', type=int, default=20, show_default=True)
@with_appcontext
def list_orders_cli(status, source, limit):
    """List recent orders, newest first."""
    try:
        order_filter = OrderFilter.from_args({"status": status, "source": source, "limit": limit})
    except OrderDeskError as e:
        click.echo(f"FAIL {e.message}")
        return

    orders = order_service.list_orders(order_filter)
    if not orders:
        click.echo("No orders found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'Display ID':<14} {'Created':<22} {'Source':<13} {'Status':<17} {'Total':>12} {'Balance':>12}")
    click.echo("="*100)
    for o in orders:
        created = o.created_at.strftime("%Y-%m-%d %H:%M") if o.created_at else "-"
        click.echo(
            f"{o.display_id:<14} {created:<22} {o.source.value:<13} {o.status.value:<17} "
            f"{_money(o.total_cents):>12} {_money(o.balance_cents):>12}"
        )
    click.echo("="*100 + "\n")


@orders_group.command('show')
@click.argument('ref')
@with_appcontext
def show_order_cli(ref):
    """Show one order (internal id or display id) with items, payments and history."""
    try:
        order = order_service.get_order(ref)
    except OrderDeskError as e:
        click.echo(f"FAIL {e.message}")
        return

    click.echo(f"\nOrder {order.display_id} (id {order.id})")
    click.echo(f"  Status:   {order.status.value}")
    click.echo(f"  Source:   {order.source.value}")
    click.echo(f"  Customer: {order.customer_name or '-'} {order.customer_phone or ''}")
    click.echo(f"  Method:   {order.payment_method.value}")
    if order.payment_due_date:
        click.echo(f"  Due:      {order.payment_due_date.isoformat()}")

    click.echo("\n  Items:")
    for item in order.items:
        click.echo(
            f"    {item.quantity:>4} x {item.name[:30]:<30} {_money(item.unit_price_cents):>10} "
            f"= {_money(item.line_total_cents):>10}"
        )
    click.echo(f"  Shipping: {_money(order.shipping_cost_cents)}")
    click.echo(f"  Total:    {_money(order.total_cents)}")
    click.echo(f"  Paid:     {_money(order.amount_paid_cents)}")
    click.echo(f"  Balance:  {_money(order.balance_cents)}")

    if order.payments:
        click.echo("\n  Payments:")
        for p in order.payments:
            click.echo(f"    {p.paid_at:%Y-%m-%d %H:%M}  {p.method.value:<9} {_money(p.amount_cents):>10}  {p.reference or ''}")

    click.echo("\n  History:")
    for ev in get_order_events(order.id):
        click.echo(f"    {ev.occurred_at:%Y-%m-%d %H:%M}  {ev.event_type.value:<24} {ev.from_status or '-'} -> {ev.to_status}")
    click.echo("")


@orders_group.command('receivables')
@click.option('--as-of', default=None, help='Aging date (YYYY-MM-DD), default today')
@with_appcontext
def receivables_cli(as_of):
    """Accounts receivable aged against due dates."""
    try:
        report = receivables_service.list_receivables(parse_date(as_of, "as_of"))
    except OrderDeskError as e:
        click.echo(f"FAIL {e.message}")
        return

    if not report["receivables"]:
        click.echo("No outstanding receivables.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'Display ID':<14} {'Customer':<26} {'Due':<12} {'Aging':<10} {'Balance':>12}")
    click.echo("="*90)
    for row in report["receivables"]:
        click.echo(
            f"{row['display_id']:<14} {(row['customer_name'] or '-')[:26]:<26} "
            f"{row['payment_due_date'] or '-':<12} {row['aging']:<10} {_money(row['balance_cents']):>12}"
        )
    click.echo("="*90)
    click.echo(f"Outstanding: {_money(report['total_outstanding_cents'])} across {report['count']} order(s)\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(catalog_group)
    app.cli.add_command(orders_group)
