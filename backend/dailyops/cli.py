# Overview: Flask CLI command groups for daily demand, billing previews and reconciliation review.

# backend/dailyops/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# Demand:
# - python -m flask demand compute [--date 2026-10-16]
#   Store ordered_qty for every active product (safe to re-run).
#
# Billing:
# - python -m flask bills preview --customer-id 7 --start 2026-10-01 --end 2026-10-31
#   Show what a generated bill would contain, without writing anything.
#
# Reconciliation:
# - python -m flask verification overview [--date 2026-10-16]
#   List the day's deliveries and cash reports awaiting verification.

import click
from flask.cli import with_appcontext

from .services import billing_service, demand_service, reconciliation_service
from .validation import ConflictError, NotFoundError, ValidationError, optional_day


def _day_option(value):
    try:
        return optional_day(value, "--date")
    except ValidationError as e:
        raise click.BadParameter(str(e))


def _rupees(paise) -> str:
    return f"{(paise or 0) / 100:.2f}"


@click.group('demand')
def demand_group():
    """Daily demand commands."""


@demand_group.command('compute')
@click.option('--date', 'date_str', default=None, help='Business day (YYYY-MM-DD), default today')
@click.option('--actor', default=demand_service.SYSTEM_ACTOR, help='Recorded as last_updated_by')
@with_appcontext
def compute_demand(date_str, actor):
    """Calculate and store ordered_qty for every active product."""
    day = _day_option(date_str)
    count = demand_service.store_daily_demand(day, actor=actor)
    records, _ = demand_service.get_daily_inventory(day, actor=actor)

    click.echo(f"PASS Stored demand for {count} products")
    for record in records:
        click.echo(f"  {record.product.name:<30} ordered={record.ordered_qty}")


@click.group('bills')
def bills_group():
    """Billing inspection commands."""


@bills_group.command('preview')
@click.option('--customer-id', type=int, required=True)
@click.option('--start', 'start_date', required=True, help='YYYY-MM-DD')
@click.option('--end', 'end_date', required=True, help='YYYY-MM-DD')
@click.option('--with-delivery-charges', is_flag=True, default=False)
@with_appcontext
def preview_bill(customer_id, start_date, end_date, with_delivery_charges):
    """Preview a bill without generating it."""
    try:
        preview = billing_service.preview_bill(
            customer_id=customer_id,
            start_date=start_date,
            end_date=end_date,
            include_delivery_charges=with_delivery_charges,
        )
    except (ValidationError, NotFoundError, ConflictError) as e:
        raise click.ClickException(str(e))

    click.echo(f"Customer: {preview['customer']['full_name']}")
    click.echo(f"Period:   {preview['start_date']} to {preview['end_date']}")
    if not preview["deliveries_count"]:
        click.echo("WARN  No unbilled deliveries found for the selected period")
        return

    for item in preview["product_summary"]:
        click.echo(
            f"  {item['product_name']:<30} qty={item['total_quantity']:<6} "
            f"unit={_rupees(item['unit_price_paise']):>10} amount={_rupees(item['total_amount_paise']):>10}"
        )
    click.echo(f"Deliveries:       {preview['deliveries_count']}")
    click.echo(f"Subtotal:         {_rupees(preview['total_amount_paise'])}")
    if with_delivery_charges:
        click.echo(f"Delivery charges: {_rupees(preview['delivery_charges_paise'])}")
    click.echo(f"Grand total:      {_rupees(preview['grand_total_paise'])}")


@click.group('verification')
def verification_group():
    """End-of-day reconciliation commands."""


@verification_group.command('overview')
@click.option('--date', 'date_str', default=None, help='Business day (YYYY-MM-DD), default today')
@with_appcontext
def verification_overview(date_str):
    """List the day's deliveries and cash reports."""
    overview = reconciliation_service.get_daily_deliveries_overview(_day_option(date_str))

    status = "VERIFIED" if overview["verified"] else "PENDING"
    click.echo(f"Day {overview['day']} ({status})")
    if not overview["deliveries"]:
        click.echo("  No deliveries recorded")
    for line in overview["deliveries"]:
        collected = "collected" if line["is_collected"] else "pending"
        click.echo(
            f"  worker={line['worker_name']:<20} customer={line['customer_name']:<20} "
            f"{line['product_name']:<20} qty={line['delivered_quantity']:<5} "
            f"bill={_rupees(line['bill']):>10} {collected}"
        )
    for cash in overview["cash"]:
        actual = _rupees(cash["actual_paise"]) if cash["actual_paise"] is not None else "-"
        click.echo(f"  cash worker={cash['worker_name']:<20} reported={_rupees(cash['reported_paise'])} actual={actual}")
    click.echo(f"Total billed: {_rupees(overview['total_bill_paise'])}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(demand_group)
    app.cli.add_command(bills_group)
    app.cli.add_command(verification_group)
