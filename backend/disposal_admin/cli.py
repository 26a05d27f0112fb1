# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/disposal_admin/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (idempotent; use migrations in production).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Document inspection/repair:
# - python -m flask documents statuses invoice
#   Print the status table (edges, locks, timestamps) for one entity type.
# - python -m flask documents verify-totals [--fix]
#   Recompute every invoice/estimate totals snapshot; report (or repair) stale rows.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Estimate, Invoice
from .services.document_service import recompute_totals
from .status_registry import REGISTRY, INITIAL_STATUS, rule_for, statuses


# Totals differing by less than this are float noise, not drift
TOTALS_TOLERANCE = 1e-6


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Tables created.")


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


@click.group('documents')
def documents_group():
    """Document inspection and repair commands."""


@documents_group.command('statuses')
@click.argument('entity_type', type=click.Choice(sorted(REGISTRY)))
def show_statuses(entity_type):
    """Print the status table for one entity type."""
    click.echo(f"{entity_type} (initial: {INITIAL_STATUS[entity_type]})")
    for status in statuses(entity_type):
        rule = rule_for(entity_type, status)
        editable = rule.editable if isinstance(rule.editable, str) else ", ".join(sorted(rule.editable))
        next_statuses = ", ".join(sorted(rule.next_statuses)) or "(terminal)"
        click.echo(f"  {status}")
        click.echo(f"    next:      {next_statuses}")
        click.echo(f"    editable:  {editable}")
        if rule.locked:
            click.echo(f"    locked:    {', '.join(sorted(rule.locked))}")
        for collection, policy in sorted(rule.children.items()):
            shown = policy if isinstance(policy, str) else ", ".join(sorted(policy))
            click.echo(f"    {collection}: {shown}")
        if rule.entry_timestamp:
            click.echo(f"    stamps:    {rule.entry_timestamp}")


def _snapshot(document) -> dict:
    return {
        name: getattr(document, name)
        for name in ("subtotal", "discount_amount", "tax_amount", "adjustments_total", "total_amount", "balance_due")
    }


@documents_group.command('verify-totals')
@click.option('--fix', is_flag=True, help='Write recomputed totals back')
@with_appcontext
def verify_totals(fix):
    """Recompute every invoice and estimate; list rows whose stored totals drifted."""
    stale = 0
    checked = 0
    for model in (Invoice, Estimate):
        for document in db.session.query(model).order_by(model.id).all():
            checked += 1
            before = _snapshot(document)
            recompute_totals(document)
            after = _snapshot(document)
            drift = {
                name: (before[name], after[name])
                for name in before
                if abs((before[name] or 0.0) - after[name]) > TOTALS_TOLERANCE
            }
            if drift:
                stale += 1
                number = getattr(document, model.NUMBER_FIELD)
                details = ", ".join(f"{k}: {old} -> {new}" for k, (old, new) in drift.items())
                click.echo(f"FAIL {number}: {details}")

    if fix and stale:
        db.session.commit()
        click.echo(f"PASS Repaired {stale} of {checked} documents.")
    else:
        db.session.rollback()
        click.echo(f"{'WARN' if stale else 'PASS'} {stale} of {checked} documents have stale totals.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(documents_group)
