# Overview: Flask CLI command groups for schema, backup, export and settings maintenance.

# backend/wolo/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# Schema:
# - python -m flask db-schema ensure
#   Create missing tables/columns and apply pending schema steps (idempotent).
# - python -m flask db-schema status
#   List applied and pending schema steps.
#
# Backups:
# - python -m flask backup create
# - python -m flask backup list
# - python -m flask backup restore <path> --yes
#   Replace the live database with a backup file.
#
# Exports:
# - python -m flask export sales --start 2024-01-01 --end 2024-01-31 [--category "Health Care"]
# - python -m flask export inventory [--category "Health Care"]
#
# Settings:
# - python -m flask settings get low_stock_threshold
# - python -m flask settings set low_stock_threshold 5

import click
from flask.cli import with_appcontext

from .services import backup_service, export_service, settings_service
from .services.schema_service import ensure_schema, schema_status


def _fail(result) -> None:
    click.echo(f"FAIL {result.error_type}: {result.error}")
    raise SystemExit(1)


# =============================================================================
# SCHEMA COMMANDS
# =============================================================================

@click.group('db-schema')
def schema_group():
    """Schema manager commands."""


@schema_group.command('ensure')
@with_appcontext
def ensure_schema_cli():
    """Bring the database schema up to date."""
    click.echo("START Checking database schema...")
    report = ensure_schema()
    if not report.changed:
        click.echo("PASS Schema already up to date")
        return
    for version in report.applied_steps:
        click.echo(f"PASS Applied step {version}")
    for table in report.created_tables:
        click.echo(f"PASS Created table {table}")
    for column in report.added_columns:
        click.echo(f"PASS Added column {column}")
    for column in report.skipped_columns:
        click.echo(f"WARN Skipped column {column}")


@schema_group.command('status')
@with_appcontext
def schema_status_cli():
    """List applied and pending schema steps."""
    status = schema_status()
    click.echo("Applied: " + (", ".join(status["applied"]) or "-"))
    click.echo("Pending: " + (", ".join(status["pending"]) or "-"))


# =============================================================================
# BACKUP COMMANDS
# =============================================================================

@click.group('backup')
def backup_group():
    """Database backup and restore."""


@backup_group.command('create')
@with_appcontext
def create_backup_cli():
    result = backup_service.create_backup()
    if not result.success:
        _fail(result)
    click.echo(f"PASS Backup written to {result.data['path']} ({result.data['size_bytes']} bytes)")


@backup_group.command('list')
@with_appcontext
def list_backups_cli():
    result = backup_service.list_backups()
    if not result.success:
        _fail(result)
    if not result.data:
        click.echo("No backups found.")
        return

    click.echo("\n" + "=" * 80)
    click.echo(f"{'Name':<45} {'Size':>12} {'Modified'}")
    click.echo("=" * 80)
    for b in result.data:
        click.echo(f"{b['name']:<45} {b['size_bytes']:>12} {b['modified_at']}")
    click.echo("=" * 80 + "\n")


@backup_group.command('restore')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--yes', is_flag=True, help='Confirm replacing the live database')
@with_appcontext
def restore_backup_cli(path, yes):
    """Replace the live database with PATH."""
    if not yes:
        click.echo("FAIL Refusing to restore without --yes")
        raise SystemExit(1)
    result = backup_service.restore_backup(path)
    if not result.success:
        _fail(result)
    click.echo(f"PASS Restored from {result.data['path']}")


# =============================================================================
# EXPORT COMMANDS
# =============================================================================

@click.group('export')
def export_group():
    """Excel report exports."""


@export_group.command('sales')
@click.option('--start', 'start_date', help='Start date (YYYY-MM-DD)')
@click.option('--end', 'end_date', help='End date (YYYY-MM-DD)')
@click.option('--category', help='Only lines for this product category')
@with_appcontext
def export_sales_cli(start_date, end_date, category):
    result = export_service.export_sales_excel(start_date, end_date, category)
    if not result.success:
        _fail(result)
    click.echo(f"PASS Wrote {result.data['row_count']} rows to {result.data['path']}")


@export_group.command('inventory')
@click.option('--category', help='Only products in this category')
@with_appcontext
def export_inventory_cli(category):
    result = export_service.export_inventory_excel(category)
    if not result.success:
        _fail(result)
    click.echo(f"PASS Wrote {result.data['row_count']} rows to {result.data['path']}")


# =============================================================================
# SETTINGS COMMANDS
# =============================================================================

@click.group('settings')
def settings_group():
    """Read and write application settings."""


@settings_group.command('get')
@click.argument('key')
@with_appcontext
def get_setting_cli(key):
    result = settings_service.get_setting(key)
    if not result.success:
        _fail(result)
    if not result.data["found"]:
        click.echo(f"{key} is not set")
        return
    click.echo(f"{key} = {result.data['value']}")


@settings_group.command('set')
@click.argument('key')
@click.argument('value')
@with_appcontext
def set_setting_cli(key, value):
    result = settings_service.set_setting(key, value)
    if not result.success:
        _fail(result)
    click.echo(f"PASS {result.data['key']} = {result.data['value']}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(schema_group)
    app.cli.add_command(backup_group)
    app.cli.add_command(export_group)
    app.cli.add_command(settings_group)
