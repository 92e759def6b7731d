# Overview: Flask CLI command groups for bootstrap, backup, mirror sync and reports.

# backend/erp_master/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create the storage table if needed and seed the first-run document
#   (pulls from the mirror first when one is configured and the catalog is empty).
# - python -m flask system reset --yes
#   Replace the document with first-run defaults (deletes all business data).
# - python -m flask system status
#   Show document counts, last modification and sync bookkeeping.
#
# Backup:
# - python -m flask backup export backup.json
# - python -m flask backup restore backup.json --yes
#
# Remote mirror:
# - python -m flask sync test
# - python -m flask sync push
# - python -m flask sync pull --yes
#
# Reports:
# - python -m flask reports statements
# - python -m flask reports z-report

import json

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .services import export_service, reporting_service
from .services.audit_service import append_audit_log
from .services.document_store import get_document_store
from .services.mirror_service import MirrorError
from .time_utils import from_ms, to_utc_z


def _echo_json(data: dict) -> None:
    click.echo(json.dumps(data, indent=2))


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Idempotent bootstrap: storage table, first-run document, optional mirror recovery."""
    click.echo("START Initializing ERP Master...")
    db.create_all()

    store = get_document_store()
    document = store.load()
    click.echo(f"PASS Document '{store.key}' ready ({len(document.accounts)} accounts, {len(document.users)} users)")

    if current_app.config["MIRROR_RECOVER_ON_START"] and store.recover_from_mirror():
        document = store.snapshot()
        click.echo(f"PASS Recovered {len(document.products)} products from the {store.mirror_backend} mirror")

    click.echo("DONE")


@system_group.command('reset')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_system(yes):
    """
    DANGER: Replace the document with first-run defaults.

    This will DELETE ALL business data!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    get_document_store().reset()
    click.echo("PASS Document reset to first-run defaults")


@system_group.command('status')
@with_appcontext
def system_status():
    """Show what the stored document holds."""
    store = get_document_store()
    document = store.snapshot()
    sync = document.settings.sync_settings
    _echo_json({
        "key": store.key,
        "business": document.settings.business_name,
        "lastModified": to_utc_z(from_ms(document.last_modified)) if document.last_modified else None,
        "counts": {
            "products": len(document.products),
            "transactions": len(document.transactions),
            "customers": len(document.customers),
            "suppliers": len(document.suppliers),
            "expenses": len(document.expenses),
            "stockAdjustments": len(document.stock_adjustments),
            "auditLogs": len(document.audit_logs),
            "accounts": len(document.accounts),
            "users": len(document.users),
        },
        "sync": {
            "backend": store.mirror_backend,
            "autoSyncCloud": sync.auto_sync_cloud,
            "dataVersion": sync.data_version,
            "lastSyncedAt": to_utc_z(from_ms(sync.last_synced_at)) if sync.last_synced_at else None,
        },
    })


@click.group('backup')
def backup_group():
    """Full-document JSON backup and restore."""


@backup_group.command('export')
@click.argument('path', type=click.Path(dir_okay=False, writable=True))
@with_appcontext
def export_backup(path):
    document = get_document_store().snapshot()
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(export_service.backup_json(document))
    click.echo(f"PASS Wrote backup to {path}")


@backup_group.command('restore')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def restore_backup(path, yes):
    """Replace the whole document with the contents of a backup file."""
    if not yes:
        click.confirm("WARN This replaces ALL current data with the backup. Continue?", abort=True)

    with open(path, "rb") as fh:
        document = export_service.parse_backup(fh.read())
    append_audit_log(document, "Data Restore", "System data restored from backup")
    get_document_store().replace(document)
    click.echo(f"PASS Restored {len(document.products)} products, {len(document.transactions)} transactions")


@click.group('sync')
def sync_group():
    """Remote mirror commands."""


@sync_group.command('test')
@with_appcontext
def sync_test():
    try:
        backend = get_document_store().test_mirror()
    except MirrorError as e:
        raise click.ClickException(f"{type(e).__name__}: {e}")
    click.echo(f"PASS {backend} mirror reachable")


@sync_group.command('push')
@with_appcontext
def sync_push():
    try:
        remote_id = get_document_store().push_now()
    except MirrorError as e:
        raise click.ClickException(f"{type(e).__name__}: {e}")
    click.echo(f"PASS Pushed document (remote id: {remote_id})")


@sync_group.command('pull')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def sync_pull(yes):
    """Replace the local document with the mirror's copy."""
    if not yes:
        click.confirm("WARN This replaces ALL local data with the mirror's copy. Continue?", abort=True)
    try:
        document = get_document_store().pull()
    except MirrorError as e:
        raise click.ClickException(f"{type(e).__name__}: {e}")
    if document is None:
        raise click.ClickException("The mirror holds no document yet")
    click.echo(f"PASS Pulled {len(document.products)} products, {len(document.transactions)} transactions")


@click.group('reports')
def reports_group():
    """Read-only financial reports."""


@reports_group.command('statements')
@with_appcontext
def report_statements():
    statements = reporting_service.financial_statements(get_document_store().snapshot())
    _echo_json(statements.to_dict())
    if not statements.is_balanced:
        click.echo(f"WARN Balance sheet is out of balance by {statements.discrepancy}", err=True)


@reports_group.command('z-report')
@with_appcontext
def report_z():
    report = reporting_service.z_report(
        get_document_store().snapshot(),
        utc_offset_minutes=current_app.config["BUSINESS_UTC_OFFSET_MINUTES"],
    )
    _echo_json(report.to_dict())


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(backup_group)
    app.cli.add_command(sync_group)
    app.cli.add_command(reports_group)
