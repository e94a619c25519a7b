"""
CLI commands for the installation journal.

Thin wrappers over ``InstallationTracker``.
"""

from __future__ import annotations

import json
import sys

import click

from stackmatch.core.errors import RollbackError, StackmatchError
from stackmatch.ui.cli.common import fail, get_orchestrator, get_runner, get_tracker

_STATUS_COLORS = {
    "completed": "green",
    "rolled_back": "cyan",
    "in_progress": "yellow",
    "rolling_back": "yellow",
    "failed": "red",
    "rollback_failed": "red",
}


@click.group()
def history() -> None:
    """History: list, show and roll back tracked installs."""


@history.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_(ctx: click.Context, as_json: bool) -> None:
    """List installation records, oldest first."""
    records = get_tracker(ctx).list_installations()

    if as_json:
        click.echo(json.dumps([r.model_dump(mode="json") for r in records], indent=2))
        return

    if not records:
        click.echo("No installations recorded.")
        return

    click.secho(f"📜 Installations ({len(records)}):", fg="cyan", bold=True)
    for record in records:
        when = record.timestamp.strftime("%Y-%m-%d %H:%M:%S")
        click.echo(f"   {record.id}  {when}  ", nl=False)
        click.secho(f"{record.status:<16}", fg=_STATUS_COLORS.get(record.status, "white"), nl=False)
        click.echo(f" {len(record.packages)} package(s)")


@history.command()
@click.argument("record_id")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def show(ctx: click.Context, record_id: str, as_json: bool) -> None:
    """Show one installation record."""
    record = get_tracker(ctx).get_installation(record_id)
    if record is None:
        fail(f"installation record not found: {record_id}")

    if as_json:
        click.echo(json.dumps(record.model_dump(mode="json"), indent=2))
        return

    click.secho(f"📜 {record.id}", fg="cyan", bold=True)
    click.echo(f"   Updated: {record.timestamp.isoformat()}")
    click.echo("   Status:  ", nl=False)
    click.secho(str(record.status), fg=_STATUS_COLORS.get(record.status, "white"))
    for key, value in record.metadata.items():
        click.echo(f"   {key}: {value}")
    if record.packages:
        click.secho("   Packages:", fg="white", bold=True)
        for pkg in record.packages.values():
            suffix = f"  [{pkg.rollback_status}]" if pkg.rollback_status else ""
            click.echo(f"     • {pkg.name} {pkg.version} ({pkg.manager_type}){suffix}")


@history.command()
@click.argument("record_id")
@click.pass_context
def rollback(ctx: click.Context, record_id: str) -> None:
    """Uninstall every package a recorded install added, newest first."""
    from stackmatch.core.services.installer.detection.detector import create_package_manager

    tracker = get_tracker(ctx)
    record = tracker.get_installation(record_id)
    if record is None:
        fail(f"installation record not found: {record_id}")

    manager = ctx.obj.get("manager")
    types = {p.manager_type for p in record.packages.values() if p.manager_type}
    if manager is None and len(types) == 1:
        manager = create_package_manager(types.pop(), get_runner(ctx))

    try:
        if manager is None:
            manager = get_orchestrator(ctx).manager
        tracker.rollback(record_id, manager)
    except RollbackError as e:
        click.secho(f"⚠️  {e}", fg="yellow", err=True)
        sys.exit(1)
    except StackmatchError as e:
        fail(str(e))

    click.secho(f"✅ Rolled back {record_id} ({len(record.packages)} package(s))", fg="green")
