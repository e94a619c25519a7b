"""
stackmatch: CLI entrypoint.

Usage:
    stackmatch scan
    stackmatch export env.json
    stackmatch import env.json --match-versions
    stackmatch install git nodejs --version python3=">=3.10"
    stackmatch history list
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from stackmatch import __version__
from stackmatch.core.errors import BatchInstallError, StackmatchError
from stackmatch.core.observability.logging_config import (
    ENV_LOG_FILE,
    ENV_LOG_FILE_LEVEL,
    resolve_level,
    setup_logging,
)
from stackmatch.ui.cli.common import (
    fail,
    get_orchestrator,
    get_runner,
    get_settings,
    get_tracker,
)


@click.group()
@click.version_option(version=__version__, prog_name="stackmatch")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to config.yml (default: ~/.config/stackmatch/config.yml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """stackmatch: scan a dev environment and replay it on another machine."""
    ctx.ensure_object(dict)
    ctx.obj["quiet"] = quiet
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get(ENV_LOG_FILE),
        log_file_level=os.environ.get(ENV_LOG_FILE_LEVEL),
    )


def _parse_versioned(specs: tuple[str, ...]) -> dict[str, str]:
    versioned: dict[str, str] = {}
    for spec in specs:
        pkg, sep, constraint = spec.partition("=")
        if not sep or not pkg.strip():
            raise click.BadParameter(f"expected PKG=CONSTRAINT, got {spec!r}", param_hint="--version")
        versioned[pkg.strip()] = constraint.strip()
    return versioned


def _progress(index: int, total: int, pkg: str) -> None:
    click.echo(f"   [{index}/{total}] {pkg}")


def _print_batch(result, record_id: str | None = None) -> None:
    for pkg in result.installed:
        click.secho(f"   ✅ {pkg}", fg="green")
    for pkg in result.skipped:
        click.echo(f"   ℹ️  {pkg} already installed")
    for pkg, error in result.failed.items():
        click.secho(f"   ❌ {pkg}: {error}", fg="red")
    if record_id:
        click.echo(f"\n   Record: {record_id}")


def _run_batch(
    ctx: click.Context,
    pkgs: list[str],
    versioned: dict[str, str],
    *,
    verify: bool,
    track: bool,
    as_json: bool,
    environment=None,
) -> None:
    orchestrator = get_orchestrator(ctx, progress=None if as_json else _progress)
    record_id = None
    try:
        if track:
            record_id, result = orchestrator.install_tracked(
                get_tracker(ctx), pkgs, versioned, environment, verify=verify,
            )
        else:
            result = orchestrator.install_packages(pkgs, versioned, verify=verify)
    except BatchInstallError as e:
        if as_json:
            payload = e.result.model_dump(mode="json") if e.result else {}
            click.echo(json.dumps({**payload, "record_id": e.record_id}, indent=2))
            sys.exit(1)
        if e.result is not None:
            _print_batch(e.result, e.record_id)
        fail(str(e))
    except StackmatchError as e:
        fail(str(e))

    if as_json:
        click.echo(json.dumps({**result.model_dump(mode="json"), "record_id": record_id}, indent=2))
        return

    click.secho(f"\n📦 {orchestrator.manager.name}:", fg="cyan", bold=True)
    _print_batch(result, record_id)


# ── Scan / export ───────────────────────────────────────────────


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def scan(ctx: click.Context, as_json: bool) -> None:
    """Scan installed tools, languages, editors and package managers."""
    from stackmatch.core.services.scanner import scan_environment

    data = scan_environment(get_runner(ctx))

    if as_json:
        click.echo(json.dumps(data.model_dump(mode="json"), indent=2))
        return

    click.secho(f"\n🖥️  {data.system.hostname} ({data.system.os}/{data.system.arch})", fg="cyan", bold=True)
    for title, items in (
        ("Languages", data.configured_languages),
        ("Tools", data.tools),
        ("Package managers", data.package_managers),
        ("Editors", data.code_editors),
    ):
        if not items:
            continue
        click.secho(f"   {title}:", fg="white", bold=True)
        for name, version in items.items():
            click.echo(f"     • {name:<16} {version}")
    if data.config_files:
        click.secho("   Config files:", fg="white", bold=True)
        for path in data.config_files:
            click.echo(f"     • {path}")
    click.echo()


@cli.command()
@click.argument("file", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_context
def export(ctx: click.Context, file: Path) -> None:
    """Scan this machine and write the snapshot to FILE."""
    from stackmatch.core.services.exporter import write_environment
    from stackmatch.core.services.scanner import scan_environment

    data = scan_environment(get_runner(ctx))
    try:
        write_environment(data, file)
    except StackmatchError as e:
        fail(str(e))
    click.secho(f"✅ Environment exported to {file}", fg="green")


@cli.command("import")
@click.argument("file", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--match-versions", is_flag=True, help="Pin each package to the snapshot's version.")
@click.option("--verify", is_flag=True, help="Check every package after installing.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def import_(ctx: click.Context, file: Path, match_versions: bool, verify: bool, as_json: bool) -> None:
    """Install what a snapshot FILE lists (tracked, can be rolled back)."""
    from stackmatch.core.services.exporter import packages_from_environment, read_environment

    try:
        env = read_environment(file)
    except StackmatchError as e:
        fail(str(e))

    pkgs, versioned = packages_from_environment(env, match_versions=match_versions)
    if not pkgs and not versioned:
        click.secho("⚠️  Snapshot lists nothing installable", fg="yellow")
        return

    _run_batch(
        ctx, pkgs, versioned,
        verify=verify, track=True, as_json=as_json, environment=env,
    )


# ── Packages ────────────────────────────────────────────────────


@cli.command()
@click.argument("packages", nargs=-1)
@click.option(
    "--version", "versions", multiple=True, metavar="PKG=CONSTRAINT",
    help="Install PKG constrained to a version (repeatable).",
)
@click.option("--verify", is_flag=True, help="Check every package after installing.")
@click.option("--no-track", is_flag=True, help="Do not journal this install.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(
    ctx: click.Context,
    packages: tuple[str, ...],
    versions: tuple[str, ...],
    verify: bool,
    no_track: bool,
    as_json: bool,
) -> None:
    """Install PACKAGES by logical name (e.g. nodejs, python3, git)."""
    versioned = _parse_versioned(versions)
    if not packages and not versioned:
        raise click.UsageError("Nothing to install.")

    _run_batch(
        ctx, list(packages), versioned,
        verify=verify, track=not no_track, as_json=as_json,
    )


@cli.command()
@click.argument("package")
@click.option("--constraint", default="", help="Version constraint, e.g. '>=1.2' or '1.x'.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def check(ctx: click.Context, package: str, constraint: str, as_json: bool) -> None:
    """Show the installed version of PACKAGE."""
    orchestrator = get_orchestrator(ctx)
    try:
        info = orchestrator.check_version(package, constraint)
    except StackmatchError as e:
        fail(str(e))

    if as_json:
        click.echo(json.dumps(info.model_dump(mode="json"), indent=2))
        return

    if not info.installed:
        click.secho(f"❌ {info.name} is not installed", fg="yellow")
        sys.exit(1)

    click.echo(f"📦 {info.name} {info.installed_version}")
    if constraint:
        if info.satisfies_constraint:
            click.secho(f"   ✅ satisfies {constraint}", fg="green")
        else:
            click.secho(f"   ❌ does not satisfy {constraint}", fg="red")
            sys.exit(1)


@cli.command()
@click.pass_context
def update(ctx: click.Context) -> None:
    """Refresh the package index and upgrade installed packages."""
    orchestrator = get_orchestrator(ctx)
    try:
        orchestrator.update_package_manager()
    except StackmatchError as e:
        fail(str(e))
    click.secho(f"✅ {orchestrator.manager.name} updated", fg="green")


# ── Managers / mappings ─────────────────────────────────────────


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def managers(ctx: click.Context, as_json: bool) -> None:
    """List this OS's package managers in preference order."""
    from stackmatch.core.services.installer.detection.detector import (
        current_os,
        preferred_managers,
    )

    candidates = ctx.obj.get("managers") or preferred_managers(runner=get_runner(ctx))
    rows = [
        {"name": m.name, "type": str(m.type), "available": m.is_available()}
        for m in candidates
    ]
    selected = next((r["name"] for r in rows if r["available"]), None)

    if as_json:
        click.echo(json.dumps({"os": current_os(), "managers": rows, "selected": selected}, indent=2))
        return

    click.secho(f"📦 Package managers ({current_os()}):", fg="cyan", bold=True)
    for row in rows:
        icon = "✅" if row["available"] else "❌"
        marker = " ← selected" if row["name"] == selected else ""
        click.echo(f"   {icon} {row['name']}{marker}")
    if selected is None:
        click.secho("⚠️  No supported package manager found", fg="yellow")


@cli.command()
@click.pass_context
def mappings(ctx: click.Context) -> None:
    """Show logical package names and their per-manager names."""
    from stackmatch.core.services.installer.data.mappings import get_package_manager_name

    try:
        table = get_settings(ctx).mapping_table()
    except StackmatchError as e:
        fail(str(e))

    for mapping in table.all_mappings():
        click.secho(f"📦 {mapping.name}", fg="cyan", bold=True, nl=False)
        click.echo(f"  ({mapping.description})" if mapping.description else "")
        for pm_type, name in mapping.packages.items():
            click.echo(f"     {get_package_manager_name(pm_type):<12} {name}")


# ── Register sub-groups ─────────────────────────────────────────

from stackmatch.ui.cli.history import history  # noqa: E402

cli.add_command(history)


if __name__ == "__main__":
    cli()
