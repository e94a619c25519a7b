"""
Shared plumbing for the CLI commands: settings, runner, orchestrator, tracker.

Everything is built from ``ctx.obj`` so tests can pre-seed it::

    runner.invoke(cli, ["install", "git"], obj={"manager": MockPackageManager()})
"""

from __future__ import annotations

import sys
from typing import NoReturn

import click

from stackmatch.core.config.loader import Settings, load_settings
from stackmatch.core.errors import StackmatchError


def fail(message: str) -> NoReturn:
    click.secho(f"❌ {message}", fg="red", err=True)
    sys.exit(1)


def get_settings(ctx: click.Context) -> Settings:
    """Settings for this invocation, loaded once."""
    settings = ctx.obj.get("settings")
    if settings is None:
        try:
            settings = load_settings(ctx.obj.get("config_path"))
        except StackmatchError as e:
            fail(str(e))
        ctx.obj["settings"] = settings
    return settings


def get_runner(ctx: click.Context):
    from stackmatch.adapters.shell.command import CommandRunner

    runner = ctx.obj.get("runner")
    if runner is None:
        settings = get_settings(ctx)
        runner = CommandRunner(timeout=settings.command_timeout, sudo=settings.sudo)
        ctx.obj["runner"] = runner
    return runner


def get_orchestrator(ctx: click.Context, progress=None):
    """Orchestrator using the forced/pre-seeded manager, else detection."""
    from stackmatch.core.services.installer.detection.detector import create_package_manager
    from stackmatch.core.services.installer.orchestration.orchestrator import (
        InstallOrchestrator,
    )

    settings = get_settings(ctx)
    runner = get_runner(ctx)

    manager = ctx.obj.get("manager")
    if manager is None and settings.package_manager is not None:
        manager = create_package_manager(settings.package_manager, runner)

    try:
        mappings = settings.mapping_table()
    except StackmatchError as e:
        fail(f"Invalid package mapping in settings: {e}")

    return InstallOrchestrator(manager, mappings=mappings, runner=runner, progress=progress)


def get_tracker(ctx: click.Context):
    from stackmatch.core.services.installer.execution.tracker import InstallationTracker

    try:
        return InstallationTracker(get_settings(ctx).journal_path)
    except StackmatchError as e:
        fail(str(e))
