"""
modsync — CLI entrypoint.

Usage:
    python -m modsync.main --help
    modsync sync PSReadLine Pester --update
    modsync status
    modsync config check
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from modsync import __version__
from modsync.core.models.package import InstallScope
from modsync.core.observability.logging_config import resolve_level, setup_logging

_SCOPES = [s.value for s in InstallScope]

_OUTCOME_STYLE = {
    "installed": ("✓", "green"),
    "updated": ("✓", "green"),
    "up_to_date": ("✓", "green"),
    "planned": ("⊘", "cyan"),
    "declined": ("⊘", "yellow"),
    "warning": ("⚠", "yellow"),
    "failed": ("✗", "red"),
}


@click.group()
@click.version_option(version=__version__, prog_name="modsync")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to modsync.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """modsync — keep PowerShell modules in step with a trusted gallery."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(debug, verbose, quiet, os.environ.get("MODSYNC_LOG_LEVEL")),
        log_file=os.environ.get("MODSYNC_LOG_FILE"),
        log_file_level=os.environ.get("MODSYNC_LOG_FILE_LEVEL"),
    )


def _read_piped_names() -> list[str]:
    """Names piped on stdin (whitespace separated), or [] for a terminal."""
    if sys.stdin is None or sys.stdin.isatty():
        return []
    return sys.stdin.read().split()


def _make_prompt():
    """Build a yes/no prompt that declines once input is gone.

    End of input or Ctrl-C at a prompt declines that change and every
    later one, so the run still finishes and reports.
    """
    closed = False

    def _prompt(question: str) -> bool:
        nonlocal closed
        if closed:
            return False
        try:
            return click.confirm(question, default=False)
        except click.Abort:
            closed = True
            click.echo(err=True)
            click.secho("⚠️  No answer available; remaining changes will be declined.", fg="yellow", err=True)
            return False

    return _prompt


def _echo_outcome(outcome, verbose: bool) -> None:
    icon, color = _OUTCOME_STYLE.get(outcome.status, ("•", "white"))
    click.secho(f"   {icon} {outcome.name:<28}", fg=color, nl=False)
    click.echo(f" {outcome.message}")
    for issue in outcome.issues:
        if issue.message == outcome.message and not verbose:
            continue
        click.echo(f"     │ [{issue.kind.value}] {issue.message}")
        if verbose:
            click.echo(f"     │   reason: {issue.reason or '-'}  target: {issue.target or '-'}")
            if issue.location:
                click.echo(f"     │   at: {' '.join(issue.location.split())}")


@cli.command()
@click.argument("names", nargs=-1)
@click.option("--install/--no-install", default=None, help="Install packages that are missing.")
@click.option("--update/--no-update", default=None, help="Update packages that are outdated.")
@click.option(
    "--scope",
    type=click.Choice(_SCOPES, case_sensitive=False),
    default=None,
    help="Install scope (default: CurrentUser).",
)
@click.option("--dry-run", "--what-if", "dry_run", is_flag=True, help="Report actions without changing anything.")
@click.option("--force", "-f", is_flag=True, help="Apply changes without confirmation prompts.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def sync(
    ctx: click.Context,
    names: tuple[str, ...],
    install: bool | None,
    update: bool | None,
    scope: str | None,
    dry_run: bool,
    force: bool,
    as_json: bool,
) -> None:
    """Check, install and update modules from the trusted repository.

    NAMES may also be piped on stdin. With neither, the configured
    default list is used.

    Examples:

        modsync sync PSReadLine --update

        modsync sync Pester --install --scope AllUsers --force

        echo "Pester PSScriptAnalyzer" | modsync sync --update --dry-run
    """
    from modsync.core.use_cases.sync import run_sync

    requested = list(names)
    piped = False
    if not requested:
        requested = _read_piped_names()
        piped = bool(requested)

    # stdin already holds the names, so it cannot answer prompts
    confirm = None if (piped or as_json) else _make_prompt()

    verbose = ctx.obj.get("verbose", False)
    if not as_json:
        mode_label = "[dry-run] " if dry_run else ""
        click.secho(f"\n📦 {mode_label}Synchronizing modules", fg="cyan", bold=True)

    result = run_sync(
        names=requested,
        config_path=ctx.obj.get("config_path"),
        install=install,
        update=update,
        scope=InstallScope(scope) if scope else None,
        dry_run=dry_run,
        force=force,
        confirm=confirm,
        on_outcome=None if as_json else (lambda o: _echo_outcome(o, verbose)),
    )

    if result.report and result.report.unattended_declines:
        skipped = ", ".join(o.name for o in result.report.unattended_declines)
        click.secho(
            f"⚠️  No interactive confirmation available; skipped changes to {skipped}. Use --force to apply them.",
            fg="yellow",
            err=True,
        )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if result.error or (result.report and result.report.failed > 0):
            sys.exit(1)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    report = result.report
    assert report is not None

    # Summary
    click.echo()
    status_color = {"ok": "green", "partial": "yellow", "failed": "red"}.get(report.status, "white")
    click.secho(
        f"   Result: {report.total} checked, {report.changed} changed, "
        f"{report.warnings} warning(s), {report.failed} failed",
        fg=status_color,
        bold=True,
    )
    click.echo()

    if report.failed > 0:
        sys.exit(1)


@cli.command()
@click.argument("names", nargs=-1)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def status(ctx: click.Context, names: tuple[str, ...], as_json: bool) -> None:
    """Show installed and latest versions without changing anything."""
    from modsync.core.use_cases.status import get_status

    result = get_status(names=list(names), config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if result.error:
            sys.exit(1)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    assert result.config is not None
    click.secho(
        f"\n📦 Modules vs {result.config.repository.name} ({result.config.repository.trusted_host})",
        fg="cyan",
        bold=True,
    )
    for row in result.packages:
        installed = row.installed_version or "-"
        latest = row.latest_version or "?"
        if row.error:
            click.secho(f"   ✗ {row.name:<28}", fg="red", nl=False)
            click.echo(f" {installed:<12} {row.error}")
        elif row.installed_version is None:
            click.secho(f"   • {row.name:<28}", fg="white", nl=False)
            click.echo(f" {'not installed':<12} latest {latest}")
        elif row.trusted is False:
            click.secho(f"   ✗ {row.name:<28}", fg="red", nl=False)
            click.echo(f" {installed:<12} unsupported source: {row.origin or 'unknown'}")
        elif row.update_available:
            click.secho(f"   ⚠ {row.name:<28}", fg="yellow", nl=False)
            click.echo(f" {installed:<12} → {latest}")
        else:
            click.secho(f"   ✓ {row.name:<28}", fg="green", nl=False)
            click.echo(f" {installed:<12} up to date")
    click.echo()


@cli.group()
def config() -> None:
    """Configuration commands."""


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate modsync.yml and show the effective settings."""
    from modsync.core.use_cases.config_check import check_config

    result = check_config(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)

    if result.valid:
        assert result.config is not None
        cfg = result.config
        click.secho("✅ Configuration is valid", fg="green", bold=True)
        if result.config_path:
            click.echo(f"   File: {result.config_path}")
        click.echo(f"   Repository: {cfg.repository.name} ({cfg.repository.trusted_host})")
        click.echo(f"   Scope: {cfg.scope.value}")
        click.echo(f"   Install missing: {cfg.install}  Update outdated: {cfg.update}")
        click.echo(f"   Packages: {', '.join(cfg.packages) or '-'}")
    else:
        click.secho("❌ Configuration errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    if not result.valid:
        click.echo()
        sys.exit(1)

    click.echo()


if __name__ == "__main__":
    cli()
