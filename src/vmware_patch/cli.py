"""Command line entry point for the terminal migration."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from .config import ConfigError, MigrationConfig, load_config
from .installer import InstallError
from .migration import MigrationReport, build_installer, run_migration
from .patching import Applied, Failed, PatchResult, Skipped, Unchanged, WouldChange

APP_HELP = (
    "Switch the Hyprland/uwsm desktop config from alacritty to another terminal "
    "and pin GSK_RENDERER, backing up every file it changes."
)

app = typer.Typer(help=APP_HELP, add_completion=False)


def _describe(result: PatchResult) -> str:
    """Render a single patch outcome for the terminal."""
    if isinstance(result, Skipped):
        return f"{result.path} not found, skipping."
    if isinstance(result, Unchanged):
        return f"No changes needed for {result.path}"
    if isinstance(result, WouldChange):
        return f"Changes for {result.path}:\n{result.diff}".rstrip("\n")
    if isinstance(result, Applied):
        return f"Patched {result.path} (backup: {result.backup_path})"
    if isinstance(result, Failed):
        return f"Failed to patch {result.path}: {result.error}"
    raise TypeError(f"Unsupported patch result: {result!r}")


def _render_report(report: MigrationReport) -> None:
    for result in report.results:
        typer.echo(_describe(result), err=isinstance(result, Failed))
    if report.verification is not None:
        for line in report.verification.format_lines():
            typer.echo(line)
    if report.failures:
        typer.echo(f"{len(report.failures)} file(s) could not be patched.", err=True)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command()
def main(
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Show changes that would be made, do not modify files.",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Optional YAML file with migration settings.",
    ),
    terminal: Optional[str] = typer.Option(
        None,
        "--terminal",
        "-t",
        help="Terminal to migrate to (defaults to $TERMINAL_CMD or ghostty).",
    ),
    home: Optional[Path] = typer.Option(
        None,
        "--home",
        help="Home directory whose config files are patched.",
    ),
    backup_dir: Optional[Path] = typer.Option(
        None,
        "--backup-dir",
        help="Directory receiving <file>.<timestamp>.bak copies.",
    ),
    skip_install: bool = typer.Option(
        False,
        "--skip-install",
        help="Do not check for or install the terminal package.",
    ),
    verify: bool = typer.Option(
        True,
        "--verify/--no-verify",
        help="Inspect the final file state after patching.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log every step to stderr.",
    ),
) -> None:
    """Patch the uwsm env, Hyprland bindings and omarchy menu in place."""
    _configure_logging(verbose)

    overrides = {
        "terminal": terminal,
        "home": home,
        "backup_dir": backup_dir,
        "install": False if skip_install else None,
        "verify": None if verify else False,
    }
    try:
        settings: MigrationConfig = load_config(config, overrides=overrides)
    except ConfigError as error:
        raise typer.BadParameter(str(error)) from error

    try:
        installer = build_installer(settings, dry_run=dry_run, notify=typer.echo)
        report = run_migration(settings, dry_run=dry_run, installer=installer)
    except InstallError as error:
        typer.echo(str(error), err=True)
        raise typer.Exit(code=1) from error

    _render_report(report)


if __name__ == "__main__":
    app()
