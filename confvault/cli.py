"""Command Line Interface for confvault."""

import sys
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .backup import BackupItemResult
from .config import ConfVaultConfig, load_config
from .engine import BackupEngine
from .errors import ConfVaultError
from .util import format_duration, setup_logging

console = Console()


def setup_cli_logging(config: ConfVaultConfig, verbose: bool = False):
    """Setup logging for CLI."""
    level = "DEBUG" if verbose else config.log_level
    setup_logging(level=level, log_file=config.log_file, console=Console(stderr=True))


def _engine(ctx: click.Context) -> BackupEngine:
    return ctx.obj["engine"]


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--config", "-c", type=click.Path(exists=True, path_type=Path), help="Configuration file path")
@click.option("--root", "-r", type=click.Path(file_okay=False, path_type=Path), help="Backup root directory")
@click.pass_context
def cli(ctx, verbose: bool, config: Optional[Path], root: Optional[Path]):
    """confvault - configuration backup and restore."""
    settings = load_config(config)
    if root:
        settings.backup_root = root

    setup_cli_logging(settings, verbose)

    ctx.ensure_object(dict)
    ctx.obj["config"] = settings
    ctx.obj["engine"] = BackupEngine(settings)


@cli.group()
def backup():
    """Backup management commands."""
    pass


@backup.command("create")
@click.option("--path", "-p", type=click.Path(file_okay=False, path_type=Path), help="Explicit backup set directory")
@click.pass_context
def backup_create(ctx, path: Optional[Path]):
    """Create an empty backup set."""
    try:
        handle = _engine(ctx).create_backup_set(path)
    except ConfVaultError as e:
        console.print(f"[red]Could not create backup set: {escape(e.message)}[/red]")
        sys.exit(1)

    console.print(f"[bold green]Backup set created:[/bold green] {handle.path}")


def _print_item_results(results: List[BackupItemResult]) -> int:
    """Print per-item results and return the failure count."""
    failed = 0
    for item in results:
        if item.success:
            console.print(f"[green]✓[/green] {item.source} -> {item.entry.backup_path}")
        else:
            failed += 1
            console.print(f"[red]✗[/red] {item.source}: [{item.kind.value}] {escape(item.message)}")
    return failed


@backup.command("add")
@click.argument("items", nargs=-1, required=True)
@click.option("--set", "backup_set", type=click.Path(exists=True, file_okay=False, path_type=Path),
              help="Existing backup set to add to (a new one is created if omitted)")
@click.option("--name", "-n", help="Payload name override (single item only)")
@click.pass_context
def backup_add(ctx, items: List[str], backup_set: Optional[Path], name: Optional[str]):
    """Back up one or more files or directories."""
    if name and len(items) > 1:
        console.print("[red]--name can only be used with a single item[/red]")
        sys.exit(2)

    engine = _engine(ctx)
    try:
        handle = engine.open_backup_set(backup_set) if backup_set else engine.create_backup_set()
    except ConfVaultError as e:
        console.print(f"[red]Backup failed: {escape(e.message)}[/red]")
        sys.exit(1)

    results = [engine.backup_item(handle, item, name) for item in items]
    failed = _print_item_results(results)

    console.print(f"Backup set: {handle.path}")
    if failed:
        console.print(f"[yellow]{failed} of {len(results)} item(s) failed[/yellow]")
        sys.exit(1)
    console.print("[bold green]Backup completed successfully![/bold green]")


@backup.command("known")
@click.argument("names", nargs=-1)
@click.option("--set", "backup_set", type=click.Path(exists=True, file_okay=False, path_type=Path),
              help="Existing backup set to add to (a new one is created if omitted)")
@click.pass_context
def backup_known(ctx, names: List[str], backup_set: Optional[Path]):
    """Back up well-known configuration files (all applicable if no NAMES)."""
    engine = _engine(ctx)
    try:
        handle = engine.open_backup_set(backup_set) if backup_set else engine.create_backup_set()
    except ConfVaultError as e:
        console.print(f"[red]Backup failed: {escape(e.message)}[/red]")
        sys.exit(1)

    results = engine.backup_known_configs(handle, list(names) or None)

    table = Table(title=f"Known configuration backup - {handle.name}")
    table.add_column("Name", style="cyan")
    table.add_column("Status", style="white")
    table.add_column("Details", style="white")

    for config_name, item in results.items():
        if item.success:
            table.add_row(config_name, "[green]backed up[/green]", item.entry.backup_path)
        else:
            table.add_row(config_name, f"[yellow]{item.kind.value}[/yellow]", escape(item.message))

    console.print(table)
    console.print(f"Backup set: {handle.path}")


@backup.command("known-list")
@click.pass_context
def backup_known_list(ctx):
    """List the table of well-known configuration locations."""
    config: ConfVaultConfig = ctx.obj["config"]

    table = Table(title="Known Configuration Locations")
    table.add_column("Name", style="cyan")
    table.add_column("Platforms", style="white")
    table.add_column("Path", style="white")
    table.add_column("Description", style="white")

    for name, known in config.known_configs.items():
        table.add_row(name, ", ".join(known.platforms), known.path, known.description)

    console.print(table)


@backup.command("list")
@click.pass_context
def backup_list(ctx):
    """List available backup sets, newest first."""
    engine = _engine(ctx)
    summaries = engine.list_backup_sets()

    if not summaries:
        console.print(f"[yellow]No backups found in {engine.backup_root}[/yellow]")
        return

    table = Table(title=f"Available Backups - {engine.backup_root}")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Date", style="white")
    table.add_column("Entries", style="white")
    table.add_column("Size", style="white")
    table.add_column("Location", style="white")

    for summary in summaries:
        table.add_row(
            summary.name,
            summary.created.strftime("%Y-%m-%d %H:%M:%S"),
            summary.entry_count_display,
            summary.size_display,
            str(summary.path),
        )

    console.print(table)


@backup.command("validate")
@click.argument("backup_set", type=click.Path(path_type=Path))
@click.pass_context
def backup_validate(ctx, backup_set: Path):
    """Check a backup set's files against its manifest."""
    report = _engine(ctx).validate(backup_set)

    if report.valid:
        console.print(f"[bold green]Backup set is valid[/bold green] ({report.validated_count} entries)")
        return

    console.print(f"[red]Backup set failed validation ({report.validated_count} entries checked)[/red]")
    for problem in report.summary():
        console.print(f"  {escape(problem)}")
    sys.exit(1)


@backup.command("remove")
@click.argument("backup_set", type=click.Path(path_type=Path))
@click.option("--force", "-f", is_flag=True, help="Do not ask for confirmation")
@click.option("--allow-unmanaged", is_flag=True, help="Also remove a directory that has no manifest")
@click.pass_context
def backup_remove(ctx, backup_set: Path, force: bool, allow_unmanaged: bool):
    """Delete a backup set."""
    removed = _engine(ctx).remove_backup_set(
        backup_set,
        force=force,
        confirm=lambda prompt: click.confirm(prompt, default=False),
        allow_unmanaged=allow_unmanaged,
    )

    if removed:
        console.print(f"[green]Removed {backup_set}[/green]")
    else:
        console.print(f"[yellow]Backup set not removed: {backup_set}[/yellow]")
        sys.exit(1)


@cli.group()
def restore():
    """Restore management commands."""
    pass


@restore.command("run")
@click.argument("backup_set", type=click.Path(path_type=Path))
@click.option("--pattern", "-p", multiple=True, help="Only restore original paths containing this text")
@click.option("--validate/--no-validate", default=None, help="Validate the backup set before restoring")
@click.option("--restore-point/--no-restore-point", default=None,
              help="Snapshot current files into a new backup set first")
@click.pass_context
def restore_run(ctx, backup_set: Path, pattern: List[str], validate: Optional[bool], restore_point: Optional[bool]):
    """Restore files from a backup set onto their original locations."""
    config: ConfVaultConfig = ctx.obj["config"]
    if validate is None:
        validate = config.restore.validate_before_restore
    if restore_point is None:
        restore_point = config.restore.create_restore_point

    console.print(f"[yellow]Restoring from {backup_set}...[/yellow]")

    result = _engine(ctx).restore(
        backup_set,
        patterns=list(pattern),
        validate_before_restore=validate,
        create_restore_point=restore_point,
    )

    if result.validation_errors:
        console.print("[red]Restore aborted:[/red]")
        for error in result.validation_errors:
            console.print(f"  [{error.kind.value}] {escape(error.message)}")
        sys.exit(1)

    for warning in result.warnings:
        console.print(f"[yellow]Warning: {escape(warning)}[/yellow]")

    if result.restore_point:
        console.print(f"Restore point: {result.restore_point}")

    for outcome in result.failed_files:
        console.print(f"[red]✗[/red] {outcome.original_path}: [{outcome.kind.value}] {escape(outcome.message)}")

    total = len(result.outcomes)
    console.print(
        f"Files restored: {len(result.restored_files)}/{total} "
        f"in {format_duration(result.duration)}"
    )

    if not result.success:
        console.print(f"[yellow]Failed files: {len(result.failed_files)}[/yellow]")
        sys.exit(1)

    console.print("[bold green]Restore completed![/bold green]")


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
