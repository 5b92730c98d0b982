"""Command line interface for neat-folder."""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from . import __version__
from .core.operation_history import OperationHistoryStore
from .core.organizer import AsyncFolderOrganizer, OrganizationResult
from .core.undo_redo import UndoRedoController
from .exceptions import NeatFolderError
from .models.config import OrganizationOptions, default_database_path, load_config
from .models.organization import DirectoryMap, GroupingMethod
from .utils.sizes import format_size, parse_size

console = Console()


def _setup_logging(verbose: bool) -> None:
    handler = RichHandler(console=console, rich_tracebacks=True, show_path=False)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[handler],
        force=True,
    )


def _open_store(ctx: click.Context) -> OperationHistoryStore:
    db_path = ctx.obj.get("db_path") or default_database_path()
    return OperationHistoryStore(db_path)


def _render_tree(title: str, dir_map: DirectoryMap) -> Tree:
    tree = Tree(f"[bold]{title}[/bold]")
    for directory in sorted(dir_map):
        branch = tree.add(f"[cyan]{directory}/[/cyan]")
        for name in sorted(dir_map[directory]):
            branch.add(name)
    return tree


def _print_summary(result: OrganizationResult, verbose: bool) -> None:
    stats = result.stats
    table = Table(title="Dry run" if result.dry_run else "Results")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Files moved" if not result.dry_run else "Files to move", str(stats.files_processed))
    table.add_row("Data", format_size(stats.bytes_moved))
    table.add_row("Directories created", str(len(stats.new_directories)))
    table.add_row("Skipped", str(len(stats.skipped)))
    table.add_row("Errors", str(len(stats.errors)))
    table.add_row("Duration", f"{result.duration:.2f}s")
    if result.operation_id is not None:
        table.add_row("Operation ID", str(result.operation_id))
    console.print(table)

    if result.dry_run or verbose:
        console.print(_render_tree("Before", result.before))
        console.print(_render_tree("After", result.after))

    if stats.errors:
        console.print("\n[red]Errors encountered:[/red]")
        for error in stats.errors[:10]:
            console.print(f"  • {error}")
        if len(stats.errors) > 10:
            console.print(f"  ... and {len(stats.errors) - 10} more errors")

    if verbose and stats.skipped:
        console.print("\n[yellow]Skipped:[/yellow]")
        for reason in stats.skipped:
            console.print(f"  • {reason}")


@click.group()
@click.version_option(version=__version__)
@click.option(
    '--db',
    'db_path',
    type=click.Path(dir_okay=False, path_type=Path),
    envvar='NEAT_FOLDER_DB',
    help='History database path'
)
@click.pass_context
def cli(ctx: click.Context, db_path: Optional[Path]):
    """Sort a folder into tidy category directories, with undo."""
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = db_path


@cli.command()
@click.argument('directory', type=click.Path(path_type=Path))
@click.option(
    '--method', '-m',
    type=click.Choice([m.value for m in GroupingMethod], case_sensitive=False),
    help='Grouping method (default: extension)'
)
@click.option('--recursive', '-r', is_flag=True, help='Include files in subdirectories')
@click.option('--max-depth', type=int, help='Deepest subdirectory level to scan (default: 5)')
@click.option('--min-size', help='Skip files smaller than this, e.g. 100KB')
@click.option('--max-size', help='Skip files larger than this, e.g. 1.5GB')
@click.option('--ignore-dotfiles', is_flag=True, help='Leave hidden files alone')
@click.option('--dry-run', is_flag=True, help='Show what would be done without making changes')
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
@click.option(
    '--config',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Configuration file path'
)
@click.pass_context
def organize(ctx: click.Context, directory: Path, method: Optional[str], recursive: bool,
             max_depth: Optional[int], min_size: Optional[str], max_size: Optional[str],
             ignore_dotfiles: bool, dry_run: bool, verbose: bool, config: Optional[Path]):
    """Organize the files in DIRECTORY."""
    _setup_logging(verbose)

    try:
        options = load_config(config) if config else OrganizationOptions()
        # Command line flags win over the config file
        if method:
            options.method = GroupingMethod.parse(method)
        if max_depth is not None:
            options.max_depth = max_depth
        if min_size is not None:
            options.min_size = parse_size(min_size) or 0
        if max_size is not None:
            options.max_size = parse_size(max_size)
        options.recursive = options.recursive or recursive
        options.ignore_dotfiles = options.ignore_dotfiles or ignore_dotfiles
        options.dry_run = options.dry_run or dry_run
        options.verbose = options.verbose or verbose
        options.validate()

        console.print(f"\n[bold cyan]Organizing {directory}[/bold cyan] by {options.method.value}")
        if options.dry_run:
            console.print("[bold]DRY RUN MODE[/bold] - No files will be modified")

        async def _run() -> OrganizationResult:
            async with _open_store(ctx) as store:
                async with AsyncFolderOrganizer(options, history_store=store) as organizer:
                    return await organizer.organize(directory)

        result = asyncio.run(_run())

    except NeatFolderError as e:
        console.print(f"\n[red]Error: {e}[/red]")
        sys.exit(1)

    if result.nothing_to_do:
        console.print("\n[yellow]Nothing to organize[/yellow]")
    _print_summary(result, options.verbose)


@cli.command()
@click.argument('operation_id', type=int, required=False)
@click.pass_context
def undo(ctx: click.Context, operation_id: Optional[int]):
    """Undo an operation (default: the most recent one)."""
    _setup_logging(False)

    async def _run() -> bool:
        async with _open_store(ctx) as store:
            async with UndoRedoController(store) as controller:
                return await controller.undo(operation_id)

    if asyncio.run(_run()):
        console.print("[green]Undo completed[/green]")
    else:
        console.print("[yellow]Nothing was undone[/yellow]")
        sys.exit(1)


@cli.command()
@click.argument('undo_operation_id', type=int, required=False)
@click.pass_context
def redo(ctx: click.Context, undo_operation_id: Optional[int]):
    """Redo an undone operation (default: the most recent undo)."""
    _setup_logging(False)

    async def _run() -> bool:
        async with _open_store(ctx) as store:
            async with UndoRedoController(store) as controller:
                return await controller.redo(undo_operation_id)

    if asyncio.run(_run()):
        console.print("[green]Redo completed[/green]")
    else:
        console.print("[yellow]Nothing was redone[/yellow]")
        sys.exit(1)


@cli.command()
@click.option('--limit', '-l', type=int, default=10, help='Number of records to show')
@click.option('--directory', '-d', help='Only show operations on this directory')
@click.option('--format', 'format_type', type=click.Choice(['table', 'json']), default='table')
@click.pass_context
def history(ctx: click.Context, limit: int, directory: Optional[str], format_type: str):
    """Show recent operations."""
    if directory is not None:
        directory = str(Path(directory).expanduser().resolve())

    async def _run():
        async with _open_store(ctx) as store:
            return await store.get_history(limit, directory)

    records = asyncio.run(_run())

    if format_type == 'json':
        click.echo(json.dumps([r.to_dict() for r in records], indent=2))
        return

    if not records:
        console.print("No operations recorded")
        return

    table = Table(title="Operation History")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("When")
    table.add_column("Kind")
    table.add_column("Method")
    table.add_column("Files", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Directory")

    for record in records:
        kind = record.kind
        if record.original_operation_id is not None:
            kind = f"{kind} of #{record.original_operation_id}"
        table.add_row(
            str(record.id),
            record.timestamp.strftime('%Y-%m-%d %H:%M:%S'),
            kind,
            record.method.value,
            str(record.files_processed),
            format_size(record.bytes_moved),
            record.directory,
        )

    console.print(table)


@cli.command()
@click.pass_context
def stats(ctx: click.Context):
    """Show history statistics."""
    async def _run():
        async with _open_store(ctx) as store:
            return await store.get_stats()

    summary = asyncio.run(_run())
    last = (
        summary.last_operation_timestamp.strftime('%Y-%m-%d %H:%M:%S')
        if summary.last_operation_timestamp else "never"
    )
    console.print(Panel(
        f"Operations: {summary.total_operations}\n"
        f"Files processed: {summary.total_files_processed}\n"
        f"Data processed: {format_size(summary.total_bytes_processed)}\n"
        f"Last operation: {last}\n"
        f"Available undos: {summary.available_undos}\n"
        f"Available redos: {summary.available_redos}",
        title="History Statistics",
    ))


@cli.command()
@click.option('--yes', '-y', is_flag=True, help='Skip confirmation prompt')
@click.pass_context
def clear(ctx: click.Context, yes: bool):
    """Delete all history. This cannot be undone."""
    if not yes and not click.confirm("Delete all operation history?"):
        console.print("Cancelled")
        return

    async def _run():
        async with _open_store(ctx) as store:
            await store.clear_history()

    asyncio.run(_run())
    console.print("[green]History cleared[/green]")


@cli.command()
@click.argument('path', type=click.Path(dir_okay=False, path_type=Path))
@click.pass_context
def export(ctx: click.Context, path: Path):
    """Export recent history to a JSON file."""
    async def _run() -> int:
        async with _open_store(ctx) as store:
            return await store.export_history(path)

    try:
        count = asyncio.run(_run())
    except OSError as e:
        console.print(f"[red]Error: could not write {path}: {e}[/red]")
        sys.exit(1)
    console.print(f"[green]Exported {count} records to {path}[/green]")


@cli.command()
@click.argument('operation_id', type=int)
@click.pass_context
def show(ctx: click.Context, operation_id: int):
    """Show one operation with its before and after layout."""
    async def _run():
        async with _open_store(ctx) as store:
            return await store.get_by_id(operation_id)

    record = asyncio.run(_run())
    if record is None:
        console.print(f"[red]Operation {operation_id} not found[/red]")
        sys.exit(1)

    console.print(f"\nOperation ID: {record.id} ({record.kind})")
    console.print(f"Time: {record.timestamp.strftime('%Y-%m-%d %H:%M:%S')}")
    console.print(f"Directory: {record.directory}")
    console.print(f"Method: {record.method.value}")
    console.print(f"Files: {record.files_processed} ({format_size(record.bytes_moved)})")
    if record.original_operation_id is not None:
        console.print(f"Original operation: {record.original_operation_id}")

    console.print(_render_tree("Before", record.before_structure))
    console.print(_render_tree("After", record.after_structure))

    for error in record.errors:
        console.print(f"  [red]•[/red] {error}")


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == '__main__':
    main()
