"""CLI for snapshot export/import and local-to-remote migration.

Usage:
    printops profiles
    printops --profile prod export -o backups/today.json
    printops validate backups/today.json
    printops import backups/today.json --merge --yes
    printops import backups/old.json --skip-validation --batch-size 50
    DB_PROFILE=prod printops migrate-local
    printops delete-all --confirm

Commands:
    export         - Write a checksummed artifact of the backing store
    validate       - Inspect an artifact without importing it
    import         - Import an artifact (replace or merge mode)
    migrate-local  - Copy the embedded local store into the backing store
    delete-all     - Clear every collection of the backing store
    profiles       - List configured profiles
"""

import argparse
import asyncio
import logging
import sys

from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn
from rich.prompt import Confirm
from rich.table import Table

from printops.adapters.base import BackingStore
from printops.config.loader import load_config
from printops.config.models import AppConfig
from printops.errors import SnapshotError
from printops.factory import (
    ProfileNotFoundError,
    get_active_profile,
    get_active_profile_name,
    get_backing_store,
    get_local_store,
    get_preference_store,
)
from printops.snapshot.builder import build_snapshot, write_artifact
from printops.snapshot.importer import delete_all_data, import_artifact
from printops.snapshot.local_migration import migrate_local_to_remote
from printops.snapshot.models import COLLECTIONS, ImportOptions, MigrationProgress
from printops.snapshot.validator import inspect_artifact, parse_artifact

console = Console()

# Warnings shown after an import; the rest are summarized.
MAX_WARNINGS_SHOWN = 20


# ============================================================================
# Helpers
# ============================================================================


def _load_app_config(args: argparse.Namespace) -> AppConfig | None:
    """Load printops.toml, printing the error and returning None on failure."""
    try:
        return load_config(getattr(args, "config", None))
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return None


def _open_backing_store(
    args: argparse.Namespace, config: AppConfig
) -> tuple[str, BackingStore] | None:
    """Resolve the active profile and build its store (not yet connected)."""
    try:
        name, profile = get_active_profile(
            config,
            profile_name=getattr(args, "profile", None),
            env_prefix=getattr(args, "env_prefix", ""),
        )
        return name, get_backing_store(profile)
    except (ProfileNotFoundError, ImportError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return None


def _print_warnings(warnings: list[str]) -> None:
    if not warnings:
        return
    console.print(f"\n[yellow]Warnings ({len(warnings)}):[/yellow]")
    for warning in warnings[:MAX_WARNINGS_SHOWN]:
        console.print(f"  - {warning}")
    if len(warnings) > MAX_WARNINGS_SHOWN:
        console.print(f"  ... and {len(warnings) - MAX_WARNINGS_SHOWN} more")


def _counts_table(title: str, counts: dict[str, int]) -> Table:
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Collection", style="dim")
    table.add_column("Records", justify="right")
    for name in COLLECTIONS:
        if name in counts:
            table.add_row(name, str(counts[name]))
    table.add_row("[bold]Total[/bold]", f"[bold]{sum(counts.values())}[/bold]")
    return table


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.ERROR,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


# ============================================================================
# Async command implementations
# ============================================================================


async def _async_export(args: argparse.Namespace) -> int:
    """Async implementation for export command.

    Returns:
        0 on success, 1 on failure.
    """
    config = _load_app_config(args)
    if config is None:
        return 1
    opened = _open_backing_store(args, config)
    if opened is None:
        return 1
    profile_name, store = opened

    console.print(
        f"Exporting from profile: [bold cyan]{profile_name}[/bold cyan]", style="dim"
    )
    try:
        snapshot = await build_snapshot(store, get_preference_store(config))
        path = write_artifact(snapshot, args.output)
    except (SnapshotError, OSError) as e:
        console.print(f"\n[bold red]x[/bold red] Export failed: {e}")
        return 1
    finally:
        await store.close()

    counts = {name: len(snapshot.collections[name]) for name in COLLECTIONS}
    console.print()
    console.print(_counts_table("Exported Records", counts))
    console.print(f"\n[bold green]v[/bold green] Artifact written to [cyan]{path}[/cyan]")
    console.print(f"  Checksum: [dim]{snapshot.checksum}[/dim]")
    return 0


async def _async_import(args: argparse.Namespace) -> int:
    """Async implementation for import command.

    Returns:
        0 on success, 1 on failure or cancellation.
    """
    config = _load_app_config(args)
    if config is None:
        return 1

    try:
        report = inspect_artifact(parse_artifact(args.path))
    except SnapshotError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    opened = _open_backing_store(args, config)
    if opened is None:
        return 1
    profile_name, store = opened

    options = ImportOptions(
        merge_mode=args.merge,
        skip_validation=args.skip_validation,
        batch_size=args.batch_size or config.import_.batch_size,
        refresh_toner_levels=args.refresh_toner_levels,
    )

    if not args.yes:
        console.print(f"Import [cyan]{args.path}[/cyan] into [bold cyan]{profile_name}[/bold cyan]")
        console.print(f"  Artifact version: {report.version}")
        console.print(f"  Records: {sum(report.counts.values())}")
        if options.merge_mode:
            console.print("  Mode: merge (existing records are updated)")
        else:
            console.print(
                "  Mode: [bold red]replace[/bold red] (ALL existing data will be deleted)"
            )
        if not Confirm.ask("Continue?", default=False, console=console):
            console.print("Cancelled.")
            await store.close()
            return 1

    console.print("Importing...", style="dim")
    try:
        result = await import_artifact(
            store, args.path, options, get_preference_store(config)
        )
    finally:
        await store.close()

    if not result.success:
        console.print(f"\n[bold red]x[/bold red] Import failed: {result.error}")
        if result.migrated_records:
            console.print(
                f"  Records written before the failure: {result.migrated_records}"
            )
        _print_warnings(result.warnings)
        return 1

    console.print()
    console.print(f"[bold green]v[/bold green] Import complete (from version {result.version})")
    console.print(f"  Imported: [green]{result.migrated_records}[/green]")
    if result.skipped_records:
        console.print(f"  Skipped: [yellow]{result.skipped_records}[/yellow]")
    _print_warnings(result.warnings)
    return 0


async def _async_migrate_local(args: argparse.Namespace) -> int:
    """Async implementation for migrate-local command.

    Returns:
        0 when at least one record migrated, 1 otherwise.
    """
    config = _load_app_config(args)
    if config is None:
        return 1

    opened = _open_backing_store(args, config)
    if opened is None:
        return 1
    profile_name, remote = opened
    local = get_local_store(config)

    if not args.yes:
        console.print(
            f"Copy local data from [cyan]{config.local.path}[/cyan] "
            f"into [bold cyan]{profile_name}[/bold cyan]"
        )
        if not Confirm.ask("Continue?", default=False, console=console):
            console.print("Cancelled.")
            await local.close()
            await remote.close()
            return 1

    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Migrating...", total=None)

        def on_progress(event: MigrationProgress) -> None:
            progress.update(
                task,
                description=event.message,
                completed=event.current,
                total=event.total or None,
            )

        try:
            result = await migrate_local_to_remote(
                local,
                remote,
                get_preference_store(config),
                on_progress=on_progress,
                progress_interval=config.import_.progress_interval,
            )
        finally:
            await local.close()
            await remote.close()

    console.print()
    if result.success:
        console.print(f"[bold green]v[/bold green] {result.message}")
    else:
        console.print(f"[bold red]x[/bold red] {result.message}")
    _print_warnings(result.errors)
    return 0 if result.success else 1


async def _async_delete_all(args: argparse.Namespace) -> int:
    """Async implementation for delete-all command.

    Returns:
        0 on success, 1 on failure.
    """
    config = _load_app_config(args)
    if config is None:
        return 1
    opened = _open_backing_store(args, config)
    if opened is None:
        return 1
    profile_name, store = opened

    if not args.confirm:
        await store.close()
        console.print(
            f"This would delete ALL data in [bold cyan]{profile_name}[/bold cyan]."
        )
        console.print(
            "[dim]To delete, add[/dim] [cyan]--confirm[/cyan] [dim]flag.[/dim]"
        )
        return 0

    try:
        result = await delete_all_data(store)
    finally:
        await store.close()

    if result.success:
        console.print(
            f"[bold green]v[/bold green] Cleared {len(result.cleared)} collections"
        )
        return 0
    console.print(f"[bold red]x[/bold red] Delete failed: {result.error}")
    if result.cleared:
        console.print(f"  Already cleared: {', '.join(result.cleared)}")
    return 1


# ============================================================================
# Command wrappers (cmd_validate, cmd_profiles read local files only)
# ============================================================================


def cmd_export(args: argparse.Namespace) -> int:
    """Build and write an artifact.  Wraps ``_async_export``."""
    return asyncio.run(_async_export(args))


def cmd_import(args: argparse.Namespace) -> int:
    """Import an artifact.  Wraps ``_async_import``."""
    return asyncio.run(_async_import(args))


def cmd_migrate_local(args: argparse.Namespace) -> int:
    """Migrate local data to the backing store.  Wraps ``_async_migrate_local``."""
    return asyncio.run(_async_migrate_local(args))


def cmd_delete_all(args: argparse.Namespace) -> int:
    """Clear the backing store.  Wraps ``_async_delete_all``."""
    return asyncio.run(_async_delete_all(args))


def cmd_validate(args: argparse.Namespace) -> int:
    """Inspect an artifact without touching any store.

    Args:
        args: Parsed CLI arguments with ``path``.

    Returns:
        0 if the artifact can be imported as-is, 1 otherwise.
    """
    try:
        report = inspect_artifact(parse_artifact(args.path))
    except SnapshotError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    table = Table(title="Artifact", show_header=False)
    table.add_column("Key", style="dim")
    table.add_column("Value")
    table.add_row("Version", report.version)
    table.add_row(
        "Compatible", "[green]yes[/green]" if report.is_compatible else "[red]no[/red]"
    )
    table.add_row("Needs migration", "yes" if report.needs_migration else "no")
    table.add_row(
        "Checksum", "[green]valid[/green]" if report.checksum_valid else "[red]invalid[/red]"
    )
    if report.exported_at:
        table.add_row("Exported at", report.exported_at)
    console.print(table)

    if report.counts:
        console.print(_counts_table("Records", report.counts))

    for error in report.errors:
        console.print(f"[bold red]x[/bold red] {error}")
    for warning in report.warnings:
        console.print(f"[yellow]![/yellow] {warning}")

    if report.valid:
        console.print("\n[bold green]v[/bold green] Artifact is valid")
        return 0
    return 1


def cmd_profiles(args: argparse.Namespace) -> int:
    """List available profiles from printops.toml.

    Reads only local TOML config -- no store calls.

    Returns:
        0 on success, 1 if printops.toml not found.
    """
    config = _load_app_config(args)
    if config is None:
        return 1

    try:
        current = get_active_profile_name(
            config,
            profile_name=getattr(args, "profile", None),
            env_prefix=getattr(args, "env_prefix", ""),
        )
    except ProfileNotFoundError:
        current = None

    table = Table(title="Store Profiles", show_header=True, header_style="bold")
    table.add_column("", width=2)
    table.add_column("Profile")
    table.add_column("Provider")
    table.add_column("Description")

    for name, profile in config.profiles.items():
        marker = "[bold green]*[/bold green]" if name == current else " "
        name_style = "bold cyan" if name == current else ""
        table.add_row(
            marker,
            f"[{name_style}]{name}[/{name_style}]" if name_style else name,
            profile.provider,
            profile.description or "",
        )

    console.print(table)

    if current:
        console.print("\n[bold green]*[/bold green] = active profile")

    return 0


# ============================================================================
# Main entry point
# ============================================================================


def main() -> int:
    """Main CLI entry point.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = argparse.ArgumentParser(
        prog="printops",
        description="Printer dashboard snapshot export, import and migration",
    )

    parser.add_argument(
        "--config",
        default=None,
        help="Path to printops.toml (default: ./printops.toml)",
    )
    parser.add_argument(
        "--profile",
        default=None,
        help="Backing store profile to use",
    )
    parser.add_argument(
        "--env-prefix",
        default="",
        help=(
            "Prefix for environment variable lookup "
            "(e.g., --env-prefix APP_ reads APP_DB_PROFILE)"
        ),
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show progress logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # export command
    p_export = subparsers.add_parser(
        "export",
        help="Write a checksummed artifact of the backing store",
    )
    p_export.add_argument(
        "--output",
        "-o",
        default=None,
        help="Artifact path (default: backups/printops-backup-<timestamp>.json)",
    )
    p_export.set_defaults(func=cmd_export)

    # validate command
    p_validate = subparsers.add_parser(
        "validate",
        help="Inspect an artifact without importing it",
    )
    p_validate.add_argument("path", help="Artifact file")
    p_validate.set_defaults(func=cmd_validate)

    # import command
    p_import = subparsers.add_parser(
        "import",
        help="Import an artifact into the backing store",
    )
    p_import.add_argument("path", help="Artifact file")
    p_import.add_argument(
        "--merge",
        action="store_true",
        help="Upsert alongside existing data instead of replacing it",
    )
    p_import.add_argument(
        "--skip-validation",
        action="store_true",
        help="Do not verify the checksum",
    )
    p_import.add_argument(
        "--batch-size",
        type=_positive_int,
        default=None,
        help="Records per bulk insert in replace mode (default from config)",
    )
    p_import.add_argument(
        "--refresh-toner-levels",
        action="store_true",
        help="Catch printer toner levels up to now before writing",
    )
    p_import.add_argument(
        "--yes",
        "-y",
        action="store_true",
        help="Skip the confirmation prompt",
    )
    p_import.set_defaults(func=cmd_import)

    # migrate-local command
    p_migrate = subparsers.add_parser(
        "migrate-local",
        help="Copy the embedded local store into the backing store",
    )
    p_migrate.add_argument(
        "--yes",
        "-y",
        action="store_true",
        help="Skip the confirmation prompt",
    )
    p_migrate.set_defaults(func=cmd_migrate_local)

    # delete-all command
    p_delete = subparsers.add_parser(
        "delete-all",
        help="Clear every collection of the backing store",
    )
    p_delete.add_argument(
        "--confirm",
        action="store_true",
        help="Actually delete (required)",
    )
    p_delete.set_defaults(func=cmd_delete_all)

    # profiles command
    p_profiles = subparsers.add_parser(
        "profiles",
        help="List configured profiles",
    )
    p_profiles.set_defaults(func=cmd_profiles)

    args = parser.parse_args()
    _configure_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
