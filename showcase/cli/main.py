"""showcase CLI.

`showcase serve` migrates then serves HTTP. `showcase migrate` only
migrates. `showcase migrations` shows the ledger next to the registry.
"""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from showcase.config import settings
from showcase.exceptions import ShowcaseError

console = Console()

app = typer.Typer(
    name="showcase",
    help="showcase -- demo HTTP service over SQL, documents, cache and object storage.",
    no_args_is_help=True,
)


@app.command("serve")
def serve():
    """Apply pending migrations, then serve HTTP."""
    from showcase.serve import configure_logging, main

    configure_logging(settings.log_level)
    try:
        asyncio.run(main())
    except ShowcaseError as e:
        console.print(f"[red]Startup failed:[/red] {e}")
        raise typer.Exit(1)


@app.command("migrate")
def migrate():
    """Apply pending migrations and exit."""
    from showcase.serve import configure_logging, migrate as run_migrate

    configure_logging(settings.log_level)
    try:
        applied = asyncio.run(run_migrate())
    except ShowcaseError as e:
        console.print(f"[red]Migration failed:[/red] {e}")
        raise typer.Exit(1)

    if applied:
        console.print(f"[green]Applied {len(applied)} migration(s):[/green] {applied}")
    else:
        console.print("[dim]Nothing to apply.[/dim]")


@app.command("migrations")
def migrations():
    """Show every registered migration and its ledger status."""
    from showcase.datasources import connect_datasources
    from showcase.migrations import all_migrations
    from showcase.migrations.ledger import MigrationLedger

    registry = all_migrations()

    async def _entries():
        ds = await connect_datasources(settings)
        try:
            ledger = MigrationLedger(ds.sql)
            await ledger.initialize(
                timeout=settings.migration_lock_timeout_seconds,
                poll_interval=settings.migration_lock_poll_seconds,
            )
            return await ledger.entries()
        finally:
            await ds.close()

    try:
        entries = {e.version: e for e in asyncio.run(_entries())}
    except ShowcaseError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    table = Table(title="Migrations")
    table.add_column("Version", style="cyan", no_wrap=True)
    table.add_column("Name", style="white")
    table.add_column("Status")
    table.add_column("When", style="dim", no_wrap=True)

    styles = {"applied": "green", "failed": "red", "pending": "yellow"}
    for version in sorted(set(registry) | set(entries)):
        entry = entries.get(version)
        status = entry.status.value if entry else "pending"
        name = registry[version].name if version in registry else "[dim]unregistered[/dim]"
        table.add_row(
            str(version),
            name,
            f"[{styles[status]}]{status}[/{styles[status]}]",
            entry.applied_at.strftime("%Y-%m-%d %H:%M:%S") if entry else "",
        )

    console.print(table)


def main():
    app()


if __name__ == "__main__":
    main()
