"""autorepo - Main entry point."""

import logging

import typer
from rich.console import Console

from .commands import schema
from .config import settings

app = typer.Typer(
    name="autorepo",
    help="Inspect relational databases and the repositories autorepo builds for them",
    add_completion=False,
)

app.add_typer(schema.app, name="schema")

console = Console()


@app.command()
def config():
    """Show current configuration."""
    console.print("[bold]Current Configuration[/bold]")
    console.print(f"  Database URL: {settings.database_url or 'Not set'}")
    console.print(f"  Excluded tables: {', '.join(settings.exclude_tables) or 'None'}")
    console.print(f"  Include views: {'Yes' if settings.include_views else 'No'}")
    console.print(f"  Custom type mappings: {len(settings.custom_type_mappings)}")
    console.print(f"  Query analyzer: {'Enabled' if settings.analyzer_enabled else 'Disabled'}")
    console.print(f"  Slow query threshold: {settings.slow_query_threshold_ms:g}ms")
    console.print(f"  Large result threshold: {settings.large_result_set_threshold} rows")
    console.print(f"  Schema watch interval: {settings.schema_watch_interval_seconds:g}s")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show discovery log output")):
    """
    autorepo - Schema discovery and repositories for relational databases.

    Examples:

        autorepo schema tables --url sqlite:///app.db

        autorepo schema show users --url sqlite:///app.db

        autorepo schema relationships
    """
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


if __name__ == "__main__":
    app()
