"""Schema inspection commands."""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table
from typing_extensions import Annotated

from ..config import settings
from ..database.models import SchemaInfo
from ..engine import Engine
from ..errors import AutoRepoError
from ..schema.relationships import RelationshipDiscoveryService
from ..schema.views import ViewDiscoveryService

app = typer.Typer(help="Inspect a database schema")
console = Console()


async def _discover(url: Optional[str]) -> SchemaInfo:
    engine = Engine.from_url(url, settings=settings)
    try:
        await engine.initialize()
        return engine.get_schema_info()
    finally:
        await engine.close()


def load_schema(url: Optional[str]) -> SchemaInfo:
    """Discover the schema or exit with an error message."""
    try:
        return asyncio.run(_discover(url))
    except AutoRepoError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        raise typer.Exit(1)


@app.command("tables")
def list_tables(
    url: Annotated[Optional[str], typer.Option(
        "--url", "-u",
        help="Database URL (default: AUTOREPO_DATABASE_URL)"
    )] = None,
):
    """List discovered tables."""
    schema = load_schema(url)
    if not schema.tables:
        console.print("[yellow]No tables found.[/yellow]")
        return

    table = Table(title="Tables")
    table.add_column("Table", style="cyan")
    table.add_column("Columns", style="green")
    table.add_column("Primary Key", style="magenta")
    table.add_column("Auto Increment", style="blue")
    table.add_column("Foreign Keys", style="yellow")

    for info in schema.tables:
        auto = info.auto_increment
        table.add_row(
            info.name,
            str(len(info.columns)),
            ", ".join(info.key_columns) or "-",
            f"{auto.column} ({auto.kind})" if auto.has_auto_increment else "-",
            str(len(info.foreign_keys)),
        )

    console.print(table)


@app.command("show")
def show_table(
    name: Annotated[str, typer.Argument(help="Table name")],
    url: Annotated[Optional[str], typer.Option(
        "--url", "-u",
        help="Database URL (default: AUTOREPO_DATABASE_URL)"
    )] = None,
):
    """Show columns, indexes and relationships of one table."""
    schema = load_schema(url)
    info = schema.get_table(name)
    if info is None:
        console.print(f"[red]Table '{name}' not found. Available tables: {', '.join(schema.table_names)}[/red]")
        raise typer.Exit(1)

    console.print(f"[bold]Table: {info.name}[/bold]")

    columns = Table(title="Columns")
    columns.add_column("Name", style="cyan")
    columns.add_column("Type", style="green")
    columns.add_column("Python", style="blue")
    columns.add_column("Nullable")
    columns.add_column("Default")
    columns.add_column("PK", style="magenta")
    for column in info.columns:
        columns.add_row(
            column.name,
            column.data_type or "-",
            column.python_type,
            "yes" if column.is_nullable else "no",
            "-" if column.default_value is None else str(column.default_value),
            str(column.primary_key_ordinal) if column.is_primary_key else "",
        )
    console.print(columns)

    if info.indexes:
        indexes = Table(title="Indexes")
        indexes.add_column("Name", style="cyan")
        indexes.add_column("Columns", style="green")
        indexes.add_column("Unique", style="magenta")
        for index in info.indexes:
            indexes.add_row(index.name, ", ".join(index.columns), "yes" if index.unique else "no")
        console.print(indexes)

    relationships = schema.relationships_for(info.name)
    if relationships:
        rel_table = Table(title="Relationships")
        rel_table.add_column("Name", style="cyan")
        rel_table.add_column("Type", style="yellow")
        rel_table.add_column("Target", style="green")
        for rel in relationships:
            rel_table.add_row(rel.name, rel.type, f"{rel.to_table}.{rel.to_column}")
        console.print(rel_table)


@app.command("relationships")
def list_relationships(
    url: Annotated[Optional[str], typer.Option(
        "--url", "-u",
        help="Database URL (default: AUTOREPO_DATABASE_URL)"
    )] = None,
):
    """List relationships inferred from foreign keys."""
    schema = load_schema(url)
    if not schema.relationships:
        console.print("[yellow]No relationships found.[/yellow]")
        return

    rel_table = Table(title="Relationships")
    rel_table.add_column("Source", style="cyan")
    rel_table.add_column("Name", style="magenta")
    rel_table.add_column("Type", style="yellow")
    rel_table.add_column("Target", style="green")
    for rel in schema.relationships:
        name = f"{rel.name} [red](ambiguous)[/red]" if rel.ambiguous else rel.name
        rel_table.add_row(
            f"{rel.from_table}.{rel.from_column}",
            name,
            rel.type,
            f"{rel.to_table}.{rel.to_column}",
        )
    console.print(rel_table)

    patterns = RelationshipDiscoveryService().analyze_patterns(schema.tables)
    console.print(f"  Self-referencing: {patterns['self_referencing']}")
    if patterns["junction_tables"]:
        console.print(f"  Junction tables: {', '.join(patterns['junction_tables'])}")
    for cycle in patterns["circular_references"]:
        console.print(f"  [yellow]Circular reference: {cycle}[/yellow]")


@app.command("views")
def list_views(
    url: Annotated[Optional[str], typer.Option(
        "--url", "-u",
        help="Database URL (default: AUTOREPO_DATABASE_URL)"
    )] = None,
):
    """List views and the tables they read from."""
    schema = load_schema(url)
    if not schema.views:
        console.print("[yellow]No views found.[/yellow]")
        return

    dependencies = ViewDiscoveryService.view_dependencies(schema.views)
    view_table = Table(title="Views")
    view_table.add_column("View", style="cyan")
    view_table.add_column("Columns", style="green")
    view_table.add_column("Reads From", style="magenta")
    for view in schema.views:
        view_table.add_row(
            view.name,
            str(len(view.columns)),
            ", ".join(dependencies.get(view.name, [])) or "-",
        )
    console.print(view_table)
