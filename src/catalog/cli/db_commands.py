"""Database CLI commands."""

import typer

from src.catalog.core.services import DbManageService
from src.catalog.runtime.context import get_config
from src.catalog.runtime.init_db import init_db

from .utils import console

db_app = typer.Typer(help="🗄️  Database management commands")


@db_app.command("init")
def init() -> None:
    """Create the catalog tables if they do not exist."""
    console.print(f"[blue]Initializing database at {get_config().database.url}[/blue]")
    init_db()
    console.print("[green]✅ Database tables created[/green]")


@db_app.command("drop")
def drop(
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation prompt"),
) -> None:
    """Drop the catalog tables."""
    if not force and not typer.confirm("Drop all catalog tables?"):
        console.print("[yellow]Cancelled[/yellow]")
        raise typer.Exit()
    DbManageService(get_config()).drop_all()
    console.print("[green]✅ Database tables dropped[/green]")
