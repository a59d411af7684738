"""Database CLI commands: schema creation, seeding and listing."""

import json
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError
from rich.panel import Panel
from rich.table import Table

from src.catalog.core.exceptions import InvalidBookIdError
from src.catalog.core.services import DbSessionService
from src.catalog.entities.book import Book, BookId, BookRepository

from .utils import console

db_app = typer.Typer(help="🗄️  Catalog database commands")


def _load_seed_records(path: Path) -> list[Book]:
    """Parse a JSON array of book records into validated ``Book`` entities."""
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"{path} is not valid JSON: {e}") from e

    if not isinstance(raw, list):
        raise ValueError(f"{path} must contain a JSON array of books")

    books: list[Book] = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict) or "id" not in item:
            raise ValueError(f"Record {index} must be an object with an 'id'")
        try:
            record: dict[str, Any] = {**item, "id": BookId(item["id"]).value}
            books.append(Book.model_validate(record))
        except (InvalidBookIdError, ValidationError) as e:
            raise ValueError(f"Record {index} is invalid: {e}") from e
    return books


@db_app.command(name="init")
def init_db() -> None:
    """
    🛠️  Create the catalog tables in the configured database.
    """
    database_service = DbSessionService()
    try:
        database_service.create_all()
    finally:
        database_service.dispose()
    console.print("[green]✅ Database tables created[/green]")


@db_app.command(name="seed")
def seed(
    file: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        help="JSON file holding an array of books",
    ),
) -> None:
    """
    🌱 Load books from a JSON file, inserting new ones and updating existing ones.

    Each record needs ``id``, ``title`` and ``author``; ``isbn`` and
    ``available`` are optional.
    """
    try:
        books = _load_seed_records(file)
    except ValueError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1) from e

    database_service = DbSessionService()
    created = updated = 0
    try:
        database_service.create_all()
        with database_service.session_scope() as session:
            repository = BookRepository(session)
            for book in books:
                _, was_created = repository.upsert(book)
                if was_created:
                    created += 1
                else:
                    updated += 1
    finally:
        database_service.dispose()

    console.print(
        Panel.fit(
            f"[bold green]Seeded {len(books)} books[/bold green]\n"
            f"created: {created}  updated: {updated}",
            border_style="green",
        )
    )


@db_app.command(name="list")
def list_books() -> None:
    """
    📖 Show every book in the catalog.
    """
    database_service = DbSessionService()
    try:
        with database_service.session_scope() as session:
            books = BookRepository(session).list_all()
    finally:
        database_service.dispose()

    if not books:
        console.print("[yellow]No books found in the catalog[/yellow]")
        return

    table = Table(title="Library catalog")
    table.add_column("ID", style="cyan")
    table.add_column("Title", style="bold")
    table.add_column("Author")
    table.add_column("ISBN", style="dim")
    table.add_column("Available")

    for book in books:
        table.add_row(
            book.id,
            book.title,
            book.author,
            book.isbn or "-",
            "[green]yes[/green]" if book.available else "[red]no[/red]",
        )

    console.print(table)
    console.print(f"\n[green]Found {len(books)} books[/green]")
