"""Command-line interface for bookreviews.

Built with Typer for commands and Rich for output.
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .config import ConfigError, get_config

# Create the main app
app = typer.Typer(
    name="bookreviews",
    help="Import book metadata and reviews into a relational database.",
    no_args_is_help=True,
)

# Rich console for pretty output
console = Console()


# ============================================================================
# Helper Functions
# ============================================================================


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def _open_database():
    """Open the configured database, exiting with status 1 on bad config."""
    from .db import Database

    try:
        url = get_config().get_database_url()
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(1)
    return Database(url)


def format_book_table(books: list, title: str = "Books") -> Table:
    """Create a rich table for displaying books."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Title", style="cyan", no_wrap=False, max_width=40)
    table.add_column("Authors", style="green", max_width=25)
    table.add_column("Score", justify="center")
    table.add_column("Reviews", justify="right")
    table.add_column("Price", justify="right")

    for book in books:
        table.add_row(
            str(book.id),
            book.title,
            book.authors or "-",
            f"{book.average_score:.2f}" if book.average_score is not None else "-",
            str(book.reviews_count or 0),
            f"{book.price:.2f}" if book.price is not None else "-",
        )

    return table


def format_review_table(reviews: list, title: str = "Reviews") -> Table:
    """Create a rich table for displaying reviews."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("User", style="green", max_width=20)
    table.add_column("Score", justify="center")
    table.add_column("Time", justify="right")
    table.add_column("Summary", style="cyan", no_wrap=False, max_width=50)

    for review in reviews:
        table.add_row(
            review.profile_name or review.user_id or "-",
            str(review.review_score) if review.review_score is not None else "-",
            str(review.review_time) if review.review_time is not None else "-",
            review.review_summary or "-",
        )

    return table


# ============================================================================
# Import Commands
# ============================================================================


@app.command("import")
def import_cmd(
    books: Optional[Path] = typer.Option(None, "--books", "-b", help="Books CSV file"),
    reviews: Optional[Path] = typer.Option(None, "--reviews", "-r", help="Reviews CSV file"),
    batch_size: Optional[int] = typer.Option(
        None, "--batch-size", min=1, help="Reviews per multi-row insert"
    ),
    no_progress: bool = typer.Option(False, "--no-progress", help="Hide progress bars"),
    log_level: Optional[str] = typer.Option(None, "--log-level", "-l", help="Logging level"),
) -> None:
    """Clear the tables and import books, reviews and aggregates."""
    from .etl import run_import, show_import_results
    from .log import configure_logging

    try:
        config = get_config()
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(1)

    configure_logging(log_level or config.log_level)
    db = _open_database()

    result = run_import(
        books or config.books_csv,
        reviews or config.reviews_csv,
        db,
        batch_size=batch_size or config.batch_size,
        show_progress=not no_progress,
    )
    show_import_results(result, out=console)

    if not result.success:
        raise typer.Exit(1)


@app.command("init-db")
def init_db() -> None:
    """Create the books and reviews tables."""
    db = _open_database()
    try:
        db.create_tables()
    finally:
        db.dispose()
    print_success("Tables created")


# ============================================================================
# Catalog Commands
# ============================================================================


@app.command("books")
def books_cmd(
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Search title, authors, categories"),
    sort: str = typer.Option("title", "--sort", help="Sort column"),
    order: str = typer.Option("asc", "--order", help="asc or desc"),
    page: int = typer.Option(1, "--page", "-p", help="Page number"),
    limit: int = typer.Option(10, "--limit", help="Books per page"),
) -> None:
    """List imported books."""
    from .catalog import list_books

    db = _open_database()
    try:
        with db.get_session() as session:
            result = list_books(
                session, page=page, limit=limit, sort_by=sort, order=order, search=search
            )
    finally:
        db.dispose()

    if not result.items:
        console.print("[dim]No books found.[/dim]")
        return

    console.print(format_book_table(result.items))
    console.print(
        f"[dim]Page {result.page} of {result.total_pages} ({result.total} books)[/dim]"
    )


@app.command("reviews")
def reviews_cmd(
    book_id: int = typer.Argument(..., help="Book ID"),
    sort: str = typer.Option("review_time", "--sort", help="Sort column"),
    order: str = typer.Option("desc", "--order", help="asc or desc"),
    page: int = typer.Option(1, "--page", "-p", help="Page number"),
    limit: int = typer.Option(10, "--limit", help="Reviews per page"),
) -> None:
    """List reviews for a book."""
    from .catalog import BookNotFoundError, get_book, list_reviews

    db = _open_database()
    try:
        with db.get_session() as session:
            result = list_reviews(
                session, book_id, page=page, limit=limit, sort_by=sort, order=order
            )
            book = get_book(session, book_id)
    except BookNotFoundError as e:
        print_error(str(e))
        raise typer.Exit(1)
    finally:
        db.dispose()

    if not result.items:
        console.print(f"[dim]No reviews for '{book.title}'.[/dim]")
        return

    console.print(format_review_table(result.items, title=f"Reviews - {book.title}"))
    console.print(
        f"[dim]Page {result.page} of {result.total_pages} ({result.total} reviews)[/dim]"
    )


# ============================================================================
# Version Command
# ============================================================================


@app.command()
def version() -> None:
    """Show version information."""
    from . import __version__

    console.print(f"bookreviews version {__version__}")


# ============================================================================
# Main Entry Point
# ============================================================================


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
