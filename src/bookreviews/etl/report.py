"""Rich output for import results."""

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .pipeline import ImportResult

console = Console()


def build_summary_table(result: ImportResult) -> Table:
    """Create a table with one row per import phase."""
    table = Table(title="Import Summary", show_header=True, header_style="bold magenta")
    table.add_column("Phase", style="cyan")
    table.add_column("Details")

    table.add_row("Clear", result.cleared_with or "-")

    if result.books is not None:
        books = result.books
        table.add_row(
            "Books",
            f"{books.rows_read} read, {books.inserted} inserted, "
            f"{books.duplicates} duplicates, {books.skipped_untitled} untitled, "
            f"{len(books.errors)} errors",
        )
        table.add_row("Title index", f"{len(books.title_index)} titles")
    else:
        table.add_row("Books", "[dim]not run[/dim]")

    if result.reviews is not None:
        reviews = result.reviews
        table.add_row(
            "Reviews",
            f"{reviews.rows_read} read, {reviews.linked} linked, {reviews.unlinked} unlinked, "
            f"{reviews.rows_inserted} inserted in {reviews.batches_flushed} batches",
        )
    else:
        table.add_row("Reviews", "[dim]not run[/dim]")

    if result.aggregates is not None:
        agg = result.aggregates
        details = (
            f"{agg.books_scored} scored, {agg.books_zeroed} zeroed, {agg.books_priced} priced"
        )
        if agg.price_error:
            details += f" [yellow](price inference failed: {escape(agg.price_error[:60])})[/yellow]"
        table.add_row("Aggregates", details)
    elif result.aggregates_skipped:
        table.add_row("Aggregates", "[dim]skipped (no linked reviews)[/dim]")
    else:
        table.add_row("Aggregates", "[dim]not run[/dim]")

    return table


def show_import_results(result: ImportResult, out: Optional[Console] = None) -> None:
    """Show results after an import completes."""
    out = out or console

    out.print("\n" + "=" * 60)
    if result.success:
        out.print("[bold green]IMPORT COMPLETE[/bold green]")
    else:
        out.print("[bold red]IMPORT FAILED[/bold red]")
    out.print("=" * 60 + "\n")

    out.print(build_summary_table(result))

    if result.books is not None and result.books.errors:
        errors = result.books.errors
        error_table = Table(show_header=True, title="Book Insert Errors")
        error_table.add_column("Title", width=30)
        error_table.add_column("Error", width=40)

        for title, error in errors[:20]:
            error_table.add_row(escape(title[:30]), escape(error[:40]))

        if len(errors) > 20:
            error_table.add_row(f"... and {len(errors) - 20} more errors", "")

        out.print(error_table)

    if result.error:
        out.print(f"\n[red]Error:[/red] {escape(result.error)}")

    out.print(
        f"\n[dim]Total time: {result.elapsed_minutes:.2f} minutes. "
        f"Status: {result.status}[/dim]"
    )
