"""Pytest configuration and shared fixtures.

This module provides fixtures for testing bookreviews, including temporary
SQLite databases and small books/reviews CSV files.
"""

import csv
import os
import tempfile
from pathlib import Path
from typing import Callable, Generator

import pytest
from sqlalchemy.orm import Session

from bookreviews.config import reset_config
from bookreviews.db import Database, reset_db

BOOK_COLUMNS = [
    "Title",
    "description",
    "authors",
    "image",
    "previewLink",
    "publisher",
    "publishedDate",
    "infoLink",
    "categories",
    "ratingsCount",
]

REVIEW_COLUMNS = [
    "Id",
    "Title",
    "Price",
    "User_id",
    "profileName",
    "review/helpfulness",
    "review/score",
    "review/time",
    "review/summary",
    "review/text",
]


def write_csv(path: Path, columns: list[str], rows: list[dict]) -> Path:
    """Write rows to a CSV file with the given header."""
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=columns)
        writer.writeheader()
        for row in rows:
            writer.writerow({column: row.get(column, "") for column in columns})
    return path


def _book_row(title: str, **fields) -> dict:
    """A books CSV row with sensible defaults."""
    row = {
        "Title": title,
        "description": f"About {title}",
        "authors": "['Test Author']",
        "publisher": "Test Press",
        "publishedDate": "2001",
        "categories": "['Fiction']",
    }
    row.update(fields)
    return row


def _review_row(title: str, review_id: str, user_id: str, **fields) -> dict:
    """A reviews CSV row with sensible defaults."""
    row = {
        "Id": review_id,
        "Title": title,
        "User_id": user_id,
        "profileName": f"Reader {user_id}",
        "review/helpfulness": "1/1",
        "review/score": "4.0",
        "review/time": "1000000000",
        "review/summary": "Good",
        "review/text": "Enjoyed it.",
    }
    row.update(fields)
    return row


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture(scope="function")
def temp_db_path() -> Generator[Path, None, None]:
    """Create a temporary database file path."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)
    yield db_path
    # Cleanup
    if db_path.exists():
        db_path.unlink()


@pytest.fixture(scope="function")
def db(temp_db_path: Path) -> Generator[Database, None, None]:
    """Create a test database instance."""
    # Reset any global state
    reset_db()
    reset_config()

    os.environ["DATABASE_URL"] = f"sqlite:///{temp_db_path}"

    database = Database(str(temp_db_path))
    database.create_tables()
    yield database

    # Cleanup
    database.dispose()
    reset_db()
    reset_config()
    if "DATABASE_URL" in os.environ:
        del os.environ["DATABASE_URL"]


@pytest.fixture(scope="function")
def session(db: Database) -> Generator[Session, None, None]:
    """Create a database session for testing."""
    with db.get_session() as sess:
        yield sess


# ============================================================================
# CSV Fixtures
# ============================================================================


@pytest.fixture
def make_books_csv(tmp_path: Path) -> Callable[[list[dict]], Path]:
    """Factory writing a books CSV into tmp_path."""

    def _make(rows: list[dict], name: str = "books_details.csv") -> Path:
        return write_csv(tmp_path / name, BOOK_COLUMNS, rows)

    return _make


@pytest.fixture
def make_reviews_csv(tmp_path: Path) -> Callable[[list[dict]], Path]:
    """Factory writing a reviews CSV into tmp_path."""

    def _make(rows: list[dict], name: str = "reviews.csv") -> Path:
        return write_csv(tmp_path / name, REVIEW_COLUMNS, rows)

    return _make


@pytest.fixture
def book_row() -> Callable[..., dict]:
    """Builder for books CSV rows."""
    return _book_row


@pytest.fixture
def review_row() -> Callable[..., dict]:
    """Builder for reviews CSV rows."""
    return _review_row


@pytest.fixture
def books_csv_file(make_books_csv) -> Path:
    """Books CSV with a duplicate title and an untitled row."""
    return make_books_csv(
        [
            _book_row("The Hobbit", authors="['J.R.R. Tolkien']", categories="['Fantasy']"),
            _book_row("Dune", authors="['Frank Herbert']", categories="['Science Fiction']"),
            _book_row("The Hobbit", description="Second copy"),
            _book_row(""),
            _book_row("Emma", authors="['Jane Austen']", publishedDate=""),
        ]
    )


@pytest.fixture
def reviews_csv_file(make_reviews_csv) -> Path:
    """Reviews CSV with linked, unlinked and unscored rows."""
    return make_reviews_csv(
        [
            _review_row("The Hobbit", "B001", "U1", **{"review/score": "3.0", "Price": "$12.50",
                                                      "review/time": "100"}),
            _review_row("the hobbit ", "B001", "U2", **{"review/score": "5.0", "Price": "8.00",
                                                       "review/time": "50"}),
            _review_row("THE HOBBIT", "B001", "U3", **{"review/score": ""}),
            _review_row("Dune", "B002", "U1", **{"review/score": "4.0"}),
            _review_row("Unknown Book", "B999", "U4"),
        ]
    )


# ============================================================================
# CLI Testing Fixtures
# ============================================================================


@pytest.fixture
def cli_runner():
    """Create a Typer CLI test runner."""
    from typer.testing import CliRunner
    return CliRunner()


@pytest.fixture
def cli_app():
    """Get the CLI app for testing."""
    from bookreviews.cli import app
    return app
