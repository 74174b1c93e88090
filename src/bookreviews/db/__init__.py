"""Database module: ORM models, schemas and session management."""

from .database import (
    Database,
    UnsupportedDialectError,
    get_db,
    insert_ignoring_conflicts,
    max_rows_per_statement,
    reset_db,
)
from .models import BOOK_INSERT_COLUMNS, REVIEW_INSERT_COLUMNS, Base, Book, Review, table_columns
from .schemas import BookRecord, BookSummary, Page, ReviewRecord, ReviewSummary

__all__ = [
    "Base",
    "Book",
    "Review",
    "BOOK_INSERT_COLUMNS",
    "REVIEW_INSERT_COLUMNS",
    "table_columns",
    "BookRecord",
    "ReviewRecord",
    "BookSummary",
    "ReviewSummary",
    "Page",
    "Database",
    "UnsupportedDialectError",
    "get_db",
    "reset_db",
    "insert_ignoring_conflicts",
    "max_rows_per_statement",
]
