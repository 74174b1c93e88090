"""Tests for the full import pipeline."""

import logging
from decimal import Decimal

from sqlalchemy import func, select

from bookreviews.db import Book, BookRecord, Database, Review
from bookreviews.etl.books import load_books
from bookreviews.etl.pipeline import ImportResult, clear_tables, run_import


def _snapshot(db: Database) -> dict:
    with db.get_session() as session:
        books = {
            book.title: (book.reviews_count, book.average_score, book.price)
            for book in session.execute(select(Book)).scalars()
        }
        reviews = session.execute(select(func.count(Review.id))).scalar_one()
    return {"books": books, "reviews": reviews}


class TestClearTables:
    """Tests for clear_tables."""

    def test_falls_back_to_delete_on_sqlite(self, db: Database):
        """Test that TRUNCATE fails on SQLite and DELETE empties the tables."""
        load_books([BookRecord(title="Dune")], db)

        assert clear_tables(db) == "delete"
        assert _snapshot(db) == {"books": {}, "reviews": 0}


class TestRunImport:
    """Tests for run_import."""

    def test_full_import(self, db: Database, books_csv_file, reviews_csv_file):
        """Test importing the sample CSV files end to end."""
        result = run_import(books_csv_file, reviews_csv_file, db, show_progress=False)

        assert result.success
        assert result.status == "SUCCESS"
        assert result.error is None
        assert result.cleared_with == "delete"
        assert result.books.inserted == 3
        assert result.reviews.linked == 4
        assert result.reviews.unlinked == 1
        assert result.aggregates is not None

        snapshot = _snapshot(db)
        assert snapshot["reviews"] == 4
        assert snapshot["books"]["The Hobbit"] == (2, Decimal("4.0"), Decimal("8.00"))
        assert snapshot["books"]["Dune"][:2] == (1, Decimal("4.0"))
        assert snapshot["books"]["Emma"] == (0, Decimal("0"), None)

    def test_rerun_is_idempotent(self, db: Database, books_csv_file, reviews_csv_file):
        """Test that importing the same files twice leaves the same state."""
        run_import(books_csv_file, reviews_csv_file, db, show_progress=False)
        first = _snapshot(db)

        result = run_import(books_csv_file, reviews_csv_file, db, show_progress=False)

        assert result.success
        assert _snapshot(db) == first

    def test_previous_data_replaced(self, db: Database, books_csv_file, reviews_csv_file):
        """Test that books from an earlier run are removed."""
        load_books([BookRecord(title="Stale Book")], db)

        run_import(books_csv_file, reviews_csv_file, db, show_progress=False)

        assert "Stale Book" not in _snapshot(db)["books"]

    def test_zero_linked_skips_aggregates(
        self, db: Database, books_csv_file, make_reviews_csv, review_row
    ):
        """Test that aggregates are not computed when no review links."""
        reviews_csv = make_reviews_csv([review_row("Nobody Wrote This", "B1", "U1")])

        result = run_import(books_csv_file, reviews_csv, db, show_progress=False)

        assert result.success
        assert result.reviews.linked == 0
        assert result.aggregates is None
        assert result.aggregates_skipped
        assert _snapshot(db)["books"] == {
            "The Hobbit": (0, Decimal("0.0"), None),
            "Dune": (0, Decimal("0.0"), None),
            "Emma": (0, Decimal("0.0"), None),
        }

    def test_missing_books_file_fails(self, db: Database, tmp_path, reviews_csv_file):
        """Test that a missing source is reported as a failed run."""
        result = run_import(tmp_path / "missing.csv", reviews_csv_file, db, show_progress=False)

        assert not result.success
        assert result.status == "FAILURE"
        assert "File not found" in result.error
        assert result.reviews is None

    def test_missing_reviews_file_keeps_books(self, db: Database, books_csv_file, tmp_path):
        """Test that books committed before a review failure stay."""
        result = run_import(books_csv_file, tmp_path / "missing.csv", db, show_progress=False)

        assert not result.success
        assert result.books.inserted == 3
        assert len(_snapshot(db)["books"]) == 3
        assert _snapshot(db)["reviews"] == 0

    def test_final_log_line(self, db: Database, books_csv_file, reviews_csv_file, caplog):
        """Test that the run ends with the elapsed time and status."""
        with caplog.at_level(logging.INFO, logger="bookreviews"):
            result = run_import(books_csv_file, reviews_csv_file, db, show_progress=False)

        assert result.elapsed_seconds >= 0
        assert "Status: SUCCESS" in caplog.records[-1].getMessage()


class TestImportResult:
    """Tests for ImportResult."""

    def test_defaults(self):
        """Test a fresh result is a failure with no phases run."""
        result = ImportResult()
        assert result.status == "FAILURE"
        assert result.books is None
        assert result.elapsed_minutes == 0

    def test_elapsed_minutes(self):
        """Test conversion from seconds."""
        assert ImportResult(elapsed_seconds=90).elapsed_minutes == 1.5
