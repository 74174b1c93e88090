"""Tests for database connection and dialect helpers."""

import pytest
from sqlalchemy import inspect, select, text

from bookreviews.db import Book, Database, get_db, reset_db
from bookreviews.db.database import (
    UnsupportedDialectError,
    insert_ignoring_conflicts,
    max_rows_per_statement,
)


class TestDatabaseCreation:
    """Tests for database initialization."""

    def test_database_creates_tables(self, db: Database):
        """Test that database creates the books and reviews tables."""
        tables = set(inspect(db.engine).get_table_names())
        assert {"books", "reviews"} <= tables

    def test_source_column_names(self, db: Database):
        """Test that camelCase source columns keep their names."""
        columns = {c["name"] for c in inspect(db.engine).get_columns("books")}
        assert {"previewLink", "publishedDate", "infoLink"} <= columns
        review_columns = {c["name"] for c in inspect(db.engine).get_columns("reviews")}
        assert "profileName" in review_columns

    def test_file_path_url(self, tmp_path):
        """Test that a plain path becomes a SQLite file URL."""
        path = tmp_path / "nested" / "books.db"
        database = Database(str(path))
        try:
            assert database.url == f"sqlite:///{path}"
            assert database.dialect_name == "sqlite"
            assert path.parent.exists()
        finally:
            database.dispose()

    def test_memory_database_survives_dispose(self):
        """Test that an in-memory database keeps its data across dispose."""
        database = Database(":memory:")
        database.create_tables()
        with database.get_session() as session:
            session.add(Book(title="Dune"))
        database.dispose()

        with database.get_session() as session:
            assert session.execute(select(Book.title)).scalar_one() == "Dune"

    def test_foreign_keys_enforced(self, db: Database):
        """Test that SQLite foreign keys are switched on."""
        with db.engine.connect() as conn:
            assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1


class TestSessions:
    """Tests for get_session."""

    def test_commit_on_success(self, db: Database):
        """Test that a clean exit commits."""
        with db.get_session() as session:
            session.add(Book(title="Dune"))

        with db.get_session() as session:
            assert session.execute(select(Book)).scalar_one().title == "Dune"

    def test_rollback_on_error(self, db: Database):
        """Test that an exception rolls back and propagates."""
        with pytest.raises(RuntimeError):
            with db.get_session() as session:
                session.add(Book(title="Dune"))
                session.flush()
                raise RuntimeError("boom")

        with db.get_session() as session:
            assert session.execute(select(Book)).first() is None

    def test_savepoint_rollback_keeps_outer_work(self, db: Database):
        """Test that a nested rollback only discards its own changes."""
        with db.get_session() as session:
            session.add(Book(title="Dune"))
            session.flush()
            with pytest.raises(RuntimeError):
                with session.begin_nested():
                    session.add(Book(title="Emma"))
                    session.flush()
                    raise RuntimeError("inner")

        with db.get_session() as session:
            titles = session.execute(select(Book.title)).scalars().all()
        assert titles == ["Dune"]


class TestDialectHelpers:
    """Tests for conflict-ignoring inserts and parameter limits."""

    def test_insert_ignoring_conflicts_sqlite(self, db: Database):
        """Test that a duplicate title insert is a no-op."""
        stmt = insert_ignoring_conflicts("sqlite", Book.__table__, index_elements=["title"])
        with db.get_session() as session:
            assert session.execute(stmt.values(title="Dune")).rowcount == 1
            assert session.execute(stmt.values(title="Dune")).rowcount == 0

    def test_postgresql_statement_compiles(self):
        """Test the PostgreSQL form of the statement."""
        from sqlalchemy.dialects import postgresql

        stmt = insert_ignoring_conflicts("postgresql", Book.__table__, index_elements=["title"])
        sql = str(stmt.values(title="Dune").compile(dialect=postgresql.dialect()))
        assert "ON CONFLICT (title) DO NOTHING" in sql

    def test_unsupported_dialect(self):
        """Test that other dialects are rejected."""
        with pytest.raises(UnsupportedDialectError):
            insert_ignoring_conflicts("mysql", Book.__table__)

    def test_max_rows_per_statement(self):
        """Test the per-dialect row ceilings."""
        assert max_rows_per_statement("sqlite", 10) == 99
        assert max_rows_per_statement("postgresql", 10) == 6553
        assert max_rows_per_statement("sqlite", 5000) == 1


class TestGlobalDatabase:
    """Tests for the process-wide database."""

    def test_get_db_uses_config(self, temp_db_path, monkeypatch):
        """Test that get_db builds its URL from the environment."""
        from bookreviews.config import reset_config

        reset_db()
        reset_config()
        monkeypatch.setenv("DATABASE_URL", f"sqlite:///{temp_db_path}")
        try:
            database = get_db()
            assert database is get_db()
            assert database.dialect_name == "sqlite"
        finally:
            reset_db()
            reset_config()
