"""Database connection and session management.

PostgreSQL is the production target; SQLite is supported for local runs
and tests.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy import Table, create_engine, event
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.sql.dml import Insert

from ..config import get_config
from .models import Base

# Bound-parameter ceilings per statement
MAX_BIND_PARAMS = {
    "postgresql": 65535,
    "sqlite": 999,
}


class UnsupportedDialectError(Exception):
    """Raised when an operation has no implementation for the engine's dialect."""

    pass


class Database:
    """Database connection and operations manager."""

    def __init__(self, url: Optional[str] = None, echo: bool = False):
        """Initialize database connection.

        Args:
            url: SQLAlchemy URL, a filesystem path to a SQLite file, or
                 ":memory:". If None, the URL is built from the environment
                 (see ``Config.get_database_url``).
            echo: Echo SQL statements.
        """
        if url is None:
            url = get_config().get_database_url()

        self._is_memory = url in (":memory:", "sqlite://", "sqlite:///:memory:")

        if self._is_memory:
            # StaticPool keeps every session on the same in-memory database
            self.url = "sqlite:///:memory:"
            self.engine = create_engine(
                self.url,
                echo=echo,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        elif "://" not in url:
            db_path = Path(url).expanduser()
            db_path.parent.mkdir(parents=True, exist_ok=True)
            self.url = f"sqlite:///{db_path}"
            self.engine = create_engine(
                self.url,
                echo=echo,
                connect_args={"check_same_thread": False},
            )
        else:
            self.url = url
            self.engine = create_engine(url, echo=echo, future=True)

        if self.dialect_name == "sqlite":
            _enable_sqlite_transactions(self.engine)

        self.SessionLocal = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    def create_tables(self) -> None:
        """Create all database tables."""
        Base.metadata.create_all(self.engine)

    def drop_tables(self) -> None:
        """Drop all database tables. Use with caution!"""
        Base.metadata.drop_all(self.engine)

    def dispose(self) -> None:
        """Release pooled connections.

        In-memory databases keep their single connection, which holds the data.
        """
        if self._is_memory:
            return
        self.engine.dispose()

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Get a database session context manager.

        The session is one transaction: committed on clean exit, rolled back
        and re-raised on any exception.
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


def _enable_sqlite_transactions(engine: Engine) -> None:
    """Let SQLAlchemy emit BEGIN itself so SAVEPOINTs nest correctly on pysqlite."""

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def insert_ignoring_conflicts(
    dialect_name: str, table: Table, index_elements: Optional[list] = None
) -> Insert:
    """Build ``INSERT ... ON CONFLICT [(cols)] DO NOTHING`` for the dialect."""
    if dialect_name == "postgresql":
        stmt = postgresql.insert(table)
    elif dialect_name == "sqlite":
        stmt = sqlite.insert(table)
    else:
        raise UnsupportedDialectError(
            f"Conflict-ignoring inserts are not supported for dialect {dialect_name!r}"
        )
    return stmt.on_conflict_do_nothing(index_elements=index_elements)


def max_rows_per_statement(dialect_name: str, num_columns: int) -> int:
    """How many rows of ``num_columns`` fit in one statement's parameters."""
    limit = MAX_BIND_PARAMS.get(dialect_name, 999)
    return max(1, limit // max(1, num_columns))


# Global database instance
_db: Optional[Database] = None


def get_db(url: Optional[str] = None) -> Database:
    """Get or create the global database instance."""
    global _db
    if _db is None:
        _db = Database(url)
    return _db


def reset_db() -> None:
    """Reset the global database instance. Used for testing."""
    global _db
    if _db is not None:
        _db.dispose()
    _db = None
