"""Load books and build the title index used to link reviews."""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..db.database import Database, insert_ignoring_conflicts
from ..db.models import BOOK_INSERT_COLUMNS, Book, table_columns
from ..db.schemas import BookRecord
from .normalize import normalize_title

logger = logging.getLogger(__name__)

PROGRESS_EVERY = 20_000


class TitleIndex:
    """Normalized title -> book id.

    Built once after all books are persisted and handed to the review
    loader. When two titles normalize to the same key the later one wins;
    ``collisions`` counts how often that happened.
    """

    def __init__(self) -> None:
        self._ids: dict[str, int] = {}
        self.collisions = 0

    def add(self, title: Optional[str], book_id: int) -> None:
        key = normalize_title(title)
        if not key:
            return
        previous = self._ids.get(key)
        if previous is not None and previous != book_id:
            self.collisions += 1
        self._ids[key] = book_id

    def lookup(self, title: Optional[str]) -> Optional[int]:
        """Book id for a raw title, or None if no book matches."""
        key = normalize_title(title)
        if not key:
            return None
        return self._ids.get(key)

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, title) -> bool:
        return self.lookup(title) is not None

    def __iter__(self) -> Iterator[str]:
        return iter(self._ids)

    def __repr__(self) -> str:
        return f"<TitleIndex(entries={len(self)}, collisions={self.collisions})>"


@dataclass
class BookLoadResult:
    """Result of the book loading pass."""

    rows_read: int = 0
    inserted: int = 0
    duplicates: int = 0
    skipped_untitled: int = 0
    errors: list[tuple[str, str]] = field(default_factory=list)
    title_index: TitleIndex = field(default_factory=TitleIndex)


def insert_book(session: Session, record: BookRecord) -> bool:
    """Insert one book with default aggregates, ignoring a title conflict.

    Returns:
        True if a row was inserted, False if the title already existed
    """
    table = Book.__table__
    values = record.to_row()
    params = {
        column: values[name]
        for column, name in zip(table_columns(Book, BOOK_INSERT_COLUMNS), BOOK_INSERT_COLUMNS)
    }
    # Aggregates start at their defaults; only the aggregate updater changes them
    params[table.c.price] = None
    params[table.c.average_score] = 0.0
    params[table.c.reviews_count] = 0

    stmt = insert_ignoring_conflicts(
        session.get_bind().dialect.name, table, index_elements=["title"]
    ).values(params)
    result = session.execute(stmt)
    return (result.rowcount or 0) > 0


def build_title_index(session: Session) -> TitleIndex:
    """Read every persisted book and index it by normalized title."""
    index = TitleIndex()
    rows = session.execute(
        select(Book.id, Book.title).where(Book.title.is_not(None)).order_by(Book.id)
    )
    for book_id, title in rows:
        index.add(title, book_id)
    return index


def load_books(records: Iterable[BookRecord], db: Database) -> BookLoadResult:
    """Insert each unique book title and return the title index.

    The whole pass runs in one transaction. A book whose insert fails is
    logged and skipped; anything else rolls the pass back and re-raises.

    Args:
        records: Stream of book records in source order
        db: Database to write to

    Returns:
        BookLoadResult with counts and the populated title index
    """
    result = BookLoadResult()
    seen_titles: set[str] = set()

    logger.info("Loading books...")
    try:
        with db.get_session() as session:
            for record in records:
                result.rows_read += 1
                title = record.title

                if not title or not title.strip():
                    result.skipped_untitled += 1
                    if result.rows_read > 1:
                        logger.warning("Row %d: book without a title, skipping", result.rows_read)
                    continue

                if title in seen_titles:
                    result.duplicates += 1
                    continue

                try:
                    with session.begin_nested():
                        if insert_book(session, record):
                            result.inserted += 1
                    seen_titles.add(title)
                except SQLAlchemyError as e:
                    logger.error(
                        "Failed to insert book %r (row ~%d): %s", title, result.rows_read, e
                    )
                    result.errors.append((title, str(e)))

                if result.rows_read % PROGRESS_EVERY == 0:
                    logger.info("Read %d books from source...", result.rows_read)

            logger.info(
                "Finished reading books (%d rows). Building title index...", result.rows_read
            )
            result.title_index = build_title_index(session)
    except Exception:
        logger.exception("Book import failed; transaction rolled back")
        raise

    if result.title_index.collisions:
        logger.warning(
            "%d titles collided after normalization; the last book wins",
            result.title_index.collisions,
        )
    logger.info(
        "Books loaded: %d inserted, %d duplicates, %d untitled, %d errors, %d indexed titles",
        result.inserted,
        result.duplicates,
        result.skipped_untitled,
        len(result.errors),
        len(result.title_index),
    )
    return result
