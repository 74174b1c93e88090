"""Load reviews in batches, linking each one to a book by normalized title."""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence

from sqlalchemy.orm import Session

from ..config import DEFAULT_BATCH_SIZE
from ..db.database import Database, insert_ignoring_conflicts, max_rows_per_statement
from ..db.models import REVIEW_INSERT_COLUMNS, Review, table_columns
from ..db.schemas import ReviewRecord
from .books import TitleIndex
from .normalize import normalize_title

logger = logging.getLogger(__name__)

DEBUG_FIRST_ROWS = 5
DEBUG_EVERY = 500_000

ReviewRow = tuple[Any, ...]


@dataclass
class ReviewLoadResult:
    """Result of the review loading pass."""

    rows_read: int = 0
    linked: int = 0
    unlinked: int = 0
    batches_flushed: int = 0
    rows_inserted: int = 0


def review_row(book_id: int, record: ReviewRecord) -> ReviewRow:
    """Build a row in ``REVIEW_INSERT_COLUMNS`` order."""
    return (
        book_id,
        record.original_review_id,
        record.user_id,
        record.profile_name,
        record.helpfulness,
        record.score,
        record.time,
        record.summary,
        record.text,
        record.price_text,
    )


def flush_review_batch(session: Session, batch: Sequence[Optional[ReviewRow]]) -> int:
    """Insert a batch of review rows as one multi-row insert, ignoring conflicts.

    Rows with the wrong number of columns are dropped with a warning. Returns
    the number of rows the database reports as inserted.
    """
    num_columns = len(REVIEW_INSERT_COLUMNS)
    valid_rows = []
    for row in batch:
        if row is None or len(row) != num_columns:
            logger.warning(
                "Skipping malformed review row in batch (%s columns, expected %d)",
                len(row) if row is not None else "no",
                num_columns,
            )
            continue
        valid_rows.append(row)

    if not valid_rows:
        logger.info("No valid reviews in the current batch to insert")
        return 0

    columns = table_columns(Review, REVIEW_INSERT_COLUMNS)
    dialect_name = session.get_bind().dialect.name
    rows_per_statement = max_rows_per_statement(dialect_name, num_columns)

    inserted = 0
    for start in range(0, len(valid_rows), rows_per_statement):
        chunk = valid_rows[start : start + rows_per_statement]
        stmt = insert_ignoring_conflicts(dialect_name, Review.__table__).values(
            [dict(zip(columns, row)) for row in chunk]
        )
        result = session.execute(stmt)
        if result.rowcount is not None and result.rowcount >= 0:
            inserted += result.rowcount
    return inserted


def load_reviews(
    records: Iterable[ReviewRecord],
    title_index: TitleIndex,
    db: Database,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> ReviewLoadResult:
    """Link reviews to books and insert them in batches.

    Reviews whose title matches no book are counted and dropped. The whole
    pass runs in one transaction; any failure rolls it back and re-raises.

    Args:
        records: Stream of review records in source order
        title_index: Index returned by the book loader
        db: Database to write to
        batch_size: Rows per multi-row insert

    Returns:
        ReviewLoadResult with linked/unlinked counts
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")

    result = ReviewLoadResult()
    if len(title_index) == 0:
        logger.warning("Title index is empty; skipping review import")
        return result

    logger.info("Loading reviews (batch size: %d)...", batch_size)
    batch: list[ReviewRow] = []

    def flush(session: Session) -> None:
        result.rows_inserted += flush_review_batch(session, batch)
        result.batches_flushed += 1
        batch.clear()

    try:
        with db.get_session() as session:
            for record in records:
                result.rows_read += 1

                if result.rows_read == 1:
                    logger.debug(
                        "First review fields: %s",
                        sorted(record.model_dump(by_alias=True).keys()),
                    )

                book_id = title_index.lookup(record.title)

                if result.rows_read <= DEBUG_FIRST_ROWS or result.rows_read % DEBUG_EVERY == 0:
                    logger.debug(
                        "Review %d: title=%r normalized=%r book_id=%s",
                        result.rows_read,
                        record.title,
                        normalize_title(record.title),
                        book_id,
                    )

                if book_id is None:
                    result.unlinked += 1
                else:
                    result.linked += 1
                    batch.append(review_row(book_id, record))

                if len(batch) >= batch_size:
                    flush(session)

            if batch:
                logger.info("Flushing final batch of %d reviews...", len(batch))
                flush(session)

            logger.info("Finished reading reviews (%d rows)", result.rows_read)
    except Exception:
        logger.exception("Review import failed; transaction rolled back")
        raise

    logger.info(
        "Reviews loaded: %d linked, %d unlinked, %d inserted in %d batches",
        result.linked,
        result.unlinked,
        result.rows_inserted,
        result.batches_flushed,
    )
    return result
