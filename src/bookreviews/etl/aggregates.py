"""Recompute per-book aggregates from the persisted reviews.

All three aggregates are rebuilt from scratch on every run:

1. ``reviews_count`` / ``average_score`` for books with scored reviews
2. zeroed aggregates for books with no reviews at all
3. ``price``, inferred from the earliest review carrying a usable price text
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Optional

from sqlalchemy import and_, bindparam, case, exists, func, or_, select, update
from sqlalchemy.orm import Session

from ..db.database import Database
from ..db.models import Book, Review
from .normalize import parse_price

logger = logging.getLogger(__name__)

PriceParser = Callable[[Any], Optional[Decimal]]

# Candidate rows are fetched, and book prices written, this many at a time
PRICE_UPDATE_CHUNK = 1000


@dataclass
class AggregateResult:
    """Result of the aggregate update."""

    books_scored: int = 0
    books_zeroed: int = 0
    books_priced: int = 0
    price_error: Optional[str] = None


def update_counts_and_averages(session: Session) -> int:
    """Set count/average from scored reviews; books without any are untouched."""
    scored = and_(Review.book_id == Book.id, Review.review_score.is_not(None))

    count_subq = select(func.count(Review.id)).where(scored).scalar_subquery()
    avg_subq = select(func.avg(Review.review_score)).where(scored).scalar_subquery()

    stmt = (
        update(Book)
        .where(exists().where(scored))
        .values(
            reviews_count=func.coalesce(count_subq, 0),
            average_score=func.coalesce(avg_subq, 0.0),
        )
        .execution_options(synchronize_session=False)
    )
    return session.execute(stmt).rowcount or 0


def zero_unreviewed_books(session: Session) -> int:
    """Reset aggregates of books that have no review rows at all."""
    stmt = (
        update(Book)
        .where(~exists().where(Review.book_id == Book.id))
        .values(reviews_count=0, average_score=0.0)
        .execution_options(synchronize_session=False)
    )
    return session.execute(stmt).rowcount or 0


def infer_prices(session: Session, price_parser: PriceParser = parse_price) -> int:
    """Fill missing or non-positive book prices from review price texts.

    For each book, reviews are ranked by time (oldest first, untimed last),
    then by id; the first one whose price text parses wins.

    Returns:
        Number of books whose price was written
    """
    candidates = (
        select(Review.book_id, Review.original_price_text)
        .join(Book, Book.id == Review.book_id)
        .where(
            Review.original_price_text.is_not(None),
            or_(Book.price.is_(None), Book.price <= 0),
        )
        .order_by(
            Review.book_id,
            case((Review.review_time.is_(None), 1), else_=0),
            Review.review_time,
            Review.id,
        )
    )

    prices: dict[int, Decimal] = {}
    rows = session.execute(candidates.execution_options(yield_per=PRICE_UPDATE_CHUNK))
    for book_id, price_text in rows:
        if book_id in prices:
            continue
        price = price_parser(price_text)
        if price is not None and price >= 0:
            prices[book_id] = price

    if not prices:
        return 0

    table = Book.__table__
    stmt = (
        update(table)
        .where(table.c.id == bindparam("b_id"))
        .where(or_(table.c.price.is_(None), table.c.price <= 0))
        .values(price=bindparam("b_price", type_=table.c.price.type))
    )

    updated = 0
    items = list(prices.items())
    for start in range(0, len(items), PRICE_UPDATE_CHUNK):
        chunk = items[start : start + PRICE_UPDATE_CHUNK]
        result = session.execute(
            stmt, [{"b_id": book_id, "b_price": price} for book_id, price in chunk]
        )
        if result.rowcount is not None and result.rowcount >= 0:
            updated += result.rowcount
        else:
            updated += len(chunk)
    return updated


def update_book_aggregates(
    db: Database, price_parser: PriceParser = parse_price
) -> AggregateResult:
    """Recompute review count, average score and price for every book.

    Runs in one transaction. Price inference is best effort: its failure is
    logged and does not affect the other aggregates.
    """
    result = AggregateResult()
    logger.info("Updating book aggregates (count, average, price)...")

    try:
        with db.get_session() as session:
            result.books_scored = update_counts_and_averages(session)
            logger.info("%d books had count/average updated from reviews", result.books_scored)

            result.books_zeroed = zero_unreviewed_books(session)
            logger.info("%d books had count/average reset to zero", result.books_zeroed)

            logger.info("Inferring prices from the earliest valid review price...")
            try:
                with session.begin_nested():
                    result.books_priced = infer_prices(session, price_parser)
                logger.info("%d books had price updated", result.books_priced)
            except Exception as e:
                result.price_error = str(e)
                logger.error("Price inference failed, keeping existing prices: %s", e)
    except Exception:
        logger.exception("Aggregate update failed; transaction rolled back")
        raise

    logger.info("Aggregate update complete")
    return result
