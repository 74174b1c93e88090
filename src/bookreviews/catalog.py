"""Read-side queries over the imported catalog.

Paginated, sortable book and review listings matching what the read API
expects from the importer's tables.
"""

from typing import Optional

from sqlalchemy import case, func, or_, select
from sqlalchemy.orm import Session

from .db.models import Book, Review
from .db.schemas import BookSummary, Page, ReviewSummary

MAX_PAGE_SIZE = 100

BOOK_SORT_COLUMNS = {
    "title": Book.title,
    "authors": Book.authors,
    "categories": Book.categories,
    "average_score": Book.average_score,
    "reviews_count": Book.reviews_count,
    "price": Book.price,
    "publishedDate": func.nullif(Book.published_date, ""),
    "id": Book.id,
}

REVIEW_SORT_COLUMNS = {
    "review_time": Review.review_time,
    "review_score": Review.review_score,
    "created_at": Review.created_at,
}


class BookNotFoundError(Exception):
    """Raised when a book id does not exist."""

    pass


def _clamp_paging(page: int, limit: int) -> tuple[int, int]:
    page = max(1, page)
    limit = min(MAX_PAGE_SIZE, max(1, limit))
    return page, limit


def _ordered(column, order: str) -> list:
    """``column <order> NULLS LAST`` in a form every dialect accepts."""
    nulls_last = case((column.is_(None), 1), else_=0)
    direction = column.desc() if order == "desc" else column.asc()
    return [nulls_last, direction]


def list_books(
    session: Session,
    page: int = 1,
    limit: int = 10,
    sort_by: str = "title",
    order: str = "asc",
    search: Optional[str] = None,
) -> Page[BookSummary]:
    """List books with pagination, sorting and a title/authors/categories search.

    Unknown sort columns fall back to ``title`` and unknown orders to ``asc``.
    """
    page, limit = _clamp_paging(page, limit)
    sort_column = BOOK_SORT_COLUMNS.get(sort_by, Book.title)
    order = order.lower() if order and order.lower() in ("asc", "desc") else "asc"

    filters = []
    if search:
        pattern = f"%{search}%"
        filters.append(
            or_(
                Book.title.ilike(pattern),
                Book.authors.ilike(pattern),
                Book.categories.ilike(pattern),
            )
        )

    total = session.execute(select(func.count(Book.id)).where(*filters)).scalar_one()

    stmt = (
        select(Book)
        .where(*filters)
        .order_by(*_ordered(sort_column, order), Book.id.asc())
        .limit(limit)
        .offset((page - 1) * limit)
    )
    books = session.execute(stmt).scalars().all()

    return Page[BookSummary](
        items=[BookSummary.model_validate(book) for book in books],
        total=total,
        page=page,
        limit=limit,
    )


def get_book(session: Session, book_id: int) -> Optional[BookSummary]:
    """Get a single book by id."""
    book = session.get(Book, book_id)
    if book is None:
        return None
    return BookSummary.model_validate(book)


def list_reviews(
    session: Session,
    book_id: int,
    page: int = 1,
    limit: int = 10,
    sort_by: str = "review_time",
    order: str = "desc",
) -> Page[ReviewSummary]:
    """List a book's reviews, newest first by default.

    Raises:
        BookNotFoundError: If the book does not exist
    """
    if session.get(Book, book_id) is None:
        raise BookNotFoundError(f"Book not found: {book_id}")

    page, limit = _clamp_paging(page, limit)
    sort_column = REVIEW_SORT_COLUMNS.get(sort_by, Review.review_time)
    order = order.lower() if order and order.lower() in ("asc", "desc") else "desc"

    total = session.execute(
        select(func.count(Review.id)).where(Review.book_id == book_id)
    ).scalar_one()

    stmt = (
        select(Review)
        .where(Review.book_id == book_id)
        .order_by(*_ordered(sort_column, order), Review.id.desc())
        .limit(limit)
        .offset((page - 1) * limit)
    )
    reviews = session.execute(stmt).scalars().all()

    return Page[ReviewSummary](
        items=[ReviewSummary.model_validate(review) for review in reviews],
        total=total,
        page=page,
        limit=limit,
    )
