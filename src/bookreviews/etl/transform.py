"""Transform raw CSV rows to record schemas.

Column names are a fixed contract with the source files; cleaning and type
coercion live on the schemas themselves.
"""

from pathlib import Path
from typing import Iterable, Iterator

from pydantic import ValidationError

from ..db.schemas import BookRecord, ReviewRecord
from .extract import extract_books_csv, extract_reviews_csv


class TransformError(Exception):
    """Raised when transformation fails."""

    pass


def transform_book_row(raw: dict) -> BookRecord:
    """Transform a books CSV row to a BookRecord.

    Args:
        raw: Dictionary with books CSV column values

    Returns:
        BookRecord with empty cells mapped to None
    """
    try:
        return BookRecord.model_validate(raw)
    except ValidationError as e:
        raise TransformError(f"Invalid book row: {e}")


def transform_review_row(raw: dict) -> ReviewRecord:
    """Transform a reviews CSV row to a ReviewRecord.

    Score and time are coerced to float/int, falling back to None.
    """
    try:
        return ReviewRecord.model_validate(raw)
    except ValidationError as e:
        raise TransformError(f"Invalid review row: {e}")


def transform_book_rows(rows: Iterable[dict]) -> Iterator[BookRecord]:
    """Lazily transform a stream of books CSV rows."""
    for raw in rows:
        yield transform_book_row(raw)


def transform_review_rows(rows: Iterable[dict]) -> Iterator[ReviewRecord]:
    """Lazily transform a stream of reviews CSV rows."""
    for raw in rows:
        yield transform_review_row(raw)


def read_book_records(file_path: Path | str, show_progress: bool = True) -> Iterator[BookRecord]:
    """Stream BookRecords from the books CSV."""
    return transform_book_rows(extract_books_csv(file_path, show_progress=show_progress))


def read_review_records(
    file_path: Path | str, show_progress: bool = True
) -> Iterator[ReviewRecord]:
    """Stream ReviewRecords from the reviews CSV."""
    return transform_review_rows(extract_reviews_csv(file_path, show_progress=show_progress))
