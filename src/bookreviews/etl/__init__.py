"""ETL module for importing book metadata and reviews.

This module streams the books and reviews CSV files, links reviews to books
by normalized title, and recomputes per-book aggregates.
"""

from .normalize import normalize_title, parse_price
from .extract import (
    extract_csv,
    extract_books_csv,
    extract_reviews_csv,
    ExtractionError,
)
from .transform import (
    transform_book_row,
    transform_review_row,
    read_book_records,
    read_review_records,
    TransformError,
)
from .books import (
    load_books,
    build_title_index,
    BookLoadResult,
    TitleIndex,
)
from .reviews import (
    load_reviews,
    flush_review_batch,
    ReviewLoadResult,
)
from .aggregates import (
    update_book_aggregates,
    AggregateResult,
)
from .pipeline import (
    clear_tables,
    run_import,
    ImportResult,
)
from .report import show_import_results

__all__ = [
    # Normalize
    "normalize_title",
    "parse_price",
    # Extract
    "extract_csv",
    "extract_books_csv",
    "extract_reviews_csv",
    "ExtractionError",
    # Transform
    "transform_book_row",
    "transform_review_row",
    "read_book_records",
    "read_review_records",
    "TransformError",
    # Books
    "load_books",
    "build_title_index",
    "BookLoadResult",
    "TitleIndex",
    # Reviews
    "load_reviews",
    "flush_review_batch",
    "ReviewLoadResult",
    # Aggregates
    "update_book_aggregates",
    "AggregateResult",
    # Pipeline
    "clear_tables",
    "run_import",
    "ImportResult",
    # Report
    "show_import_results",
]
