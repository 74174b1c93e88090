"""CSV extraction for the books and reviews sources.

Each extractor lazily streams rows as dictionaries keyed by the original
column names. Mapping to record schemas happens in transform.py.
"""

import logging
from pathlib import Path
from typing import Iterator

import pandas as pd
from tqdm import tqdm

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 10_000


class ExtractionError(Exception):
    """Raised when CSV extraction fails."""

    pass


def _detect_encoding(file_path: Path) -> str:
    """Detect file encoding, defaulting to utf-8."""
    encodings = ["utf-8", "utf-8-sig", "latin-1", "cp1252"]
    for encoding in encodings:
        try:
            with open(file_path, "r", encoding=encoding) as f:
                f.read(1024)
            return encoding
        except UnicodeDecodeError:
            continue
    return "utf-8"


def extract_csv(
    file_path: Path | str,
    desc: str = "Reading CSV",
    show_progress: bool = True,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Iterator[dict]:
    """Stream rows of a CSV file.

    Rows are read in chunks so large files never sit in memory at once.
    Every cell is a string; empty cells are ``""``. Lines that cannot be
    parsed and bytes that cannot be decoded are skipped or replaced.

    Args:
        file_path: Path to CSV file
        desc: Label for the progress bar
        show_progress: Show tqdm progress bar
        chunk_size: Rows per pandas chunk

    Yields:
        Dictionary with raw column values
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise ExtractionError(f"File not found: {file_path}")

    encoding = _detect_encoding(file_path)
    logger.debug("Reading %s (encoding=%s, chunk_size=%d)", file_path, encoding, chunk_size)

    try:
        reader = pd.read_csv(
            file_path,
            encoding=encoding,
            encoding_errors="replace",
            dtype=str,
            keep_default_na=False,
            on_bad_lines="skip",
            chunksize=chunk_size,
        )
    except pd.errors.EmptyDataError:
        logger.warning("%s is empty", file_path)
        return
    except Exception as e:
        raise ExtractionError(f"Failed to read {file_path}: {e}")

    progress = tqdm(desc=desc, unit="rows", disable=not show_progress)
    try:
        with reader:
            for chunk in reader:
                progress.update(len(chunk))
                yield from chunk.to_dict("records")
    except pd.errors.ParserError as e:
        raise ExtractionError(f"Failed to parse {file_path}: {e}")
    finally:
        progress.close()


def extract_books_csv(file_path: Path | str, show_progress: bool = True) -> Iterator[dict]:
    """Stream rows of the books CSV (``Title``, ``authors``, ``description``, ...)."""
    return extract_csv(file_path, desc="Reading books CSV", show_progress=show_progress)


def extract_reviews_csv(file_path: Path | str, show_progress: bool = True) -> Iterator[dict]:
    """Stream rows of the reviews CSV (``Id``, ``Title``, ``review/score``, ...)."""
    return extract_csv(file_path, desc="Reading reviews CSV", show_progress=show_progress)
