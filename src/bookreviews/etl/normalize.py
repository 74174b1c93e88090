"""Text normalization used to match and enrich records."""

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

_NON_PRICE_CHARS = re.compile(r"[^0-9.]+")
_PLAIN_DECIMAL = re.compile(r"^[0-9]*\.?[0-9]+$")

# books.price is NUMERIC(10, 2)
MAX_PRICE = Decimal("1e8")


def normalize_title(title: Any) -> str:
    """Map a raw title to its lookup key.

    Non-string or empty input gives ``""``; otherwise the title is stripped
    and lowercased.

    Example:
        >>> normalize_title("  The Hobbit ")
        'the hobbit'
        >>> normalize_title(None)
        ''
    """
    if not isinstance(title, str) or not title:
        return ""
    return title.strip().lower()


def parse_price(text: Any) -> Optional[Decimal]:
    """Extract a non-negative price from free text.

    Everything except digits and ``.`` is dropped, and what remains must be
    a plain decimal (``10``, ``10.50``, ``.50``). Values that do not fit
    the price column give None.

    Example:
        >>> parse_price("$12.50")
        Decimal('12.50')
        >>> parse_price("free") is None
        True
    """
    if not isinstance(text, str) or not text:
        return None
    cleaned = _NON_PRICE_CHARS.sub("", text)
    if not cleaned or not _PLAIN_DECIMAL.match(cleaned):
        return None
    try:
        value = Decimal(cleaned).quantize(Decimal("0.01"))
    except InvalidOperation:
        return None
    if value < 0 or value >= MAX_PRICE:
        return None
    return value
