"""Pydantic schemas for data validation.

Source records map the fixed CSV column contract (``Title``, ``review/score``,
...) onto clean field names. Summary schemas describe rows returned by the
catalog queries.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

T = TypeVar("T")

# reviews.review_time is a 32-bit INTEGER
INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1


def _empty_to_none(v: Any) -> Any:
    """Map empty/whitespace strings and NaN-like values to None."""
    if v is None:
        return None
    if isinstance(v, float) and v != v:  # NaN from pandas
        return None
    if isinstance(v, str) and v.strip() == "":
        return None
    return v


# ============================================================================
# Source Records
# ============================================================================


class BookRecord(BaseModel):
    """A row of the books CSV."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: Optional[str] = Field(None, alias="Title")
    description: Optional[str] = None
    authors: Optional[str] = None
    image: Optional[str] = None
    preview_link: Optional[str] = Field(None, alias="previewLink")
    publisher: Optional[str] = None
    published_date: Optional[str] = Field(None, alias="publishedDate")
    info_link: Optional[str] = Field(None, alias="infoLink")
    categories: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def clean_text(cls, v: Any) -> Optional[str]:
        """Empty cells become None; everything else is kept as text."""
        v = _empty_to_none(v)
        return None if v is None else str(v)

    def to_row(self) -> dict[str, Optional[str]]:
        """Values for an INSERT into ``books``, keyed by attribute name."""
        return {
            "title": self.title,
            "description": self.description,
            "authors": self.authors,
            "image": self.image,
            "preview_link": self.preview_link,
            "publisher": self.publisher,
            "published_date": self.published_date,
            "info_link": self.info_link,
            "categories": self.categories,
        }


class ReviewRecord(BaseModel):
    """A row of the reviews CSV."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    original_review_id: Optional[str] = Field(None, alias="Id")
    title: Optional[str] = Field(None, alias="Title")
    price_text: Optional[str] = Field(None, alias="Price")
    user_id: Optional[str] = Field(None, alias="User_id")
    profile_name: Optional[str] = Field(None, alias="profileName")
    helpfulness: Optional[str] = Field(None, alias="review/helpfulness")
    score: Optional[float] = Field(None, alias="review/score")
    time: Optional[int] = Field(None, alias="review/time")
    summary: Optional[str] = Field(None, alias="review/summary")
    text: Optional[str] = Field(None, alias="review/text")

    @field_validator(
        "original_review_id",
        "title",
        "price_text",
        "user_id",
        "profile_name",
        "helpfulness",
        "summary",
        "text",
        mode="before",
    )
    @classmethod
    def clean_text(cls, v: Any) -> Optional[str]:
        v = _empty_to_none(v)
        return None if v is None else str(v)

    @field_validator("score", mode="before")
    @classmethod
    def coerce_score(cls, v: Any) -> Optional[float]:
        """Parse score as float; unparseable or missing gives None."""
        v = _empty_to_none(v)
        if v is None:
            return None
        try:
            score = float(v)
        except (TypeError, ValueError):
            return None
        # NaN/inf never make it into the database
        if score != score or score in (float("inf"), float("-inf")):
            return None
        return score

    @field_validator("time", mode="before")
    @classmethod
    def coerce_time(cls, v: Any) -> Optional[int]:
        """Parse unix time as int; unparseable, missing or out-of-range gives None."""
        v = _empty_to_none(v)
        if v is None:
            return None
        try:
            value = int(v)
        except (TypeError, ValueError):
            # Values such as "940636800.0"
            try:
                value = int(float(v))
            except (TypeError, ValueError, OverflowError):
                return None
        if not INT32_MIN <= value <= INT32_MAX:
            return None
        return value


# ============================================================================
# Catalog Schemas
# ============================================================================


class BookSummary(BaseModel):
    """Book as returned by catalog listings."""

    id: int
    title: str
    authors: Optional[str] = None
    image: Optional[str] = None
    categories: Optional[str] = None
    price: Optional[Decimal] = None
    average_score: Decimal = Decimal("0.0")
    reviews_count: int = 0
    published_date: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ReviewSummary(BaseModel):
    """Review as returned by catalog listings."""

    id: int
    book_id: int
    original_review_id: Optional[str] = None
    user_id: Optional[str] = None
    profile_name: Optional[str] = None
    review_helpfulness: Optional[str] = None
    review_score: Optional[Decimal] = None
    review_time: Optional[int] = None
    review_summary: Optional[str] = None
    review_text: Optional[str] = None
    original_price_text: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class Page(BaseModel, Generic[T]):
    """One page of a paginated listing."""

    items: list[T] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 10

    @property
    def total_pages(self) -> int:
        if self.total == 0:
            return 0
        return (self.total + self.limit - 1) // self.limit
