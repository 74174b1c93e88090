"""SQLAlchemy ORM models for the imported catalog.

Tables:
- books: One row per unique title, with aggregates derived from reviews
- reviews: Review records linked to a book by normalized title
"""

from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class Book(Base):
    """Book model - descriptive metadata plus review aggregates."""

    __tablename__ = "books"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Natural key used to match reviews
    title: Mapped[str] = mapped_column(Text, nullable=False, unique=True)

    # Descriptive fields, copied verbatim from the source
    description: Mapped[Optional[str]] = mapped_column(Text)
    authors: Mapped[Optional[str]] = mapped_column(Text)
    image: Mapped[Optional[str]] = mapped_column(Text)
    preview_link: Mapped[Optional[str]] = mapped_column("previewLink", Text)
    publisher: Mapped[Optional[str]] = mapped_column(Text)
    published_date: Mapped[Optional[str]] = mapped_column("publishedDate", Text)
    info_link: Mapped[Optional[str]] = mapped_column("infoLink", Text)
    categories: Mapped[Optional[str]] = mapped_column(Text)

    # Aggregates (written only by the aggregate updater)
    price: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    average_score: Mapped[Decimal] = mapped_column(
        Numeric, default=Decimal("0.0"), server_default="0.0"
    )
    reviews_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")

    # Relationships
    reviews: Mapped[list["Review"]] = relationship(
        "Review", back_populates="book", cascade="all, delete-orphan", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<Book(id={self.id}, title='{self.title}')>"


class Review(Base):
    """Review model - one source review attached to a book."""

    __tablename__ = "reviews"
    __table_args__ = (
        UniqueConstraint(
            "original_review_id",
            "user_id",
            "review_time",
            name="uq_reviews_source_identity",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    book_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("books.id", ondelete="CASCADE"), nullable=False, index=True
    )

    original_review_id: Mapped[Optional[str]] = mapped_column(Text)
    user_id: Mapped[Optional[str]] = mapped_column(Text)
    profile_name: Mapped[Optional[str]] = mapped_column("profileName", Text)
    review_helpfulness: Mapped[Optional[str]] = mapped_column(Text)
    review_score: Mapped[Optional[Decimal]] = mapped_column(Numeric, nullable=True)
    review_time: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # unix epoch
    review_summary: Mapped[Optional[str]] = mapped_column(Text)
    review_text: Mapped[Optional[str]] = mapped_column(Text)
    original_price_text: Mapped[Optional[str]] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # Relationships
    book: Mapped["Book"] = relationship("Book", back_populates="reviews")

    def __repr__(self) -> str:
        return f"<Review(id={self.id}, book_id={self.book_id}, score={self.review_score})>"


# Attribute order of a resolved review row, as produced by the review loader
REVIEW_INSERT_COLUMNS = (
    "book_id",
    "original_review_id",
    "user_id",
    "profile_name",
    "review_helpfulness",
    "review_score",
    "review_time",
    "review_summary",
    "review_text",
    "original_price_text",
)

BOOK_INSERT_COLUMNS = (
    "title",
    "description",
    "authors",
    "image",
    "preview_link",
    "publisher",
    "published_date",
    "info_link",
    "categories",
)


def table_columns(model: type[Base], attribute_names: Iterable[str]) -> list[Column]:
    """Resolve ORM attribute names to their Core columns."""
    mapper = model.__mapper__
    return [mapper.get_property(name).columns[0] for name in attribute_names]
