"""Import book metadata and reviews from CSV into a relational database."""

__version__ = "0.1.0"
