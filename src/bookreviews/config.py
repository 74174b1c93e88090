"""Configuration management for bookreviews.

Loads configuration from environment variables and provides defaults.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

REQUIRED_DB_VARS = ("DB_USER", "DB_HOST", "DB_DATABASE", "DB_PASSWORD", "DB_PORT")

DEFAULT_BATCH_SIZE = 5000


class ConfigError(Exception):
    """Raised when configuration is missing or invalid."""

    pass


def normalize_database_url(url: str) -> str:
    """Force the psycopg v3 driver for PostgreSQL URLs."""
    if url.startswith("postgresql://"):
        return "postgresql+psycopg://" + url[len("postgresql://") :]
    if url.startswith("postgres://"):
        return "postgresql+psycopg://" + url[len("postgres://") :]
    if url.startswith("postgresql+psycopg2://"):
        return "postgresql+psycopg://" + url[len("postgresql+psycopg2://") :]
    return url


@dataclass
class Config:
    """Application configuration."""

    # Database
    database_url: Optional[str]
    db_user: Optional[str]
    db_host: Optional[str]
    db_database: Optional[str]
    db_password: Optional[str]
    db_port: Optional[str]

    # Sources
    books_csv: Path
    reviews_csv: Path

    # Import
    batch_size: int
    log_level: str

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        database_url = os.environ.get("DATABASE_URL")

        return cls(
            database_url=normalize_database_url(database_url) if database_url else None,
            db_user=os.environ.get("DB_USER"),
            db_host=os.environ.get("DB_HOST"),
            db_database=os.environ.get("DB_DATABASE"),
            db_password=os.environ.get("DB_PASSWORD"),
            db_port=os.environ.get("DB_PORT"),
            books_csv=Path(
                os.environ.get("BOOKREVIEWS_BOOKS_CSV", "data/books_details.csv")
            ).expanduser(),
            reviews_csv=Path(
                os.environ.get("BOOKREVIEWS_REVIEWS_CSV", "data/reviews.csv")
            ).expanduser(),
            batch_size=_parse_batch_size(os.environ.get("BOOKREVIEWS_BATCH_SIZE")),
            log_level=os.environ.get("BOOKREVIEWS_LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if self.batch_size < 1:
            errors.append(f"BOOKREVIEWS_BATCH_SIZE must be positive, got {self.batch_size}")

        if self.database_url:
            return errors

        values = {
            "DB_USER": self.db_user,
            "DB_HOST": self.db_host,
            "DB_DATABASE": self.db_database,
            "DB_PASSWORD": self.db_password,
            "DB_PORT": self.db_port,
        }
        missing = [name for name in REQUIRED_DB_VARS if values[name] is None]
        if missing:
            errors.append(f"Missing environment variables: {', '.join(missing)}")

        if self.db_port is not None:
            try:
                int(self.db_port)
            except ValueError:
                errors.append(f"DB_PORT must be a valid number, got {self.db_port!r}")

        return errors

    def get_database_url(self) -> str:
        """Return the SQLAlchemy URL, raising ConfigError if invalid."""
        errors = self.validate()
        if errors:
            raise ConfigError("; ".join(errors))

        if self.database_url:
            return self.database_url

        return (
            f"postgresql+psycopg://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{int(self.db_port)}/{self.db_database}"
        )


def _parse_batch_size(value: Optional[str]) -> int:
    if value is None or value.strip() == "":
        return DEFAULT_BATCH_SIZE
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"BOOKREVIEWS_BATCH_SIZE must be an integer, got {value!r}")


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Reset the global config instance. Used for testing."""
    global _config
    _config = None
