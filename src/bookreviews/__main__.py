"""Main entry point for ``python -m bookreviews``."""

from bookreviews.cli import main

if __name__ == "__main__":
    main()
