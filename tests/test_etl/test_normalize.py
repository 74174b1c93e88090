"""Tests for title normalization and price parsing."""

from decimal import Decimal

import pytest

from bookreviews.etl.normalize import normalize_title, parse_price


class TestNormalizeTitle:
    """Tests for normalize_title."""

    def test_strips_and_lowercases(self):
        """Test that surrounding whitespace is removed and case folded."""
        assert normalize_title("  The Hobbit ") == "the hobbit"
        assert normalize_title("DUNE") == "dune"

    def test_inner_whitespace_kept(self):
        """Test that whitespace inside the title is untouched."""
        assert normalize_title("War  and Peace") == "war  and peace"

    @pytest.mark.parametrize("value", [None, "", 42, 3.5, ["a"]])
    def test_non_string_or_empty_gives_empty(self, value):
        """Test that the normalizer never raises."""
        assert normalize_title(value) == ""

    def test_whitespace_only_gives_empty(self):
        """Test that a blank title normalizes to the empty key."""
        assert normalize_title("   ") == ""

    @pytest.mark.parametrize("value", ["  Emma ", "ÉMILE", "the hobbit", "\tTabbed\n"])
    def test_idempotent(self, value):
        """Test that normalizing twice equals normalizing once."""
        once = normalize_title(value)
        assert normalize_title(once) == once


class TestParsePrice:
    """Tests for parse_price."""

    def test_plain_and_decorated_prices(self):
        """Test prices with currency symbols and separators."""
        assert parse_price("12.50") == Decimal("12.50")
        assert parse_price("$12.50") == Decimal("12.50")
        assert parse_price("USD 7") == Decimal("7.00")
        assert parse_price(".99") == Decimal("0.99")

    def test_rounds_to_cents(self):
        """Test that prices are quantized to two decimals."""
        assert parse_price("3.456") == Decimal("3.46")

    def test_zero_is_valid(self):
        """Test that zero passes the non-negative check."""
        assert parse_price("0.00") == Decimal("0.00")

    @pytest.mark.parametrize("value", [None, "", "free", "1.2.3", "12.", 5])
    def test_unusable_text_gives_none(self, value):
        """Test that text without a plain decimal is rejected."""
        assert parse_price(value) is None

    def test_too_large_for_column_gives_none(self):
        """Test that prices outside NUMERIC(10, 2) are rejected, not raised."""
        assert parse_price("1" * 30) is None
        assert parse_price("100000000") is None
        assert parse_price("99999999.999") is None
        assert parse_price("99999999.99") == Decimal("99999999.99")
