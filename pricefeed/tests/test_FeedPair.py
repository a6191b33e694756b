"""Unit tests for FeedPair."""

import pytest

from pricefeed.src.FeedPair import FeedPair


class TestFeedPairBasics:
    """Test basic FeedPair functionality."""

    def test_init_normalizes_to_lowercase(self) -> None:
        """Symbols should be normalized to lowercase."""
        pair = FeedPair("ETH", "USD")
        assert pair.base == "eth"
        assert pair.quote == "usd"

    def test_str_format(self) -> None:
        """String format should be 'base/quote'."""
        assert str(FeedPair("btc", "usd")) == "btc/usd"

    def test_repr(self) -> None:
        """Repr should be developer-friendly."""
        assert repr(FeedPair("eth", "usd")) == "FeedPair('eth', 'usd')"


class TestFeedPairFromString:
    """Test parsing pairs from strings."""

    def test_parse(self) -> None:
        """A well-formed pair parses into base and quote."""
        pair = FeedPair.from_string("ETH/USD")
        assert pair.base == "eth"
        assert pair.quote == "usd"

    def test_parse_strips_whitespace(self) -> None:
        """Surrounding whitespace is ignored."""
        pair = FeedPair.from_string("  btc / usd ")
        assert (pair.base, pair.quote) == ("btc", "usd")

    @pytest.mark.parametrize("value", ["ethusd", "eth/usd/extra", "/usd", "eth/", ""])
    def test_invalid_format(self, value: str) -> None:
        """Malformed strings raise ValueError."""
        with pytest.raises(ValueError, match="Invalid pair format"):
            FeedPair.from_string(value)
