"""Unit tests for DeviationAnalyzer."""

import pytest

from pricefeed.src.DeviationAnalyzer import (
    MAX_PRICE_DEVIATION_FROM_PREVIOUS_ROUND,
    MAX_PRICE_DIFFERENCE_BETWEEN_SOURCES,
    DeviationAnalyzer,
    percent_to_fraction,
)
from pricefeed.src.QuoteValidator import QuoteHealth

UNIT = 10**18


class TestDeviationAnalyzerInit:
    """Test DeviationAnalyzer initialization."""

    def test_default_values(self) -> None:
        """Defaults are 50% and 5% in 18-digit fixed point."""
        analyzer = DeviationAnalyzer()
        assert analyzer.max_price_deviation == 5 * 10**17
        assert analyzer.max_price_difference == 5 * 10**16
        assert MAX_PRICE_DEVIATION_FROM_PREVIOUS_ROUND == 5 * 10**17
        assert MAX_PRICE_DIFFERENCE_BETWEEN_SOURCES == 5 * 10**16

    def test_invalid_deviation(self) -> None:
        """max_price_deviation <= 0 should raise ValueError."""
        with pytest.raises(ValueError, match="max_price_deviation must be positive"):
            DeviationAnalyzer(max_price_deviation=0)

    def test_invalid_difference(self) -> None:
        """max_price_difference <= 0 should raise ValueError."""
        with pytest.raises(ValueError, match="max_price_difference must be positive"):
            DeviationAnalyzer(max_price_difference=-1)


class TestPercentToFraction:
    """Test percent conversion."""

    @pytest.mark.parametrize(
        "percent,expected",
        [(50.0, 5 * 10**17), (5.0, 5 * 10**16), (0.5, 5 * 10**15), (100, 10**18)],
    )
    def test_conversion(self, percent: float, expected: int) -> None:
        """Percentages map exactly onto 18-digit fractions."""
        assert percent_to_fraction(percent) == expected


class TestPriceChangeAboveMax:
    """Test the round-over-round check (denominator: larger price)."""

    def test_large_jump_flagged(self) -> None:
        """2000 -> 4100 moves 51% of the larger price."""
        analyzer = DeviationAnalyzer()
        assert analyzer.price_change_above_max(4100 * UNIT, 2000 * UNIT)

    def test_jump_below_limit_of_larger_price(self) -> None:
        """2000 -> 3100 is 55% of the smaller but only 35% of the larger price."""
        analyzer = DeviationAnalyzer()
        assert not analyzer.price_change_above_max(3100 * UNIT, 2000 * UNIT)

    def test_exactly_at_limit_not_flagged(self) -> None:
        """A change of exactly 50% is allowed."""
        analyzer = DeviationAnalyzer()
        assert not analyzer.price_change_above_max(1000 * UNIT, 2000 * UNIT)

    def test_just_above_limit_flagged(self) -> None:
        """A change just over 50% is flagged."""
        analyzer = DeviationAnalyzer()
        assert analyzer.price_change_above_max(1000 * UNIT, 2001 * UNIT)

    @pytest.mark.parametrize(
        "a,b",
        [(4100, 2000), (3100, 2000), (1000, 2001), (1, 3), (2000, 2000)],
    )
    def test_symmetric(self, a: int, b: int) -> None:
        """Rise and fall of the same size give the same answer."""
        analyzer = DeviationAnalyzer()
        assert analyzer.price_change_above_max(a * UNIT, b * UNIT) == (
            analyzer.price_change_above_max(b * UNIT, a * UNIT)
        )

    def test_no_change(self) -> None:
        """Identical prices are never flagged."""
        assert not DeviationAnalyzer().price_change_above_max(5 * UNIT, 5 * UNIT)

    def test_both_zero(self) -> None:
        """Two zero prices do not divide by zero."""
        assert not DeviationAnalyzer().price_change_above_max(0, 0)


class TestPricesSimilar:
    """Test the cross-source check (denominator: smaller price)."""

    def test_close_prices_similar(self) -> None:
        """2000 vs 2050 differ by 2.5%."""
        assert DeviationAnalyzer().prices_similar(2000 * UNIT, 2050 * UNIT)

    def test_exactly_at_limit_similar(self) -> None:
        """2000 vs 2100 differ by exactly 5% of the smaller price."""
        assert DeviationAnalyzer().prices_similar(2000 * UNIT, 2100 * UNIT)

    def test_just_above_limit_not_similar(self) -> None:
        """2000 vs 2101 differ by more than 5%."""
        assert not DeviationAnalyzer().prices_similar(2000 * UNIT, 2101 * UNIT)

    def test_stricter_than_larger_denominator(self) -> None:
        """100/2000 is 5% but 105/2000 is 5.25% of the smaller price."""
        analyzer = DeviationAnalyzer()
        assert not analyzer.prices_similar(2000 * UNIT, 2105 * UNIT)

    @pytest.mark.parametrize("a,b", [(2000, 2050), (2000, 2101), (3100, 2050), (7, 7)])
    def test_symmetric(self, a: int, b: int) -> None:
        """Argument order does not matter."""
        analyzer = DeviationAnalyzer()
        assert analyzer.prices_similar(a * UNIT, b * UNIT) == (
            analyzer.prices_similar(b * UNIT, a * UNIT)
        )

    def test_zero_price_not_similar(self) -> None:
        """A missing (zero) price is never similar."""
        assert not DeviationAnalyzer().prices_similar(0, 2000 * UNIT)
        assert not DeviationAnalyzer().prices_similar(0, 0)

    def test_custom_limit(self) -> None:
        """The tolerance is configurable."""
        analyzer = DeviationAnalyzer(max_price_difference=percent_to_fraction(1.0))
        assert not analyzer.prices_similar(2000 * UNIT, 2050 * UNIT)


class TestBothLiveUnbrokenAndSimilar:
    """Test the condition that restores primary trust."""

    def test_both_live_and_similar(self) -> None:
        """Live, live and close prices pass."""
        analyzer = DeviationAnalyzer()
        assert analyzer.both_live_unbroken_and_similar(
            QuoteHealth.LIVE, QuoteHealth.LIVE, 2000 * UNIT, 2010 * UNIT
        )

    @pytest.mark.parametrize("primary", [QuoteHealth.BROKEN, QuoteHealth.FROZEN])
    def test_primary_not_live(self, primary: QuoteHealth) -> None:
        """A broken or frozen primary fails."""
        analyzer = DeviationAnalyzer()
        assert not analyzer.both_live_unbroken_and_similar(
            primary, QuoteHealth.LIVE, 2000 * UNIT, 2000 * UNIT
        )

    @pytest.mark.parametrize("secondary", [QuoteHealth.BROKEN, QuoteHealth.FROZEN])
    def test_secondary_not_live(self, secondary: QuoteHealth) -> None:
        """A broken or frozen secondary fails."""
        analyzer = DeviationAnalyzer()
        assert not analyzer.both_live_unbroken_and_similar(
            QuoteHealth.LIVE, secondary, 2000 * UNIT, 2000 * UNIT
        )

    def test_live_but_divergent(self) -> None:
        """Two live sources that disagree fail."""
        analyzer = DeviationAnalyzer()
        assert not analyzer.both_live_unbroken_and_similar(
            QuoteHealth.LIVE, QuoteHealth.LIVE, 2000 * UNIT, 3000 * UNIT
        )
