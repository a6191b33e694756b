"""DeviationAnalyzer: Compares 18-digit prices against tolerance limits.

Two checks are made, with different denominators:

    1. Round-over-round change of the primary source, relative to the
       *larger* of the two prices, so a rise and a fall of the same
       magnitude give the same ratio.
    2. Difference between the two sources, relative to the *smaller*
       price.

Ratios and limits are fractions in 18-digit fixed point (``10**18`` is 100%).

.. code-block:: python

    >>> analyzer = DeviationAnalyzer()
    >>> analyzer.prices_similar(2000 * 10**18, 2050 * 10**18)
    True
    >>> analyzer.price_change_above_max(4100 * 10**18, 2000 * 10**18)
    True
"""

from __future__ import annotations

from decimal import Decimal

from .PriceScaler import TARGET_DIGITS
from .QuoteValidator import QuoteHealth

DECIMAL_PRECISION = 10**TARGET_DIGITS

# Maximum primary round-over-round change before it is distrusted (50%).
MAX_PRICE_DEVIATION_FROM_PREVIOUS_ROUND = 5 * 10**17

# Maximum relative difference for the two sources to count as agreeing (5%).
MAX_PRICE_DIFFERENCE_BETWEEN_SOURCES = 5 * 10**16


def percent_to_fraction(percent: float) -> int:
    """Convert a percentage into an 18-digit fixed-point fraction.

    :param percent: Percentage, e.g. ``5.0`` for 5%.
    :returns: Fraction where ``10**18`` is 100%.
    """
    return int(Decimal(str(percent)) * DECIMAL_PRECISION / 100)


class DeviationAnalyzer:
    """Tolerance checks between prices of canonical precision.

    :ivar max_price_deviation: Max round-over-round change (fixed point).
    :ivar max_price_difference: Max cross-source difference (fixed point).
    """

    def __init__(
        self,
        max_price_deviation: int = MAX_PRICE_DEVIATION_FROM_PREVIOUS_ROUND,
        max_price_difference: int = MAX_PRICE_DIFFERENCE_BETWEEN_SOURCES,
    ) -> None:
        """Initialize the analyzer.

        :param max_price_deviation: Round-over-round limit as an 18-digit
            fraction (default 50%).
        :param max_price_difference: Cross-source limit as an 18-digit
            fraction (default 5%).
        :raises ValueError: If a limit is not positive.
        """
        if max_price_deviation <= 0:
            raise ValueError("max_price_deviation must be positive")
        if max_price_difference <= 0:
            raise ValueError("max_price_difference must be positive")

        self.max_price_deviation = max_price_deviation
        self.max_price_difference = max_price_difference

    def price_change_above_max(self, current: int, previous: int) -> bool:
        """Check whether a source moved too far between two rounds.

        :param current: Latest price (18 digits).
        :param previous: Previous round's price (18 digits).
        :returns: True if ``|current - previous| / max`` exceeds the limit.
        """
        min_price = min(current, previous)
        max_price = max(current, previous)
        if max_price <= 0:
            return False

        deviation = (max_price - min_price) * DECIMAL_PRECISION // max_price
        return deviation > self.max_price_deviation

    def prices_similar(self, price_a: int, price_b: int) -> bool:
        """Check whether two source prices agree within tolerance.

        :param price_a: First price (18 digits).
        :param price_b: Second price (18 digits).
        :returns: True if ``|a - b| / min`` is at or below the limit.
        """
        min_price = min(price_a, price_b)
        max_price = max(price_a, price_b)
        if min_price <= 0:
            return False

        difference = (max_price - min_price) * DECIMAL_PRECISION // min_price
        return difference <= self.max_price_difference

    def both_live_unbroken_and_similar(
        self,
        primary_health: QuoteHealth,
        secondary_health: QuoteHealth,
        primary_price: int,
        secondary_price: int,
    ) -> bool:
        """Check the only condition that restores full trust in the primary.

        :param primary_health: Classification of the primary source.
        :param secondary_health: Classification of the secondary source.
        :param primary_price: Scaled primary price.
        :param secondary_price: Scaled secondary price.
        :returns: True if both sources are live and their prices are similar.
        """
        if primary_health is not QuoteHealth.LIVE:
            return False
        if secondary_health is not QuoteHealth.LIVE:
            return False
        return self.prices_similar(primary_price, secondary_price)
