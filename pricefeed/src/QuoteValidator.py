"""QuoteValidator: Classifies source readings as broken, frozen or live.

A reading is *broken* when it cannot be used at all, *frozen* when it is
structurally valid but older than the freshness window, and *live*
otherwise. The primary source is judged on its current and previous round
together; the secondary source has a second, longer age threshold past
which a stale reading counts as broken.

.. code-block:: python

    >>> validator = QuoteValidator()
    >>> quote = Quote(value=2000, precision=0, round_id=5, observed_at=1000)
    >>> validator.classify_primary(quote, quote, now=1000)
    <QuoteHealth.LIVE: 'live'>
    >>> validator.classify_primary(quote, quote, now=1000 + 14401)
    <QuoteHealth.FROZEN: 'frozen'>
"""

from __future__ import annotations

from enum import Enum

from .Quote import Quote

# Maximum age of a primary reading before it is considered frozen.
PRIMARY_TIMEOUT = 14400  # 4 hours

# Secondary readings older than this are frozen...
SECONDARY_FROZEN_TIMEOUT = 14400  # 4 hours
# ...and older than this are broken.
SECONDARY_BROKEN_TIMEOUT = 28800  # 8 hours


class QuoteHealth(Enum):
    """Classification of a source reading."""

    BROKEN = "broken"
    FROZEN = "frozen"
    LIVE = "live"


class QuoteValidator:
    """Applies the validity and freshness rules to source readings.

    :ivar primary_timeout: Max age in seconds of a live primary reading.
    :ivar secondary_frozen_timeout: Max age of a live secondary reading.
    :ivar secondary_broken_timeout: Max age of a usable secondary reading.
    """

    def __init__(
        self,
        primary_timeout: int = PRIMARY_TIMEOUT,
        secondary_frozen_timeout: int = SECONDARY_FROZEN_TIMEOUT,
        secondary_broken_timeout: int = SECONDARY_BROKEN_TIMEOUT,
    ) -> None:
        """Initialize the validator.

        :param primary_timeout: Primary freeze threshold in seconds.
        :param secondary_frozen_timeout: Secondary freeze threshold in seconds.
        :param secondary_broken_timeout: Secondary broken threshold in seconds,
            must not be shorter than the freeze threshold.
        :raises ValueError: If thresholds are invalid.
        """
        if primary_timeout <= 0:
            raise ValueError("primary_timeout must be positive")
        if secondary_frozen_timeout <= 0:
            raise ValueError("secondary_frozen_timeout must be positive")
        if secondary_broken_timeout < secondary_frozen_timeout:
            raise ValueError(
                "secondary_broken_timeout must be at least secondary_frozen_timeout"
            )

        self.primary_timeout = primary_timeout
        self.secondary_frozen_timeout = secondary_frozen_timeout
        self.secondary_broken_timeout = secondary_broken_timeout

    @staticmethod
    def _bad_reading(quote: Quote, now: int) -> bool:
        """Check the structural rules shared by both sources."""
        if not quote.retrieved or quote.precision < 0:
            return True
        if quote.observed_at == 0 or quote.observed_at > now:
            return True
        return quote.value <= 0

    def _bad_primary_reading(self, quote: Quote, now: int) -> bool:
        if not quote.round_id:
            return True
        return self._bad_reading(quote, now)

    def primary_is_broken(self, current: Quote, previous: Quote, now: int) -> bool:
        """Check whether the primary's current or previous round is unusable.

        :param current: Latest primary round.
        :param previous: The round immediately before ``current``.
        :param now: Request time (unix seconds).
        :returns: True if either round is broken.
        """
        return self._bad_primary_reading(current, now) or self._bad_primary_reading(
            previous, now
        )

    def primary_is_frozen(self, current: Quote, now: int) -> bool:
        """Check whether the primary's latest round is older than its timeout."""
        return current.age(now) > self.primary_timeout

    def classify_primary(self, current: Quote, previous: Quote, now: int) -> QuoteHealth:
        """Classify the primary source from its latest two rounds.

        :param current: Latest primary round.
        :param previous: The round immediately before ``current``.
        :param now: Request time (unix seconds).
        :returns: QuoteHealth for the primary source.
        """
        if self.primary_is_broken(current, previous, now):
            return QuoteHealth.BROKEN
        if self.primary_is_frozen(current, now):
            return QuoteHealth.FROZEN
        return QuoteHealth.LIVE

    def secondary_is_broken(self, quote: Quote, now: int) -> bool:
        """Check whether the secondary reading is unusable or far too old."""
        if self._bad_reading(quote, now):
            return True
        return quote.age(now) > self.secondary_broken_timeout

    def secondary_is_frozen(self, quote: Quote, now: int) -> bool:
        """Check whether the secondary reading is older than its freeze window."""
        return quote.age(now) > self.secondary_frozen_timeout

    def classify_secondary(self, quote: Quote, now: int) -> QuoteHealth:
        """Classify the secondary source.

        :param quote: Latest secondary reading.
        :param now: Request time (unix seconds).
        :returns: QuoteHealth for the secondary source.
        """
        if self.secondary_is_broken(quote, now):
            return QuoteHealth.BROKEN
        if self.secondary_is_frozen(quote, now):
            return QuoteHealth.FROZEN
        return QuoteHealth.LIVE
