"""Quote: A single reading taken from a price source.

Quotes are produced by the source adapters and never mutated afterwards.
A failed adapter call is represented by ``Quote.failed()`` rather than by
an exception, so the failover logic only ever sees data.

.. code-block:: python

    >>> quote = Quote(value=300000000000, precision=8, round_id=100, observed_at=1700000000)
    >>> quote.retrieved
    True
    >>> Quote.failed().value
    0
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Quote:
    """An immutable price reading.

    :ivar value: Price magnitude in the source's native precision.
    :ivar precision: Number of fractional digits ``value`` is expressed in.
    :ivar round_id: Round identifier (primary source only, None otherwise).
    :ivar observed_at: Unix timestamp the reading was last updated.
    :ivar retrieved: Whether the call to the source succeeded at all.
    """

    value: int
    precision: int
    round_id: int | None = None
    observed_at: int = 0
    retrieved: bool = True

    @classmethod
    def failed(cls, round_id: int | None = None) -> Quote:
        """Build the zeroed quote standing in for a failed source call.

        :param round_id: Round that was requested, if any.
        :returns: Quote with ``retrieved=False``.
        """
        return cls(
            value=0,
            precision=0,
            round_id=round_id,
            observed_at=0,
            retrieved=False,
        )

    def age(self, now: int) -> int:
        """Seconds elapsed between ``observed_at`` and ``now``."""
        return now - self.observed_at
