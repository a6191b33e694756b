"""FeedPair: The base/quote pair a price feed is configured for.

.. code-block:: python

    >>> pair = FeedPair.from_string("ETH/USD")
    >>> str(pair)
    'eth/usd'
    >>> pair.base
    'eth'
"""

from __future__ import annotations


class FeedPair:
    """A trading pair such as ``eth/usd``.

    :ivar base: Base currency symbol (lowercase).
    :ivar quote: Quote currency symbol (lowercase).
    """

    def __init__(self, base: str, quote: str) -> None:
        """Initialize a pair.

        :param base: Base currency symbol (e.g., "eth", "btc").
        :param quote: Quote currency symbol (e.g., "usd").
        """
        self.base = base.lower()
        self.quote = quote.lower()

    def __str__(self) -> str:
        """Return the ``base/quote`` identifier."""
        return f"{self.base}/{self.quote}"

    def __repr__(self) -> str:
        """Return a developer-friendly string representation."""
        return f"FeedPair({self.base!r}, {self.quote!r})"

    @classmethod
    def from_string(cls, pair_str: str) -> FeedPair:
        """Parse a pair string in format "base/quote".

        :param pair_str: Pair string like "eth/usd".
        :returns: New FeedPair instance.
        :raises ValueError: If the format is invalid or a symbol is empty.
        """
        parts = pair_str.strip().lower().split("/")
        if len(parts) != 2 or not all(p.strip() for p in parts):
            raise ValueError(
                f"Invalid pair format '{pair_str}'. Expected 'base/quote' (e.g., 'eth/usd')"
            )
        return cls(parts[0].strip(), parts[1].strip())
