"""PriceScaler: Normalizes source prices to 18 fractional digits.

.. code-block:: python

    >>> scale_price(300000000000, 8)
    3000000000000000000000
    >>> unscale_price(3000000000000000000000, 8)
    300000000000
"""

from __future__ import annotations

from decimal import Decimal

# Canonical precision every stored and compared price uses.
TARGET_DIGITS = 18


def scale_price(value: int, precision: int) -> int:
    """Rescale a source-native price to ``TARGET_DIGITS`` fractional digits.

    Excess digits are dropped by integer division (truncation toward zero).

    :param value: Price magnitude in source precision.
    :param precision: Number of fractional digits of ``value``.
    :returns: Price with 18 fractional digits.
    :raises ValueError: If precision is negative.
    """
    if precision < 0:
        raise ValueError("precision must not be negative")

    if precision >= TARGET_DIGITS:
        return _div_toward_zero(value, 10 ** (precision - TARGET_DIGITS))
    return value * 10 ** (TARGET_DIGITS - precision)


def unscale_price(value: int, precision: int) -> int:
    """Convert an 18-digit price back to ``precision`` fractional digits.

    :param value: Price with 18 fractional digits.
    :param precision: Target number of fractional digits.
    :returns: Price in the requested precision.
    :raises ValueError: If precision is negative.
    """
    if precision < 0:
        raise ValueError("precision must not be negative")

    if precision >= TARGET_DIGITS:
        return value * 10 ** (precision - TARGET_DIGITS)
    return _div_toward_zero(value, 10 ** (TARGET_DIGITS - precision))


def format_price(value: int) -> str:
    """Render an 18-digit price as a plain decimal string for logging."""
    return f"{Decimal(value).scaleb(-TARGET_DIGITS).normalize():f}"


def _div_toward_zero(value: int, divisor: int) -> int:
    # Python's // floors; fixed-point sources truncate.
    quotient = abs(value) // divisor
    return quotient if value >= 0 else -quotient
