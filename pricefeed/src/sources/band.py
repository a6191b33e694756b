"""Band Protocol StdReference source (secondary).

Contract: IStdReference
Call: getReferenceData(base, quote) -> (rate, lastUpdatedBase, lastUpdatedQuote)
Rate precision: 18 digits
"""

import logging

from web3.contract import Contract

from ..PriceScaler import TARGET_DIGITS
from ..Quote import Quote
from .base import SecondarySource, register_source

logger = logging.getLogger(__name__)


@register_source
class BandSource(SecondarySource):
    """Secondary source backed by a Band StdReference contract.

    The reading is as old as the older of the base and quote updates.

    :ivar contract: web3 handle of the reference contract (IStdReference ABI).
    """

    name = "band"
    ABI_NAME = "IStdReference"

    def __init__(self, contract: Contract, base: str, quote: str) -> None:
        """Initialize the source.

        :param contract: Reference contract handle.
        :param base: Base currency symbol (e.g., "eth").
        :param quote: Quote currency symbol (e.g., "usd").
        """
        super().__init__(base, quote)
        self.contract = contract

    def _fetch_reference(self) -> Quote:
        """Read the reference rate for the configured pair."""
        rate, last_updated_base, last_updated_quote = (
            self.contract.functions.getReferenceData(
                self.base.upper(), self.quote.upper()
            ).call()
        )
        logger.debug(
            f"[band] {self.base}/{self.quote}: rate={rate} "
            f"updated base={last_updated_base} quote={last_updated_quote}"
        )
        return Quote(
            value=int(rate),
            precision=TARGET_DIGITS,
            observed_at=min(int(last_updated_base), int(last_updated_quote)),
        )
