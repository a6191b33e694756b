"""Chainlink aggregator source (primary).

Contract: AggregatorV3Interface
Calls: decimals(), latestRoundData(), getRoundData(roundId)
Round tuple: (roundId, answer, startedAt, updatedAt, answeredInRound)
"""

import logging

from web3.contract import Contract

from ..Quote import Quote
from .base import PrimarySource, register_source

logger = logging.getLogger(__name__)


@register_source
class ChainlinkSource(PrimarySource):
    """Primary source backed by a Chainlink price aggregator contract.

    :ivar contract: web3 handle of the aggregator (AggregatorV3Interface ABI).
    """

    name = "chainlink"
    ABI_NAME = "AggregatorV3Interface"

    def __init__(self, contract: Contract) -> None:
        """Initialize the source.

        :param contract: Aggregator contract handle.
        """
        self.contract = contract

    def _to_quote(self, round_data: tuple | list, decimals: int) -> Quote:
        round_id, answer, _started_at, updated_at, _answered_in_round = round_data
        return Quote(
            value=int(answer),
            precision=int(decimals),
            round_id=int(round_id),
            observed_at=int(updated_at),
        )

    def _fetch_current(self) -> Quote:
        """Read decimals and the latest round from the aggregator."""
        decimals = self.contract.functions.decimals().call()
        round_data = self.contract.functions.latestRoundData().call()
        quote = self._to_quote(round_data, decimals)
        logger.debug(
            f"[chainlink] Round {quote.round_id}: answer={quote.value} "
            f"decimals={quote.precision} updatedAt={quote.observed_at}"
        )
        return quote

    def _fetch_round(self, round_id: int) -> Quote:
        """Read decimals and the given round from the aggregator."""
        decimals = self.contract.functions.decimals().call()
        round_data = self.contract.functions.getRoundData(round_id).call()
        return self._to_quote(round_data, decimals)
