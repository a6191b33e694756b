"""PriceFeedService: Builds the feed from configuration and polls it.

Architecture:
    - Source adapters are looked up in the source registry by name
    - Contract-backed sources get a web3 handle from ContractUtility
    - Setup reads the primary once and fails hard if it is not live
    - The poll loop calls ``fetch_price()`` every ``poll_period`` seconds in a
      worker thread, so blocking RPC/HTTP calls never stall the event loop
    - Status and price notifications are logged as they happen
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from .ContractUtility import ContractUtility
from .DeviationAnalyzer import DeviationAnalyzer, percent_to_fraction
from .FeedPair import FeedPair
from .FeedTransitions import FeedStatus
from .PriceFeed import FeedEvent, FeedStatusChanged, LastGoodPriceUpdated, PriceFeed
from .PriceScaler import format_price
from .QuoteValidator import (
    PRIMARY_TIMEOUT,
    SECONDARY_BROKEN_TIMEOUT,
    SECONDARY_FROZEN_TIMEOUT,
    QuoteValidator,
)
from .sources import (
    BandRestSource,
    BandSource,
    ChainlinkSource,
    PrimarySource,
    SecondarySource,
    SourceConfigError,
    get_source_class,
)

logger = logging.getLogger(__name__)


@dataclass
class PriceFeedConfig:
    """Runtime configuration of the price feed service.

    :ivar network: Network name or RPC URL for contract-backed sources.
    :ivar pair: Trading pair, e.g. "eth/usd".
    :ivar primary_source: Registered primary source name.
    :ivar primary_address: Primary contract address.
    :ivar secondary_source: Registered secondary source name.
    :ivar secondary_address: Secondary contract address (contract sources).
    :ivar secondary_url: Secondary API base URL (HTTP sources).
    :ivar poll_period: Seconds between price requests.
    :ivar primary_timeout: Primary freeze threshold in seconds.
    :ivar secondary_frozen_timeout: Secondary freeze threshold in seconds.
    :ivar secondary_broken_timeout: Secondary broken threshold in seconds.
    :ivar max_deviation_percent: Max primary round-over-round change.
    :ivar max_difference_percent: Max difference between the two sources.
    :ivar fetch_timeout: HTTP request timeout in seconds.
    """

    network: str = "localnet"
    pair: str = "eth/usd"
    primary_source: str = "chainlink"
    primary_address: str | None = None
    secondary_source: str = "band"
    secondary_address: str | None = None
    secondary_url: str | None = None
    poll_period: int = 60
    primary_timeout: int = PRIMARY_TIMEOUT
    secondary_frozen_timeout: int = SECONDARY_FROZEN_TIMEOUT
    secondary_broken_timeout: int = SECONDARY_BROKEN_TIMEOUT
    max_deviation_percent: float = 50.0
    max_difference_percent: float = 5.0
    fetch_timeout: float = 10.0


class PriceFeedService:
    """Owns one PriceFeed and its source adapters.

    :ivar config: Service configuration.
    :ivar pair: Parsed trading pair.
    :ivar primary: Primary source adapter.
    :ivar secondary: Secondary source adapter.
    :ivar feed: The price feed, available after ``setup()``.
    """

    def __init__(
        self,
        config: PriceFeedConfig,
        contract_utility: ContractUtility | None = None,
    ) -> None:
        """Initialize the service and build the source adapters.

        :param config: Service configuration.
        :param contract_utility: Optional pre-built web3 utility; created
            lazily from ``config.network`` when a contract source needs it.
        :raises ValueError: If the pair or a source name is invalid.
        :raises SourceConfigError: If a source is missing its address/network.
        """
        self.config = config
        self.poll_period = max(1, config.poll_period)
        self.pair = FeedPair.from_string(config.pair)
        self._contract_utility = contract_utility

        self.validator = QuoteValidator(
            primary_timeout=config.primary_timeout,
            secondary_frozen_timeout=config.secondary_frozen_timeout,
            secondary_broken_timeout=config.secondary_broken_timeout,
        )
        self.analyzer = DeviationAnalyzer(
            max_price_deviation=percent_to_fraction(config.max_deviation_percent),
            max_price_difference=percent_to_fraction(config.max_difference_percent),
        )

        self.primary = self._build_primary()
        self.secondary = self._build_secondary()
        self.feed: PriceFeed | None = None

        logger.info(
            f"PriceFeedService initialized: pair={self.pair}, "
            f"primary={self.primary.name}, secondary={self.secondary.name}, "
            f"poll_period={self.poll_period}s"
        )

    @property
    def contract_utility(self) -> ContractUtility:
        """Web3 utility, created on first use."""
        if self._contract_utility is None:
            self._contract_utility = ContractUtility(self.config.network)
        return self._contract_utility

    def _build_primary(self) -> PrimarySource:
        cls = get_source_class(self.config.primary_source, "primary")
        if cls is ChainlinkSource:
            contract = self.contract_utility.contract(
                self.config.primary_address, ChainlinkSource.ABI_NAME
            )
            return ChainlinkSource(contract)
        raise SourceConfigError(f"No builder for primary source '{cls.name}'")

    def _build_secondary(self) -> SecondarySource:
        cls = get_source_class(self.config.secondary_source, "secondary")
        if cls is BandSource:
            contract = self.contract_utility.contract(
                self.config.secondary_address, BandSource.ABI_NAME
            )
            return BandSource(contract, self.pair.base, self.pair.quote)
        if cls is BandRestSource:
            return BandRestSource(
                self.pair.base,
                self.pair.quote,
                url=self.config.secondary_url,
                timeout=self.config.fetch_timeout,
            )
        raise SourceConfigError(f"No builder for secondary source '{cls.name}'")

    def setup(self) -> PriceFeed:
        """Create the price feed from a first primary reading.

        :returns: The initialized PriceFeed.
        :raises PriceFeedConfigurationError: If the primary is not live.
        """
        self.feed = PriceFeed(
            self.primary,
            self.secondary,
            validator=self.validator,
            analyzer=self.analyzer,
            listeners=[self._log_event],
        )
        return self.feed

    def poll_once(self) -> int:
        """Run a single price request, setting the feed up if needed.

        :returns: The returned price (18 digits).
        """
        if self.feed is None:
            self.setup()
        assert self.feed is not None
        return self.feed.fetch_price()

    def _log_event(self, event: FeedEvent) -> None:
        if isinstance(event, LastGoodPriceUpdated):
            logger.info(f"{self.pair}: last good price ${format_price(event.price)}")
        elif isinstance(event, FeedStatusChanged):
            previous = event.previous.value if event.previous else "none"
            if event.status is FeedStatus.PRIMARY_TRUSTED:
                logger.info(f"{self.pair}: status {previous} -> {event.status.value}")
            else:
                logger.warning(f"{self.pair}: status {previous} -> {event.status.value}")

    def close(self) -> None:
        """Release resources held by the source adapters."""
        if isinstance(self.secondary, BandRestSource):
            self.secondary.close()

    async def run(self) -> None:
        """Set up the feed and poll it until cancelled."""
        self.setup()
        logger.info(f"{self.pair}: starting poll loop every {self.poll_period}s")

        try:
            while True:
                price = await asyncio.to_thread(self.poll_once)
                logger.debug(f"{self.pair}: returned ${format_price(price)}")
                await asyncio.sleep(self.poll_period)
        finally:
            self.close()
