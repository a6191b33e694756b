"""Band Protocol standard dataset REST source (secondary).

Endpoint: {BASE_URL}/oracle/v1/request_prices?symbols={BASE}&symbols={QUOTE}
Response: {"price_results": [{"symbol", "multiplier", "px", "resolve_time", ...}]}
USD is the implicit denomination of every result and is never requested.
"""

import logging

import httpx

from ..PriceScaler import TARGET_DIGITS
from ..Quote import Quote
from .base import HTTPSourceMixin, SecondarySource, SourceError, register_source

logger = logging.getLogger(__name__)


@register_source
class BandRestSource(HTTPSourceMixin, SecondarySource):
    """Secondary source backed by the Band standard dataset REST API.

    Each symbol is priced in USD as ``px / multiplier``. A non-USD quote
    currency is derived by dividing the two USD prices, and the reading is
    as old as the older of the two resolutions.

    :ivar url: API base URL.
    :ivar client: HTTP client used for requests.
    """

    name = "band-rest"
    BASE_URL = "https://laozi1.bandchain.org/api"
    USD = "USD"

    def __init__(
        self,
        base: str,
        quote: str,
        url: str | None = None,
        client: httpx.Client | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the source.

        :param base: Base currency symbol (e.g., "eth").
        :param quote: Quote currency symbol (e.g., "usd").
        :param url: Optional API base URL override.
        :param client: Optional pre-built httpx client (tests inject a mock
            transport through this).
        :param timeout: Request timeout in seconds (default: 10).
        """
        super().__init__(base, quote)
        self.url = (url or self.BASE_URL).rstrip("/")
        self.timeout = timeout or self.DEFAULT_TIMEOUT
        self.client = client or httpx.Client(
            timeout=httpx.Timeout(30.0, connect=10.0),
            follow_redirects=True,
        )

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self.client.close()

    def _symbols(self) -> list[str]:
        return [s for s in (self.base.upper(), self.quote.upper()) if s != self.USD]

    def _fetch_reference(self) -> Quote:
        """Request both symbols and derive the base/quote rate."""
        symbols = self._symbols()
        if not symbols:
            raise SourceError("USD/USD is not a tradable pair")

        response = self._get(
            f"{self.url}/oracle/v1/request_prices",
            params=[("symbols", s) for s in symbols],
        )

        try:
            data = response.json()
            results = {r["symbol"].upper(): r for r in data["price_results"]}
            base_px, base_mult, base_time = self._parse(results, self.base.upper())
            quote_px, quote_mult, quote_time = self._parse(results, self.quote.upper())
        except (KeyError, ValueError, TypeError) as e:
            raise SourceError(f"Failed to parse response: {e}") from e

        if base_px <= 0 or quote_px <= 0 or base_mult <= 0 or quote_mult <= 0:
            raise SourceError(
                f"Non-positive price data for {self.base}/{self.quote}"
            )

        rate = base_px * quote_mult * 10**TARGET_DIGITS // (base_mult * quote_px)
        times = [t for t in (base_time, quote_time) if t is not None]
        observed_at = min(times)

        logger.debug(
            f"[band-rest] {self.base}/{self.quote}: rate={rate} resolved={observed_at}"
        )
        return Quote(value=rate, precision=TARGET_DIGITS, observed_at=observed_at)

    def _parse(
        self, results: dict[str, dict], symbol: str
    ) -> tuple[int, int, int | None]:
        """Extract (px, multiplier, resolve_time) for one symbol.

        USD resolves to a unit price without a timestamp.
        """
        if symbol == self.USD:
            return 1, 1, None
        if symbol not in results:
            raise KeyError(f"no result for {symbol}")

        result = results[symbol]
        return int(result["px"]), int(result["multiplier"]), int(result["resolve_time"])
