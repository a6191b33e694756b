"""PriceFeed: Failover price feed over a primary and a secondary source.

Every call to ``fetch_price()`` is one atomic step:

    1. Read the primary's latest two rounds and the secondary's reference rate
    2. Classify both sources as broken, frozen or live
    3. Scale both prices to 18 digits and compare them
    4. Look up the next status and price choice in the transition table
    5. Store the chosen price as the last good price (or keep the old one)

The call never fails because of source behavior: when no source can be
trusted it returns the last good price, and observers learn about the
degraded trust through ``FeedStatusChanged`` notifications.

.. code-block:: python

    >>> feed = PriceFeed(ChainlinkSource(aggregator), BandSource(reference, "eth", "usd"))
    >>> feed.fetch_price()
    3000000000000000000000
    >>> feed.status
    <FeedStatus.PRIMARY_TRUSTED: 'primaryTrusted'>
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Union

from .DeviationAnalyzer import DeviationAnalyzer
from .FeedTransitions import (
    FeedStatus,
    Observation,
    PriceChoice,
    Transition,
    next_transition,
)
from .PriceScaler import format_price, scale_price
from .Quote import Quote
from .QuoteValidator import QuoteHealth, QuoteValidator
from .sources.base import PrimarySource, SecondarySource

logger = logging.getLogger(__name__)


class PriceFeedConfigurationError(Exception):
    """Raised when the feed cannot start because the primary is unusable."""

    pass


@dataclass(frozen=True)
class LastGoodPriceUpdated:
    """Notification that a new last good price was stored.

    :ivar price: The stored price (18 digits).
    """

    price: int


@dataclass(frozen=True)
class FeedStatusChanged:
    """Notification that the feed status changed.

    :ivar previous: Status before the change (None at setup).
    :ivar status: The new status.
    """

    previous: FeedStatus | None
    status: FeedStatus


FeedEvent = Union[LastGoodPriceUpdated, FeedStatusChanged]
FeedListener = Callable[[FeedEvent], None]


class PriceFeed:
    """Failover state machine owning the feed status and last good price.

    :ivar primary: Primary (round-based) source adapter.
    :ivar secondary: Secondary (reference-data) source adapter.
    :ivar validator: Classification rules.
    :ivar analyzer: Deviation rules.
    :ivar clock: Callable returning the current unix time.
    """

    def __init__(
        self,
        primary: PrimarySource,
        secondary: SecondarySource,
        *,
        validator: QuoteValidator | None = None,
        analyzer: DeviationAnalyzer | None = None,
        clock: Callable[[], float] = time.time,
        listeners: list[FeedListener] | None = None,
    ) -> None:
        """Set up the feed from a first primary reading.

        :param primary: Primary source adapter.
        :param secondary: Secondary source adapter.
        :param validator: Optional classification rules (reference defaults).
        :param analyzer: Optional deviation rules (reference defaults).
        :param clock: Time source, injectable for tests.
        :param listeners: Callbacks notified of status and price changes,
            including the initial ones.
        :raises PriceFeedConfigurationError: If the primary is broken or frozen.
        """
        self.primary = primary
        self.secondary = secondary
        self.validator = validator or QuoteValidator()
        self.analyzer = analyzer or DeviationAnalyzer()
        self.clock = clock

        self._lock = threading.Lock()
        self._listeners: list[FeedListener] = list(listeners or [])
        self._last_observation: Observation | None = None
        self._last_request_at: int | None = None

        # Events are numbered in commit order and delivered by one thread at a time
        self._events: deque[tuple[int, FeedEvent]] = deque()
        self._emitted = 0
        self._delivered = 0
        self._delivery = threading.Condition()
        self._dispatcher: int | None = None

        now = self._now()
        current, previous = self.primary.latest_rounds()
        health = self.validator.classify_primary(current, previous, now)
        if health is not QuoteHealth.LIVE:
            raise PriceFeedConfigurationError(
                f"Primary source '{primary.name}' must be working and current "
                f"(classified {health.value})"
            )

        self._status = FeedStatus.PRIMARY_TRUSTED
        self._last_good_price = 0
        self._emit(FeedStatusChanged(previous=None, status=self._status))
        self._store_price(scale_price(current.value, current.precision))

        logger.info(
            f"PriceFeed initialized: primary={primary.name}, "
            f"secondary={secondary.name}, status={self._status.value}, "
            f"price={format_price(self._last_good_price)}"
        )
        self._deliver(self._emitted)

    @property
    def status(self) -> FeedStatus:
        """Current trust status."""
        return self._status

    @property
    def last_good_price(self) -> int:
        """Last price accepted as trustworthy (18 digits)."""
        return self._last_good_price

    def add_listener(self, listener: FeedListener) -> None:
        """Register a callback for status and price notifications."""
        self._listeners.append(listener)

    def remove_listener(self, listener: FeedListener) -> None:
        """Unregister a previously added callback."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _now(self) -> int:
        return int(self.clock())

    def _emit(self, event: FeedEvent) -> None:
        # Called with the request lock held
        self._emitted += 1
        self._events.append((self._emitted, event))

    def _deliver(self, upto: int) -> None:
        """Deliver queued events in commit order, at least up to ``upto``.

        One thread drains the queue at a time; other callers wait until their
        own events went out. A listener calling back into the feed from the
        draining thread returns at once and its events follow in order.
        Runs outside the request lock so listeners may call ``fetch_price()``.

        :param upto: Sequence number of the caller's last event.
        """
        me = threading.get_ident()
        with self._delivery:
            if self._dispatcher == me:
                return
            while self._dispatcher is not None and self._delivered < upto:
                self._delivery.wait()
            if self._delivered >= upto:
                return
            self._dispatcher = me

        try:
            while True:
                with self._delivery:
                    if not self._events:
                        break
                    seq, event = self._events.popleft()
                self._notify(event)
                with self._delivery:
                    self._delivered = seq
                    self._delivery.notify_all()
        finally:
            with self._delivery:
                self._dispatcher = None
                self._delivery.notify_all()

    def _notify(self, event: FeedEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.warning(f"Listener {listener!r} failed on {event}: {e}")

    def _scaled(self, quote: Quote) -> int:
        return scale_price(quote.value, quote.precision)

    def _observe(self, now: int) -> Observation:
        """Read and classify both sources. Caller holds the request lock.

        :param now: Request time (unix seconds).
        :returns: Observation for the transition table.
        """
        current, previous = self.primary.latest_rounds()
        reference = self.secondary.reference_data()

        primary_health = self.validator.classify_primary(current, previous, now)
        secondary_health = self.validator.classify_secondary(reference, now)

        primary_price = 0
        change_above_max = False
        if primary_health is not QuoteHealth.BROKEN:
            primary_price = self._scaled(current)
            change_above_max = self.analyzer.price_change_above_max(
                primary_price, self._scaled(previous)
            )

        secondary_price = 0
        if secondary_health is not QuoteHealth.BROKEN:
            secondary_price = self._scaled(reference)

        return Observation(
            primary_health=primary_health,
            secondary_health=secondary_health,
            primary_change_above_max=change_above_max,
            prices_similar=self.analyzer.prices_similar(primary_price, secondary_price),
            both_live_and_similar=self.analyzer.both_live_unbroken_and_similar(
                primary_health, secondary_health, primary_price, secondary_price
            ),
            primary_price=primary_price,
            secondary_price=secondary_price,
        )

    def fetch_price(self) -> int:
        """Return the current trusted price, updating status and store.

        Requests are serialized: sources are read, the transition applied and
        the result committed under one lock. Notifications of this request
        are delivered, in commit order, before the call returns.

        :returns: Price with 18 fractional digits.
        """
        with self._lock:
            now = self._now()
            observation = self._observe(now)
            transition = next_transition(self._status, observation)

            logger.debug(
                f"Request at {now}: primary={observation.primary_health.value} "
                f"({format_price(observation.primary_price)}), "
                f"secondary={observation.secondary_health.value} "
                f"({format_price(observation.secondary_price)}), "
                f"change_above_max={observation.primary_change_above_max}, "
                f"similar={observation.prices_similar} -> "
                f"{transition.status.value}/{transition.choice.value}"
            )

            self._last_observation = observation
            self._last_request_at = now
            price = self._apply(transition, observation)
            upto = self._emitted

        self._deliver(upto)
        return price

    def _apply(self, transition: Transition, observation: Observation) -> int:
        changed = self._change_status(transition.status)

        if transition.choice is PriceChoice.PRIMARY:
            return self._store_price(observation.primary_price)
        if transition.choice is PriceChoice.SECONDARY:
            return self._store_price(observation.secondary_price)

        message = (
            f"No trusted source ({self._status.value}), returning last good "
            f"price {format_price(self._last_good_price)}"
        )
        # Warn once per degradation, not on every request of an outage
        if changed:
            logger.warning(message)
        else:
            logger.debug(message)
        return self._last_good_price

    def _change_status(self, status: FeedStatus) -> bool:
        if status is self._status:
            return False
        previous = self._status
        self._status = status
        logger.info(f"Status changed: {previous.value} -> {status.value}")
        self._emit(FeedStatusChanged(previous=previous, status=status))
        return True

    def _store_price(self, price: int) -> int:
        self._last_good_price = price
        self._emit(LastGoodPriceUpdated(price=price))
        return price

    def snapshot(self) -> dict[str, Any]:
        """Summarize the feed for monitoring.

        :returns: Dict with status, last good price and the last observation.
        """
        with self._lock:
            observation = self._last_observation
            return {
                "status": self._status.value,
                "last_good_price": self._last_good_price,
                "last_good_price_decimal": format_price(self._last_good_price),
                "last_request_at": self._last_request_at,
                "primary_health": observation.primary_health.value if observation else None,
                "secondary_health": (
                    observation.secondary_health.value if observation else None
                ),
            }
