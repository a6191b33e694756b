"""FeedTransitions: The failover decision table.

``next_transition(status, observation)`` is a pure function of the current
status and the classified readings of one request. It returns the next
status and which price to hand back:

    - ``PriceChoice.PRIMARY`` / ``PriceChoice.SECONDARY``: return that
      source's scaled price and store it as the last good price
    - ``PriceChoice.LAST_GOOD``: return the stored last good price untouched

Every status has exactly one handler and every handler returns on all
paths, so each (status, observation) pair maps to one transition.

.. code-block:: python

    >>> obs = Observation(
    ...     primary_health=QuoteHealth.BROKEN,
    ...     secondary_health=QuoteHealth.BROKEN,
    ... )
    >>> next_transition(FeedStatus.PRIMARY_TRUSTED, obs)
    Transition(status=<FeedStatus.BOTH_UNTRUSTED: 'bothUntrusted'>, choice=<PriceChoice.LAST_GOOD: 'lastGood'>)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, NamedTuple

from .QuoteValidator import QuoteHealth

BROKEN = QuoteHealth.BROKEN
FROZEN = QuoteHealth.FROZEN


class FeedStatus(Enum):
    """Which source the feed currently trusts."""

    PRIMARY_TRUSTED = "primaryTrusted"
    SECONDARY_OVERRIDE_PRIMARY_UNTRUSTED = "secondaryOverridePrimaryUntrusted"
    BOTH_UNTRUSTED = "bothUntrusted"
    SECONDARY_OVERRIDE_PRIMARY_FROZEN = "secondaryOverridePrimaryFrozen"
    PRIMARY_OVERRIDE_SECONDARY_UNTRUSTED = "primaryOverrideSecondaryUntrusted"


class PriceChoice(Enum):
    """Which price a transition returns."""

    LAST_GOOD = "lastGood"
    PRIMARY = "primary"
    SECONDARY = "secondary"


@dataclass(frozen=True)
class Observation:
    """Classified readings of both sources for one request.

    :ivar primary_health: Classification of the primary's latest two rounds.
    :ivar secondary_health: Classification of the secondary reading.
    :ivar primary_change_above_max: Primary moved too far since last round.
    :ivar prices_similar: Both scaled prices agree within tolerance.
    :ivar both_live_and_similar: Both sources live and in agreement.
    :ivar primary_price: Scaled primary price (0 if unavailable).
    :ivar secondary_price: Scaled secondary price (0 if unavailable).
    """

    primary_health: QuoteHealth
    secondary_health: QuoteHealth
    primary_change_above_max: bool = False
    prices_similar: bool = False
    both_live_and_similar: bool = False
    primary_price: int = 0
    secondary_price: int = 0


class Transition(NamedTuple):
    """Next status and the price to return."""

    status: FeedStatus
    choice: PriceChoice


def _primary_trusted(obs: Observation) -> Transition:
    primary, secondary = obs.primary_health, obs.secondary_health

    if primary is BROKEN:
        if secondary is BROKEN:
            return Transition(FeedStatus.BOTH_UNTRUSTED, PriceChoice.LAST_GOOD)
        if secondary is FROZEN:
            return Transition(
                FeedStatus.SECONDARY_OVERRIDE_PRIMARY_UNTRUSTED, PriceChoice.LAST_GOOD
            )
        return Transition(
            FeedStatus.SECONDARY_OVERRIDE_PRIMARY_UNTRUSTED, PriceChoice.SECONDARY
        )

    if primary is FROZEN:
        if secondary is BROKEN:
            return Transition(
                FeedStatus.PRIMARY_OVERRIDE_SECONDARY_UNTRUSTED, PriceChoice.LAST_GOOD
            )
        if secondary is FROZEN:
            return Transition(
                FeedStatus.SECONDARY_OVERRIDE_PRIMARY_FROZEN, PriceChoice.LAST_GOOD
            )
        return Transition(
            FeedStatus.SECONDARY_OVERRIDE_PRIMARY_FROZEN, PriceChoice.SECONDARY
        )

    if obs.primary_change_above_max:
        if secondary is BROKEN:
            return Transition(FeedStatus.BOTH_UNTRUSTED, PriceChoice.LAST_GOOD)
        if secondary is FROZEN:
            return Transition(
                FeedStatus.SECONDARY_OVERRIDE_PRIMARY_UNTRUSTED, PriceChoice.LAST_GOOD
            )
        # The secondary vouches for the jump
        if obs.prices_similar:
            return Transition(FeedStatus.PRIMARY_TRUSTED, PriceChoice.PRIMARY)
        return Transition(
            FeedStatus.SECONDARY_OVERRIDE_PRIMARY_UNTRUSTED, PriceChoice.SECONDARY
        )

    if secondary is BROKEN:
        return Transition(
            FeedStatus.PRIMARY_OVERRIDE_SECONDARY_UNTRUSTED, PriceChoice.PRIMARY
        )
    return Transition(FeedStatus.PRIMARY_TRUSTED, PriceChoice.PRIMARY)


def _secondary_override_primary_untrusted(obs: Observation) -> Transition:
    if obs.both_live_and_similar:
        return Transition(FeedStatus.PRIMARY_TRUSTED, PriceChoice.PRIMARY)

    if obs.secondary_health is BROKEN:
        return Transition(FeedStatus.BOTH_UNTRUSTED, PriceChoice.LAST_GOOD)
    if obs.secondary_health is FROZEN:
        return Transition(
            FeedStatus.SECONDARY_OVERRIDE_PRIMARY_UNTRUSTED, PriceChoice.LAST_GOOD
        )
    return Transition(
        FeedStatus.SECONDARY_OVERRIDE_PRIMARY_UNTRUSTED, PriceChoice.SECONDARY
    )


def _both_untrusted(obs: Observation) -> Transition:
    if obs.both_live_and_similar:
        return Transition(FeedStatus.PRIMARY_TRUSTED, PriceChoice.PRIMARY)
    return Transition(FeedStatus.BOTH_UNTRUSTED, PriceChoice.LAST_GOOD)


def _secondary_override_primary_frozen(obs: Observation) -> Transition:
    primary, secondary = obs.primary_health, obs.secondary_health

    if primary is BROKEN:
        if secondary is BROKEN:
            return Transition(FeedStatus.BOTH_UNTRUSTED, PriceChoice.LAST_GOOD)
        if secondary is FROZEN:
            return Transition(
                FeedStatus.SECONDARY_OVERRIDE_PRIMARY_UNTRUSTED, PriceChoice.LAST_GOOD
            )
        return Transition(
            FeedStatus.SECONDARY_OVERRIDE_PRIMARY_UNTRUSTED, PriceChoice.SECONDARY
        )

    if primary is FROZEN:
        if secondary is BROKEN:
            return Transition(
                FeedStatus.PRIMARY_OVERRIDE_SECONDARY_UNTRUSTED, PriceChoice.LAST_GOOD
            )
        if secondary is FROZEN:
            return Transition(
                FeedStatus.SECONDARY_OVERRIDE_PRIMARY_FROZEN, PriceChoice.LAST_GOOD
            )
        return Transition(
            FeedStatus.SECONDARY_OVERRIDE_PRIMARY_FROZEN, PriceChoice.SECONDARY
        )

    # Primary is live again. The round-over-round check is not consulted here.
    if secondary is BROKEN:
        return Transition(
            FeedStatus.PRIMARY_OVERRIDE_SECONDARY_UNTRUSTED, PriceChoice.PRIMARY
        )
    if secondary is FROZEN:
        return Transition(
            FeedStatus.SECONDARY_OVERRIDE_PRIMARY_FROZEN, PriceChoice.LAST_GOOD
        )
    if obs.prices_similar:
        return Transition(FeedStatus.PRIMARY_TRUSTED, PriceChoice.PRIMARY)
    return Transition(
        FeedStatus.SECONDARY_OVERRIDE_PRIMARY_UNTRUSTED, PriceChoice.SECONDARY
    )


def _primary_override_secondary_untrusted(obs: Observation) -> Transition:
    if obs.primary_health is BROKEN:
        return Transition(FeedStatus.BOTH_UNTRUSTED, PriceChoice.LAST_GOOD)
    if obs.primary_health is FROZEN:
        return Transition(
            FeedStatus.PRIMARY_OVERRIDE_SECONDARY_UNTRUSTED, PriceChoice.LAST_GOOD
        )

    if obs.both_live_and_similar:
        return Transition(FeedStatus.PRIMARY_TRUSTED, PriceChoice.PRIMARY)

    if obs.primary_change_above_max:
        return Transition(FeedStatus.BOTH_UNTRUSTED, PriceChoice.LAST_GOOD)
    return Transition(
        FeedStatus.PRIMARY_OVERRIDE_SECONDARY_UNTRUSTED, PriceChoice.PRIMARY
    )


TRANSITION_HANDLERS: dict[FeedStatus, Callable[[Observation], Transition]] = {
    FeedStatus.PRIMARY_TRUSTED: _primary_trusted,
    FeedStatus.SECONDARY_OVERRIDE_PRIMARY_UNTRUSTED: _secondary_override_primary_untrusted,
    FeedStatus.BOTH_UNTRUSTED: _both_untrusted,
    FeedStatus.SECONDARY_OVERRIDE_PRIMARY_FROZEN: _secondary_override_primary_frozen,
    FeedStatus.PRIMARY_OVERRIDE_SECONDARY_UNTRUSTED: _primary_override_secondary_untrusted,
}


def next_transition(status: FeedStatus, observation: Observation) -> Transition:
    """Look up the transition for one request.

    :param status: Current feed status.
    :param observation: Classified readings of both sources.
    :returns: The next status and which price to return.
    """
    return TRANSITION_HANDLERS[status](observation)
