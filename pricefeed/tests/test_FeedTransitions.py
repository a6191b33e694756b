"""Unit tests for the failover transition table."""

import itertools

import pytest

from pricefeed.src.FeedTransitions import (
    TRANSITION_HANDLERS,
    FeedStatus,
    Observation,
    PriceChoice,
    Transition,
    next_transition,
)
from pricefeed.src.QuoteValidator import QuoteHealth

B = QuoteHealth.BROKEN
F = QuoteHealth.FROZEN
L = QuoteHealth.LIVE

PT = FeedStatus.PRIMARY_TRUSTED
SOPU = FeedStatus.SECONDARY_OVERRIDE_PRIMARY_UNTRUSTED
BU = FeedStatus.BOTH_UNTRUSTED
SOPF = FeedStatus.SECONDARY_OVERRIDE_PRIMARY_FROZEN
POSU = FeedStatus.PRIMARY_OVERRIDE_SECONDARY_UNTRUSTED

LAST = PriceChoice.LAST_GOOD
PRI = PriceChoice.PRIMARY
SEC = PriceChoice.SECONDARY


def obs(
    primary: QuoteHealth,
    secondary: QuoteHealth,
    excessive: bool = False,
    similar: bool = False,
) -> Observation:
    """Build an observation the way the analyzer would fill it."""
    return Observation(
        primary_health=primary,
        secondary_health=secondary,
        primary_change_above_max=excessive,
        prices_similar=similar,
        both_live_and_similar=primary is L and secondary is L and similar,
    )


# (status, observation, next status, returned price)
TABLE = [
    # PrimaryTrusted
    (PT, obs(B, B), BU, LAST),
    (PT, obs(B, F), SOPU, LAST),
    (PT, obs(B, L), SOPU, SEC),
    (PT, obs(F, B), POSU, LAST),
    (PT, obs(F, F), SOPF, LAST),
    (PT, obs(F, L), SOPF, SEC),
    (PT, obs(L, B, excessive=True), BU, LAST),
    (PT, obs(L, F, excessive=True), SOPU, LAST),
    (PT, obs(L, L, excessive=True, similar=True), PT, PRI),
    (PT, obs(L, L, excessive=True), SOPU, SEC),
    (PT, obs(L, B), POSU, PRI),
    (PT, obs(L, F), PT, PRI),
    (PT, obs(L, L), PT, PRI),
    (PT, obs(L, L, similar=True), PT, PRI),
    # SecondaryOverridePrimaryUntrusted
    (SOPU, obs(L, L, similar=True), PT, PRI),
    (SOPU, obs(L, B), BU, LAST),
    (SOPU, obs(B, B), BU, LAST),
    (SOPU, obs(B, F), SOPU, LAST),
    (SOPU, obs(L, F, similar=True), SOPU, LAST),
    (SOPU, obs(B, L), SOPU, SEC),
    (SOPU, obs(F, L, similar=True), SOPU, SEC),
    (SOPU, obs(L, L), SOPU, SEC),
    # BothUntrusted
    (BU, obs(L, L, similar=True), PT, PRI),
    (BU, obs(L, L), BU, LAST),
    (BU, obs(F, L, similar=True), BU, LAST),
    (BU, obs(L, B), BU, LAST),
    (BU, obs(B, B), BU, LAST),
    # SecondaryOverridePrimaryFrozen
    (SOPF, obs(B, B), BU, LAST),
    (SOPF, obs(B, F), SOPU, LAST),
    (SOPF, obs(B, L), SOPU, SEC),
    (SOPF, obs(F, B), POSU, LAST),
    (SOPF, obs(F, F), SOPF, LAST),
    (SOPF, obs(F, L), SOPF, SEC),
    (SOPF, obs(L, B), POSU, PRI),
    (SOPF, obs(L, F), SOPF, LAST),
    (SOPF, obs(L, L, similar=True), PT, PRI),
    (SOPF, obs(L, L), SOPU, SEC),
    # PrimaryOverrideSecondaryUntrusted
    (POSU, obs(B, L, similar=True), BU, LAST),
    (POSU, obs(B, B), BU, LAST),
    (POSU, obs(F, L), POSU, LAST),
    (POSU, obs(L, L, similar=True), PT, PRI),
    (POSU, obs(L, L, excessive=True, similar=True), PT, PRI),
    (POSU, obs(L, B, excessive=True), BU, LAST),
    (POSU, obs(L, L, excessive=True), BU, LAST),
    (POSU, obs(L, B), POSU, PRI),
    (POSU, obs(L, F, similar=True), POSU, PRI),
]


class TestTransitionTable:
    """Test every row of the decision table."""

    @pytest.mark.parametrize("status,observation,expected_status,expected_choice", TABLE)
    def test_row(
        self,
        status: FeedStatus,
        observation: Observation,
        expected_status: FeedStatus,
        expected_choice: PriceChoice,
    ) -> None:
        """Each (status, observation) pair maps to the documented transition."""
        assert next_transition(status, observation) == Transition(
            expected_status, expected_choice
        )

    def test_every_status_has_handler(self) -> None:
        """No status is missing from the dispatch table."""
        assert set(TRANSITION_HANDLERS) == set(FeedStatus)

    def test_frozen_primary_recovery_ignores_round_over_round(self) -> None:
        """A live primary leaving the frozen state is judged by similarity only."""
        transition = next_transition(SOPF, obs(L, L, excessive=True, similar=True))
        assert transition == Transition(PT, PRI)


class TestTransitionTotality:
    """Test that the table is total."""

    def test_all_combinations_defined(self) -> None:
        """Every status and classification tuple yields one transition."""
        healths = list(QuoteHealth)
        flags = [False, True]
        for status, primary, secondary, excessive, similar in itertools.product(
            FeedStatus, healths, healths, flags, flags
        ):
            transition = next_transition(
                status, obs(primary, secondary, excessive=excessive, similar=similar)
            )
            assert isinstance(transition.status, FeedStatus)
            assert isinstance(transition.choice, PriceChoice)

    @pytest.mark.parametrize("status", list(FeedStatus))
    def test_both_broken_from_any_status(self, status: FeedStatus) -> None:
        """Two broken sources always end in BothUntrusted with the last good price."""
        for excessive in (False, True):
            transition = next_transition(status, obs(B, B, excessive=excessive))
            assert transition == Transition(BU, LAST)

    def test_only_both_live_and_similar_restores_trust(self) -> None:
        """Degraded statuses return to PrimaryTrusted only on the recovery condition."""
        healths = list(QuoteHealth)
        flags = [False, True]
        degraded = [SOPU, BU, POSU]
        for status, primary, secondary, excessive, similar in itertools.product(
            degraded, healths, healths, flags, flags
        ):
            observation = obs(primary, secondary, excessive=excessive, similar=similar)
            if next_transition(status, observation).status is PT:
                assert observation.both_live_and_similar
