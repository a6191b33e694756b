"""
Failover Price Feed - Core Module

This module provides a single trusted price from two independent sources:
- Quote: Immutable source reading
- QuoteValidator: Broken / frozen / live classification
- PriceScaler: Normalization to 18 fractional digits
- DeviationAnalyzer: Round-over-round and cross-source tolerance checks
- FeedTransitions: The failover decision table
- PriceFeed: State machine owning the status and last good price
- PriceFeedService: Configuration-driven setup and poll loop
- sources: Primary and secondary source adapters
"""

from .DeviationAnalyzer import DeviationAnalyzer
from .FeedPair import FeedPair
from .FeedTransitions import FeedStatus, Observation, PriceChoice, Transition, next_transition
from .PriceFeed import (
    FeedStatusChanged,
    LastGoodPriceUpdated,
    PriceFeed,
    PriceFeedConfigurationError,
)
from .PriceFeedService import PriceFeedConfig, PriceFeedService
from .PriceScaler import TARGET_DIGITS, scale_price, unscale_price
from .Quote import Quote
from .QuoteValidator import QuoteHealth, QuoteValidator

__all__ = [
    "DeviationAnalyzer",
    "FeedPair",
    "FeedStatus",
    "FeedStatusChanged",
    "LastGoodPriceUpdated",
    "Observation",
    "PriceChoice",
    "PriceFeed",
    "PriceFeedConfig",
    "PriceFeedConfigurationError",
    "PriceFeedService",
    "Quote",
    "QuoteHealth",
    "QuoteValidator",
    "TARGET_DIGITS",
    "Transition",
    "next_transition",
    "scale_price",
    "unscale_price",
]
