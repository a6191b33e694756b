"""
Price source adapters for the failover price feed.

Usage:
    from pricefeed.src.sources import get_available_sources, get_source_class

    # Get list of available sources per role
    get_available_sources("primary")
    # ['chainlink']
    get_available_sources("secondary")
    # ['band', 'band-rest']

    # Adapters never raise from their public methods
    current, previous = ChainlinkSource(contract).latest_rounds()
    reading = BandRestSource("eth", "usd").reference_data()
"""

# Import base classes and utilities
from .base import (
    SOURCE_REGISTRY,
    BaseSource,
    PrimarySource,
    SecondarySource,
    SourceConfigError,
    SourceError,
    SourceHTTPError,
    get_available_sources,
    get_source_class,
    register_source,
)

# Import all source implementations to trigger registration
from .band import BandSource
from .band_rest import BandRestSource
from .chainlink import ChainlinkSource

__all__ = [
    # Base classes
    "BaseSource",
    "PrimarySource",
    "SecondarySource",
    "SourceError",
    "SourceConfigError",
    "SourceHTTPError",
    # Registry functions
    "register_source",
    "get_source_class",
    "get_available_sources",
    "SOURCE_REGISTRY",
    # Source implementations
    "BandSource",
    "BandRestSource",
    "ChainlinkSource",
]
