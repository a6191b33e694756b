#!/usr/bin/env python3
"""Failover Price Feed.

Reads a primary round-based price source and a secondary reference-data
source, and keeps serving one trusted price when either of them breaks,
freezes or misbehaves.

Run with CLI flags or env vars; CLI args take precedence.
"""

import argparse
import asyncio
import logging
import os
import sys

from .src.PriceFeed import PriceFeedConfigurationError
from .src.PriceFeedService import PriceFeedConfig, PriceFeedService
from .src.QuoteValidator import (
    PRIMARY_TIMEOUT,
    SECONDARY_BROKEN_TIMEOUT,
    SECONDARY_FROZEN_TIMEOUT,
)
from .src.sources import SourceError, get_available_sources

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser.

    Every option defaults to its environment variable, then to the
    reference value.

    :returns: Configured ArgumentParser.
    """
    primary_sources = get_available_sources("primary")
    secondary_sources = get_available_sources("secondary")

    parser = argparse.ArgumentParser(
        description="Failover Price Feed: primary/secondary oracle with last-good fallback",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Available sources:
  primary:   {', '.join(primary_sources)}
  secondary: {', '.join(secondary_sources)}

Examples:
  # ETH/USD from a Chainlink aggregator with a Band reference contract
  python -m pricefeed.main --network ethereum --pair eth/usd \\
      --primary-address 0x5f4eC3Df9cbd43714FE2740f5E3616155c5b8419 \\
      --secondary-address 0xDA7a001b254CD22e46d3eAB04d937489c93174C3

  # Band REST API as the secondary source
  python -m pricefeed.main --pair btc/usd --secondary band-rest \\
      --primary-address 0xF4030086522a5bEEa4988F8cA5B36dbC97BeE88c

Environment variables (CLI args take precedence):
  NETWORK, RPC_URL, PAIR, PRIMARY_SOURCE, PRIMARY_ADDRESS, SECONDARY_SOURCE,
  SECONDARY_ADDRESS, SECONDARY_URL, POLL_PERIOD, PRIMARY_TIMEOUT,
  SECONDARY_FROZEN_TIMEOUT, SECONDARY_BROKEN_TIMEOUT,
  MAX_DEVIATION_PERCENT, MAX_DIFFERENCE_PERCENT, FETCH_TIMEOUT
""",
    )

    parser.add_argument(
        "--network",
        type=str,
        help="Network for contract sources (ethereum, sepolia, localnet or an RPC URL)",
        default=os.environ.get("NETWORK") or "localnet",
    )

    parser.add_argument(
        "--pair",
        type=str,
        help="Trading pair (e.g., eth/usd)",
        default=os.environ.get("PAIR") or "eth/usd",
    )

    parser.add_argument(
        "--primary",
        dest="primary_source",
        type=str,
        help=f"Primary source. Available: {', '.join(primary_sources)}",
        default=os.environ.get("PRIMARY_SOURCE") or "chainlink",
    )

    parser.add_argument(
        "--primary-address",
        dest="primary_address",
        type=str,
        help="Primary aggregator contract address",
        default=os.environ.get("PRIMARY_ADDRESS"),
    )

    parser.add_argument(
        "--secondary",
        dest="secondary_source",
        type=str,
        help=f"Secondary source. Available: {', '.join(secondary_sources)}",
        default=os.environ.get("SECONDARY_SOURCE") or "band",
    )

    parser.add_argument(
        "--secondary-address",
        dest="secondary_address",
        type=str,
        help="Secondary reference contract address (contract sources only)",
        default=os.environ.get("SECONDARY_ADDRESS"),
    )

    parser.add_argument(
        "--secondary-url",
        dest="secondary_url",
        type=str,
        help="Secondary API base URL (HTTP sources only)",
        default=os.environ.get("SECONDARY_URL"),
    )

    parser.add_argument(
        "--poll-period",
        dest="poll_period",
        type=int,
        help="Seconds between price requests (minimum: 1, default: 60)",
        default=int(os.environ.get("POLL_PERIOD") or "60"),
    )

    parser.add_argument(
        "--primary-timeout",
        dest="primary_timeout",
        type=int,
        help=f"Seconds before a primary round is frozen (default: {PRIMARY_TIMEOUT})",
        default=int(os.environ.get("PRIMARY_TIMEOUT") or PRIMARY_TIMEOUT),
    )

    parser.add_argument(
        "--secondary-frozen-timeout",
        dest="secondary_frozen_timeout",
        type=int,
        help=(
            "Seconds before a secondary reading is frozen "
            f"(default: {SECONDARY_FROZEN_TIMEOUT})"
        ),
        default=int(os.environ.get("SECONDARY_FROZEN_TIMEOUT") or SECONDARY_FROZEN_TIMEOUT),
    )

    parser.add_argument(
        "--secondary-broken-timeout",
        dest="secondary_broken_timeout",
        type=int,
        help=(
            "Seconds before a secondary reading is broken "
            f"(default: {SECONDARY_BROKEN_TIMEOUT})"
        ),
        default=int(os.environ.get("SECONDARY_BROKEN_TIMEOUT") or SECONDARY_BROKEN_TIMEOUT),
    )

    parser.add_argument(
        "--max-deviation",
        dest="max_deviation",
        type=float,
        help="Max primary change vs previous round, percent (default: 50.0)",
        default=float(os.environ.get("MAX_DEVIATION_PERCENT") or "50.0"),
    )

    parser.add_argument(
        "--max-difference",
        dest="max_difference",
        type=float,
        help="Max difference between primary and secondary, percent (default: 5.0)",
        default=float(os.environ.get("MAX_DIFFERENCE_PERCENT") or "5.0"),
    )

    parser.add_argument(
        "--fetch-timeout",
        dest="fetch_timeout",
        type=float,
        help="Timeout for HTTP source requests in seconds (default: 10.0)",
        default=float(os.environ.get("FETCH_TIMEOUT") or "10.0"),
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    return parser


def parse_config(argv: list[str] | None = None) -> tuple[PriceFeedConfig, bool]:
    """Parse and validate command-line arguments.

    :param argv: Argument list (defaults to sys.argv[1:]).
    :returns: Tuple of (config, verbose).
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    # Validate arguments
    if args.poll_period < 1:
        parser.error("--poll-period must be at least 1 second")

    if args.primary_timeout <= 0:
        parser.error("--primary-timeout must be positive")

    if args.secondary_frozen_timeout <= 0:
        parser.error("--secondary-frozen-timeout must be positive")

    if args.secondary_broken_timeout < args.secondary_frozen_timeout:
        parser.error(
            "--secondary-broken-timeout must be at least --secondary-frozen-timeout"
        )

    if args.max_deviation <= 0 or args.max_difference <= 0:
        parser.error("--max-deviation and --max-difference must be positive")

    if args.primary_source not in get_available_sources("primary"):
        parser.error(
            f"Unknown primary source: {args.primary_source}. "
            f"Available: {', '.join(get_available_sources('primary'))}"
        )

    if args.secondary_source not in get_available_sources("secondary"):
        parser.error(
            f"Unknown secondary source: {args.secondary_source}. "
            f"Available: {', '.join(get_available_sources('secondary'))}"
        )

    config = PriceFeedConfig(
        network=args.network,
        pair=args.pair,
        primary_source=args.primary_source,
        primary_address=args.primary_address,
        secondary_source=args.secondary_source,
        secondary_address=args.secondary_address,
        secondary_url=args.secondary_url,
        poll_period=args.poll_period,
        primary_timeout=args.primary_timeout,
        secondary_frozen_timeout=args.secondary_frozen_timeout,
        secondary_broken_timeout=args.secondary_broken_timeout,
        max_deviation_percent=args.max_deviation,
        max_difference_percent=args.max_difference,
        fetch_timeout=args.fetch_timeout,
    )
    return config, args.verbose


def main() -> None:
    """Main entry point for the Failover Price Feed CLI."""
    config, verbose = parse_config()

    # Configure logging level
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # Log configuration
    logger.info("=" * 60)
    logger.info("Failover Price Feed")
    logger.info("=" * 60)
    logger.info(f"Network:           {config.network}")
    logger.info(f"Pair:              {config.pair}")
    logger.info(f"Primary:           {config.primary_source} {config.primary_address or ''}")
    logger.info(
        f"Secondary:         {config.secondary_source} "
        f"{config.secondary_address or config.secondary_url or ''}"
    )
    logger.info(f"Poll Period:       {config.poll_period}s")
    logger.info(f"Primary Timeout:   {config.primary_timeout}s")
    logger.info(
        f"Secondary Timeout: frozen {config.secondary_frozen_timeout}s, "
        f"broken {config.secondary_broken_timeout}s"
    )
    logger.info(f"Max Deviation:     {config.max_deviation_percent}%")
    logger.info(f"Max Difference:    {config.max_difference_percent}%")
    logger.info("=" * 60)

    try:
        service = PriceFeedService(config)
        asyncio.run(service.run())
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    except (PriceFeedConfigurationError, SourceError, ValueError) as e:
        logger.error(f"Setup failed: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
