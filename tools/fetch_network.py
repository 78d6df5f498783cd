#!/usr/bin/env python3
"""
Fetch composite network metrics from all providers.

Queries the registry, market-data, liquidity, stablecoin, yield and sentiment
providers for one or more networks and prints the merged snapshot.

Usage:
    # Snapshot for a single network
    python tools/fetch_network.py Ethereum

    # Aliases resolve to the same network
    python tools/fetch_network.py "BNB Chain" Cosmos

    # Warm the whole roster first, then discover extra networks
    python tools/fetch_network.py --warm --discover --min-tvl 250000000

    # Machine-readable output
    python tools/fetch_network.py Solana --json
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from loguru import logger

from chainglobe.core.config import ConfigError, load_config
from chainglobe.core.logging_config import configure_logging
from chainglobe.services.data.engine import ChainDataEngine

DEFAULT_CONFIG = Path(__file__).parent.parent / "config" / "engine.yaml"


def print_snapshot(display: dict) -> None:
    width = max(len(key) for key in display)
    print("=" * 50)
    print(f"{display['name']}")
    print("=" * 50)
    for key, value in display.items():
        if key == "name":
            continue
        print(f"  {key.replace('_', ' '):<{width}}  {value}")
    print()


async def run(args: argparse.Namespace, engine: ChainDataEngine) -> int:
    if args.warm:
        report = await engine.warm_all()
        if report.failed:
            logger.warning(f"Warm-up failed for: {', '.join(report.failed)}")

    if args.discover:
        added = await engine.discover_entities(min_tvl=args.min_tvl)
        for entity in added:
            print(f"Discovered {entity.name} ({entity.symbol})")
        if added:
            print()

    names = args.networks or ([] if args.warm or args.discover else ["Ethereum"])
    results = {}
    for name in names:
        snapshot = await engine.get_or_refresh(name)
        display = snapshot.to_display()
        if snapshot.failed_providers:
            display["failed_providers"] = ", ".join(p.value for p in snapshot.failed_providers)
        results[snapshot.entity] = display

    if args.json:
        print(json.dumps(results, indent=2))
    else:
        for display in results.values():
            print_snapshot(display)

    if args.share:
        shares = await engine.market_share()
        print("TVL market share:")
        for name, share in sorted(shares.items(), key=lambda item: item[1], reverse=True):
            print(f"  {name:<12} {share:6.2f}%")

    return 0


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Multi-provider blockchain network metrics"
    )
    parser.add_argument("networks", nargs="*", help="Network names or aliases (default: Ethereum)")
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG, help="YAML config file")
    parser.add_argument("--warm", action="store_true", help="Warm the snapshot cache for the whole roster")
    parser.add_argument("--discover", action="store_true", help="Append high-TVL networks from the registry")
    parser.add_argument("--min-tvl", type=float, default=None, help="Discovery TVL threshold in USD")
    parser.add_argument("--share", action="store_true", help="Print TVL market share of the roster")
    parser.add_argument("--json", action="store_true", help="Print snapshots as JSON")
    parser.add_argument("--log-level", default=None, help="Override log level (DEBUG, INFO, ...)")

    args = parser.parse_args()

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"❌ {e}", file=sys.stderr)
        sys.exit(2)

    configure_logging(
        level=args.log_level or config.log_level,
        enable_file=False,
        serialize=config.log_json
    )

    with ChainDataEngine(config) as engine:
        try:
            code = asyncio.run(run(args, engine))
        except KeyboardInterrupt:
            logger.info("Interrupted")
            code = 130
    sys.exit(code)


if __name__ == "__main__":
    main()
