# src/btcperf/app.py
"""
Application Entry Point - Wiring and Command Line

This module is the composition root: it builds the analysis context, the
CoinGecko provider, the pipeline and the sinks, then runs one processing pass
over a JSON file of loan positions.

Usage:
    btcperf positions.json [--wait SECONDS] [--log-level LEVEL]
    python -m btcperf positions.json

Files that USE this module:
- btcperf.__main__ (module entry point)
- console script ``btcperf``

Files that this module USES:
- btcperf.shared.logging_conf (setup_logging)
- btcperf.config (settings)
- btcperf.application.* (context and pipeline)
- btcperf.adapters.* (provider, source, sink)
"""

from __future__ import annotations  # Enable postponed evaluation of annotations for forward references

import argparse  # Command line parsing
import json  # Final summary output
import logging  # Standard library for logging messages and errors
import sys  # Exit codes and stdout
from typing import Optional, Sequence

from btcperf.adapters.providers.coingecko import CoinGeckoProvider
from btcperf.adapters.reporting.log_sink import LoggingSink
from btcperf.adapters.sources.json_file import JsonPositionSource
from btcperf.application.context import AnalysisContext
from btcperf.application.pipeline import FetchPipeline
from btcperf.config import settings
from btcperf.shared.logging_conf import setup_logging

logger = logging.getLogger(__name__)


def build_pipeline(source: JsonPositionSource, sink: LoggingSink) -> FetchPipeline:
    """Wire a pipeline with production defaults from settings."""
    context = AnalysisContext.create()
    pipeline = FetchPipeline(
        context=context,
        provider=CoinGeckoProvider(),
        result_sink=sink,
        aggregate_sink=sink,
        is_excluded=source.is_excluded,
    )
    context.rate_limit.set_tick_callback(
        lambda remaining, pending: logger.info(
            "BTC price API rate limited - retrying in %ds (%d waiting)", round(remaining), pending
        )
    )
    return pipeline


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="btcperf",
        description="Compare loan interest cost against BTC performance since provision.",
    )
    parser.add_argument("positions", help="JSON file with loan position records")
    parser.add_argument(
        "--wait",
        type=float,
        default=None,
        help="Max seconds to wait for rate-limited positions to be retried "
             "(default: five cooldown periods)",
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Run one processing pass and print the portfolio summary as JSON.

    Returns:
        Process exit code: 0 when every position settled, 1 otherwise
    """
    args = parse_args(argv)

    setup_logging(
        level=args.log_level or settings.log_level,
        log_file=settings.log_file,
        log_dir=settings.log_dir,
        max_bytes=settings.log_max_bytes,
        backup_count=settings.log_backup_count,
        stdout=settings.log_stdout,
    )

    source = JsonPositionSource(args.positions)
    sink = LoggingSink()
    pipeline = build_pipeline(source, sink)

    wait = args.wait if args.wait is not None else settings.rate_limit_cooldown_seconds * 5
    try:
        pipeline.run_pass(source)
        settled = pipeline.wait_until_settled(timeout=wait)
        if not settled:
            logger.warning("Gave up waiting after %ss; some positions are still rate limited", wait)
    except KeyboardInterrupt:
        logger.info("Stopped by user (KeyboardInterrupt)")
        settled = False
    except (OSError, ValueError) as e:
        logger.error("Could not read positions from %s: %s", args.positions, e)
        return 2
    finally:
        pipeline.stop()

    summary = sink.summary()
    summary["totals"] = summary["totals"] or {}
    json.dump(summary, sys.stdout, indent=2, default=str)
    sys.stdout.write("\n")
    return 0 if settled else 1


if __name__ == "__main__":
    sys.exit(main())
