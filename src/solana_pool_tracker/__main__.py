#!/usr/bin/env python3
"""
Watch Raydium for new liquidity pools and sample their reserves.

Usage:
    python -m solana_pool_tracker --live
    python -m solana_pool_tracker --history --start 2024-01-01 --end 2024-01-02

Endpoints and limits come from config/.env (see config/.env.example).
"""

import argparse
import logging
import sys
from typing import List, Optional

from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from solana_pool_tracker.auto_config.environment import Config
from solana_pool_tracker.auto_config.logging_config import set_log_level, setup_logging
from solana_pool_tracker.errors import ConnectionUnhealthyError, DateRangeError, HistoricalScanError
from solana_pool_tracker.pools.history_scanner import parse_date_range
from solana_pool_tracker.pools.log_subscriber import LogSubscriber
from solana_pool_tracker.pools.tracker import PoolTracker
from solana_pool_tracker.utils.console_output import ConsoleOutput
from solana_pool_tracker.utils.solana_rpc import SolanaRpc

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="solana-pool-tracker",
        description="Watch Raydium for new liquidity pools and sample their reserves.",
    )
    parser.add_argument("--live", action="store_true", help="monitor new pools in real time")
    parser.add_argument("--history", action="store_true", help="analyze pools created in a date window")
    parser.add_argument("-s", "--start", help="start date, YYYY-MM-DD (history mode)")
    parser.add_argument("-e", "--end", help="end date, YYYY-MM-DD (history mode)")
    return parser


def run_history(tracker: PoolTracker, output: ConsoleOutput, start: Optional[str], end: Optional[str]) -> None:
    date_range = parse_date_range(start, end)
    logger.info(f"Analyzing historical data from {date_range.start} to {date_range.end}")
    with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            TimeElapsedColumn(),
            console=output.console,
        ) as progress:
        progress.add_task(description="[blue]Scanning pool history...", total=None)
        results = tracker.run_historical(date_range)
    sampled = sum(1 for _, snapshot in results if snapshot is not None)
    logger.info(f"Historical analysis completed: {len(results)} pools, {sampled} with liquidity data")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if not args.live and not args.history:
        build_parser().print_help()
        return 0

    setup_logging()
    config = Config()
    set_log_level(config.log_level)
    config.print_config()

    output = ConsoleOutput()
    rpc = SolanaRpc(config.get_rpc_url(), config.max_requests_per_second)
    tracker = None

    try:
        # Validate dates before touching the network
        if args.history:
            parse_date_range(args.start, args.end)

        output.show_connected(rpc.check_connection())

        tracker = PoolTracker(
            rpc,
            subscriber=LogSubscriber(config.get_wss_url()) if args.live else None,
            resample_interval=config.resample_interval,
            max_tracked_pools=config.max_tracked_pools,
            event_queue_size=config.event_queue_size,
            worker_count=config.worker_count,
            on_snapshot=output.show_liquidity,
        )

        if args.history:
            run_history(tracker, output, args.start, args.end)
            if not args.live:
                return 0

        tracker.run_live(on_pool_discovered=output.show_pool_detected)
        return 0
    except (DateRangeError, ConnectionUnhealthyError, HistoricalScanError) as e:
        logger.error(f"{type(e).__name__}: {e}")
        output.show_error(str(e))
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
        return 0
    finally:
        if tracker is not None:
            tracker.stop()


if __name__ == '__main__':
    sys.exit(main())
