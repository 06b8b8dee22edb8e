"""
Hyperliquid indexer CLI entry point.

Usage::

    python -m hl_indexer start --interval 10 --port 3000
    python -m hl_indexer index
    python -m hl_indexer stats
    python -m hl_indexer markets --symbol BTC
    python -m hl_indexer trades --symbol ETH --limit 20
    python -m hl_indexer cleanup --hours 1
    python -m hl_indexer cleanup --all

Global options:
    --db          Snapshot path (default: $DATABASE_PATH or ./data/hyperliquid.json)
    -v            Debug logging
    --no-color    Plain log output
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence

from hl_indexer import config as env
from hl_indexer.api import ApiServerConfig
from hl_indexer.node import Node, NodeConfig
from hl_indexer.storage import PersistenceWriter, open_database
from hl_indexer.store import IndexedStore, RetentionManager

logger = logging.getLogger(__name__)


class ColoredFormatter(logging.Formatter):
    """Logging formatter with ANSI colors for better readability."""

    # ANSI color codes
    GREY = "\x1b[38;5;244m"
    BLUE = "\x1b[38;5;39m"
    GREEN = "\x1b[38;5;40m"
    YELLOW = "\x1b[38;5;220m"
    RED = "\x1b[38;5;196m"
    BOLD_RED = "\x1b[38;5;196;1m"
    CYAN = "\x1b[38;5;51m"
    RESET = "\x1b[0m"

    LEVEL_COLORS = {
        logging.DEBUG: GREY,
        logging.INFO: GREEN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: BOLD_RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors."""
        color = self.LEVEL_COLORS.get(record.levelno, self.RESET)
        timestamp = f"{self.CYAN}{self.formatTime(record, self.datefmt)}{self.RESET}"
        levelname = f"{color}{record.levelname:8}{self.RESET}"
        name = f"{self.BLUE}{record.name}{self.RESET}"
        return f"{timestamp} {levelname} {name}: {record.getMessage()}"


def setup_logging(verbose: bool = False, no_color: bool = False) -> None:
    """Configure logging for the indexer with optional colors."""
    level = logging.DEBUG if verbose else logging.INFO

    handler = logging.StreamHandler()
    handler.setLevel(level)

    if no_color:
        formatter = logging.Formatter(
            "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        formatter = ColoredFormatter(datefmt="%Y-%m-%d %H:%M:%S")

    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)

    # Request lines from httpx are noise at INFO.
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def _open_store(db_path: str) -> tuple[IndexedStore, RetentionManager, PersistenceWriter]:
    """Load the persisted store for an offline command."""
    database = open_database(db_path)
    store = IndexedStore()
    snapshot = database.load_snapshot()
    if snapshot is not None:
        store.load_snapshot(snapshot)
    writer = PersistenceWriter(database, store.snapshot)
    store.on_change = writer.mark_dirty
    return store, RetentionManager(store, writer), writer


def _close(writer: PersistenceWriter) -> None:
    writer.close()
    writer.database.close()


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------


def cmd_start(args: argparse.Namespace) -> int:
    """Run the sync loop and the API until interrupted."""
    config = NodeConfig(
        database_path=args.db,
        sync_interval=args.interval,
        api_config=None if args.no_api else ApiServerConfig(host=args.host, port=args.port),
    )
    node = Node.from_config(config)
    logger.info("Starting indexer (db=%s, interval=%.1fs)", args.db, args.interval)
    asyncio.run(node.run())
    return 0


def cmd_index(args: argparse.Namespace) -> int:
    """Run a single sync cycle and exit."""

    async def _run() -> bool:
        node = Node.from_config(NodeConfig(database_path=args.db, api_config=None))
        try:
            report = await node.sync_service.run_once()
        finally:
            await node.close()
        print(
            f"Indexed {report.blocks_indexed} blocks (frontier {report.frontier}), "
            f"{report.activity_ingested} activity records, "
            f"{report.trades_ingested} trades in {report.duration:.2f}s"
        )
        if report.failed_stages:
            print(f"Failed stages: {', '.join(report.failed_stages)}")
        return report.ok

    return 0 if asyncio.run(_run()) else 1


def cmd_stats(args: argparse.Namespace) -> int:
    """Print store statistics."""
    store, _, writer = _open_store(args.db)
    stats = store.get_stats()
    _close(writer)

    print("Index statistics (last 24h)")
    print(f"  Markets:             {stats.total_markets}")
    print(f"  Trades:              {stats.total_trades}")
    print(f"  Blocks:              {stats.total_blocks}")
    print(f"  Transactions:        {stats.total_transactions}")
    print(f"  Unique users:        {stats.unique_users}")
    print(f"  Action types:        {stats.action_types}")
    print(f"  Latest block:        {stats.latest_block_number or '-'}")
    print(f"  Validators:          {stats.total_validators}")
    print(f"  Vaults:              {stats.total_vaults}")
    print(f"  Transfers:           {stats.total_transfers}")
    return 0


def cmd_markets(args: argparse.Namespace) -> int:
    """Print the latest market snapshots."""
    store, _, writer = _open_store(args.db)
    markets = store.get_latest_market_data(args.symbol)
    _close(writer)

    if not markets:
        print("No market data")
        return 0
    for market in markets:
        print(f"{market.symbol:<12} {market.price:>16.6f}")
    return 0


def cmd_trades(args: argparse.Namespace) -> int:
    """Print recent trades."""
    store, _, writer = _open_store(args.db)
    trades = store.get_recent_trades(args.symbol, args.limit)
    _close(writer)

    if not trades:
        print("No trades")
        return 0
    for trade in trades:
        print(
            f"{trade.timestamp} {trade.symbol:<10} {trade.side.value:<4} "
            f"{trade.size:>14.6f} @ {trade.price:.6f}"
        )
    return 0


def cmd_cleanup(args: argparse.Namespace) -> int:
    """Evict old records, or everything with --all."""
    _, retention, writer = _open_store(args.db)
    try:
        if args.all:
            retention.clear_all_data()
            print("Cleared all data")
        else:
            removed = retention.clear_old_data(args.hours)
            print(
                f"Removed {removed['blocks']} blocks and {removed['transactions']} transactions "
                f"older than {args.hours}h ({sum(removed.values())} records total)"
            )
    finally:
        _close(writer)
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one subcommand per operation."""
    parser = argparse.ArgumentParser(
        prog="hl_indexer",
        description="Hyperliquid blockchain indexer",
    )
    parser.add_argument(
        "--db",
        default=env.DATABASE_PATH,
        help="Snapshot path; .db/.sqlite use SQLite (default: %(default)s)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--no-color", action="store_true", help="Disable colored log output")

    commands = parser.add_subparsers(dest="command", required=True)

    start = commands.add_parser("start", help="Run the indexer and API server")
    start.add_argument(
        "--interval",
        type=float,
        default=env.INDEX_INTERVAL_MS / 1000,
        help="Seconds between sync cycles (default: %(default)s)",
    )
    start.add_argument("--host", default="0.0.0.0", help="API bind address")
    start.add_argument("--port", type=int, default=env.API_PORT, help="API port")
    start.add_argument("--no-api", action="store_true", help="Run without the HTTP API")
    start.set_defaults(handler=cmd_start)

    index = commands.add_parser("index", help="Run one sync cycle")
    index.set_defaults(handler=cmd_index)

    stats = commands.add_parser("stats", help="Show store statistics")
    stats.set_defaults(handler=cmd_stats)

    markets = commands.add_parser("markets", help="Show latest market prices")
    markets.add_argument("--symbol", help="Only this market")
    markets.set_defaults(handler=cmd_markets)

    trades = commands.add_parser("trades", help="Show recent trades")
    trades.add_argument("--symbol", help="Only this market")
    trades.add_argument("--limit", type=int, default=20, help="Number of trades")
    trades.set_defaults(handler=cmd_trades)

    cleanup = commands.add_parser("cleanup", help="Remove old data")
    cleanup.add_argument("--hours", type=float, default=1.0, help="Age threshold in hours")
    cleanup.add_argument("--all", action="store_true", help="Remove everything")
    cleanup.set_defaults(handler=cmd_cleanup)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Parse arguments and dispatch to the selected command."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose, args.no_color)

    try:
        return args.handler(args)
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
