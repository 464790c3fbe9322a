"""
Command-line interface implementation.
"""

import argparse
import logging
import signal
import sys
import threading
import time
from typing import Optional

from ..config import ConfigurationManager, WatcherConfig
from ..data_source import QuoteFetcher, Snapshot, calculate_change_percent
from ..errors import ConfigError, ConfigTemplateCreated, SendError
from ..monitor import StockMonitor
from ..notifier import Notifier, WeChatNotifier


logger = logging.getLogger(__name__)

SHUTDOWN_POLL_SECONDS = 1.0
WORKER_JOIN_SECONDS = 30.0


def setup_logging(level: str = "INFO") -> None:
    """Set up logging configuration."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def parse_duration_seconds(value: str) -> float:
    """Parse a positive number of seconds for --duration."""
    try:
        seconds = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid duration: {value}. Use a number of seconds.")
    if seconds <= 0:
        raise argparse.ArgumentTypeError(f"Duration must be positive, got {value}")
    return seconds


def format_config_summary(config: WatcherConfig) -> str:
    """Format a loaded configuration for display."""
    window = config.monitor.alert_window
    weekdays = ",".join(str(day) for day in window.weekdays)
    lines = [
        "",
        "✅ CONFIGURATION VALID",
        "=" * 40,
        f"Index: {config.display_name} ({config.stock.code})",
        f"Threshold: {config.stock.threshold:.2f}%",
        f"Interval: {config.monitor.interval:g}s",
        f"Alert Window: {window.start.strftime('%H:%M')}-{window.end.strftime('%H:%M')} (weekdays {weekdays})",
        f"Webhook: {'configured' if config.wechat.webhook_url else 'missing'}",
    ]
    return "\n".join(lines)


def format_snapshot(snapshot: Snapshot, threshold: float) -> str:
    """Format a single snapshot with its threshold check for display."""
    open_change = calculate_change_percent(snapshot.open, snapshot.current)
    significant = snapshot.is_significant_change(threshold)

    lines = [
        "",
        f"📊 QUOTE - {snapshot.name} ({snapshot.code})",
        "=" * 40,
        f"Current: {snapshot.current:.2f}",
        f"Open: {snapshot.open:.2f}",
        f"High: {snapshot.high:.2f}",
        f"Low: {snapshot.low:.2f}",
        f"Previous Close: {snapshot.previous:.2f}",
        f"Change: {snapshot.change_percent:.2f}% ({snapshot.change_amount:.2f} pts)",
        f"Change vs Open: {open_change:.2f}%",
        f"Time: {snapshot.timestamp.strftime('%Y-%m-%d %H:%M:%S')}",
        "",
        f"Crosses {threshold:.2f}% threshold: {'✅ yes' if significant else '❌ no'}",
    ]
    return "\n".join(lines)


def run_monitor(config: WatcherConfig, notifier: Notifier, duration: Optional[float] = None) -> None:
    """
    Run the monitor on a worker thread until a signal arrives or the duration ends.

    Args:
        config: Watcher configuration
        notifier: Where alerts are delivered
        duration: Seconds to run before stopping on its own (None runs until signalled)
    """
    monitor = StockMonitor(config, notifier)
    shutdown = threading.Event()

    def handle_signal(signum, frame):
        logger.info(f"Received {signal.Signals(signum).name}, shutting down...")
        shutdown.set()

    previous_handlers = {
        signum: signal.signal(signum, handle_signal)
        for signum in (signal.SIGINT, signal.SIGTERM)
    }

    logger.info("Index watcher starting...")
    logger.info(f"Index: {config.display_name} ({config.stock.code})")
    logger.info(f"Threshold: {config.stock.threshold:.2f}%")
    logger.info(f"Interval: {config.monitor.interval:g}s")

    worker = threading.Thread(target=monitor.start, name="index-monitor", daemon=True)
    worker.start()

    deadline = time.monotonic() + duration if duration is not None else None
    try:
        while worker.is_alive() and not shutdown.wait(SHUTDOWN_POLL_SECONDS):
            if deadline is not None and time.monotonic() >= deadline:
                logger.info("Run duration elapsed, shutting down...")
                break
    finally:
        monitor.stop()
        worker.join(WORKER_JOIN_SECONDS)
        if worker.is_alive():
            logger.warning("Monitor thread did not finish within the join timeout")
        for signum, handler in previous_handlers.items():
            signal.signal(signum, handler)
        monitor.fetcher.close()
        notifier.close()

    logger.info("Index watcher exited")


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        description="Index Watcher - alerts a WeCom group when a market index moves sharply"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: config.yaml)"
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Set logging level"
    )

    mode = parser.add_mutually_exclusive_group()

    mode.add_argument(
        "--validate-config",
        action="store_true",
        help="Validate configuration file and exit"
    )

    mode.add_argument(
        "--fetch-once",
        action="store_true",
        help="Fetch one quote, show it with the threshold check, and exit"
    )

    mode.add_argument(
        "--test-notify",
        action="store_true",
        help="Send a connection test message to the webhook and exit"
    )

    parser.add_argument(
        "--duration",
        type=parse_duration_seconds,
        help="Stop monitoring automatically after this many seconds"
    )

    return parser


def main(argv: Optional[list] = None) -> None:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level)

    try:
        config = ConfigurationManager().load_config(args.config)
    except ConfigTemplateCreated as e:
        logger.error(str(e))
        sys.exit(1)
    except ConfigError as e:
        logger.error(f"Failed to load configuration: {e}")
        sys.exit(1)

    try:
        if args.validate_config:
            print(format_config_summary(config))
            return

        if args.fetch_once:
            names = config.names
            names[config.stock.code] = config.display_name
            fetcher = QuoteFetcher(names=names)
            try:
                snapshot = fetcher.fetch(config.stock.code)
            finally:
                fetcher.close()
            print(format_snapshot(snapshot, config.stock.threshold))
            return

        notifier = WeChatNotifier(config.wechat.webhook_url)

        if args.test_notify:
            try:
                notifier.test_connection()
            except SendError as e:
                logger.error(f"Webhook connection test failed: {e}")
                sys.exit(1)
            print("✅ Test message delivered")
            return

        run_monitor(config, notifier, duration=args.duration)

    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Application error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
