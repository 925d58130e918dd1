#!/usr/bin/env python3
"""Entry point for the FTSO monitoring tool and metrics exporter.

Parses the ``start`` command, loads configuration and runs the monitor
until the metrics server stops.
"""

import argparse
import asyncio
import logging
import os
import sys

from dotenv import load_dotenv

from . import __version__
from .config import MonitorConfig
from .errors import ConfigurationInvalid
from .monitor import FtsoMonitor


# Configure logging before any other imports create loggers
def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the application.

    Args:
        level: Logging level as string (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    log_level: int = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


# Get logger for this module
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser.

    Every option of ``start`` falls back to an ``FTSO_*`` environment variable.
    """
    parser = argparse.ArgumentParser(
        prog="ftso-monitor",
        description="Flare FTSOv2 Monitoring Tool and Metrics Exporter",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    start = subparsers.add_parser(
        "start",
        help="Start monitoring",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Environment Variables:
  FTSO_RPC_URL                   - Flare Network JSON RPC URL
  FTSO_SUBMIT_ADDRESS            - FTSO submit address
  FTSO_SUBMIT_SIGNATURE_ADDRESS  - FTSO submit signature address
  FTSO_SIGNING_POLICY_ADDRESS    - FTSO signing policy address
  FTSO_BLOCK_WINDOW              - Blocks to look back on each scan (default: 100)
  FTSO_METRICS_ADDR              - Metrics listen address (default: 0.0.0.0)
  FTSO_METRICS_PORT              - Metrics listen port (default: 6969)
  FTSO_TG_API_KEY                - Telegram bot token (optional)
  FTSO_TG_CHAT_ID                - Telegram chat ID (optional)
  LOG_LEVEL                      - Logging level (can be overridden with --log-level)
        """,
    )
    env = os.environ.get
    start.add_argument("--tg-api-key", default=env("FTSO_TG_API_KEY", ""),
                       help="Telegram bot token used for alerts")
    start.add_argument("--tg-chat-id", default=env("FTSO_TG_CHAT_ID", ""),
                       help="Telegram chat that receives alerts")
    start.add_argument("--metrics-port", type=int, default=env("FTSO_METRICS_PORT", "6969"),
                       help="Metrics server port (default: 6969)")
    start.add_argument("--metrics-addr", default=env("FTSO_METRICS_ADDR", "0.0.0.0"),
                       help="Metrics server listen address (default: 0.0.0.0)")
    start.add_argument("--rpc-url", default=env("FTSO_RPC_URL"),
                       help="A Flare Network JSON RPC URL")
    start.add_argument("--block-window", type=int, default=env("FTSO_BLOCK_WINDOW", "100"),
                       help="The number of blocks from now in the past to monitor")
    start.add_argument("--submit-address", "--sa", default=env("FTSO_SUBMIT_ADDRESS"),
                       help="The FTSO Submit Address")
    start.add_argument("--submit-signature-address", "--ssa",
                       default=env("FTSO_SUBMIT_SIGNATURE_ADDRESS"),
                       help="The FTSO Submit Signature Address")
    start.add_argument("--signing-policy-address", "--spa",
                       default=env("FTSO_SIGNING_POLICY_ADDRESS"),
                       help="The FTSO Signing Policy Address")
    start.add_argument("--request-timeout", type=float,
                       default=env("FTSO_REQUEST_TIMEOUT", "30"),
                       help="RPC request timeout in seconds (default: 30)")
    start.add_argument("--retry-delay", type=float, default=env("FTSO_RETRY_DELAY", "5"),
                       help="Seconds to wait after the RPC fails a scan (default: 5)")
    start.add_argument("--scan-interval", type=float,
                       default=env("FTSO_SCAN_INTERVAL", "0"),
                       help="Seconds to wait between completed scans (default: 0)")
    start.add_argument("--log-level", default=env("LOG_LEVEL", "INFO"),
                       choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                       help="Set the logging level (default: INFO)")
    return parser


async def start(args: argparse.Namespace) -> None:
    """Run the ``start`` command.

    Raises:
        ConfigurationInvalid: On missing or malformed settings
    """
    config = MonitorConfig.from_args(args)
    config.log_config()

    monitor = FtsoMonitor.from_config(config, log_level=args.log_level)
    await monitor.run()


def main(argv: list[str] | None = None) -> int:
    """Main entry point. Returns the process exit status."""
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level)

    if bool(args.tg_api_key) != bool(args.tg_chat_id):
        parser.error("--tg-api-key and --tg-chat-id must be given together")

    logger.info(f"=== FTSO Monitor {__version__} Starting ===")

    try:
        asyncio.run(start(args))

    except ConfigurationInvalid as e:
        logger.error(f"Configuration Error: {e}")
        logger.error("Please check your settings:")
        logger.error("  - --rpc-url / FTSO_RPC_URL: Flare Network JSON RPC URL")
        logger.error("  - --submit-address / FTSO_SUBMIT_ADDRESS")
        logger.error("  - --submit-signature-address / FTSO_SUBMIT_SIGNATURE_ADDRESS")
        logger.error("  - --signing-policy-address / FTSO_SIGNING_POLICY_ADDRESS")
        return 1

    except KeyboardInterrupt:
        logger.info("Received interrupt signal, shutting down gracefully...")
        return 0

    except Exception as e:
        logger.error(f"Fatal Error: {e}", exc_info=True)
        return 1

    return 0


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
