#!/usr/bin/env python3
"""
Guild Banner Service - Main entry point

Serves dynamic PNG banners for Tibia guilds, built from live TibiaData and
Firebot data.
"""
import argparse
import asyncio
import logging
import signal
import sys

import hupper
import structlog

from guild_banner.config import Config, Environment, init_config
from guild_banner.service import BannerApplication


logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO", log_format: str = "json") -> None:
    """Route stdlib and structlog records through one formatter.

    Args:
        level: Root log level name
        log_format: ``json`` for JSON lines, ``text`` for console output
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # Set httpx and httpcore loggers to WARNING to reduce noise
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def run_service():
    """Run the service (called by hupper in worker process)."""
    asyncio.run(main())


def start_with_reloader():
    """Start the service with hot reload using hupper."""
    # hupper.start_reloader returns a reloader object in the monitor process
    # and returns None in the worker process
    reloader = hupper.start_reloader("guild_banner.main.run_service")

    if reloader:
        logger.info("Hot reload enabled, monitoring file changes...")


async def main():
    """Main entry point for the Guild Banner service."""
    config = init_config()
    configure_logging(config.log_level, config.log_format)

    logger.info("Starting Guild Banner service")

    application = BannerApplication(config)
    loop = asyncio.get_running_loop()

    # Handle graceful shutdown
    def signal_handler(sig):
        logger.info(f"Received signal {sig.name}, shutting down gracefully...")
        asyncio.ensure_future(application.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler, sig)

    try:
        await application.start()
    except Exception as e:
        logger.error(f"Service failed with error: {e}")
        sys.exit(1)
    finally:
        await application.stop()


def cli():
    """Console entry point."""
    parser = argparse.ArgumentParser(description="Guild Banner Service")
    parser.add_argument(
        "--no-reload",
        action="store_true",
        help="Disable hot reload in development",
    )
    args = parser.parse_args()

    # Fail fast on missing or invalid configuration
    config = Config.from_env()

    if config.environment == Environment.DEVELOPMENT and not args.no_reload:
        start_with_reloader()
    else:
        asyncio.run(main())


if __name__ == "__main__":
    cli()
