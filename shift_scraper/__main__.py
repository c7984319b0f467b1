"""
CLI entry point for shift-scraper.

Usage:
    python -m shift_scraper
    python -m shift_scraper --url https://example.com/rota --role Doctor
    python -m shift_scraper --store json --dry-run

Exit codes:
    0   run succeeded
    1   unexpected error (including configuration errors)
    2   run failed (scraping or persistence gave up)
    130 interrupted
"""

import argparse
import asyncio
import logging
import sys

import structlog

EXIT_OK = 0
EXIT_UNEXPECTED = 1
EXIT_RUN_FAILED = 2
EXIT_INTERRUPTED = 130

# Log level mapping
LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def setup_logging(level: str = "INFO", json_output: bool = False):
    """Configure structured logging."""
    log_level = LOG_LEVELS.get(level.upper(), logging.INFO)

    if json_output:
        processors = [
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Rota shift scraper: extract, deduplicate, persist, notify",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with settings from the environment
  python -m shift_scraper

  # Override the page and role
  python -m shift_scraper --url https://example.com/rota --role Nurse

  # Local run against a JSON file, nothing written or sent
  python -m shift_scraper --store json --dry-run

  # Use custom settings file
  python -m shift_scraper --config /path/to/settings.yml
        """,
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to settings YAML file",
    )

    parser.add_argument(
        "--url",
        type=str,
        help="Rota page URL (overrides scrape_url)",
    )

    parser.add_argument(
        "--role",
        type=str,
        help="Target role label (overrides target_role)",
    )

    parser.add_argument(
        "--store",
        choices=["firestore", "json", "memory"],
        help="Record store (overrides store)",
    )

    parser.add_argument(
        "--row-source",
        choices=["browser", "static"],
        help="Row extraction strategy (overrides row_source)",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Check the store but never write records or send notifications",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)",
    )

    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Output logs as JSON (for production)",
    )

    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version and exit",
    )

    return parser.parse_args(argv)


def build_settings(args):
    """Load settings, apply CLI overrides and validate."""
    from .config.loader import load_settings

    settings = load_settings(args.config).with_overrides(
        scrape_url=args.url,
        target_role=args.role,
        store=args.store,
        row_source=args.row_source,
    )
    return settings.validate()


async def main_async(args) -> int:
    """Async main function. Returns the process exit code."""
    from .orchestrator import ShiftScraper

    logger = structlog.get_logger(__name__)

    settings = build_settings(args)
    scraper = ShiftScraper(settings, dry_run=args.dry_run)

    logger.info(
        "starting_shift_scraper",
        url=settings.scrape_url,
        role=settings.target_role,
        store=settings.store,
        dry_run=args.dry_run,
    )

    result = await scraper.run()
    return EXIT_OK if result.success else EXIT_RUN_FAILED


async def notify_fatal(error: BaseException, config_path=None) -> None:
    """Best-effort notification for errors that escaped the run."""
    from .config.loader import load_settings
    from .notifications import create_notifier

    logger = structlog.get_logger(__name__)
    try:
        notifier = create_notifier(load_settings(config_path))
        await notifier.send(f"Scraper top-level error: {error}")
    except Exception as e:
        logger.warning("fatal_notification_failed", error=str(e))


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    # Version check
    if args.version:
        from . import __version__
        print(f"shift-scraper {__version__}")
        sys.exit(EXIT_OK)

    # Setup logging
    setup_logging(args.log_level, args.json_logs)

    # Run async main
    try:
        exit_code = asyncio.run(main_async(args))
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        sys.exit(EXIT_INTERRUPTED)
    except Exception as e:
        logger = structlog.get_logger(__name__)
        logger.exception("fatal_error", error=str(e))
        asyncio.run(notify_fatal(e, args.config))
        sys.exit(EXIT_UNEXPECTED)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
