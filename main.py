import argparse
import logging
import sys
from typing import List, Optional

import structlog

from config import Settings, get_settings
from csv_io import read_transactions, write_accounts
from errors import RowParseError
from services import get_ledger

logger = structlog.get_logger()


def configure_logging(settings: Settings) -> None:
    """Send structured logs to stderr so stdout only carries the report."""
    level = getattr(logging, settings.log_level.upper(), logging.WARNING)
    logging.basicConfig(stream=sys.stderr, level=level, format="%(message)s", force=True)

    if settings.log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ledger",
        description="Apply a CSV file of transactions and print the resulting account balances",
    )
    parser.add_argument("input", help="CSV file with type, client, tx, amount columns")
    parser.add_argument("--log-level", default=None, help="Override the configured log level")
    return parser


def run(path: str, settings: Settings) -> int:
    ledger = get_ledger(settings)

    try:
        with open(path, newline="") as stream:
            ledger.process(read_transactions(stream))
    except OSError as e:
        logger.error("Cannot read input file", path=path, error=str(e))
        print(f"ledger: cannot read {path}: {e.strerror}", file=sys.stderr)
        return 1
    except RowParseError as e:
        logger.error("Aborting on malformed input", path=path, line=e.line)
        print(f"ledger: {e}", file=sys.stderr)
        return 1

    write_accounts(ledger.accounts(), sys.stdout)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    settings = get_settings()
    if args.log_level:
        settings = settings.model_copy(update={"log_level": args.log_level})
    configure_logging(settings)

    logger.info("Starting ledger run", app_name=settings.app_name, input=args.input)
    return run(args.input, settings)


if __name__ == "__main__":
    sys.exit(main())
