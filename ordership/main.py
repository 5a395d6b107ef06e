"""
Entry point for the orders & shipments console.

Usage:
    ordership                 # interactive menu
    ordership --seed          # insert the sample order, then open the menu
    ordership --wait-for-db   # block until the database answers first
"""

import argparse
import os
import sys
from sqlalchemy.exc import SQLAlchemyError
from ordership import __version__
from ordership.core import setup_logging, get_logger
from ordership.core_settings import get_settings
from ordership.cli.menu import MenuHandler
from ordership.domain.errors import OrderShipmentError
from ordership.infrastructure.db import get_session_factory, init_models, session_scope
from ordership.seed import seed_sample_data
from ordership.wait_for_db import wait

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ordership", description="Orders & shipments console")
    parser.add_argument("--seed", action="store_true", help="Insert the sample order if missing")
    parser.add_argument("--wait-for-db", action="store_true", help="Wait for the database before starting")
    parser.add_argument("--no-menu", action="store_true", help="Prepare the database and exit")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser

def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()

    setup_logging(
        service_name=settings.SERVICE_NAME,
        level=settings.LOG_LEVEL,
        enable_console=settings.LOG_CONSOLE,
        enable_file=bool(settings.LOG_FILE),
        log_file=settings.LOG_FILE,
    )
    logger = get_logger(__name__)
    logger.info(f"Starting {settings.SERVICE_NAME} version {__version__}")

    if args.wait_for_db:
        wait()

    try:
        init_models()
        logger.info("Database models initialized")
        if args.seed:
            with session_scope() as db:
                seed_sample_data(db)
    except (OrderShipmentError, SQLAlchemyError) as e:
        logger.error(f"Startup failed: {e}", exc_info=True)
        print(f"Startup failed: {e}", file=sys.stderr)
        return 1

    if not args.no_menu:
        operator = settings.OPERATOR or os.getenv("USER") or os.getenv("USERNAME")
        MenuHandler(get_session_factory(), operator=operator).run()

    logger.info(f"Shutting down {settings.SERVICE_NAME}")
    return 0

if __name__ == "__main__":
    sys.exit(main())
