# File: src/parkit/main.py
"""
Main application entry point for the ParkIt parking system
Builds the components (dependency injection) and runs the console shell
"""

import argparse
import sys
from typing import List, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from .application.parking_service import ParkingService
from .application.spot_allocator import SpotAllocator
from .config import Settings, load_settings, setup_logging
from .domain.fare_calculator import FareCalculatorService, FareRates
from .infrastructure.database import Database
from .infrastructure.repositories import SQLAlchemyParkingSpotRepository, SQLAlchemyTicketRepository
from .presentation.input_reader import InputReaderUtil
from .presentation.interactive_shell import InteractiveShell


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="parkit", description="ParkIt parking lot console")
    parser.add_argument("--config", help="Path to a YAML config file")
    parser.add_argument("--database-url", help="SQLAlchemy database URL")
    parser.add_argument("--init-db", action="store_true", help="Create tables and seed parking spots")
    parser.add_argument("--log-level", help="Logging level (DEBUG, INFO, WARNING, ...)")
    return parser


def build_parking_service(settings: Settings, database: Database) -> ParkingService:
    """Wire the service from settings and a database handle"""
    spot_allocator = SpotAllocator(SQLAlchemyParkingSpotRepository(database))
    ticket_repository = SQLAlchemyTicketRepository(database)
    fare_calculator = FareCalculatorService(FareRates.from_settings(settings))
    return ParkingService(spot_allocator, ticket_repository, fare_calculator)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(
            args.config,
            database_url=args.database_url,
            log_level=args.log_level
        )
    except (ValidationError, ValueError, OSError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    logger = setup_logging(settings)
    logger.info("Starting ParkIt parking system...")

    database = Database(settings.database_url)
    try:
        if args.init_db:
            database.create_schema()
            database.seed_spots(settings.car_spots, settings.bike_spots)

        parking_service = build_parking_service(settings, database)
        InteractiveShell(parking_service, InputReaderUtil()).run()
    except SQLAlchemyError as e:
        logger.error(f"Database error: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting program")
    finally:
        database.dispose()

    return 0


if __name__ == "__main__":
    sys.exit(main())
