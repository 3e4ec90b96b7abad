# File: src/parkledger/main.py
"""
Main application entry point for the Parking Ledger

Wires configuration, the engine, the optional SQL record store and Redis
publisher, the application service and the console, then runs the menu.
"""

from typing import List, Optional
from dataclasses import dataclass
import argparse
import logging
import sys
import os

from .config import ParkingConfig
from .application.engine import ParkingEngine
from .application.parking_service import ParkingService
from .application.commands import CommandProcessor
from .domain.pricing import TieredPricingPolicy
from .infrastructure.events import EventDispatcher
from .infrastructure.repositories import SQLAlchemyParkingRecordStore
from .infrastructure.messaging import RedisEventPublisher
from .presentation.console import ParkingConsole


def setup_logging(level: str = "INFO", log_dir: Optional[str] = "logs") -> logging.Logger:
    """Setup application logging configuration"""
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_dir:
        if not os.path.exists(log_dir):
            os.makedirs(log_dir)
        handlers.insert(0, logging.FileHandler(os.path.join(log_dir, 'parkledger.log')))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True
    )
    return logging.getLogger(__name__)


@dataclass
class Application:
    """Assembled components (Dependency Injection)"""
    config: ParkingConfig
    engine: ParkingEngine
    service: ParkingService
    processor: CommandProcessor
    dispatcher: EventDispatcher
    record_store: Optional[SQLAlchemyParkingRecordStore] = None
    publisher: Optional[RedisEventPublisher] = None

    def close(self) -> None:
        if self.record_store is not None:
            self.record_store.close()
        if self.publisher is not None:
            self.publisher.close()


def build_application(config: ParkingConfig) -> Application:
    """Initialize all application components from configuration"""
    logger = logging.getLogger(__name__)
    dispatcher = EventDispatcher()

    # 1. Record store (optional)
    record_store = None
    if config.database_url:
        record_store = SQLAlchemyParkingRecordStore(database_url=config.database_url)
        dispatcher.subscribe(record_store)
        logger.info("SQL record store enabled")

    # 2. Event publisher (optional)
    publisher = None
    if config.redis_url:
        publisher = RedisEventPublisher(redis_url=config.redis_url, channel=config.redis_channel)
        dispatcher.subscribe(publisher)
        logger.info(f"Redis publisher enabled on channel {config.redis_channel}")

    # 3. Core engine and use-case layer
    engine = ParkingEngine(
        capacities=config.capacities,
        band_starts=config.band_starts,
        pricing=TieredPricingPolicy(config.tariffs.to_schedule()),
        dispatcher=dispatcher
    )
    service = ParkingService(engine)

    return Application(
        config=config,
        engine=engine,
        service=service,
        processor=CommandProcessor(service),
        dispatcher=dispatcher,
        record_store=record_store,
        publisher=publisher
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Parking slot allocation and billing console')
    parser.add_argument('--cars', type=int, default=None,
                        help='Number of car slots (default: 50)')
    parser.add_argument('--bikes', type=int, default=None,
                        help='Number of bike slots (default: 100)')
    parser.add_argument('--trucks', type=int, default=None,
                        help='Number of truck slots (default: 20)')
    parser.add_argument('--database-url', default=None,
                        help='SQLAlchemy URL of the record store, e.g. sqlite:///parking.db')
    parser.add_argument('--redis-url', default=None,
                        help='Redis URL for publishing entry/exit events')
    parser.add_argument('--log-level', default=None,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        help='Logging level (default: INFO)')
    parser.add_argument('--log-dir', default=None,
                        help='Directory for the log file (default: logs)')
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application"""
    args = parse_args(argv)
    config = ParkingConfig.from_env(
        car_slots=args.cars,
        bike_slots=args.bikes,
        truck_slots=args.trucks,
        database_url=args.database_url,
        redis_url=args.redis_url,
        log_level=args.log_level,
        log_dir=args.log_dir
    )

    logger = setup_logging(config.log_level, config.log_dir)
    logger.info("Starting Parking Ledger...")

    try:
        app = build_application(config)
    except Exception as e:
        logger.error(f"Fatal error in main: {str(e)}", exc_info=True)
        print(f"Fatal error: {str(e)}")
        return 1

    try:
        ParkingConsole(app.processor, record_store=app.record_store).run()
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        app.close()
        logger.info("Application shutting down...")
    return 0


if __name__ == "__main__":
    sys.exit(main())
