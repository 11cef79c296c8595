"""
CLI for retraining the forecasting models from the record store.

Usage:
    python -m src.predictive.train [options]
"""

import argparse
import asyncio
import logging
import os
import sys

import structlog

from src.core.logger import setup_logging
from src.records import PostgresRecordStore, RecordStore, RecordStoreConfig

from .methods import SalesPredictor
from .models import ContinuousLearningConfig, StorageConfig
from .scheduler import ContinuousLearningScheduler
from .service import PredictiveService, create_default_service
from .storage import create_storage

logger = structlog.get_logger(__name__)


def parse_arguments(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(
        description="Retrain forecasting models on operational records",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
        Examples:
        # Retrain once
        python -m src.predictive.train

        # Keep model states in Redis (the default memory backend discards
        # the trained states when the process exits)
        python -m src.predictive.train --storage redis --redis-host redis

        # Continuous learning (every 60 minutes)
        python -m src.predictive.train --schedule 60
        """,
    )

    # Storage configuration
    parser.add_argument(
        "--storage",
        default=os.getenv("STORAGE_BACKEND", "memory"),
        choices=["memory", "redis"],
        help=(
            "Model state storage backend (default: memory or STORAGE_BACKEND env var). "
            "Memory states are discarded on exit; use redis to keep trained models"
        ),
    )
    parser.add_argument(
        "--redis-host",
        default=os.getenv("REDIS_HOST", "localhost"),
        help="Redis host (default: localhost or REDIS_HOST env var)",
    )
    parser.add_argument(
        "--redis-port",
        type=int,
        default=int(os.getenv("REDIS_PORT", "6379")),
        help="Redis port (default: 6379)",
    )

    # PostgreSQL settings
    parser.add_argument(
        "--postgres-host",
        default=os.getenv("POSTGRES_HOST", "localhost"),
        help="PostgreSQL host (default: localhost or POSTGRES_HOST env var)",
    )
    parser.add_argument(
        "--postgres-port",
        type=int,
        default=int(os.getenv("POSTGRES_PORT", "5432")),
        help="PostgreSQL port (default: 5432)",
    )
    parser.add_argument(
        "--postgres-db",
        default=os.getenv("POSTGRES_DB", "operations_db"),
        help="PostgreSQL database (default: operations_db)",
    )
    parser.add_argument(
        "--postgres-user",
        default=os.getenv("POSTGRES_USER", "operations"),
        help="PostgreSQL user (default: operations)",
    )
    parser.add_argument(
        "--postgres-password",
        default=os.getenv("POSTGRES_PASSWORD", "operations_password"),
        help="PostgreSQL password",
    )

    # Continuous learning
    parser.add_argument(
        "--schedule",
        type=float,
        help="Retrain periodically every N minutes (default: run once)",
    )
    parser.add_argument(
        "--min-data-points",
        type=int,
        default=10,
        help="Skip models with fewer training rows (default: 10)",
    )

    # Logging
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=os.getenv("LOG_LEVEL", "INFO"),
        help="Logging level (default: INFO)",
    )

    return parser.parse_args(argv)


def build_configs(args) -> tuple[StorageConfig, RecordStoreConfig, ContinuousLearningConfig]:
    storage_config = StorageConfig(
        backend=args.storage,
        redis_host=args.redis_host,
        redis_port=args.redis_port,
    )
    store_config = RecordStoreConfig(
        postgres_host=args.postgres_host,
        postgres_port=args.postgres_port,
        postgres_database=args.postgres_db,
        postgres_user=args.postgres_user,
        postgres_password=args.postgres_password,
    )
    learning_config = ContinuousLearningConfig(
        enabled=bool(args.schedule),
        update_interval_minutes=args.schedule or 60,
        min_data_points=args.min_data_points,
    )
    return storage_config, store_config, learning_config


def load_training_data(store: RecordStore) -> dict[str, list[dict]]:
    """Build per-model training rows from the record store"""
    sales = store.get_all("sales")
    data = {"sales": SalesPredictor.daily_series(sales)}
    logger.info("Training data loaded", sales_records=len(sales), sales_days=len(data["sales"]))
    return data


async def train_once(
    service: PredictiveService, store: RecordStore, learning_config: ContinuousLearningConfig
) -> dict:
    return await service.retrain_all(
        load_training_data(store), min_data_points=learning_config.min_data_points
    )


async def run(service: PredictiveService, store: RecordStore, learning_config: ContinuousLearningConfig):
    await service.initialize()
    try:
        stats = await train_once(service, store, learning_config)
        if not learning_config.enabled:
            return stats

        scheduler = ContinuousLearningScheduler(
            learning_config, lambda: train_once(service, store, learning_config)
        )
        task = scheduler.start()
        try:
            await task
        finally:
            scheduler.stop()
        return stats
    finally:
        await service.dispose()


def main(argv: list[str] | None = None):
    args = parse_arguments(argv)

    setup_logging(level=getattr(logging, args.log_level))
    logger.info("Starting model retraining")

    try:
        storage_config, store_config, learning_config = build_configs(args)
        if storage_config.backend == "memory" and not learning_config.enabled:
            logger.warning("Memory storage selected, trained states are discarded on exit")
        service = create_default_service(storage=create_storage(storage_config))
        store = PostgresRecordStore(store_config)
        try:
            stats = asyncio.run(run(service, store, learning_config))
        finally:
            store.close()

        logger.info("Retraining completed successfully", stats=stats)
        return 0

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0

    except Exception as e:
        logger.error("Retraining failed", error=str(e), exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
