"""
CLI for scanning operational records for anomalies.

Usage:
    python -m src.anomaly.scan [options]
"""

import argparse
import logging
import os
import sys
import time

import structlog

from src.core.logger import setup_logging
from src.records import PostgresRecordStore, RecordStoreConfig

from .detectors import list_detectors
from .engine import AnomalyEngine, filter_by_severity, summarize
from .models import AnomalyEngineConfig

logger = structlog.get_logger(__name__)


def parse_arguments(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(
        description="Scan operational records for anomalies",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
        Examples:
        # Single scan
        python -m src.anomaly.scan

        # Only critical anomalies
        python -m src.anomaly.scan --severity critical

        # Rescan every 5 minutes
        python -m src.anomaly.scan --schedule 5
        """,
    )

    parser.add_argument(
        "--detectors",
        nargs="+",
        default=list_detectors(),
        choices=list_detectors(),
        help="Detectors to run (default: all)",
    )
    parser.add_argument(
        "--severity",
        default="all",
        choices=["all", "low", "medium", "high", "critical"],
        help="Only report records of this severity (default: all)",
    )

    # PostgreSQL settings
    parser.add_argument(
        "--postgres-host",
        default=os.getenv("POSTGRES_HOST", "localhost"),
        help="PostgreSQL host",
    )
    parser.add_argument(
        "--postgres-port",
        type=int,
        default=int(os.getenv("POSTGRES_PORT", "5432")),
        help="PostgreSQL port",
    )
    parser.add_argument(
        "--postgres-db",
        default=os.getenv("POSTGRES_DB", "operations_db"),
        help="PostgreSQL database",
    )
    parser.add_argument(
        "--postgres-user",
        default=os.getenv("POSTGRES_USER", "operations"),
        help="PostgreSQL user",
    )
    parser.add_argument(
        "--postgres-password",
        default=os.getenv("POSTGRES_PASSWORD", "operations_password"),
        help="PostgreSQL password",
    )

    # Runtime settings
    parser.add_argument(
        "--schedule",
        type=float,
        help="Rescan every N minutes (default: scan once)",
    )

    # Logging
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=os.getenv("LOG_LEVEL", "INFO"),
        help="Logging level (default: INFO)",
    )

    return parser.parse_args(argv)


def build_configs(args) -> tuple[AnomalyEngineConfig, RecordStoreConfig]:
    engine_config = AnomalyEngineConfig(
        detectors=args.detectors,
        scan_interval_minutes=args.schedule or 5,
    )
    store_config = RecordStoreConfig(
        postgres_host=args.postgres_host,
        postgres_port=args.postgres_port,
        postgres_database=args.postgres_db,
        postgres_user=args.postgres_user,
        postgres_password=args.postgres_password,
    )
    return engine_config, store_config


def scan_once(engine: AnomalyEngine, severity: str = "all") -> list:
    records = filter_by_severity(engine.scan(), severity)

    for record in records:
        logger.info(
            "Anomaly detected",
            domain=record.domain.value,
            severity=record.severity.value,
            description=record.description,
            observed=round(record.observed_value, 2),
            expected=round(record.expected_value, 2),
            confidence=record.confidence,
        )

    logger.info("Scan summary", reported=len(records), **summarize(records)["by_severity"])
    return records


def scan_scheduled(engine: AnomalyEngine, severity: str, interval_minutes: float):
    logger.info("Starting scheduled scans", interval_minutes=interval_minutes)

    iteration = 0
    while True:
        iteration += 1
        try:
            scan_once(engine, severity)
        except Exception as e:
            logger.error("Scan iteration failed", iteration=iteration, error=str(e))

        time.sleep(interval_minutes * 60)


def main(argv: list[str] | None = None):
    args = parse_arguments(argv)

    setup_logging(level=getattr(logging, args.log_level))
    logger.info("Starting anomaly scan")

    try:
        engine_config, store_config = build_configs(args)
        store = PostgresRecordStore(store_config)
        try:
            engine = AnomalyEngine(store, engine_config)
            if args.schedule:
                scan_scheduled(engine, args.severity, engine_config.scan_interval_minutes)
            else:
                scan_once(engine, args.severity)
        finally:
            store.close()
        return 0

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0

    except Exception as e:
        logger.error("Anomaly scan failed", error=str(e), exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
