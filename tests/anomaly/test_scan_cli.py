"""
Tests for the anomaly scan CLI.
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock, patch

from src.anomaly import AnomalyEngine
from src.anomaly.scan import build_configs, main, parse_arguments, scan_once
from src.records import InMemoryRecordStore


def test_defaults():
    args = parse_arguments([])

    assert args.severity == "all"
    assert args.schedule is None
    assert len(args.detectors) == 5


def test_build_configs():
    args = parse_arguments(
        ["--detectors", "cash_flow", "attendance", "--schedule", "2", "--postgres-host", "db"]
    )

    engine_config, store_config = build_configs(args)

    assert engine_config.detectors == ["cash_flow", "attendance"]
    assert engine_config.scan_interval_minutes == 2
    assert store_config.postgres_host == "db"


def test_scan_once_filters_severity():
    day = datetime.now(UTC) - timedelta(days=1)
    store = InMemoryRecordStore({"attendance": [{"action": "check_in", "timestamp": day}]})
    engine = AnomalyEngine(store)

    assert len(scan_once(engine, "critical")) == 1
    assert scan_once(engine, "high") == []


@patch("src.anomaly.scan.PostgresRecordStore")
def test_main_single_scan(mock_store_cls):
    store = MagicMock()
    store.get_all.return_value = []
    mock_store_cls.return_value = store

    assert main(["--log-level", "WARNING"]) == 0
    store.close.assert_called_once()


@patch("src.anomaly.scan.PostgresRecordStore")
def test_main_reports_failure(mock_store_cls):
    mock_store_cls.side_effect = RuntimeError("database unreachable")

    assert main([]) == 1
