"""
Tests for the anomaly engine.
"""

from datetime import timedelta

import pytest

from src.anomaly import (
    AnomalyEngine,
    AnomalyEngineConfig,
    AnomalyStatus,
    Severity,
    filter_by_severity,
    summarize,
)


@pytest.fixture
def populated_store(record_store, now):
    """Record store with one cash-flow, one attendance and one duration anomaly"""
    amounts = [501, 301, 299] + [53] * 16 + [51]
    record_store.extend(
        "cash_flow",
        [
            {"amount": a, "source_type": "sale", "created_at": now - timedelta(hours=30, minutes=i)}
            for i, a in enumerate(amounts)
        ],
    )
    record_store.extend(
        "attendance",
        [{"action": "check_in", "timestamp": now - timedelta(days=2)} for _ in range(2)],
    )
    started = now - timedelta(days=3)
    record_store.add(
        "production_tickets",
        {"folio": "F-9", "started_at": started, "completed_at": started + timedelta(hours=10)},
    )
    return record_store


def test_empty_store(record_store, now):
    assert AnomalyEngine(record_store).scan(now) == []


def test_scan_collects_every_detector(populated_store, now):
    records = AnomalyEngine(populated_store).scan(now)

    assert {r.detector for r in records} == {"cash_flow", "attendance", "process_duration"}
    assert summarize(records)["by_severity"] == {"low": 0, "medium": 1, "high": 1, "critical": 2}


def test_records_are_newest_first(populated_store, now):
    records = AnomalyEngine(populated_store).scan(now)

    timestamps = [r.timestamp for r in records]
    assert timestamps == sorted(timestamps, reverse=True)
    assert records[0].detector == "attendance"
    assert records[-1].detector == "process_duration"


def test_each_scan_yields_fresh_records(populated_store, now):
    engine = AnomalyEngine(populated_store)

    first = {r.id for r in engine.scan(now)}
    second = {r.id for r in engine.scan(now)}

    assert len(first) == 4
    assert first.isdisjoint(second)


def test_configured_detectors_only(populated_store, now):
    engine = AnomalyEngine(populated_store, AnomalyEngineConfig(detectors=["attendance"]))

    records = engine.scan(now)

    assert [r.detector for r in records] == ["attendance"]


def test_naive_now_is_treated_as_utc(populated_store, now):
    records = AnomalyEngine(populated_store).scan(now.replace(tzinfo=None))

    assert len(records) == 4


def test_filter_by_severity(populated_store, now):
    records = AnomalyEngine(populated_store).scan(now)

    assert len(filter_by_severity(records, "all")) == 4
    assert [r.detector for r in filter_by_severity(records, Severity.HIGH)] == ["cash_flow"]
    assert len(filter_by_severity(records, "critical")) == 2
    assert filter_by_severity(records, "low") == []


def test_status_changes_produce_new_records(populated_store, now):
    record = AnomalyEngine(populated_store).scan(now)[0]

    resolved = record.with_status(AnomalyStatus.RESOLVED)

    assert record.status == AnomalyStatus.DETECTED
    assert resolved.status == AnomalyStatus.RESOLVED
    assert resolved.id == record.id
    assert summarize([record, resolved])["by_status"] == {
        "detected": 1,
        "investigating": 0,
        "resolved": 1,
    }


def test_record_to_dict(populated_store, now):
    data = AnomalyEngine(populated_store).scan(now)[0].to_dict()

    assert data["domain"] == "workforce"
    assert data["severity"] == "critical"
    assert data["status"] == "detected"
    assert data["timestamp"] == now.isoformat()
