"""
Anomaly engine: runs every configured detector over the record store and
returns the combined records newest-first.

The engine is read-only with respect to the store and keeps no state
between scans; each scan yields records with fresh identities.
"""

import time
from collections import Counter
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime

import pandas as pd
import structlog

from src.records import RecordStore

from .detectors import AnomalyDetector, get_detector
from .models import AnomalyEngineConfig, AnomalyRecord, AnomalyStatus, Severity

logger = structlog.get_logger(__name__)


class AnomalyEngine:
    def __init__(
        self,
        store: RecordStore,
        config: AnomalyEngineConfig | None = None,
        detectors: Sequence[AnomalyDetector] | None = None,
    ):
        self.store = store
        self.config = config or AnomalyEngineConfig()
        if detectors is None:
            detectors = [get_detector(name, self.config.thresholds) for name in self.config.detectors]
        self.detectors = list(detectors)

        logger.info("Anomaly engine initialized", detectors=[d.name for d in self.detectors])

    def scan(self, now: datetime | None = None) -> list[AnomalyRecord]:
        """Run every detector once

        Args:
            now: Reference time for lookback windows (defaults to current UTC time)

        Returns:
            All detected records sorted newest-first
        """
        now = now or datetime.now(UTC)
        if now.tzinfo is None:
            now = now.replace(tzinfo=UTC)

        start_time = time.perf_counter()
        data = self._load_entities()

        records: list[AnomalyRecord] = []
        for detector in self.detectors:
            found = detector.detect(data, now)
            logger.debug("Detector finished", detector=detector.name, anomalies=len(found))
            records.extend(found)

        records.sort(key=lambda r: _sort_key(r.timestamp), reverse=True)

        counts = summarize(records)["by_severity"]
        logger.info(
            "Anomaly scan completed",
            anomalies=len(records),
            elapsed_ms=round((time.perf_counter() - start_time) * 1000, 1),
            **counts,
        )
        return records

    def _load_entities(self) -> dict[str, pd.DataFrame]:
        entities = {entity for detector in self.detectors for entity in detector.entities}
        return {entity: pd.DataFrame(self.store.get_all(entity)) for entity in sorted(entities)}


def _sort_key(timestamp: datetime) -> datetime:
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=UTC)
    return timestamp


def filter_by_severity(
    records: Iterable[AnomalyRecord], severity: Severity | str = "all"
) -> list[AnomalyRecord]:
    """Keep records of one severity ('all' keeps everything)"""
    if severity == "all":
        return list(records)
    severity = Severity(severity)
    return [r for r in records if r.severity == severity]


def summarize(records: Iterable[AnomalyRecord]) -> dict[str, dict[str, int]]:
    """Record counts per severity and per status"""
    records = list(records)
    severities = Counter(r.severity for r in records)
    statuses = Counter(r.status for r in records)
    return {
        "by_severity": {s.value: severities.get(s, 0) for s in Severity},
        "by_status": {s.value: statuses.get(s, 0) for s in AnomalyStatus},
    }
