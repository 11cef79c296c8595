"""
Operational Anomaly Detection

Heuristic detectors scanning production, inventory, attendance and cash
movements for out-of-band events.

Architecture:
- Detectors: stateless, one per domain, fixed thresholds (AnomalyThresholds)
- Engine: reads the record store, runs detectors, sorts records newest-first
- Pluggable Detectors: register new ones in DETECTOR_REGISTRY

Usage:
    # Scan once
    python -m src.anomaly.scan

    # Rescan every 5 minutes
    python -m src.anomaly.scan --schedule 5
"""

from .detectors import AnomalyDetector, get_detector, list_detectors
from .engine import AnomalyEngine, filter_by_severity, summarize
from .models import (
    AnomalyDomain,
    AnomalyEngineConfig,
    AnomalyRecord,
    AnomalyStatus,
    AnomalyThresholds,
    Severity,
)

__all__ = [
    "AnomalyEngine",
    "AnomalyDetector",
    "AnomalyRecord",
    "AnomalyDomain",
    "AnomalyStatus",
    "AnomalyThresholds",
    "AnomalyEngineConfig",
    "Severity",
    "filter_by_severity",
    "summarize",
    "get_detector",
    "list_detectors",
]
