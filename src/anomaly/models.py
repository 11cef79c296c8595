"""
Data models and configuration for operational anomaly detection.
"""

import uuid
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime
from enum import Enum


class AnomalyDomain(Enum):
    """Operational area an anomaly was found in"""

    PRODUCTION = "production"
    INVENTORY = "inventory"
    WORKFORCE = "workforce"
    CASH_FLOW = "cash_flow"


class Severity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AnomalyStatus(Enum):
    DETECTED = "detected"
    INVESTIGATING = "investigating"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class AnomalyRecord:
    """A detected deviation between an observed and an expected value"""

    domain: AnomalyDomain
    severity: Severity
    description: str
    observed_value: float
    expected_value: float
    confidence: float
    timestamp: datetime
    detector: str
    status: AnomalyStatus = AnomalyStatus.DETECTED
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def with_status(self, status: AnomalyStatus) -> "AnomalyRecord":
        """Copy of this record with a new status (records are never mutated)"""
        return replace(self, status=status)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["domain"] = self.domain.value
        data["severity"] = self.severity.value
        data["status"] = self.status.value
        data["timestamp"] = self.timestamp.isoformat()
        return data


@dataclass
class AnomalyThresholds:
    """Fixed heuristic thresholds and confidences for every detector

    These are configuration values, not derived statistics.
    """

    # Production efficiency
    production_min_tickets: int = 5  # analysis needs more than this many tickets
    production_window: int = 10
    low_output_ratio: float = 0.7  # of the window mean
    low_output_share: float = 0.3  # of the window
    production_efficiency_confidence: float = 0.85

    # Production yield
    min_yield_ratio: float = 0.8  # outputs / inputs
    expected_yield_ratio: float = 0.9
    yield_loss_confidence: float = 0.8

    # Inventory leakage
    inventory_lookback_days: int = 7
    sales_to_purchases_ratio: float = 1.5
    inventory_confidence: float = 0.9

    # Attendance
    attendance_lookback_days: int = 7
    min_daily_check_ins: int = 3
    expected_daily_check_ins: int = 5
    attendance_confidence: float = 0.95

    # Cash flow
    cash_flow_min_movements: int = 10  # analysis needs more than this many movements
    cash_flow_window: int = 20
    cash_high_multiplier: float = 3.0
    cash_critical_multiplier: float = 5.0
    cash_flow_confidence: float = 0.85

    # Process duration
    max_process_hours: float = 8.0
    expected_process_hours: float = 4.0
    process_duration_confidence: float = 0.75


@dataclass
class AnomalyEngineConfig:
    """Configuration for the anomaly engine and its scan CLI"""

    detectors: list[str] = field(
        default_factory=lambda: [
            "production_efficiency",
            "inventory_leakage",
            "attendance",
            "cash_flow",
            "process_duration",
        ]
    )
    thresholds: AnomalyThresholds = field(default_factory=AnomalyThresholds)
    scan_interval_minutes: float = 5
