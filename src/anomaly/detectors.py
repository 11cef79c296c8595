"""
Heuristic anomaly detectors, one per operational domain.

Each detector is stateless: it reads full entity collections (as
DataFrames) and emits brand-new AnomalyRecords on every call. Thresholds
and confidences come from AnomalyThresholds.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any

import pandas as pd
import structlog

from .models import AnomalyDomain, AnomalyRecord, AnomalyThresholds, Severity

logger = structlog.get_logger(__name__)

CHECK_IN = "check_in"


# ========================================
# DataFrame helpers
# ========================================


def to_utc(values: pd.Series) -> pd.Series:
    """Parse timestamps as UTC (unparseable values become NaT)"""
    return pd.to_datetime(values, utc=True, errors="coerce")


def numeric_column(df: pd.DataFrame, column: str) -> pd.Series:
    if column not in df:
        return pd.Series(0.0, index=df.index)
    return pd.to_numeric(df[column], errors="coerce").fillna(0.0)


def most_recent(df: pd.DataFrame, n: int) -> pd.DataFrame:
    """Last n rows, ordered by created_at when the column exists"""
    if "created_at" in df:
        df = df.assign(_created=to_utc(df["created_at"]))
        df = df.sort_values("_created", kind="stable").drop(columns="_created")
    return df.tail(n)


def sum_quantities(items: Any) -> float:
    if not isinstance(items, list):
        return 0.0
    return float(sum(item.get("quantity") or 0 for item in items if isinstance(item, dict)))


def volume_by_product(df: pd.DataFrame, since: datetime) -> dict[Any, float]:
    """Total quantity per product_id for rows created strictly after since"""
    if df.empty or not {"product_id", "created_at"} <= set(df.columns):
        return {}

    recent = df[to_utc(df["created_at"]) > since]
    quantities = numeric_column(recent, "quantity")
    return quantities.groupby(recent["product_id"]).sum().to_dict()


class AnomalyDetector(ABC):
    """Abstract base class for all anomaly detectors"""

    # Record store entities this detector reads
    entities: tuple[str, ...] = ()

    def __init__(self, thresholds: AnomalyThresholds | None = None):
        self.thresholds = thresholds or AnomalyThresholds()

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def detect(self, data: dict[str, pd.DataFrame], now: datetime) -> list[AnomalyRecord]:
        """Scan the entity collections

        Args:
            data: Entity name -> DataFrame of its records
            now: Reference time for lookback windows (UTC)

        Returns:
            Newly created anomaly records (possibly empty)
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class ProductionEfficiencyDetector(AnomalyDetector):
    """Low-output tickets within the recent window, plus per-ticket yield loss"""

    entities = ("production_tickets",)

    @property
    def name(self) -> str:
        return "production_efficiency"

    def detect(self, data: dict[str, pd.DataFrame], now: datetime) -> list[AnomalyRecord]:
        t = self.thresholds
        tickets = data["production_tickets"]
        if len(tickets) <= t.production_min_tickets:
            return []

        window = most_recent(tickets, t.production_window)
        produced = numeric_column(window, "quantity_produced")
        mean_output = float(produced.mean())
        low_tickets = int((produced < mean_output * t.low_output_ratio).sum())

        records = []
        if low_tickets > len(window) * t.low_output_share:
            records.append(
                AnomalyRecord(
                    domain=AnomalyDomain.PRODUCTION,
                    severity=Severity.HIGH,
                    description=(
                        f"Production inefficiency detected. {low_tickets} tickets "
                        f"with low output"
                    ),
                    observed_value=mean_output * t.low_output_ratio,
                    expected_value=mean_output,
                    confidence=t.production_efficiency_confidence,
                    timestamp=now,
                    detector=self.name,
                )
            )

        for _, ticket in window.iterrows():
            inputs = sum_quantities(ticket.get("inputs"))
            outputs = sum_quantities(ticket.get("outputs"))
            if inputs <= 0 or outputs / inputs >= t.min_yield_ratio:
                continue

            records.append(
                AnomalyRecord(
                    domain=AnomalyDomain.PRODUCTION,
                    severity=Severity.MEDIUM,
                    description=(
                        f"Significant loss in process {ticket.get('process_id')}. "
                        f"Yield: {outputs / inputs * 100:.1f}%"
                    ),
                    observed_value=outputs,
                    expected_value=inputs * t.expected_yield_ratio,
                    confidence=t.yield_loss_confidence,
                    timestamp=now,
                    detector=self.name,
                )
            )

        return records


class InventoryLeakageDetector(AnomalyDetector):
    """Stocked items sold well beyond what was purchased recently"""

    entities = ("inventory", "products", "sales", "purchases")

    @property
    def name(self) -> str:
        return "inventory_leakage"

    def detect(self, data: dict[str, pd.DataFrame], now: datetime) -> list[AnomalyRecord]:
        t = self.thresholds
        inventory = data["inventory"]
        products = data["products"]
        if inventory.empty or products.empty or "product_id" not in inventory:
            return []

        names = dict(zip(products["id"], products.get("name", products["id"]), strict=False))
        since = now - timedelta(days=t.inventory_lookback_days)
        sold = volume_by_product(data["sales"], since)
        bought = volume_by_product(data["purchases"], since)

        records = []
        for _, item in inventory.iterrows():
            product_id = item["product_id"]
            if product_id not in names:
                continue

            sales_volume = float(sold.get(product_id, 0.0))
            purchase_volume = float(bought.get(product_id, 0.0))
            if purchase_volume <= 0 or sales_volume <= purchase_volume * t.sales_to_purchases_ratio:
                continue

            records.append(
                AnomalyRecord(
                    domain=AnomalyDomain.INVENTORY,
                    severity=Severity.HIGH,
                    description=(
                        f"Possible leakage or unrecorded usage of {names[product_id]}. "
                        f"Sales: {sales_volume:g}, Purchases: {purchase_volume:g}"
                    ),
                    observed_value=sales_volume,
                    expected_value=purchase_volume,
                    confidence=t.inventory_confidence,
                    timestamp=now,
                    detector=self.name,
                )
            )

        return records


class AttendanceDetector(AnomalyDetector):
    """Days in the lookback window with too few check-ins (UTC calendar days)"""

    entities = ("attendance",)

    @property
    def name(self) -> str:
        return "attendance"

    def detect(self, data: dict[str, pd.DataFrame], now: datetime) -> list[AnomalyRecord]:
        t = self.thresholds
        attendance = data["attendance"]
        if attendance.empty or "timestamp" not in attendance:
            return []

        timestamps = to_utc(attendance["timestamp"])
        in_window = timestamps > now - timedelta(days=t.attendance_lookback_days)
        recent = attendance[in_window].assign(day=timestamps[in_window].dt.date)
        if "action" not in recent:
            recent = recent.assign(action=None)

        records = []
        for day, events in recent.groupby("day"):
            check_ins = int((events["action"] == CHECK_IN).sum())
            if check_ins >= t.min_daily_check_ins:
                continue

            records.append(
                AnomalyRecord(
                    domain=AnomalyDomain.WORKFORCE,
                    severity=Severity.CRITICAL,
                    description=f"Critical attendance on {day.isoformat()}. Only {check_ins} employees",
                    observed_value=float(check_ins),
                    expected_value=float(t.expected_daily_check_ins),
                    confidence=t.attendance_confidence,
                    timestamp=now,
                    detector=self.name,
                )
            )

        return records


class CashFlowDetector(AnomalyDetector):
    """Movements far above the mean absolute amount of the recent window"""

    entities = ("cash_flow",)

    @property
    def name(self) -> str:
        return "cash_flow"

    def detect(self, data: dict[str, pd.DataFrame], now: datetime) -> list[AnomalyRecord]:
        t = self.thresholds
        movements = data["cash_flow"]
        if len(movements) <= t.cash_flow_min_movements:
            return []

        window = most_recent(movements, t.cash_flow_window)
        amounts = numeric_column(window, "amount")
        mean_amount = float(amounts.abs().mean())
        created = to_utc(window["created_at"]) if "created_at" in window else None

        records = []
        for idx, row in window.iterrows():
            amount = float(amounts[idx])
            if abs(amount) <= mean_amount * t.cash_high_multiplier:
                continue

            severity = (
                Severity.CRITICAL
                if abs(amount) > mean_amount * t.cash_critical_multiplier
                else Severity.HIGH
            )
            timestamp = created[idx] if created is not None and pd.notna(created[idx]) else now
            records.append(
                AnomalyRecord(
                    domain=AnomalyDomain.CASH_FLOW,
                    severity=severity,
                    description=f"Unusual movement of ${amount:.2f} in {row.get('source_type', 'unknown')}",
                    observed_value=amount,
                    expected_value=mean_amount,
                    confidence=t.cash_flow_confidence,
                    timestamp=pd.Timestamp(timestamp).to_pydatetime(),
                    detector=self.name,
                )
            )

        return records


class ProcessDurationDetector(AnomalyDetector):
    """Completed tickets that ran longer than the ceiling"""

    entities = ("production_tickets",)

    @property
    def name(self) -> str:
        return "process_duration"

    def detect(self, data: dict[str, pd.DataFrame], now: datetime) -> list[AnomalyRecord]:
        t = self.thresholds
        tickets = data["production_tickets"]
        if tickets.empty or not {"started_at", "completed_at"} <= set(tickets.columns):
            return []

        started = to_utc(tickets["started_at"])
        completed = to_utc(tickets["completed_at"])
        hours = (completed - started).dt.total_seconds() / 3600

        records = []
        for idx, ticket in tickets[hours > t.max_process_hours].iterrows():
            records.append(
                AnomalyRecord(
                    domain=AnomalyDomain.PRODUCTION,
                    severity=Severity.MEDIUM,
                    description=(
                        f"Process {ticket.get('folio', ticket.get('id'))} took "
                        f"{hours[idx]:.1f} hours, unusually long"
                    ),
                    observed_value=float(hours[idx]),
                    expected_value=t.expected_process_hours,
                    confidence=t.process_duration_confidence,
                    timestamp=completed[idx].to_pydatetime(),
                    detector=self.name,
                )
            )

        return records


# Registry of available detectors
DETECTOR_REGISTRY = {
    "production_efficiency": ProductionEfficiencyDetector,
    "inventory_leakage": InventoryLeakageDetector,
    "attendance": AttendanceDetector,
    "cash_flow": CashFlowDetector,
    "process_duration": ProcessDurationDetector,
}


def get_detector(name: str, thresholds: AnomalyThresholds | None = None) -> AnomalyDetector:
    """Factory to create an anomaly detector

    Raises:
        ValueError: If name is not registered
    """
    if name not in DETECTOR_REGISTRY:
        available = ", ".join(DETECTOR_REGISTRY.keys())
        raise ValueError(f"Unknown detector '{name}'. Available detectors: {available}")

    return DETECTOR_REGISTRY[name](thresholds)


def list_detectors() -> list[str]:
    return list(DETECTOR_REGISTRY.keys())
