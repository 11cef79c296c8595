"""
Sales predictor.

Feature vector (10 elements): z-normalized last 7 sales, season / 12,
promotion flag, z-normalized economic indicators; padded or truncated to
exactly 10. Confidence comes from feature dispersion and the trend compares
the prediction with the most recent historical sale.
"""

from collections.abc import Mapping, Sequence
from typing import Any

import numpy as np
import pandas as pd
import structlog

from src.core.errors import ModelNotReadyError, ValidationError

from ..features import FeaturePipeline, sales_feature_pipeline
from ..models import DEFAULT_MODEL_CONFIGS, FeatureVector, ModelConfig, Prediction, TimeSeriesPoint
from ..network import DenseNetwork
from ..numeric import calculate_trend, confidence_from_features, generate_insights
from ..storage import StorageAdapter
from .base import NetworkModel

logger = structlog.get_logger(__name__)

HISTORY_WINDOW = 7


class SalesPredictor(NetworkModel):
    def __init__(
        self,
        storage: StorageAdapter,
        config: ModelConfig | None = None,
        seed: int | None = None,
    ):
        super().__init__("SalesPredictor", config or DEFAULT_MODEL_CONFIGS["sales"], storage)
        self.seed = seed
        self._pipeline = sales_feature_pipeline(
            length=self.config.input_shape[0], window=HISTORY_WINDOW
        )

    @property
    def feature_pipeline(self) -> FeaturePipeline:
        return self._pipeline

    def create_model(self) -> DenseNetwork:
        return DenseNetwork(
            input_dim=self.config.input_shape[0],
            layers=[(64, "relu"), (32, "relu"), (self.config.output_shape[0], "linear")],
            seed=self.seed,
        )

    def extract_features(self, raw: Mapping[str, Any]) -> FeatureVector:
        return self._pipeline.process(raw)

    async def predict(self, features: FeatureVector | Mapping[str, Any]) -> Prediction:
        if self.model is None:
            raise ModelNotReadyError(self.name, "Model not initialized")

        if not isinstance(features, FeatureVector):
            features = self.extract_features(features)

        output = await self.infer(np.asarray([features.features], dtype=np.float32))
        value = self.denormalize(float(output[0, 0]))
        confidence = confidence_from_features(features.features)

        recent = features.metadata.get("recent_values", [])
        trend = calculate_trend(value, recent[-1]) if len(recent) >= 2 else "stable"

        return Prediction(
            value=value,
            confidence=confidence,
            trend=trend,
            insights=generate_insights(value, confidence),
        )

    def preprocess_data(self, data: Sequence[Any]) -> list[TimeSeriesPoint]:
        """Convert raw rows {date, sales, season, promotions, economic_indicators}
        into a date-sorted series"""
        points = []
        for item in data:
            if not isinstance(item, Mapping):
                raise ValidationError(f"Training rows must be objects, got {type(item).__name__}")
            try:
                date = pd.Timestamp(item["date"]).to_pydatetime()
            except (KeyError, ValueError, TypeError) as e:
                raise ValidationError(f"Training row has no valid date: {item!r}") from e

            points.append(
                TimeSeriesPoint(
                    date=date,
                    value=float(item.get("sales") or 0),
                    features={
                        "season": item.get("season", date.month),
                        "promotions": bool(item.get("promotions", False)),
                        "economic_indicators": list(item.get("economic_indicators") or []),
                    },
                )
            )

        logger.debug("Preprocessed sales data", model=self.name, points=len(points))
        return sorted(points, key=lambda p: p.date)

    def build_training_set(self, series: list[TimeSeriesPoint]) -> tuple[np.ndarray, np.ndarray]:
        """Sliding window: each point is predicted from up to 7 previous values"""
        rows, targets = [], []
        values = [p.value for p in series]

        for i in range(1, len(series)):
            raw = {
                "historical_sales": values[max(0, i - HISTORY_WINDOW) : i],
                **series[i].features,
            }
            rows.append(self.extract_features(raw).features)
            targets.append(series[i].value)

        width = self.config.input_shape[0]
        return (
            np.asarray(rows, dtype=np.float32).reshape(-1, width),
            np.asarray(targets, dtype=np.float32),
        )

    @staticmethod
    def daily_series(sales_records: Sequence[Mapping[str, Any]]) -> list[dict]:
        """Aggregate raw sale records (quantity, created_at) into one row per day"""
        if not sales_records:
            return []

        df = pd.DataFrame(sales_records)
        df["created_at"] = pd.to_datetime(df["created_at"], utc=True)
        if "quantity" not in df:
            df["quantity"] = 0
        df["quantity"] = pd.to_numeric(df["quantity"], errors="coerce").fillna(0)
        daily = df.set_index("created_at")["quantity"].resample("1D").sum()

        return [
            {
                "date": day.to_pydatetime(),
                "sales": float(total),
                "season": day.month,
                "promotions": False,
                "economic_indicators": [],
            }
            for day, total in daily.items()
        ]
