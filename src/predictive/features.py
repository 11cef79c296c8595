"""
Feature pipeline: ordered extractors followed by ordered transformers.

Extractors each contribute a slice of the vector (concatenated in
registration order) plus metadata; transformers rewrite the full vector.
The result is validated to be non-empty and finite.
"""

import math
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

import structlog

from src.core.errors import FeatureError

from .models import FeatureVector
from .numeric import fit_length, normalize

logger = structlog.get_logger(__name__)


class FeatureExtractor(ABC):
    """Turns raw input into a partial FeatureVector"""

    @abstractmethod
    def extract(self, raw: Mapping[str, Any]) -> FeatureVector:
        pass


class FeatureTransformer(ABC):
    """Consumes a full FeatureVector and returns a new one"""

    @abstractmethod
    def transform(self, vector: FeatureVector) -> FeatureVector:
        pass


class FeaturePipeline:
    def __init__(
        self,
        extractors: Sequence[FeatureExtractor] | None = None,
        transformers: Sequence[FeatureTransformer] | None = None,
    ):
        self.extractors = list(extractors or [])
        self.transformers = list(transformers or [])

    def process(self, raw: Mapping[str, Any]) -> FeatureVector:
        """Run every stage over raw input

        Raises:
            FeatureError: If any stage fails or the final vector is empty or
                contains NaN/Infinity
        """
        try:
            vector = FeatureVector()
            for extractor in self.extractors:
                vector = self._merge(vector, extractor.extract(raw))

            for transformer in self.transformers:
                vector = transformer.transform(vector)
        except FeatureError:
            raise
        except Exception as e:
            logger.error("Feature pipeline stage failed", error=str(e))
            raise FeatureError(f"Feature processing failed: {e}") from e

        self.validate(vector)
        return vector

    @staticmethod
    def validate(vector: FeatureVector) -> None:
        if not vector.features:
            raise FeatureError("No features extracted")

        for value in vector.features:
            if not math.isfinite(value):
                raise FeatureError("Invalid feature value detected")

    @staticmethod
    def _merge(base: FeatureVector, extra: FeatureVector) -> FeatureVector:
        return FeatureVector(
            features=[*base.features, *extra.features],
            metadata={**base.metadata, **extra.metadata},
        )


# ========================================
# Generic stages
# ========================================


class NumericFieldsExtractor(FeatureExtractor):
    """Reads scalar fields in a fixed order (missing fields are an error)"""

    def __init__(self, fields: Sequence[str]):
        self.fields = list(fields)

    def extract(self, raw: Mapping[str, Any]) -> FeatureVector:
        missing = [name for name in self.fields if name not in raw]
        if missing:
            raise FeatureError(f"Input missing numeric fields: {missing}")
        return FeatureVector(features=[float(raw[name]) for name in self.fields])


class NumericValuesExtractor(FeatureExtractor):
    """Every numeric value of the input in key order; lists are flattened,
    booleans become 0/1 and non-numeric values are ignored"""

    def extract(self, raw: Mapping[str, Any]) -> FeatureVector:
        features = []
        for key in raw:
            value = raw[key]
            items = value if isinstance(value, (list, tuple)) else [value]
            features.extend(float(item) for item in items if isinstance(item, (int, float)))
        return FeatureVector(features=features, metadata={"fields": list(raw)})


def default_feature_pipeline() -> FeaturePipeline:
    """Shared pipeline for models that do not bring their own"""
    return FeaturePipeline(extractors=[NumericValuesExtractor()])


class FixedLengthTransformer(FeatureTransformer):
    """Pads with zeros or truncates so every vector has the same length"""

    def __init__(self, length: int):
        self.length = length

    def transform(self, vector: FeatureVector) -> FeatureVector:
        return FeatureVector(
            features=fit_length(vector.features, self.length),
            metadata={**vector.metadata, "original_length": len(vector.features)},
        )


# ========================================
# Sales stages
# ========================================


def _as_series(raw: Mapping[str, Any], key: str) -> list[float]:
    values = raw.get(key) or []
    if isinstance(values, (str, bytes)) or not isinstance(values, Sequence):
        raise FeatureError(f"'{key}' must be a list of numbers")
    return [float(v) for v in values]


class HistoricalSalesExtractor(FeatureExtractor):
    """Normalized last-N values of the historical sales series"""

    def __init__(self, window: int = 7):
        self.window = window

    def extract(self, raw: Mapping[str, Any]) -> FeatureVector:
        history = _as_series(raw, "historical_sales")
        recent = history[-self.window :]
        return FeatureVector(
            features=normalize(recent),
            metadata={
                "history_length": len(history),
                "recent_values": history[-2:],
            },
        )


class SeasonExtractor(FeatureExtractor):
    """Season index (month 1-12) scaled to [0, 1]"""

    def extract(self, raw: Mapping[str, Any]) -> FeatureVector:
        season = float(raw.get("season", 0))
        return FeatureVector(features=[season / 12], metadata={"season": season})


class PromotionExtractor(FeatureExtractor):
    def extract(self, raw: Mapping[str, Any]) -> FeatureVector:
        active = bool(raw.get("promotions", False))
        return FeatureVector(features=[1.0 if active else 0.0], metadata={"promotions": active})


class EconomicIndicatorsExtractor(FeatureExtractor):
    def extract(self, raw: Mapping[str, Any]) -> FeatureVector:
        return FeatureVector(features=normalize(_as_series(raw, "economic_indicators")))


def sales_feature_pipeline(length: int = 10, window: int = 7) -> FeaturePipeline:
    """Pipeline producing the sales predictor's fixed-length vector"""
    return FeaturePipeline(
        extractors=[
            HistoricalSalesExtractor(window=window),
            SeasonExtractor(),
            PromotionExtractor(),
            EconomicIndicatorsExtractor(),
        ],
        transformers=[FixedLengthTransformer(length)],
    )
