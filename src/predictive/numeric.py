"""
Numeric helpers shared by every model family.

Normalization, confidence, trend classification and insight text live
here as plain functions so concrete models can compose them freely.
"""

from collections.abc import Sequence

import numpy as np

from .models import CONFIDENCE_THRESHOLDS, Trend

TREND_DEAD_BAND = 0.05
MIN_CONFIDENCE = 0.1
HIGH_CONFIDENCE_INSIGHT = CONFIDENCE_THRESHOLDS["HIGH"]
LOW_CONFIDENCE_INSIGHT = 0.5


def normalize(values: Sequence[float]) -> list[float]:
    """Z-score normalize values (population std, falls back to 1 when flat)"""
    if len(values) == 0:
        return []

    data = np.asarray(values, dtype=float)
    std = data.std()
    return ((data - data.mean()) / (std or 1.0)).tolist()


def normalized_variance(features: Sequence[float]) -> float:
    """Population variance of the feature vector (0 for empty input)"""
    if len(features) == 0:
        return 0.0
    return float(np.var(np.asarray(features, dtype=float)))


def confidence_from_features(features: Sequence[float]) -> float:
    """Dispersion-based confidence proxy clamped to [0.1, 1]

    This is a heuristic, not a calibrated probability: the more spread the
    inputs are, the less certain the model claims to be.
    """
    confidence = 1.0 - normalized_variance(features)
    if not np.isfinite(confidence):
        return MIN_CONFIDENCE
    return max(MIN_CONFIDENCE, min(1.0, confidence))


def calculate_trend(current: float, previous: float) -> Trend:
    """Classify current vs previous with a +/-5% dead-band

    Exactly +/-5% maps to 'stable'. A zero previous value has no relative
    change, so only the sign of the current value is used.
    """
    if previous == 0:
        if current > 0:
            return "up"
        if current < 0:
            return "down"
        return "stable"

    change = (current - previous) / previous
    if change > TREND_DEAD_BAND:
        return "up"
    if change < -TREND_DEAD_BAND:
        return "down"
    return "stable"


def generate_insights(prediction: float, confidence: float) -> list[str]:
    insights = []

    if confidence > HIGH_CONFIDENCE_INSIGHT:
        insights.append("High confidence in prediction")
    elif confidence < LOW_CONFIDENCE_INSIGHT:
        insights.append("Low confidence - consider collecting more data")

    if prediction > 0:
        insights.append("Positive trend expected")
    else:
        insights.append("Negative trend expected")

    return insights


def fit_length(values: Sequence[float], length: int, fill: float = 0.0) -> list[float]:
    """Right-pad with fill or truncate to exactly length elements"""
    result = list(values[:length])
    result.extend([fill] * (length - len(result)))
    return result
