"""
Data models, configuration and constants for the predictive services.
"""

from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal, Optional

import numpy as np

Trend = Literal["up", "down", "stable"]

MODEL_TYPES = {
    "SALES": "sales",
    "DEMAND": "demand",
    "ANOMALY": "anomaly",
    "INVENTORY": "inventory",
    "PRODUCTION": "production",
    "EMPLOYEE": "employee",
}

CONFIDENCE_THRESHOLDS = {
    "HIGH": 0.8,
    "MEDIUM": 0.6,
    "LOW": 0.4,
}

# Seconds
PROCESSING_TIMEOUTS = {
    "PREDICTION": 5.0,
    "TRAINING": 300.0,
    "RETRAINING": 60.0,
}


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class ModelConfig:
    """Shape and training hyper-parameters of a model instance"""

    input_shape: tuple[int, ...]
    output_shape: tuple[int, ...]
    learning_rate: float = 0.001
    epochs: int = 100
    batch_size: int = 32


DEFAULT_MODEL_CONFIGS = {
    "sales": ModelConfig(input_shape=(10,), output_shape=(1,)),
    "demand": ModelConfig(input_shape=(7,), output_shape=(1,)),
    "anomaly": ModelConfig(input_shape=(20,), output_shape=(1,), epochs=50, batch_size=16),
}


@dataclass
class FeatureVector:
    """Model-ready numeric encoding plus side metadata"""

    features: list[float] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.features)


@dataclass
class Prediction:
    """Output of a single model inference"""

    value: float
    confidence: float
    trend: Trend
    insights: list[str]
    timestamp: datetime = field(default_factory=utcnow)
    processing_time: float | None = None  # milliseconds

    def to_dict(self) -> dict:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data


@dataclass
class ModelPerformance:
    accuracy: float = 0.0
    precision: float = 0.0
    recall: float = 0.0
    f1_score: float = 0.0
    last_evaluated: datetime = field(default_factory=utcnow)


@dataclass
class ModelMetadata:
    """Descriptive record kept by the registry for each model type"""

    name: str
    version: str
    type: str
    config: ModelConfig
    performance: ModelPerformance = field(default_factory=ModelPerformance)
    created_at: datetime = field(default_factory=utcnow)
    last_updated: datetime = field(default_factory=utcnow)


@dataclass
class ModelState:
    """Serializable snapshot of a trained model (topology + weights)"""

    topology: dict[str, Any]
    weights: list[np.ndarray]
    last_training: datetime
    training_config: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary"""
        return {
            "topology": self.topology,
            "weights": [
                {"shape": list(w.shape), "values": np.asarray(w, dtype=np.float32).ravel().tolist()}
                for w in self.weights
            ],
            "last_training": self.last_training.isoformat(),
            "training_config": self.training_config,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ModelState":
        return cls(
            topology=data["topology"],
            weights=[
                np.asarray(w["values"], dtype=np.float32).reshape(w["shape"])
                for w in data["weights"]
            ],
            last_training=datetime.fromisoformat(data["last_training"]),
            training_config=data.get("training_config", {}),
        )


@dataclass
class TimeSeriesPoint:
    date: datetime
    value: float
    features: dict[str, Any] = field(default_factory=dict)


@dataclass
class PredictionOptions:
    confidence_threshold: Optional[float] = None
    include_insights: bool = True


@dataclass
class PredictionRequest:
    """Facade input: which model to run and on what raw input"""

    model_type: str
    input: dict[str, Any]
    options: PredictionOptions = field(default_factory=PredictionOptions)

    @classmethod
    def from_dict(cls, data: dict) -> "PredictionRequest":
        options = data.get("options") or {}
        return cls(
            model_type=data.get("model_type"),
            input=data.get("input"),
            options=PredictionOptions(**options),
        )


@dataclass
class ModelInfo:
    name: str
    version: str
    confidence: float


@dataclass
class PredictionResponse:
    prediction: Prediction
    model_info: ModelInfo
    processing_time: float  # milliseconds


@dataclass
class ServiceConfig:
    """Deadlines applied by the facade"""

    prediction_timeout_seconds: float = PROCESSING_TIMEOUTS["PREDICTION"]
    retraining_timeout_seconds: float = PROCESSING_TIMEOUTS["RETRAINING"]


@dataclass
class ContinuousLearningConfig:
    """Periodic retraining settings"""

    enabled: bool = True
    update_interval_minutes: float = 60
    min_data_points: int = 10


@dataclass
class StorageConfig:
    """Model state storage backend selection"""

    backend: str = "memory"  # 'memory' or 'redis'
    key_prefix: str = "predictive:model"

    # Redis settings
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: Optional[str] = None
    ttl_seconds: Optional[int] = None  # None keeps states until overwritten
