"""
Model contract shared by every forecasting model.

All models must provide:
- initialize(): load persisted state or build a fresh network
- predict(): run inference on a feature vector or raw input
- retrain(): refit from raw domain data and persist the new state
- is_ready(): whether predictions can be served
- dispose(): release numeric resources
"""

import asyncio
import threading
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any

import numpy as np
import structlog

from src.core.errors import ModelNotReadyError, PersistenceError, ValidationError

from ..features import FeaturePipeline
from ..models import FeatureVector, ModelConfig, ModelState, Prediction, TimeSeriesPoint, utcnow
from ..network import DenseNetwork
from ..storage import StorageAdapter

logger = structlog.get_logger(__name__)


class PredictiveModel(ABC):
    """Capability interface consumed by the registry and orchestrator"""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    async def initialize(self) -> None:
        pass

    @abstractmethod
    async def predict(self, features: FeatureVector | Mapping[str, Any]) -> Prediction:
        pass

    @abstractmethod
    async def retrain(self, data: Sequence[Any]) -> dict[str, Any]:
        pass

    @abstractmethod
    def is_ready(self) -> bool:
        pass

    @abstractmethod
    async def dispose(self) -> None:
        pass

    @property
    def feature_pipeline(self) -> FeaturePipeline | None:
        """Pipeline the orchestrator should use for this model (None = shared one)"""
        return None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, ready={self.is_ready()})"


class NetworkModel(PredictiveModel):
    """Lifecycle for models backed by a DenseNetwork and a StorageAdapter

    Subclasses implement create_model(), preprocess_data(),
    build_training_set() and predict().
    """

    def __init__(self, model_name: str, config: ModelConfig, storage: StorageAdapter):
        self._name = model_name
        self.config = config
        self.storage = storage
        self.model: DenseNetwork | None = None
        self.is_trained = False
        self.last_training: datetime | None = None
        self.training_config: dict[str, Any] = {}
        self._ready = False

    @property
    def name(self) -> str:
        return self._name

    @abstractmethod
    def create_model(self) -> DenseNetwork:
        pass

    @abstractmethod
    def preprocess_data(self, data: Sequence[Any]) -> list[TimeSeriesPoint]:
        pass

    @abstractmethod
    def build_training_set(self, series: list[TimeSeriesPoint]) -> tuple[np.ndarray, np.ndarray]:
        pass

    async def initialize(self) -> None:
        """Load the persisted state, or build and compile a fresh network"""
        await self.load_model()

        if self.model is None:
            self.model = self.create_model()
            logger.info("Created fresh model", model=self.name)

        self.model.compile(self.config.learning_rate)
        self._ready = True

    async def retrain(self, data: Sequence[Any]) -> dict[str, Any]:
        if self.model is None:
            raise ModelNotReadyError(self.name, f"Model {self.name} not initialized")

        series = self.preprocess_data(data)
        x, y = self.build_training_set(series)
        if len(x) == 0:
            raise ValidationError(f"Not enough data to retrain {self.name}: {len(series)} points")

        target_mean = float(y.mean())
        target_std = float(y.std()) or 1.0
        stop = threading.Event()
        try:
            history = await asyncio.to_thread(
                self.model.fit,
                x,
                (y - target_mean) / target_std,
                epochs=self.config.epochs,
                batch_size=self.config.batch_size,
                stop=stop,
            )
        except asyncio.CancelledError:
            # The worker thread cannot be interrupted; it exits after the current epoch
            stop.set()
            logger.warning("Retraining cancelled", model=self.name)
            raise

        self.training_config = {"target_mean": target_mean, "target_std": target_std}
        self.is_trained = True
        self.last_training = utcnow()
        self._ready = True
        await self.save_model()

        stats = {"samples": len(x), "points": len(series), "final_loss": history[-1]}
        logger.info("Model retrained", model=self.name, **stats)
        return stats

    async def infer(self, x: np.ndarray) -> np.ndarray:
        """Run the network in a worker thread so the event loop stays responsive"""
        return await asyncio.to_thread(self.model.predict, x)

    def is_ready(self) -> bool:
        return self._ready and self.model is not None

    async def dispose(self) -> None:
        if self.model is not None:
            self.model.dispose()
            self.model = None
        self._ready = False
        logger.debug("Model disposed", model=self.name)

    async def load_model(self) -> None:
        state = self.storage.load_model(self.name)
        if state is None:
            return

        try:
            model = DenseNetwork.from_topology(state.topology)
            model.set_weights(state.weights)
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"Stored state for {self.name} is invalid: {e}") from e

        self.model = model
        self.training_config = dict(state.training_config)
        self.is_trained = True
        self.last_training = state.last_training
        logger.info("Model restored from storage", model=self.name)

    async def save_model(self) -> None:
        if self.model is None:
            return

        state = ModelState(
            topology=self.model.topology,
            weights=self.model.get_weights(),
            last_training=self.last_training or utcnow(),
            training_config=dict(self.training_config),
        )
        self.storage.save_model(self.name, state)

    def denormalize(self, value: float) -> float:
        """Map a network output back to the training target's scale"""
        mean = self.training_config.get("target_mean", 0.0)
        std = self.training_config.get("target_std", 1.0)
        return value * std + mean

    def get_status(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "is_trained": self.is_trained,
            "last_training": self.last_training,
            "config": self.config,
        }
