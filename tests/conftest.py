"""
Pytest configuration and shared fixtures.
"""

import asyncio
from datetime import UTC, datetime, timedelta

import pytest

from src.predictive.methods.base import PredictiveModel
from src.predictive.models import (
    DEFAULT_MODEL_CONFIGS,
    FeatureVector,
    ModelConfig,
    ModelMetadata,
    Prediction,
)
from src.predictive.storage import InMemoryStorageAdapter
from src.records import InMemoryRecordStore


class FakeModel(PredictiveModel):
    """Controllable model used to exercise registry, orchestrator and facade"""

    def __init__(self, name="fake", value=1.0, delay=0.0, fail_on=None, init_error=None):
        self._name = name
        self.value = value
        self.delay = delay
        self.fail_on = fail_on
        self.init_error = init_error
        self.ready = False
        self.retrained: list[list] = []
        self.cancelled = False

    @property
    def name(self) -> str:
        return self._name

    async def initialize(self) -> None:
        await asyncio.sleep(0)
        if self.init_error:
            raise self.init_error
        self.ready = True

    async def predict(self, features: FeatureVector) -> Prediction:
        if self.delay:
            try:
                await asyncio.sleep(self.delay)
            except asyncio.CancelledError:
                self.cancelled = True
                raise

        first = features.features[0] if features.features else self.value
        if self.fail_on is not None and first == self.fail_on:
            raise ValueError(f"cannot predict {first}")

        return Prediction(value=first, confidence=0.9, trend="stable", insights=["fake insight"])

    async def retrain(self, data) -> dict:
        if self.delay:
            await asyncio.sleep(self.delay)
        self.retrained.append(list(data))
        return {"samples": len(data)}

    def is_ready(self) -> bool:
        return self.ready

    async def dispose(self) -> None:
        self.ready = False


@pytest.fixture
def fake_model():
    """Factory for FakeModel instances"""
    return FakeModel


@pytest.fixture
def make_metadata():
    def _make(model_type="fake", name="Fake Model", version="2.1.0"):
        return ModelMetadata(
            name=name,
            version=version,
            type=model_type,
            config=DEFAULT_MODEL_CONFIGS["sales"],
        )

    return _make


@pytest.fixture
def storage():
    return InMemoryStorageAdapter()


@pytest.fixture
def fast_sales_config():
    """Sales model config with few epochs for quick training"""
    return ModelConfig(input_shape=(10,), output_shape=(1,), learning_rate=0.01, epochs=5, batch_size=8)


@pytest.fixture
def sales_input():
    return {
        "historical_sales": [120, 130, 125, 140, 150, 145, 160, 170],
        "season": 6,
        "promotions": True,
        "economic_indicators": [1.2, 0.8],
    }


@pytest.fixture
def sales_rows():
    """30 days of daily sales rows for training"""
    start = datetime(2026, 1, 1, tzinfo=UTC)
    return [
        {
            "date": (start + timedelta(days=i)).isoformat(),
            "sales": 100 + 5 * i + (10 if i % 7 == 5 else 0),
            "season": 1,
            "promotions": i % 7 == 5,
            "economic_indicators": [1.0, 1.1],
        }
        for i in range(30)
    ]


@pytest.fixture
def now():
    return datetime(2026, 3, 15, 12, 0, tzinfo=UTC)


@pytest.fixture
def record_store():
    return InMemoryRecordStore()
