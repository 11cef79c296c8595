"""
Tests for ModelOrchestrator.
"""

import asyncio

import pytest

from src.core.errors import FeatureError
from src.predictive.features import default_feature_pipeline, sales_feature_pipeline
from src.predictive.methods import SalesPredictor
from src.predictive.orchestrator import ModelOrchestrator


@pytest.fixture
def orchestrator():
    return ModelOrchestrator(default_feature_pipeline())


def test_predict_stamps_timing(orchestrator, fake_model):
    prediction = asyncio.run(orchestrator.predict(fake_model(), {"x": 4}))

    assert prediction.value == 4.0
    assert prediction.processing_time >= 0
    assert prediction.timestamp.tzinfo is not None


def test_feature_failure_propagates(orchestrator, fake_model):
    with pytest.raises(FeatureError):
        asyncio.run(orchestrator.predict(fake_model(), {"label": "no numbers"}))


def test_model_failure_propagates(orchestrator, fake_model):
    with pytest.raises(ValueError, match="cannot predict"):
        asyncio.run(orchestrator.predict(fake_model(fail_on=2.0), {"x": 2}))


def test_model_pipeline_takes_precedence(orchestrator, storage):
    model = SalesPredictor(storage)

    assert orchestrator.pipeline_for(model) is model.feature_pipeline


def test_shared_pipeline_for_models_without_one(orchestrator, fake_model):
    assert orchestrator.pipeline_for(fake_model()) is orchestrator.feature_pipeline


def test_batch_predict_skips_failures(orchestrator, fake_model):
    model = fake_model(fail_on=2.0)

    predictions = asyncio.run(orchestrator.batch_predict(model, [{"x": 1}, {"x": 2}, {"x": 3}]))

    assert [p.value for p in predictions] == [1.0, 3.0]


def test_batch_predict_all_fail(orchestrator, fake_model):
    predictions = asyncio.run(orchestrator.batch_predict(fake_model(), [{}, {"a": "b"}]))

    assert predictions == []


def test_retrain_returns_stats(orchestrator, fake_model):
    model = fake_model()

    stats = asyncio.run(orchestrator.retrain(model, [1, 2, 3]))

    assert stats == {"samples": 3}
    assert model.retrained == [[1, 2, 3]]


def test_sales_model_through_orchestrator(storage, fast_sales_config, sales_input):
    orchestrator = ModelOrchestrator(sales_feature_pipeline())
    model = SalesPredictor(storage, config=fast_sales_config, seed=1)
    asyncio.run(model.initialize())

    prediction = asyncio.run(orchestrator.predict(model, sales_input))

    assert 0.1 <= prediction.confidence <= 1.0
