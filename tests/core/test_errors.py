"""
Tests for the error taxonomy.
"""

import pytest

from src.core.errors import (
    FeatureError,
    ModelError,
    ModelNotFoundError,
    ModelNotReadyError,
    OperationTimeoutError,
    PersistenceError,
    PredictiveError,
    ValidationError,
)


@pytest.mark.parametrize(
    "error",
    [
        ValidationError("bad"),
        ModelNotFoundError("sales"),
        ModelNotReadyError("sales"),
        OperationTimeoutError("Prediction", 5),
        FeatureError("empty"),
        PersistenceError("io"),
    ],
)
def test_all_errors_share_a_base(error):
    assert isinstance(error, PredictiveError)


def test_model_errors_carry_type():
    error = ModelNotFoundError("demand")

    assert isinstance(error, ModelError)
    assert error.model_type == "demand"
    assert str(error) == "Model demand not found"


def test_not_ready_message():
    assert str(ModelNotReadyError("sales")) == "Model sales is not available"
    assert str(ModelNotReadyError("sales", "Model not initialized")) == "Model not initialized"


def test_timeout_is_a_timeout_error():
    error = OperationTimeoutError("Prediction with sales", 5)

    assert isinstance(error, TimeoutError)
    assert error.timeout_seconds == 5
    assert str(error) == "Prediction with sales timed out after 5000ms"
