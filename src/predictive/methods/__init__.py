"""
Forecasting model registry and factory.
"""

from ..storage import StorageAdapter
from .base import NetworkModel, PredictiveModel
from .sales import SalesPredictor

# Model type -> implementing class
MODEL_CLASSES = {
    "sales": SalesPredictor,
    # Future models:
    # "demand": DemandForecaster,
    # "inventory": InventoryOptimizer,
}


def get_model(model_type: str, storage: StorageAdapter, **kwargs) -> PredictiveModel:
    """Factory to create a forecasting model

    Args:
        model_type: Registered model type (e.g., 'sales')
        storage: Storage adapter the model persists its state through
        **kwargs: Extra constructor arguments (config, seed, ...)

    Raises:
        ValueError: If model_type is not registered
    """
    if model_type not in MODEL_CLASSES:
        available = ", ".join(MODEL_CLASSES.keys())
        raise ValueError(f"Unknown model type '{model_type}'. Available models: {available}")

    return MODEL_CLASSES[model_type](storage, **kwargs)


def list_model_types() -> list[str]:
    return list(MODEL_CLASSES.keys())


__all__ = [
    "PredictiveModel",
    "NetworkModel",
    "SalesPredictor",
    "get_model",
    "list_model_types",
]
