"""
Predictive Analytics Orchestration

Pluggable registry of forecasting models behind a single facade.

Architecture:
- Feature Pipeline: ordered extractors + transformers producing a finite vector
- Models: lifecycle contract (initialize / predict / retrain / dispose)
- Registry + Orchestrator: resolve a model and run it on one request
- Storage: replaceable key-value persistence of model state (memory, Redis)
- Scheduler: periodic retraining, cancellable

Usage:
    # Retrain the models from the record store once
    python -m src.predictive.train

    # Retrain every 60 minutes
    python -m src.predictive.train --schedule 60
"""

from .features import FeatureExtractor, FeaturePipeline, FeatureTransformer
from .methods import PredictiveModel, SalesPredictor, get_model
from .models import (
    ContinuousLearningConfig,
    FeatureVector,
    ModelConfig,
    ModelMetadata,
    ModelState,
    Prediction,
    PredictionRequest,
    PredictionResponse,
    ServiceConfig,
    StorageConfig,
)
from .orchestrator import ModelOrchestrator
from .registry import ModelRegistry
from .scheduler import ContinuousLearningScheduler
from .service import ModelEntry, PredictiveService, build_service, create_default_service
from .storage import InMemoryStorageAdapter, RedisStorageAdapter, StorageAdapter, create_storage

__all__ = [
    "FeatureExtractor",
    "FeatureTransformer",
    "FeaturePipeline",
    "PredictiveModel",
    "SalesPredictor",
    "get_model",
    "FeatureVector",
    "Prediction",
    "ModelConfig",
    "ModelMetadata",
    "ModelState",
    "PredictionRequest",
    "PredictionResponse",
    "ServiceConfig",
    "StorageConfig",
    "ContinuousLearningConfig",
    "ModelOrchestrator",
    "ModelRegistry",
    "ContinuousLearningScheduler",
    "ModelEntry",
    "PredictiveService",
    "build_service",
    "create_default_service",
    "StorageAdapter",
    "InMemoryStorageAdapter",
    "RedisStorageAdapter",
    "create_storage",
]
