"""
Model registry: the authoritative mapping from model type to
(model instance, metadata) and the source of truth for readiness.
"""

import asyncio

import structlog

from .methods.base import PredictiveModel
from .models import ModelMetadata, utcnow

logger = structlog.get_logger(__name__)


class ModelRegistry:
    def __init__(self):
        self._models: dict[str, PredictiveModel] = {}
        self._metadata: dict[str, ModelMetadata] = {}

    def register_model(self, model_type: str, model: PredictiveModel, metadata: ModelMetadata) -> None:
        """Register a model (the last registration for a type wins)"""
        self._models[model_type] = model
        self._metadata[model_type] = metadata
        logger.info("Registered model", model_type=model_type, version=metadata.version)

    def get_model(self, model_type: str) -> PredictiveModel | None:
        return self._models.get(model_type)

    def get_metadata(self, model_type: str) -> ModelMetadata | None:
        return self._metadata.get(model_type)

    def get_all_models(self) -> list[str]:
        return list(self._models)

    def is_model_available(self, model_type: str) -> bool:
        model = self._models.get(model_type)
        return model is not None and model.is_ready()

    def record_retrain(self, model_type: str) -> None:
        """Stamp metadata after a successful retrain"""
        metadata = self._metadata.get(model_type)
        if metadata is None:
            return
        now = utcnow()
        metadata.last_updated = now
        metadata.performance.last_evaluated = now

    async def initialize_all_models(self) -> None:
        """Initialize every model concurrently

        All-or-nothing: the first failure propagates and startup is aborted.
        Models that already started keep running to completion.
        """
        await asyncio.gather(*(model.initialize() for model in self._models.values()))
        logger.info("All models initialized", count=len(self._models))

    async def dispose_all_models(self) -> None:
        await asyncio.gather(*(model.dispose() for model in self._models.values()))
        logger.info("All models disposed", count=len(self._models))
