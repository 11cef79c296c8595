"""
Predictive service facade.

Single entry point for predict / retrain / initialize / dispose. Validates
requests, resolves models through the registry and enforces deadlines.
"""

import asyncio
import time
from collections.abc import Awaitable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

import structlog

from src.core.errors import (
    ModelNotFoundError,
    ModelNotReadyError,
    OperationTimeoutError,
    PredictiveError,
    ValidationError,
)

from .features import FeaturePipeline, default_feature_pipeline
from .methods import SalesPredictor
from .methods.base import PredictiveModel
from .models import (
    DEFAULT_MODEL_CONFIGS,
    MODEL_TYPES,
    ModelInfo,
    ModelMetadata,
    ModelPerformance,
    PredictionOptions,
    PredictionRequest,
    PredictionResponse,
    ServiceConfig,
)
from .orchestrator import ModelOrchestrator
from .registry import ModelRegistry
from .storage import InMemoryStorageAdapter, StorageAdapter

logger = structlog.get_logger(__name__)

T = TypeVar("T")

LOW_CONFIDENCE_NOTE = "Confidence below requested threshold"


@dataclass
class ModelEntry:
    """(type, model, metadata) triple used to build a service"""

    model_type: str
    model: PredictiveModel
    metadata: ModelMetadata


class PredictiveService:
    def __init__(
        self,
        registry: ModelRegistry,
        orchestrator: ModelOrchestrator,
        storage: StorageAdapter,
        config: ServiceConfig | None = None,
    ):
        self.registry = registry
        self.orchestrator = orchestrator
        self.storage = storage
        self.config = config or ServiceConfig()

    async def predict(self, request: PredictionRequest | Mapping[str, Any]) -> PredictionResponse:
        """Run one prediction

        Raises:
            ValidationError: Malformed request
            ModelNotFoundError: No model registered for the type
            ModelNotReadyError: Model registered but not ready
            OperationTimeoutError: Prediction exceeded the deadline
        """
        start_time = time.perf_counter()
        request = self._validate_request(request)

        model = self._resolve_model(request.model_type)
        if not self.registry.is_model_available(request.model_type):
            raise ModelNotReadyError(request.model_type)

        prediction = await self._with_timeout(
            self.orchestrator.predict(model, request.input),
            self.config.prediction_timeout_seconds,
            f"Prediction with {request.model_type}",
        )

        options = request.options
        if options.confidence_threshold is not None and prediction.confidence < options.confidence_threshold:
            prediction.insights.append(LOW_CONFIDENCE_NOTE)
        if not options.include_insights:
            prediction.insights = []

        metadata = self.registry.get_metadata(request.model_type)
        response = PredictionResponse(
            prediction=prediction,
            model_info=ModelInfo(
                name=metadata.name if metadata else request.model_type,
                version=metadata.version if metadata else "1.0.0",
                confidence=prediction.confidence,
            ),
            processing_time=(time.perf_counter() - start_time) * 1000,
        )

        logger.debug(
            "Prediction served",
            model_type=request.model_type,
            value=round(prediction.value, 4),
            confidence=round(prediction.confidence, 3),
            elapsed_ms=round(response.processing_time, 1),
        )
        return response

    async def retrain(self, model_type: str, data: Sequence[Any]) -> dict[str, Any]:
        """Retrain one model under the retraining deadline"""
        if not model_type:
            raise ValidationError("model_type is required")
        if not isinstance(data, Sequence) or isinstance(data, (str, bytes)):
            raise ValidationError("data must be a list of records")

        model = self._resolve_model(model_type)
        stats = await self._with_timeout(
            self.orchestrator.retrain(model, data),
            self.config.retraining_timeout_seconds,
            f"Retraining of {model_type}",
        )
        self.registry.record_retrain(model_type)
        return stats

    async def retrain_all(
        self, data_by_type: Mapping[str, Sequence[Any]], min_data_points: int = 0
    ) -> dict[str, int]:
        """Retrain every model that has data, one after the other

        Returns:
            Dictionary with retraining statistics
        """
        stats = {"total": 0, "successful": 0, "failed": 0, "skipped": 0}
        start_time = time.perf_counter()

        for model_type in self.registry.get_all_models():
            stats["total"] += 1
            data = data_by_type.get(model_type) or []

            if len(data) < max(min_data_points, 1):
                logger.debug(
                    "Insufficient data, skipping",
                    model_type=model_type,
                    points=len(data),
                    required=min_data_points,
                )
                stats["skipped"] += 1
                continue

            try:
                await self.retrain(model_type, data)
                stats["successful"] += 1
            except PredictiveError as e:
                logger.error("Failed to retrain model", model_type=model_type, error=str(e))
                stats["failed"] += 1

        logger.info(
            "Retraining completed",
            elapsed_sec=round(time.perf_counter() - start_time, 2),
            **stats,
        )
        return stats

    async def initialize(self) -> None:
        logger.info("Initializing predictive service", models=self.registry.get_all_models())
        try:
            await self.registry.initialize_all_models()
        except Exception as e:
            logger.error("Predictive service initialization failed", error=str(e))
            raise
        logger.info("Predictive service initialized")

    async def dispose(self) -> None:
        try:
            await self.registry.dispose_all_models()
        except Exception as e:
            logger.error("Error disposing predictive service", error=str(e))
            raise
        logger.info("Predictive service disposed")

    def get_model_status(self, model_type: str) -> ModelMetadata | None:
        return self.registry.get_metadata(model_type)

    def get_available_models(self) -> list[str]:
        return self.registry.get_all_models()

    def _resolve_model(self, model_type: str) -> PredictiveModel:
        model = self.registry.get_model(model_type)
        if model is None:
            raise ModelNotFoundError(model_type)
        return model

    @staticmethod
    def _validate_request(request: PredictionRequest | Mapping[str, Any]) -> PredictionRequest:
        if isinstance(request, Mapping):
            try:
                request = PredictionRequest.from_dict(request)
            except TypeError as e:
                raise ValidationError(f"Invalid request options: {e}") from e
        elif not isinstance(request, PredictionRequest):
            raise ValidationError("request must be a PredictionRequest or a mapping")

        if not request.model_type or not isinstance(request.model_type, str):
            raise ValidationError("model_type is required")
        if request.input is None or not isinstance(request.input, Mapping):
            raise ValidationError("input must be a valid object")

        if not isinstance(request.options, PredictionOptions):
            raise ValidationError("options must be a valid object")

        threshold = request.options.confidence_threshold
        if threshold is not None and (
            isinstance(threshold, bool)
            or not isinstance(threshold, (int, float))
            or not 0 <= threshold <= 1
        ):
            raise ValidationError("options.confidence_threshold must be a number between 0 and 1")
        if not isinstance(request.options.include_insights, bool):
            raise ValidationError("options.include_insights must be a boolean")
        return request

    @staticmethod
    async def _with_timeout(operation: Awaitable[T], timeout_seconds: float, label: str) -> T:
        """Await operation, cancelling it when the deadline passes"""
        try:
            return await asyncio.wait_for(operation, timeout=timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning("Operation timed out", operation=label, timeout_seconds=timeout_seconds)
            raise OperationTimeoutError(label, timeout_seconds) from None


def default_metadata(model_type: str, name: str) -> ModelMetadata:
    return ModelMetadata(
        name=name,
        version="1.0.0",
        type=model_type,
        config=DEFAULT_MODEL_CONFIGS[model_type],
        performance=ModelPerformance(accuracy=0.85, precision=0.82, recall=0.88, f1_score=0.85),
    )


def build_service(
    entries: Iterable[ModelEntry | tuple[str, PredictiveModel, ModelMetadata]],
    storage: StorageAdapter | None = None,
    pipeline: FeaturePipeline | None = None,
    config: ServiceConfig | None = None,
) -> PredictiveService:
    """Wire a service from explicit (type, model, metadata) triples"""
    registry = ModelRegistry()
    for entry in entries:
        if not isinstance(entry, ModelEntry):
            entry = ModelEntry(*entry)
        registry.register_model(entry.model_type, entry.model, entry.metadata)

    orchestrator = ModelOrchestrator(pipeline or default_feature_pipeline())
    return PredictiveService(registry, orchestrator, storage or InMemoryStorageAdapter(), config)


def create_default_service(
    storage: StorageAdapter | None = None,
    config: ServiceConfig | None = None,
    seed: int | None = None,
) -> PredictiveService:
    """Service with every built-in model registered"""
    storage = storage or InMemoryStorageAdapter()
    entries = [
        ModelEntry(
            MODEL_TYPES["SALES"],
            SalesPredictor(storage, seed=seed),
            default_metadata(MODEL_TYPES["SALES"], "Sales Predictor"),
        ),
    ]
    return build_service(entries, storage=storage, config=config)
