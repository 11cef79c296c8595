"""
Model orchestrator: binds feature extraction to model execution for one
request. Holds no state besides the shared feature pipeline.
"""

import time
from collections.abc import Mapping, Sequence
from typing import Any

import structlog

from .features import FeaturePipeline
from .methods.base import PredictiveModel
from .models import Prediction, utcnow

logger = structlog.get_logger(__name__)


class ModelOrchestrator:
    def __init__(self, feature_pipeline: FeaturePipeline):
        self.feature_pipeline = feature_pipeline

    def pipeline_for(self, model: PredictiveModel) -> FeaturePipeline:
        """Models may declare their own pipeline, otherwise the shared one is used"""
        return model.feature_pipeline or self.feature_pipeline

    async def predict(self, model: PredictiveModel, raw_input: Mapping[str, Any]) -> Prediction:
        start_time = time.perf_counter()

        try:
            features = self.pipeline_for(model).process(raw_input)
            prediction = await model.predict(features)
        except Exception as e:
            logger.error("Prediction failed", model=model.name, error=str(e))
            raise

        prediction.timestamp = utcnow()
        prediction.processing_time = (time.perf_counter() - start_time) * 1000
        return prediction

    async def retrain(self, model: PredictiveModel, data: Sequence[Any]) -> dict[str, Any]:
        try:
            stats = await model.retrain(data)
        except Exception as e:
            logger.error("Retraining failed", model=model.name, error=str(e))
            raise

        logger.info("Model retrained successfully", model=model.name)
        return stats

    async def batch_predict(
        self, model: PredictiveModel, inputs: Sequence[Mapping[str, Any]]
    ) -> list[Prediction]:
        """Predict sequentially, skipping inputs that fail"""
        predictions = []
        failed = 0

        for index, raw_input in enumerate(inputs):
            try:
                predictions.append(await self.predict(model, raw_input))
            except Exception as e:
                failed += 1
                logger.warning("Batch prediction item skipped", model=model.name, index=index, error=str(e))

        logger.debug("Batch prediction completed", model=model.name, succeeded=len(predictions), failed=failed)
        return predictions
