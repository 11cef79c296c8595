"""
Core utilities shared across the application.
"""

from .database import PostgresConnection
from .errors import (
    FeatureError,
    ModelNotFoundError,
    ModelNotReadyError,
    OperationTimeoutError,
    PersistenceError,
    PredictiveError,
    ValidationError,
)
from .logger import setup_logging

__all__ = [
    "PostgresConnection",
    "setup_logging",
    "PredictiveError",
    "ValidationError",
    "ModelNotFoundError",
    "ModelNotReadyError",
    "OperationTimeoutError",
    "FeatureError",
    "PersistenceError",
]
