"""
Error taxonomy shared by the predictive services.

Callers can catch PredictiveError to handle every failure raised by the
facade, or a specific subclass to react to one kind.
"""


class PredictiveError(Exception):
    """Base class for all predictive analytics errors"""


class ValidationError(PredictiveError):
    """Malformed request or training payload"""


class ModelError(PredictiveError):
    """Error tied to a specific model type"""

    def __init__(self, model_type: str, message: str | None = None):
        self.model_type = model_type
        super().__init__(message or self.default_message(model_type))

    @staticmethod
    def default_message(model_type: str) -> str:
        return f"Model {model_type} failed"


class ModelNotFoundError(ModelError):
    """No model is registered under the requested type"""

    @staticmethod
    def default_message(model_type: str) -> str:
        return f"Model {model_type} not found"


class ModelNotReadyError(ModelError):
    """Model is registered but not initialized or trained"""

    @staticmethod
    def default_message(model_type: str) -> str:
        return f"Model {model_type} is not available"


class OperationTimeoutError(PredictiveError, TimeoutError):
    """Operation did not finish before its deadline"""

    def __init__(self, operation: str, timeout_seconds: float):
        self.operation = operation
        self.timeout_seconds = timeout_seconds
        super().__init__(f"{operation} timed out after {timeout_seconds * 1000:.0f}ms")


class FeatureError(PredictiveError):
    """Feature extraction produced an empty or non-finite vector"""


class PersistenceError(PredictiveError):
    """Model state could not be loaded or saved"""
