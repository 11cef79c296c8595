"""
Model state storage.

States are keyed by model name and always overwritten wholesale. The
in-memory backend is the default and loses everything on process exit;
Redis can be selected when states must outlive the process.
"""

import json
from abc import ABC, abstractmethod
from typing import Optional

import redis
import structlog

from src.core.errors import PersistenceError

from .models import ModelState, StorageConfig

logger = structlog.get_logger(__name__)


def estimate_state_size(name: str, state: ModelState) -> int:
    """Rough byte count of a state: raw weight bytes + topology JSON + key"""
    size = sum(w.nbytes for w in state.weights)
    size += len(json.dumps(state.topology))
    size += len(name)
    return size


class StorageAdapter(ABC):
    """Key-value store of ModelState snapshots"""

    @abstractmethod
    def save_model(self, name: str, state: ModelState) -> None:
        pass

    @abstractmethod
    def load_model(self, name: str) -> Optional[ModelState]:
        pass

    @abstractmethod
    def delete_model(self, name: str) -> None:
        pass

    @abstractmethod
    def list_models(self) -> list[str]:
        pass

    @abstractmethod
    def clear_all(self) -> None:
        pass

    def get_stats(self) -> dict[str, int]:
        """Model count and estimated memory usage (observability only)"""
        total = 0
        names = self.list_models()
        for name in names:
            state = self.load_model(name)
            if state is not None:
                total += estimate_state_size(name, state)
        return {"total_models": len(names), "memory_usage": total}


class InMemoryStorageAdapter(StorageAdapter):
    """Process-local storage backend"""

    def __init__(self):
        self._states: dict[str, ModelState] = {}

    def save_model(self, name: str, state: ModelState) -> None:
        self._states[name] = state
        logger.debug("Model saved to memory", model=name)

    def load_model(self, name: str) -> Optional[ModelState]:
        state = self._states.get(name)
        if state is not None:
            logger.debug("Model loaded from memory", model=name)
        return state

    def delete_model(self, name: str) -> None:
        self._states.pop(name, None)
        logger.debug("Model deleted from memory", model=name)

    def list_models(self) -> list[str]:
        return list(self._states)

    def clear_all(self) -> None:
        self._states.clear()
        logger.info("All model states cleared from memory")


class RedisStorageAdapter(StorageAdapter):
    """Redis storage backend (JSON-serialized states)"""

    def __init__(self, config: StorageConfig, client: redis.Redis | None = None):
        self.prefix = config.key_prefix
        self.ttl = config.ttl_seconds
        try:
            self.redis = client or redis.Redis(
                host=config.redis_host,
                port=config.redis_port,
                db=config.redis_db,
                password=config.redis_password,
                decode_responses=True,
            )
            self.redis.ping()
            logger.info("Redis model storage initialized", host=config.redis_host, port=config.redis_port)
        except redis.RedisError as e:
            logger.error("Failed to initialize Redis", error=str(e))
            raise PersistenceError(f"Redis unavailable: {e}") from e

    def save_model(self, name: str, state: ModelState) -> None:
        key = self._make_key(name)
        try:
            payload = json.dumps(state.to_dict())
            if self.ttl:
                self.redis.setex(key, self.ttl, payload)
            else:
                self.redis.set(key, payload)
            logger.debug("Model saved to Redis", key=key)
        except (redis.RedisError, TypeError, ValueError) as e:
            logger.error("Failed to save model to Redis", key=key, error=str(e))
            raise PersistenceError(f"Failed to save model {name}: {e}") from e

    def load_model(self, name: str) -> Optional[ModelState]:
        key = self._make_key(name)
        try:
            data = self.redis.get(key)
            if data is None:
                return None
            return ModelState.from_dict(json.loads(data))
        except (redis.RedisError, KeyError, TypeError, ValueError) as e:
            logger.error("Failed to load model from Redis", key=key, error=str(e))
            raise PersistenceError(f"Failed to load model {name}: {e}") from e

    def delete_model(self, name: str) -> None:
        try:
            self.redis.delete(self._make_key(name))
        except redis.RedisError as e:
            raise PersistenceError(f"Failed to delete model {name}: {e}") from e

    def list_models(self) -> list[str]:
        try:
            keys = self.redis.scan_iter(match=f"{self.prefix}:*")
            return [key[len(self.prefix) + 1 :] for key in keys]
        except redis.RedisError as e:
            raise PersistenceError(f"Failed to list models: {e}") from e

    def clear_all(self) -> None:
        for name in self.list_models():
            self.delete_model(name)
        logger.info("All model states cleared from Redis", prefix=self.prefix)

    def _make_key(self, name: str) -> str:
        return f"{self.prefix}:{name}"


STORAGE_BACKENDS = {
    "memory": lambda config: InMemoryStorageAdapter(),
    "redis": RedisStorageAdapter,
}


def create_storage(config: StorageConfig | None = None) -> StorageAdapter:
    """Factory for the configured storage backend

    Raises:
        ValueError: If the backend is not registered
    """
    config = config or StorageConfig()
    if config.backend not in STORAGE_BACKENDS:
        available = ", ".join(STORAGE_BACKENDS)
        raise ValueError(f"Unknown storage backend '{config.backend}'. Available backends: {available}")
    return STORAGE_BACKENDS[config.backend](config)
