"""
Tests for model state storage backends.
"""

import json
from datetime import UTC, datetime
from unittest.mock import MagicMock

import numpy as np
import pytest
import redis

from src.core.errors import PersistenceError
from src.predictive.models import ModelState, StorageConfig
from src.predictive.storage import (
    InMemoryStorageAdapter,
    RedisStorageAdapter,
    create_storage,
    estimate_state_size,
)


@pytest.fixture
def state():
    return ModelState(
        topology={"input_dim": 2, "layers": [{"units": 1, "activation": "linear"}]},
        weights=[np.ones((2, 1), dtype=np.float32), np.zeros(1, dtype=np.float32)],
        last_training=datetime(2026, 2, 1, 8, 30, tzinfo=UTC),
        training_config={"target_mean": 12.5, "target_std": 2.0},
    )


@pytest.fixture
def redis_client():
    """MagicMock Redis client backed by a dict"""
    data = {}
    client = MagicMock()
    client.set.side_effect = lambda key, value: data.__setitem__(key, value)
    client.setex.side_effect = lambda key, ttl, value: data.__setitem__(key, value)
    client.get.side_effect = data.get
    client.delete.side_effect = lambda key: data.pop(key, None)
    client.scan_iter.side_effect = lambda match: [k for k in list(data) if k.startswith(match[:-1])]
    client.data = data
    return client


class TestInMemoryStorage:
    def test_load_missing(self):
        assert InMemoryStorageAdapter().load_model("nope") is None

    def test_save_overwrites(self, state):
        storage = InMemoryStorageAdapter()
        storage.save_model("m", state)
        newer = ModelState(topology=state.topology, weights=state.weights, last_training=datetime.now(UTC))
        storage.save_model("m", newer)

        assert storage.load_model("m") is newer
        assert storage.list_models() == ["m"]

    def test_delete_and_clear(self, state):
        storage = InMemoryStorageAdapter()
        storage.save_model("a", state)
        storage.save_model("b", state)

        storage.delete_model("a")
        storage.delete_model("missing")
        assert storage.list_models() == ["b"]

        storage.clear_all()
        assert storage.list_models() == []

    def test_stats(self, state):
        storage = InMemoryStorageAdapter()
        storage.save_model("m", state)

        stats = storage.get_stats()

        assert stats["total_models"] == 1
        assert stats["memory_usage"] == estimate_state_size("m", state)
        # 2 float32 weights + 1 float32 bias
        assert stats["memory_usage"] > 12

    def test_stats_empty(self):
        assert InMemoryStorageAdapter().get_stats() == {"total_models": 0, "memory_usage": 0}


class TestRedisStorage:
    def test_roundtrip(self, state, redis_client):
        storage = RedisStorageAdapter(StorageConfig(backend="redis"), client=redis_client)

        storage.save_model("SalesPredictor", state)
        loaded = storage.load_model("SalesPredictor")

        assert "predictive:model:SalesPredictor" in redis_client.data
        assert loaded.topology == state.topology
        assert loaded.last_training == state.last_training
        assert loaded.training_config == state.training_config
        np.testing.assert_array_equal(loaded.weights[0], state.weights[0])

    def test_ttl_uses_setex(self, state, redis_client):
        config = StorageConfig(backend="redis", ttl_seconds=3600)
        storage = RedisStorageAdapter(config, client=redis_client)

        storage.save_model("m", state)

        redis_client.setex.assert_called_once()
        assert redis_client.setex.call_args.args[1] == 3600

    def test_list_strips_prefix(self, state, redis_client):
        storage = RedisStorageAdapter(StorageConfig(backend="redis"), client=redis_client)
        storage.save_model("a", state)
        storage.save_model("b", state)

        assert sorted(storage.list_models()) == ["a", "b"]

        storage.clear_all()
        assert storage.list_models() == []

    def test_load_missing(self, redis_client):
        storage = RedisStorageAdapter(StorageConfig(backend="redis"), client=redis_client)
        assert storage.load_model("missing") is None

    def test_corrupt_payload(self, redis_client):
        redis_client.data["predictive:model:bad"] = json.dumps({"topology": {}})
        storage = RedisStorageAdapter(StorageConfig(backend="redis"), client=redis_client)

        with pytest.raises(PersistenceError, match="Failed to load model bad"):
            storage.load_model("bad")

    def test_unreachable_server(self):
        client = MagicMock()
        client.ping.side_effect = redis.ConnectionError("connection refused")

        with pytest.raises(PersistenceError, match="Redis unavailable"):
            RedisStorageAdapter(StorageConfig(backend="redis"), client=client)

    def test_write_failure(self, state, redis_client):
        redis_client.set.side_effect = redis.ConnectionError("gone")
        storage = RedisStorageAdapter(StorageConfig(backend="redis"), client=redis_client)

        with pytest.raises(PersistenceError, match="Failed to save model m"):
            storage.save_model("m", state)


class TestCreateStorage:
    def test_default_is_memory(self):
        assert isinstance(create_storage(), InMemoryStorageAdapter)

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown storage backend"):
            create_storage(StorageConfig(backend="s3"))
