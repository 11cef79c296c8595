"""
Tests for the record store backends.
"""

from unittest.mock import MagicMock, patch

import pytest

from src.records import InMemoryRecordStore, PostgresRecordStore, RecordStoreConfig


class TestInMemoryRecordStore:
    def test_unknown_entity_is_empty(self):
        assert InMemoryRecordStore().get_all("sales") == []

    def test_returns_copies(self):
        store = InMemoryRecordStore({"sales": [{"quantity": 1}]})

        rows = store.get_all("sales")
        rows[0]["quantity"] = 99

        assert store.get_all("sales") == [{"quantity": 1}]

    def test_add_and_extend(self):
        store = InMemoryRecordStore()
        store.add("products", {"id": 1})
        store.extend("products", [{"id": 2}, {"id": 3}])

        assert [p["id"] for p in store.get_all("products")] == [1, 2, 3]

        store.clear()
        assert store.get_all("products") == []


class TestPostgresRecordStore:
    @patch("src.core.database.psycopg2.connect")
    def test_uses_config(self, mock_connect):
        PostgresRecordStore(RecordStoreConfig(postgres_host="db", postgres_database="ops"))

        kwargs = mock_connect.call_args.kwargs
        assert kwargs["host"] == "db"
        assert kwargs["database"] == "ops"
        assert kwargs["user"] == "operations"

    @patch("src.core.database.psycopg2.connect")
    def test_get_all_reads_entity_table(self, mock_connect):
        connection = MagicMock()
        mock_connect.return_value = connection
        cursor = connection.cursor.return_value
        cursor.description = [("id",), ("amount",)]
        cursor.fetchall.return_value = [(1, 250.0)]

        rows = PostgresRecordStore(RecordStoreConfig()).get_all("cash_flow")

        cursor.execute.assert_called_once_with("SELECT * FROM cash_flow", None)
        assert rows == [{"id": 1, "amount": 250.0}]

    @patch("src.core.database.psycopg2.connect")
    def test_unknown_entity(self, mock_connect):
        store = PostgresRecordStore(RecordStoreConfig())

        with pytest.raises(ValueError, match="Unknown entity"):
            store.get_all("users; DROP TABLE sales")
