"""
Tests for core PostgreSQL connection management.
"""

from unittest.mock import MagicMock, patch

import pytest

from src.core.database import PostgresConnection


@pytest.fixture
def mock_connect():
    with patch("src.core.database.psycopg2.connect") as connect:
        connect.return_value = MagicMock()
        yield connect


def make_connection():
    return PostgresConnection(
        host="localhost",
        port=5432,
        database="test_db",
        user="test_user",
        password="test_password",
    )


class TestPostgresConnection:
    """Tests for PostgresConnection base class."""

    def test_initialization_success(self, mock_connect):
        """Test successful database connection initialization."""
        conn = make_connection()

        mock_connect.assert_called_once_with(
            host="localhost",
            port=5432,
            database="test_db",
            user="test_user",
            password="test_password",
            connect_timeout=10,
        )
        assert conn.connection == mock_connect.return_value

    def test_initialization_failure(self, mock_connect):
        """Test connection initialization failure."""
        mock_connect.side_effect = Exception("Connection failed")

        with pytest.raises(Exception, match="Connection failed"):
            make_connection()

    def test_get_cursor_commits(self, mock_connect):
        conn = make_connection()

        with conn.get_cursor() as cursor:
            assert cursor is not None

        conn.connection.commit.assert_called_once()
        conn.connection.cursor.return_value.close.assert_called_once()

    def test_get_cursor_rolls_back(self, mock_connect):
        """Test cursor context manager rolls back and re-raises on error."""
        conn = make_connection()

        with pytest.raises(ValueError, match="bad query"):
            with conn.get_cursor():
                raise ValueError("bad query")

        conn.connection.rollback.assert_called_once()
        conn.connection.commit.assert_not_called()

    def test_fetch_all_returns_dicts(self, mock_connect):
        conn = make_connection()
        cursor = conn.connection.cursor.return_value
        cursor.description = [("id",), ("quantity",)]
        cursor.fetchall.return_value = [(1, 5), (2, 7)]

        rows = conn.fetch_all("SELECT * FROM sales")

        cursor.execute.assert_called_once_with("SELECT * FROM sales", None)
        assert rows == [{"id": 1, "quantity": 5}, {"id": 2, "quantity": 7}]

    def test_check_health(self, mock_connect):
        conn = make_connection()
        conn.connection.cursor.return_value.fetchone.return_value = (1,)

        assert conn.check_health() is True

    def test_check_health_failure(self, mock_connect):
        conn = make_connection()
        conn.connection.cursor.return_value.execute.side_effect = Exception("down")

        assert conn.check_health() is False

    def test_close(self, mock_connect):
        conn = make_connection()
        connection = conn.connection

        conn.close()
        conn.close()

        connection.close.assert_called_once()
        assert conn.connection is None
