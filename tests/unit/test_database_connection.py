from unittest.mock import MagicMock, patch

import pytest

from regforms.config.settings import Settings
from regforms.database.connection import Database, build_conninfo


class TestBuildConninfo:
    def test_includes_all_parts(self) -> None:
        settings = Settings(
            db_host="db.local", db_port=5433, db_database="forms", db_username="u", db_password="p"
        )
        assert build_conninfo(settings) == "host=db.local port=5433 dbname=forms user=u password=p"


class TestDatabase:
    @patch("regforms.database.connection.ConnectionPool")
    def test_opens_pool_with_configured_size(self, mock_pool_cls: MagicMock) -> None:
        Database(Settings(db_pool_max_size=4))

        kwargs = mock_pool_cls.call_args.kwargs
        assert kwargs["max_size"] == 4
        assert kwargs["open"] is True

    @patch("regforms.database.connection.ConnectionPool")
    def test_context_manager_closes_pool(self, mock_pool_cls: MagicMock) -> None:
        with Database(Settings()):
            pass
        mock_pool_cls.return_value.close.assert_called_once()

    @patch("regforms.database.connection.ConnectionPool")
    def test_close_is_idempotent(self, mock_pool_cls: MagicMock) -> None:
        db = Database(Settings())
        db.close()
        db.close()
        mock_pool_cls.return_value.close.assert_called_once()

    @patch("regforms.database.connection.ConnectionPool")
    def test_connection_after_close_raises(self, mock_pool_cls: MagicMock) -> None:
        db = Database(Settings())
        db.close()
        with pytest.raises(RuntimeError, match="closed"):
            with db.connection():
                pass


class TestCheckHealth:
    @patch("regforms.database.connection.ConnectionPool")
    def test_healthy(self, mock_pool_cls: MagicMock) -> None:
        conn = MagicMock()
        conn.execute.return_value.fetchone.return_value = ("2026-10-19 10:00",)
        mock_pool_cls.return_value.connection.return_value.__enter__.return_value = conn

        health = Database(Settings()).check_health()

        assert health.healthy is True
        assert health.timestamp == "2026-10-19 10:00"

    @patch("regforms.database.connection.ConnectionPool")
    def test_failure_is_reported_not_raised(self, mock_pool_cls: MagicMock) -> None:
        mock_pool_cls.return_value.connection.side_effect = Exception("connection refused")

        health = Database(Settings()).check_health()

        assert health.healthy is False
        assert health.error == "connection refused"
