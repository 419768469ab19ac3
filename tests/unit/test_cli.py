"""Unit tests for the couch-session command line."""

import pytest
from click.testing import CliRunner

from couch_session import cli
from couch_session.core.store import SessionStore
from couch_session.errors import TransientError
from couch_session.storage.base import InMemoryDatabase

NOW = 1_700_000_000_000


class UnreachableDatabase(InMemoryDatabase):
    async def info(self):
        raise TransientError("connection refused")

    async def query_index(self, design, index, limit):
        raise TransientError("connection refused")


@pytest.fixture
def use_database(monkeypatch):
    """Route the CLI to the given database instead of a CouchDB url."""

    def _use(database):
        def _build(**kwargs):
            for key in ("url", "database", "timeout", "retries"):
                kwargs.pop(key)
            return SessionStore(database, check_on_init=False, **kwargs)

        monkeypatch.setattr(cli, "_build_store", _build)
        return database

    return _use


class TestCheck:
    """Test the check command."""

    def test_connect(self, use_database):
        """Test a reachable database prints connect."""
        use_database(InMemoryDatabase())
        result = CliRunner().invoke(cli.main, ["check"])
        assert result.exit_code == 0
        assert result.output.strip() == "connect"

    def test_disconnect(self, use_database):
        """Test an unreachable database exits 1."""
        use_database(UnreachableDatabase())
        result = CliRunner().invoke(cli.main, ["check"])
        assert result.exit_code == 1
        assert "disconnect" in result.output

    def test_invalid_url(self):
        """Test a malformed url is reported against --url."""
        result = CliRunner().invoke(cli.main, ["--url", "ftp://couch.local", "check"])
        assert result.exit_code == 2
        assert "invalid url" in result.output


class TestCleanup:
    """Test the cleanup command."""

    def test_removes_expired(self, use_database):
        """Test expired sessions are removed and counted."""
        db = InMemoryDatabase(clock=lambda: NOW)
        db._docs["sess:old"] = {"_id": "sess:old", "_rev": "1-a", "session_ttl": 1, "session_modified": NOW - 5000}
        db._docs["sess:new"] = {"_id": "sess:new", "_rev": "1-b", "session_ttl": 60, "session_modified": NOW}
        use_database(db)

        result = CliRunner().invoke(cli.main, ["cleanup", "--batch-size", "10"])

        assert result.exit_code == 0
        assert "removed 1 expired session(s)" in result.output
        assert set(db._docs) == {"sess:new"}

    def test_failure_exit_code(self, use_database):
        """Test a failed cleanup exits 1."""
        use_database(UnreachableDatabase())
        result = CliRunner().invoke(cli.main, ["cleanup"])
        assert result.exit_code == 1


class TestBuildStore:
    """Test how the CLI builds its store."""

    def test_bad_batch_size_is_not_blamed_on_url(self):
        """Test a store option error names the option, not --url."""
        result = CliRunner().invoke(cli.main, ["cleanup", "--batch-size", "0"])
        assert result.exit_code == 2
        assert "cleanup_batch_size must be a positive integer" in result.output
        assert "--url" not in result.output

    def test_bad_retries_names_retries(self):
        """Test an invalid --retries value is reported against --retries."""
        result = CliRunner().invoke(cli.main, ["--retries", "0", "check"])
        assert result.exit_code == 2
        assert "--retries" in result.output
        assert "--url" not in result.output

    @pytest.mark.asyncio
    async def test_no_initial_connection_check(self):
        """Test the store is built without scheduling its own connection check."""
        store = cli._build_store(url="http://couch.local:5984", database="sessions", timeout=1.0, retries=1)
        assert not store._tasks
        await store.close()
