"""Unit tests for data models."""

from couch_session.core.models import (
    IndexRow,
    Liveness,
    ProbeResult,
    ProbeStatus,
    SessionRecord,
)


class TestSessionRecord:
    """Test SessionRecord dataclass."""

    def test_defaults(self):
        """A new record has no revision and a one-day TTL."""
        record = SessionRecord(id="sess:abc")
        assert record.revision is None
        assert record.payload == {}
        assert record.ttl_seconds == 86400

    def test_expires_at(self):
        """Test the expiry instant in milliseconds."""
        record = SessionRecord(id="sess:abc", ttl_seconds=10, modified_at_ms=1000)
        assert record.expires_at_ms == 11000


class TestIndexRow:
    """Test IndexRow."""

    def test_deletion_marker(self):
        """Deletion markers carry the row's id and revision."""
        row = IndexRow(id="sess:1", revision="3-abc")
        assert row.deletion_marker() == {"_id": "sess:1", "_rev": "3-abc", "_deleted": True}


class TestProbeResult:
    """Test ProbeResult and related enums."""

    def test_found(self):
        """Test a found probe carries its revision."""
        probe = ProbeResult.found("2-xyz")
        assert probe.exists
        assert probe.status is ProbeStatus.FOUND
        assert probe.revision == "2-xyz"

    def test_not_found(self):
        """Test a not-found probe has no revision."""
        probe = ProbeResult.not_found()
        assert not probe.exists
        assert probe.revision is None


def test_liveness_values():
    """Test the liveness enum values."""
    assert {l.value for l in Liveness} == {"ABSENT", "EXPIRED", "LIVE"}
