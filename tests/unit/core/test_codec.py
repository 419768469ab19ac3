"""Unit tests for SessionCodec."""

from couch_session.core.codec import SessionCodec


class TestEncode:
    """Test payload to document encoding."""

    def test_attaches_metadata(self):
        """Test id, ttl and modification time are stamped."""
        codec = SessionCodec()
        doc = codec.encode("sess:key", {"data": "data"}, 300, modified_at_ms=1234)
        assert doc == {"_id": "sess:key", "session_ttl": 300, "session_modified": 1234, "data": "data"}

    def test_strips_caller_revision(self):
        """The caller's `_rev` never reaches the write."""
        doc = SessionCodec().encode("sess:key", {"_rev": "stale", "data": 1}, 300)
        assert "_rev" not in doc

    def test_explicit_revision_is_attached(self):
        """Test an explicit revision is sent as the expected revision."""
        doc = SessionCodec().encode("sess:key", {"_rev": "stale"}, 300, revision="4-db")
        assert doc["_rev"] == "4-db"

    def test_does_not_alias_payload(self):
        """Test the document is a copy of the payload."""
        payload = {"cart": {"items": [1, 2]}}
        doc = SessionCodec().encode("sess:key", payload, 300)
        doc["cart"]["items"].append(3)
        assert payload == {"cart": {"items": [1, 2]}}

    def test_overwrites_caller_metadata(self):
        """Test metadata fields in the payload are replaced."""
        doc = SessionCodec().encode("sess:key", {"_id": "other", "session_ttl": 1}, 300)
        assert doc["_id"] == "sess:key"
        assert doc["session_ttl"] == 300


class TestDecode:
    """Test document to payload decoding."""

    def test_strips_metadata(self):
        """Test metadata fields are removed from the payload."""
        payload, revision = SessionCodec().decode(
            {"_id": "sess:key", "_rev": "1-a", "session_ttl": 60, "session_modified": 1, "user": "u1"}
        )
        assert payload == {"user": "u1"}
        assert revision == "1-a"

    def test_missing_revision(self):
        """Test a document without a revision decodes to None."""
        payload, revision = SessionCodec().decode({"_id": "sess:key", "user": "u1"})
        assert revision is None
        assert payload == {"user": "u1"}

    def test_to_record(self):
        """Test building a SessionRecord from a document."""
        record = SessionCodec().to_record(
            {"_id": "sess:key", "_rev": "1-a", "session_ttl": 60, "session_modified": 99, "user": "u1"}
        )
        assert record.id == "sess:key"
        assert record.revision == "1-a"
        assert record.ttl_seconds == 60
        assert record.modified_at_ms == 99
        assert record.payload == {"user": "u1"}


class TestTTLFor:
    """Test TTL lookup from a payload."""

    def test_store_ttl(self):
        """Test the store TTL wins over the cookie."""
        assert SessionCodec(store_ttl=2000).ttl_for({"cookie": {"maxAge": 1000}}) == 2000

    def test_cookie_ttl(self):
        """Test the cookie max-age sets the TTL."""
        assert SessionCodec().ttl_for({"cookie": {"maxAge": 60_000}}) == 60

    def test_default_ttl(self):
        """Test the one-day default."""
        assert SessionCodec().ttl_for({}) == 86400
