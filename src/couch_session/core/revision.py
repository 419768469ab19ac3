from __future__ import annotations

import logging
import typing as t

from couch_session.errors import NotFoundError
from couch_session.storage.base import DocumentDatabase

from .codec import SessionCodec
from .models import REV_FIELD, Payload, ProbeResult

_logger = logging.getLogger(__name__)


class RevisionTracker:
    """Optimistic concurrency for session writes.

    `write` probes the current revision and sends it as the expected revision.
    The probe and the write are separate round trips, so a concurrent writer
    may land in between; the database then rejects the write with
    `ConflictError`, which callers should treat as retryable.
    """

    def __init__(self, database: DocumentDatabase, codec: SessionCodec) -> None:
        self._db = database
        self._codec = codec

    async def probe(self, doc_id: str) -> ProbeResult:
        """Cheap revision lookup. Errors other than not-found propagate."""
        try:
            revision = await self._db.head(doc_id)
        except NotFoundError:
            return ProbeResult.not_found()
        return ProbeResult.found(revision)

    async def write(self, doc_id: str, payload: Payload, ttl_seconds: int) -> str:
        probe = await self.probe(doc_id)
        # Reflect the probed revision on the caller's session object.
        payload.pop(REV_FIELD, None)
        if probe.exists:
            payload[REV_FIELD] = probe.revision
        _logger.debug('write "%s" rev "%s"', doc_id, probe.revision)
        return await self.write_revision(doc_id, payload, ttl_seconds, probe.revision)

    async def write_revision(
        self,
        doc_id: str,
        payload: t.Mapping[str, t.Any],
        ttl_seconds: int,
        revision: t.Optional[str],
    ) -> str:
        document = self._codec.encode(doc_id, payload, ttl_seconds, revision=revision)
        return await self._db.insert(document)
