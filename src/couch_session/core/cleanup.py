from __future__ import annotations

import logging
import typing as t

from couch_session.errors import ConflictError, NotFoundError
from couch_session.monitoring.metrics import session_reaped_total
from couch_session.storage.base import EXPIRED_SESSIONS_MAP, DocumentDatabase

_logger = logging.getLogger(__name__)


class CleanupScheduler:
    """Batch removal of expired sessions through the expired-sessions index.

    Storage reclamation only: readers never see expired sessions regardless
    of whether cleanup has run. How often to run it is up to the caller
    (e.g. `couch-session cleanup` from cron).
    """

    def __init__(
        self,
        database: DocumentDatabase,
        design_name: str = "expired_sessions",
        index_name: str = "express_expired_sessions",
        batch_size: int = 100,
    ) -> None:
        self._db = database
        self._design = design_name
        self._index = index_name
        self._batch_size = batch_size

    async def ensure_index(self) -> bool:
        """Create the index if it is missing. Returns True when it was created."""
        try:
            await self._db.query_index(self._design, self._index, limit=0)
            return False
        except NotFoundError:
            _logger.info("index %s/%s missing, creating it", self._design, self._index)
        try:
            await self._db.put_design(self._design, self._index, EXPIRED_SESSIONS_MAP)
        except ConflictError:
            # Another process created the same static definition first.
            _logger.debug("index %s/%s created concurrently", self._design, self._index)
            return False
        return True

    async def cleanup_expired(self, max_batch: t.Optional[int] = None) -> int:
        """Delete up to `max_batch` expired sessions in one bulk request.

        Returns the number of deletion markers submitted. A failing bulk
        request propagates as a whole and nothing is retried here.
        """
        limit = max_batch or self._batch_size
        await self.ensure_index()
        rows = await self._db.query_index(self._design, self._index, limit=limit)
        if not rows:
            _logger.debug("cleanup_expired - nothing to delete")
            return 0

        markers = [row.deletion_marker() for row in rows]
        _logger.debug("cleanup_expired - bulk delete %d rows", len(markers))
        results = await self._db.bulk_write(markers)

        failed = [r for r in results if r.get("error")]
        session_reaped_total.inc(len(markers) - len(failed), result="deleted")
        if failed:
            session_reaped_total.inc(len(failed), result="failed")
            _logger.warning(
                "cleanup_expired - %d of %d deletions rejected: %s",
                len(failed),
                len(markers),
                ", ".join(f"{r.get('id')}={r.get('error')}" for r in failed),
            )
        return len(markers)
