from __future__ import annotations

import asyncio
import dataclasses
import logging
import typing as t

from couch_session.errors import ConfigurationError, ConflictError, NotFoundError
from couch_session.event import LifecycleEmitter, LifecycleEvent, Listener
from couch_session.monitoring.metrics import (
    session_expired_total,
    session_operation_latency_seconds,
    session_operations_total,
)
from couch_session.storage.base import DocumentDatabase
from couch_session.utils.config import ConnectionConfig, StoreConfig

from .cleanup import CleanupScheduler
from .codec import SessionCodec, now_ms
from .expiration import ExpirationChecker
from .models import REV_FIELD, ConnectionState, Liveness, Payload, SessionRecord
from .revision import RevisionTracker

_logger = logging.getLogger(__name__)


class SessionStore:
    """Session persistence with expiry on top of a document database.

    All state is per instance: configuration, lifecycle listeners and the
    background tasks it spawned (lazy destroys, the initial connection check).
    Every error that is not absorbed is logged, emitted on the `error` signal
    and raised to the caller.
    """

    def __init__(
        self,
        database: DocumentDatabase,
        config: t.Optional[StoreConfig] = None,
        *,
        check_on_init: bool = True,
        clock: t.Callable[[], int] = now_ms,
        **options: t.Any,
    ) -> None:
        if database is None:
            raise ConfigurationError("database is required")
        if config is not None and options:
            raise ConfigurationError("pass either a StoreConfig or keyword options, not both")
        self.config = config or StoreConfig.from_dict(options)
        self._db = database
        self._events = LifecycleEmitter()
        self._tasks: t.Set[asyncio.Task] = set()
        self._codec = SessionCodec(self.config.ttl, clock=clock)
        self._revisions = RevisionTracker(database, self._codec)
        self._expiration = ExpirationChecker(self._on_expired, clock=clock)
        self._cleanup = CleanupScheduler(
            database,
            design_name=self.config.index_design_name,
            index_name=self.config.index_name,
            batch_size=self.config.cleanup_batch_size,
        )
        if check_on_init:
            try:
                asyncio.get_running_loop()
            except RuntimeError:
                _logger.debug("no running loop, skipping initial connection check")
            else:
                self._spawn(self.check_connection())

    @classmethod
    def from_url(
        cls,
        url: str,
        config: t.Optional[StoreConfig] = None,
        *,
        connection: t.Optional[ConnectionConfig] = None,
        check_on_init: bool = True,
        **options: t.Any,
    ) -> "SessionStore":
        """Build a store backed by CouchDB/Cloudant at `url`.

        A malformed url raises `ConfigurationError` before any request is made.
        """
        from couch_session.storage.couchdb_adapter import CouchDatabase

        if config is not None and options:
            raise ConfigurationError("pass either a StoreConfig or keyword options, not both")
        config = config or StoreConfig.from_dict(options)
        connection = dataclasses.replace(connection or ConnectionConfig(), url=url)
        database = CouchDatabase.from_config(connection, config.database)
        return cls(database, config, check_on_init=check_on_init)

    # lifecycle signals

    def on(self, event: t.Union[LifecycleEvent, str], listener: Listener) -> Listener:
        return self._events.on(event, listener)

    def off(self, event: t.Union[LifecycleEvent, str], listener: Listener) -> None:
        self._events.off(event, listener)

    def _key(self, sid: str) -> str:
        return self.config.prefix + sid

    def _spawn(self, coro: t.Coroutine[t.Any, t.Any, t.Any]) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _fail(self, operation: str, sid: t.Optional[str], exc: BaseException) -> None:
        _logger.warning('%s "%s" failed: %r', operation.upper(), sid, exc)
        session_operations_total.inc(op=operation, outcome="error")
        self._events.emit(LifecycleEvent.ERROR, exc)

    # session operations

    async def get(self, sid: str) -> t.Optional[SessionRecord]:
        """Return the live session for `sid`, or None if it is missing or expired."""
        _logger.debug('GET "%s"', sid)
        with session_operation_latency_seconds.time(op="get"):
            try:
                document = await self._db.get(self._key(sid))
            except NotFoundError:
                _logger.debug('GET "%s" not found', sid)
                session_operations_total.inc(op="get", outcome="miss")
                return None
            except Exception as exc:
                self._fail("get", sid, exc)
                raise

        record = self._codec.to_record(document)
        if self._expiration.evaluate(record) is not Liveness.LIVE:
            _logger.debug('GET "%s" expired session', sid)
            session_operations_total.inc(op="get", outcome="expired")
            return None
        _logger.debug('GET "%s" found rev "%s"', sid, record.revision)
        session_operations_total.inc(op="get", outcome="hit")
        return record

    def _on_expired(self, record: SessionRecord) -> None:
        session_expired_total.inc()
        self._spawn(self._destroy_expired(record))

    async def _destroy_expired(self, record: SessionRecord) -> None:
        """Delete the exact revision that was read as expired."""
        sid = record.id[len(self.config.prefix):] if record.id.startswith(self.config.prefix) else record.id
        try:
            await self._db.delete(record.id, record.revision)
        except (NotFoundError, ConflictError) as exc:
            # Already gone, or rewritten since the read.
            _logger.debug('lazy destroy of "%s" skipped: %r', sid, exc)
        except Exception as exc:
            self._fail("destroy", sid, exc)
        else:
            session_operations_total.inc(op="destroy", outcome="expired")

    async def set(self, sid: str, payload: Payload) -> None:
        """Write `payload` for `sid`.

        `payload` is updated in place: its `_rev` becomes the revision that was
        current when the write was issued (or is removed for a new session).
        Raises `ConflictError` if another writer got in first.
        """
        ttl = self._codec.ttl_for(payload)
        with session_operation_latency_seconds.time(op="set"):
            try:
                await self._revisions.write(self._key(sid), payload, ttl)
            except Exception as exc:
                self._fail("set", sid, exc)
                raise
        _logger.debug('SET "%s" rev "%s" ttl %d', sid, payload.get(REV_FIELD), ttl)
        session_operations_total.inc(op="set", outcome="ok")

    async def destroy(self, sid: str) -> None:
        """Delete the session. A session that is already gone is reported as an error."""
        _logger.debug('DESTROY "%s"', sid)
        doc_id = self._key(sid)
        with session_operation_latency_seconds.time(op="destroy"):
            try:
                document = await self._db.get(doc_id)
                await self._db.delete(doc_id, document[REV_FIELD])
            except Exception as exc:
                self._fail("destroy", sid, exc)
                raise
        session_operations_total.inc(op="destroy", outcome="ok")

    async def touch(self, sid: str, payload: Payload) -> None:
        """Refresh the TTL of a stored session, keeping the stored payload."""
        if self.config.disable_ttl_refresh:
            return
        _logger.debug('TOUCH "%s" rev "%s"', sid, payload.get(REV_FIELD))
        doc_id = self._key(sid)
        with session_operation_latency_seconds.time(op="touch"):
            try:
                document = await self._db.get(doc_id)
                stored, revision = self._codec.decode(document)
                payload[REV_FIELD] = revision
                await self._revisions.write_revision(doc_id, stored, self._codec.ttl_for(payload), revision)
            except Exception as exc:
                self._fail("touch", sid, exc)
                raise
        session_operations_total.inc(op="touch", outcome="ok")

    async def cleanup_expired(self, max_batch: t.Optional[int] = None) -> int:
        """Reap up to `max_batch` expired sessions; returns how many were submitted."""
        try:
            return await self._cleanup.cleanup_expired(max_batch)
        except Exception as exc:
            self._fail("cleanup_expired", None, exc)
            raise

    async def check_connection(self) -> ConnectionState:
        try:
            await self._db.info()
        except Exception as exc:
            _logger.warning("database unavailable: %r", exc)
            self._events.emit(LifecycleEvent.DISCONNECT)
            return ConnectionState.DISCONNECT
        self._events.emit(LifecycleEvent.CONNECT)
        return ConnectionState.CONNECT

    async def close(self) -> None:
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        await self._db.close()

    async def __aenter__(self) -> "SessionStore":
        return self

    async def __aexit__(self, *exc_info: t.Any) -> None:
        await self.close()
