from __future__ import annotations

import asyncio
import logging
import typing as t

from .models import Payload
from .store import SessionStore

_logger = logging.getLogger(__name__)

Callback = t.Callable[[t.Optional[BaseException], t.Any], t.Any]


class CallbackSessionStore:
    """Node-style `(err, result)` callbacks over a `SessionStore`.

    Each call schedules the operation as a task and returns it. The callback
    runs exactly once, from the task's done-callback, so it never fires
    before the call that scheduled it has returned. Must be used from inside
    a running event loop.
    """

    def __init__(self, store: SessionStore) -> None:
        self.store = store

    def _dispatch(self, coro: t.Coroutine[t.Any, t.Any, t.Any], callback: t.Optional[Callback]) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)

        def _done(finished: asyncio.Task) -> None:
            if finished.cancelled():
                err: t.Optional[BaseException] = asyncio.CancelledError()
                result = None
            else:
                err = finished.exception()
                result = None if err is not None else finished.result()
            if callback is None:
                return
            try:
                callback(err, result)
            except Exception:
                _logger.exception("session callback raised")

        task.add_done_callback(_done)
        return task

    def get(self, sid: str, callback: t.Optional[Callback] = None) -> asyncio.Task:
        return self._dispatch(self.store.get(sid), callback)

    def set(self, sid: str, payload: Payload, callback: t.Optional[Callback] = None) -> asyncio.Task:
        return self._dispatch(self.store.set(sid, payload), callback)

    def destroy(self, sid: str, callback: t.Optional[Callback] = None) -> asyncio.Task:
        return self._dispatch(self.store.destroy(sid), callback)

    def touch(self, sid: str, payload: Payload, callback: t.Optional[Callback] = None) -> asyncio.Task:
        return self._dispatch(self.store.touch(sid, payload), callback)

    def cleanup_expired(self, callback: t.Optional[Callback] = None, max_batch: t.Optional[int] = None) -> asyncio.Task:
        return self._dispatch(self.store.cleanup_expired(max_batch), callback)
