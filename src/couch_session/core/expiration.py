from __future__ import annotations

import typing as t

from .codec import now_ms
from .models import Liveness, SessionRecord


def is_expired(record: SessionRecord, at_ms: int) -> bool:
    return at_ms >= record.modified_at_ms + record.ttl_seconds * 1000


class ExpirationChecker:
    """Decides whether a fetched record is still visible to readers.

    Expired records are reported through `on_expired` (the store passes a
    callback that schedules a background destroy) and hidden from the caller.
    """

    def __init__(
        self,
        on_expired: t.Optional[t.Callable[[SessionRecord], None]] = None,
        clock: t.Callable[[], int] = now_ms,
    ) -> None:
        self._on_expired = on_expired
        self._clock = clock

    def evaluate(self, record: t.Optional[SessionRecord], at_ms: t.Optional[int] = None) -> Liveness:
        if record is None:
            return Liveness.ABSENT
        if is_expired(record, self._clock() if at_ms is None else at_ms):
            if self._on_expired is not None:
                self._on_expired(record)
            return Liveness.EXPIRED
        return Liveness.LIVE

    def live(self, record: t.Optional[SessionRecord], at_ms: t.Optional[int] = None) -> t.Optional[SessionRecord]:
        return record if self.evaluate(record, at_ms) is Liveness.LIVE else None
