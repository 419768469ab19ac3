from __future__ import annotations

import json
import time
import typing as t

from .models import (
    ID_FIELD,
    METADATA_FIELDS,
    MODIFIED_FIELD,
    REV_FIELD,
    TTL_FIELD,
    Document,
    SessionRecord,
)
from .ttl import compute_ttl, cookie_max_age


def now_ms() -> int:
    return int(time.time() * 1000)


class SessionCodec:
    """Converts between caller session payloads and stored documents.

    Payloads are copied through a JSON round-trip, so the outgoing document
    never aliases the caller's session object and holds exactly what the
    database will store.
    """

    def __init__(self, store_ttl: t.Optional[int] = None, clock: t.Callable[[], int] = now_ms) -> None:
        self._store_ttl = store_ttl
        self._clock = clock

    def ttl_for(self, payload: t.Optional[t.Mapping[str, t.Any]]) -> int:
        return compute_ttl(cookie_max_age(payload), self._store_ttl)

    def encode(
        self,
        doc_id: str,
        payload: t.Mapping[str, t.Any],
        ttl_seconds: int,
        *,
        revision: t.Optional[str] = None,
        modified_at_ms: t.Optional[int] = None,
    ) -> Document:
        document: Document = json.loads(json.dumps(dict(payload)))
        # Only the revision tracker decides which revision a write carries.
        document.pop(REV_FIELD, None)
        document[ID_FIELD] = doc_id
        document[TTL_FIELD] = ttl_seconds
        document[MODIFIED_FIELD] = self._clock() if modified_at_ms is None else modified_at_ms
        if revision is not None:
            document[REV_FIELD] = revision
        return document

    def decode(self, document: t.Mapping[str, t.Any]) -> t.Tuple[t.Dict[str, t.Any], t.Optional[str]]:
        payload = {k: v for k, v in document.items() if k not in METADATA_FIELDS}
        return json.loads(json.dumps(payload)), document.get(REV_FIELD)

    def to_record(self, document: t.Mapping[str, t.Any]) -> SessionRecord:
        payload, revision = self.decode(document)
        return SessionRecord(
            id=document[ID_FIELD],
            payload=payload,
            revision=revision,
            ttl_seconds=int(document.get(TTL_FIELD) or 0),
            modified_at_ms=int(document.get(MODIFIED_FIELD) or 0),
        )
