from __future__ import annotations

import copy
import time
import typing as t
import uuid
from abc import ABC, abstractmethod

from ..core.models import (
    DELETED_FIELD,
    ID_FIELD,
    MODIFIED_FIELD,
    REV_FIELD,
    TTL_FIELD,
    Document,
    IndexRow,
)
from ..errors import ConflictError, NotFoundError

BulkResult = t.Dict[str, t.Any]

EXPIRED_SESSIONS_MAP = (
    "function (doc) {"
    " if (doc.session_ttl && doc.session_modified &&"
    " Date.now() > doc.session_modified + doc.session_ttl * 1000) {"
    " emit(doc._id, doc._rev); } }"
)


class DocumentDatabase(ABC):
    """Operations the session store needs from a document database.

    Missing documents raise `NotFoundError`, revision mismatches raise
    `ConflictError`, and retryable failures raise `TransientError`.
    """

    @abstractmethod
    async def get(self, doc_id: str) -> Document:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    async def head(self, doc_id: str) -> str:  # pragma: no cover - interface
        """Return the current revision without fetching the body."""
        raise NotImplementedError

    @abstractmethod
    async def insert(self, document: Document) -> str:  # pragma: no cover - interface
        """Write `document`; its `_rev`, when present, is the expected current revision."""
        raise NotImplementedError

    @abstractmethod
    async def delete(self, doc_id: str, revision: str) -> str:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    async def bulk_write(self, documents: t.List[Document]) -> t.List[BulkResult]:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    async def query_index(self, design: str, index: str, limit: int) -> t.List[IndexRow]:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    async def put_design(self, design: str, index: str, map_source: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    async def info(self) -> t.Dict[str, t.Any]:  # pragma: no cover - interface
        raise NotImplementedError

    async def close(self) -> None:
        return None


class InMemoryDatabase(DocumentDatabase):
    """A simple in-memory database for dev/test.

    Enforces revisions the way CouchDB does and evaluates the expired-sessions
    index in Python. Not intended for production.
    """

    def __init__(self, name: str = "sessions", clock: t.Optional[t.Callable[[], float]] = None) -> None:
        self.name = name
        self._docs: t.Dict[str, Document] = {}
        self._designs: t.Dict[str, t.Dict[str, str]] = {}
        self._clock = clock or (lambda: time.time() * 1000)

    @staticmethod
    def _next_rev(current: t.Optional[str]) -> str:
        generation = int(current.split("-", 1)[0]) if current else 0
        return f"{generation + 1}-{uuid.uuid4().hex}"

    def _current(self, doc_id: str) -> Document:
        doc = self._docs.get(doc_id)
        if doc is None:
            raise NotFoundError(f"missing: {doc_id}")
        return doc

    async def get(self, doc_id: str) -> Document:
        return copy.deepcopy(self._current(doc_id))

    async def head(self, doc_id: str) -> str:
        return self._current(doc_id)[REV_FIELD]

    async def insert(self, document: Document) -> str:
        doc_id = document[ID_FIELD]
        expected = document.get(REV_FIELD)
        existing = self._docs.get(doc_id)
        current = existing[REV_FIELD] if existing else None
        if expected != current:
            raise ConflictError(f"Document update conflict: {doc_id}")
        stored = copy.deepcopy(document)
        stored[REV_FIELD] = self._next_rev(current)
        self._docs[doc_id] = stored
        return stored[REV_FIELD]

    async def delete(self, doc_id: str, revision: str) -> str:
        current = self._current(doc_id)[REV_FIELD]
        if revision != current:
            raise ConflictError(f"Document update conflict: {doc_id}")
        del self._docs[doc_id]
        return self._next_rev(current)

    async def bulk_write(self, documents: t.List[Document]) -> t.List[BulkResult]:
        results: t.List[BulkResult] = []
        for doc in documents:
            doc_id = doc.get(ID_FIELD)
            try:
                if doc.get(DELETED_FIELD):
                    rev = await self.delete(doc_id, doc.get(REV_FIELD))
                else:
                    rev = await self.insert(doc)
            except ConflictError:
                results.append({"id": doc_id, "error": "conflict", "reason": "Document update conflict."})
            except NotFoundError:
                results.append({"id": doc_id, "error": "not_found", "reason": "missing"})
            else:
                results.append({"id": doc_id, "rev": rev, "ok": True})
        return results

    async def query_index(self, design: str, index: str, limit: int) -> t.List[IndexRow]:
        if index not in self._designs.get(design, {}):
            raise NotFoundError(f"missing_named_view: {design}/{index}")
        now = self._clock()
        rows = [
            IndexRow(id=doc_id, revision=doc[REV_FIELD])
            for doc_id, doc in sorted(self._docs.items())
            if doc.get(TTL_FIELD) and doc.get(MODIFIED_FIELD) and now > doc[MODIFIED_FIELD] + doc[TTL_FIELD] * 1000
        ]
        return rows[:limit]

    async def put_design(self, design: str, index: str, map_source: str) -> None:
        self._designs.setdefault(design, {})[index] = map_source

    async def info(self) -> t.Dict[str, t.Any]:
        return {"db_name": self.name, "doc_count": len(self._docs)}
