from __future__ import annotations

import logging
import typing as t
from urllib.parse import quote

import httpx

from couch_session.core.models import Document, IndexRow
from couch_session.errors import ConfigurationError, NotFoundError, TransientError, error_for_status
from couch_session.utils.config import ConnectionConfig
from couch_session.utils.resilience import CircuitBreaker, CircuitBreakerConfig, with_retries

from .base import BulkResult, DocumentDatabase

_logger = logging.getLogger(__name__)


def _parse_url(url: t.Any) -> httpx.URL:
    if not isinstance(url, str) or not url:
        raise ConfigurationError("invalid url")
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError, ValueError) as exc:
        raise ConfigurationError("invalid url") from exc
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ConfigurationError("invalid url")
    # Credentials in the userinfo part are sent as basic auth by httpx.
    return parsed


class CouchDatabase(DocumentDatabase):
    """CouchDB / Cloudant adapter over the HTTP API.

    - Documents live at `{url}/{database}/{doc_id}`
    - Revisions are read from the `ETag` header on `HEAD`
    - The expiry index is a view inside a design document

    Transient failures (429, 5xx, transport errors) are retried per
    `retry_attempts` and tracked by a circuit breaker; everything else is
    raised on the first failure.
    """

    def __init__(
        self,
        url: str = "http://localhost:5984",
        database: str = "sessions",
        *,
        timeout_seconds: float = 5.0,
        retry_attempts: int = 1,
        retry_backoff_ms: t.Optional[t.List[int]] = None,
        circuit_breaker: t.Optional[CircuitBreaker] = None,
        client: t.Optional[httpx.AsyncClient] = None,
    ) -> None:
        base_url = _parse_url(url)
        if not database:
            raise ConfigurationError("database must not be empty")
        self._db_path = "/" + quote(database, safe="")
        self._retry_attempts = retry_attempts
        self._retry_backoff_ms = retry_backoff_ms or [100, 500, 2000]
        self._breaker = circuit_breaker or CircuitBreaker(CircuitBreakerConfig())
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout_seconds)

    @classmethod
    def from_config(cls, config: ConnectionConfig, database: str = "sessions") -> "CouchDatabase":
        return cls(
            config.url,
            database,
            timeout_seconds=config.timeout_seconds,
            retry_attempts=config.retry_attempts,
            retry_backoff_ms=config.retry_backoff_ms,
        )

    def _doc_path(self, doc_id: str) -> str:
        return f"{self._db_path}/{quote(doc_id, safe='')}"

    def _design_path(self, design: str) -> str:
        return f"{self._db_path}/_design/{quote(design, safe='')}"

    async def _request(self, method: str, path: str, **kwargs: t.Any) -> httpx.Response:
        async def _op() -> httpx.Response:
            try:
                response = await self._client.request(method, path, **kwargs)
            except httpx.TransportError as exc:
                raise TransientError(f"{method} {path}: {exc!r}") from exc
            if response.status_code >= 400:
                raise error_for_status(response.status_code, self._describe(method, path, response))
            return response

        _logger.debug("%s %s", method, path)
        return await self._breaker.run(lambda: with_retries(_op, self._retry_attempts, self._retry_backoff_ms))

    @staticmethod
    def _describe(method: str, path: str, response: httpx.Response) -> str:
        reason = ""
        if response.content:
            try:
                body = response.json()
            except ValueError:
                reason = response.text
            else:
                if isinstance(body, dict):
                    reason = f"{body.get('error', '')}: {body.get('reason', '')}"
        return f"{method} {path} -> {response.status_code} {reason}".rstrip()

    async def get(self, doc_id: str) -> Document:
        response = await self._request("GET", self._doc_path(doc_id))
        return response.json()

    async def head(self, doc_id: str) -> str:
        response = await self._request("HEAD", self._doc_path(doc_id))
        etag = response.headers.get("etag")
        if not etag:
            raise TransientError(f"HEAD {doc_id}: missing ETag")
        return etag.strip('"')

    async def insert(self, document: Document) -> str:
        response = await self._request("PUT", self._doc_path(document["_id"]), json=document)
        return response.json()["rev"]

    async def delete(self, doc_id: str, revision: str) -> str:
        response = await self._request("DELETE", self._doc_path(doc_id), params={"rev": revision})
        return response.json()["rev"]

    async def bulk_write(self, documents: t.List[Document]) -> t.List[BulkResult]:
        response = await self._request("POST", f"{self._db_path}/_bulk_docs", json={"docs": documents})
        return response.json()

    async def query_index(self, design: str, index: str, limit: int) -> t.List[IndexRow]:
        path = f"{self._design_path(design)}/_view/{quote(index, safe='')}"
        response = await self._request("GET", path, params={"limit": limit})
        body = response.json()
        return [IndexRow(id=row["key"], revision=row["value"]) for row in body.get("rows", [])]

    async def put_design(self, design: str, index: str, map_source: str) -> None:
        path = self._design_path(design)
        try:
            design_doc = (await self._request("GET", path)).json()
        except NotFoundError:
            design_doc = {"_id": f"_design/{design}"}
        design_doc.setdefault("views", {})[index] = {"map": map_source}
        await self._request("PUT", path, json=design_doc)

    async def info(self) -> t.Dict[str, t.Any]:
        response = await self._request("GET", self._db_path)
        return response.json()

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
