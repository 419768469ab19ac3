from .base import EXPIRED_SESSIONS_MAP, DocumentDatabase, InMemoryDatabase
from .couchdb_adapter import CouchDatabase

__all__ = ["DocumentDatabase", "InMemoryDatabase", "CouchDatabase", "EXPIRED_SESSIONS_MAP"]
