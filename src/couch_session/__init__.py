"""couch_session

Session persistence for web applications on CouchDB / Cloudant: optimistic
concurrency on writes, TTL-based expiry hidden from readers, and index-driven
batch cleanup of expired sessions.
"""

from .core import (
    CallbackSessionStore,
    CleanupScheduler,
    ConnectionState,
    ExpirationChecker,
    IndexRow,
    RevisionTracker,
    SessionCodec,
    SessionRecord,
    SessionStore,
    compute_ttl,
)
from .errors import (
    ConfigurationError,
    ConflictError,
    NotFoundError,
    SessionStoreError,
    TransientError,
)
from .event import LifecycleEvent
from .storage import CouchDatabase, DocumentDatabase, InMemoryDatabase
from .utils import ConnectionConfig, StoreConfig

__all__ = [
    "SessionStore",
    "CallbackSessionStore",
    "CleanupScheduler",
    "ExpirationChecker",
    "RevisionTracker",
    "SessionCodec",
    "compute_ttl",
    "SessionRecord",
    "IndexRow",
    "ConnectionState",
    "LifecycleEvent",
    "DocumentDatabase",
    "InMemoryDatabase",
    "CouchDatabase",
    "StoreConfig",
    "ConnectionConfig",
    "SessionStoreError",
    "NotFoundError",
    "ConflictError",
    "TransientError",
    "ConfigurationError",
]

__version__ = "0.1.0"
