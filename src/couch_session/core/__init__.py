"""Core module: session persistence, expiry and cleanup."""

from .callbacks import CallbackSessionStore
from .cleanup import CleanupScheduler
from .codec import SessionCodec
from .expiration import ExpirationChecker, is_expired
from .models import ConnectionState, IndexRow, Liveness, ProbeResult, ProbeStatus, SessionRecord
from .revision import RevisionTracker
from .store import SessionStore
from .ttl import compute_ttl

__all__ = [
    # Store
    "SessionStore",
    "CallbackSessionStore",
    # Engine parts
    "compute_ttl",
    "SessionCodec",
    "RevisionTracker",
    "ExpirationChecker",
    "is_expired",
    "CleanupScheduler",
    # Models
    "SessionRecord",
    "IndexRow",
    "ProbeResult",
    "ProbeStatus",
    "Liveness",
    "ConnectionState",
]
