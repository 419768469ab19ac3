from __future__ import annotations

import enum
import typing as t
from dataclasses import dataclass, field

Document = t.Dict[str, t.Any]
Payload = t.MutableMapping[str, t.Any]

# Stored document fields. Names match what existing session databases hold.
ID_FIELD = "_id"
REV_FIELD = "_rev"
DELETED_FIELD = "_deleted"
TTL_FIELD = "session_ttl"
MODIFIED_FIELD = "session_modified"

METADATA_FIELDS = (ID_FIELD, REV_FIELD, TTL_FIELD, MODIFIED_FIELD)

ONE_DAY_SECONDS = 86400


@dataclass
class SessionRecord:
    id: str
    payload: t.Dict[str, t.Any] = field(default_factory=dict)
    revision: t.Optional[str] = None
    ttl_seconds: int = ONE_DAY_SECONDS
    modified_at_ms: int = 0

    @property
    def expires_at_ms(self) -> int:
        return self.modified_at_ms + self.ttl_seconds * 1000


@dataclass(frozen=True)
class IndexRow:
    """A row from the expired-sessions index: document id and its revision."""

    id: str
    revision: str

    def deletion_marker(self) -> Document:
        return {ID_FIELD: self.id, REV_FIELD: self.revision, DELETED_FIELD: True}


class ProbeStatus(str, enum.Enum):
    FOUND = "FOUND"
    NOT_FOUND = "NOT_FOUND"


@dataclass(frozen=True)
class ProbeResult:
    status: ProbeStatus
    revision: t.Optional[str] = None

    @classmethod
    def found(cls, revision: str) -> "ProbeResult":
        return cls(ProbeStatus.FOUND, revision)

    @classmethod
    def not_found(cls) -> "ProbeResult":
        return cls(ProbeStatus.NOT_FOUND)

    @property
    def exists(self) -> bool:
        return self.status is ProbeStatus.FOUND


class Liveness(str, enum.Enum):
    ABSENT = "ABSENT"
    EXPIRED = "EXPIRED"
    LIVE = "LIVE"


class ConnectionState(str, enum.Enum):
    CONNECT = "connect"
    DISCONNECT = "disconnect"
