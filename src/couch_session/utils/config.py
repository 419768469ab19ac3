from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from couch_session.errors import ConfigurationError

# camelCase option names used by connect-style session store configs.
_ALIASES = {
    "disableTTLRefresh": "disable_ttl_refresh",
    "cleanupBatchSize": "cleanup_batch_size",
    "dbRemoveExpMax": "cleanup_batch_size",
    "indexName": "index_name",
    "dbViewName": "index_name",
    "indexDesignName": "index_design_name",
    "dbDesignName": "index_design_name",
}


@dataclass
class StoreConfig:
    prefix: str = "sess:"
    ttl: Optional[int] = None
    disable_ttl_refresh: bool = False
    cleanup_batch_size: int = 100
    index_name: str = "express_expired_sessions"
    index_design_name: str = "expired_sessions"
    database: str = "sessions"

    def __post_init__(self) -> None:
        if not isinstance(self.prefix, str):
            raise ConfigurationError("prefix must be a string")
        if self.ttl is not None and (not isinstance(self.ttl, int) or self.ttl <= 0):
            raise ConfigurationError("ttl must be a positive integer")
        if not isinstance(self.cleanup_batch_size, int) or self.cleanup_batch_size <= 0:
            raise ConfigurationError("cleanup_batch_size must be a positive integer")
        for name in ("index_name", "index_design_name", "database"):
            if not getattr(self, name):
                raise ConfigurationError(f"{name} must not be empty")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StoreConfig":
        known = {f.name for f in dataclasses.fields(cls)}
        values: Dict[str, Any] = {}
        for key, value in data.items():
            key = _ALIASES.get(key, key)
            if key in known and value is not None:
                values[key] = value
        return cls(**values)


@dataclass
class ConnectionConfig:
    url: str = "http://localhost:5984"
    timeout_seconds: float = 5.0
    retry_attempts: int = 1
    retry_backoff_ms: List[int] = dataclasses.field(default_factory=lambda: [100, 500, 2000])

    def __post_init__(self) -> None:
        if self.retry_attempts < 1:
            raise ConfigurationError("retry_attempts must be >= 1")
