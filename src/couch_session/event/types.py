from __future__ import annotations

import enum
import typing as t


class LifecycleEvent(str, enum.Enum):
    CONNECT = "connect"
    DISCONNECT = "disconnect"
    ERROR = "error"


Listener = t.Callable[..., t.Any]

__all__ = ["LifecycleEvent", "Listener"]
