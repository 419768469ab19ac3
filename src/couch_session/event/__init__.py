from .emitter import LifecycleEmitter
from .types import LifecycleEvent, Listener

__all__ = [
    "LifecycleEmitter",
    "LifecycleEvent",
    "Listener",
]
