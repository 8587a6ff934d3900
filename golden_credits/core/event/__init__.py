from golden_credits.core.event.bus import EventBus
from golden_credits.core.event.router import EventRouter
from golden_credits.core.event.types import (
    CallbackType,
    EventListener,
    EventPayload,
    ListenerPriority,
)

__all__ = [
    "EventBus",
    "EventRouter",
    "EventListener",
    "EventPayload",
    "ListenerPriority",
    "CallbackType",
]
