"""
Golden Credits EventBus: async in-process publish/subscribe.

Purpose
-------
Decouple wallet mutations from their observers (notifications, analytics,
achievement tracking). Services publish after their transaction commits;
listeners never participate in the transaction.

Responsibilities
----------------
- Register/unregister listeners with priorities, exact or wildcard names
- Publish events to all matching listeners
- Execute listeners by tier:
  * CRITICAL / HIGH: sequential, ordered, awaited with timeout
  * NORMAL / LOW: concurrent (gather), awaited
- Error isolation: a failing listener is logged and never reaches the
  publisher

Design Decisions
----------------
- **Instance-based**: each container (and each test) owns its bus
- **Wildcard support** via `EventRouter`, e.g. "wallet.*"
- **Config-driven timeout** from `engine.events.listener_timeout_seconds`
"""

from __future__ import annotations

import asyncio
import inspect
from collections import defaultdict
from typing import Any, Optional

from golden_credits.core.event.router import EventRouter
from golden_credits.core.event.types import (
    CallbackType,
    EventListener,
    EventPayload,
    ListenerPriority,
)
from golden_credits.core.logging.logger import get_logger

logger = get_logger(__name__)

_SEQUENTIAL_TIERS = (ListenerPriority.CRITICAL, ListenerPriority.HIGH)


class EventBus:
    """
    Async EventBus with tiered listener execution.

    Designed for single-threaded asyncio usage; registry mutations are
    atomic between awaits.

    Examples
    --------
    >>> bus = EventBus()
    >>> bus.subscribe("wallet.credited", on_credit)
    >>> await bus.publish("wallet.credited", {"account_id": "tg:1", "amount": 10})
    """

    def __init__(
        self,
        router: Optional[EventRouter] = None,
        config_manager: Any = None,
        *,
        listener_timeout_seconds: Optional[float] = None,
    ) -> None:
        self._router = router or EventRouter()
        self._listeners: dict[str, list[EventListener]] = defaultdict(list)
        self._published: dict[str, int] = defaultdict(int)
        self._errors: dict[str, int] = defaultdict(int)

        if listener_timeout_seconds is not None:
            self._timeout = float(listener_timeout_seconds)
        elif config_manager is not None:
            self._timeout = float(
                config_manager.get("engine.events.listener_timeout_seconds", 5.0)
            )
        else:
            self._timeout = 5.0

        logger.debug(
            "EventBus initialized",
            extra={"listener_timeout_seconds": self._timeout},
        )

    # ------------------------------------------------------------------ #
    # Subscription API
    # ------------------------------------------------------------------ #

    @staticmethod
    def _validate_callback_signature(callback: CallbackType) -> None:
        try:
            sig = inspect.signature(callback)
        except (TypeError, ValueError):
            return

        params = list(sig.parameters.values())
        if len(params) != 1:
            callback_name = getattr(callback, "__qualname__", None) or getattr(
                callback, "__name__", repr(callback)
            )
            raise ValueError(
                f"Event listener must accept exactly 1 parameter (EventPayload), "
                f"got {len(params)} parameters for '{callback_name}'"
            )

    def subscribe(
        self,
        event_name: str,
        callback: CallbackType,
        *,
        priority: ListenerPriority = ListenerPriority.NORMAL,
        identifier: Optional[str] = None,
        once: bool = False,
    ) -> str:
        """
        Subscribe a callback to an event name or wildcard pattern.

        Returns the listener identifier. Re-subscribing the same identifier
        to the same event is ignored.

        Raises
        ------
        ValueError:
            If the callback does not take exactly one parameter.
        """
        self._validate_callback_signature(callback)

        listener = EventListener.from_callback(
            event_name=event_name,
            callback=callback,
            priority=priority,
            identifier=identifier,
            once=once,
        )

        bucket = self._listeners[event_name]
        if any(existing.identifier == listener.identifier for existing in bucket):
            logger.warning(
                "EventBus: duplicate listener prevented",
                extra={"event_name": event_name, "listener_id": listener.identifier},
            )
            return listener.identifier

        bucket.append(listener)
        bucket.sort(key=lambda item: item.priority.value)

        logger.debug(
            "EventBus: subscribed listener",
            extra={
                "event_name": event_name,
                "listener_id": listener.identifier,
                "priority": listener.priority.name,
                "once": listener.once,
            },
        )
        return listener.identifier

    def unsubscribe(self, event_name: str, identifier: str) -> bool:
        bucket = self._listeners.get(event_name, [])
        remaining = [item for item in bucket if item.identifier != identifier]
        removed = len(remaining) != len(bucket)

        if remaining:
            self._listeners[event_name] = remaining
        else:
            self._listeners.pop(event_name, None)

        if removed:
            logger.debug(
                "EventBus: unsubscribed listener",
                extra={"event_name": event_name, "listener_id": identifier},
            )
        return removed

    def clear(self) -> None:
        total = self.get_listener_count()
        self._listeners.clear()
        logger.info(
            "EventBus: cleared all listeners",
            extra={"previous_listener_count": total},
        )

    # ------------------------------------------------------------------ #
    # Publish API
    # ------------------------------------------------------------------ #

    def _extract_listeners(self, event_name: str) -> list[EventListener]:
        matched: list[EventListener] = []
        for key in list(self._listeners.keys()):
            if not self._router.matches(event_name, key):
                continue
            bucket = self._listeners[key]
            matched.extend(bucket)
            one_shots = [item for item in bucket if item.once]
            if one_shots:
                self._listeners[key] = [item for item in bucket if not item.once]
                if not self._listeners[key]:
                    del self._listeners[key]

        matched.sort(key=lambda item: item.priority.value)
        return matched

    async def _invoke(
        self,
        event_name: str,
        listener: EventListener,
        payload: EventPayload,
        timeout: Optional[float],
    ) -> Any:
        try:
            result = listener.callback(payload)
            if inspect.isawaitable(result):
                if timeout is not None:
                    result = await asyncio.wait_for(result, timeout=timeout)
                else:
                    result = await result
            return result
        except asyncio.TimeoutError:
            self._errors[event_name] += 1
            logger.error(
                "EventBus: listener timed out",
                extra={
                    "event_name": event_name,
                    "listener_id": listener.identifier,
                    "timeout_seconds": timeout,
                },
            )
        except Exception as exc:
            self._errors[event_name] += 1
            logger.error(
                "EventBus: listener failed",
                extra={
                    "event_name": event_name,
                    "listener_id": listener.identifier,
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                },
                exc_info=True,
            )
        return None

    async def publish(self, event_name: str, data: EventPayload) -> list[Any]:
        """
        Publish an event to all matching listeners.

        Returns the listener results in execution order (None for listeners
        that failed or timed out).
        """
        self._published[event_name] += 1

        listeners = self._extract_listeners(event_name)
        if not listeners:
            logger.debug(
                "EventBus: no listeners for event",
                extra={"event_name": event_name},
            )
            return []

        logger.debug(
            "EventBus: publishing event",
            extra={
                "event_name": event_name,
                "payload_keys": list(data.keys()),
                "listener_count": len(listeners),
            },
        )

        results: list[Any] = []
        for listener in listeners:
            if listener.priority in _SEQUENTIAL_TIERS:
                results.append(
                    await self._invoke(event_name, listener, data, self._timeout)
                )

        concurrent = [item for item in listeners if item.priority not in _SEQUENTIAL_TIERS]
        if concurrent:
            results.extend(
                await asyncio.gather(
                    *(self._invoke(event_name, item, data, None) for item in concurrent)
                )
            )

        return results

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    def get_listener_count(self, event_name: Optional[str] = None) -> int:
        if event_name is None:
            return sum(len(bucket) for bucket in self._listeners.values())
        return sum(
            len(bucket)
            for key, bucket in self._listeners.items()
            if self._router.matches(event_name, key)
        )

    def get_all_events(self) -> list[str]:
        return sorted(self._listeners.keys())

    def get_metrics_summary(self) -> dict[str, Any]:
        total = sum(self._published.values())
        errors = sum(self._errors.values())
        return {
            "total_events_published": total,
            "events_by_type": dict(self._published),
            "total_errors": errors,
            "errors_by_event": dict(self._errors),
            "total_listeners": self.get_listener_count(),
            "error_rate": round(errors / total * 100, 2) if total else 0.0,
        }
