"""EventBus for tick-thread event delivery.

Subscribers register per event type; ``publish`` calls them synchronously on
the publishing (tick) thread. A failing handler is logged and does not stop
the remaining handlers or the tick.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Dict, List, Type, TypeVar

from log_config.logger import get_logger

logger = get_logger(__name__)

# Type variables for type-safe event handling
EventType = TypeVar('EventType')
EventHandler = Callable[[EventType], None]


class EventBus:
    """Synchronous publish/subscribe bus.

    Not thread-safe: subscribe, unsubscribe and publish must run on the tick
    thread, like the rest of the tracking core.

    Example:
        ```python
        bus = EventBus()

        def handle_alert(event: AlertEvent):
            print(f"Alert {event.track_id} on camera {event.camera_index}")

        bus.subscribe(AlertEvent, handle_alert)
        bus.publish(AlertEvent(track_id="CAM0-9-15-2", camera_index=0, now=now))
        ```
    """

    def __init__(self):
        self._subscribers: Dict[Type, List[EventHandler]] = {}
        self._event_count: Dict[Type, int] = {}
        self._start_time = time.time()

    def subscribe(self, event_type: Type[EventType], handler: EventHandler) -> None:
        """Register handler for event type."""
        self._subscribers.setdefault(event_type, []).append(handler)
        self._event_count.setdefault(event_type, 0)
        logger.debug(f"Subscribed handler to {event_type.__name__} "
                     f"({len(self._subscribers[event_type])} total subscribers)")

    def unsubscribe(self, event_type: Type[EventType], handler: EventHandler) -> bool:
        """Unregister handler for event type.

        Returns:
            True if handler was found and removed, False otherwise
        """
        try:
            self._subscribers.get(event_type, []).remove(handler)
        except ValueError:
            return False
        logger.debug(f"Unsubscribed handler from {event_type.__name__} "
                     f"({len(self._subscribers[event_type])} remaining)")
        return True

    def publish(self, event: Any) -> int:
        """Deliver ``event`` to every subscriber of its type.

        Returns:
            Number of handlers that raised
        """
        event_type = type(event)
        handlers = list(self._subscribers.get(event_type, []))
        self._event_count[event_type] = self._event_count.get(event_type, 0) + 1

        if not handlers:
            logger.debug(f"Published {event_type.__name__} with no subscribers")
            return 0

        failed_handlers = 0
        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                failed_handlers += 1
                name = getattr(handler, "__name__", repr(handler))
                logger.opt(exception=e).error(
                    f"Event handler {name} failed for {event_type.__name__}: "
                    f"{e.__class__.__name__}: {e}"
                )

        if failed_handlers > 0:
            logger.warning(f"{failed_handlers}/{len(handlers)} handlers failed for {event_type.__name__}")
        return failed_handlers

    def get_subscriber_count(self, event_type: Type[EventType]) -> int:
        return len(self._subscribers.get(event_type, []))

    def get_stats(self) -> Dict[str, Any]:
        """Get event bus statistics.

        Returns:
            Dict with event_types, total_subscribers, event_counts and uptime_seconds
        """
        return {
            "event_types": len(self._subscribers),
            "total_subscribers": sum(len(handlers) for handlers in self._subscribers.values()),
            "event_counts": {
                event_type.__name__: count
                for event_type, count in self._event_count.items()
            },
            "uptime_seconds": time.time() - self._start_time,
        }

    def clear_all_subscribers(self) -> None:
        """Remove all subscribers (useful for testing)."""
        self._subscribers.clear()
        self._event_count.clear()

    def __repr__(self) -> str:
        stats = self.get_stats()
        return (f"EventBus(event_types={stats['event_types']}, "
                f"subscribers={stats['total_subscribers']}, "
                f"uptime={stats['uptime_seconds']:.1f}s)")
