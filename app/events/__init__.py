"""Event delivery for alert subscribers."""

from app.events.event_bus import EventBus

__all__ = ["EventBus"]
