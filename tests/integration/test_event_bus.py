"""Integration tests for EventBus alert delivery."""

from dataclasses import dataclass
from datetime import datetime

from app.events.event_bus import EventBus
from contracts import AlertEvent

NOW = datetime(2024, 5, 1, 9, 15, 14)


@dataclass(frozen=True)
class OtherEvent:
    value: int


class TestEventBusBasics:
    """Test basic EventBus functionality."""

    def test_subscribe_and_publish(self):
        bus = EventBus()
        events_received = []

        bus.subscribe(AlertEvent, events_received.append)
        bus.publish(AlertEvent(track_id="CAM0-9-15-2", camera_index=0, now=NOW))

        assert len(events_received) == 1
        assert events_received[0].track_id == "CAM0-9-15-2"

    def test_multiple_subscribers_in_order(self):
        bus = EventBus()
        calls = []

        bus.subscribe(AlertEvent, lambda event: calls.append("first"))
        bus.subscribe(AlertEvent, lambda event: calls.append("second"))
        bus.publish(AlertEvent(track_id="a", camera_index=0, now=NOW))

        assert calls == ["first", "second"]
        assert bus.get_subscriber_count(AlertEvent) == 2

    def test_events_routed_by_type(self):
        bus = EventBus()
        alerts = []
        others = []
        bus.subscribe(AlertEvent, alerts.append)
        bus.subscribe(OtherEvent, others.append)

        bus.publish(OtherEvent(value=3))

        assert alerts == []
        assert others == [OtherEvent(value=3)]

    def test_unsubscribe(self):
        bus = EventBus()
        received = []
        bus.subscribe(AlertEvent, received.append)

        assert bus.unsubscribe(AlertEvent, received.append)
        assert not bus.unsubscribe(AlertEvent, received.append)
        assert not bus.unsubscribe(OtherEvent, received.append)

        bus.publish(AlertEvent(track_id="a", camera_index=0, now=NOW))
        assert received == []


class TestEventBusErrorIsolation:

    def test_failing_handler_does_not_stop_others(self):
        bus = EventBus()
        received = []

        def failing(event):
            raise RuntimeError("boom")

        bus.subscribe(AlertEvent, failing)
        bus.subscribe(AlertEvent, received.append)

        failed = bus.publish(AlertEvent(track_id="a", camera_index=0, now=NOW))

        assert failed == 1
        assert len(received) == 1

    def test_publish_without_subscribers(self):
        bus = EventBus()

        assert bus.publish(OtherEvent(value=1)) == 0
        assert bus.get_stats()["event_counts"] == {"OtherEvent": 1}

    def test_clear_all_subscribers(self):
        bus = EventBus()
        bus.subscribe(AlertEvent, lambda event: None)

        bus.clear_all_subscribers()

        assert bus.get_subscriber_count(AlertEvent) == 0
        assert bus.get_stats()["total_subscribers"] == 0
