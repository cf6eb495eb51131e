"""Tests for the in-process transition event bus."""
from shared.models.domain import TransitionEvent
from shared.services.event_bus import EventBus


def _event(**overrides):
    data = {
        "entity": "lesson_plan",
        "entity_id": "p1",
        "action": "reviewed",
        "from_status": "PENDING",
        "to_status": "APPROVED",
        "actor_id": "supervisor-1",
        "recipient_id": "trainee-1",
    }
    data.update(overrides)
    return TransitionEvent(**data)


class TestEventBus:

    def test_publish_reaches_subscribers_in_order(self):
        bus = EventBus()
        seen = []
        bus.subscribe(lambda e: seen.append(("a", e.entity_id)))
        bus.subscribe(lambda e: seen.append(("b", e.entity_id)))

        delivered = bus.publish(_event())

        assert delivered == 2
        assert seen == [("a", "p1"), ("b", "p1")]

    def test_subscribe_twice_is_one_subscription(self):
        bus = EventBus()
        seen = []
        bus.subscribe(seen.append)
        bus.subscribe(seen.append)

        bus.publish(_event())

        assert len(seen) == 1

    def test_unsubscribe(self):
        bus = EventBus()
        seen = []
        bus.subscribe(seen.append)
        bus.unsubscribe(seen.append)
        bus.unsubscribe(seen.append)  # unknown handler is ignored

        assert bus.publish(_event()) == 0
        assert seen == []

    def test_failing_subscriber_is_isolated(self, caplog):
        """A raising subscriber is logged; later subscribers still run."""
        bus = EventBus()
        seen = []

        def broken(event):
            raise RuntimeError("mail server down")

        bus.subscribe(broken)
        bus.subscribe(seen.append)

        delivered = bus.publish(_event())

        assert delivered == 1
        assert len(seen) == 1
        assert "mail server down" in caplog.text

    def test_event_timestamp_defaults(self):
        assert _event().occurred_at is not None
