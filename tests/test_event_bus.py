from __future__ import annotations

import logging

from services.event_bus import EventBus


def test_publish_fans_out_in_subscription_order() -> None:
    bus = EventBus()
    calls: list[tuple[str, object]] = []
    bus.subscribe("event", lambda payload: calls.append(("first", payload)))
    bus.subscribe("event", lambda payload: calls.append(("second", payload)))

    bus.publish("event", 1)

    assert calls == [("first", 1), ("second", 1)]


def test_publish_without_subscribers_is_noop() -> None:
    EventBus().publish("nobody-listening", object())


def test_channels_are_isolated() -> None:
    bus = EventBus()
    seen: list[object] = []
    bus.subscribe("sensor", seen.append)

    bus.publish("calculation", "ignored")

    assert seen == []


def test_failing_handler_is_logged_and_skipped(caplog) -> None:
    bus = EventBus()
    seen: list[object] = []

    def broken(_payload: object) -> None:
        raise ValueError("boom")

    bus.subscribe("error", broken)
    bus.subscribe("error", seen.append)

    with caplog.at_level(logging.ERROR, logger="services.event_bus"):
        bus.publish("error", "payload")

    assert seen == ["payload"]
    assert any("Subscriber failed" in message for message in caplog.messages)


def test_unsubscribe_stops_delivery() -> None:
    bus = EventBus()
    seen: list[object] = []
    bus.subscribe("event", seen.append)
    bus.unsubscribe("event", seen.append)

    bus.publish("event", 1)

    assert seen == []
