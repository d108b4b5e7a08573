from __future__ import annotations

import logging

import pytest

from pybambu.dispatch import SubscriberRegistry


def test_dispatch_calls_subscribers_in_order() -> None:
    registry: SubscriberRegistry[[str]] = SubscriberRegistry()
    calls: list[str] = []
    registry.subscribe(lambda value: calls.append(f"a:{value}"))
    registry.subscribe(lambda value: calls.append(f"b:{value}"))

    delivered = registry.dispatch("x")

    assert delivered == 2
    assert calls == ["a:x", "b:x"]


def test_failing_subscriber_does_not_block_others(caplog: pytest.LogCaptureFixture) -> None:
    registry: SubscriberRegistry[[int]] = SubscriberRegistry("test subscribers")
    calls: list[int] = []

    def broken(value: int) -> None:
        raise RuntimeError("boom")

    registry.subscribe(broken)
    registry.subscribe(calls.append)

    with caplog.at_level(logging.WARNING, logger="pybambu.dispatch"):
        delivered = registry.dispatch(7)

    assert delivered == 1
    assert calls == [7]
    assert "test subscribers" in caplog.text


def test_unsubscribe_unknown_subscriber_warns(caplog: pytest.LogCaptureFixture) -> None:
    registry: SubscriberRegistry[[int]] = SubscriberRegistry()

    with caplog.at_level(logging.WARNING, logger="pybambu.dispatch"):
        removed = registry.unsubscribe(print)

    assert removed is False
    assert "was not removed" in caplog.text


def test_unsubscribe_uses_identity() -> None:
    registry: SubscriberRegistry[[int]] = SubscriberRegistry()
    first: list[int] = []
    second: list[int] = []
    registry.subscribe(first.append)
    registry.subscribe(second.append)

    assert registry.unsubscribe(first.append) is False
    handler = second.append
    registry.subscribe(handler)
    assert registry.unsubscribe(handler) is True
    assert handler not in registry
    assert len(registry) == 2


def test_same_callback_can_be_registered_twice() -> None:
    registry: SubscriberRegistry[[int]] = SubscriberRegistry()
    calls: list[int] = []

    def handler(value: int) -> None:
        calls.append(value)

    registry.subscribe(handler)
    registry.subscribe(handler)
    registry.dispatch(1)
    assert calls == [1, 1]

    assert registry.unsubscribe(handler) is True
    registry.dispatch(2)
    assert calls == [1, 1, 2]


def test_changes_during_dispatch_apply_to_next_dispatch() -> None:
    registry: SubscriberRegistry[[]] = SubscriberRegistry()
    calls: list[str] = []

    def late() -> None:
        calls.append("late")

    def first() -> None:
        calls.append("first")
        registry.subscribe(late)
        registry.unsubscribe(first)

    registry.subscribe(first)

    registry.dispatch()
    assert calls == ["first"]

    registry.dispatch()
    assert calls == ["first", "late"]


def test_clear_and_snapshot() -> None:
    registry: SubscriberRegistry[[int]] = SubscriberRegistry()
    handler = print
    registry.subscribe(handler)
    assert registry.snapshot() == (handler,)

    registry.clear()

    assert len(registry) == 0
    assert registry.dispatch(1) == 0
