"""Thread-safe subscriber registry with failure isolation."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Generic, ParamSpec

_logger = logging.getLogger(__name__)

P = ParamSpec("P")


class SubscriberRegistry(Generic[P]):
    """Ordered list of callbacks notified on every dispatch.

    Subscribers are compared by identity. :meth:`dispatch` iterates a
    snapshot taken under the registry lock and calls subscribers outside
    it, so (un)subscribing from inside a callback is safe; such changes
    take effect from the next dispatch on.
    """

    def __init__(self, name: str = "subscribers", *, logger: logging.Logger | None = None) -> None:
        self._name = name
        self._logger = logger or _logger
        self._lock = threading.Lock()
        self._subscribers: list[Callable[P, object]] = []

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def __contains__(self, subscriber: object) -> bool:
        with self._lock:
            return any(existing is subscriber for existing in self._subscribers)

    def subscribe(self, subscriber: Callable[P, object]) -> None:
        with self._lock:
            self._subscribers.append(subscriber)

    def unsubscribe(self, subscriber: Callable[P, object]) -> bool:
        """Remove *subscriber*; return ``False`` (and warn) when it was not registered."""
        with self._lock:
            for index, existing in enumerate(self._subscribers):
                if existing is subscriber:
                    del self._subscribers[index]
                    return True
        self._logger.warning("Subscriber %r was not removed from %s: it was not registered", subscriber, self._name)
        return False

    def clear(self) -> None:
        with self._lock:
            self._subscribers.clear()

    def snapshot(self) -> tuple[Callable[P, object], ...]:
        with self._lock:
            return tuple(self._subscribers)

    def dispatch(self, *args: P.args, **kwargs: P.kwargs) -> int:
        """Call every subscriber; return how many completed without raising."""
        delivered = 0
        for subscriber in self.snapshot():
            try:
                subscriber(*args, **kwargs)
            except Exception:
                self._logger.warning("Subscriber %r in %s failed", subscriber, self._name, exc_info=True)
                continue
            delivered += 1
        return delivered
