"""Report watcher: turns raw report messages into a merged printer state."""

from __future__ import annotations

import logging
from collections.abc import Callable

from pybambu._redact import redact_text
from pybambu.dispatch import SubscriberRegistry
from pybambu.exceptions import BambuDecodeError
from pybambu.models.report import PrinterState
from pybambu.state.store import StateStore

_logger = logging.getLogger(__name__)

REPORT_SUFFIX = "/report"

StateSubscriber = Callable[[PrinterState, PrinterState], object]
"""Called with ``(delta, full_state)`` after every merged report."""


class PrinterWatcher:
    """Raw-message subscriber that maintains the cumulative printer state.

    Register it with :meth:`PrinterClient.subscribe` (or use
    :meth:`PrinterClient.watch`). Messages on topics other than
    ``.../report`` are ignored; malformed reports are logged and dropped
    without touching the state.
    """

    def __init__(self, store: StateStore | None = None, *, logger: logging.Logger | None = None) -> None:
        self._store = store or StateStore()
        self._logger = logger or _logger
        self._subscribers: SubscriberRegistry[[PrinterState, PrinterState]] = SubscriberRegistry(
            "state subscribers", logger=self._logger
        )

    @property
    def store(self) -> StateStore:
        return self._store

    @property
    def full_state(self) -> PrinterState | None:
        return self._store.read()

    def __call__(self, topic: str, payload: bytes) -> None:
        self.consume(topic, payload)

    def consume(self, topic: str, payload: bytes) -> PrinterState | None:
        """Decode, merge and fan out one message.

        Returns the new full state, or ``None`` when the message was ignored.
        """
        if not topic.endswith(REPORT_SUFFIX):
            return None

        try:
            delta = PrinterState.from_json(payload)
        except BambuDecodeError:
            self._logger.warning("Dropping unparseable report on %s: %s", topic, redact_text(payload), exc_info=True)
            return None

        full_state = self._store.apply_delta(delta)
        if full_state is None:  # pragma: no cover - delta is never None here
            return None
        self._subscribers.dispatch(delta, full_state)
        return full_state

    def subscribe(self, subscriber: StateSubscriber) -> None:
        self._subscribers.subscribe(subscriber)

    def unsubscribe(self, subscriber: StateSubscriber) -> bool:
        return self._subscribers.unsubscribe(subscriber)

    def close(self) -> None:
        """Drop state subscribers and forget the merged state."""
        self._subscribers.clear()
        self._store.reset()
