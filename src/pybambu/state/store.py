"""In-memory printer state store.

This is the only component allowed to merge incoming report deltas. It
holds exactly one cumulative :class:`PrinterState` (or ``None`` before the
first report) behind a multi-reader/single-writer lock.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from pybambu.models.report import PrinterState
from pybambu.state.merge import merge_state


class ReadWriteLock:
    """Many concurrent readers or one writer.

    Writer-preferring: once a writer is waiting, new readers queue behind it
    so a steady stream of reads cannot starve merges. Not reentrant.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


class StateStore:
    """Cumulative printer state.

    Snapshots are frozen models that are replaced, never mutated, so a
    reference returned by :meth:`read` stays consistent after the lock is
    released.
    """

    def __init__(self) -> None:
        self._lock = ReadWriteLock()
        self._state: PrinterState | None = None

    def read(self) -> PrinterState | None:
        """Current full state, or ``None`` when no report was merged yet."""
        with self._lock.read_locked():
            return self._state

    def apply_delta(self, delta: PrinterState | None) -> PrinterState | None:
        """Merge *delta* into the full state and return the new full state."""
        with self._lock.write_locked():
            self._state = merge_state(self._state, delta)
            return self._state

    def reset(self) -> None:
        with self._lock.write_locked():
            self._state = None
