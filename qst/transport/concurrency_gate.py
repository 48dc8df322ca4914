"""Bounded admission of concurrent connection handlers."""

import threading
from typing import Optional


class ConcurrencyGate:
    """Counts in-flight handlers and blocks admission at the configured cap.

    A limit of ``None`` never blocks but still tracks the in-flight count so
    shutdown can wait for running handlers.
    """

    def __init__(self, limit: Optional[int] = None) -> None:
        if limit is not None and limit <= 0:
            raise ValueError("limit must be positive")
        self._limit = limit
        self._condition = threading.Condition(threading.Lock())
        self._in_flight = 0

    @property
    def limit(self) -> Optional[int]:
        return self._limit

    @property
    def in_flight(self) -> int:
        with self._condition:
            return self._in_flight

    def _has_room(self) -> bool:
        return self._limit is None or self._in_flight < self._limit

    def acquire(self) -> None:
        """Block until a handler slot is free, then take it."""
        with self._condition:
            self._condition.wait_for(self._has_room)
            self._in_flight += 1

    def release(self) -> None:
        """Return a slot taken by :meth:`acquire`."""
        with self._condition:
            if self._in_flight == 0:
                raise RuntimeError("release() called more times than acquire()")
            self._in_flight -= 1
            self._condition.notify_all()

    def wait_for_idle(self, timeout: Optional[float] = None) -> bool:
        """Wait until no handler is in flight; False if the timeout expired."""
        with self._condition:
            return self._condition.wait_for(lambda: self._in_flight == 0, timeout)
