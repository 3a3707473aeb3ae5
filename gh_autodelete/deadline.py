"""Cancellable deadlines for blocking API calls."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from gh_autodelete.errors import AppError, ErrorKind


class Deadline:
    """A point in time after which work must stop, plus a cancel signal.

    Children share the parent's cancel event and abort callbacks, and never
    outlive the parent.
    """

    def __init__(self, timeout: float | None = None, cancel_event: threading.Event | None = None):
        self.expires_at = None if timeout is None else time.monotonic() + timeout
        self.cancel_event = cancel_event or threading.Event()
        self._aborts: list[Callable[[], None]] = []
        self._lock = threading.Lock()

    def child(self, timeout: float | None) -> Deadline:
        child = Deadline(timeout, cancel_event=self.cancel_event)
        child._aborts = self._aborts
        child._lock = self._lock
        if self.expires_at is not None and (child.expires_at is None or self.expires_at < child.expires_at):
            child.expires_at = self.expires_at
        return child

    def cancel(self) -> None:
        """Set the cancel signal and tear down any registered in-flight work."""
        self.cancel_event.set()
        with self._lock:
            aborts = list(self._aborts)
        for abort in aborts:
            abort()

    @contextmanager
    def on_cancel(self, abort: Callable[[], None]) -> Iterator[None]:
        """Run `abort` if the deadline is cancelled while the block is active."""
        with self._lock:
            self._aborts.append(abort)
        try:
            if self.cancelled:
                abort()
            yield
        finally:
            with self._lock:
                self._aborts.remove(abort)

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def remaining(self) -> float | None:
        if self.expires_at is None:
            return None
        return max(self.expires_at - time.monotonic(), 0.0)

    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def check(self) -> None:
        """Raise CANCELLED if the cancel signal is set."""
        if self.cancelled:
            raise AppError(ErrorKind.CANCELLED, "Operation cancelled")

    def sleep(self, seconds: float) -> None:
        """Sleep up to `seconds`, waking at once on cancellation."""
        remaining = self.remaining()
        if remaining is not None:
            seconds = min(seconds, remaining)
        if seconds > 0:
            self.cancel_event.wait(seconds)
        self.check()
