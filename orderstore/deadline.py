"""Caller-supplied deadline and cancellation signal.

A ``Deadline`` travels with each store call. The store checks it before
every statement; once it has fired, the in-flight transaction is rolled back
and a ``CANCELLED`` error is raised.
"""

import threading
import time
from typing import Optional

from .errors import ErrorKind, StoreError


class Deadline:
    """Absolute time limit plus an optional cancellation event.

    Args:
        timeout: Seconds from now after which the deadline fires, or None
            for no time limit.
        cancel_event: Event the caller may set to cancel the operation.
    """

    def __init__(self, timeout: Optional[float] = None, cancel_event: Optional[threading.Event] = None):
        self._expires_at = None if timeout is None else time.monotonic() + timeout
        self._cancel_event = cancel_event

    @classmethod
    def none(cls) -> "Deadline":
        """A deadline that never fires."""
        return cls()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event is not None and self._cancel_event.is_set()

    def remaining(self) -> Optional[float]:
        """Seconds left before expiry (never negative), or None if unbounded."""
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - time.monotonic())

    def expired(self) -> bool:
        if self.cancelled:
            return True
        left = self.remaining()
        return left is not None and left <= 0

    def check(self, stage: str, kind: ErrorKind = ErrorKind.CANCELLED) -> None:
        """Raise if the deadline has fired.

        Args:
            stage: Step about to run, reported in the error.
            kind: Error kind to raise; bootstrap reports ``SCHEMA_INIT``.

        Raises:
            StoreError: When the caller cancelled or the time limit passed.
        """
        if self.cancelled:
            raise StoreError(kind, stage, "cancelled by caller")
        if self.expired():
            raise StoreError(kind, stage, "deadline exceeded")
