"""Shared attempt counters and the final summary line."""

from __future__ import annotations

import threading
from dataclasses import dataclass


@dataclass(frozen=True)
class CounterSnapshot:
    """Final read of the attempt counters.

    Attributes:
        issued: Attempts that completed a round trip and received a response.
        succeeded: Attempts classified as successful.
        failed: Attempts that ended in a transport error.
    """

    issued: int
    succeeded: int
    failed: int

    @property
    def total(self) -> int:
        """Return all settled attempts, successful or not."""
        return self.succeeded + self.failed


class Counters:
    """Monotonic counters shared by every worker of a pool.

    Increments are serialized by an internal lock, so the counters stay
    exact regardless of how workers are scheduled. ``snapshot()`` is meant
    to be read once the pool has drained.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._issued = 0
        self._succeeded = 0
        self._failed = 0

    def record_success(self) -> int:
        """Count a completed round trip.

        Returns:
            The new ``issued`` value, used as the global attempt index.
        """
        with self._lock:
            self._issued += 1
            self._succeeded += 1
            return self._issued

    def record_failure(self) -> int:
        """Count a transport-level failure.

        Returns:
            The new ``failed`` value.
        """
        with self._lock:
            self._failed += 1
            return self._failed

    def settled(self) -> int:
        """Return the number of attempts that have finished either way."""
        with self._lock:
            return self._succeeded + self._failed

    def snapshot(self) -> CounterSnapshot:
        """Return an immutable copy of the current counter values."""
        with self._lock:
            return CounterSnapshot(
                issued=self._issued,
                succeeded=self._succeeded,
                failed=self._failed,
            )


def format_summary(snapshot: CounterSnapshot) -> str:
    """Render the final report line.

    Args:
        snapshot: Counters read after the pool has drained.

    Returns:
        ``Total: <n>, Success: <n>, Errors: <n>``.
    """
    return f"Total: {snapshot.total}, Success: {snapshot.succeeded}, Errors: {snapshot.failed}"
