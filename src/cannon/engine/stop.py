"""Fire-once stop signal and the triggers that fire it."""

from __future__ import annotations

import asyncio
import contextlib
import signal
import sys
import threading
from enum import Enum

from cannon._internal.logging import get_logger

logger = get_logger("engine.stop")


class StopReason(Enum):
    """Trigger that ended a run."""

    TIME_LIMIT = "time limit reached"
    INTERRUPT = "interrupted"
    QUOTA = "request quota reached"


class StopSignal:
    """Broadcast cancellation flag that goes from unset to set exactly once.

    ``request_stop()`` may be called concurrently from any number of
    triggers and threads. A lock-guarded gate lets only the first call
    through; every later call is a no-op.
    """

    def __init__(self) -> None:
        self._gate = threading.Lock()
        self._fired = False
        self._reason: StopReason | None = None
        self._event = asyncio.Event()
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def reason(self) -> StopReason | None:
        """Return the trigger that fired the signal, or None if not stopped."""
        return self._reason

    def is_stopped(self) -> bool:
        """Return True once the signal has fired. Never blocks."""
        return self._fired

    def request_stop(self, reason: StopReason) -> bool:
        """Fire the signal if it has not fired yet.

        Args:
            reason: Trigger requesting the stop.

        Returns:
            True if this call fired the signal, False if it was already set.
        """
        with self._gate:
            if self._fired:
                return False
            self._fired = True
            self._reason = reason

        logger.info("Stopping: %s", reason.value)
        self._wake_waiters()
        return True

    async def wait(self) -> None:
        """Wait until the signal fires."""
        self._loop = asyncio.get_running_loop()
        if self._fired:
            return
        await self._event.wait()

    def _wake_waiters(self) -> None:
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        loop = self._loop
        if loop is not None and loop is not running and not loop.is_closed():
            loop.call_soon_threadsafe(self._event.set)
        else:
            self._event.set()


class StopCoordinator:
    """Drives a ``StopSignal`` from the time limit, interrupts and the quota.

    Attributes:
        signal: The stop signal observed by every worker.
    """

    def __init__(self, *, time_limit: float = 0.0, requests: int = 0) -> None:
        """Initialize the coordinator.

        Args:
            time_limit: Seconds after ``start()`` at which to stop. 0 disables
                the timer.
            requests: Settled-attempt quota. 0 disables the quota.
        """
        self.signal = StopSignal()
        self._time_limit = time_limit
        self._requests = requests
        self._timer: asyncio.Task[None] | None = None
        self._handlers_installed = False

    def is_stopped(self) -> bool:
        """Return True once any trigger has fired."""
        return self.signal.is_stopped()

    def interrupt(self) -> None:
        """Stop on an operator interrupt."""
        self.signal.request_stop(StopReason.INTERRUPT)

    def check_quota(self, settled: int) -> bool:
        """Stop if ``settled`` attempts reach the quota.

        Args:
            settled: Attempts finished so far, successful or not.

        Returns:
            True if the quota is reached, whichever call fired the signal.
        """
        if self._requests <= 0 or settled < self._requests:
            return False
        self.signal.request_stop(StopReason.QUOTA)
        return True

    async def start(self) -> None:
        """Install signal handlers and arm the time limit."""
        self._install_signal_handlers()
        if self._time_limit > 0:
            self._timer = asyncio.create_task(self._run_timer(), name="cannon-timer")

    async def close(self) -> None:
        """Disarm the timer and restore default signal handling."""
        if self._timer is not None:
            self._timer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._timer
            self._timer = None
        self._remove_signal_handlers()

    async def _run_timer(self) -> None:
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(self.signal.wait(), timeout=self._time_limit)
            return
        self.signal.request_stop(StopReason.TIME_LIMIT)

    def _install_signal_handlers(self) -> None:
        """Route SIGINT and SIGTERM to ``interrupt()``.

        Event-loop handlers need the main thread. When started elsewhere the
        run can still stop on its time limit or quota.
        """
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on the main thread, interrupt handling disabled")
            return

        if sys.platform != "win32":
            loop = asyncio.get_running_loop()
            loop.add_signal_handler(signal.SIGINT, self.interrupt)
            loop.add_signal_handler(signal.SIGTERM, self.interrupt)
        else:
            # Windows doesn't support add_signal_handler
            signal.signal(signal.SIGINT, lambda _s, _f: self.interrupt())
            signal.signal(signal.SIGTERM, lambda _s, _f: self.interrupt())
        self._handlers_installed = True

    def _remove_signal_handlers(self) -> None:
        """Remove custom signal handlers, restoring defaults."""
        if not self._handlers_installed:
            return

        if sys.platform != "win32":
            loop = asyncio.get_running_loop()
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.remove_signal_handler(sig)
        else:
            signal.signal(signal.SIGINT, signal.default_int_handler)
            signal.signal(signal.SIGTERM, signal.SIG_DFL)
        self._handlers_installed = False
