"""Trailing debounce for side effects of rapid edits.

Rapid calls coalesce into one downstream call made ``delay`` seconds after
the last of them, with the most recent arguments. A pending call can be
applied immediately (``flush``) when the editing surface loses focus or
closes, so the final edit is never lost.

Timers come from a scheduler ``(delay, callback) -> handle with cancel()``.
The default runs callbacks on a ``threading.Timer``, which only suits
callbacks that never touch the store. Store-mutating callbacks use a
scheduler that runs on the owning thread: ``TickScheduler`` polled from the
host's loop, or ``loop.call_later`` under asyncio.
"""

import logging
import threading
import time
from typing import Any, Callable, Optional, Protocol


logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> Any: ...


Scheduler = Callable[[float, Callable[[], None]], TimerHandle]


def thread_scheduler(delay: float, callback: Callable[[], None]) -> TimerHandle:
    """Run ``callback`` after ``delay`` seconds on a daemon timer thread."""
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()
    return timer


class _Tick:
    """Handle for a timer queued on a ``TickScheduler``."""

    def __init__(self, deadline: float, callback: Callable[[], None]):
        self.deadline = deadline
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class TickScheduler:
    """Timers fired by whichever thread calls ``run_due``.

    The thread that owns the store calls ``run_due`` from its event loop
    (or idle handler), so debounced store updates run on that thread.
    Scheduling and cancelling are safe from any thread.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self._lock = threading.Lock()
        self._timers: list[_Tick] = []

    def __call__(self, delay: float, callback: Callable[[], None]) -> _Tick:
        timer = _Tick(self.clock() + delay, callback)
        with self._lock:
            self._timers.append(timer)
        return timer

    @property
    def next_deadline(self) -> Optional[float]:
        """Earliest deadline still queued, for sizing the host's sleep."""
        with self._lock:
            deadlines = [t.deadline for t in self._timers if not t.cancelled]
        return min(deadlines, default=None)

    def run_due(self) -> int:
        """Fire every timer whose deadline has passed.

        Returns:
            Number of callbacks run.
        """
        now = self.clock()
        with self._lock:
            live = [t for t in self._timers if not t.cancelled]
            due = [t for t in live if t.deadline <= now]
            self._timers = [t for t in live if t.deadline > now]
        fired = 0
        for timer in sorted(due, key=lambda t: t.deadline):
            # An earlier callback may have cancelled this one
            if timer.cancelled:
                continue
            timer.callback()
            fired += 1
        return fired


class Debouncer:
    """Debounce calls to ``fn``."""

    def __init__(
        self,
        fn: Callable[..., Any],
        delay: float,
        scheduler: Optional[Scheduler] = None,
    ):
        """Initialize the debouncer.

        Args:
            fn: Function to call with the latest arguments.
            delay: Quiet period in seconds.
            scheduler: Timer factory. Defaults to ``thread_scheduler``.
        """
        self.fn = fn
        self.delay = delay
        self.scheduler = scheduler or thread_scheduler
        self._lock = threading.Lock()
        self._handle: Optional[TimerHandle] = None
        self._pending: Optional[tuple[tuple, dict]] = None

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        with self._lock:
            if self._handle is not None:
                self._handle.cancel()
            self._pending = (args, kwargs)
            self._handle = self.scheduler(self.delay, self._fire)

    def _take(self) -> Optional[tuple[tuple, dict]]:
        with self._lock:
            if self._handle is not None:
                self._handle.cancel()
                self._handle = None
            pending, self._pending = self._pending, None
            return pending

    def _fire(self) -> None:
        pending = self._take()
        if pending is not None:
            args, kwargs = pending
            self.fn(*args, **kwargs)

    def flush(self) -> bool:
        """Apply a pending call now.

        Returns:
            True if a call was pending.
        """
        pending = self._take()
        if pending is None:
            return False
        args, kwargs = pending
        self.fn(*args, **kwargs)
        return True

    def cancel(self) -> None:
        """Drop a pending call without applying it."""
        if self._take() is not None:
            logger.debug("Dropped pending debounced call to %s", self.fn)
