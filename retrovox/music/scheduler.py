"""
Periodic timers for the beat clock.

AsyncioScheduler drives real playback from the running event loop.
ManualScheduler is a fake clock: nothing fires until advance() is called,
which makes beat timing testable and lets offline renders run faster than
real time.
"""
import asyncio
from typing import Callable, List, Optional, Protocol

Callback = Callable[[], None]


class TimerHandle:
    def __init__(self, interval_s: float, callback: Callback):
        if interval_s <= 0:
            raise ValueError(f"interval must be positive, got {interval_s}")
        self.interval_s = float(interval_s)
        self.callback = callback
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "active"
        return f"TimerHandle(every {self.interval_s:.3f}s, {state})"


class Scheduler(Protocol):
    def call_every(self, interval_s: float, callback: Callback) -> TimerHandle:
        ...


class AsyncioScheduler:
    """Repeating timer on an asyncio loop (the running loop by default)."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def call_every(self, interval_s: float, callback: Callback) -> TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        handle = TimerHandle(interval_s, callback)

        def _fire() -> None:
            if handle.cancelled:
                return
            # re-arm first; a raising callback goes to the loop's exception handler
            loop.call_later(handle.interval_s, _fire)
            handle.callback()

        loop.call_later(handle.interval_s, _fire)
        return handle


class _ManualTimer:
    def __init__(self, handle: TimerHandle, due: float):
        self.handle = handle
        self.due = due


class ManualScheduler:
    def __init__(self):
        self.now = 0.0
        self._timers: List[_ManualTimer] = []

    def call_every(self, interval_s: float, callback: Callback) -> TimerHandle:
        handle = TimerHandle(interval_s, callback)
        self._timers.append(_ManualTimer(handle, self.now + handle.interval_s))
        return handle

    def active_timers(self) -> List[TimerHandle]:
        self._timers = [t for t in self._timers if not t.handle.cancelled]
        return [t.handle for t in self._timers]

    def advance(self, seconds: float) -> int:
        """
        Move the clock forward, firing every timer that comes due in order.
        Returns the number of callbacks run.
        """
        target = self.now + seconds
        fired = 0
        while True:
            pending = [t for t in self._timers if not t.handle.cancelled and t.due <= target + 1e-9]
            if not pending:
                break
            timer = min(pending, key=lambda t: t.due)
            self.now = timer.due
            timer.due += timer.handle.interval_s
            timer.handle.callback()
            fired += 1
        self.now = target
        return fired
