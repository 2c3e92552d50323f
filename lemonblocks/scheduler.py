"""Cancellable one-shot and repeating timers on top of the asyncio loop.

Every component that waits or repeats goes through a Scheduler so that
tests can substitute a manual clock. Delays are in milliseconds.

A TimerSlot holds at most one timer: scheduling into an occupied slot
cancels the previous timer first.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, Set

logger = logging.getLogger(__name__)

FaultHandler = Callable[[BaseException], None]


class Timer:
    """A scheduled callback, optionally repeating every period_ms."""

    def __init__(
        self,
        scheduler: "Scheduler",
        callback: Callable[[], None],
        delay_ms: float,
        period_ms: Optional[float] = None,
    ) -> None:
        self.scheduler = scheduler
        self.callback = callback
        self.period_ms = period_ms
        self._handle = None
        self._cancelled = False
        self._finished = False
        self._arm(delay_ms)

    @property
    def active(self) -> bool:
        return not (self._cancelled or self._finished)

    def cancel(self) -> None:
        if not self.active:
            return
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self.scheduler._forget(self)

    def _arm(self, delay_ms: float) -> None:
        self._handle = self.scheduler._call_later(max(delay_ms, 0), self._fire)

    def _fire(self) -> None:
        if not self.active:
            return
        # Re-arm before running so the callback is free to cancel us
        if self.period_ms is None:
            self._finished = True
            self._handle = None
            self.scheduler._forget(self)
        else:
            self._arm(self.period_ms)
        self.scheduler.run_callback(self.callback)


class TimerSlot:
    """Holds at most one pending timer for a single logical operation."""

    def __init__(self, scheduler: "Scheduler") -> None:
        self.scheduler = scheduler
        self._timer: Optional[Timer] = None

    @property
    def active(self) -> bool:
        return self._timer is not None and self._timer.active

    def once(self, delay_ms: float, callback: Callable[[], None]) -> Timer:
        self.cancel()
        self._timer = self.scheduler.call_later(delay_ms, callback)
        return self._timer

    def repeat(self, delay_ms: float, period_ms: float, callback: Callable[[], None]) -> Timer:
        self.cancel()
        self._timer = self.scheduler.call_every(delay_ms, period_ms, callback)
        return self._timer

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


class Scheduler:
    """Base scheduler: timer bookkeeping and fault routing.

    Subclasses supply the clock (now_ms), the primitive _call_later and
    task spawning.
    """

    def __init__(self) -> None:
        self._timers: Set[Timer] = set()
        self._fault_handler: Optional[FaultHandler] = None

    def set_fault_handler(self, handler: Optional[FaultHandler]) -> None:
        self._fault_handler = handler

    def now_ms(self) -> float:
        raise NotImplementedError

    def _call_later(self, delay_ms: float, callback: Callable[[], None]):
        raise NotImplementedError

    def spawn(self, coro: Awaitable) -> asyncio.Task:
        raise NotImplementedError

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> Timer:
        timer = Timer(self, callback, delay_ms)
        self._timers.add(timer)
        return timer

    def call_every(self, delay_ms: float, period_ms: float, callback: Callable[[], None]) -> Timer:
        """Run callback after delay_ms, then every period_ms until cancelled."""
        if period_ms <= 0:
            raise ValueError(f"period must be positive, got {period_ms}")
        timer = Timer(self, callback, delay_ms, period_ms)
        self._timers.add(timer)
        return timer

    def slot(self) -> TimerSlot:
        return TimerSlot(self)

    @property
    def pending(self) -> int:
        """Number of timers still scheduled."""
        return len(self._timers)

    def cancel_all(self) -> None:
        for timer in list(self._timers):
            timer.cancel()

    def run_callback(self, callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception as e:
            self.report_fault(e)

    def report_fault(self, exc: BaseException) -> None:
        """Route an uncaught callback exception to the fault handler.

        Without a handler the exception is re-raised to the caller.
        """
        if self._fault_handler is None:
            raise exc
        self._fault_handler(exc)

    def _forget(self, timer: Timer) -> None:
        self._timers.discard(timer)

    def _task_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Task {task.get_name()} failed: {exc}")
            self.report_fault(exc)


class AsyncioScheduler(Scheduler):
    """Scheduler backed by the running asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        super().__init__()
        self.loop = loop or asyncio.get_running_loop()

    def now_ms(self) -> float:
        return time.time() * 1000

    def _call_later(self, delay_ms: float, callback: Callable[[], None]):
        return self.loop.call_later(delay_ms / 1000.0, callback)

    def spawn(self, coro: Awaitable) -> asyncio.Task:
        task = self.loop.create_task(coro)
        task.add_done_callback(self._task_done)
        return task
