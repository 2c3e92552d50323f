"""Debounce ("fudge") wrapper.

Bursty triggers (link-state flapping, a run of volume key presses) collapse
into one recomputation that runs delay_ms after the last trigger.
"""

from typing import Callable

from .scheduler import Scheduler


class Debouncer:
    """Run callback once, delay_ms after the most recent trigger()."""

    def __init__(self, scheduler: Scheduler, delay_ms: float, callback: Callable[[], None]) -> None:
        self.delay_ms = delay_ms
        self.callback = callback
        self._slot = scheduler.slot()

    @property
    def pending(self) -> bool:
        return self._slot.active

    def trigger(self) -> None:
        # The slot cancels whatever was outstanding
        self._slot.once(self.delay_ms, self.callback)

    def cancel(self) -> None:
        self._slot.cancel()
