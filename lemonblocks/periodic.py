"""Blocks that recompute on a schedule."""

import logging
from typing import Callable, Optional

from .block import Block
from .scheduler import Scheduler

logger = logging.getLogger(__name__)


class Ticker:
    """Run a callback once after delay_ms, then every period_ms."""

    def __init__(self, scheduler: Scheduler, delay_ms: float, period_ms: float,
                 callback: Callable[[], None]) -> None:
        self.delay_ms = delay_ms
        self.period_ms = period_ms
        self.callback = callback
        self._slot = scheduler.slot()

    @property
    def running(self) -> bool:
        return self._slot.active

    def start(self) -> None:
        self._slot.repeat(self.delay_ms, self.period_ms, self.callback)

    def stop(self) -> None:
        self._slot.cancel()


class PeriodicBlock(Block):
    """A block recomputed every period_ms after an initial delay.

    The block also computes once synchronously during construction, so
    subclasses must set up everything compute() needs before calling
    ``super().__init__``.
    """

    def __init__(self, scheduler: Scheduler, delay_ms: float, period_ms: float,
                 tag: Optional[str] = None, **kwargs) -> None:
        super().__init__(scheduler=scheduler, tag=tag, **kwargs)
        self.ticker = Ticker(scheduler, delay_ms, period_ms, self.update)
        self.refresh()
        self.ticker.start()
        logger.debug(f"{self.tag}: first tick in {delay_ms:.0f}ms, then every {period_ms:.0f}ms")

    def close(self) -> None:
        self.ticker.stop()
