"""Battery charge from UPower, refreshed on AC events and periodically."""

import logging
from typing import Awaitable, Callable, Optional

from .. import markup
from ..periodic import Ticker
from ..scheduler import Scheduler
from ..sources.upower import BatteryState, BatteryStatus, read_battery
from ..subscribed import EventSource, SubscribedBlock

logger = logging.getLogger(__name__)

AC_EVENTS = ("ac_adapter",)

STATUS_GLYPHS = {
    BatteryStatus.FULLY_CHARGED: "✓",
    BatteryStatus.CHARGING: "↑",
    BatteryStatus.DISCHARGING: "↓",
}


def format_duration(seconds: int) -> str:
    """Compact duration: ``1h05`` or ``42m``."""
    hours, remainder = divmod(seconds, 3600)
    minutes = remainder // 60
    if hours:
        return f"{hours}h{minutes:02d}"
    return f"{minutes}m"


class BatteryBlock(SubscribedBlock):
    """Renders ``time-left glyph percent``, urgent when critical.

    Args:
        scheduler: Scheduler for debouncing and the periodic poll
        source: acpi event source (``ac_adapter`` plug events)
        interval_ms: Poll period; charge drains without any event
        critical_percent: Level at or below which the block turns urgent
        critical_requires_discharging: Only urgent while discharging
        separator: Joins the rendered fields
        fudge_ms: Debounce delay
        reader: Coroutine function returning the BatteryState
    """

    def __init__(self, scheduler: Scheduler, source: EventSource, interval_ms: float = 60 * 1000,
                 critical_percent: int = 15, critical_requires_discharging: bool = True,
                 separator: str = " ", fudge_ms: Optional[float] = 20,
                 reader: Callable[[], Awaitable[BatteryState]] = read_battery,
                 tag: Optional[str] = None, **kwargs) -> None:
        self.critical_percent = critical_percent
        self.critical_requires_discharging = critical_requires_discharging
        self.separator = separator
        self.reader = reader
        super().__init__(scheduler, source, AC_EVENTS, fudge_ms=fudge_ms, tag=tag, **kwargs)
        self.ticker = Ticker(scheduler, interval_ms, interval_ms, self.update)
        self.ticker.start()

    def is_critical(self, state: BatteryState) -> bool:
        if state.percentage > self.critical_percent:
            return False
        if self.critical_requires_discharging:
            return state.status == BatteryStatus.DISCHARGING
        return True

    def render(self, state: BatteryState) -> str:
        fields = []
        if state.seconds_left:
            fields.append(format_duration(state.seconds_left))
        glyph = STATUS_GLYPHS.get(state.status)
        if glyph:
            fields.append(glyph)
        fields.append(str(state.percentage))

        text = self.separator.join(fields)
        return markup.urgent(text) if self.is_critical(state) else text

    async def compute(self) -> str:
        return self.render(await self.reader())

    def close(self) -> None:
        self.ticker.stop()
        super().close()
