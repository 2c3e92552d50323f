"""Date and time, refreshed on every minute boundary."""

from datetime import datetime
from typing import Callable, Optional, Sequence

from .. import markup
from ..periodic import PeriodicBlock
from ..scheduler import Scheduler

MINUTE_MS = 60 * 1000
CLOCK_SKEW_MS = 50

WEEKDAYS_JA = ("月", "火", "水", "木", "金", "土", "日")
DEFAULT_FORMAT = "{month}月{day}日 ({weekday}) {hour}:{minute:02d}"


def until_next_minute(now: datetime, skew_ms: float = CLOCK_SKEW_MS) -> float:
    """Milliseconds from now until just past the next minute boundary.

    The skew keeps a tick from landing a hair before the boundary and
    rendering the old minute again.
    """
    elapsed_ms = now.second * 1000 + now.microsecond / 1000
    return MINUTE_MS - elapsed_ms + skew_ms


class DatetimeBlock(PeriodicBlock):
    """Clock aligned to minute boundaries.

    Args:
        scheduler: Scheduler driving the ticks
        fmt: ``str.format`` template with fields year, month, day, hour,
            minute and weekday
        weekdays: Seven weekday names, Monday first
        skew_ms: Extra delay past each minute boundary
        now: Clock source, injectable for tests
    """

    def __init__(self, scheduler: Scheduler, fmt: str = DEFAULT_FORMAT,
                 weekdays: Sequence[str] = WEEKDAYS_JA, skew_ms: float = CLOCK_SKEW_MS,
                 now: Optional[Callable[[], datetime]] = None,
                 tag: Optional[str] = None, **kwargs) -> None:
        self.format = fmt
        self.weekdays = tuple(weekdays)
        self.now = now or datetime.now
        delay_ms = until_next_minute(self.now(), skew_ms)
        super().__init__(scheduler, delay_ms, MINUTE_MS, tag=tag, **kwargs)

    def compute(self) -> str:
        moment = self.now()
        text = self.format.format(
            year=moment.year,
            month=moment.month,
            day=moment.day,
            hour=moment.hour,
            minute=moment.minute,
            weekday=self.weekdays[moment.weekday()],
        )
        return markup.escape_text(text)
