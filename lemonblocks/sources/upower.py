"""Battery state from UPower over the D-Bus system bus."""

import asyncio
import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

from ..errors import SourceUnavailable

logger = logging.getLogger(__name__)

try:
    from pydbus import SystemBus
    PYDBUS_AVAILABLE = True
except ImportError:
    PYDBUS_AVAILABLE = False

UPOWER = "org.freedesktop.UPower"


class BatteryStatus(IntEnum):
    """The UPower device ``State`` values the battery block distinguishes.

    Empty and pending states have no glyph of their own and read as UNKNOWN.
    """
    UNKNOWN = 0
    CHARGING = 1
    DISCHARGING = 2
    FULLY_CHARGED = 4

    @classmethod
    def _missing_(cls, value):
        return cls.UNKNOWN


@dataclass
class BatteryState:
    """Charge level in percent plus the UPower time estimates in seconds."""

    percentage: int
    status: BatteryStatus
    time_to_empty: Optional[int] = None
    time_to_full: Optional[int] = None

    @property
    def seconds_left(self) -> Optional[int]:
        return self.time_to_empty or self.time_to_full


def query_battery() -> BatteryState:
    """Query the first UPower battery device (blocking D-Bus calls).

    Raises:
        SourceUnavailable: If D-Bus is unavailable or no battery is present
    """
    if not PYDBUS_AVAILABLE:
        raise SourceUnavailable("upower", "pydbus not installed")

    try:
        bus = SystemBus()
        upower = bus.get(UPOWER)

        # Path may vary: battery_BAT0, battery_BAT1, ...
        battery_path = next(
            (path for path in upower.EnumerateDevices() if "battery" in path.lower()),
            None,
        )
        if battery_path is None:
            raise SourceUnavailable("upower", "no battery device")

        battery = bus.get(UPOWER, battery_path)
        if not battery.IsPresent:
            raise SourceUnavailable("upower", "battery not present")

        return BatteryState(
            percentage=int(battery.Percentage),
            status=BatteryStatus(battery.State),
            time_to_empty=int(battery.TimeToEmpty) if battery.TimeToEmpty > 0 else None,
            time_to_full=int(battery.TimeToFull) if battery.TimeToFull > 0 else None,
        )
    except SourceUnavailable:
        raise
    except Exception as e:
        raise SourceUnavailable("upower", str(e)) from e


async def read_battery() -> BatteryState:
    """Non-blocking wrapper running the D-Bus query in the default executor."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, query_battery)
