"""Line-oriented event sources for acpid, PulseAudio, wireless and MPD."""

import re
from typing import Tuple

from ..errors import MalformedEvent
from .process import LineProcessSource

IWEVENT_LINE = re.compile(r"^\S+\s+(\S+)\s+(.+)$")


class AcpiEventSource(LineProcessSource):
    """acpid events, e.g. ``button/volumeup VOLUP 00000080 00000000 K``.

    The event name is the first field; the payload is the rest of the line.
    """

    name = "acpi"
    argv = ("acpi_listen",)

    def parse(self, line: str) -> Tuple[str, str]:
        event, _, rest = line.partition(" ")
        if not rest:
            raise MalformedEvent(f"acpi event {event!r} carries no device fields")
        return event, rest


class PactlEventSource(LineProcessSource):
    """``pactl subscribe`` output, e.g. ``Event 'change' on sink #0``."""

    name = "pactl"
    argv = ("pactl", "subscribe")

    def parse(self, line: str) -> Tuple[str, str]:
        if not line.startswith("Event "):
            raise MalformedEvent("missing 'Event' prefix")
        body = line[len("Event "):].replace("'", "")
        event, sep, facility = body.partition(" on ")
        if not sep or not event:
            raise MalformedEvent("missing facility")
        return event.strip(), facility.strip()


class IweventSource(LineProcessSource):
    """Wireless events from ``iwevent``.

    ``12:00:00.000000   wlan0    New Access Point/Cell address:...`` becomes
    event ``New Access Point`` with payload ``wlan0``.
    """

    name = "iwevent"
    argv = ("iwevent",)

    def parse(self, line: str) -> Tuple[str, str]:
        match = IWEVENT_LINE.match(line)
        if not match:
            raise MalformedEvent("unexpected iwevent layout")
        interface, description = match.groups()
        event = description.split("/")[0].split(":")[0].strip()
        if not event:
            raise MalformedEvent("empty event description")
        return event, interface


class MpcIdleSource(LineProcessSource):
    """MPD subsystem changes from ``mpc idleloop``; each line names one subsystem."""

    name = "mpd"
    argv = ("mpc", "idleloop", "player", "mixer", "options")

    def parse(self, line: str) -> Tuple[str, None]:
        if " " in line:
            raise MalformedEvent("subsystem names contain no spaces")
        return line, None
