"""Master volume from amixer, with scroll and mute click regions."""

import logging
import re
from typing import Any, Iterable, Optional

from .. import markup
from ..errors import SourceUnavailable
from ..scheduler import Scheduler
from ..sources.process import CommandRunner, run_command
from ..subscribed import EventSource, SubscribedBlock

logger = logging.getLogger(__name__)

# Hardware controls print a dB field between the level and the switch
VOLUME_PATTERN = re.compile(r"\[(\d{1,3})%\](?: \[[^\]]*dB\])? \[(on|off)\]")

ACPI_EVENTS = ("button/volumeup", "button/volumedown", "button/mute")
PACTL_EVENTS = ("change",)


class VolumeBlock(SubscribedBlock):
    """Playback level of one mixer control; muted renders urgent.

    Args:
        scheduler: Scheduler for debouncing and the amixer calls
        source: acpi or pactl event source
        events: Events that trigger a refresh
        control: amixer simple control name
        step_percent: Level change per scroll step
        fudge_ms: Debounce delay for bursts of key presses
        notify_command: Shell command appended to every click command,
            normally a refresh command addressed to this block
        runner: One-shot command factory
    """

    def __init__(self, scheduler: Scheduler, source: EventSource, events: Iterable[str] = ACPI_EVENTS,
                 control: str = "Master", step_percent: int = 5, fudge_ms: Optional[float] = 20,
                 notify_command: Optional[str] = None, runner: CommandRunner = run_command,
                 tag: Optional[str] = None, **kwargs) -> None:
        self.control = control
        self.step_percent = step_percent
        self.notify_command = notify_command
        self.runner = runner
        super().__init__(scheduler, source, events, fudge_ms=fudge_ms, tag=tag, **kwargs)

    def accepts(self, payload: Any) -> bool:
        # pactl reports every facility; only sink changes move the level
        if self.source.name == "pactl":
            return str(payload).startswith("sink #")
        return True

    def _click_command(self, *args: str) -> str:
        command = " ".join(["amixer", "-q", "set", self.control, *args])
        if self.notify_command:
            command = f"{command} && {self.notify_command}"
        return command

    async def compute(self) -> str:
        result = await self.runner("amixer", "get", self.control)
        if not result.ok:
            raise SourceUnavailable("amixer", result.stderr.strip() or f"exit status {result.returncode}")
        match = VOLUME_PATTERN.search(result.stdout)
        if not match:
            raise SourceUnavailable("amixer", f"no playback level for {self.control}")

        level, switch = match.groups()
        text = level if switch == "on" else markup.urgent(level)
        text = markup.click(self._click_command("toggle"), text, markup.BUTTON_LEFT)
        text = markup.click(self._click_command(f"{self.step_percent}%+"), text, markup.BUTTON_SCROLL_UP)
        return markup.click(self._click_command(f"{self.step_percent}%-"), text, markup.BUTTON_SCROLL_DOWN)

    def action(self) -> None:
        """Toggle mute."""
        self.scheduler.spawn(self._toggle_mute())

    async def _toggle_mute(self) -> None:
        try:
            result = await self.runner("amixer", "-q", "set", self.control, "toggle")
        except SourceUnavailable as e:
            logger.warning(f"{self.tag}: cannot toggle mute: {e}")
            return
        if not result.ok:
            logger.warning(f"{self.tag}: amixer toggle failed with status {result.returncode}")
        self.update()
