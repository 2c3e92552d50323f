"""MPD now-playing with previous / play-pause / next click regions."""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from .. import markup
from ..errors import SourceUnavailable
from ..scheduler import Scheduler
from ..sources.process import CommandRunner, run_command
from ..subscribed import EventSource, SubscribedBlock

logger = logging.getLogger(__name__)

STATE_PATTERN = re.compile(r"^\[(playing|paused)\]")
CROSSFADE_PATTERN = re.compile(r"crossfade:\s*(\d+)")

MPD_EVENTS = ("player", "mixer", "options")


@dataclass
class PlayerStatus:
    """Parsed ``mpc status`` output."""
    state: str                     # playing, paused or stopped
    current: Optional[str] = None  # "artist - title" while not stopped

    @classmethod
    def parse(cls, output: str) -> "PlayerStatus":
        lines = output.splitlines()
        # Stopped: only the volume/options line is printed
        if len(lines) >= 2:
            match = STATE_PATTERN.match(lines[1])
            if match:
                return cls(state=match.group(1), current=lines[0].strip())
        return cls(state="stopped")


class MpdBlock(SubscribedBlock):
    """Current song plus transport controls.

    Args:
        scheduler: Scheduler for debouncing and mpc calls
        source: ``mpc idleloop`` event source
        crossfade: Seconds of crossfade set when action() turns it on
        paused_color: Foreground of the song while paused
        fudge_ms: Debounce delay
        runner: One-shot command factory
    """

    def __init__(self, scheduler: Scheduler, source: EventSource, crossfade: int = 5,
                 paused_color: Optional[str] = None,
                 fudge_ms: Optional[float] = 50, runner: CommandRunner = run_command,
                 tag: Optional[str] = None, **kwargs) -> None:
        self.crossfade = crossfade
        self.paused_color = paused_color
        self.runner = runner
        super().__init__(scheduler, source, MPD_EVENTS, fudge_ms=fudge_ms, tag=tag, **kwargs)

    @staticmethod
    def controls(status: PlayerStatus) -> str:
        toggle = "⏸" if status.state == "playing" else "▶"
        return " ".join([
            markup.click("mpc -q prev", "«"),
            markup.click("mpc -q toggle", toggle),
            markup.click("mpc -q next", "»"),
        ])

    async def compute(self) -> str:
        result = await self.runner("mpc", "status")
        if not result.ok:
            raise SourceUnavailable("mpc", result.stderr.strip() or f"exit status {result.returncode}")
        status = PlayerStatus.parse(result.stdout)
        if status.current is None:
            return self.controls(status)
        song = markup.escape_text(status.current)
        if status.state == "paused" and self.paused_color:
            song = markup.foreground(self.paused_color, song)
        return f"{song} {self.controls(status)}"

    def action(self) -> None:
        """Toggle crossfade between off and the configured duration."""
        self.scheduler.spawn(self._toggle_crossfade())

    async def _toggle_crossfade(self) -> None:
        try:
            result = await self.runner("mpc", "crossfade")
            match = CROSSFADE_PATTERN.search(result.stdout) if result.ok else None
            if not match:
                logger.warning(f"{self.tag}: cannot read crossfade setting")
                return
            target = 0 if int(match.group(1)) else self.crossfade
            await self.runner("mpc", "-q", "crossfade", str(target))
        except SourceUnavailable as e:
            logger.warning(f"{self.tag}: cannot toggle crossfade: {e}")
            return
        logger.info(f"{self.tag}: crossfade set to {target}s")
