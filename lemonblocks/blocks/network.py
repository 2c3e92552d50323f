"""Wireless network name from iwgetid."""

import re
from typing import Optional

from .. import markup
from ..errors import SourceUnavailable
from ..scheduler import Scheduler
from ..sources.process import CommandRunner, run_command
from ..subscribed import EventSource, SubscribedBlock

ESSID_PATTERN = re.compile(r'ESSID:"(.*)"')


class SsidBlock(SubscribedBlock):
    """ESSID of the associated access point; ``disconnected`` (urgent) without a link."""

    unavailable_text = "disconnected"

    def __init__(self, scheduler: Scheduler, source: EventSource, fudge_ms: Optional[float] = 500,
                 runner: CommandRunner = run_command, tag: Optional[str] = None, **kwargs) -> None:
        self.runner = runner
        super().__init__(scheduler, source, ("New Access Point",), fudge_ms=fudge_ms, tag=tag, **kwargs)

    async def compute(self) -> str:
        result = await self.runner("iwgetid")
        match = ESSID_PATTERN.search(result.stdout) if result.ok else None
        if not match or not match.group(1):
            raise SourceUnavailable("iwgetid", "no wireless link")
        return markup.escape_text(match.group(1))
