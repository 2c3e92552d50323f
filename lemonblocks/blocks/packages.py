"""Pending package updates from dnf."""

from typing import Optional

from ..errors import SourceUnavailable
from ..periodic import PeriodicBlock
from ..scheduler import Scheduler
from ..sources.process import CommandRunner, run_command

# dnf check-update exits 100 when updates are available
UPDATES_AVAILABLE = 100


def count_updates(output: str) -> int:
    """Count package rows (``name.arch  version  repo``) in check-update output."""
    count = 0
    for line in output.splitlines():
        if line.startswith("Obsoleting"):
            break
        if len(line.split()) == 3 and not line[:1].isspace():
            count += 1
    return count


class PackageUpdateBlock(PeriodicBlock):
    """Number of pending updates; declines to render when there are none."""

    def __init__(self, scheduler: Scheduler, period_ms: float = 60 * 1000, label: str = "⇡",
                 runner: CommandRunner = run_command, tag: Optional[str] = None, **kwargs) -> None:
        self.label = label
        self.runner = runner
        super().__init__(scheduler, period_ms, period_ms, tag=tag, **kwargs)

    async def compute(self) -> str:
        result = await self.runner("dnf", "check-update", "-q")
        if result.returncode == 0:
            return ""
        if result.returncode != UPDATES_AVAILABLE:
            raise SourceUnavailable("dnf", result.stderr.strip() or f"exit status {result.returncode}")
        return f"{self.label}{count_updates(result.stdout)}"
