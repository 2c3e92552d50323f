"""Subprocess-backed sources: one-shot commands and long-running line emitters."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Sequence, Tuple

from ..errors import MalformedEvent, SourceUnavailable
from ..scheduler import Scheduler
from ..subscribed import EventSource

logger = logging.getLogger(__name__)

COMMAND_TIMEOUT = 5.0


@dataclass
class CommandResult:
    """Outcome of a one-shot command."""
    argv: Tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


CommandRunner = Callable[..., Awaitable[CommandResult]]


async def run_command(*argv: str, timeout: float = COMMAND_TIMEOUT) -> CommandResult:
    """Run a command to completion without blocking the event loop.

    Args:
        argv: Program and arguments
        timeout: Seconds before the process is killed

    Returns:
        CommandResult with decoded output; a non-zero exit status is not an
        error here, callers decide what it means

    Raises:
        SourceUnavailable: If the program is missing, cannot be executed or timed out
    """
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError:
        raise SourceUnavailable(argv[0], "command not found")
    except OSError as e:
        raise SourceUnavailable(argv[0], f"cannot execute: {e}") from e

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        raise SourceUnavailable(argv[0], f"timed out after {timeout}s")

    return CommandResult(
        argv=tuple(argv),
        returncode=proc.returncode,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )


class LineProcessSource(EventSource):
    """Event source fed by the stdout lines of a long-running process.

    Subclasses set ``argv`` and implement ``parse()``, turning a line into
    an (event, payload) pair or raising MalformedEvent to drop it.
    """

    argv: Sequence[str] = ()

    def __init__(self, argv: Optional[Sequence[str]] = None) -> None:
        super().__init__()
        if argv is not None:
            self.argv = tuple(argv)
        self.process: Optional[asyncio.subprocess.Process] = None
        self._reader: Optional[asyncio.Task] = None

    def parse(self, line: str) -> Tuple[str, Any]:
        raise NotImplementedError

    def feed(self, line: str) -> None:
        """Parse one line and emit its event; malformed lines are dropped."""
        line = line.strip()
        if not line:
            return
        try:
            event, payload = self.parse(line)
        except MalformedEvent as e:
            logger.debug(f"{self.name}: dropping line {line!r}: {e}")
            return
        self.emit(event, payload)

    async def start(self, scheduler: Scheduler) -> None:
        try:
            self.process = await asyncio.create_subprocess_exec(
                *self.argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            # Blocks still compute once and show their degraded state
            logger.warning(f"{self.name}: cannot start {self.argv[0]} ({e}), no events will arrive")
        else:
            logger.info(f"{self.name}: started {' '.join(self.argv)} (pid {self.process.pid})")
            self._reader = scheduler.spawn(self._read_lines())
        self.mark_ready()

    async def _read_lines(self) -> None:
        while True:
            line = await self.process.stdout.readline()
            if not line:
                break
            self.feed(line.decode("utf-8", errors="replace"))
        logger.warning(f"{self.name}: {self.argv[0]} exited with status {await self.process.wait()}")

    async def close(self) -> None:
        if self._reader is not None:
            self._reader.cancel()
        if self.process is None or self.process.returncode is not None:
            return
        self.process.terminate()
        try:
            await asyncio.wait_for(self.process.wait(), timeout=1.0)
        except asyncio.TimeoutError:
            logger.warning(f"{self.name}: {self.argv[0]} ignored SIGTERM, killing")
            self.process.kill()
            await self.process.wait()
