"""Selective refresh: address update() or action() to blocks by type tag.

A RefreshCommand names a kind (update or action) and an ordered list of
target tags. The Dispatcher delivers it to the matching blocks only. The
OS transport carries the targets in a side-channel file and the kind in the
signal number (SIGUSR1 update, SIGUSR2 action); the writer must finish the
file before raising the signal.
"""

import logging
import os
import shlex
import signal
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from .block import Block
from .errors import SideChannelError

logger = logging.getLogger(__name__)


class RefreshKind(str, Enum):
    """What a refresh request asks of its targets."""
    UPDATE = "update"
    ACTION = "action"


SIGNALS: Dict[RefreshKind, signal.Signals] = {
    RefreshKind.UPDATE: signal.SIGUSR1,
    RefreshKind.ACTION: signal.SIGUSR2,
}


@dataclass(frozen=True)
class RefreshCommand:
    """A request to run update() or action() on the blocks named in targets."""
    kind: RefreshKind
    targets: Tuple[str, ...]


def _ordered_unique(tags: Iterable[str]) -> Tuple[str, ...]:
    seen = []
    for tag in tags:
        if tag and tag not in seen:
            seen.append(tag)
    return tuple(seen)


class SideChannel:
    """Transient file holding newline-separated target tags."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def write(self, tags: Sequence[str]) -> None:
        """Overwrite the target list.

        Written to a temporary file and renamed so a reader never sees a
        partial list.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(f".{self.path.name}.{os.getpid()}")
        tmp.write_text("".join(f"{tag}\n" for tag in tags))
        tmp.replace(self.path)

    def read(self) -> Tuple[str, ...]:
        """Read the target list once and discard the file.

        Raises:
            SideChannelError: If the file is missing or unreadable
        """
        try:
            content = self.path.read_text()
        except (OSError, UnicodeDecodeError) as e:
            raise SideChannelError(f"Cannot read side channel {self.path}: {e}") from e
        try:
            self.path.unlink()
        except OSError as e:
            logger.debug(f"Side channel {self.path} already gone: {e}")
        return _ordered_unique(line.strip() for line in content.splitlines())


def refresh_command(tags: Sequence[str], kind: RefreshKind, side_channel: Path, pid: int) -> str:
    """Shell command that writes the targets and then signals the bar.

    Used as the command of clickable regions, so a click can redraw blocks
    other than the one clicked.
    """
    printf = " ".join(["printf", shlex.quote("%s\\n")] + [shlex.quote(tag) for tag in tags])
    sig = SIGNALS[kind].name[3:]
    return f"{printf} > {shlex.quote(str(side_channel))} && kill -{sig} {pid}"


def walk(blocks: Iterable[Block]) -> Iterator[Block]:
    """Yield blocks depth-first, composites before their children."""
    for block in blocks:
        yield block
        yield from walk(block.children())


class Dispatcher:
    """Delivers RefreshCommands to the blocks whose tag they name."""

    def __init__(self, blocks: Iterable[Block]) -> None:
        self.blocks: List[Block] = list(walk(blocks))

    def tags(self) -> Tuple[str, ...]:
        return _ordered_unique(block.tag for block in self.blocks)

    def dispatch(self, command: RefreshCommand) -> List[Block]:
        """Run the command on matching blocks, in target order.

        Returns:
            The blocks that were invoked
        """
        invoked = []
        for tag in _ordered_unique(command.targets):
            matches = [block for block in self.blocks if block.tag == tag]
            if not matches:
                logger.warning(f"Refresh target {tag!r} matches no block")
            for block in matches:
                if command.kind is RefreshKind.ACTION:
                    block.action()
                else:
                    block.update()
                invoked.append(block)
        logger.info(f"Dispatched {command.kind.value} to {len(invoked)} block(s): {', '.join(command.targets)}")
        return invoked


class SignalTransport:
    """Receives RefreshCommands through OS signals plus the side channel."""

    def __init__(self, side_channel: SideChannel, deliver: Callable[[RefreshCommand], object],
                 call_soon: Optional[Callable] = None) -> None:
        self.side_channel = side_channel
        self.deliver = deliver
        self.call_soon = call_soon
        self._previous: Dict[signal.Signals, object] = {}

    def install(self) -> None:
        """Install SIGUSR1/SIGUSR2 handlers that hop onto the event loop."""

        def handler(signum, frame):
            kind = RefreshKind.UPDATE if signum == signal.SIGUSR1 else RefreshKind.ACTION
            if self.call_soon is not None:
                self.call_soon(self.receive, kind)
            else:
                self.receive(kind)

        for sig in SIGNALS.values():
            self._previous[sig] = signal.signal(sig, handler)

    def uninstall(self) -> None:
        for sig, previous in self._previous.items():
            signal.signal(sig, previous)
        self._previous.clear()

    def receive(self, kind: RefreshKind) -> None:
        try:
            targets = self.side_channel.read()
        except SideChannelError as e:
            logger.warning(f"Refresh signal ({kind.value}) dropped: {e}")
            return
        self.deliver(RefreshCommand(kind, targets))

    @staticmethod
    def send(side_channel: SideChannel, pid: int, kind: RefreshKind, tags: Sequence[str]) -> None:
        """Write targets then signal a running bar (write-then-signal)."""
        side_channel.write(tags)
        os.kill(pid, SIGNALS[kind])
