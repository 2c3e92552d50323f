"""Fake event sources and command runners."""

from typing import Any, List, Tuple, Union

from lemonblocks.sources.process import CommandResult
from lemonblocks.subscribed import EventSource


class FakeEventSource(EventSource):
    """Event source the test fires by hand."""

    def __init__(self, name: str = "fake", ready: bool = True) -> None:
        super().__init__()
        self.name = name
        self.started = False
        self.closed = False
        if ready:
            self.mark_ready()

    def fire(self, event: str, payload: Any = None) -> None:
        self.emit(event, payload)

    async def start(self, scheduler=None) -> None:
        self.started = True
        self.mark_ready()

    async def close(self) -> None:
        self.closed = True


def result(stdout: str = "", returncode: int = 0, stderr: str = "") -> CommandResult:
    return CommandResult(argv=(), returncode=returncode, stdout=stdout, stderr=stderr)


class FakeRunner:
    """Coroutine-function stand-in for run_command.

    Results are handed out in order; the last one repeats. An exception
    instance in the list is raised instead of returned.
    """

    def __init__(self, *results: Union[CommandResult, Exception]) -> None:
        self.results = list(results)
        self.calls: List[Tuple[str, ...]] = []

    async def __call__(self, *argv: str, timeout: float = 5.0) -> CommandResult:
        self.calls.append(argv)
        outcome = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome
