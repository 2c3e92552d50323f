"""End-to-end tests of the bar process on a real event loop."""

import asyncio
import io
import os
import signal

import pytest

from lemonblocks.config import BarConfig
from lemonblocks.daemon import BarDaemon, read_pidfile
from lemonblocks.dispatch import RefreshKind, SideChannel, SignalTransport
from lemonblocks.errors import ExitCode
from lemonblocks.layout import SOURCE_FACTORIES, SourceRegistry
from tests.fixtures.fakes import FakeEventSource


async def wait_until(predicate, timeout=2.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.01)


@pytest.fixture
def config(tmp_path):
    return BarConfig(
        side_channel=tmp_path / "targets",
        pidfile=tmp_path / "bar.pid",
        layout={"left": ["text:hi", "Tray"], "center": [], "right": ["clock"]},
        expandable=[{"name": "Tray", "children": ["text:x"], "animated": False}],
    )


@pytest.fixture
def registry():
    return SourceRegistry({name: (lambda name=name: FakeEventSource(name, ready=False))
                           for name in SOURCE_FACTORIES})


def lines(stream):
    return stream.getvalue().splitlines()


class SlowSource(FakeEventSource):
    """Source whose start() blocks until the test releases it."""

    def __init__(self, name):
        super().__init__(name, ready=False)
        self.release = asyncio.Event()

    async def start(self, scheduler=None):
        self.started = True
        await self.release.wait()
        self.mark_ready()


class TestBarDaemon:
    """Test startup, refresh signals, shutdown and teardown."""

    @pytest.mark.asyncio
    async def test_renders_and_stops(self, config):
        """Test the first line is printed and shutdown exits cleanly."""
        stream = io.StringIO()
        daemon = BarDaemon(config, stream=stream, sources=SourceRegistry({}))
        task = asyncio.create_task(daemon.run())

        await wait_until(lambda: daemon.bar is not None and daemon.bar.emitted == 1)
        assert lines(stream)[0].startswith("%{l}hi%{A1:")
        assert read_pidfile(config.pidfile) == os.getpid()

        daemon.request_shutdown(ExitCode.OK)
        assert await task == ExitCode.OK
        assert not config.pidfile.exists()
        assert daemon.teardown.done
        assert daemon.scheduler.pending == 0

    @pytest.mark.asyncio
    async def test_sigterm_exit_code(self, config):
        """Test SIGTERM ends the bar with its own exit status."""
        previous = signal.getsignal(signal.SIGTERM)
        daemon = BarDaemon(config, stream=io.StringIO(), sources=SourceRegistry({}))
        task = asyncio.create_task(daemon.run())
        await wait_until(lambda: daemon.bar is not None and daemon.bar.emitted)

        os.kill(os.getpid(), signal.SIGTERM)

        assert await task == ExitCode.TERMINATE
        assert signal.getsignal(signal.SIGTERM) == previous

    @pytest.mark.asyncio
    async def test_action_signal_expands_group(self, config):
        """Test a SIGUSR2 addressed to a group toggles it on the bar."""
        stream = io.StringIO()
        daemon = BarDaemon(config, stream=stream, sources=SourceRegistry({}))
        task = asyncio.create_task(daemon.run())
        await wait_until(lambda: daemon.bar is not None and daemon.bar.emitted)

        SignalTransport.send(SideChannel(config.side_channel), os.getpid(), RefreshKind.ACTION, ["Tray"])
        await wait_until(lambda: daemon.bar.emitted == 2)

        assert ">%{A}x%{r}" in lines(stream)[-1]
        assert not config.side_channel.exists()

        daemon.request_shutdown(ExitCode.OK)
        await task

    @pytest.mark.asyncio
    async def test_fault_exits_with_fault_status(self, config):
        """Test an exception escaping a timer callback ends the bar."""
        daemon = BarDaemon(config, stream=io.StringIO(), sources=SourceRegistry({}))
        task = asyncio.create_task(daemon.run())
        await wait_until(lambda: daemon.bar is not None and daemon.bar.emitted)

        def broken():
            raise RuntimeError("boom")

        daemon.scheduler.call_later(0, broken)

        assert await task == ExitCode.FAULT
        assert not config.pidfile.exists()

    @pytest.mark.asyncio
    async def test_sources_started_and_closed(self, config, registry):
        """Test sources in use are started and closed at teardown."""
        source = registry.get("acpi")
        daemon = BarDaemon(config, stream=io.StringIO(), sources=registry)
        task = asyncio.create_task(daemon.run())
        await wait_until(lambda: source.started)

        daemon.request_shutdown(ExitCode.OK)
        await task
        assert source.closed

    @pytest.mark.asyncio
    async def test_second_bar_refused(self, config):
        """Test a live pidfile owned by another process stops startup."""
        config.pidfile.parent.mkdir(parents=True, exist_ok=True)
        config.pidfile.write_text(f"{os.getppid()}\n")

        daemon = BarDaemon(config, stream=io.StringIO(), sources=SourceRegistry({}))
        assert await daemon.run() == ExitCode.FAULT
        assert config.pidfile.read_text() == f"{os.getppid()}\n"

    @pytest.mark.asyncio
    async def test_refresh_signal_during_source_startup(self, config):
        """Test a SIGUSR1 sent once the pidfile exists never kills a starting bar."""
        slow = SlowSource("acpi")
        registry = SourceRegistry({"acpi": lambda: slow})
        registry.get("acpi")
        stream = io.StringIO()
        daemon = BarDaemon(config, stream=stream, sources=registry)
        task = asyncio.create_task(daemon.run())
        await wait_until(lambda: slow.started)

        assert read_pidfile(config.pidfile) == os.getpid()
        assert signal.getsignal(signal.SIGUSR1) is not signal.SIG_DFL
        os.kill(os.getpid(), signal.SIGUSR1)
        await asyncio.sleep(0.05)
        assert not task.done()

        slow.release.set()
        await wait_until(lambda: daemon.bar.emitted == 1)
        daemon.request_shutdown(ExitCode.OK)
        assert await task == ExitCode.OK
        assert not config.pidfile.exists()

    @pytest.mark.asyncio
    async def test_bad_layout_exits_with_config_status(self, tmp_path):
        """Test an unknown block name ends startup with the config status."""
        config = BarConfig(
            side_channel=tmp_path / "targets",
            pidfile=tmp_path / "bar.pid",
            layout={"left": ["bogus"], "center": [], "right": []},
        )
        daemon = BarDaemon(config, stream=io.StringIO(), sources=SourceRegistry({}))

        assert await daemon.run() == ExitCode.CONFIG
        assert not config.pidfile.exists()
