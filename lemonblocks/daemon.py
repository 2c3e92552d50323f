"""Bar process: event loop, signals, teardown, with systemd integration.

This module wires the configured blocks to the compositor, starts their
event sources, and owns the process lifecycle: refresh signals (USR1/USR2),
termination signals (INT/TERM), engine faults, the pidfile, and teardown.
"""

import asyncio
import contextlib
import logging
import os
import signal
import sys
from pathlib import Path
from typing import Dict, List, Optional, TextIO

import psutil

try:
    from systemd import journal, daemon as sd_daemon
    SYSTEMD_AVAILABLE = True
except ImportError:
    SYSTEMD_AVAILABLE = False

from . import markup
from .bar import Bar
from .block import Block
from .config import BarConfig
from .dispatch import Dispatcher, RefreshCommand, SideChannel, SignalTransport, walk
from .errors import ConfigError, ExitCode, LemonblocksError
from .layout import SourceRegistry, build_bar
from .scheduler import AsyncioScheduler
from .teardown import Teardown

logger = logging.getLogger(__name__)

EXIT_SIGNALS: Dict[signal.Signals, ExitCode] = {
    signal.SIGINT: ExitCode.INTERRUPT,
    signal.SIGTERM: ExitCode.TERMINATE,
}


def read_pidfile(path: Path) -> Optional[int]:
    """Pid recorded in the pidfile if it names a live process, else None."""
    try:
        pid = int(Path(path).read_text().strip())
    except (OSError, ValueError):
        return None
    return pid if psutil.pid_exists(pid) else None


class BarDaemon:
    """Runs one bar until a termination signal or an engine fault.

    Args:
        config: Validated configuration
        stream: Where bar lines are written (stdout by default)
        sources: Event source registry; tests pass fake sources
    """

    def __init__(self, config: BarConfig, stream: Optional[TextIO] = None,
                 sources: Optional[SourceRegistry] = None) -> None:
        self.config = config
        self.stream = stream
        self.sources = sources or SourceRegistry()
        self.shutdown_event = asyncio.Event()
        self.exit_code = ExitCode.OK
        self.teardown = Teardown()
        self.scheduler: Optional[AsyncioScheduler] = None
        self.bar: Optional[Bar] = None
        self.dispatcher: Optional[Dispatcher] = None
        self.transport: Optional[SignalTransport] = None
        self._previous_handlers: Dict[signal.Signals, object] = {}

    def request_shutdown(self, code: ExitCode) -> None:
        """Stop the bar with code; the first request wins."""
        if self.shutdown_event.is_set():
            return
        self.exit_code = code
        self.shutdown_event.set()

    def on_fault(self, exc: BaseException) -> None:
        logger.error(f"Unrecoverable fault: {exc}", exc_info=exc)
        self.request_shutdown(ExitCode.FAULT)

    def deliver(self, command: RefreshCommand) -> None:
        self.scheduler.run_callback(lambda: self.dispatcher.dispatch(command))

    async def start(self) -> None:
        """Build the bar, start its sources and begin accepting refresh signals."""
        loop = asyncio.get_running_loop()
        self.scheduler = AsyncioScheduler(loop)
        self.scheduler.set_fault_handler(self.on_fault)
        markup.URGENT_COLOR = self.config.colors.urgent

        self.check_single_instance()
        blocks = build_bar(self.config, self.sources, self.scheduler)
        self.bar = Bar(blocks, self.stream)
        self.dispatcher = Dispatcher(blocks)
        self.teardown.register("blocks", self.close_blocks)
        self.teardown.register("timers", self.scheduler.cancel_all)
        logger.info(f"Bar built with {len(self.dispatcher.blocks)} block(s): {', '.join(self.dispatcher.tags())}")

        # Refresh signals must be handled before the pid is published
        self.transport = SignalTransport(SideChannel(self.config.side_channel), self.deliver,
                                         call_soon=loop.call_soon_threadsafe)
        self.transport.install()
        self.teardown.register("refresh-signals", self.transport.uninstall)

        self.write_pidfile()
        self.teardown.register("pidfile", self.remove_pidfile)

        for source in self.sources.active():
            self.teardown.register(f"source:{source.name}", source.close)
            await source.start(self.scheduler)

        self.bar.render()
        if SYSTEMD_AVAILABLE:
            sd_daemon.notify("READY=1")
        logger.info("Bar running")

    def close_blocks(self) -> None:
        blocks: List[Block] = list(walk(self.bar.blocks)) if self.bar else []
        for block in blocks:
            block.close()

    def check_single_instance(self) -> None:
        """Refuse to start while another bar is alive.

        Raises:
            LemonblocksError: If another live bar owns the pidfile
        """
        path = self.config.pidfile
        other = read_pidfile(path)
        if other is not None and other != os.getpid():
            raise LemonblocksError(f"Another bar is already running (pid {other}, pidfile {path})")

    def write_pidfile(self) -> None:
        """Record this process in the pidfile."""
        self.check_single_instance()
        path = self.config.pidfile
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f"{os.getpid()}\n")

    def remove_pidfile(self) -> None:
        with contextlib.suppress(FileNotFoundError):
            self.config.pidfile.unlink()

    def setup_signal_handlers(self) -> None:
        """Turn SIGINT/SIGTERM into a shutdown with a per-signal exit code."""
        loop = asyncio.get_running_loop()

        def shutdown_handler(signum, frame):
            code = EXIT_SIGNALS[signal.Signals(signum)]
            logger.info(f"Received signal {signum}, initiating shutdown...")
            # Signal handlers must not touch asyncio objects directly
            loop.call_soon_threadsafe(self.request_shutdown, code)

        for sig in EXIT_SIGNALS:
            self._previous_handlers[sig] = signal.signal(sig, shutdown_handler)

    def restore_signal_handlers(self) -> None:
        for sig, previous in self._previous_handlers.items():
            signal.signal(sig, previous)
        self._previous_handlers.clear()

    async def run(self) -> int:
        """Run until shutdown is requested.

        Returns:
            Process exit code
        """
        self.setup_signal_handlers()
        try:
            startup = asyncio.create_task(self.start())
            waiter = asyncio.create_task(self.shutdown_event.wait())
            done, _ = await asyncio.wait([startup, waiter], return_when=asyncio.FIRST_COMPLETED)
            if startup in done:
                startup.result()
                await waiter
            else:
                startup.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await startup
        except ConfigError as e:
            logger.error(f"Invalid configuration: {e}")
            self.request_shutdown(ExitCode.CONFIG)
        except Exception as e:
            logger.error(f"Fatal error: {e}", exc_info=True)
            self.request_shutdown(ExitCode.FAULT)
        finally:
            if SYSTEMD_AVAILABLE:
                sd_daemon.notify("STOPPING=1")
            await self.teardown.run()
            self.restore_signal_handlers()

        logger.info(f"Bar stopped with exit code {int(self.exit_code)} ({self.exit_code.name})")
        return int(self.exit_code)


def setup_logging() -> None:
    """Setup logging to systemd journal or stderr (stdout carries the bar)."""
    log_level = os.environ.get("LOG_LEVEL", "INFO").upper()

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    if SYSTEMD_AVAILABLE:
        handler = journal.JournalHandler(SYSLOG_IDENTIFIER="lemonblocks")
    else:
        handler = logging.StreamHandler(sys.stderr)

    formatter = logging.Formatter(
        "%(levelname)s [%(name)s] %(message)s"
    )
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    logger.debug(f"Logging configured: level={log_level}")


def run_bar(config: BarConfig) -> int:
    """Run the bar on a fresh event loop and return the exit code."""
    logger.info(f"lemonblocks starting (pid {os.getpid()})")
    try:
        return asyncio.run(BarDaemon(config).run())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return int(ExitCode.INTERRUPT)
