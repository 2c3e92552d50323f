"""i3/sway IPC event source over i3ipc's asyncio connection."""

import asyncio
import logging
from functools import partial
from typing import Optional, Set

from i3ipc import aio

from ..scheduler import Scheduler
from ..subscribed import EventCallback, EventSource

logger = logging.getLogger(__name__)


class I3EventSource(EventSource):
    """Relays i3 IPC events (``workspace``, ``window``, ``workspace::focus``...).

    The source becomes ready only once the IPC handshake has completed;
    blocks subscribing earlier are attached at that point.
    """

    name = "i3"

    def __init__(self, connect_attempts: int = 10) -> None:
        super().__init__()
        self.connect_attempts = connect_attempts
        self.conn: Optional[aio.Connection] = None
        self._relayed: Set[str] = set()
        self._main: Optional[asyncio.Task] = None

    async def start(self, scheduler: Optional[Scheduler] = None) -> None:
        self.conn = await self._connect_with_retry()
        if scheduler is not None:
            # Handler exceptions end the connection main loop with that error
            self._main = scheduler.spawn(self.conn.main())
        self.mark_ready()

    async def _connect_with_retry(self) -> aio.Connection:
        """Connect with exponential backoff.

        Raises:
            ConnectionError: If every attempt fails
        """
        delay = 0.1
        for attempt in range(1, self.connect_attempts + 1):
            try:
                conn = await aio.Connection(auto_reconnect=True).connect()
                version = await conn.get_version()
                logger.info(f"Connected to i3 IPC ({version.human_readable})")
                return conn
            except Exception as e:
                logger.warning(f"i3 connection attempt {attempt}/{self.connect_attempts} failed: {e}")
                if attempt < self.connect_attempts:
                    await asyncio.sleep(delay)
                    delay = min(delay * 2, 5.0)
        raise ConnectionError(f"Failed to connect to i3 after {self.connect_attempts} attempts")

    def on(self, event: str, callback: EventCallback) -> None:
        super().on(event, callback)
        if self.conn is not None and event not in self._relayed:
            # i3ipc.aio subscribes to the event type on first handler
            self.conn.on(event, partial(self._relay, event))
            self._relayed.add(event)

    def _relay(self, name: str, conn: aio.Connection, event) -> None:
        self.emit(name, event)

    async def close(self) -> None:
        if self.conn is not None:
            self.conn.main_quit()
            self.conn = None
