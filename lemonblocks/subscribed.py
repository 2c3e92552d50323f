"""Blocks that recompute when an external event source fires named events.

An EventSource is an explicit registration table mapping event names to
callback lists. Some sources only accept subscriptions once a handshake has
finished; they call ``mark_ready()`` at that point and blocks defer their
subscription until then.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from .block import Block
from .debounce import Debouncer
from .scheduler import Scheduler

logger = logging.getLogger(__name__)

EventCallback = Callable[[Any], None]


class EventSource:
    """Named-event fan-out for one external resource."""

    name = "source"

    def __init__(self) -> None:
        self._handlers: Dict[str, List[EventCallback]] = {}
        self._ready = False
        self._on_ready: List[Callable[[], None]] = []

    @property
    def ready(self) -> bool:
        return self._ready

    def on(self, event: str, callback: EventCallback) -> None:
        self._handlers.setdefault(event, []).append(callback)

    def off(self, event: str, callback: EventCallback) -> None:
        callbacks = self._handlers.get(event, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def handler_count(self, event: str) -> int:
        return len(self._handlers.get(event, []))

    def emit(self, event: str, payload: Any = None) -> None:
        for callback in list(self._handlers.get(event, [])):
            callback(payload)

    def when_ready(self, callback: Callable[[], None]) -> None:
        """Run callback now if the source is ready, otherwise once it becomes ready."""
        if self._ready:
            callback()
        else:
            self._on_ready.append(callback)

    def mark_ready(self) -> None:
        if self._ready:
            return
        self._ready = True
        logger.debug(f"Event source {self.name} ready")
        pending, self._on_ready = self._on_ready, []
        for callback in pending:
            callback()

    async def start(self, scheduler: Optional[Scheduler] = None) -> None:
        """Bring the source up. Sources without a handshake are ready at once."""
        self.mark_ready()

    async def close(self) -> None:
        """Release the underlying handle (process, socket)."""


class Subscription:
    """A set of (event, callback) registrations that attach and detach together."""

    def __init__(self, source: EventSource, events: Iterable[str], callback: EventCallback) -> None:
        self.source = source
        self.events: Tuple[str, ...] = tuple(events)
        self.callback = callback
        self.attached = False

    def attach(self) -> None:
        if self.attached:
            return
        for event in self.events:
            self.source.on(event, self.callback)
        self.attached = True

    def detach(self) -> None:
        if not self.attached:
            return
        for event in self.events:
            self.source.off(event, self.callback)
        self.attached = False


class SubscribedBlock(Block):
    """A block driven by events from an EventSource.

    Args:
        scheduler: Scheduler for debouncing and async computes
        source: Event source to subscribe to
        events: Event names that trigger a recomputation
        fudge_ms: Debounce delay; None recomputes on every event directly
        tag: Type tag override
    """

    def __init__(self, scheduler: Scheduler, source: EventSource, events: Iterable[str],
                 fudge_ms: Optional[float] = None, tag: Optional[str] = None, **kwargs) -> None:
        super().__init__(scheduler=scheduler, tag=tag, **kwargs)
        self.source = source
        self.debouncer = Debouncer(scheduler, fudge_ms, self.refresh) if fudge_ms else None
        self.subscription = Subscription(source, events, self._on_event)
        source.when_ready(self._subscribe)

    def _subscribe(self) -> None:
        self.subscription.attach()
        logger.debug(f"{self.tag} subscribed to {self.source.name}: {', '.join(self.subscription.events)}")
        self.refresh()

    def accepts(self, payload: Any) -> bool:
        """Whether an event payload concerns this block."""
        return True

    def _on_event(self, payload: Any) -> None:
        if not self.accepts(payload):
            logger.debug(f"{self.tag} ignoring event payload {payload!r}")
            return
        self.update()

    def update(self) -> None:
        if self.debouncer is not None:
            self.debouncer.trigger()
        else:
            self.refresh()

    def close(self) -> None:
        if self.debouncer is not None:
            self.debouncer.cancel()
        self.subscription.detach()
