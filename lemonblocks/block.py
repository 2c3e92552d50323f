"""The block contract shared by every segment of the bar.

A block holds its last rendered text. ``update()`` recomputes it and, when
the text changed, notifies every connected listener; ``query()`` returns
the stored text without recomputing anything. ``action()`` is an optional
block-specific command (toggle expansion, toggle mute, ...).

Concrete blocks implement ``compute()``, returning either a string or an
awaitable resolving to one. Recomputations of one block never overlap: a
trigger that arrives while an asynchronous compute is in flight is folded
into one follow-up run once the current one finishes.
"""

import inspect
import logging
from typing import Awaitable, Callable, List, Optional, Union

from . import markup
from .errors import SourceUnavailable
from .scheduler import Scheduler

logger = logging.getLogger(__name__)

LOADING_TEXT = "…"

ChangeListener = Callable[["Block"], None]


class Block:
    """Base class for all blocks.

    Attributes:
        tag: Stable type tag used for signal-addressed refresh. Defaults to
            the class name.
        unavailable_text: Placeholder shown (urgent-styled) when the source
            is unavailable.
    """

    unavailable_text = "✗"

    def __init__(self, scheduler: Optional[Scheduler] = None, tag: Optional[str] = None,
                 initial_text: str = LOADING_TEXT) -> None:
        self.scheduler = scheduler
        self.tag = tag or type(self).__name__
        self._text = initial_text
        self._listeners: List[ChangeListener] = []
        self._inflight = None
        self._stale = False

    def __repr__(self) -> str:
        return f"<{type(self).__name__} tag={self.tag!r} text={self._text!r}>"

    def connect(self, listener: ChangeListener) -> None:
        """Register a callback run with this block whenever its text changes."""
        self._listeners.append(listener)

    def query(self) -> str:
        return self._text

    def update(self) -> None:
        self.refresh()

    def action(self) -> None:
        """Block-specific command; most blocks have none."""
        logger.debug(f"{self.tag} has no action")

    def children(self) -> List["Block"]:
        return []

    def close(self) -> None:
        """Release timers and other resources held by the block."""

    def compute(self) -> Union[str, Awaitable[str]]:
        raise NotImplementedError

    def refresh(self) -> None:
        """Recompute the text now, serialised against in-flight computes."""
        if self._inflight is not None:
            self._stale = True
            return
        try:
            result = self.compute()
        except SourceUnavailable as e:
            self._degrade(e)
            return
        if inspect.isawaitable(result):
            if self.scheduler is None:
                raise RuntimeError(f"{self.tag} computes asynchronously but has no scheduler")
            self._inflight = self.scheduler.spawn(self._finish(result))
        else:
            self.set_text(result)

    async def _finish(self, pending: Awaitable[str]) -> None:
        try:
            text = await pending
        except SourceUnavailable as e:
            self._degrade(e)
        else:
            self.set_text(text)
        finally:
            self._inflight = None
        if self._stale:
            self._stale = False
            self.refresh()

    def _degrade(self, error: SourceUnavailable) -> None:
        logger.warning(f"{self.tag}: {error}")
        self.set_text(markup.urgent(self.unavailable_text))

    def set_text(self, text: str) -> None:
        if text == self._text:
            return
        self._text = text
        self.notify()

    def notify(self) -> None:
        for listener in self._listeners:
            listener(self)


class StaticBlock(Block):
    """A fixed label."""

    def __init__(self, text: str, tag: Optional[str] = None) -> None:
        super().__init__(tag=tag, initial_text=text)
        self.text = text

    def compute(self) -> str:
        return self.text

    def update(self) -> None:
        self.refresh()
        self.notify()
