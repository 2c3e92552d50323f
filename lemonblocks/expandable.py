"""Composite blocks that toggle between a summary control and their children.

ExpandableBlock switches instantly between collapsed (toggle control only)
and expanded (toggle control next to the children's text).

AnimatedExpandableBlock sweeps the children's text in or out one displayed
character per frame. The text is tokenized so a markup directive is never
cut in half, and a toggle during a sweep reverses it from wherever it
currently is.
"""

import logging
from enum import Enum
from typing import Iterable, List, Optional

from . import markup
from .block import Block
from .scheduler import Scheduler
from .tokens import Cursor, tokenize

logger = logging.getLogger(__name__)

DEFAULT_FRAME_MS = 30


class Side(str, Enum):
    """Side of the children on which the toggle control sits."""
    LEFT = "left"
    RIGHT = "right"


class ExpansionState(str, Enum):
    COLLAPSED = "collapsed"
    EXPANDING = "expanding"
    EXPANDED = "expanded"
    COLLAPSING = "collapsing"


class ExpandableBlock(Block):
    """Composite block showing its children only while expanded.

    Args:
        blocks: Child blocks, rendered in order
        tag: Type tag (composites are addressed by name)
        collapsed_label: Toggle text while collapsed
        expanded_label: Toggle text while expanded
        side: Where the toggle sits relative to the children
        command: Shell command run when the toggle is clicked; normally a
            refresh command that sends this block an action
    """

    def __init__(self, blocks: Iterable[Block], tag: str, collapsed_label: str = "<",
                 expanded_label: str = ">", side: Side = Side.LEFT,
                 command: Optional[str] = None, scheduler: Optional[Scheduler] = None) -> None:
        super().__init__(scheduler=scheduler, tag=tag, initial_text="")
        self.blocks: List[Block] = list(blocks)
        self.collapsed_label = collapsed_label
        self.expanded_label = expanded_label
        self.side = Side(side)
        self.command = command
        self._expanded = False
        for child in self.blocks:
            child.connect(self._child_changed)
        self.refresh()

    def children(self) -> List[Block]:
        return self.blocks

    def is_expanded(self) -> bool:
        return self._expanded

    def children_text(self) -> str:
        return "".join(child.query() for child in self.blocks)

    def toggle_text(self) -> str:
        label = self.expanded_label if self.is_expanded() else self.collapsed_label
        if self.command:
            return markup.click(self.command, label, markup.BUTTON_LEFT)
        return label

    def compose(self, body: str) -> str:
        if self.side is Side.LEFT:
            return self.toggle_text() + body
        return body + self.toggle_text()

    def compute(self) -> str:
        if not self.is_expanded():
            return self.compose("")
        return self.compose(self.children_text())

    def action(self) -> None:
        self._expanded = not self._expanded
        logger.debug(f"{self.tag} {'expanded' if self._expanded else 'collapsed'}")
        self.update()

    def _child_changed(self, child: Block) -> None:
        self.update()


class AnimatedExpandableBlock(ExpandableBlock):
    """Expandable block that reveals and hides its children over time.

    Each frame moves the reveal position by one displayed character. The
    frame timer stops on the frame that reaches the boundary (everything
    shown when expanding, nothing shown when collapsing); from then on the
    full or empty child text is rendered directly.
    """

    def __init__(self, blocks: Iterable[Block], tag: str, scheduler: Scheduler,
                 frame_ms: float = DEFAULT_FRAME_MS, **kwargs) -> None:
        self.state = ExpansionState.COLLAPSED
        self.frame_ms = frame_ms
        self._begin = False
        self._cursor = Cursor((), 0, from_end=Side(kwargs.get("side", Side.LEFT)) is Side.RIGHT)
        self._frames = scheduler.slot()
        super().__init__(blocks, tag, scheduler=scheduler, **kwargs)

    @property
    def animating(self) -> bool:
        return self.state in (ExpansionState.EXPANDING, ExpansionState.COLLAPSING)

    def is_expanded(self) -> bool:
        return self.state in (ExpansionState.EXPANDING, ExpansionState.EXPANDED)

    def action(self) -> None:
        if self.is_expanded():
            self.state = ExpansionState.COLLAPSING
        else:
            self.state = ExpansionState.EXPANDING
        self._begin = True
        logger.debug(f"{self.tag} now {self.state.value}")
        self.update()

    def compute(self) -> str:
        tokens = tokenize(self.children_text())
        if self._begin:
            self._begin = False
            self._frames.cancel()
            self._cursor = self._cursor.rebase(tokens)
            self._frames.repeat(self.frame_ms, self.frame_ms, self._frame)
        elif self.animating:
            self._cursor = self._cursor.rebase(tokens)
        else:
            index = len(tokens) if self.state is ExpansionState.EXPANDED else 0
            self._cursor = Cursor(tokens, index, self._cursor.from_end)
        return self.compose(self._cursor.text())

    def _frame(self) -> None:
        if self.state is ExpansionState.EXPANDING:
            self._cursor.advance()
            if self._cursor.at_end:
                self._settle(ExpansionState.EXPANDED)
        elif self.state is ExpansionState.COLLAPSING:
            self._cursor.retreat()
            if self._cursor.at_start:
                self._settle(ExpansionState.COLLAPSED)
        else:
            self._frames.cancel()
            return
        self.set_text(self.compose(self._cursor.text()))

    def _settle(self, state: ExpansionState) -> None:
        self._frames.cancel()
        self.state = state
        logger.debug(f"{self.tag} settled {state.value}")

    def close(self) -> None:
        self._frames.cancel()
