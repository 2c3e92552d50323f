"""Bar compositor: the single writer of the status line."""

import logging
import sys
from typing import Iterable, List, Optional, TextIO

from .block import Block

logger = logging.getLogger(__name__)


class Bar:
    """Owns the ordered block list and prints the composed line on change.

    Blocks are concatenated in declaration order; a block with empty text
    simply contributes nothing. A line identical to the previous emission
    is not printed again.
    """

    def __init__(self, blocks: Iterable[Block], stream: Optional[TextIO] = None) -> None:
        self.blocks: List[Block] = list(blocks)
        self.stream = stream if stream is not None else sys.stdout
        self.last_line: Optional[str] = None
        self.emitted = 0
        for block in self.blocks:
            block.connect(self._on_change)

    def compose(self) -> str:
        return "".join(block.query() for block in self.blocks)

    def render(self) -> bool:
        """Emit the composed line if it differs from the last emission.

        Returns:
            True if a line was written
        """
        line = self.compose()
        if line == self.last_line:
            return False
        self.stream.write(line + "\n")
        self.stream.flush()
        self.last_line = line
        self.emitted += 1
        return True

    def _on_change(self, block: Block) -> None:
        logger.debug(f"{block.tag} changed")
        self.render()
