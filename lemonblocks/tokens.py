"""Tokenizer and cursor for character-level animation of markup text.

A markup string splits into a sequence of tokens, each either one display
character (Literal) or one whole ``%{...}`` directive (ControlAtom). The
escaped percent ``%%`` is a single Literal. Joining the tokens gives back
the original string exactly.

A Cursor indexes that sequence by token count, so it can only ever rest on
a token boundary; stepping it moves across exactly one Literal and carries
any adjacent ControlAtoms along.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple, Union

TOKEN_PATTERN = re.compile(r"%\{[^}]*\}|%%|.", re.DOTALL)


@dataclass(frozen=True)
class Literal:
    """One displayed character (``%%`` counts as one)."""
    text: str

    is_control = False


@dataclass(frozen=True)
class ControlAtom:
    """One intact markup directive such as ``%{F#ffffffff}``."""
    text: str

    is_control = True


Token = Union[Literal, ControlAtom]


def tokenize(markup: str) -> Tuple[Token, ...]:
    """Split markup into Literal and ControlAtom tokens.

    An unterminated ``%{`` is not a directive; its characters become
    literals one by one.
    """
    tokens = []
    for match in TOKEN_PATTERN.finditer(markup):
        text = match.group(0)
        if text.startswith("%{"):
            tokens.append(ControlAtom(text))
        else:
            tokens.append(Literal(text))
    return tuple(tokens)


def join(tokens: Iterable[Token]) -> str:
    return "".join(token.text for token in tokens)


def literal_count(tokens: Iterable[Token]) -> int:
    return sum(1 for token in tokens if not token.is_control)


class Cursor:
    """Reveal position within a token sequence.

    ``index`` is the number of tokens revealed. With ``from_end`` False the
    revealed tokens are a prefix (growing rightwards); with ``from_end``
    True they are a suffix (growing leftwards).
    """

    def __init__(self, tokens: Sequence[Token], index: int = 0, from_end: bool = False) -> None:
        self.tokens = tuple(tokens)
        self.from_end = from_end
        self.index = max(0, min(index, len(self.tokens)))

    def __len__(self) -> int:
        return len(self.tokens)

    @property
    def at_start(self) -> bool:
        return self.index == 0

    @property
    def at_end(self) -> bool:
        return self.index == len(self.tokens)

    def _entering(self, index: int) -> Token:
        """Token that becomes revealed when the count goes index-1 -> index."""
        if self.from_end:
            return self.tokens[len(self.tokens) - index]
        return self.tokens[index - 1]

    def advance(self) -> bool:
        """Reveal one more literal (plus the directives around it).

        Returns:
            False if nothing was left to reveal
        """
        if self.at_end:
            return False
        crossed_literal = False
        while not self.at_end:
            token = self._entering(self.index + 1)
            if not token.is_control and crossed_literal:
                break
            self.index += 1
            crossed_literal = crossed_literal or not token.is_control
        return True

    def retreat(self) -> bool:
        """Hide one literal (plus the directives around it).

        Returns:
            False if nothing was left to hide
        """
        if self.at_start:
            return False
        crossed_literal = False
        while not self.at_start:
            token = self._entering(self.index)
            if not token.is_control and crossed_literal:
                break
            self.index -= 1
            crossed_literal = crossed_literal or not token.is_control
        return True

    def revealed(self) -> Tuple[Token, ...]:
        if self.from_end:
            return self.tokens[len(self.tokens) - self.index:]
        return self.tokens[:self.index]

    def text(self) -> str:
        return join(self.revealed())

    def rebase(self, tokens: Sequence[Token]) -> "Cursor":
        """Cursor over a freshly derived token sequence at the same literal position.

        The reveal position is carried over as a count of revealed literals,
        so a change in the source text does not reset the animation.
        """
        shown = literal_count(self.revealed())
        cursor = Cursor(tokens, 0, self.from_end)
        while literal_count(cursor.revealed()) < shown and cursor.advance():
            pass
        return cursor
