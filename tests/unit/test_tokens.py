"""Unit tests for the markup tokenizer and reveal cursor."""

import pytest

from lemonblocks.tokens import ControlAtom, Cursor, Literal, join, literal_count, tokenize

SAMPLES = [
    "",
    "plain",
    "%{F#ffff0000}red%{F-}",
    "%{A:i3-msg workspace 1:} 1 %{A}",
    "100%% sure",
    "%{+u}%{B#ff000000}x%{B-}%{-u}",
    "broken %{F#fff",
    "日本語%{R}テキスト%{R}",
]


class TestTokenize:
    """Test splitting markup into literals and control atoms."""

    @pytest.mark.parametrize("markup", SAMPLES)
    def test_round_trip(self, markup):
        """Test joining all tokens reproduces the input exactly."""
        assert join(tokenize(markup)) == markup

    def test_directives_are_atoms(self):
        """Test each %{...} directive becomes a single token."""
        tokens = tokenize("%{F#ffff0000}ab%{F-}")
        assert tokens == (
            ControlAtom("%{F#ffff0000}"),
            Literal("a"),
            Literal("b"),
            ControlAtom("%{F-}"),
        )

    def test_escaped_percent_is_one_literal(self):
        """Test %% counts as one displayed character."""
        tokens = tokenize("5%%")
        assert tokens == (Literal("5"), Literal("%%"))
        assert literal_count(tokens) == 2

    def test_unterminated_directive_is_literal_text(self):
        """Test an unterminated %{ is split into plain characters."""
        tokens = tokenize("%{F")
        assert all(not token.is_control for token in tokens)
        assert literal_count(tokens) == 3


class TestCursor:
    """Test cursor stepping over token boundaries."""

    def test_advance_crosses_one_literal_with_adjacent_controls(self):
        """Test one step reveals one literal plus the directives around it."""
        cursor = Cursor(tokenize("%{F#ff00ff00}a%{F-}b"))

        cursor.advance()
        assert cursor.text() == "%{F#ff00ff00}a%{F-}"
        cursor.advance()
        assert cursor.text() == "%{F#ff00ff00}a%{F-}b"
        assert cursor.at_end
        assert not cursor.advance()

    def test_retreat_hides_one_literal(self):
        """Test retreat hides the last literal and the directives around it."""
        tokens = tokenize("a%{+u}b%{-u}")
        cursor = Cursor(tokens, len(tokens))

        cursor.retreat()
        assert cursor.text() == "a"
        cursor.retreat()
        assert cursor.text() == ""
        assert cursor.at_start
        assert not cursor.retreat()

    @pytest.mark.parametrize("markup", SAMPLES)
    @pytest.mark.parametrize("from_end", [False, True])
    def test_every_position_is_a_token_boundary(self, markup, from_end):
        """Test no revealed text ever ends inside a directive."""
        tokens = tokenize(markup)
        cursor = Cursor(tokens, from_end=from_end)
        seen = [cursor.revealed()]
        while cursor.advance():
            seen.append(cursor.revealed())
        while cursor.retreat():
            seen.append(cursor.revealed())

        for revealed in seen:
            text = join(revealed)
            assert tokenize(text) == revealed
            if from_end:
                assert markup.endswith(text)
            else:
                assert markup.startswith(text)

    def test_steps_equal_literal_count(self):
        """Test a full sweep takes exactly one step per literal."""
        tokens = tokenize("%{F#ffffffff}abc%{F-} d")
        cursor = Cursor(tokens)
        steps = 0
        while cursor.advance():
            steps += 1
        assert steps == literal_count(tokens) == 5

    def test_from_end_reveals_suffix(self):
        """Test suffix reveal grows leftwards."""
        cursor = Cursor(tokenize("abc"), from_end=True)
        cursor.advance()
        assert cursor.text() == "c"
        cursor.advance()
        assert cursor.text() == "bc"

    def test_rebase_keeps_literal_position(self):
        """Test rebasing onto new text keeps the number of revealed literals."""
        cursor = Cursor(tokenize("abcdef"))
        cursor.advance()
        cursor.advance()

        rebased = cursor.rebase(tokenize("%{F#ffff0000}xyz%{F-}uvw"))
        assert literal_count(rebased.revealed()) == 2
        assert rebased.text() == "%{F#ffff0000}xy"

    def test_rebase_onto_shorter_text_clamps(self):
        """Test rebasing beyond the new length stops at the end."""
        cursor = Cursor(tokenize("abcdef"), 6)
        rebased = cursor.rebase(tokenize("ab"))
        assert rebased.at_end
        assert rebased.text() == "ab"
