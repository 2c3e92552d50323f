"""Unit tests for the bar compositor."""

from lemonblocks.bar import Bar
from lemonblocks.block import Block, StaticBlock
from lemonblocks.expandable import ExpandableBlock


class SettableBlock(Block):
    def __init__(self, text=""):
        super().__init__(initial_text=text)
        self.text = text

    def compute(self):
        return self.text

    def show(self, text):
        self.text = text
        self.update()


def lines(stream):
    return stream.getvalue().splitlines()


class TestBar:
    """Test composition and change-only emission."""

    def test_render_writes_composed_line(self, stream):
        """Test blocks are concatenated in declaration order."""
        bar = Bar([StaticBlock("a"), StaticBlock("b"), StaticBlock("c")], stream)
        assert bar.render()
        assert lines(stream) == ["abc"]

    def test_identical_line_not_reprinted(self, stream):
        """Test rendering the same state twice prints once."""
        bar = Bar([StaticBlock("x")], stream)
        bar.render()
        assert not bar.render()
        assert lines(stream) == ["x"]
        assert bar.emitted == 1

    def test_empty_blocks_leave_no_residue(self, stream):
        """Test two empty blocks and "X" compose to exactly "X"."""
        bar = Bar([SettableBlock(""), SettableBlock(""), SettableBlock("X")], stream)
        bar.render()
        assert lines(stream) == ["X"]

    def test_block_change_triggers_emission(self, stream):
        """Test a changed block causes exactly one new line."""
        left, right = SettableBlock("a"), SettableBlock("b")
        bar = Bar([left, right], stream)
        bar.render()

        right.show("c")
        right.show("c")
        assert lines(stream) == ["ab", "ac"]

    def test_change_back_and_forth(self, stream):
        """Test a line equal to an older, non-adjacent one is printed."""
        block = SettableBlock("a")
        bar = Bar([block], stream)
        bar.render()
        block.show("b")
        block.show("a")
        assert lines(stream) == ["a", "b", "a"]

    def test_notification_with_same_line_is_noop(self, stream):
        """Test a static re-emit does not duplicate the line."""
        label = StaticBlock("|")
        bar = Bar([label, SettableBlock("x")], stream)
        bar.render()
        label.update()
        assert lines(stream) == ["|x"]

    def test_composite_changes_reach_bar(self, stream):
        """Test an expandable's toggle is reflected on the bar."""
        group = ExpandableBlock([StaticBlock("A")], "Group")
        bar = Bar([group], stream)
        bar.render()
        group.action()
        assert lines(stream) == ["<", ">A"]
