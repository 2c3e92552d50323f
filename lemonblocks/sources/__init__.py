"""External event sources and command runners feeding the blocks."""
