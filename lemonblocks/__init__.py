"""
lemonblocks - status bar block engine for lemonbar.

Independently refreshing blocks (clock, workspaces, volume, battery, ...)
composed into one line of lemonbar markup, re-emitted only on change.
"""

__version__ = "1.0.0"
