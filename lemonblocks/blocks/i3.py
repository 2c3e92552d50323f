"""Window-manager blocks: workspace buttons and the focused window title."""

import logging
import shlex
from typing import Optional

from .. import markup
from ..errors import SourceUnavailable
from ..scheduler import Scheduler
from ..sources.i3 import I3EventSource
from ..subscribed import SubscribedBlock

logger = logging.getLogger(__name__)


def workspace_label(name: str) -> str:
    """Display part of a workspace name: ``"1:web"`` shows as ``web``."""
    _, sep, label = name.partition(":")
    return label if sep and label else name


def truncate(text: str, max_length: int, omission: str = "…") -> str:
    """Shorten text to max_length characters, omission included."""
    if len(text) <= max_length:
        return text
    return text[:max(max_length - len(omission), 0)] + omission


async def query_i3(source: I3EventSource, request: str):
    """Run one i3ipc query, turning connection failures into SourceUnavailable."""
    if source.conn is None:
        raise SourceUnavailable("i3", "not connected")
    try:
        return await getattr(source.conn, request)()
    except Exception as e:
        raise SourceUnavailable("i3", str(e) or type(e).__name__) from e


class WorkspaceBlock(SubscribedBlock):
    """One clickable button per workspace; focused underlined, urgent highlighted."""

    def __init__(self, scheduler: Scheduler, source: I3EventSource, separator: str = " ",
                 tag: Optional[str] = None, **kwargs) -> None:
        self.separator = separator
        super().__init__(scheduler, source, ("workspace",), tag=tag, **kwargs)

    async def compute(self) -> str:
        workspaces = await query_i3(self.source, "get_workspaces")
        return self.separator.join(self.render_workspace(ws) for ws in workspaces)

    @staticmethod
    def render_workspace(workspace) -> str:
        label = markup.escape_text(workspace_label(workspace.name))
        if workspace.focused:
            label = markup.underline(label)
        button = markup.click(f"i3-msg workspace {shlex.quote(workspace.name)}", f" {label} ")
        if workspace.urgent:
            button = markup.urgent(button)
        return button


class TitleBlock(SubscribedBlock):
    """Title of the focused window, truncated."""

    def __init__(self, scheduler: Scheduler, source: I3EventSource, max_length: int = 80,
                 omission: str = "…", tag: Optional[str] = None, **kwargs) -> None:
        self.max_length = max_length
        self.omission = omission
        super().__init__(scheduler, source, ("window", "workspace::focus"), tag=tag, **kwargs)

    async def compute(self) -> str:
        tree = await query_i3(self.source, "get_tree")
        focused = tree.find_focused()
        # An empty workspace focuses the workspace container itself
        if focused is None or focused.type == "workspace" or not focused.name:
            return ""
        return markup.escape_text(truncate(focused.name, self.max_length, self.omission))
