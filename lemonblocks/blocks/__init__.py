"""Concrete data blocks: one per live resource shown on the bar."""

from .battery import BatteryBlock
from .clock import DatetimeBlock
from .i3 import TitleBlock, WorkspaceBlock
from .music import MpdBlock
from .network import SsidBlock
from .packages import PackageUpdateBlock
from .volume import VolumeBlock

__all__ = [
    "BatteryBlock",
    "DatetimeBlock",
    "MpdBlock",
    "PackageUpdateBlock",
    "SsidBlock",
    "TitleBlock",
    "VolumeBlock",
    "WorkspaceBlock",
]
