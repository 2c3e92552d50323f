"""Builds the fixed, ordered block list from configuration."""

import logging
import os
from typing import Callable, Dict, List, Optional, Set

from . import markup
from .block import Block, StaticBlock
from .blocks import (BatteryBlock, DatetimeBlock, MpdBlock, PackageUpdateBlock, SsidBlock,
                     TitleBlock, VolumeBlock, WorkspaceBlock)
from .blocks.volume import ACPI_EVENTS, PACTL_EVENTS
from .config import BLOCK_NAMES, TEXT_PREFIX, BarConfig, ExpandableConfig
from .dispatch import RefreshKind, refresh_command
from .errors import ConfigError
from .expandable import AnimatedExpandableBlock, ExpandableBlock
from .scheduler import Scheduler
from .sources.events import AcpiEventSource, IweventSource, MpcIdleSource, PactlEventSource
from .sources.i3 import I3EventSource
from .subscribed import EventSource

logger = logging.getLogger(__name__)

ZONES = (
    ("left", markup.ALIGN_LEFT),
    ("center", markup.ALIGN_CENTER),
    ("right", markup.ALIGN_RIGHT),
)

SOURCE_FACTORIES: Dict[str, Callable[[], EventSource]] = {
    "i3": I3EventSource,
    "acpi": AcpiEventSource,
    "pactl": PactlEventSource,
    "iwevent": IweventSource,
    "mpd": MpcIdleSource,
}


class SourceRegistry:
    """Creates each event source on first use so unused tools are never spawned."""

    def __init__(self, factories: Optional[Dict[str, Callable[[], EventSource]]] = None) -> None:
        self._factories = dict(factories or SOURCE_FACTORIES)
        self._sources: Dict[str, EventSource] = {}

    def get(self, name: str) -> EventSource:
        if name not in self._sources:
            self._sources[name] = self._factories[name]()
        return self._sources[name]

    def active(self) -> List[EventSource]:
        return list(self._sources.values())


def resolve_layout(config: BarConfig) -> Dict[str, List[str]]:
    """Validate layout names and describe each zone.

    Every name except ``text:`` labels may be used once in total, either
    directly in a zone or as the child of an expandable group.

    Returns:
        Zone name to entries; groups are shown as ``name[child, ...]``

    Raises:
        ConfigError: On unknown or repeated block names
    """
    groups = {group.name: group for group in config.expandable}
    used: Set[str] = set()

    def resolve(name: str) -> str:
        if name.startswith(TEXT_PREFIX):
            return name
        if name in used:
            raise ConfigError(f"Block {name!r} is placed more than once")
        if name not in BLOCK_NAMES and name not in groups:
            raise ConfigError(f"Unknown block {name!r}")
        used.add(name)
        if name in groups:
            return f"{name}[{', '.join(resolve(child) for child in groups[name].children)}]"
        return name

    zones = {zone: [resolve(name) for name in getattr(config.layout, zone)] for zone, _ in ZONES}
    unused = sorted(set(groups) - used)
    if unused:
        logger.warning(f"Expandable groups not placed in the layout: {', '.join(unused)}")
    return zones


class LayoutBuilder:
    """Turns validated layout names into blocks."""

    def __init__(self, config: BarConfig, sources: SourceRegistry, scheduler: Scheduler,
                 pid: Optional[int] = None) -> None:
        self.config = config
        self.sources = sources
        self.scheduler = scheduler
        self.pid = pid if pid is not None else os.getpid()
        self.groups: Dict[str, ExpandableConfig] = {group.name: group for group in config.expandable}

    def build(self) -> List[Block]:
        resolve_layout(self.config)
        blocks: List[Block] = []
        for zone, marker in ZONES:
            names = getattr(self.config.layout, zone)
            if not names:
                continue
            blocks.append(StaticBlock(marker))
            blocks.extend(self.block(name) for name in names)
        return blocks

    def block(self, name: str) -> Block:
        if name.startswith(TEXT_PREFIX):
            return StaticBlock(markup.escape_text(name[len(TEXT_PREFIX):]))
        if name in self.groups:
            return self.expandable(self.groups[name])
        return getattr(self, f"_build_{name}")()

    def refresh_command(self, tag: str, kind: RefreshKind) -> str:
        return refresh_command([tag], kind, self.config.side_channel, self.pid)

    def expandable(self, group: ExpandableConfig) -> ExpandableBlock:
        children = [self.block(child) for child in group.children]
        options = dict(
            collapsed_label=group.collapsed_label,
            expanded_label=group.expanded_label,
            side=group.side,
            command=self.refresh_command(group.name, RefreshKind.ACTION),
        )
        if group.animated:
            return AnimatedExpandableBlock(children, group.name, self.scheduler,
                                           frame_ms=self.config.timings.frame, **options)
        return ExpandableBlock(children, group.name, scheduler=self.scheduler, **options)

    @property
    def _loading(self) -> Dict[str, str]:
        return {"initial_text": self.config.loading_text}

    def _build_workspaces(self) -> Block:
        return WorkspaceBlock(self.scheduler, self.sources.get("i3"),
                              separator=self.config.workspaces.separator, **self._loading)

    def _build_title(self) -> Block:
        return TitleBlock(self.scheduler, self.sources.get("i3"), max_length=self.config.title.max_length,
                          omission=self.config.title.omission, **self._loading)

    def _build_clock(self) -> Block:
        clock = self.config.clock
        return DatetimeBlock(self.scheduler, fmt=clock.format, weekdays=clock.weekdays,
                             skew_ms=self.config.timings.clock_skew)

    def _build_volume(self) -> Block:
        volume = self.config.volume
        events = ACPI_EVENTS if volume.events == "acpi" else PACTL_EVENTS
        return VolumeBlock(
            self.scheduler, self.sources.get(volume.events), events,
            control=volume.control,
            step_percent=volume.step_percent,
            fudge_ms=self.config.timings.fudge,
            notify_command=self.refresh_command(VolumeBlock.__name__, RefreshKind.UPDATE),
            **self._loading,
        )

    def _build_battery(self) -> Block:
        battery = self.config.battery
        return BatteryBlock(
            self.scheduler, self.sources.get("acpi"),
            interval_ms=self.config.timings.battery_interval,
            critical_percent=battery.critical_percent,
            critical_requires_discharging=battery.critical_requires_discharging,
            fudge_ms=self.config.timings.fudge,
            **self._loading,
        )

    def _build_ssid(self) -> Block:
        return SsidBlock(self.scheduler, self.sources.get("iwevent"),
                         fudge_ms=self.config.timings.net_fudge, **self._loading)

    def _build_music(self) -> Block:
        return MpdBlock(self.scheduler, self.sources.get("mpd"), crossfade=self.config.music.crossfade,
                        paused_color=self.config.colors.accent, fudge_ms=self.config.timings.mpd_fudge,
                        **self._loading)

    def _build_packages(self) -> Block:
        return PackageUpdateBlock(self.scheduler, period_ms=self.config.timings.package_interval,
                                  **self._loading)


def build_bar(config: BarConfig, sources: SourceRegistry, scheduler: Scheduler,
              pid: Optional[int] = None) -> List[Block]:
    """
    Build the ordered block list for a bar.

    Args:
        config: Validated configuration
        sources: Registry handing out (and remembering) the event sources used
        scheduler: Scheduler shared by all blocks
        pid: Process id targeted by click refresh commands (default: this process)

    Returns:
        Blocks in render order, with an alignment marker ahead of each
        non-empty zone

    Raises:
        ConfigError: On unknown or repeated block names
    """
    return LayoutBuilder(config, sources, scheduler, pid).build()
