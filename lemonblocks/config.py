"""
Pydantic configuration models and TOML loader for lemonblocks.

The configuration file is optional; every setting has a default matching
the stock bar (Japanese date format, red urgent background).
"""

import logging
import os
import re
import tomllib
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .errors import ConfigError
from .expandable import Side

logger = logging.getLogger(__name__)

COLOR_PATTERN = re.compile(r"^#([0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")

# Names usable in the layout besides expandable groups and text: labels
BLOCK_NAMES = ("workspaces", "title", "clock", "volume", "battery", "ssid", "music", "packages")
TEXT_PREFIX = "text:"


def runtime_dir() -> Path:
    return Path(os.environ.get("XDG_RUNTIME_DIR", f"/run/user/{os.getuid()}")) / "lemonblocks"


def default_config_path() -> Path:
    config_home = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(config_home) / "lemonblocks" / "config.toml"


class ColorConfig(BaseModel):
    """Bar colors in lemonbar ``#AARRGGBB`` (or ``#RRGGBB``) notation."""

    background: str = Field("#ff000000", description="Bar background")
    foreground: str = Field("#ffffffff", description="Default text color")
    underline: str = Field("#ffffffff", description="Underline color")
    urgent: str = Field("#ffff0000", description="Background of urgent text")
    accent: str = Field("#ff888888", description="Secondary text color")

    @field_validator("background", "foreground", "underline", "urgent", "accent")
    @classmethod
    def validate_color(cls, v: str) -> str:
        if not COLOR_PATTERN.match(v):
            raise ValueError(f"Invalid color {v!r}: expected #RRGGBB or #AARRGGBB")
        return v


class TimingConfig(BaseModel):
    """Delays and periods in milliseconds."""

    fudge: float = Field(20, gt=0, description="Default debounce delay")
    net_fudge: float = Field(500, gt=0, description="Debounce delay for wireless events")
    mpd_fudge: float = Field(50, gt=0, description="Debounce delay for MPD events")
    battery_interval: float = Field(60 * 1000, gt=0, description="Battery poll period")
    package_interval: float = Field(60 * 1000, gt=0, description="Package update check period")
    frame: float = Field(30, gt=0, description="Animation frame interval")
    clock_skew: float = Field(50, ge=0, description="Delay past each minute boundary")


class ClockConfig(BaseModel):
    format: str = Field("{month}月{day}日 ({weekday}) {hour}:{minute:02d}",
                        description="str.format template")
    weekdays: List[str] = Field(["月", "火", "水", "木", "金", "土", "日"],
                                min_length=7, max_length=7, description="Monday first")

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        try:
            v.format(year=2000, month=1, day=1, hour=0, minute=0, weekday="")
        except (KeyError, IndexError, ValueError) as e:
            raise ValueError(f"Invalid clock format {v!r}: {e}")
        return v


class TitleConfig(BaseModel):
    max_length: int = Field(80, ge=1)
    omission: str = "…"


class BatteryConfig(BaseModel):
    critical_percent: int = Field(15, ge=0, le=100)
    critical_requires_discharging: bool = True


class VolumeConfig(BaseModel):
    control: str = "Master"
    step_percent: int = Field(5, ge=1, le=100)
    events: str = Field("acpi", pattern="^(acpi|pactl)$", description="Event source driving refresh")


class MusicConfig(BaseModel):
    crossfade: int = Field(5, ge=1, description="Seconds set when crossfade is toggled on")


class WorkspacesConfig(BaseModel):
    separator: str = " "


class ExpandableConfig(BaseModel):
    """A group of blocks hidden behind a toggle."""

    name: str = Field(..., description="Type tag of the group")
    children: List[str] = Field(..., min_length=1)
    collapsed_label: str = "<"
    expanded_label: str = ">"
    side: Side = Side.LEFT
    animated: bool = True

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if v in BLOCK_NAMES or v.startswith(TEXT_PREFIX) or not v.strip() or any(c.isspace() for c in v):
            raise ValueError(f"Invalid expandable name {v!r}")
        return v


class LayoutConfig(BaseModel):
    left: List[str] = ["workspaces", "title"]
    center: List[str] = []
    right: List[str] = ["volume", "battery", "ssid", "clock"]


class BarConfig(BaseModel):
    """Complete bar configuration."""

    colors: ColorConfig = Field(default_factory=ColorConfig)
    timings: TimingConfig = Field(default_factory=TimingConfig)
    loading_text: str = "…"
    clock: ClockConfig = Field(default_factory=ClockConfig)
    title: TitleConfig = Field(default_factory=TitleConfig)
    battery: BatteryConfig = Field(default_factory=BatteryConfig)
    volume: VolumeConfig = Field(default_factory=VolumeConfig)
    music: MusicConfig = Field(default_factory=MusicConfig)
    workspaces: WorkspacesConfig = Field(default_factory=WorkspacesConfig)
    expandable: List[ExpandableConfig] = []
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    side_channel: Path = Field(default_factory=lambda: runtime_dir() / "targets")
    pidfile: Path = Field(default_factory=lambda: runtime_dir() / "bar.pid")

    @model_validator(mode="after")
    def validate_unique_groups(self):
        names = [group.name for group in self.expandable]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate expandable names: {', '.join(duplicates)}")
        return self


def load_config(path: Optional[Path] = None) -> BarConfig:
    """
    Load and validate the bar configuration.

    Args:
        path: Config file; defaults to $XDG_CONFIG_HOME/lemonblocks/config.toml

    Returns:
        Validated BarConfig (all defaults if the default file does not exist)

    Raises:
        ConfigError: If the file cannot be read, is not valid TOML, or
            fails validation
    """
    explicit = path is not None
    path = Path(path) if explicit else default_config_path()

    if not path.exists():
        if explicit:
            raise ConfigError(f"Config file not found: {path}")
        logger.info(f"No config at {path}, using defaults")
        return BarConfig()

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"Cannot load {path}: {e}") from e

    try:
        config = BarConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}:\n{e}") from e

    logger.info(f"Loaded configuration from {path}")
    return config
