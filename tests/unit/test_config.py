"""Unit tests for configuration models and the TOML loader."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from lemonblocks.config import BarConfig, ClockConfig, ColorConfig, ExpandableConfig, load_config
from lemonblocks.errors import ConfigError
from lemonblocks.expandable import Side


class TestModels:
    """Test defaults and field validation."""

    def test_defaults(self):
        """Test the stock layout and timings."""
        config = BarConfig()
        assert config.layout.left == ["workspaces", "title"]
        assert config.layout.right == ["volume", "battery", "ssid", "clock"]
        assert config.timings.fudge == 20
        assert config.timings.net_fudge == 500
        assert config.timings.frame == 30
        assert config.colors.urgent == "#ffff0000"
        assert config.expandable == []

    def test_runtime_paths(self, monkeypatch, tmp_path):
        """Test the side channel and pidfile live under XDG_RUNTIME_DIR."""
        monkeypatch.setenv("XDG_RUNTIME_DIR", str(tmp_path))
        config = BarConfig()
        assert config.side_channel == tmp_path / "lemonblocks" / "targets"
        assert config.pidfile == tmp_path / "lemonblocks" / "bar.pid"

    def test_invalid_color(self):
        """Test colors must be #RRGGBB or #AARRGGBB."""
        with pytest.raises(ValidationError):
            ColorConfig(urgent="red")
        assert ColorConfig(urgent="#f00000").urgent == "#f00000"

    def test_clock_format_checked(self):
        """Test unknown placeholders are rejected up front."""
        with pytest.raises(ValidationError):
            ClockConfig(format="{hours}:{minute:02d}")

    def test_weekdays_needs_seven(self):
        """Test a short weekday list is rejected."""
        with pytest.raises(ValidationError):
            ClockConfig(weekdays=["Mon", "Tue"])

    def test_expandable_side(self):
        """Test side is parsed into the enum."""
        group = ExpandableConfig(name="Tray", children=["volume"], side="right")
        assert group.side is Side.RIGHT

    def test_expandable_name_cannot_shadow_block(self):
        """Test a group may not take a block name."""
        with pytest.raises(ValidationError):
            ExpandableConfig(name="clock", children=["volume"])

    def test_duplicate_groups(self):
        """Test two groups with one name are rejected."""
        with pytest.raises(ValidationError, match="Duplicate expandable"):
            BarConfig(expandable=[
                {"name": "Tray", "children": ["volume"]},
                {"name": "Tray", "children": ["battery"]},
            ])


class TestLoadConfig:
    """Test loading from TOML files."""

    def test_missing_default_uses_defaults(self, monkeypatch, tmp_path):
        """Test no config file at the default location means defaults."""
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert load_config() == BarConfig()

    def test_missing_explicit_path(self, tmp_path):
        """Test an explicitly named file must exist."""
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nope.toml")

    def test_loads_toml(self, tmp_path):
        """Test nested sections override defaults."""
        path = tmp_path / "config.toml"
        path.write_text(
            'loading_text = "..."\n'
            "\n"
            "[timings]\n"
            "fudge = 40\n"
            "\n"
            "[layout]\n"
            'left = ["workspaces"]\n'
            'right = ["Tray", "clock"]\n'
            "\n"
            "[[expandable]]\n"
            'name = "Tray"\n'
            'children = ["volume", "battery"]\n'
            "animated = false\n"
        )

        config = load_config(path)

        assert config.loading_text == "..."
        assert config.timings.fudge == 40
        assert config.timings.net_fudge == 500
        assert config.layout.right == ["Tray", "clock"]
        assert config.expandable[0].children == ["volume", "battery"]
        assert not config.expandable[0].animated

    def test_invalid_toml(self, tmp_path):
        """Test a syntax error is a ConfigError."""
        path = tmp_path / "config.toml"
        path.write_text("[timings\nfudge = 1\n")
        with pytest.raises(ConfigError, match="Cannot load"):
            load_config(path)

    def test_invalid_values(self, tmp_path):
        """Test a validation failure is a ConfigError naming the file."""
        path = tmp_path / "config.toml"
        path.write_text('[colors]\nurgent = "red"\n')
        with pytest.raises(ConfigError) as exc_info:
            load_config(Path(path))
        assert str(path) in str(exc_info.value)

    def test_negative_timing_rejected(self, tmp_path):
        """Test delays must be positive."""
        path = tmp_path / "config.toml"
        path.write_text("[timings]\nframe = 0\n")
        with pytest.raises(ConfigError):
            load_config(path)
