#!/usr/bin/env python3
"""
lemonblocks CLI

Runs the bar, and lets an operator address refreshes or actions to the
blocks of a running bar by type tag.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from .config import BarConfig, load_config
from .daemon import read_pidfile, run_bar, setup_logging
from .dispatch import RefreshKind, SideChannel, SignalTransport
from .errors import ConfigError, ExitCode
from .layout import resolve_layout


class LemonblocksCLI:
    """Command handlers for the lemonblocks entry point."""

    def load(self, args) -> BarConfig:
        return load_config(Path(args.config) if args.config else None)

    def cmd_run(self, args) -> int:
        """Run the bar, writing lines to stdout."""
        config = self.load(args)
        resolve_layout(config)
        setup_logging()
        return run_bar(config)

    def _signal(self, args, kind: RefreshKind) -> int:
        config = self.load(args)
        pid = read_pidfile(config.pidfile)
        if pid is None:
            print(f"❌ No running bar (pidfile {config.pidfile} missing or stale)", file=sys.stderr)
            return 1
        SignalTransport.send(SideChannel(config.side_channel), pid, kind, args.tags)
        print(f"✅ Sent {kind.value} to {', '.join(args.tags)} (pid {pid})")
        return 0

    def cmd_refresh(self, args) -> int:
        """Ask a running bar to update the named blocks."""
        return self._signal(args, RefreshKind.UPDATE)

    def cmd_action(self, args) -> int:
        """Ask a running bar to run the named blocks' action."""
        return self._signal(args, RefreshKind.ACTION)

    def cmd_check_config(self, args) -> int:
        """Validate configuration and show the resolved layout."""
        config = self.load(args)
        zones = resolve_layout(config)

        print("✅ Configuration valid")
        for zone, entries in zones.items():
            print(f"  {zone:<6} {' '.join(entries) if entries else '(empty)'}")
        colors = config.colors
        print(f"  lemonbar flags: -B '{colors.background}' -F '{colors.foreground}' -U '{colors.underline}'")
        print(f"  side channel: {config.side_channel}")
        print(f"  pidfile: {config.pidfile}")
        return 0

    def build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            description="Status bar block engine emitting lemonbar markup",
            prog="lemonblocks"
        )
        parser.add_argument("--config", help="Config file (default: $XDG_CONFIG_HOME/lemonblocks/config.toml)")

        subparsers = parser.add_subparsers(dest="command", help="Command to execute")

        subparsers.add_parser("run", help="Run the bar")

        refresh_parser = subparsers.add_parser("refresh", help="Update blocks of a running bar")
        refresh_parser.add_argument("tags", nargs="+", metavar="TAG", help="Block type tag (e.g. VolumeBlock)")

        action_parser = subparsers.add_parser("action", help="Run the action of blocks of a running bar")
        action_parser.add_argument("tags", nargs="+", metavar="TAG", help="Block type tag or group name")

        subparsers.add_parser("check-config", help="Validate configuration and print the layout")

        return parser

    def run(self, argv: Optional[List[str]] = None) -> int:
        """Run CLI."""
        parser = self.build_parser()
        args = parser.parse_args(argv)

        if not args.command:
            parser.print_help()
            return 1

        cmd_map = {
            "run": self.cmd_run,
            "refresh": self.cmd_refresh,
            "action": self.cmd_action,
            "check-config": self.cmd_check_config,
        }

        try:
            return cmd_map[args.command](args)
        except ConfigError as e:
            print(f"❌ {e}", file=sys.stderr)
            return int(ExitCode.CONFIG)
        except KeyboardInterrupt:
            print("\nInterrupted", file=sys.stderr)
            return int(ExitCode.INTERRUPT)
        except OSError as e:
            print(f"❌ Error: {e}", file=sys.stderr)
            return 1


def main():
    """Main entry point."""
    cli = LemonblocksCLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
