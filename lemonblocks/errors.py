"""Error types and process exit codes for lemonblocks.

Per-block failures are isolated at the block boundary: a block's compute()
raises SourceUnavailable and the block renders an urgent placeholder.
Engine-level failures are not recoverable and end the process with
ExitCode.FAULT after teardown.
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """Process exit codes, one per exit path."""
    OK = 0
    FAULT = 70         # EX_SOFTWARE: uncaught fault in a callback
    CONFIG = 78        # EX_CONFIG: configuration could not be loaded
    INTERRUPT = 130    # SIGINT
    TERMINATE = 143    # SIGTERM


class LemonblocksError(Exception):
    """Base class for all lemonblocks errors."""


class SourceUnavailable(LemonblocksError):
    """An external source failed or produced output that could not be parsed.

    Raised from a block's compute(); never propagates past the block.
    """

    def __init__(self, source: str, reason: str = ""):
        self.source = source
        self.reason = reason
        message = f"{source} unavailable"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class SideChannelError(LemonblocksError):
    """The refresh side channel could not be read."""


class MalformedEvent(LemonblocksError):
    """A single event line from an external source could not be parsed."""


class ConfigError(LemonblocksError):
    """Configuration file is missing required structure or fails validation."""
