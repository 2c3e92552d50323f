"""Teardown hooks run once at process exit, whatever the exit path."""

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, List, Tuple, Union

logger = logging.getLogger(__name__)

Hook = Callable[[], Union[None, Awaitable[None]]]

HOOK_TIMEOUT = 2.0


class Teardown:
    """Ordered registry of cleanup hooks.

    Hooks run in registration order. A failing or hanging hook is logged
    and skipped so the remaining hooks still run.
    """

    def __init__(self) -> None:
        self._hooks: List[Tuple[str, Hook]] = []
        self.done = False

    def register(self, name: str, hook: Hook) -> None:
        self._hooks.append((name, hook))

    def __len__(self) -> int:
        return len(self._hooks)

    async def run(self) -> None:
        if self.done:
            return
        self.done = True
        logger.info(f"Running {len(self._hooks)} teardown hook(s)")
        for name, hook in self._hooks:
            try:
                result = hook()
                if inspect.isawaitable(result):
                    await asyncio.wait_for(result, timeout=HOOK_TIMEOUT)
                logger.debug(f"Teardown hook {name} done")
            except asyncio.TimeoutError:
                logger.warning(f"Teardown hook {name} timed out after {HOOK_TIMEOUT}s (continuing)")
            except Exception as e:
                logger.error(f"Teardown hook {name} failed: {e}")
