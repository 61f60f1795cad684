"""Guaranteed removal of ephemeral project trees.

``TeardownManager.guard`` wraps the whole scaffold -> install -> bundle ->
store sequence.  Whatever happens inside the ``async with`` block the
project directory is removed exactly once; a failure of the removal itself
is logged and never replaces the exception that ended the block.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable

from ..scaffolder.generator import EphemeralProject

logger = logging.getLogger(__name__)


class TeardownManager:
    """Owns the lifecycle end of every ``EphemeralProject``."""

    def __init__(self, work_root: str | Path) -> None:
        self.work_root = Path(work_root)
        self.active: set[Path] = set()

    @asynccontextmanager
    async def guard(
        self,
        factory: Callable[[], Awaitable[EphemeralProject]],
    ) -> AsyncIterator[EphemeralProject]:
        """Create a project with *factory* and remove it on exit.

        Usage::

            async with teardown.guard(lambda: scaffolder.scaffold(request)) as project:
                ...

        A factory that raises has already cleaned up after itself, so
        nothing is registered and the error propagates unchanged.
        """
        project = await factory()
        self.active.add(project.root)
        try:
            yield project
        finally:
            self.active.discard(project.root)
            await self.remove(project.root)

    async def remove(self, path: str | Path) -> bool:
        """Delete *path* recursively.

        Returns:
            ``True`` if the tree is gone afterwards.  Errors are logged and
            swallowed.
        """
        target = Path(path)
        try:
            await asyncio.to_thread(shutil.rmtree, target)
        except FileNotFoundError:
            return True
        except OSError as exc:
            logger.error("Failed to remove project directory %s: %s", target, exc)
            return False
        logger.debug("Removed project directory %s", target.name)
        return True

    async def sweep_stale(self, max_age: float) -> list[Path]:
        """Remove leftover project directories older than *max_age* seconds.

        Directories belonging to a currently guarded project are skipped.
        Intended for service start-up after a crash.
        """
        if not self.work_root.is_dir():
            return []

        cutoff = time.time() - max_age
        stale = [
            entry
            for entry in self.work_root.iterdir()
            if entry.is_dir()
            and entry not in self.active
            and entry.stat().st_mtime < cutoff
        ]

        removed: list[Path] = []
        for entry in stale:
            if await self.remove(entry):
                removed.append(entry)
        if removed:
            logger.info("Swept %d stale project directories from %s", len(removed), self.work_root)
        return removed
