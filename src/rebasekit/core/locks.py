"""Per-repository mutual exclusion for rebase-mutating workflows."""

from __future__ import annotations

import asyncio
import threading
from contextlib import asynccontextmanager
from pathlib import Path

from rebasekit.core.errors import RepositoryBusy
from rebasekit.core.log import logger


class RepositoryLocks:
    """One asyncio.Lock per canonical repository path.

    The working tree and its rebase state are a single shared
    resource, so at most one workflow that starts, continues or
    aborts a rebase may run per repository. Acquisition does not
    wait: a held lock raises RepositoryBusy.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[Path, asyncio.Lock] = {}

    def _lock_for(self, repo_path: Path) -> asyncio.Lock:
        key = Path(repo_path).resolve()
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = asyncio.Lock()
                self._locks[key] = lock
        return lock

    def is_held(self, repo_path: Path) -> bool:
        return self._lock_for(repo_path).locked()

    @asynccontextmanager
    async def hold(self, repo_path: Path, operation: str = "rebase"):
        """Hold the repository for the duration of the block.

        Raises:
            RepositoryBusy: If another workflow holds the repository
        """
        lock = self._lock_for(repo_path)
        if lock.locked():
            raise RepositoryBusy(
                f"Repository {repo_path} is busy with another rebase "
                f"workflow; refusing to start {operation}"
            )
        async with lock:
            logger.debug(f"Acquired repository lock for {operation}",
                         repo=str(repo_path))
            try:
                yield
            finally:
                logger.debug(f"Released repository lock for {operation}",
                             repo=str(repo_path))
