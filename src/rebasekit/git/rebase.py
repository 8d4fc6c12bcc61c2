"""Drive git rebase and inspect its state."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from rebasekit.core.errors import (
    FetchFailed,
    ProcessError,
    RebaseKitError,
    StateIntegrityError,
)
from rebasekit.core.log import logger
from rebasekit.core.runner import ProcessRunner
from rebasekit.git.markers import has_markers
from rebasekit.git.scanner import repo_file

# Either directory under the git dir means a rebase is in progress
REBASE_STATE_DIRS = ("rebase-merge", "rebase-apply")


class RebaseStateManager:
    """Starts, continues, aborts and inspects a rebase.

    Also owns the only path by which resolved content reaches the
    working tree (apply_resolution), so the marker check sits right
    in front of every write and every continue.
    """

    def __init__(
        self, runner: ProcessRunner, remote: str = "origin", git: str = "git"
    ):
        self.runner = runner
        self.remote = remote
        self.git = git

    async def _git(self, repo_path: Path, *args: str) -> str:
        return await self.runner.run(self.git, list(args), Path(repo_path))

    async def current_branch(self, repo_path: Path) -> str:
        return await self._git(repo_path, "branch", "--show-current")

    async def fetch(self, repo_path: Path, branch: str) -> None:
        """Fetch branch from the remote.

        Raises:
            FetchFailed: If git fetch fails
        """
        try:
            await self._git(repo_path, "fetch", self.remote, branch)
        except ProcessError as e:
            raise FetchFailed(
                f"Failed to fetch {branch}: {e.stderr.strip()}"
            ) from e

    async def start_rebase(
        self, repo_path: Path, branch: str
    ) -> ProcessError | None:
        """Rebase the current branch onto ``<remote>/<branch>``.

        Returns None when the rebase completed cleanly. Any failure is
        returned rather than raised: git signals conflicts and
        unrelated failures (a dirty tree, say) the same way, and the
        caller treats both as "has conflicts".
        """
        try:
            await self._git(repo_path, "rebase", f"{self.remote}/{branch}")
        except ProcessError as e:
            logger.info(
                f"Rebase onto {self.remote}/{branch} stopped",
                exit_code=e.exit_code,
                stderr=e.stderr.strip(),
            )
            return e
        logger.info(f"Rebase onto {self.remote}/{branch} completed cleanly")
        return None

    async def continue_rebase(
        self, repo_path: Path, staged: Iterable[str] = ()
    ) -> None:
        """Run ``rebase --continue`` after re-checking staged files.

        Raises:
            StateIntegrityError: If a staged file still has markers
            ProcessError: If git refuses to continue
        """
        for path in staged:
            content = repo_file(repo_path, path).read_text(encoding="utf-8")
            if has_markers(content):
                raise StateIntegrityError(
                    f"Refusing to continue rebase: {path} still has "
                    f"conflict markers"
                )
        await self._git(repo_path, "rebase", "--continue")

    async def abort_rebase(self, repo_path: Path) -> None:
        """Abort the rebase in progress; a no-op when there is none.

        Raises:
            ProcessError: If git fails while a rebase is in progress
        """
        try:
            await self._git(repo_path, "rebase", "--abort")
        except ProcessError:
            if await self.is_rebase_in_progress(repo_path):
                raise
            logger.info("No rebase in progress, nothing to abort",
                        repo=str(repo_path))
            return
        logger.info("Rebase aborted", repo=str(repo_path))

    async def is_rebase_in_progress(self, repo_path: Path) -> bool:
        """Whether git holds rebase state for this repository.

        Inspection errors count as "not in progress".
        """
        try:
            git_dir = await self._git(repo_path, "rev-parse", "--git-dir")
            state_root = Path(repo_path) / git_dir
            return any(
                (state_root / name).exists() for name in REBASE_STATE_DIRS
            )
        except (RebaseKitError, OSError) as e:
            logger.warn(
                f"Could not inspect rebase state, assuming none: {e}",
                repo=str(repo_path),
            )
            return False

    async def stage(self, repo_path: Path, path: str) -> None:
        await self._git(repo_path, "add", path)

    async def apply_resolution(
        self, repo_path: Path, path: str, content: str
    ) -> None:
        """Write resolved content to disk and stage it.

        Raises:
            StateIntegrityError: If content still has conflict markers
            OSError: If the write fails
            ProcessError: If staging fails
        """
        if has_markers(content):
            raise StateIntegrityError(
                f"Refusing to write {path}: content has conflict markers"
            )
        repo_file(repo_path, path).write_text(content, encoding="utf-8")
        await self.stage(repo_path, path)
        logger.info(f"Applied resolution and staged {path}", file=path)
