"""Abort command - abandon the rebase in progress."""

from __future__ import annotations

from rebasekit.command.base import RepoCommand, exit_code
from rebasekit.service import guarded


class AbortCommand(RepoCommand):
    """Abort the rebase in progress and restore the original branch."""

    async def run_workflow(self, state) -> int:
        service = self.service(state)
        result = await guarded(service.abort_rebase(self.repo_path()))
        self.emit(result)
        return exit_code(result)
