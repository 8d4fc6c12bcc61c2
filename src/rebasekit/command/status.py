"""Status command - report rebase state and conflicted files."""

from __future__ import annotations

from rebasekit.command.base import RepoCommand, exit_code
from rebasekit.models import OperationResult
from rebasekit.service import guarded


class StatusCommand(RepoCommand):
    """Report whether a rebase is in progress and what is conflicted."""

    async def run_workflow(self, state) -> int:
        service = self.service(state)
        repo = self.repo_path()

        in_progress = await service.is_rebase_in_progress(repo)
        files = await guarded(service.get_conflicted_files(repo))
        if not files.success:
            self.emit(files)
            return exit_code(files)

        self.emit(OperationResult(
            success=True,
            data={"rebaseInProgress": in_progress, "conflicted": files.data},
        ))
        return 0
