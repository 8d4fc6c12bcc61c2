"""Preview command - propose resolutions without touching the tree."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import CliPositionalArg

from rebasekit.command.base import RepoCommand, exit_code
from rebasekit.core.log import logger
from rebasekit.service import guarded


class PreviewCommand(RepoCommand):
    """Rebase onto TARGET and propose a resolution for every conflict.

    The rebase is left stopped with all conflicts in place. Edit the
    status (approved, rejected, modified) of each preview in the
    output, then hand the file to the apply command.
    """

    target: CliPositionalArg[str] = Field(
        description="Branch on the remote to rebase onto"
    )
    output: Path | None = Field(
        default=None,
        description="Write the preview JSON here instead of stdout",
    )

    async def run_workflow(self, state) -> int:
        service = self.service(state)
        result = await guarded(service.generate_resolution_previews(
            self.repo_path(), self.target
        ))
        self.emit(result, self.output)
        if result.success:
            logger.info(
                f"{result.data.total_conflicts} conflict(s), "
                f"{result.data.resolved_by_ai} resolved by AI"
            )
        return exit_code(result)
