"""Auto command - resolve and apply without review."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import CliPositionalArg

from rebasekit.command.base import RepoCommand, exit_code
from rebasekit.service import guarded


class AutoCommand(RepoCommand):
    """Rebase onto TARGET resolving every conflict automatically.

    No human sees the resolutions before they are committed. Any
    conflict the model cannot resolve aborts the whole rebase.
    """

    target: CliPositionalArg[str] = Field(
        description="Branch on the remote to rebase onto"
    )
    max_retries: int | None = Field(
        default=None,
        alias="max-retries",
        description=(
            "Conflict batches to work through before giving up "
            "(default: config.resolver.max_retries)"
        ),
    )

    async def run_workflow(self, state) -> int:
        service = self.service(state)
        result = await guarded(service.rebase_with_resolution(
            self.repo_path(), self.target, self.max_retries
        ))
        self.emit(result)
        return exit_code(result)
