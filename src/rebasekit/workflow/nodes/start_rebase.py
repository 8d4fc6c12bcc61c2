"""StartRebase node - fetch the target and begin the rebase."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, End, GraphRunContext

from rebasekit.core.errors import FetchFailed
from rebasekit.core.log import logger
from rebasekit.models import RebaseWithResolutionResult
from rebasekit.workflow.state import (
    AutoRebaseDeps,
    AutoRebaseState,
    RebasePhase,
)


@dataclass
class StartRebase(
    BaseNode[AutoRebaseState, AutoRebaseDeps, RebaseWithResolutionResult]
):
    """Fetch the target branch and start rebasing onto it."""

    async def run(
        self, ctx: GraphRunContext[AutoRebaseState, AutoRebaseDeps]
    ) -> ScanConflicts | End[RebaseWithResolutionResult]:
        """
        Returns:
            ScanConflicts: If the rebase stopped
            End: If the fetch failed or the rebase finished cleanly
        """
        state = ctx.state
        rebase = ctx.deps.rebase

        state.current_branch = await rebase.current_branch(state.repo_path)
        logger.info(
            f"Starting rebase of {state.current_branch} onto "
            f"{state.target_branch}",
            repo=str(state.repo_path),
        )

        try:
            await rebase.fetch(state.repo_path, state.target_branch)
        except FetchFailed as e:
            logger.error(str(e), repo=str(state.repo_path))
            state.transition(RebasePhase.ABORTED)
            return End(state.result(
                False, f"Failed to fetch {state.target_branch}"
            ))

        state.transition(RebasePhase.REBASING)
        stopped = await rebase.start_rebase(
            state.repo_path, state.target_branch
        )
        if stopped is None:
            state.transition(RebasePhase.COMPLETE)
            return End(state.result(
                True, "Rebase completed without conflicts"
            ))

        logger.info("Rebase has conflicts, attempting AI resolution")
        state.transition(RebasePhase.CONFLICTS_PENDING)
        from rebasekit.workflow.nodes.scan_conflicts import ScanConflicts
        return ScanConflicts()
