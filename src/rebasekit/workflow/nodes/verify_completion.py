"""VerifyCompletion node - confirm the rebase finished."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, End, GraphRunContext

from rebasekit.core.log import logger
from rebasekit.models import RebaseWithResolutionResult
from rebasekit.workflow.state import (
    AutoRebaseDeps,
    AutoRebaseState,
    RebasePhase,
)


@dataclass
class VerifyCompletion(
    BaseNode[AutoRebaseState, AutoRebaseDeps, RebaseWithResolutionResult]
):
    """Abort a rebase still in progress, otherwise report success."""

    async def run(
        self, ctx: GraphRunContext[AutoRebaseState, AutoRebaseDeps]
    ) -> End[RebaseWithResolutionResult]:
        state = ctx.state

        if await ctx.deps.rebase.is_rebase_in_progress(state.repo_path):
            logger.warn("Rebase still in progress, aborting",
                        repo=str(state.repo_path))
            await ctx.deps.abort_quietly(state.repo_path)
            state.transition(RebasePhase.ABORTED)
            return End(state.result(
                False, "Rebase could not complete after max retries"
            ))

        state.transition(RebasePhase.COMPLETE)
        logger.info(
            f"Rebase completed. Resolved {state.conflicts_resolved} "
            f"conflict(s).",
            repo=str(state.repo_path),
        )
        return End(state.result(
            True,
            f"Rebase completed. Resolved {state.conflicts_resolved} "
            f"conflict(s).",
        ))
