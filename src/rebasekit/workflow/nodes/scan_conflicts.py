"""ScanConflicts node - look for the next batch of conflicts."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, End, GraphRunContext

from rebasekit.core.errors import ProcessError
from rebasekit.core.log import logger
from rebasekit.models import RebaseWithResolutionResult
from rebasekit.workflow.state import (
    AutoRebaseDeps,
    AutoRebaseState,
    RebasePhase,
)


@dataclass
class ScanConflicts(
    BaseNode[AutoRebaseState, AutoRebaseDeps, RebaseWithResolutionResult]
):
    """List conflicted files and route on what is found."""

    async def run(
        self, ctx: GraphRunContext[AutoRebaseState, AutoRebaseDeps]
    ) -> (
        ResolveBatch | ContinueRebase | VerifyCompletion
        | End[RebaseWithResolutionResult]
    ):
        """
        Returns:
            VerifyCompletion: If the retry budget is spent
            ContinueRebase: If nothing is conflicted any more
            ResolveBatch: With the conflicted files
            End: If conflicted files cannot be listed
        """
        state = ctx.state

        if state.retries >= state.max_retries:
            logger.warn(
                f"Retry budget spent after {state.retries} batch(es)",
                repo=str(state.repo_path),
            )
            from rebasekit.workflow.nodes.verify_completion import (
                VerifyCompletion,
            )
            return VerifyCompletion()

        try:
            files = await ctx.deps.scanner.list_conflicted(state.repo_path)
        except ProcessError as e:
            logger.error(f"Failed to list conflicted files: {e}",
                         repo=str(state.repo_path))
            await ctx.deps.abort_quietly(state.repo_path)
            state.transition(RebasePhase.ABORTED)
            return End(state.result(
                False, "Failed to list conflicted files. Rebase aborted."
            ))

        if not files:
            from rebasekit.workflow.nodes.continue_rebase import (
                ContinueRebase,
            )
            return ContinueRebase(after_apply=False)

        logger.info(f"Found {len(files)} conflicted file(s)",
                    files=files)
        state.transition(RebasePhase.CONFLICTS_PENDING)
        from rebasekit.workflow.nodes.resolve_batch import ResolveBatch
        return ResolveBatch(files=files)
