"""ContinueRebase node - advance the rebase past the current stop."""

from __future__ import annotations

from dataclasses import dataclass, field

from pydantic_graph import BaseNode, End, GraphRunContext

from rebasekit.core.errors import (
    PathOutsideRepository,
    ProcessError,
    StateIntegrityError,
)
from rebasekit.core.log import logger
from rebasekit.models import RebaseWithResolutionResult
from rebasekit.workflow.state import (
    AutoRebaseDeps,
    AutoRebaseState,
    RebasePhase,
)


@dataclass
class ContinueRebase(
    BaseNode[AutoRebaseState, AutoRebaseDeps, RebaseWithResolutionResult]
):
    """Run ``rebase --continue`` and decide whether work remains.

    Files of the batch just applied are re-checked for conflict
    markers first; any marker left aborts the rebase. A clean continue
    is not taken to mean the rebase finished: git's own rebase state
    is inspected to tell the two apart.
    """

    after_apply: bool = False
    staged: list[str] = field(default_factory=list)

    async def run(
        self, ctx: GraphRunContext[AutoRebaseState, AutoRebaseDeps]
    ) -> ScanConflicts | VerifyCompletion | End[RebaseWithResolutionResult]:
        """
        Returns:
            VerifyCompletion: If the rebase finished, or stalled with
                nothing left to resolve
            ScanConflicts: If the rebase stopped on another commit
            End: If a staged file no longer passes the marker check
        """
        state = ctx.state
        rebase = ctx.deps.rebase

        continued = True
        try:
            await rebase.continue_rebase(state.repo_path, staged=self.staged)
        except ProcessError as e:
            # Usually the next commit stopped on new conflicts
            continued = False
            logger.debug(f"rebase --continue stopped: {e}",
                         exit_code=e.exit_code)
        except (StateIntegrityError, PathOutsideRepository, OSError) as e:
            logger.error(f"Refusing to continue rebase: {e}",
                         repo=str(state.repo_path))
            await ctx.deps.abort_quietly(state.repo_path)
            state.transition(RebasePhase.ABORTED)
            return End(state.result(
                False, "Staged resolution failed verification. "
                "Rebase aborted."
            ))

        if self.after_apply:
            state.retries += 1
        state.transition(RebasePhase.REBASING)

        from rebasekit.workflow.nodes.scan_conflicts import ScanConflicts
        from rebasekit.workflow.nodes.verify_completion import (
            VerifyCompletion,
        )

        if not await rebase.is_rebase_in_progress(state.repo_path):
            return VerifyCompletion()
        if not continued and not self.after_apply:
            # Nothing conflicted, yet git will not go on
            logger.warn("Rebase cannot continue without conflicts to "
                        "resolve", repo=str(state.repo_path))
            return VerifyCompletion()
        return ScanConflicts()
