"""ResolveBatch node - resolve every file of a batch, then apply."""

from __future__ import annotations

from dataclasses import dataclass

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
class ResolveBatch(
    BaseNode[AutoRebaseState, AutoRebaseDeps, RebaseWithResolutionResult]
):
    """Resolve a whole batch; apply only if every file resolved.

    Nothing from the batch is written when any file fails: the rebase
    is aborted instead.
    """

    files: list[str]

    async def run(
        self, ctx: GraphRunContext[AutoRebaseState, AutoRebaseDeps]
    ) -> ContinueRebase | End[RebaseWithResolutionResult]:
        state = ctx.state
        deps = ctx.deps

        batch = []
        for path in self.files:
            resolution = await deps.resolver.resolve(
                state.repo_path,
                path,
                state.current_branch,
                state.target_branch,
            )
            state.resolutions.append(resolution)
            batch.append(resolution)

        unresolved = [r for r in batch if not r.resolved]
        if unresolved:
            state.conflicts_failed += len(unresolved)
            return await self._abort(ctx, [r.file for r in unresolved])

        state.transition(RebasePhase.APPLYING)
        failed = []
        for resolution in batch:
            try:
                await deps.rebase.apply_resolution(
                    state.repo_path, resolution.file, resolution.content
                )
            except (
                OSError,
                ProcessError,
                PathOutsideRepository,
                StateIntegrityError,
            ) as e:
                logger.error(f"Failed to apply {resolution.file}: {e}",
                             file=resolution.file)
                failed.append(resolution.file)
                state.conflicts_failed += 1
            else:
                state.conflicts_resolved += 1

        if failed:
            return await self._abort(ctx, failed)

        from rebasekit.workflow.nodes.continue_rebase import ContinueRebase
        return ContinueRebase(
            after_apply=True, staged=[r.file for r in batch]
        )

    async def _abort(
        self,
        ctx: GraphRunContext[AutoRebaseState, AutoRebaseDeps],
        files: list[str],
    ) -> End[RebaseWithResolutionResult]:
        state = ctx.state
        logger.warn(
            "Could not resolve all conflicts, aborting rebase",
            files=files,
        )
        await ctx.deps.abort_quietly(state.repo_path)
        state.transition(RebasePhase.ABORTED)
        return End(state.result(
            False,
            f"Failed to resolve {state.conflicts_failed} conflict(s). "
            f"Rebase aborted.",
        ))
