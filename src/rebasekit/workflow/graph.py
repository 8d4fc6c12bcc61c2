"""Graph workflow definition for automatic rebase resolution."""

from __future__ import annotations

from pathlib import Path

from pydantic_graph import Graph, GraphBuilder

from rebasekit.core.log import logger
from rebasekit.models import RebaseWithResolutionResult
from rebasekit.workflow.state import AutoRebaseDeps, AutoRebaseState


def create_workflow() -> Graph:
    """Create the automatic rebase graph.

    StartRebase → ScanConflicts → ResolveBatch → ContinueRebase →
        [ScanConflicts or VerifyCompletion]

    Returns:
        Graph taking a StartRebase node as input and producing a
        RebaseWithResolutionResult
    """
    logger.debug("Building automatic rebase workflow graph")

    # Imported here so node return hints resolve against this namespace
    from rebasekit.workflow.nodes.continue_rebase import ContinueRebase
    from rebasekit.workflow.nodes.resolve_batch import ResolveBatch
    from rebasekit.workflow.nodes.scan_conflicts import ScanConflicts
    from rebasekit.workflow.nodes.start_rebase import StartRebase
    from rebasekit.workflow.nodes.verify_completion import VerifyCompletion

    g = GraphBuilder(
        name="auto_rebase",
        state_type=AutoRebaseState,
        deps_type=AutoRebaseDeps,
        input_type=StartRebase,
        output_type=RebaseWithResolutionResult,
    )
    g.add(
        g.edge_from(g.start_node).to(StartRebase),
        g.node(StartRebase),
        g.node(ScanConflicts),
        g.node(ResolveBatch),
        g.node(ContinueRebase),
        g.node(VerifyCompletion),
    )
    return g.build()


async def rebase_with_resolution(
    deps: AutoRebaseDeps,
    repo_path: Path,
    target_branch: str,
    max_retries: int = 3,
) -> RebaseWithResolutionResult:
    """Rebase onto target_branch resolving every conflict without review.

    Lower safety than the preview/approve flow: resolutions are
    written unseen. A batch in which any file fails is not applied
    and the rebase is aborted.
    """
    from rebasekit.workflow.nodes.start_rebase import StartRebase

    state = AutoRebaseState(
        repo_path=Path(repo_path),
        target_branch=target_branch,
        max_retries=max_retries,
    )
    result = await create_workflow().run(
        state=state, deps=deps, inputs=StartRebase()
    )
    logger.info(
        f"Automatic rebase finished in phase {state.phase.value}",
        success=result.success,
        retries=state.retries,
    )
    return result
