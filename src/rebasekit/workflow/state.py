"""State and dependencies of the automatic rebase workflow."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from rebasekit.core.errors import ProcessError
from rebasekit.core.log import logger
from rebasekit.git.rebase import RebaseStateManager
from rebasekit.git.scanner import ConflictScanner
from rebasekit.model.resolver import ResolutionClient
from rebasekit.models import RebaseWithResolutionResult, ResolutionResult


class RebasePhase(str, Enum):
    IDLE = "idle"
    REBASING = "rebasing"
    CONFLICTS_PENDING = "conflicts_pending"
    APPLYING = "applying"
    COMPLETE = "complete"
    ABORTED = "aborted"


# Legal phase changes; anything else is a bug in a node
TRANSITIONS: dict[RebasePhase, frozenset[RebasePhase]] = {
    RebasePhase.IDLE: frozenset({RebasePhase.REBASING, RebasePhase.ABORTED}),
    RebasePhase.REBASING: frozenset({
        RebasePhase.CONFLICTS_PENDING,
        RebasePhase.COMPLETE,
        RebasePhase.ABORTED,
    }),
    RebasePhase.CONFLICTS_PENDING: frozenset({
        RebasePhase.APPLYING,
        RebasePhase.REBASING,
        RebasePhase.COMPLETE,
        RebasePhase.ABORTED,
    }),
    RebasePhase.APPLYING: frozenset({
        RebasePhase.REBASING,
        RebasePhase.ABORTED,
    }),
    RebasePhase.COMPLETE: frozenset(),
    RebasePhase.ABORTED: frozenset(),
}


@dataclass
class AutoRebaseState:
    """Mutable state of one automatic rebase run."""

    repo_path: Path
    target_branch: str
    max_retries: int = 3
    current_branch: str = ""
    phase: RebasePhase = RebasePhase.IDLE
    retries: int = 0
    conflicts_resolved: int = 0
    conflicts_failed: int = 0
    resolutions: list[ResolutionResult] = field(default_factory=list)

    def transition(self, phase: RebasePhase) -> None:
        """Move to phase.

        Raises:
            RuntimeError: If the change is not a legal transition
        """
        if phase is self.phase:
            return
        if phase not in TRANSITIONS[self.phase]:
            raise RuntimeError(
                f"Illegal rebase phase change {self.phase.value} -> "
                f"{phase.value}"
            )
        self.phase = phase

    def result(
        self, success: bool, message: str
    ) -> RebaseWithResolutionResult:
        return RebaseWithResolutionResult(
            success=success,
            message=message,
            conflicts_resolved=self.conflicts_resolved,
            conflicts_failed=self.conflicts_failed,
            resolutions=list(self.resolutions),
        )


@dataclass
class AutoRebaseDeps:
    """Components the workflow nodes drive."""

    rebase: RebaseStateManager
    scanner: ConflictScanner
    resolver: ResolutionClient

    async def abort_quietly(self, repo_path: Path) -> None:
        """Abort the rebase; a failing abort is logged, not raised."""
        try:
            await self.rebase.abort_rebase(repo_path)
        except ProcessError as e:
            logger.warn(f"Rebase abort failed: {e}", repo=str(repo_path))
