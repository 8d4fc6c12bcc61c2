"""Facade wiring the resolution components for callers.

ConflictService is what a UI bridge or the CLI talks to. It builds the
components from configuration and holds the per-repository lock around
every sequence that starts, continues or aborts a rebase.
"""

from __future__ import annotations

from collections.abc import Awaitable, Iterable
from pathlib import Path

from rebasekit.apply import ApprovalApplier
from rebasekit.core.config import Config
from rebasekit.core.errors import RebaseKitError
from rebasekit.core.locks import RepositoryLocks
from rebasekit.core.log import logger
from rebasekit.core.runner import InvokeProcessRunner, ProcessRunner
from rebasekit.git.rebase import RebaseStateManager
from rebasekit.git.scanner import ConflictScanner
from rebasekit.model.inference import (
    InferenceService,
    ModeRegistry,
    PydanticAIInferenceService,
)
from rebasekit.model.resolver import ResolutionClient
from rebasekit.models import (
    ApplyResolutionsResult,
    ConflictAnalysis,
    ConflictedFile,
    ConflictPreviewResult,
    ConflictResolutionPreview,
    OperationError,
    OperationResult,
    RebaseWithResolutionResult,
    ResolutionResult,
)
from rebasekit.preview import PreviewOrchestrator
from rebasekit.workflow.graph import rebase_with_resolution
from rebasekit.workflow.state import AutoRebaseDeps

# Shared by every service in the process
repository_locks = RepositoryLocks()


class ConflictService:
    """Entry points of the rebase conflict-resolution engine."""

    def __init__(
        self,
        config: Config,
        runner: ProcessRunner | None = None,
        inference: InferenceService | None = None,
        locks: RepositoryLocks | None = None,
    ):
        """
        Args:
            config: Loaded configuration
            runner: Subprocess runner; invoke-based by default
            inference: Inference service; pydantic-ai by default
            locks: Lock registry; the process-wide one by default
        """
        self.config = config
        self.locks = locks or repository_locks
        runner = runner or InvokeProcessRunner(
            timeout=config.resolver.git_timeout
        )
        inference = inference or PydanticAIInferenceService(
            config.llm,
            ModeRegistry(config.modes),
            timeout=config.resolver.inference_timeout,
        )
        git = config.git.executable

        self.scanner = ConflictScanner(runner, git=git)
        self.rebase = RebaseStateManager(
            runner, remote=config.git.remote, git=git
        )
        self.resolver = ResolutionClient(self.scanner, inference)
        self.previews = PreviewOrchestrator(
            self.rebase, self.scanner, self.resolver
        )
        self.applier = ApprovalApplier(self.rebase)

    async def get_conflicted_files(self, repo_path: Path) -> list[str]:
        return await self.scanner.list_conflicted(repo_path)

    def read_conflicted_file(
        self, repo_path: Path, path: str
    ) -> ConflictedFile:
        return self.scanner.read_conflicted(repo_path, path)

    async def analyze_conflict(
        self, repo_path: Path, path: str
    ) -> ConflictAnalysis:
        return await self.resolver.analyze(repo_path, path)

    async def resolve_file_conflict(
        self,
        repo_path: Path,
        path: str,
        current_branch: str,
        incoming_branch: str,
    ) -> ResolutionResult:
        return await self.resolver.resolve(
            repo_path, path, current_branch, incoming_branch
        )

    async def generate_resolution_previews(
        self, repo_path: Path, target_branch: str
    ) -> ConflictPreviewResult:
        async with self.locks.hold(repo_path, "preview"):
            return await self.previews.generate_resolution_previews(
                repo_path, target_branch
            )

    async def apply_approved_resolutions(
        self,
        repo_path: Path,
        previews: Iterable[ConflictResolutionPreview],
    ) -> ApplyResolutionsResult:
        async with self.locks.hold(repo_path, "apply"):
            return await self.applier.apply_approved_resolutions(
                repo_path, previews
            )

    async def rebase_with_resolution(
        self,
        repo_path: Path,
        target_branch: str,
        max_retries: int | None = None,
    ) -> RebaseWithResolutionResult:
        if max_retries is None:
            max_retries = self.config.resolver.max_retries
        deps = AutoRebaseDeps(
            rebase=self.rebase, scanner=self.scanner, resolver=self.resolver
        )
        async with self.locks.hold(repo_path, "auto"):
            return await rebase_with_resolution(
                deps, repo_path, target_branch, max_retries
            )

    async def abort_rebase(self, repo_path: Path) -> None:
        async with self.locks.hold(repo_path, "abort"):
            await self.rebase.abort_rebase(repo_path)

    async def is_rebase_in_progress(self, repo_path: Path) -> bool:
        return await self.rebase.is_rebase_in_progress(repo_path)


async def guarded(operation: Awaitable) -> OperationResult:
    """Await operation, turning a RebaseKitError into an error result.

    Anything else is a bug and propagates.
    """
    try:
        data = await operation
    except RebaseKitError as e:
        logger.error(f"{e.code}: {e}", code=e.code)
        return OperationResult(
            success=False,
            error=OperationError(code=e.code, message=str(e)),
        )
    return OperationResult(success=True, data=data)
