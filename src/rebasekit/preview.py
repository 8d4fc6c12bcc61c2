"""Generate resolution previews for human review."""

from __future__ import annotations

from pathlib import Path

from rebasekit.core.errors import (
    AnalysisError,
    PathOutsideRepository,
    ProcessError,
    ScanFailed,
)
from rebasekit.core.log import logger
from rebasekit.git.rebase import RebaseStateManager
from rebasekit.git.scanner import ConflictScanner, infer_language
from rebasekit.model.resolver import ResolutionClient
from rebasekit.models import ConflictPreviewResult, ConflictResolutionPreview


class PreviewOrchestrator:
    """Starts a rebase and proposes a resolution for every conflict.

    The working tree is left mid-rebase with every file still in
    conflict; nothing is written. Applying is ApprovalApplier's job,
    after a human has adjudicated the previews.
    """

    def __init__(
        self,
        rebase: RebaseStateManager,
        scanner: ConflictScanner,
        resolver: ResolutionClient,
    ):
        self.rebase = rebase
        self.scanner = scanner
        self.resolver = resolver

    async def generate_resolution_previews(
        self, repo_path: Path, target_branch: str
    ) -> ConflictPreviewResult:
        """Rebase onto the target and build one preview per conflict.

        Raises:
            FetchFailed: If the target cannot be fetched
            ScanFailed: If conflicted files cannot be listed
            ProcessError: If the current branch cannot be read
        """
        current_branch = await self.rebase.current_branch(repo_path)
        logger.info(
            f"Generating previews for {current_branch} onto {target_branch}",
            repo=str(repo_path),
        )
        await self.rebase.fetch(repo_path, target_branch)

        result = ConflictPreviewResult(
            repo_path=str(repo_path),
            current_branch=current_branch,
            target_branch=target_branch,
        )

        start_error = await self.rebase.start_rebase(repo_path, target_branch)
        if start_error is None:
            logger.info("Rebase completed without conflicts")
            return result

        # A failed start is treated as conflicts whatever the cause
        result.rebase_start_error = start_error.stderr.strip() or str(
            start_error
        )
        logger.warn(
            "Rebase start failed, treating as conflicts",
            stderr=result.rebase_start_error,
        )

        try:
            files = await self.scanner.list_conflicted(repo_path)
        except ProcessError as e:
            raise ScanFailed(f"Failed to list conflicted files: {e}") from e

        if not files:
            logger.warn(
                "Rebase stopped but git reports no conflicted files",
                repo=str(repo_path),
            )
        result.total_conflicts = len(files)

        for path in files:
            preview, resolved = await self._preview_file(
                repo_path, path, current_branch, target_branch
            )
            result.previews.append(preview)
            if resolved:
                result.resolved_by_ai += 1
            else:
                result.failed_to_resolve += 1

        logger.info(
            f"Previews ready: {result.resolved_by_ai} resolved, "
            f"{result.failed_to_resolve} need manual resolution",
            total=result.total_conflicts,
        )
        return result

    async def _preview_file(
        self,
        repo_path: Path,
        path: str,
        current_branch: str,
        target_branch: str,
    ) -> tuple[ConflictResolutionPreview, bool]:
        """Preview for one file and whether the model resolved it."""
        try:
            conflicted = self.scanner.read_conflicted(repo_path, path)
        except (OSError, UnicodeDecodeError, PathOutsideRepository) as e:
            logger.warn(f"Cannot read {path}: {e}", file=path)
            return ConflictResolutionPreview(
                file=path, language=infer_language(path)
            ), False

        analysis = None
        try:
            analysis = await self.resolver.analyze(repo_path, path)
        except AnalysisError as e:
            logger.warn(f"Analysis unavailable for {path}: {e}", file=path,
                        code=e.code)

        resolution = await self.resolver.resolve(
            repo_path, path, current_branch, target_branch
        )
        if resolution.resolved:
            proposed = resolution.content
        else:
            logger.warn(
                f"{path} needs manual resolution: {resolution.error}",
                file=path,
            )
            # The reviewer resolves it by hand from the original
            proposed = conflicted.content

        return ConflictResolutionPreview(
            file=path,
            language=conflicted.language,
            original_content=conflicted.content,
            proposed_content=proposed,
            analysis=analysis,
        ), resolution.resolved
