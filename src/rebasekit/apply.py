"""Write human-approved resolutions and advance the rebase."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from rebasekit.core.errors import (
    PathOutsideRepository,
    ProcessError,
    StateIntegrityError,
)
from rebasekit.core.log import logger
from rebasekit.git.markers import has_markers
from rebasekit.git.rebase import RebaseStateManager
from rebasekit.models import (
    PREVIEW_STATUSES,
    ApplyResolutionsResult,
    ConflictResolutionPreview,
)

APPLY_STATUSES = ("approved", "modified")


class ApprovalApplier:
    """Applies adjudicated previews.

    Every preview lands in exactly one of applied, failed or skipped.
    Content still carrying conflict markers is never written.
    """

    def __init__(self, rebase: RebaseStateManager):
        self.rebase = rebase

    async def apply_approved_resolutions(
        self,
        repo_path: Path,
        previews: Iterable[ConflictResolutionPreview],
    ) -> ApplyResolutionsResult:
        applied: list[str] = []
        failed: list[str] = []
        skipped: list[str] = []

        for preview in previews:
            if preview.status not in PREVIEW_STATUSES:
                logger.warn(
                    f"Skipping {preview.file}: unknown status "
                    f"{preview.status!r}",
                    file=preview.file,
                )
                skipped.append(preview.file)
                continue
            if preview.status not in APPLY_STATUSES:
                logger.debug(f"Skipping {preview.file} ({preview.status})",
                             file=preview.file)
                skipped.append(preview.file)
                continue

            content = preview.content_to_apply()
            if has_markers(content):
                logger.warn(
                    f"Refusing to apply {preview.file}: conflict markers "
                    f"remain",
                    file=preview.file,
                )
                failed.append(preview.file)
                continue

            try:
                await self.rebase.apply_resolution(
                    repo_path, preview.file, content
                )
            except (
                OSError,
                ProcessError,
                PathOutsideRepository,
                StateIntegrityError,
            ) as e:
                logger.error(f"Failed to apply {preview.file}: {e}",
                             file=preview.file)
                failed.append(preview.file)
                continue
            applied.append(preview.file)

        if not failed and applied:
            await self._continue(repo_path, applied)

        if failed:
            message = f"Applied {len(applied)}, failed {len(failed)}"
        else:
            message = f"Applied {len(applied)} resolution(s)"
        logger.info(message, applied=len(applied), failed=len(failed),
                    skipped=len(skipped))

        return ApplyResolutionsResult(
            success=not failed,
            message=message,
            applied=applied,
            failed=failed,
            skipped=skipped,
        )

    async def _continue(self, repo_path: Path, staged: list[str]) -> None:
        # Further commits may stop on new conflicts; the next preview
        # round picks those up
        try:
            await self.rebase.continue_rebase(repo_path, staged=staged)
        except (ProcessError, StateIntegrityError, OSError) as e:
            logger.warn(f"Rebase did not continue: {e}",
                        repo=str(repo_path))
        else:
            logger.info("Rebase continued", repo=str(repo_path))
