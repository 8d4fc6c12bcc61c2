"""Apply command - write adjudicated previews and continue."""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import Field, TypeAdapter, ValidationError
from pydantic_settings import CliPositionalArg

from rebasekit.command.base import RepoCommand, exit_code
from rebasekit.core.log import logger
from rebasekit.models import ConflictResolutionPreview
from rebasekit.service import guarded

_previews = TypeAdapter(list[ConflictResolutionPreview])


def load_previews(path: Path) -> list[ConflictResolutionPreview]:
    """Read previews from a preview command output or a bare list.

    Raises:
        ValueError: If the file holds no previews
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        # Full preview output: {"success": ..., "data": {"previews": ...}}
        data = data.get("data", data)
        data = data.get("previews") if isinstance(data, dict) else None
    if data is None:
        raise ValueError(f"No previews found in {path}")
    return _previews.validate_python(data)


class ApplyCommand(RepoCommand):
    """Apply the approved and modified previews in PREVIEWS.

    Rejected or still pending previews are skipped. When every
    selected file is written the rebase is continued.
    """

    previews: CliPositionalArg[Path] = Field(
        description="Preview JSON edited with approval decisions"
    )
    output: Path | None = Field(
        default=None,
        description="Write the result JSON here instead of stdout",
    )

    async def run_workflow(self, state) -> int:
        try:
            previews = load_previews(self.previews)
        except (OSError, ValueError, ValidationError) as e:
            logger.error(f"Cannot load previews from {self.previews}: {e}")
            return 2

        service = self.service(state)
        result = await guarded(service.apply_approved_resolutions(
            self.repo_path(), previews
        ))
        self.emit(result, self.output)
        return exit_code(result)
