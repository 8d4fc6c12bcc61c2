"""Shared plumbing for CLI subcommands."""

from __future__ import annotations

import sys
from pathlib import Path

from pydantic import BaseModel, Field

from rebasekit.models import OperationResult
from rebasekit.service import ConflictService


class RepoCommand(BaseModel):
    """A subcommand operating on one repository."""

    repo: Path = Field(
        default=Path("."),
        description="Repository working tree (default: current directory)",
    )

    def repo_path(self) -> Path:
        return self.repo.expanduser().resolve()

    def service(self, state) -> ConflictService:
        return ConflictService(state.config)

    def emit(self, result: OperationResult, output: Path | None = None):
        """Write a result as camelCase JSON to output or stdout."""
        text = result.to_json()
        if output is None:
            sys.stdout.write(text + "\n")
        else:
            output.write_text(text + "\n", encoding="utf-8")


def exit_code(result: OperationResult) -> int:
    """0 when the call and its payload both report success."""
    if not result.success:
        return 1
    success = getattr(result.data, "success", True)
    return 0 if success else 1
