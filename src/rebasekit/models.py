"""Records exchanged between the resolution engine and its callers.

All models serialize with camelCase keys (``model_dump(by_alias=True)``)
so a UI can consume them directly, and accept either spelling on input.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

PREVIEW_STATUSES = ("pending", "approved", "rejected", "modified")


class Record(BaseModel):
    """Base for camelCase-serialized records."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


class ConflictedFile(Record):
    """A conflicted file as read from the working tree, markers
    included. Never cached across rebase steps."""

    path: str
    content: str
    language: str = "text"


class ConflictAnalysis(Record):
    """Advisory classification of a conflict for the human reviewer."""

    current_branch_intent: str
    incoming_branch_intent: str
    conflict_type: Literal["compatible", "semantic", "structural"]
    recommended_strategy: Literal[
        "merge_both", "prefer_current", "prefer_incoming", "manual"
    ]
    explanation: str
    complexity: Literal["simple", "moderate", "complex"]


class ResolutionResult(Record):
    """Outcome of resolving one file.

    ``resolved=True`` carries marker-free content; ``resolved=False``
    carries an error.
    """

    file: str
    resolved: bool
    content: str | None = None
    error: str | None = None
    analysis: ConflictAnalysis | None = None

    @model_validator(mode="after")
    def _check_outcome(self) -> ResolutionResult:
        if self.resolved and self.content is None:
            raise ValueError("resolved result requires content")
        if not self.resolved and not self.error:
            raise ValueError("unresolved result requires an error")
        return self


class ConflictResolutionPreview(Record):
    """One proposed, unapplied resolution awaiting human review."""

    file: str
    language: str = "text"
    original_content: str = ""
    proposed_content: str = ""
    analysis: ConflictAnalysis | None = None
    status: str = Field(
        default="pending",
        description=(
            "Review decision: pending, approved, rejected or modified. "
            "Any other value is skipped when applying."
        ),
    )
    user_modified_content: str | None = None

    def content_to_apply(self) -> str:
        """User edits win over the proposal."""
        if self.user_modified_content:
            return self.user_modified_content
        return self.proposed_content


class ConflictPreviewResult(Record):
    """Everything one preview-generation pass produced."""

    repo_path: str
    current_branch: str
    target_branch: str
    previews: list[ConflictResolutionPreview] = Field(default_factory=list)
    total_conflicts: int = 0
    resolved_by_ai: int = Field(default=0, alias="resolvedByAI")
    failed_to_resolve: int = 0
    rebase_start_error: str | None = Field(
        default=None,
        description=(
            "stderr of the failed rebase start. Any failure is treated "
            "as conflicts; this keeps the raw signal visible."
        ),
    )


class ApplyResolutionsResult(Record):
    """Partition of adjudicated previews by outcome."""

    success: bool
    message: str
    applied: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)


class RebaseWithResolutionResult(Record):
    """Outcome of the automatic (no approval) rebase loop."""

    success: bool
    message: str
    conflicts_resolved: int = 0
    conflicts_failed: int = 0
    resolutions: list[ResolutionResult] = Field(default_factory=list)


class OperationError(Record):
    code: str
    message: str


class OperationResult(Record):
    """Envelope for a service call made on behalf of a UI or the CLI.

    ``success=False`` carries the failing error's code and message in
    place of raising it.
    """

    success: bool
    data: Any = None
    error: OperationError | None = None


__all__ = [
    "PREVIEW_STATUSES",
    "ConflictedFile",
    "ConflictAnalysis",
    "ResolutionResult",
    "ConflictResolutionPreview",
    "ConflictPreviewResult",
    "ApplyResolutionsResult",
    "RebaseWithResolutionResult",
    "OperationError",
    "OperationResult",
]
