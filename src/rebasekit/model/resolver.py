"""Conflict analysis and resolution through the inference service."""

from __future__ import annotations

from pathlib import Path

from pydantic import ValidationError

from rebasekit.core.errors import (
    AnalysisParseError,
    AnalysisServiceError,
    PathOutsideRepository,
)
from rebasekit.core.log import logger
from rebasekit.git.markers import has_markers
from rebasekit.git.scanner import ConflictScanner
from rebasekit.model.extract import extract_json_object, strip_code_fence
from rebasekit.model.inference import (
    RESOLVER_MODE,
    InferenceService,
    ModeRequest,
)
from rebasekit.models import ConflictAnalysis, ResolutionResult

ANALYZE_PROMPT = "analyze_conflict"
RESOLVE_PROMPT = "resolve_conflict"

ANALYZE_MESSAGE = "Analyze this conflict and return ONLY valid JSON."
RESOLVE_MESSAGE = (
    "Resolve this conflict and output ONLY the final merged code. "
    "No explanations."
)
RETRY_MESSAGE = (
    "CRITICAL: You MUST remove ALL conflict markers (<<<<<<<, =======, "
    ">>>>>>>) and produce clean, merged code. Output ONLY the resolved "
    "code."
)

UNRESOLVED_ERROR = "AI could not fully resolve conflict markers"
SERVICE_ERROR = "AI resolution failed"
EMPTY_ERROR = "AI returned an empty resolution"


class ResolutionClient:
    """Asks the inference service to analyze or resolve one file.

    The service is called at most twice per resolve(): once with the
    plain instruction and once more with a corrective one when the
    answer still carries conflict markers.
    """

    def __init__(self, scanner: ConflictScanner, inference: InferenceService):
        self.scanner = scanner
        self.inference = inference

    async def analyze(self, repo_path: Path, path: str) -> ConflictAnalysis:
        """Classify the intent and complexity of a conflict.

        Raises:
            AnalysisServiceError: If the file cannot be read or the
                inference call fails
            AnalysisParseError: If the answer holds no valid analysis
        """
        try:
            conflicted = self.scanner.read_conflicted(repo_path, path)
        except (OSError, UnicodeDecodeError, PathOutsideRepository) as e:
            raise AnalysisServiceError(
                f"Failed to read file: {path}"
            ) from e

        response = await self.inference.send_with_mode(ModeRequest(
            mode_id=RESOLVER_MODE,
            prompt_key=ANALYZE_PROMPT,
            variables={
                "file_path": path,
                "language": conflicted.language,
                "conflicted_content": conflicted.content,
            },
            user_message=ANALYZE_MESSAGE,
        ))
        if not response.success:
            raise AnalysisServiceError(
                f"AI analysis failed: {response.error or 'unknown error'}"
            )

        data = extract_json_object(response.data)
        try:
            return ConflictAnalysis.model_validate(data)
        except ValidationError as e:
            raise AnalysisParseError(
                f"AI analysis for {path} has unexpected shape: "
                f"{e.error_count()} validation error(s)"
            ) from e

    async def resolve(
        self,
        repo_path: Path,
        path: str,
        current_branch: str,
        incoming_branch: str,
    ) -> ResolutionResult:
        """Produce marker-free content for one conflicted file.

        Never raises for per-file problems; they come back as
        ``resolved=False`` with an error.
        """
        try:
            conflicted = self.scanner.read_conflicted(repo_path, path)
        except (OSError, UnicodeDecodeError, PathOutsideRepository) as e:
            logger.warn(f"Cannot read {path}: {e}", file=path)
            return ResolutionResult(
                file=path, resolved=False, error=f"Failed to read file: {path}"
            )

        if not has_markers(conflicted.content):
            logger.info(f"{path} has no conflict markers, nothing to do",
                        file=path)
            return ResolutionResult(
                file=path, resolved=True, content=conflicted.content
            )

        variables = {
            "file_path": path,
            "language": conflicted.language,
            "current_branch": current_branch,
            "incoming_branch": incoming_branch,
            "conflicted_content": conflicted.content,
        }

        response = await self._request(variables, RESOLVE_MESSAGE)
        if not _answered(response):
            logger.warn(f"Resolution request failed for {path}: "
                        f"{response.error or 'blank answer'}", file=path)
            return ResolutionResult(
                file=path, resolved=False, error=SERVICE_ERROR
            )
        content = strip_code_fence(response.data)

        if has_markers(content):
            logger.warn(f"Markers remain in {path}, retrying once",
                        file=path)
            response = await self._request(variables, RETRY_MESSAGE)
            if _answered(response):
                content = strip_code_fence(response.data)
            else:
                logger.warn(f"Retry request failed for {path}: "
                            f"{response.error or 'blank answer'}",
                            file=path)

        if has_markers(content):
            logger.warn(f"Could not resolve {path}", file=path)
            return ResolutionResult(
                file=path, resolved=False, error=UNRESOLVED_ERROR
            )

        content = content.strip()
        if not content:
            logger.warn(f"Resolution of {path} is empty", file=path)
            return ResolutionResult(
                file=path, resolved=False, error=EMPTY_ERROR
            )

        logger.info(f"Resolved {path}", file=path)
        return ResolutionResult(file=path, resolved=True, content=content)

    async def _request(self, variables: dict[str, str], message: str):
        return await self.inference.send_with_mode(ModeRequest(
            mode_id=RESOLVER_MODE,
            prompt_key=RESOLVE_PROMPT,
            variables=variables,
            user_message=message,
        ))


def _answered(response) -> bool:
    """A successful response carrying non-blank text."""
    return response.success and bool(response.data.strip())
