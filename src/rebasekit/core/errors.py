"""Exception taxonomy for rebase conflict resolution.

Every exception carries a stable ``code`` string so callers (the CLI,
a UI bridge) can report failures without parsing messages.
"""

from __future__ import annotations


class RebaseKitError(Exception):
    """Root of all errors raised by rebasekit."""

    code = "REBASEKIT_ERROR"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ProcessError(RebaseKitError):
    """A subprocess exited with a non-zero status."""

    code = "PROCESS_FAILED"

    def __init__(self, command: str, exit_code: int, stderr: str = ""):
        detail = stderr.strip() or "no output on stderr"
        super().__init__(
            f"'{command}' exited with code {exit_code}: {detail}"
        )
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr


class ProcessTimeout(ProcessError):
    """A subprocess exceeded its time budget."""

    code = "PROCESS_TIMEOUT"

    def __init__(self, command: str, timeout: float, stderr: str = ""):
        super().__init__(command, -1, stderr or f"timed out after {timeout}s")
        self.timeout = timeout


class FetchFailed(RebaseKitError):
    """Fetching the rebase target from the remote failed."""

    code = "FETCH_FAILED"


class ScanFailed(RebaseKitError):
    """Listing conflicted files failed."""

    code = "SCAN_FAILED"


class AnalysisError(RebaseKitError):
    """Conflict analysis could not be produced."""

    code = "ANALYZE_CONFLICT_FAILED"


class AnalysisServiceError(AnalysisError):
    """The inference call for an analysis failed."""

    code = "ANALYSIS_SERVICE_FAILED"


class AnalysisParseError(AnalysisError):
    """The analysis response held no usable JSON object."""

    code = "ANALYSIS_PARSE_FAILED"


class StateIntegrityError(RebaseKitError):
    """Content with conflict markers was about to be written or
    continued."""

    code = "STATE_INTEGRITY_VIOLATION"


class PathOutsideRepository(RebaseKitError):
    """A file path resolved outside the repository working tree."""

    code = "PATH_OUTSIDE_REPOSITORY"


class RepositoryBusy(RebaseKitError):
    """Another rebase workflow already holds this repository."""

    code = "REPOSITORY_BUSY"


__all__ = [
    "RebaseKitError",
    "ProcessError",
    "ProcessTimeout",
    "FetchFailed",
    "ScanFailed",
    "AnalysisError",
    "AnalysisServiceError",
    "AnalysisParseError",
    "StateIntegrityError",
    "PathOutsideRepository",
    "RepositoryBusy",
]
