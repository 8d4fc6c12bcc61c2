"""Enumerate and read files in a merge-conflict state."""

from __future__ import annotations

from pathlib import Path

from rebasekit.core.errors import PathOutsideRepository
from rebasekit.core.log import logger
from rebasekit.core.runner import ProcessRunner
from rebasekit.git.markers import has_markers, parse
from rebasekit.models import ConflictedFile

LANGUAGES = {
    ".ts": "typescript",
    ".tsx": "typescript",
    ".js": "javascript",
    ".jsx": "javascript",
    ".json": "json",
    ".md": "markdown",
    ".css": "css",
    ".scss": "scss",
    ".html": "html",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".py": "python",
    ".go": "go",
    ".rs": "rust",
    ".java": "java",
    ".sql": "sql",
}


def infer_language(path: str) -> str:
    """Language name for a file path; ``text`` when unknown."""
    return LANGUAGES.get(Path(path).suffix.lower(), "text")


def repo_file(repo_path: Path, path: str) -> Path:
    """Absolute path of a repository-relative file.

    Raises:
        PathOutsideRepository: If path escapes the working tree
    """
    root = Path(repo_path).resolve()
    full = (root / path).resolve()
    if not full.is_relative_to(root):
        raise PathOutsideRepository(
            f"{path} resolves outside repository {root}"
        )
    return full


class ConflictScanner:
    """Lists conflicted files and reads them fresh from disk."""

    def __init__(self, runner: ProcessRunner, git: str = "git"):
        self.runner = runner
        self.git = git

    async def list_conflicted(self, repo_path: Path) -> list[str]:
        """Repository-relative paths of unmerged files.

        An empty list means no conflicts, not an error.

        Raises:
            ProcessError: If git fails
        """
        output = await self.runner.run(
            self.git,
            ["diff", "--name-only", "--diff-filter=U"],
            Path(repo_path),
        )
        files = [line for line in output.splitlines() if line.strip()]
        logger.debug(
            f"Found {len(files)} conflicted file(s)",
            repo=str(repo_path),
            files=files,
        )
        return files

    def read_conflicted(self, repo_path: Path, path: str) -> ConflictedFile:
        """Read a conflicted file with its markers.

        Raises:
            OSError: If the file cannot be read
            PathOutsideRepository: If path escapes the working tree
        """
        content = repo_file(repo_path, path).read_text(encoding="utf-8")
        conflicted = ConflictedFile(
            path=path, content=content, language=infer_language(path)
        )
        if has_markers(content):
            try:
                hunks = len(parse(content))
            except ValueError as e:
                logger.warn(f"Malformed conflict markers in {path}: {e}")
            else:
                logger.debug(
                    f"Read {path}: {hunks} conflict hunk(s)",
                    file=path,
                    language=conflicted.language,
                )
        return conflicted
