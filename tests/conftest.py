"""Pytest configuration and fixtures for rebasekit tests."""

import shutil
import subprocess
import sys
import tempfile
from pathlib import Path

import pytest

from rebasekit.core.log import ConsoleSink, setup_logger


@pytest.fixture(autouse=True, scope="session")
def configure_logging():
    """Configure logging for console-only mode during tests.

    Debug output shows up in failing test reports without sending
    anything to logfire.dev.
    """
    test_log_root = Path(tempfile.gettempdir()) / "rebasekit-tests"
    setup_logger(
        log_root=test_log_root,
        repo_name="test",
        console=ConsoleSink(level="debug"),
    )


@pytest.fixture
def mock_argv():
    """Save and restore sys.argv."""
    original = sys.argv.copy()
    sys.argv = ["rebasekit"]
    yield
    sys.argv = original


@pytest.fixture
def test_config(mock_argv):
    """Config loaded from the package defaults, without CLI parsing."""
    from rebasekit.core.config import State

    return State().config


def git(cwd: Path, *args: str) -> str:
    """Run git synchronously for test setup."""
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        check=True,
        capture_output=True,
        text=True,
    )
    return result.stdout.strip()


@pytest.fixture
def conflicted_repo(tmp_path):
    """A clone whose 'feature' branch conflicts with origin/main.

    Returns (work tree path, remote path). Both sides edit line 2 of
    app.py; notes.txt changes only on feature.
    """
    if shutil.which("git") is None:
        pytest.skip("git is not installed")

    remote = tmp_path / "remote.git"
    seed = tmp_path / "seed"
    work = tmp_path / "work"

    git(tmp_path, "init", "--bare", "-b", "main", str(remote))
    git(tmp_path, "init", "-b", "main", str(seed))
    git(seed, "config", "user.email", "test@example.com")
    git(seed, "config", "user.name", "Test")
    (seed / "app.py").write_text("def greet():\n    return 'hello'\n")
    git(seed, "add", "app.py")
    git(seed, "commit", "-m", "initial")
    git(seed, "remote", "add", "origin", str(remote))
    git(seed, "push", "origin", "main")

    git(tmp_path, "clone", str(remote), str(work))
    git(work, "config", "user.email", "test@example.com")
    git(work, "config", "user.name", "Test")
    git(work, "checkout", "-b", "feature")
    (work / "app.py").write_text("def greet():\n    return 'hi there'\n")
    (work / "notes.txt").write_text("feature notes\n")
    git(work, "add", "app.py", "notes.txt")
    git(work, "commit", "-m", "feature greeting")

    (seed / "app.py").write_text("def greet():\n    return 'good day'\n")
    git(seed, "commit", "-am", "main greeting")
    git(seed, "push", "origin", "main")

    return work, remote
