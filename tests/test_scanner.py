"""Tests for ConflictScanner."""

import asyncio

import pytest

from rebasekit.core.errors import PathOutsideRepository, ProcessError
from rebasekit.git.scanner import ConflictScanner, infer_language

from fakes import CONFLICTED, FakeRunner, failure

LIST = "diff --name-only --diff-filter=U"


def test_list_conflicted_parses_name_only_output(tmp_path):
    runner = FakeRunner({LIST: "src/a.ts\nREADME.md\n"})
    files = asyncio.run(ConflictScanner(runner).list_conflicted(tmp_path))

    assert files == ["src/a.ts", "README.md"]
    assert runner.calls == [LIST]


def test_list_conflicted_empty_is_not_an_error(tmp_path):
    files = asyncio.run(
        ConflictScanner(FakeRunner()).list_conflicted(tmp_path)
    )
    assert files == []


def test_list_conflicted_propagates_git_failure(tmp_path):
    runner = FakeRunner({LIST: failure("git diff", 128)})
    with pytest.raises(ProcessError):
        asyncio.run(ConflictScanner(runner).list_conflicted(tmp_path))


def test_read_conflicted_infers_language(tmp_path):
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "a.ts").write_text(CONFLICTED)

    conflicted = ConflictScanner(FakeRunner()).read_conflicted(
        tmp_path, "src/a.ts"
    )

    assert conflicted.path == "src/a.ts"
    assert conflicted.content == CONFLICTED
    assert conflicted.language == "typescript"


@pytest.mark.parametrize("path,language", [
    ("a.py", "python"),
    ("A.JSON", "json"),
    ("styles.scss", "scss"),
    ("Makefile", "text"),
    ("notes.unknown", "text"),
])
def test_infer_language(path, language):
    assert infer_language(path) == language


def test_read_conflicted_missing_file_raises(tmp_path):
    with pytest.raises(OSError):
        ConflictScanner(FakeRunner()).read_conflicted(tmp_path, "gone.py")


def test_read_conflicted_refuses_paths_outside_repo(tmp_path):
    repo = tmp_path / "repo"
    repo.mkdir()
    (tmp_path / "secret.txt").write_text("x")

    with pytest.raises(PathOutsideRepository):
        ConflictScanner(FakeRunner()).read_conflicted(repo, "../secret.txt")
