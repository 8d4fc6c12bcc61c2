"""Tests for RebaseStateManager."""

import asyncio

import pytest

from rebasekit.core.errors import (
    FetchFailed,
    ProcessError,
    StateIntegrityError,
)
from rebasekit.git.rebase import RebaseStateManager

from fakes import (
    CONFLICTED,
    MERGED,
    FakeRunner,
    failure,
    git_dir_runner,
    start_rebase_dir,
)


def test_commands_match_git_cli(tmp_path):
    runner = FakeRunner({"branch --show-current": "feature"})
    rebase = RebaseStateManager(runner, remote="upstream")

    async def drive():
        branch = await rebase.current_branch(tmp_path)
        await rebase.fetch(tmp_path, "main")
        stopped = await rebase.start_rebase(tmp_path, "main")
        return branch, stopped

    branch, stopped = asyncio.run(drive())

    assert branch == "feature"
    assert stopped is None
    assert runner.calls == [
        "branch --show-current",
        "fetch upstream main",
        "rebase upstream/main",
    ]


def test_fetch_failure_is_typed(tmp_path):
    runner = FakeRunner({"fetch origin main": failure("git fetch", 128)})

    with pytest.raises(FetchFailed) as exc:
        asyncio.run(RebaseStateManager(runner).fetch(tmp_path, "main"))
    assert exc.value.code == "FETCH_FAILED"
    assert "main" in str(exc.value)


def test_start_rebase_returns_failure_instead_of_raising(tmp_path):
    error = failure("git rebase", 1, "CONFLICT (content): app.py")
    runner = FakeRunner({"rebase origin/main": error})

    stopped = asyncio.run(
        RebaseStateManager(runner).start_rebase(tmp_path, "main")
    )

    assert stopped is error


def test_rebase_in_progress_detects_either_state_dir(tmp_path):
    rebase = RebaseStateManager(git_dir_runner())

    assert asyncio.run(rebase.is_rebase_in_progress(tmp_path)) is False

    (tmp_path / ".git" / "rebase-apply").mkdir(parents=True)
    assert asyncio.run(rebase.is_rebase_in_progress(tmp_path)) is True


def test_rebase_in_progress_fails_open(tmp_path):
    start_rebase_dir(tmp_path)
    runner = FakeRunner({
        "rev-parse --git-dir": failure("git rev-parse", 128, "not a repo"),
    })

    result = asyncio.run(
        RebaseStateManager(runner).is_rebase_in_progress(tmp_path)
    )

    assert result is False


def test_apply_resolution_writes_and_stages(tmp_path):
    runner = FakeRunner()
    (tmp_path / "app.py").write_text(CONFLICTED)

    asyncio.run(
        RebaseStateManager(runner).apply_resolution(tmp_path, "app.py", MERGED)
    )

    assert (tmp_path / "app.py").read_text() == MERGED
    assert runner.calls == ["add app.py"]


def test_apply_resolution_refuses_markers(tmp_path):
    runner = FakeRunner()
    (tmp_path / "app.py").write_text(CONFLICTED)

    with pytest.raises(StateIntegrityError):
        asyncio.run(RebaseStateManager(runner).apply_resolution(
            tmp_path, "app.py", CONFLICTED
        ))

    assert runner.calls == []


def test_continue_rechecks_staged_files(tmp_path):
    runner = FakeRunner()
    (tmp_path / "app.py").write_text(CONFLICTED)
    rebase = RebaseStateManager(runner)

    with pytest.raises(StateIntegrityError):
        asyncio.run(rebase.continue_rebase(tmp_path, staged=["app.py"]))
    assert "rebase --continue" not in runner.calls

    (tmp_path / "app.py").write_text(MERGED)
    asyncio.run(rebase.continue_rebase(tmp_path, staged=["app.py"]))
    assert runner.calls == ["rebase --continue"]


def test_abort_without_rebase_is_a_no_op(tmp_path):
    runner = git_dir_runner({
        "rebase --abort": failure("git rebase --abort", 128, "No rebase"),
    })

    asyncio.run(RebaseStateManager(runner).abort_rebase(tmp_path))

    assert runner.count("rebase --abort") == 1


def test_abort_failure_during_rebase_propagates(tmp_path):
    start_rebase_dir(tmp_path)
    runner = git_dir_runner({
        "rebase --abort": failure("git rebase --abort", 1, "locked"),
    })

    with pytest.raises(ProcessError):
        asyncio.run(RebaseStateManager(runner).abort_rebase(tmp_path))
