"""End-to-end workflows against real git repositories."""

import asyncio

from rebasekit.service import ConflictService

from conftest import git
from fakes import FakeInference

MERGED_APP = "def greet():\n    return 'good day, hi there'\n"


def make_service(config, *answers):
    return ConflictService(config, inference=FakeInference(*answers))


def test_preview_leaves_rebase_stopped_on_conflict(
    conflicted_repo, test_config
):
    work, _ = conflicted_repo
    service = make_service(test_config, MERGED_APP)

    result = asyncio.run(service.generate_resolution_previews(work, "main"))

    assert result.current_branch == "feature"
    assert result.total_conflicts == 1
    assert result.resolved_by_ai == 1
    assert result.rebase_start_error
    preview = result.previews[0]
    assert preview.file == "app.py"
    assert preview.language == "python"
    assert "<<<<<<<" in preview.original_content
    assert preview.proposed_content == MERGED_APP.strip()
    assert preview.status == "pending"
    # Nothing is written before approval
    assert "<<<<<<<" in (work / "app.py").read_text()
    assert asyncio.run(service.is_rebase_in_progress(work))


def test_approved_preview_completes_rebase(conflicted_repo, test_config):
    work, _ = conflicted_repo
    service = make_service(test_config, MERGED_APP)
    previews = asyncio.run(
        service.generate_resolution_previews(work, "main")
    ).previews
    approved = [p.model_copy(update={"status": "approved"}) for p in previews]

    result = asyncio.run(service.apply_approved_resolutions(work, approved))

    assert result.success
    assert result.applied == ["app.py"]
    assert not asyncio.run(service.is_rebase_in_progress(work))
    assert (work / "app.py").read_text() == MERGED_APP.strip()
    assert git(work, "log", "--format=%s", "-2").splitlines() == [
        "feature greeting",
        "main greeting",
    ]


def test_rejected_preview_leaves_rebase_stopped(conflicted_repo, test_config):
    work, _ = conflicted_repo
    service = make_service(test_config, MERGED_APP)
    previews = asyncio.run(
        service.generate_resolution_previews(work, "main")
    ).previews
    rejected = [p.model_copy(update={"status": "rejected"}) for p in previews]

    result = asyncio.run(service.apply_approved_resolutions(work, rejected))

    assert result.skipped == ["app.py"]
    assert asyncio.run(service.is_rebase_in_progress(work))


def test_auto_rebase_resolves_and_completes(conflicted_repo, test_config):
    work, _ = conflicted_repo
    service = make_service(test_config, MERGED_APP)

    result = asyncio.run(service.rebase_with_resolution(work, "main"))

    assert result.success
    assert result.conflicts_resolved == 1
    assert not asyncio.run(service.is_rebase_in_progress(work))
    assert (work / "app.py").read_text() == MERGED_APP.strip()
    assert (work / "notes.txt").exists()


def test_auto_rebase_failure_restores_branch(conflicted_repo, test_config):
    work, _ = conflicted_repo
    head = git(work, "rev-parse", "HEAD")
    service = make_service(test_config, None)

    result = asyncio.run(service.rebase_with_resolution(work, "main"))

    assert not result.success
    assert result.conflicts_failed == 1
    assert not asyncio.run(service.is_rebase_in_progress(work))
    assert git(work, "rev-parse", "HEAD") == head
    assert "hi there" in (work / "app.py").read_text()


def test_abort_after_preview_and_again(conflicted_repo, test_config):
    work, _ = conflicted_repo
    service = make_service(test_config, MERGED_APP)
    asyncio.run(service.generate_resolution_previews(work, "main"))

    asyncio.run(service.abort_rebase(work))
    asyncio.run(service.abort_rebase(work))

    assert not asyncio.run(service.is_rebase_in_progress(work))
    assert git(work, "branch", "--show-current") == "feature"


def test_get_conflicted_files(conflicted_repo, test_config):
    work, _ = conflicted_repo
    service = make_service(test_config, None)
    asyncio.run(service.generate_resolution_previews(work, "main"))

    assert asyncio.run(service.get_conflicted_files(work)) == ["app.py"]
    conflicted = service.read_conflicted_file(work, "app.py")
    assert conflicted.language == "python"
    assert "=======" in conflicted.content
