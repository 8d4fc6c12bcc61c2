"""Nodes of the automatic rebase state machine."""

from rebasekit.workflow.nodes.continue_rebase import ContinueRebase
from rebasekit.workflow.nodes.resolve_batch import ResolveBatch
from rebasekit.workflow.nodes.scan_conflicts import ScanConflicts
from rebasekit.workflow.nodes.start_rebase import StartRebase
from rebasekit.workflow.nodes.verify_completion import VerifyCompletion

__all__ = [
    "StartRebase",
    "ScanConflicts",
    "ResolveBatch",
    "ContinueRebase",
    "VerifyCompletion",
]
