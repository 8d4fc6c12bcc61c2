"""CLI command modules for rebasekit."""

from rebasekit.command.abort import AbortCommand
from rebasekit.command.apply import ApplyCommand
from rebasekit.command.auto import AutoCommand
from rebasekit.command.preview import PreviewCommand
from rebasekit.command.status import StatusCommand

__all__ = [
    "AbortCommand",
    "ApplyCommand",
    "AutoCommand",
    "PreviewCommand",
    "StatusCommand",
]
