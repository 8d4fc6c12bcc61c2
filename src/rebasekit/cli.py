#!/usr/bin/env python3
"""rebasekit CLI - AI-assisted rebase conflict resolution."""

import asyncio
import sys

from pydantic_settings import CliApp, CliSubCommand, get_subcommand

from rebasekit.command.abort import AbortCommand
from rebasekit.command.apply import ApplyCommand
from rebasekit.command.auto import AutoCommand
from rebasekit.command.preview import PreviewCommand
from rebasekit.command.status import StatusCommand
from rebasekit.core.config import State
from rebasekit.core.log import logger


def run_subcommand(state: State, subcommand) -> int:
    """Run a subcommand's workflow, tracking it on state.runtime.

    Returns:
        The subcommand's exit code
    """
    runtime = state.runtime
    runtime.repo_path = subcommand.repo_path()
    runtime.status = "running"
    logger.info(
        f"Running {type(subcommand).__name__} on {runtime.repo_path}",
        repo=str(runtime.repo_path),
    )

    try:
        exit_code = asyncio.run(subcommand.run_workflow(state))
    except Exception:
        runtime.status = "failed"
        raise

    runtime.status = "complete" if exit_code == 0 else "failed"
    logger.info(
        f"Command {runtime.status} on {runtime.repo_path}",
        repo=str(runtime.repo_path),
        exit_code=exit_code,
    )
    return exit_code


class CliState(State):
    """AI-assisted git rebase conflict resolution.

    The usual round trip is ``preview`` (rebase and propose a
    resolution per conflicted file), a human edits the status of each
    preview, then ``apply`` writes the approved ones and continues the
    rebase. ``auto`` does all of it without review.

    Configuration sources (in priority order):
    1. Command-line arguments (--config.llm.model openai:gpt-4o)
    2. YAML: ./rebasekit.yaml over the user config over the package
       defaults, plus any --include files
    3. .env file for secrets
    4. Environment variables (REBASEKIT_CONFIG__LLM__MODEL=...)
    """

    preview: CliSubCommand[PreviewCommand]
    apply: CliSubCommand[ApplyCommand]
    auto: CliSubCommand[AutoCommand]
    abort: CliSubCommand[AbortCommand]
    status: CliSubCommand[StatusCommand]

    def cli_cmd(self):
        """Dispatch to the active subcommand, or show help if none."""
        subcommand = get_subcommand(self, is_required=False)

        if subcommand is None:
            CliApp.run(CliState, cli_args=['--help'])
            sys.exit(1)

        self.config.configure_logging(subcommand.repo_path().name)

        # Closing the config shuts the log sinks down
        with self.config:
            exit_code = run_subcommand(self, subcommand)
        raise SystemExit(exit_code)


def main():
    """Main entry point for CLI."""
    CliApp.run(CliState)


if __name__ == "__main__":
    main()
