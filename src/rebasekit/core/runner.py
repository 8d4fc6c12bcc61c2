"""Subprocess execution using the invoke library."""

from __future__ import annotations

import asyncio
import shlex
from pathlib import Path
from typing import Protocol

from invoke import Context, Result
from invoke.exceptions import CommandTimedOut

from rebasekit.core.errors import ProcessError, ProcessTimeout
from rebasekit.core.log import logger


class ProcessRunner(Protocol):
    """Runs an executable in a working directory.

    Returns trimmed standard output; raises ProcessError on a
    non-zero exit. No retries happen at this layer.
    """

    async def run(
        self, executable: str, args: list[str], cwd: Path
    ) -> str:
        ...


class Runner(Context):
    """invoke.Context with a cwd/timeout aware execute()."""

    def execute(
        self,
        command: str,
        cwd: Path | None = None,
        timeout: float | None = None,
        check: bool = True,
        env: dict[str, str] | None = None,
    ) -> Result:
        """Run a shell command with captured output.

        Args:
            command: Shell command line
            cwd: Working directory
            timeout: Seconds before the command is killed
            check: Raise invoke.UnexpectedExit on non-zero exit
            env: Variables added to (not replacing) os.environ

        Raises:
            invoke.exceptions.CommandTimedOut: On timeout
        """
        kwargs = {"hide": True, "warn": not check, "in_stream": False}
        if timeout:
            kwargs["timeout"] = timeout
        if env:
            kwargs["env"] = env

        if cwd:
            with self.cd(str(cwd)):
                return self.run(command, **kwargs)
        return self.run(command, **kwargs)


class InvokeProcessRunner:
    """ProcessRunner that shells out through invoke in a worker thread.

    A fresh Runner is created per call because Context.cd() mutates
    the context, which is unsafe when calls overlap.
    """

    # git must never wait on an editor or a credential prompt
    DEFAULT_ENV = {"GIT_EDITOR": "true", "GIT_TERMINAL_PROMPT": "0"}

    def __init__(
        self,
        timeout: float | None = 60,
        env: dict[str, str] | None = None,
    ):
        self.timeout = timeout
        self.env = {**self.DEFAULT_ENV, **(env or {})}

    async def run(
        self, executable: str, args: list[str], cwd: Path
    ) -> str:
        command = " ".join(shlex.quote(part) for part in [executable, *args])
        logger.debug(f"Running: {command}", cwd=str(cwd))

        try:
            result = await asyncio.to_thread(
                Runner().execute,
                command,
                cwd=cwd,
                timeout=self.timeout,
                check=False,
                env=self.env,
            )
        except CommandTimedOut as e:
            logger.warn(
                f"Command timed out: {command}",
                cwd=str(cwd),
                timeout=self.timeout,
            )
            raise ProcessTimeout(
                command, self.timeout, e.result.stderr
            ) from e

        logger.debug(
            f"Exited {result.exited}: {command}",
            exit_code=result.exited,
            stdout_bytes=len(result.stdout),
        )
        if result.exited != 0:
            raise ProcessError(command, result.exited, result.stderr)
        return result.stdout.strip()
