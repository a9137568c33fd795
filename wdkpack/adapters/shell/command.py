"""
Shell command executor — run external tools and capture their output.

This is the single place where ``subprocess.run`` is called. Every
cargo, rustc, and WDK tool invocation goes through it.
"""

from __future__ import annotations

import logging
import os
import subprocess
import time
from collections.abc import Mapping, Sequence
from pathlib import Path

from wdkpack.adapters.base import CommandExecutor, CommandOutput
from wdkpack.core.errors import CommandFailed, CommandLaunchFailed

logger = logging.getLogger(__name__)


class ShellCommandExecutor(CommandExecutor):
    """Execute programs directly (no shell) and capture stdout/stderr.

    No timeout is applied: a hung tool blocks the caller.
    """

    def run(
        self,
        command: str,
        args: Sequence[str],
        env: Mapping[str, str] | None = None,
        cwd: Path | None = None,
    ) -> CommandOutput:
        args = list(args)
        logger.debug("Running: %s %s (cwd=%s)", command, args, cwd)

        full_env = None
        if env:
            full_env = os.environ.copy()
            full_env.update(env)

        start = time.monotonic()
        try:
            result = subprocess.run(
                [command, *args],
                cwd=cwd,
                env=full_env,
                capture_output=True,
            )
        except OSError as e:
            raise CommandLaunchFailed(command, args, e) from e

        elapsed_ms = int((time.monotonic() - start) * 1000)

        if result.returncode != 0:
            raise CommandFailed(
                command,
                args,
                result.returncode,
                stdout=result.stdout.decode("utf-8", errors="replace"),
                stderr=result.stderr.decode("utf-8", errors="replace"),
            )

        logger.debug(
            "COMMAND: %s\n ARGS: %s\n OUTPUT: %s\n (%dms)",
            command,
            args,
            result.stdout.decode("utf-8", errors="replace"),
            elapsed_ms,
        )
        return CommandOutput(
            return_code=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
        )
