"""
Shell executor — run command strings through ``sh -c``.

The only executor that touches the host.  Every invocation is captured
as an ``ExecutionOutcome``: timeouts and spawn errors become failed
outcomes with exit code -1 instead of exceptions.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from typing import Mapping

from homestack.adapters.base import NO_TIMEOUT, CommandExecutor
from homestack.core.models.outcome import EXIT_NOT_RUN, ExecutionOutcome

logger = logging.getLogger(__name__)


class ShellExecutor(CommandExecutor):
    """Execute shell commands and capture output."""

    @property
    def name(self) -> str:
        return "shell"

    def is_available(self) -> bool:
        return shutil.which("sh") is not None

    def _run(
        self,
        command: str,
        cwd: str | None,
        env: Mapping[str, str] | None,
        timeout: int,
    ) -> ExecutionOutcome:
        logger.debug("Executing: %s (cwd=%s, timeout=%s)", command, cwd, timeout or "none")
        merged_env = {**os.environ, **env} if env else None
        start = time.monotonic()

        try:
            result = subprocess.run(
                ["sh", "-c", command],
                cwd=cwd,
                env=merged_env,
                capture_output=True,
                text=True,
                timeout=timeout if timeout > NO_TIMEOUT else None,
            )
        except subprocess.TimeoutExpired as e:
            elapsed_ms = int((time.monotonic() - start) * 1000)
            logger.warning("Command timed out after %ss: %s", timeout, command)
            return ExecutionOutcome(
                command=command,
                exit_code=EXIT_NOT_RUN,
                stdout=_as_text(e.stdout),
                stderr=f"Command timed out after {timeout}s",
                duration_ms=elapsed_ms,
                timed_out=True,
            )
        except OSError as e:
            elapsed_ms = int((time.monotonic() - start) * 1000)
            logger.error("Command could not be started: %s (%s)", command, e)
            return ExecutionOutcome(
                command=command,
                exit_code=EXIT_NOT_RUN,
                stderr=f"Command execution error: {e}",
                duration_ms=elapsed_ms,
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        outcome = ExecutionOutcome(
            command=command,
            exit_code=result.returncode,
            stdout=result.stdout.strip(),
            stderr=result.stderr.strip(),
            duration_ms=elapsed_ms,
        )
        if outcome.success:
            logger.debug("✓ %s (%dms)", command, elapsed_ms)
        else:
            logger.debug("✗ %s → exit %d: %s", command, result.returncode, outcome.stderr[:200])
        return outcome


def _as_text(data: str | bytes | None) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace").strip()
    return data.strip()
