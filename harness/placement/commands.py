"""Local command execution for orchestrator queries."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Result of a command execution."""
    exit_code: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.exit_code == 0


class CommandRunner:
    """Async command runner using subprocess."""

    def __init__(self, prefix: list[str] | None = None, timeout: int = 60):
        self.prefix = list(prefix or [])
        self.timeout = timeout

    async def run(self, args: list[str]) -> CommandResult:
        """Execute a command, never raising for failures."""
        cmd = self.prefix + list(args)
        logger.debug(f"Running: {' '.join(cmd)}")

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            return CommandResult(exit_code=-1, stdout="", stderr=str(e))

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            return CommandResult(
                exit_code=-1,
                stdout="",
                stderr=f"Command timed out after {self.timeout}s",
            )

        return CommandResult(
            exit_code=proc.returncode or 0,
            stdout=stdout.decode(errors='replace'),
            stderr=stderr.decode(errors='replace'),
        )
