"""
Script runner.

Launches one script as a child process (never through a shell), captures
stdout and stderr as a single stream, and enforces a hard wall-clock limit.
The outcome is one of three result types:

    Success(output, duration_ms)   exit code 0
    Failure(error, duration_ms)    non-zero exit or the launch itself failed
    Timeout(duration_ms)           still running at the deadline; killed
"""

from __future__ import annotations

import asyncio
import logging
import os
import pathlib
import signal
import time
from dataclasses import dataclass
from typing import List, Optional, Union

logger = logging.getLogger("milan.runner")

DEFAULT_TIMEOUT_SECONDS = 5.0


@dataclass(frozen=True)
class Success:
    output: str
    duration_ms: int


@dataclass(frozen=True)
class Failure:
    error: str
    duration_ms: int


@dataclass(frozen=True)
class Timeout:
    duration_ms: int
    limit_seconds: float = DEFAULT_TIMEOUT_SECONDS

    @property
    def error(self) -> str:
        return f"Timeout (>{self.limit_seconds:g}s)"


ExecutionResult = Union[Success, Failure, Timeout]


def _elapsed_ms(started: float) -> int:
    return round((time.monotonic() - started) * 1000)


def _decode(raw: Optional[bytes]) -> str:
    return (raw or b"").decode("utf-8", errors="replace").strip()


class ScriptRunner:
    """
    Runs scripts with a fixed timeout.

    Args:
        timeout: Seconds before the child is killed
        interpreter: Program that runs the script file (``python``, ``ruby``,
            ...). Empty or None executes the file itself.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT_SECONDS, interpreter: Optional[str] = None):
        self.timeout = timeout
        self.interpreter = interpreter or None

    def command_for(self, script_path: pathlib.Path, argument: str) -> List[str]:
        """argv for one run; the argument is always a single element."""
        argv = [str(script_path), argument]
        if self.interpreter:
            argv.insert(0, self.interpreter)
        return argv

    async def run(self, script_path: pathlib.Path, argument: str = "") -> ExecutionResult:
        argv = self.command_for(script_path, argument)
        started = time.monotonic()

        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                cwd=str(script_path.parent),
                start_new_session=(os.name == "posix"),
            )
        except OSError as e:
            logger.warning("Could not launch %s: %s", script_path.name, e)
            return Failure(error=str(e) or type(e).__name__, duration_ms=_elapsed_ms(started))

        try:
            stdout, _ = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            await self._terminate(proc)
            return Timeout(duration_ms=_elapsed_ms(started), limit_seconds=self.timeout)
        except asyncio.CancelledError:
            await self._terminate(proc)
            raise

        duration_ms = _elapsed_ms(started)
        output = _decode(stdout)

        if proc.returncode == 0:
            return Success(output=output, duration_ms=duration_ms)
        return Failure(error=output or f"Exit code: {proc.returncode}", duration_ms=duration_ms)

    @staticmethod
    async def _terminate(proc: asyncio.subprocess.Process) -> None:
        """Kill the child (and anything it started) and reap it."""
        if proc.returncode is None:
            try:
                if os.name == "posix":
                    os.killpg(proc.pid, signal.SIGKILL)
                else:
                    proc.kill()
            except ProcessLookupError:
                pass
        await proc.wait()
