"""Deadline-bounded subprocess execution for the synthesis engines."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from localtts.core.exceptions import OperationTimeoutError

logger = logging.getLogger(__name__)

# Seconds to wait after SIGTERM before SIGKILL
KILL_GRACE = 2.0


@dataclass
class ProcessOutput:
    """Exit status and decoded output of a finished subprocess."""
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def has_line(self, marker: str) -> bool:
        """True if stdout contains ``marker`` as a whole line."""
        return any(line.strip() == marker for line in self.stdout.splitlines())


async def _terminate(process: asyncio.subprocess.Process) -> None:
    if process.returncode is not None:
        return
    try:
        process.terminate()
    except ProcessLookupError:
        return
    try:
        await asyncio.wait_for(process.wait(), timeout=KILL_GRACE)
    except asyncio.TimeoutError:
        logger.warning(f"pid {process.pid} ignored SIGTERM, killing")
        process.kill()
        await process.wait()


async def run_process(
    args: Sequence[str],
    timeout: float,
    engine: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    cwd: Optional[str] = None,
    input: Optional[bytes] = None,
) -> ProcessOutput:
    """Run ``args`` to completion or until ``timeout`` seconds pass.

    The child is terminated on timeout and on cancellation of the awaiting
    task. Nothing is retried and no partial output is returned.

    Raises:
        OperationTimeoutError: the deadline passed before the child exited.
        OSError: the executable could not be started.
    """
    process = await asyncio.create_subprocess_exec(
        *args,
        stdin=asyncio.subprocess.PIPE if input is not None else asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        env=dict(env) if env is not None else None,
        cwd=cwd,
    )
    try:
        stdout, stderr = await asyncio.wait_for(
            process.communicate(input), timeout=timeout
        )
    except asyncio.TimeoutError:
        await _terminate(process)
        raise OperationTimeoutError(
            f"{args[0]} timed out after {timeout:g}s", engine=engine
        )
    except asyncio.CancelledError:
        await _terminate(process)
        raise

    return ProcessOutput(
        returncode=process.returncode,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )
