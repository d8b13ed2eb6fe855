"""Blocking subprocess calls moved off the event loop.

`subprocess.run()` in a worker thread is used instead of
`asyncio.create_subprocess_exec()`: ffmpeg runs can last minutes and some
event-loop child watchers hang on `.wait()` under load.
"""

from __future__ import annotations

import asyncio
import subprocess
import time
from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True)
class RunResult:
    returncode: int
    stdout: bytes
    stderr: bytes
    elapsed_s: float = 0.0

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def stderr_tail(self, limit: int = 2000) -> str:
        return self.stderr.decode(errors="ignore").strip()[-limit:]


async def run_subprocess(
    args: Sequence[str],
    *,
    capture_output: bool = True,
    timeout_s: float | None = None,
) -> RunResult:
    """Run `args` to completion; never raises on a non-zero exit.

    Raises FileNotFoundError when the binary is missing and
    subprocess.TimeoutExpired when `timeout_s` elapses (the child is killed).
    """
    pipe = subprocess.PIPE if capture_output else subprocess.DEVNULL
    cmd = [str(a) for a in args]

    def _run() -> RunResult:
        started = time.monotonic()
        cp = subprocess.run(cmd, stdout=pipe, stderr=pipe, check=False, timeout=timeout_s)
        return RunResult(
            returncode=int(cp.returncode),
            stdout=cp.stdout or b"",
            stderr=cp.stderr or b"",
            elapsed_s=time.monotonic() - started,
        )

    return await asyncio.to_thread(_run)
