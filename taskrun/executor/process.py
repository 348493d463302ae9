import logging
import os
import signal
import subprocess
import time
from pathlib import Path

from taskrun.config.types import Task

from .types import TaskResult

logger = logging.getLogger(__name__)

_POSIX = os.name == "posix"


def run_task(root: Path, task: Task, timeout_override: int | None = None) -> TaskResult:
    """Run one task through the platform shell and wait for it.

    The child inherits the current environment plus ``task.env``. When the
    effective timeout expires the whole process group is killed and any
    output produced so far is discarded.
    """
    timeout = timeout_override if timeout_override is not None else task.timeout
    work_dir = root / task.cwd if task.cwd else root

    start = time.monotonic()
    logger.debug("Starting task %s in %s: %s", task.id, work_dir, task.cmd)

    try:
        proc = subprocess.Popen(
            task.cmd,
            shell=True,
            cwd=work_dir,
            env={**os.environ, **task.env},
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            start_new_session=_POSIX,
        )
    except (OSError, ValueError) as exc:
        logger.warning("Task %s failed to start: %s", task.id, exc)
        return _failed(task, start, f"Failed to start command: {exc}")

    try:
        stdout, stderr = proc.communicate(timeout=timeout)
    except subprocess.TimeoutExpired:
        _kill(proc)
        logger.warning("Task %s timed out after %s seconds", task.id, timeout)
        return _failed(task, start, f"Timeout after {timeout} seconds")
    except OSError as exc:
        _kill(proc)
        return _failed(task, start, f"Failed to wait for process: {exc}")

    duration = time.monotonic() - start
    returncode = proc.returncode

    if returncode < 0 and _POSIX:
        return TaskResult(
            id=task.id,
            exit_code=None,
            stdout=stdout,
            stderr=stderr,
            duration=duration,
            success=False,
            error=f"Terminated by signal {-returncode}",
        )

    success = returncode == 0
    logger.debug("Task %s exited with %s after %.3fs", task.id, returncode, duration)

    return TaskResult(
        id=task.id,
        exit_code=returncode,
        stdout=stdout,
        stderr=stderr,
        duration=duration,
        success=success,
        error=None if success else f"Exit code: {returncode}",
    )


def _kill(proc: subprocess.Popen) -> None:
    try:
        if _POSIX:
            os.killpg(proc.pid, signal.SIGKILL)
        else:
            proc.kill()
    except (ProcessLookupError, PermissionError):
        # Already gone, or the group leader exited and was reaped.
        proc.kill()

    proc.wait()
    for stream in (proc.stdout, proc.stderr):
        if stream is not None:
            stream.close()


def _failed(task: Task, start: float, error: str) -> TaskResult:
    return TaskResult(
        id=task.id,
        exit_code=None,
        stdout="",
        stderr="",
        duration=time.monotonic() - start,
        success=False,
        error=error,
    )
