import dataclasses
import logging
from pathlib import Path

from taskrun.config.types import Task

from .types import TaskResult

logger = logging.getLogger(__name__)


def sanitize_filename(name: str) -> str:
    return "".join(c if c.isalnum() or c in "-_" else "_" for c in name)


def output_path(output_dir: Path, task_id: str) -> Path:
    return output_dir / f"{sanitize_filename(task_id)}.log"


def format_output(task: Task, result: TaskResult) -> str:
    stdout = result.stdout
    looks_like_json = stdout.lstrip().startswith(("{", "["))

    if looks_like_json and not result.stderr:
        exit_code = result.exit_code if result.exit_code is not None else -1
        return (
            f"# Task: {task.id} | Exit: {exit_code} | Duration: {result.duration_ms}ms\n"
            f"# Command: {task.cmd}\n\n{stdout}\n"
        )

    text = (
        f"# Task: {task.id}\n"
        f"# Command: {task.cmd}\n"
        f"# Exit Code: {result.exit_code}\n"
        f"# Duration: {result.duration_ms}ms\n"
        f"# Success: {str(result.success).lower()}\n"
        f"\n## STDOUT:\n{stdout}\n"
    )
    if result.stderr:
        text += f"\n## STDERR:\n{result.stderr}\n"
    return text


def save_output(task: Task, result: TaskResult, output_dir: Path) -> TaskResult:
    """Write the task log and return the result pointing at it.

    A failed write does not raise: the result comes back marked as failed
    with the write error appended.
    """
    path = output_path(output_dir, task.id)
    try:
        path.write_text(format_output(task, result), encoding="utf-8")
    except (OSError, UnicodeError) as exc:
        logger.warning("Could not write output of task %s to %s: %s", task.id, path, exc)
        message = f"Failed to write output file {path}: {exc}"
        error = f"{result.error}; {message}" if result.error else message
        return dataclasses.replace(result, success=False, error=error)

    return dataclasses.replace(result, output_file=str(path))
