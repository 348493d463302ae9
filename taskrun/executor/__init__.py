from .executor import Executor
from .persist import sanitize_filename
from .types import (
    SKIPPED_ERROR,
    ExecutionSummary,
    RunError,
    RunOptions,
    RunResult,
    TaskResult,
)

__all__ = [
    "Executor",
    "sanitize_filename",
    "SKIPPED_ERROR",
    "ExecutionSummary",
    "RunError",
    "RunOptions",
    "RunResult",
    "TaskResult",
]
