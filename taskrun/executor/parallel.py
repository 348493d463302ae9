import logging
import math
import threading
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor

from taskrun.config.types import Task

from .types import TaskResult

logger = logging.getLogger(__name__)

ABANDONED_ERROR = "Not run: an earlier task in the same batch failed"


class CompletionState:
    """Completion map and result list shared by the workers of one run."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._completed: dict[str, bool] = {}
        self._results: list[TaskResult] = []

    def record(self, result: TaskResult) -> None:
        with self._lock:
            self._completed[result.id] = result.success
            self._results.append(result)

    def all_succeeded(self, task_ids: Sequence[str]) -> bool:
        with self._lock:
            return all(self._completed.get(tid, False) for tid in task_ids)

    def results(self) -> list[TaskResult]:
        with self._lock:
            return list(self._results)


def chunked(tasks: Sequence[Task], workers: int) -> list[list[Task]]:
    if not tasks:
        return []
    size = max(1, math.ceil(len(tasks) / max(1, workers)))
    return [list(tasks[i : i + size]) for i in range(0, len(tasks), size)]


def run_parallel(
    tasks: Sequence[Task],
    run_one: Callable[[Task], TaskResult],
    state: CompletionState,
    *,
    max_parallel: int,
    continue_on_error: bool,
) -> None:
    """Run tasks on one thread per contiguous chunk and wait for all of them.

    Each chunk runs in order. Without ``continue_on_error`` a failure stops
    the rest of that chunk only; the abandoned tasks are recorded as failed.
    """
    chunks = chunked(tasks, max_parallel)
    if not chunks:
        return

    def work(chunk: list[Task]) -> None:
        for index, task in enumerate(chunk):
            result = run_one(task)
            state.record(result)

            if not result.success and not continue_on_error:
                for rest in chunk[index + 1 :]:
                    logger.warning("Task %s not run after %s failed", rest.id, task.id)
                    state.record(
                        TaskResult(
                            id=rest.id,
                            exit_code=None,
                            stdout="",
                            stderr="",
                            duration=0.0,
                            success=False,
                            error=ABANDONED_ERROR,
                        )
                    )
                return

    with ThreadPoolExecutor(max_workers=len(chunks), thread_name_prefix="taskrun") as pool:
        futures = [pool.submit(work, chunk) for chunk in chunks]
        for future in futures:
            future.result()
