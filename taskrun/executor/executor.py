import logging
import time
from functools import partial
from pathlib import Path

from taskrun.config.types import Task, TaskSet
from taskrun.graph import TaskGraph

from .parallel import CompletionState, run_parallel
from .persist import save_output
from .process import run_task
from .summary import summarize
from .types import SKIPPED_ERROR, RunError, RunOptions, RunResult, TaskResult

logger = logging.getLogger(__name__)


class Executor:
    def __init__(self, root: str | Path, options: RunOptions | None = None):
        self.root = Path(root)
        self.options = options or RunOptions()

    def run(self, task_set: TaskSet) -> RunResult:
        return self.run_tasks(task_set.filter_tag(self.options.filter_tag))

    def run_tasks(self, tasks: list[Task]) -> RunResult:
        """Run independent tasks in parallel, then dependent ones in order.

        A task runs in the dependent phase only if every task it depends on
        has already run successfully; otherwise it is recorded as skipped.
        """
        start = time.monotonic()
        options = self.options

        output_dir = (
            options.resolved_output_dir(self.root) if options.save_outputs else None
        )
        output_dir_str = str(output_dir) if output_dir is not None else None

        if not tasks:
            return RunResult([], summarize([], time.monotonic() - start, output_dir_str))

        if options.dry_run:
            results = [
                TaskResult(task.id, None, "", "", 0.0, True) for task in tasks
            ]
            return RunResult(results, summarize(results, 0.0, output_dir_str))

        if output_dir is not None:
            try:
                output_dir.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise RunError(f"Cannot create output directory {output_dir}: {exc}") from exc

        execute = partial(self._execute, output_dir=output_dir)

        independent = [task for task in tasks if not task.depends_on]
        dependent = [task for task in tasks if task.depends_on]
        logger.info(
            "Running %d task(s): %d independent, %d dependent",
            len(tasks),
            len(independent),
            len(dependent),
        )

        state = CompletionState()
        run_parallel(
            independent,
            execute,
            state,
            max_parallel=options.resolved_parallelism(),
            continue_on_error=options.continue_on_error,
        )

        by_id = {task.id: task for task in dependent}
        for tid in TaskGraph.from_tasks(dependent).schedule_order():
            task = by_id[tid]
            if state.all_succeeded(task.depends_on):
                state.record(execute(task))
            else:
                logger.warning("Skipping task %s: a dependency did not succeed", tid)
                state.record(TaskResult(tid, None, "", "", 0.0, False, SKIPPED_ERROR))

        results = state.results()
        summary = summarize(results, time.monotonic() - start, output_dir_str)
        logger.info(
            "Run finished: %d succeeded, %d failed, %d skipped in %.3fs",
            summary.succeeded,
            summary.failed,
            summary.skipped,
            summary.total_duration,
        )
        return RunResult(results, summary)

    def _execute(self, task: Task, *, output_dir: Path | None) -> TaskResult:
        result = run_task(self.root, task, self.options.timeout_override)
        if output_dir is not None:
            result = save_output(task, result, output_dir)
        return result
