from collections.abc import Sequence

from .types import ExecutionSummary, TaskResult


def summarize(
    results: Sequence[TaskResult], total_duration: float, output_dir: str | None = None
) -> ExecutionSummary:
    total = len(results)
    succeeded = sum(1 for result in results if result.success)
    skipped = sum(1 for result in results if result.skipped)

    return ExecutionSummary(
        total=total,
        succeeded=succeeded,
        failed=total - succeeded - skipped,
        skipped=skipped,
        total_duration=total_duration,
        output_dir=output_dir,
    )
