import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

SKIPPED_ERROR = "Skipped: dependency failed"
DEFAULT_OUTPUT_DIR = "rundata"
FALLBACK_PARALLELISM = 4


@dataclass
class RunOptions:
    max_parallel: int = 0
    output_dir: Path | None = None
    save_outputs: bool = True
    continue_on_error: bool = False
    timeout_override: int | None = None
    filter_tag: str | None = None
    dry_run: bool = False

    def resolved_parallelism(self) -> int:
        if self.max_parallel > 0:
            return self.max_parallel
        return os.cpu_count() or FALLBACK_PARALLELISM

    def resolved_output_dir(self, root: Path) -> Path:
        if self.output_dir is not None:
            return Path(self.output_dir)
        return root / DEFAULT_OUTPUT_DIR


@dataclass(frozen=True)
class TaskResult:
    id: str
    exit_code: int | None
    stdout: str
    stderr: str
    duration: float
    success: bool
    error: str | None = None
    output_file: str | None = None

    @property
    def skipped(self) -> bool:
        return self.error == SKIPPED_ERROR

    @property
    def duration_ms(self) -> int:
        return int(self.duration * 1000)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "exit_code": self.exit_code,
            "stdout": self.stdout,
            "stderr": self.stderr,
            "duration_ms": self.duration_ms,
            "success": self.success,
            "error": self.error,
            "output_file": self.output_file,
        }


@dataclass(frozen=True)
class ExecutionSummary:
    total: int
    succeeded: int
    failed: int
    skipped: int
    total_duration: float
    output_dir: str | None = None

    @property
    def total_duration_ms(self) -> int:
        return int(self.total_duration * 1000)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "total_duration_ms": self.total_duration_ms,
            "output_dir": self.output_dir,
        }


@dataclass(frozen=True)
class RunResult:
    results: list[TaskResult] = field(default_factory=list)
    summary: ExecutionSummary = field(
        default_factory=lambda: ExecutionSummary(0, 0, 0, 0, 0.0)
    )

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": [result.to_dict() for result in self.results],
            "summary": self.summary.to_dict(),
        }


class RunError(Exception):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)
