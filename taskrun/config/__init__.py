from .loader import load_task_set, parse_task_data, parse_tasks
from .types import Task, TaskGroup, TaskSet, TaskSetError, UnsupportedFormatError

__all__ = [
    "load_task_set",
    "parse_tasks",
    "parse_task_data",
    "Task",
    "TaskGroup",
    "TaskSet",
    "TaskSetError",
    "UnsupportedFormatError",
]
