from dataclasses import dataclass, field

DEFAULT_TIMEOUT = 300


@dataclass(frozen=True)
class Task:
    id: str
    cmd: str
    cwd: str | None = None
    env: dict[str, str] = field(default_factory=dict)
    timeout: int = DEFAULT_TIMEOUT
    depends_on: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    description: str | None = None

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags


@dataclass(frozen=True)
class TaskGroup:
    name: str
    tasks: tuple[Task, ...]
    parallel: bool = True
    continue_on_error: bool = False


@dataclass(frozen=True)
class TaskSet:
    name: str = ""
    groups: tuple[TaskGroup, ...] = ()
    tasks: tuple[Task, ...] = ()

    def __len__(self):
        return sum(len(group.tasks) for group in self.groups) + len(self.tasks)

    def all_tasks(self) -> list[Task]:
        out: list[Task] = []
        for group in self.groups:
            out.extend(group.tasks)
        out.extend(self.tasks)
        return out

    def filter_tag(self, tag: str | None) -> list[Task]:
        if tag is None:
            return self.all_tasks()
        return [task for task in self.all_tasks() if task.has_tag(tag)]


class TaskSetError(Exception):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)


class UnsupportedFormatError(TaskSetError):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)
