import json
import tomllib
from pathlib import Path
from typing import Any, Mapping

import yaml

from .types import (
    DEFAULT_TIMEOUT,
    Task,
    TaskGroup,
    TaskSet,
    TaskSetError,
    UnsupportedFormatError,
)

EXPECTED_SHAPES = (
    "Failed to parse task definition. Expected a JSON object with 'tasks' or "
    "'groups' field, an array of tasks, or a single task object."
)


def load_task_set(path: str | Path) -> TaskSet:
    pure_path = Path(path).expanduser().resolve()

    if not pure_path.exists():
        raise TaskSetError(f"Task file not found: {pure_path}")

    if not pure_path.is_file():
        raise TaskSetError(f"Task path is not a file: {pure_path}")

    fmt = _detect_format(pure_path)
    raw = _parse_file(pure_path, fmt)
    return parse_task_data(raw)


def parse_tasks(text: str) -> TaskSet:
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        raise TaskSetError(f"{EXPECTED_SHAPES} (invalid JSON: {exc})") from exc

    return parse_task_data(raw)


def parse_task_data(raw: Any) -> TaskSet:
    """Turn decoded task data into a TaskSet.

    Three shapes are tried strictly in this order and the first that yields
    meaningful content wins: a single task object, an array of tasks, a full
    task set with 'tasks' and/or 'groups'. A task set object never has both
    'id' and 'cmd', so checking the single task first keeps them apart.
    """
    for attempt in (_try_single_task, _try_task_array, _try_task_set):
        try:
            task_set = attempt(raw)
        except TaskSetError:
            continue
        if task_set is not None:
            _check_unique_ids(task_set)
            return task_set

    raise TaskSetError(EXPECTED_SHAPES)


def _detect_format(path: Path) -> str:
    fmt = path.suffix
    match fmt:
        case ".yaml" | ".yml":
            return "yaml"
        case ".toml":
            return "toml"
        case ".json":
            return "json"
        case _:
            raise UnsupportedFormatError(
                f"Non supported file extension: {fmt}\n Expected format: .json, .yml/.yaml, .toml"
            )


def _parse_file(path: Path, fmt: str) -> Any:
    text = path.read_text(encoding="utf-8")
    match fmt:
        case "yaml":
            try:
                return yaml.safe_load(text)
            except yaml.YAMLError as exc:
                raise TaskSetError(f"{path}: invalid YAML") from exc
        case "toml":
            try:
                return tomllib.loads(text)
            except tomllib.TOMLDecodeError as exc:
                raise TaskSetError(f"{path}: invalid TOML") from exc
        case "json":
            try:
                return json.loads(text)
            except json.JSONDecodeError as exc:
                raise TaskSetError(f"{path}: invalid JSON") from exc
        case _:
            raise AssertionError("Unreachable")


def _try_single_task(raw: Any) -> TaskSet | None:
    if not isinstance(raw, Mapping):
        return None

    task = _build_task(raw)
    if not task.id or not task.cmd:
        return None

    return TaskSet(name="single", tasks=(task,))


def _try_task_array(raw: Any) -> TaskSet | None:
    if not isinstance(raw, list):
        return None

    tasks = tuple(_build_task(item) for item in raw)
    if not tasks:
        return None

    return TaskSet(name="tasks", tasks=tasks)


def _try_task_set(raw: Any) -> TaskSet | None:
    if not isinstance(raw, Mapping):
        return None

    name = _optional_str(raw, "name", "task set") or ""
    groups = tuple(_build_group(item) for item in _optional_list(raw, "groups", "task set"))
    tasks = tuple(_build_task(item) for item in _optional_list(raw, "tasks", "task set"))

    if not tasks and not groups:
        return None

    return TaskSet(name=name, groups=groups, tasks=tasks)


def _build_group(fields: Any) -> TaskGroup:
    if not isinstance(fields, Mapping):
        raise TaskSetError("A group must be a mapping")

    if not isinstance(fields.get("name"), str):
        raise TaskSetError("A group needs a string 'name'")

    name = fields["name"]

    if not isinstance(fields.get("tasks"), list):
        raise TaskSetError(f"group {name}: 'tasks' must be a list")

    tasks = tuple(_build_task(item) for item in fields["tasks"])
    parallel = _optional_bool(fields, "parallel", name, default=True)
    continue_on_error = _optional_bool(fields, "continue_on_error", name, default=False)

    return TaskGroup(name, tasks, parallel, continue_on_error)


def _build_task(fields: Any) -> Task:
    if not isinstance(fields, Mapping):
        raise TaskSetError("A task must be a mapping")

    for key in ("id", "cmd"):
        if not isinstance(fields.get(key), str):
            raise TaskSetError(f"A task needs a string '{key}'")

    task_id = fields["id"]
    env = {}

    if fields.get("env") is not None:
        if not isinstance(fields["env"], Mapping):
            raise TaskSetError(f"{task_id}: Env should be a mapping")

        for key, item in fields["env"].items():
            if not isinstance(key, str) or not isinstance(item, str):
                raise TaskSetError(f"{task_id}: env entries must map strings to strings")
            env[key] = item

    timeout = fields.get("timeout")
    if timeout is None:
        timeout = DEFAULT_TIMEOUT
    elif not isinstance(timeout, int) or isinstance(timeout, bool) or timeout < 0:
        raise TaskSetError(f"{task_id}: timeout must be a non-negative integer")

    return Task(
        id=task_id,
        cmd=fields["cmd"],
        cwd=_optional_str(fields, "cwd", task_id),
        env=env,
        timeout=timeout,
        depends_on=_string_list(fields, "depends_on", task_id),
        tags=_string_list(fields, "tags", task_id),
        description=_optional_str(fields, "description", task_id),
    )


def _optional_str(fields: Mapping[str, Any], key: str, owner: str) -> str | None:
    value = fields.get(key)
    if value is not None and not isinstance(value, str):
        raise TaskSetError(f"{owner}: '{key}' should be a string")
    return value


def _optional_bool(fields: Mapping[str, Any], key: str, owner: str, *, default: bool) -> bool:
    value = fields.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise TaskSetError(f"{owner}: '{key}' should be a boolean")
    return value


def _optional_list(fields: Mapping[str, Any], key: str, owner: str) -> list[Any]:
    value = fields.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise TaskSetError(f"{owner}: '{key}' should be a list")
    return value


def _string_list(fields: Mapping[str, Any], key: str, owner: str) -> tuple[str, ...]:
    items = _optional_list(fields, key, owner)
    for item in items:
        if not isinstance(item, str):
            raise TaskSetError(f"{owner}: {item} should be a string in '{key}'")
    return tuple(items)


def _check_unique_ids(task_set: TaskSet) -> None:
    seen: set[str] = set()
    for task in task_set.all_tasks():
        if task.id in seen:
            raise TaskSetError(f"Duplicate task id: {task.id}")
        seen.add(task.id)
