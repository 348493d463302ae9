from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum, auto

from taskrun.config.types import Task

from .types import CycleError


class _Visit(Enum):
    UNVISITED = auto()
    VISITING = auto()
    VISITED = auto()


@dataclass(frozen=True)
class TaskGraph:
    order: tuple[str, ...]
    _deps: dict[str, tuple[str, ...]]

    @classmethod
    def from_tasks(cls, tasks: Iterable[Task]) -> TaskGraph:
        deps = {}
        order = []
        for task in tasks:
            order.append(task.id)
            deps[task.id] = tuple(task.depends_on)

        return cls(tuple(order), deps)

    def deps_of(self, task_id: str) -> tuple[str, ...]:
        return self._deps[task_id]

    def schedule_order(self) -> list[str]:
        """Input order, moving each task after any dependency listed later.

        Tasks that sit on a cycle can never become ready; they are appended
        in input order so the caller still sees every id once.
        """
        pending = list(self.order)
        done: set[str] = set()
        out: list[str] = []

        while pending:
            for index, tid in enumerate(pending):
                waiting = [
                    dep for dep in self._deps[tid] if dep in self._deps and dep not in done
                ]
                if not waiting:
                    break
            else:
                out.extend(pending)
                break

            pending.pop(index)
            done.add(tid)
            out.append(tid)

        return out

    def topo_order(self) -> list[str]:
        return self._toposort(set(self._deps))

    def _toposort(self, universe: set[str]) -> list[str]:
        state = {tid: _Visit.UNVISITED for tid in universe}
        out: list[str] = []
        stack: list[str] = []
        pos: dict[str, int] = {}

        def visit(tid: str) -> None:
            if state[tid] == _Visit.VISITING:
                start = pos[tid]
                raise CycleError(stack[start:] + [tid])
            if state[tid] == _Visit.VISITED:
                return

            state[tid] = _Visit.VISITING
            pos[tid] = len(stack)
            stack.append(tid)

            for dep in sorted(self._deps[tid]):
                if dep in state:
                    visit(dep)

            stack.pop()
            pos.pop(tid)
            state[tid] = _Visit.VISITED
            out.append(tid)

        for tid in sorted(universe):
            visit(tid)

        return out
