from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Union

from delivery_planner.core.errors import CyclicDependencyError
from delivery_planner.core.model import Task


UNVISITED, IN_PROGRESS, DONE = 0, 1, 2


@dataclass(frozen=True)
class TaskGraph:
    """Arena of tasks indexed by id, in input order.

    Duplicate ids keep their first occurrence; duplicates are a validation
    concern, not a graph one.
    """

    order: list[str]
    tasks_by_id: dict[str, Task]

    @classmethod
    def from_tasks(cls, tasks: Iterable[Task]) -> "TaskGraph":
        order: list[str] = []
        tasks_by_id: dict[str, Task] = {}
        for t in tasks:
            if t.id in tasks_by_id:
                continue
            tasks_by_id[t.id] = t
            order.append(t.id)
        return cls(order=order, tasks_by_id=tasks_by_id)

    def __len__(self) -> int:
        return len(self.order)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self.tasks_by_id

    def task(self, task_id: str) -> Task:
        return self.tasks_by_id[task_id]

    def tasks(self) -> list[Task]:
        return [self.tasks_by_id[i] for i in self.order]

    def resolved_dependencies(self, task_id: str) -> list[str]:
        return [d for d in self.tasks_by_id[task_id].dependencies if d in self.tasks_by_id]

    def dangling_dependencies(self) -> list[tuple[str, str]]:
        """(task_id, missing_dependency_id) pairs in input order."""
        out: list[tuple[str, str]] = []
        for tid in self.order:
            for dep in self.tasks_by_id[tid].dependencies:
                if dep not in self.tasks_by_id:
                    out.append((tid, dep))
        return out


GraphInput = Union[TaskGraph, Iterable[Task]]


def as_graph(tasks: GraphInput) -> TaskGraph:
    if isinstance(tasks, TaskGraph):
        return tasks
    return TaskGraph.from_tasks(tasks)


def topological_order(tasks: GraphInput) -> list[str]:
    """Return task ids with every resolved dependency before its dependents.

    Iterative DFS; roots are taken in input order. Raises
    CyclicDependencyError on the first back edge.
    """

    graph = as_graph(tasks)
    state: dict[str, int] = {tid: UNVISITED for tid in graph.order}
    out: list[str] = []

    for root in graph.order:
        if state[root] != UNVISITED:
            continue
        state[root] = IN_PROGRESS
        path: list[str] = [root]
        stack: list[tuple[str, list[str], int]] = [(root, graph.resolved_dependencies(root), 0)]

        while stack:
            node, deps, i = stack[-1]
            if i == len(deps):
                stack.pop()
                path.pop()
                state[node] = DONE
                out.append(node)
                continue

            stack[-1] = (node, deps, i + 1)
            dep = deps[i]
            if state[dep] == DONE:
                continue
            if state[dep] == IN_PROGRESS:
                raise CyclicDependencyError(path[path.index(dep):] + [dep])

            state[dep] = IN_PROGRESS
            path.append(dep)
            stack.append((dep, graph.resolved_dependencies(dep), 0))

    return out
