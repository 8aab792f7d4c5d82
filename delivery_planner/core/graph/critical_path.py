from __future__ import annotations

from typing import Optional

from delivery_planner.core.graph.task_graph import GraphInput, as_graph, topological_order
from delivery_planner.core.model import CriticalPath


def task_durations(tasks: GraphInput) -> dict[str, float]:
    """Cumulative hours of the longest dependency chain ending at each task.

    Raises CyclicDependencyError on cyclic input.
    """

    graph = as_graph(tasks)
    durations: dict[str, float] = {}
    for tid in topological_order(graph):
        deps = graph.resolved_dependencies(tid)
        longest_dep = max((durations[d] for d in deps), default=0.0)
        durations[tid] = float(graph.task(tid).estimated_hours) + longest_dep
    return durations


def calculate_critical_path(tasks: GraphInput) -> CriticalPath:
    """Longest cumulative-hours chain, in execution order.

    Ties go to input order: the first task with the maximum duration is the
    terminal node, and at each step back the first dependency with the
    maximum duration is followed.
    """

    graph = as_graph(tasks)
    if len(graph) == 0:
        return CriticalPath(task_ids=[], total_hours=0.0)

    durations = task_durations(graph)

    terminal: Optional[str] = None
    for tid in graph.order:
        if terminal is None or durations[tid] > durations[terminal]:
            terminal = tid
    assert terminal is not None

    reversed_path: list[str] = []
    current: Optional[str] = terminal
    while current is not None:
        reversed_path.append(current)
        nxt: Optional[str] = None
        for dep in graph.resolved_dependencies(current):
            if nxt is None or durations[dep] > durations[nxt]:
                nxt = dep
        current = nxt

    return CriticalPath(task_ids=list(reversed(reversed_path)), total_hours=durations[terminal])
