from __future__ import annotations

from collections import Counter

from delivery_planner.core.graph.task_graph import GraphInput, as_graph, topological_order
from delivery_planner.core.model import ScheduledTask


def compute_phases(tasks: GraphInput) -> dict[str, int]:
    """Map task id -> execution wave (1-based).

    A task's phase is one more than the highest phase among its resolved
    dependencies. Raises CyclicDependencyError on cyclic input.
    """

    graph = as_graph(tasks)
    phases: dict[str, int] = {}
    for tid in topological_order(graph):
        deps = graph.resolved_dependencies(tid)
        phases[tid] = 1 + max((phases[d] for d in deps), default=0)
    return phases


def assign_phases(tasks: GraphInput) -> list[ScheduledTask]:
    """Annotate every task with ``phase`` and ``can_start_in_parallel``.

    Output keeps input order. Callers must reject cycles first; a cyclic
    graph raises instead of producing guessed phases.
    """

    graph = as_graph(tasks)
    phases = compute_phases(graph)
    sizes = Counter(phases.values())

    return [
        ScheduledTask(
            task=graph.task(tid),
            phase=phases[tid],
            can_start_in_parallel=sizes[phases[tid]] > 1,
        )
        for tid in graph.order
    ]
