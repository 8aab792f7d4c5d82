from __future__ import annotations

from delivery_planner.core.graph.task_graph import GraphInput, as_graph


def find_circular_dependencies(tasks: GraphInput) -> list[list[str]]:
    """Find dependency cycles.

    Each cycle traces dependency edges from its first id and repeats that id
    at the end, e.g. ``["X", "Y", "X"]`` when X depends on Y and Y on X. A
    self-dependency yields ``["A", "A"]``. Dangling ids are ignored here;
    they are reported separately by validation.

    Never raises; an acyclic graph returns ``[]``.
    """

    graph = as_graph(tasks)
    done: set[str] = set()
    on_stack: set[str] = set()
    cycles: list[list[str]] = []

    for root in graph.order:
        if root in done:
            continue

        path: list[str] = [root]
        on_stack.add(root)
        stack: list[tuple[str, list[str], int]] = [(root, graph.resolved_dependencies(root), 0)]

        while stack:
            node, deps, i = stack[-1]
            if i == len(deps):
                stack.pop()
                path.pop()
                on_stack.discard(node)
                done.add(node)
                continue

            stack[-1] = (node, deps, i + 1)
            dep = deps[i]
            if dep in on_stack:
                cycles.append(path[path.index(dep):] + [dep])
                continue
            if dep in done:
                continue

            path.append(dep)
            on_stack.add(dep)
            stack.append((dep, graph.resolved_dependencies(dep), 0))

    return cycles
