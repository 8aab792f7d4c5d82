"""Dependency graph analysis over a planning run's tasks.

Everything here is pure and synchronous. Each top-level call builds or
receives a TaskGraph and keeps its traversal state local to the call, so
nothing leaks between runs.
"""
from __future__ import annotations

from delivery_planner.core.graph.critical_path import calculate_critical_path
from delivery_planner.core.graph.cycles import find_circular_dependencies
from delivery_planner.core.graph.phases import assign_phases
from delivery_planner.core.graph.task_graph import TaskGraph, topological_order

__all__ = [
    "TaskGraph",
    "assign_phases",
    "calculate_critical_path",
    "find_circular_dependencies",
    "topological_order",
]
