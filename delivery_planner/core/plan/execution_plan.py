from __future__ import annotations

import math
from typing import Iterable

from delivery_planner.core.model import ExecutionPhase, ExecutionPlan, ScheduledTask


HOURS_PER_DAY = 8


def build_execution_plan(scheduled: Iterable[ScheduledTask], team_size: int = 1) -> ExecutionPlan:
    """Group scheduled tasks into phases and estimate calendar duration.

    Tasks inside a phase run in parallel, so a phase costs as much as its
    slowest task. Days = ceil(sum(phase hours) / (team_size * 8)).
    """

    if team_size < 1:
        raise ValueError(f"team_size must be >= 1, got {team_size}")

    by_phase: dict[int, list[ScheduledTask]] = {}
    for st in scheduled:
        by_phase.setdefault(st.phase, []).append(st)

    phases: list[ExecutionPhase] = []
    for phase_num in sorted(by_phase):
        members = by_phase[phase_num]
        categories: list[str] = []
        for st in members:
            if st.task.category not in categories:
                categories.append(st.task.category)
        phases.append(
            ExecutionPhase(
                phase=phase_num,
                task_ids=[st.id for st in members],
                estimated_hours=max(float(st.task.estimated_hours) for st in members),
                description=f"Phase {phase_num}: " + ", ".join(categories),
            )
        )

    total_hours = sum(p.estimated_hours for p in phases)
    days = math.ceil(total_hours / (team_size * HOURS_PER_DAY))
    return ExecutionPlan(
        phases=phases,
        total_phases=len(phases),
        total_hours=total_hours,
        estimated_days=days,
        estimated_duration=f"{days} days",
        team_size=team_size,
    )
