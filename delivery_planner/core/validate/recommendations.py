from __future__ import annotations

from collections import Counter

from delivery_planner.core.model import Task


LARGE_TASK_HOURS = 16
MIN_TEST_RATIO = 0.3


def generate_recommendations(tasks: list[Task]) -> list[str]:
    """Advisory notes on task sizing, staffing and coverage."""

    out: list[str] = []

    large = [t for t in tasks if t.estimated_hours > LARGE_TASK_HOURS]
    if large:
        out.append(
            f"Consider breaking down {len(large)} large tasks (>{LARGE_TASK_HOURS} hours) into smaller chunks"
        )

    skills = Counter(t.skill_level for t in tasks if t.skill_level is not None)
    if skills and skills["senior"] > skills["junior"] + skills["mid"]:
        out.append("Consider delegating some tasks to junior/mid-level developers")

    roots = [t for t in tasks if not t.dependencies]
    if len(roots) > 1:
        out.append(f"{len(roots)} tasks can be started in parallel")

    testing = [t for t in tasks if t.category == "testing"]
    development = [t for t in tasks if t.category in ("frontend", "backend")]
    if len(testing) < len(development) * MIN_TEST_RATIO:
        out.append("Consider adding more testing tasks to ensure quality")

    if tasks and not any(t.category == "documentation" for t in tasks):
        out.append("Consider adding documentation tasks for better maintainability")

    return out
