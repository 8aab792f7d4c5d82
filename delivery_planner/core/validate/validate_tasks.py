from __future__ import annotations

import math
from collections import Counter
from typing import Optional

from delivery_planner.core.graph import (
    TaskGraph,
    assign_phases,
    calculate_critical_path,
    find_circular_dependencies,
)
from delivery_planner.core.model import (
    PlanningConstraints,
    Task,
    TaskPlan,
    ValidationIssue,
    ValidationReport,
)
from delivery_planner.core.plan.execution_plan import build_execution_plan
from delivery_planner.core.validate.recommendations import generate_recommendations


# Issue codes:
# - E_DUPLICATE_ID: two tasks share an id
# - E_UNKNOWN_DEPENDENCY: dependency id not present in the task set
# - E_CYCLE_DETECTED: dependency cycle exists
# - E_INVALID_ESTIMATE: estimated_hours is negative or not finite
# - E_INVALID_TEAM_SIZE: constraints.team_size is not an integer >= 1
# - W_MISSING_ACCEPTANCE_CRITERIA: task has no acceptance criteria
# - W_CONSTRAINT_CONFLICT: task text mentions a technical constraint
# - W_MISSING_CAPABILITY: no task mentions a required capability


def validate_tasks(
    tasks: list[Task], constraints: Optional[PlanningConstraints] = None
) -> ValidationReport:
    """Validate a task breakdown.

    Structural problems (duplicate ids, dangling dependencies, cycles) and
    unusable numbers (estimates, team size) are errors and make the report
    invalid. Everything else is a warning.
    Never raises for malformed task content.
    """

    constraints = constraints or PlanningConstraints()
    graph = TaskGraph.from_tasks(tasks)
    issues: list[ValidationIssue] = []

    counts = Counter(t.id for t in tasks)
    for tid in graph.order:
        if counts[tid] > 1:
            issues.append(
                ValidationIssue(
                    code="E_DUPLICATE_ID",
                    severity="error",
                    task_id=tid,
                    message=f"duplicate task id: {tid} (count={counts[tid]})",
                    suggestion="Rename one of the tasks so ids are unique",
                )
            )

    team_size = constraints.team_size
    if not isinstance(team_size, int) or isinstance(team_size, bool) or team_size < 1:
        issues.append(
            ValidationIssue(
                code="E_INVALID_TEAM_SIZE",
                severity="error",
                message=f"team_size must be an integer >= 1, got {team_size!r}",
                suggestion="Set constraints.team_size to the number of parallel workers",
            )
        )

    lowered_constraints = [c.lower() for c in constraints.technical_constraints if c.strip()]

    for task in tasks:
        text = f"{task.title}\n{task.description}".lower()
        if any(c in text for c in lowered_constraints):
            issues.append(
                ValidationIssue(
                    code="W_CONSTRAINT_CONFLICT",
                    severity="warning",
                    task_id=task.id,
                    message=f'Task "{task.title}" may conflict with technical constraints',
                    suggestion="Review task requirements against technical constraints",
                )
            )

        for dep in task.dependencies:
            if dep not in graph:
                issues.append(
                    ValidationIssue(
                        code="E_UNKNOWN_DEPENDENCY",
                        severity="error",
                        task_id=task.id,
                        message=f'Task "{task.id}" ({task.title}) depends on non-existent task "{dep}"',
                        suggestion="Remove invalid dependency or add the missing task",
                    )
                )

        if not _valid_hours(task.estimated_hours):
            issues.append(
                ValidationIssue(
                    code="E_INVALID_ESTIMATE",
                    severity="error",
                    task_id=task.id,
                    message=f'Task "{task.id}" has invalid estimated_hours: {task.estimated_hours!r}',
                    suggestion="Use a finite, non-negative number of hours",
                )
            )

        if not task.acceptance_criteria:
            issues.append(
                ValidationIssue(
                    code="W_MISSING_ACCEPTANCE_CRITERIA",
                    severity="warning",
                    task_id=task.id,
                    message=f'Task "{task.title}" has no acceptance criteria',
                    suggestion="Add specific acceptance criteria for this task",
                )
            )

    missing = missing_capabilities(tasks, constraints.required_capabilities)
    if missing:
        issues.append(
            ValidationIssue(
                code="W_MISSING_CAPABILITY",
                severity="warning",
                message="Missing tasks for required capabilities: " + ", ".join(missing),
                suggestion="Add tasks to cover all required capabilities",
            )
        )

    cycles = find_circular_dependencies(graph)
    for cycle in cycles:
        issues.append(
            ValidationIssue(
                code="E_CYCLE_DETECTED",
                severity="error",
                task_id=cycle[0],
                message="Circular dependency detected: " + " -> ".join(cycle),
                suggestion="Remove or restructure dependencies to eliminate cycles",
            )
        )

    critical_ids: list[str] = []
    critical_hours = 0.0
    if not cycles and all(_valid_hours(t.estimated_hours) for t in tasks):
        cp = calculate_critical_path(graph)
        critical_ids, critical_hours = cp.task_ids, cp.total_hours

    return ValidationReport(
        is_valid=not any(i.severity == "error" for i in issues),
        total_hours=float(sum(t.estimated_hours for t in tasks if _valid_hours(t.estimated_hours))),
        critical_path=critical_ids,
        critical_path_hours=critical_hours,
        issues=issues,
        recommendations=generate_recommendations(tasks),
        cycles=cycles,
        task_count=len(tasks),
    )


_UNPLANNABLE = {"E_INVALID_ESTIMATE", "E_INVALID_TEAM_SIZE"}


def _valid_hours(hours: object) -> bool:
    return (
        isinstance(hours, (int, float))
        and not isinstance(hours, bool)
        and math.isfinite(hours)
        and hours >= 0
    )


def missing_capabilities(tasks: list[Task], required: list[str]) -> list[str]:
    texts = [f"{t.title}\n{t.description}".lower() for t in tasks]
    return [cap for cap in required if not any(cap.lower() in text for text in texts)]


def plan_tasks(tasks: list[Task], constraints: Optional[PlanningConstraints] = None) -> TaskPlan:
    """Validate, schedule and summarize a planning run.

    Phases are only produced for an acyclic graph; with cycles the report
    carries the errors and the schedule is empty. Invalid estimates or team
    size still get phases but no execution plan.
    """

    constraints = constraints or PlanningConstraints()
    report = validate_tasks(tasks, constraints)
    if report.cycles:
        return TaskPlan(report=report, scheduled_tasks=[], execution_plan=None)

    scheduled = assign_phases(tasks)
    if any(i.code in _UNPLANNABLE for i in report.issues):
        return TaskPlan(report=report, scheduled_tasks=scheduled, execution_plan=None)

    plan = build_execution_plan(scheduled, team_size=constraints.team_size)
    return TaskPlan(report=report, scheduled_tasks=scheduled, execution_plan=plan)


def summarize_plan(task_plan: TaskPlan) -> str:
    report = task_plan.report
    status = "OK" if report.is_valid else "INVALID"
    lines = [
        f"{status}: {report.task_count} tasks, "
        f"{len(report.errors)} errors, {len(report.warnings)} warnings",
        f"Total hours: {report.total_hours:g}",
    ]
    if report.critical_path:
        lines.append(
            "Critical path: "
            + " -> ".join(report.critical_path)
            + f" ({report.critical_path_hours:g}h)"
        )
    plan = task_plan.execution_plan
    if plan is not None:
        lines.append(f"Phases: {plan.total_phases} (estimated {plan.estimated_duration})")
        for p in plan.phases:
            lines.append(f"  {p.description} [{p.estimated_hours:g}h]: " + ", ".join(p.task_ids))
    return "\n".join(lines)

