from __future__ import annotations

import math
from typing import Any, Iterable, Optional, cast

from delivery_planner.core.errors import TaskValidationError
from delivery_planner.core.model import (
    AI_CAPABILITIES,
    COMPLEXITIES,
    SKILL_LEVELS,
    TASK_CATEGORIES,
    TASK_PRIORITIES,
    AICapability,
    Complexity,
    PlanningConstraints,
    SkillLevel,
    Task,
    TaskCategory,
    TaskPriority,
)


# Upstream decomposition emits camelCase; files written by this tool use snake_case.
_ALIASES: dict[str, tuple[str, ...]] = {
    "estimated_hours": ("estimated_hours", "estimatedHours"),
    "acceptance_criteria": ("acceptance_criteria", "acceptanceCriteria"),
    "skill_level": ("skill_level", "skillLevel"),
    "ai_capability": ("ai_capability", "aiCapability"),
    "required_capabilities": ("required_capabilities", "requiredCapabilities"),
    "technical_constraints": ("technical_constraints", "technicalConstraints"),
    "team_size": ("team_size", "teamSize"),
}


def _get(raw: dict[str, Any], key: str, default: Any = None) -> Any:
    for k in _ALIASES.get(key, (key,)):
        if k in raw:
            return raw[k]
    return default


def _is_list_of_str(v: Any) -> bool:
    return isinstance(v, list) and all(isinstance(x, str) for x in v)


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def parse_tasks(
    raw_tasks: Any, *, file: Optional[str] = None
) -> tuple[list[Task], list[TaskValidationError]]:
    """Turn loaded task records into Task objects.

    Returns (tasks, errors). A record with any error is dropped from tasks.
    Dependency references are *not* resolved here; that is validation's job.
    """

    errors: list[TaskValidationError] = []
    if not isinstance(raw_tasks, list):
        errors.append(
            TaskValidationError(
                code="E_REQUIRED_FIELD",
                message="tasks is required and must be an array",
                file=file,
                path="tasks",
            )
        )
        return [], errors

    tasks: list[Task] = []
    seen: set[str] = set()

    for i, raw in enumerate(raw_tasks):
        task_path = f"tasks[{i}]"

        def err(code: str, message: str, field: str) -> None:
            errors.append(
                TaskValidationError(code=code, message=message, file=file, path=f"{task_path}.{field}")
            )

        if not isinstance(raw, dict):
            errors.append(
                TaskValidationError(
                    code="E_INVALID_TYPE", message="task must be an object", file=file, path=task_path
                )
            )
            continue

        n_before = len(errors)

        tid = raw.get("id")
        if not isinstance(tid, str) or not tid.strip():
            err("E_REQUIRED_FIELD", "id is required and must be a non-empty string", "id")
            continue
        if tid in seen:
            err("E_DUPLICATE_ID", f"duplicate task id: {tid}", "id")
            continue

        title = raw.get("title")
        if not isinstance(title, str) or not title.strip():
            err("E_REQUIRED_FIELD", "title is required and must be a non-empty string", "title")

        description = raw.get("description", "")
        if description is None:
            description = ""
        if not isinstance(description, str):
            err("E_INVALID_TYPE", "description must be a string", "description")

        category = raw.get("category")
        if category not in TASK_CATEGORIES:
            err("E_INVALID_ENUM", f"category must be one of {list(TASK_CATEGORIES)}", "category")

        priority = raw.get("priority", "medium")
        if priority not in TASK_PRIORITIES:
            err("E_INVALID_ENUM", f"priority must be one of {list(TASK_PRIORITIES)}", "priority")

        hours = _get(raw, "estimated_hours", 0)
        if not _is_number(hours):
            err("E_INVALID_TYPE", "estimated_hours must be a number", "estimated_hours")
        elif not math.isfinite(hours) or hours < 0:
            err("E_INVALID_VALUE", "estimated_hours must be a finite number >= 0", "estimated_hours")

        deps = raw.get("dependencies")
        if deps is None:
            deps = []
        if not _is_list_of_str(deps):
            err("E_INVALID_TYPE", "dependencies must be an array of strings", "dependencies")

        criteria = _get(raw, "acceptance_criteria", [])
        if criteria is None:
            criteria = []
        if not _is_list_of_str(criteria):
            err("E_INVALID_TYPE", "acceptance_criteria must be an array of strings", "acceptance_criteria")

        complexity = raw.get("complexity")
        if complexity is not None and complexity not in COMPLEXITIES:
            err("E_INVALID_ENUM", f"complexity must be one of {list(COMPLEXITIES)}", "complexity")

        skill_level = _get(raw, "skill_level")
        if skill_level is not None and skill_level not in SKILL_LEVELS:
            err("E_INVALID_ENUM", f"skill_level must be one of {list(SKILL_LEVELS)}", "skill_level")

        ai_capability = _get(raw, "ai_capability")
        if ai_capability is not None and ai_capability not in AI_CAPABILITIES:
            err(
                "E_INVALID_ENUM",
                f"ai_capability must be one of {list(AI_CAPABILITIES)}",
                "ai_capability",
            )

        if len(errors) > n_before:
            continue

        seen.add(tid)
        tasks.append(
            Task(
                id=tid,
                title=cast(str, title),
                description=cast(str, description),
                category=cast(TaskCategory, category),
                priority=cast(TaskPriority, priority),
                estimated_hours=float(hours),
                dependencies=list(deps),
                acceptance_criteria=list(criteria),
                complexity=cast(Optional[Complexity], complexity),
                skill_level=cast(Optional[SkillLevel], skill_level),
                ai_capability=cast(Optional[AICapability], ai_capability),
            )
        )

    return tasks, sorted_errors(errors)


def parse_constraints(
    raw: Any, *, file: Optional[str] = None
) -> tuple[PlanningConstraints, list[TaskValidationError]]:
    if raw is None:
        return PlanningConstraints(), []

    errors: list[TaskValidationError] = []
    if not isinstance(raw, dict):
        errors.append(
            TaskValidationError(
                code="E_INVALID_TYPE",
                message="constraints must be an object",
                file=file,
                path="constraints",
            )
        )
        return PlanningConstraints(), errors

    capabilities = _get(raw, "required_capabilities", []) or []
    if not _is_list_of_str(capabilities):
        errors.append(
            TaskValidationError(
                code="E_INVALID_TYPE",
                message="required_capabilities must be an array of strings",
                file=file,
                path="constraints.required_capabilities",
            )
        )
        capabilities = []

    technical = _get(raw, "technical_constraints", []) or []
    if not _is_list_of_str(technical):
        errors.append(
            TaskValidationError(
                code="E_INVALID_TYPE",
                message="technical_constraints must be an array of strings",
                file=file,
                path="constraints.technical_constraints",
            )
        )
        technical = []

    team_size = _get(raw, "team_size", 1)
    if team_size is None:
        team_size = 1
    if not isinstance(team_size, int) or isinstance(team_size, bool) or team_size < 1:
        errors.append(
            TaskValidationError(
                code="E_INVALID_VALUE",
                message="team_size must be an integer >= 1",
                file=file,
                path="constraints.team_size",
            )
        )
        team_size = 1

    return (
        PlanningConstraints(
            required_capabilities=list(capabilities),
            technical_constraints=list(technical),
            team_size=team_size,
        ),
        errors,
    )


def sorted_errors(errors: Iterable[TaskValidationError]) -> list[TaskValidationError]:
    return sorted(list(errors), key=lambda e: (e.file or "", e.path or "", e.code))
