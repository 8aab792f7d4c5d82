"""Keyword-based categorization of draft tasks for agent execution.

Draft tasks come from a decomposition step and may be missing category,
priority, complexity or capability. Anything missing is inferred from the
title and description; explicit values always win.
"""
from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass
from typing import Any, Optional, cast

from delivery_planner.core.model import (
    AI_CAPABILITIES,
    COMPLEXITIES,
    TASK_CATEGORIES,
    TASK_PRIORITIES,
    AICapability,
    Complexity,
    Task,
    TaskCategory,
    TaskPriority,
)


# Checked in order; first match wins.
CATEGORY_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("design", ("ui", "design", "wireframe", "mockup", "schema")),
    ("frontend", ("component", "frontend", "react", "vue", "client")),
    ("backend", ("api", "backend", "database", "server", "service")),
    ("devops", ("deploy", "ci/cd", "docker", "kubernetes", "pipeline")),
    ("testing", ("test", "testing", "spec", "validation")),
    ("documentation", ("document", "readme", "guide")),
    ("integration", ("integration", "connect", "sync", "webhook")),
]

CAPABILITY_BY_CATEGORY: dict[str, str] = {
    "design": "analysis",
    "frontend": "code-generation",
    "backend": "code-generation",
    "devops": "deployment",
    "testing": "testing",
    "documentation": "analysis",
    "integration": "code-generation",
    "research": "analysis",
}

PARALLEL_BY_CATEGORY: dict[str, bool] = {
    "design": True,
    "frontend": True,
    "backend": False,
    "devops": False,
    "testing": True,
    "documentation": True,
    "integration": False,
    "research": True,
}

HOURS_BY_COMPLEXITY: dict[str, float] = {"simple": 2.0, "moderate": 4.0, "complex": 8.0}

ACCEPTANCE_CRITERIA: dict[str, list[str]] = {
    "design": [
        "Design specifications are technically complete",
        "Component schemas are defined and validated",
        "Design system consistency is maintained",
    ],
    "frontend": [
        "Component renders correctly and is responsive",
        "All user interactions are functional",
        "Code passes automated testing",
        "Performance metrics meet requirements",
    ],
    "backend": [
        "API endpoints return correct responses",
        "Data validation and error handling implemented",
        "Integration and unit tests pass",
        "Performance and security requirements met",
    ],
    "devops": [
        "Configuration is automated and repeatable",
        "Deployment process is validated",
        "Monitoring and logging are functional",
    ],
    "testing": [
        "Test coverage meets defined thresholds",
        "All test scenarios are automated",
        "Tests run successfully in CI/CD pipeline",
    ],
    "documentation": [
        "Documentation is complete and accurate",
        "Code examples are functional and tested",
        "API documentation is auto-generated",
    ],
    "integration": [
        "Data synchronization is working correctly",
        "Error handling and retry logic implemented",
        "Integration tests validate end-to-end flow",
    ],
}
DEFAULT_ACCEPTANCE_CRITERIA = [
    "Implementation is complete and functional",
    "Code follows established patterns and standards",
]

VALIDATION_METHODS: dict[str, str] = {
    "design": "Automated design token validation and component library checks",
    "frontend": "Unit tests, integration tests, and visual regression testing",
    "backend": "Unit tests, integration tests, API contract testing",
    "devops": "Infrastructure validation, deployment testing, monitoring checks",
    "testing": "Test execution, coverage reports, performance benchmarks",
    "documentation": "Documentation linting, link validation, example execution",
    "integration": "End-to-end testing, data validation, error scenario testing",
}

TECH_SPECS: dict[str, str] = {
    "React": "Use React hooks and functional components with TypeScript",
    "Node.js": "Implement using Node.js with proper error handling",
    "PostgreSQL": "Use PostgreSQL with proper indexing and queries",
    "Docker": "Containerize using Docker with multi-stage builds",
}


@dataclass(frozen=True)
class CategorizedTask:
    task: Task
    technical_specs: str
    validation_method: str
    parallelizable: bool


@dataclass(frozen=True)
class CategorizationSummary:
    total_tasks: int
    tasks_by_category: dict[str, int]
    complexity_distribution: dict[str, int]
    critical_path_tasks: list[str]
    parallelizable_tasks: list[str]


@dataclass(frozen=True)
class CategorizationResult:
    tasks: list[CategorizedTask]
    summary: CategorizationSummary
    recommendations: list[str]


def _text(title: str, description: str) -> str:
    return f"{title} {description}".lower()


def _has_any(text: str, words: tuple[str, ...]) -> bool:
    return any(w in text for w in words)


def infer_category(title: str, description: str) -> str:
    text = _text(title, description)
    for category, words in CATEGORY_KEYWORDS:
        if _has_any(text, words):
            return category
    return "backend"


def infer_complexity(title: str, description: str) -> str:
    text = _text(title, description)
    if _has_any(text, ("simple", "basic", "straightforward", "single")):
        return "simple"
    if _has_any(text, ("complex", "advanced", "sophisticated", "multi")):
        return "complex"
    if _has_any(text, ("system", "architecture", "integration", "performance")):
        return "complex"
    return "moderate"


def infer_ai_capability(title: str, description: str, category: str) -> str:
    text = _text(title, description)
    if _has_any(text, ("implement", "create", "build", "develop")):
        return "code-generation"
    if _has_any(text, ("test", "validate", "verify", "check")):
        return "testing"
    if _has_any(text, ("deploy", "release", "publish", "configure")):
        return "deployment"
    if _has_any(text, ("analyze", "review", "audit", "assess")):
        return "analysis"
    return CAPABILITY_BY_CATEGORY.get(category, "code-generation")


def infer_priority(title: str, description: str) -> str:
    text = _text(title, description)
    if _has_any(text, ("critical", "security", "blocking", "urgent")):
        return "critical"
    if _has_any(text, ("important", "required", "core", "essential")):
        return "high"
    if _has_any(text, ("nice to have", "optional", "enhancement", "future")):
        return "low"
    return "medium"


def is_parallelizable(title: str, description: str, category: str) -> bool:
    text = _text(title, description)
    # sequential markers beat parallel ones
    if _has_any(text, ("depends", "after", "following", "migration")):
        return False
    if _has_any(text, ("component", "test", "documentation", "style")):
        return True
    return PARALLEL_BY_CATEGORY.get(category, False)


def acceptance_criteria_for(category: str) -> list[str]:
    return list(ACCEPTANCE_CRITERIA.get(category, DEFAULT_ACCEPTANCE_CRITERIA))


def validation_method_for(category: str) -> str:
    return VALIDATION_METHODS.get(category, "Automated testing and validation")


def technical_specs_for(technology_stack: list[str]) -> str:
    specs = [TECH_SPECS[t] for t in TECH_SPECS if t in technology_stack]
    return ". ".join(specs) or "Follow established technical patterns and standards"


def categorize_tasks(
    drafts: list[dict[str, Any]],
    *,
    technology_stack: Optional[list[str]] = None,
    execution_mode: str = "autonomous",
) -> CategorizationResult:
    """Categorize draft task dicts and assign ids ``{category}-{n}``.

    ``n`` is the 1-based position in ``drafts``. Explicit field values that
    are not valid enum members are ignored and inferred instead.
    """

    stack = list(technology_stack or [])
    out: list[CategorizedTask] = []

    for index, draft in enumerate(drafts):
        title = str(draft.get("title", "")).strip()
        description = str(draft.get("description", "") or "").strip()

        category = draft.get("category")
        if category not in TASK_CATEGORIES:
            category = infer_category(title, description)

        complexity = draft.get("complexity")
        if complexity not in COMPLEXITIES:
            complexity = infer_complexity(title, description)

        capability = draft.get("ai_capability", draft.get("aiCapability"))
        if capability not in AI_CAPABILITIES:
            capability = infer_ai_capability(title, description, category)

        priority = draft.get("priority")
        if priority not in TASK_PRIORITIES:
            priority = infer_priority(title, description)

        hours = draft.get("estimated_hours", draft.get("estimatedHours"))
        if (
            not isinstance(hours, (int, float))
            or isinstance(hours, bool)
            or not math.isfinite(hours)
            or hours < 0
        ):
            hours = HOURS_BY_COMPLEXITY[complexity]

        deps = draft.get("dependencies") or []
        task = Task(
            id=f"{category}-{index + 1}",
            title=title,
            description=description,
            category=cast(TaskCategory, category),
            priority=cast(TaskPriority, priority),
            estimated_hours=float(hours),
            dependencies=[str(d) for d in deps],
            acceptance_criteria=acceptance_criteria_for(category),
            complexity=cast(Complexity, complexity),
            ai_capability=cast(AICapability, capability),
        )
        out.append(
            CategorizedTask(
                task=task,
                technical_specs=technical_specs_for(stack),
                validation_method=validation_method_for(category),
                parallelizable=is_parallelizable(title, description, category),
            )
        )

    summary = CategorizationSummary(
        total_tasks=len(out),
        tasks_by_category=dict(Counter(c.task.category for c in out)),
        complexity_distribution=dict(Counter(cast(str, c.task.complexity) for c in out)),
        critical_path_tasks=[
            c.task.id
            for c in out
            if c.task.priority in ("critical", "high") or c.task.dependencies
        ],
        parallelizable_tasks=[c.task.id for c in out if c.parallelizable and not c.task.dependencies],
    )
    return CategorizationResult(
        tasks=out,
        summary=summary,
        recommendations=execution_recommendations(out, execution_mode),
    )


def execution_recommendations(tasks: list[CategorizedTask], execution_mode: str) -> list[str]:
    recs = [f"Total tasks identified: {len(tasks)} for {execution_mode} execution"]

    critical = [c for c in tasks if c.task.priority == "critical"]
    if critical:
        recs.append(f"Execute {len(critical)} critical tasks first to unblock dependencies")

    parallel = [c for c in tasks if c.parallelizable]
    if len(parallel) > 1:
        recs.append(f"{len(parallel)} tasks can be executed in parallel for faster completion")

    complex_tasks = [c for c in tasks if c.task.complexity == "complex"]
    if complex_tasks:
        recs.append(f"{len(complex_tasks)} complex tasks may require additional validation and testing")

    codegen = [c for c in tasks if c.task.ai_capability == "code-generation"]
    if codegen:
        recs.append(f"{len(codegen)} tasks require code generation capabilities")

    if any(c.task.category == "integration" for c in tasks):
        recs.append("Integration tasks should be executed after core functionality is complete")

    return recs
