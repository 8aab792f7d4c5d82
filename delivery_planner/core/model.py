from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional


TaskCategory = Literal[
    "design",
    "frontend",
    "backend",
    "devops",
    "testing",
    "documentation",
    "integration",
    "research",
]
TaskPriority = Literal["critical", "high", "medium", "low"]
Complexity = Literal["simple", "moderate", "complex"]
SkillLevel = Literal["junior", "mid", "senior"]
AICapability = Literal["code-generation", "testing", "deployment", "analysis"]
Severity = Literal["error", "warning", "info"]

TASK_CATEGORIES: tuple[str, ...] = (
    "design",
    "frontend",
    "backend",
    "devops",
    "testing",
    "documentation",
    "integration",
    "research",
)
TASK_PRIORITIES: tuple[str, ...] = ("critical", "high", "medium", "low")
COMPLEXITIES: tuple[str, ...] = ("simple", "moderate", "complex")
SKILL_LEVELS: tuple[str, ...] = ("junior", "mid", "senior")
AI_CAPABILITIES: tuple[str, ...] = ("code-generation", "testing", "deployment", "analysis")

PRIORITY_RANK: dict[str, int] = {"critical": 4, "high": 3, "medium": 2, "low": 1}


@dataclass(frozen=True)
class Task:
    id: str
    title: str
    description: str
    category: TaskCategory
    priority: TaskPriority
    estimated_hours: float
    dependencies: list[str]
    acceptance_criteria: list[str]

    complexity: Optional[Complexity] = None
    skill_level: Optional[SkillLevel] = None
    ai_capability: Optional[AICapability] = None

    def to_dict(self) -> dict:
        out: dict = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "priority": self.priority,
            "estimated_hours": self.estimated_hours,
            "dependencies": list(self.dependencies),
            "acceptance_criteria": list(self.acceptance_criteria),
        }
        if self.complexity is not None:
            out["complexity"] = self.complexity
        if self.skill_level is not None:
            out["skill_level"] = self.skill_level
        if self.ai_capability is not None:
            out["ai_capability"] = self.ai_capability
        return out


@dataclass(frozen=True)
class PlanningConstraints:
    required_capabilities: list[str] = field(default_factory=list)
    technical_constraints: list[str] = field(default_factory=list)
    team_size: int = 1


@dataclass(frozen=True)
class ScheduledTask:
    """A task annotated with its execution wave."""

    task: Task
    phase: int
    can_start_in_parallel: bool

    @property
    def id(self) -> str:
        return self.task.id

    def to_dict(self) -> dict:
        out = self.task.to_dict()
        out["phase"] = self.phase
        out["can_start_in_parallel"] = self.can_start_in_parallel
        return out


@dataclass(frozen=True)
class CriticalPath:
    task_ids: list[str]
    total_hours: float


@dataclass(frozen=True)
class ValidationIssue:
    code: str
    severity: Severity
    message: str
    task_id: Optional[str] = None
    suggestion: Optional[str] = None

    def __str__(self) -> str:
        loc = self.task_id or "<tasks>"
        return f"{loc}: {self.code}: {self.message}"


@dataclass(frozen=True)
class ValidationReport:
    is_valid: bool
    total_hours: float
    critical_path: list[str]
    critical_path_hours: float
    issues: list[ValidationIssue]
    recommendations: list[str]
    cycles: list[list[str]] = field(default_factory=list)
    task_count: int = 0

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == "error"]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == "warning"]


@dataclass(frozen=True)
class ExecutionPhase:
    phase: int
    task_ids: list[str]
    estimated_hours: float
    description: str


@dataclass(frozen=True)
class ExecutionPlan:
    phases: list[ExecutionPhase]
    total_phases: int
    total_hours: float
    estimated_days: int
    estimated_duration: str
    team_size: int = 1


@dataclass(frozen=True)
class TaskPlan:
    report: ValidationReport
    scheduled_tasks: list[ScheduledTask]
    execution_plan: Optional[ExecutionPlan]
