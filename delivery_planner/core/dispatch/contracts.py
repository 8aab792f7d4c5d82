from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional, Protocol

from delivery_planner.core.model import Task


ExecutionStatus = Literal["completed", "failed", "skipped"]


@dataclass(frozen=True)
class Artifact:
    type: str
    content: str
    format: str
    summary: str = ""


@dataclass(frozen=True)
class TaskExecutionResult:
    task_id: str
    title: str
    category: str
    phase: int
    status: ExecutionStatus
    message: str
    artifact: Optional[Artifact] = None
    elapsed_s: float = 0.0


@dataclass(frozen=True)
class DispatchResult:
    results: list[TaskExecutionResult]
    phases_run: int
    notes: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(r.status == "completed" for r in self.results)

    def by_status(self, status: ExecutionStatus) -> list[TaskExecutionResult]:
        return [r for r in self.results if r.status == status]


class TaskAgent(Protocol):
    async def run(self, task: Task, *, context: dict[str, Any]) -> Artifact: ...
