from __future__ import annotations

import re
from typing import Optional, cast

from delivery_planner.core.model import Complexity, Task, TaskCategory, TaskPriority


DEFAULT_CRITERIA = [
    "Implementation is complete and functional",
    "Code follows established patterns",
]

# Ordered; first match wins. Evaluated against the lowercased heading only.
_HEADING_CATEGORIES: list[tuple[str, tuple[str, ...]]] = [
    ("design", ("design", "ui")),
    ("frontend", ("frontend", "component")),
    ("backend", ("backend", "api")),
    ("devops", ("deploy", "devops")),
    ("testing", ("test",)),
    ("documentation", ("document",)),
    ("integration", ("integration",)),
]


def _is_heading(line: str) -> bool:
    s = line.strip()
    return s.startswith("##") or s.startswith("**Task")


def _category(title: str) -> str:
    for category, words in _HEADING_CATEGORIES:
        if any(w in title for w in words):
            return category
    return "backend"


def _priority(title: str) -> str:
    if "critical" in title or "urgent" in title:
        return "critical"
    if "important" in title or "high" in title:
        return "high"
    if "nice" in title or "low" in title:
        return "low"
    return "medium"


def _complexity(title: str) -> str:
    if "simple" in title or "basic" in title:
        return "simple"
    if "complex" in title or "advanced" in title:
        return "complex"
    return "moderate"


def parse_tasks_from_breakdown(text: str, *, default_hours: float = 0.0) -> list[Task]:
    """Split a markdown task breakdown into tasks.

    A line starting with ``##`` or ``**Task`` opens a task whose title is the
    line stripped of ``#`` and ``*``. Non-empty lines until the next heading
    form its description. Ids are ``task-1``, ``task-2``, ... in order.
    """

    tasks: list[Task] = []
    title: Optional[str] = None
    body: list[str] = []

    def flush() -> None:
        if title is None:
            return
        lowered = title.lower()
        tasks.append(
            Task(
                id=f"task-{len(tasks) + 1}",
                title=title,
                description=" ".join(body),
                category=cast(TaskCategory, _category(lowered)),
                priority=cast(TaskPriority, _priority(lowered)),
                estimated_hours=default_hours,
                dependencies=[],
                acceptance_criteria=list(DEFAULT_CRITERIA),
                complexity=cast(Complexity, _complexity(lowered)),
            )
        )

    for line in text.splitlines():
        if _is_heading(line):
            flush()
            title = re.sub(r"[#*]", "", line).strip()
            body = []
        elif title is not None and line.strip():
            body.append(line.strip())

    flush()
    return tasks
