from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional

from delivery_planner.core.ai.llm import LLMClient, model_for_role
from delivery_planner.core.ai.prompts import BREAKDOWN_PROMPT, CATEGORY_PROMPTS
from delivery_planner.core.dispatch.contracts import Artifact
from delivery_planner.core.model import TASK_CATEGORIES, TASK_PRIORITIES, Task


logger = logging.getLogger(__name__)


# OpenAI Structured Outputs requirements:
# - For ALL object schemas, `additionalProperties` MUST be present and MUST be false.
# - For ALL object schemas, `required` MUST include EVERY key in `properties`.
# Optional task fields are therefore nullable rather than omitted.


ARTIFACT_JSON_SCHEMA: dict[str, Any] = {
    "name": "artifact",
    "schema": {
        "type": "object",
        "additionalProperties": False,
        "properties": {
            "type": {"type": "string"},
            "format": {"type": "string"},
            "content": {"type": "string"},
            "summary": {"type": "string"},
        },
        "required": ["type", "format", "content", "summary"],
    },
}


TASK_SCHEMA: dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "id": {"type": "string"},
        "title": {"type": "string"},
        "description": {"type": "string"},
        "category": {"type": "string", "enum": list(TASK_CATEGORIES)},
        "priority": {"type": "string", "enum": list(TASK_PRIORITIES)},
        "estimated_hours": {"type": "number"},
        "dependencies": {"type": "array", "items": {"type": "string"}},
        "acceptance_criteria": {"type": "array", "items": {"type": "string"}},
        "complexity": {"type": ["string", "null"], "enum": ["simple", "moderate", "complex", None]},
    },
    "required": [
        "id",
        "title",
        "description",
        "category",
        "priority",
        "estimated_hours",
        "dependencies",
        "acceptance_criteria",
        "complexity",
    ],
}


TASK_LIST_JSON_SCHEMA: dict[str, Any] = {
    "name": "task_breakdown",
    "schema": {
        "type": "object",
        "additionalProperties": False,
        "properties": {
            "tasks": {"type": "array", "minItems": 1, "items": TASK_SCHEMA},
            "notes": {"type": "array", "items": {"type": "string"}},
        },
        "required": ["tasks", "notes"],
    },
}


class OpenAIArtifactAgent:
    """Category agent that asks the model for a single generated artifact."""

    def __init__(self, category: str, *, llm: Optional[LLMClient] = None) -> None:
        if category not in CATEGORY_PROMPTS:
            raise ValueError(f"no prompt for category: {category}")
        self.category = category
        self.llm = llm or LLMClient()

    async def run(self, task: Task, *, context: dict[str, Any]) -> Artifact:
        model = model_for_role(self.category, self.llm.default_model)
        resp = await asyncio.to_thread(
            self.llm.respond,
            CATEGORY_PROMPTS[self.category],
            render_task_prompt(task, context),
            ARTIFACT_JSON_SCHEMA,
            model,
        )
        try:
            data = json.loads(resp.text)
        except json.JSONDecodeError as e:
            raise RuntimeError(f"Failed to parse model JSON. First 800 chars: {resp.text[:800]}") from e

        content = data.get("content") if isinstance(data, dict) else None
        if not isinstance(content, str) or not content.strip():
            raise RuntimeError("model returned no artifact content")

        logger.debug("task %s: %s artifact from %s", task.id, data.get("type"), model)
        return Artifact(
            type=str(data.get("type") or self.category),
            content=content,
            format=str(data.get("format") or "markdown"),
            summary=str(data.get("summary") or ""),
        )


def build_agents(llm: Optional[LLMClient] = None) -> dict[str, OpenAIArtifactAgent]:
    """One agent per category, sharing a client so usage is counted once."""
    shared = llm or LLMClient()
    return {c: OpenAIArtifactAgent(c, llm=shared) for c in TASK_CATEGORIES}


class OpenAIBreakdownClient:
    def __init__(self, *, llm: Optional[LLMClient] = None) -> None:
        self.llm = llm or LLMClient()

    def propose_tasks(self, *, brd: str, context: dict[str, Any], model: str | None = None) -> list[dict[str, Any]]:
        """Ask the model for a task breakdown of ``brd``.

        Returns raw task dicts; feed them through parse_tasks before use.
        """
        use_model = model or model_for_role("task-breakdown", self.llm.default_model)
        user = (
            "CONTEXT_JSON:\n"
            + json.dumps(context, indent=2, sort_keys=True)
            + "\n\nBUSINESS_REQUIREMENTS:\n"
            + brd
            + "\n\nReturn only the JSON task breakdown."
        )
        resp = self.llm.respond(BREAKDOWN_PROMPT, user, TASK_LIST_JSON_SCHEMA, use_model)
        try:
            obj = json.loads(resp.text)
        except json.JSONDecodeError as e:
            raise RuntimeError(f"Failed to parse model JSON. First 800 chars: {resp.text[:800]}") from e

        tasks = obj.get("tasks", []) if isinstance(obj, dict) else []
        if not isinstance(tasks, list):
            raise RuntimeError("model returned tasks that are not a list")
        return tasks


def render_task_prompt(task: Task, context: dict[str, Any]) -> str:
    return (
        "PROJECT_CONTEXT_JSON:\n"
        + json.dumps(context, indent=2, sort_keys=True, default=str)
        + "\n\nTASK_JSON:\n"
        + json.dumps(task.to_dict(), indent=2, sort_keys=True)
        + "\n\nSatisfy every acceptance criterion. Return only the JSON artifact."
    )
