from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, field
from typing import Any, Optional


DEFAULT_MODEL = "gpt-4.1-mini"


@dataclass(frozen=True)
class LLMResponse:
    text: str
    raw: Any


@dataclass
class LLMUsage:
    """Running totals for one client, shared by every agent built on it."""

    calls: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    by_model: dict[str, int] = field(default_factory=dict)

    def record(self, model: str, response: Any = None) -> None:
        self.calls += 1
        self.by_model[model] = self.by_model.get(model, 0) + 1
        usage = getattr(response, "usage", None)
        if usage is not None:
            self.input_tokens += _usage_field(usage, "input_tokens")
            self.output_tokens += _usage_field(usage, "output_tokens")

    def summary(self) -> str:
        models = ", ".join(f"{m} x{n}" for m, n in sorted(self.by_model.items())) or "none"
        return (
            f"LLM usage: {self.calls} calls, {self.input_tokens} input / "
            f"{self.output_tokens} output tokens (models: {models})"
        )


def _usage_field(usage: Any, key: str) -> int:
    if isinstance(usage, dict):
        return int(usage.get(key, 0) or 0)
    return int(getattr(usage, key, 0) or 0)


def _role_env_key(role: str) -> str:
    """backend -> OPENAI_MODEL_BACKEND, task-breakdown -> OPENAI_MODEL_TASK_BREAKDOWN"""
    return "OPENAI_MODEL_" + re.sub(r"[^A-Za-z0-9]+", "_", role).strip("_").upper()


def model_for_role(role: str, default_model: str) -> str:
    """OPENAI_MODEL_<ROLE> if set, else ``default_model``."""
    override = (os.getenv(_role_env_key(role), "") or "").strip()
    return override or default_model


def _structured_output(json_schema: dict[str, Any]) -> dict[str, Any]:
    return {
        "format": {
            "type": "json_schema",
            "name": json_schema.get("name", "schema"),
            "strict": True,
            "schema": json_schema.get("schema", {}),
        }
    }


class LLMClient:
    """Synchronous OpenAI Responses API client used by the category agents."""

    def __init__(self, default_model: str | None = None) -> None:
        self.default_model = default_model or os.getenv("OPENAI_MODEL", DEFAULT_MODEL)
        self.usage = LLMUsage()

    def is_configured(self) -> bool:
        return bool(os.getenv("OPENAI_API_KEY"))

    def respond(
        self,
        system: str,
        user: str,
        json_schema: Optional[dict[str, Any]] = None,
        model: str | None = None,
    ) -> LLMResponse:
        """Without OPENAI_API_KEY this records the call and returns ``{}``."""

        use_model = model or self.default_model
        if not self.is_configured():
            self.usage.record(use_model)
            return LLMResponse(text=json.dumps({}), raw={"disabled": True, "model": use_model})

        from openai import OpenAI

        extra: dict[str, Any] = {}
        if json_schema is not None:
            extra["text"] = _structured_output(json_schema)

        response = OpenAI().responses.create(
            model=use_model,
            input=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            **extra,
        )
        self.usage.record(use_model, response)
        return LLMResponse(text=extract_output_text(response), raw=response)


def extract_output_text(resp: Any) -> str:
    """Text of a Responses API result, across SDK response shapes."""
    raw = getattr(resp, "output_text", None)
    if isinstance(raw, str) and raw.strip():
        return raw

    texts: list[str] = []
    for item in getattr(resp, "output", None) or []:
        for part in getattr(item, "content", None) or []:
            t = getattr(part, "text", None)
            if isinstance(t, str) and t.strip():
                texts.append(t)
    return "\n".join(texts)
