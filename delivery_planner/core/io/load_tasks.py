from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable

import yaml

from delivery_planner.core.errors import PlanLoadError
from delivery_planner.core.model import Task


def load_task_file(path: str) -> dict[str, Any]:
    """Load a YAML/JSON task file.

    Accepts either a mapping with ``tasks`` (and optional ``constraints``) or
    a bare list of tasks. Returns a dict with keys: tasks, constraints,
    __file__. Does not coerce types; parse_tasks owns shape checking.
    """

    p = Path(path)
    if not p.exists():
        raise PlanLoadError(
            code="E_FILE_NOT_FOUND",
            message="file does not exist",
            file=str(p),
        )

    suffix = p.suffix.lower()
    try:
        raw_text = p.read_text(encoding="utf-8")
    except Exception as e:  # pragma: no cover
        raise PlanLoadError(code="E_FILE_READ", message=str(e), file=str(p)) from e

    try:
        if suffix in {".yaml", ".yml"}:
            data = yaml.safe_load(raw_text)
        elif suffix == ".json":
            data = json.loads(raw_text)
        else:
            raise PlanLoadError(
                code="E_UNSUPPORTED_FORMAT",
                message="supported formats are .yaml/.yml and .json",
                file=str(p),
            )
    except PlanLoadError:
        raise
    except Exception as e:
        code = "E_YAML_PARSE" if suffix in {".yaml", ".yml"} else "E_JSON_PARSE"
        raise PlanLoadError(code=code, message=str(e), file=str(p)) from e

    if isinstance(data, list):
        data = {"tasks": data}

    if not isinstance(data, dict):
        raise PlanLoadError(
            code="E_INVALID_TOP_LEVEL",
            message="top-level document must be a mapping/object or a list of tasks",
            file=str(p),
        )

    return {
        "tasks": data.get("tasks"),
        "constraints": data.get("constraints"),
        "__file__": str(p),
    }


def dump_tasks_yaml(tasks: Iterable[Task], path: str) -> None:
    p = Path(path)
    if str(p.parent) not in (".", ""):
        p.parent.mkdir(parents=True, exist_ok=True)
    doc = {"tasks": [t.to_dict() for t in tasks]}
    p.write_text(yaml.safe_dump(doc, sort_keys=False, allow_unicode=True), encoding="utf-8")
