from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Literal, Optional, cast

import yaml


FailurePolicy = Literal["collect", "fail-fast"]
FAILURE_POLICIES: tuple[str, ...] = ("collect", "fail-fast")


@dataclass(frozen=True)
class DispatchConfig:
    max_concurrent: int = 3
    # None disables the per-task timeout.
    task_timeout_s: Optional[float] = 600.0
    failure_policy: FailurePolicy = "collect"
    team_size: int = 1


class DispatchConfigError(ValueError):
    pass


def load_dispatch_config(path: str | Path) -> DispatchConfig:
    """Load dispatch settings from a YAML file.

    Format (all keys optional):
      max_concurrent: 3
      task_timeout_s: 600      # or null for no timeout
      failure_policy: collect  # or fail-fast
      team_size: 1
    """
    p = Path(path)
    raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    if raw is None:
        return DispatchConfig()
    if not isinstance(raw, dict):
        raise DispatchConfigError("dispatch config must be a mapping")
    return config_from_dict(raw)


def config_from_dict(raw: dict[str, Any]) -> DispatchConfig:
    unknown = sorted(set(raw) - {"max_concurrent", "task_timeout_s", "failure_policy", "team_size"})
    if unknown:
        raise DispatchConfigError(f"unknown dispatch config keys: {', '.join(unknown)}")

    cfg = DispatchConfig()

    if "max_concurrent" in raw:
        v = raw["max_concurrent"]
        if not isinstance(v, int) or isinstance(v, bool) or v < 1:
            raise DispatchConfigError("max_concurrent must be an integer >= 1")
        cfg = replace(cfg, max_concurrent=v)

    if "task_timeout_s" in raw:
        v = raw["task_timeout_s"]
        if v is not None and (not isinstance(v, (int, float)) or isinstance(v, bool) or v <= 0):
            raise DispatchConfigError("task_timeout_s must be a positive number or null")
        cfg = replace(cfg, task_timeout_s=None if v is None else float(v))

    if "failure_policy" in raw:
        v = raw["failure_policy"]
        if v not in FAILURE_POLICIES:
            raise DispatchConfigError(f"failure_policy must be one of {list(FAILURE_POLICIES)}")
        cfg = replace(cfg, failure_policy=cast(FailurePolicy, v))

    if "team_size" in raw:
        v = raw["team_size"]
        if not isinstance(v, int) or isinstance(v, bool) or v < 1:
            raise DispatchConfigError("team_size must be an integer >= 1")
        cfg = replace(cfg, team_size=v)

    return cfg


def load_or_default(config_file: str | None) -> DispatchConfig:
    if not config_file:
        return DispatchConfig()
    return load_dispatch_config(config_file)
