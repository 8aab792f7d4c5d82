from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Iterable, Mapping, Optional

from delivery_planner.core.dispatch.contracts import (
    DispatchResult,
    TaskAgent,
    TaskExecutionResult,
)
from delivery_planner.core.dispatch.dispatch_config import DispatchConfig
from delivery_planner.core.model import PRIORITY_RANK, ScheduledTask, Task


logger = logging.getLogger(__name__)


def filter_tasks(
    tasks: Iterable[Task],
    *,
    categories: Optional[Iterable[str]] = None,
    min_priority: Optional[str] = None,
) -> list[Task]:
    """Keep tasks in the given categories at or above ``min_priority``."""

    out = list(tasks)
    if categories is not None:
        allowed = set(categories)
        out = [t for t in out if t.category in allowed]
    if min_priority is not None:
        if min_priority not in PRIORITY_RANK:
            raise ValueError(f"unknown priority: {min_priority}")
        floor = PRIORITY_RANK[min_priority]
        out = [t for t in out if PRIORITY_RANK[t.priority] >= floor]
    return out


def dropped_dependencies(selected: Iterable[Task], all_tasks: Iterable[Task]) -> list[tuple[str, str]]:
    """(task_id, dependency_id) edges into tasks that exist but were filtered out."""

    chosen = list(selected)
    kept = {t.id for t in chosen}
    known = {t.id for t in all_tasks}
    return [(t.id, d) for t in chosen for d in t.dependencies if d in known and d not in kept]


def group_by_phase(scheduled: Iterable[ScheduledTask]) -> list[tuple[int, list[ScheduledTask]]]:
    """Phases ascending; within a phase, higher priority first, then input order."""

    by_phase: dict[int, list[ScheduledTask]] = {}
    for st in scheduled:
        by_phase.setdefault(st.phase, []).append(st)
    return [
        (phase, sorted(by_phase[phase], key=lambda st: -PRIORITY_RANK[st.task.priority]))
        for phase in sorted(by_phase)
    ]


async def dispatch_plan(
    scheduled: Iterable[ScheduledTask],
    agents: Mapping[str, TaskAgent],
    *,
    context: Optional[dict[str, Any]] = None,
    config: Optional[DispatchConfig] = None,
) -> DispatchResult:
    """Run scheduled tasks phase by phase.

    Each phase is a barrier: the next phase starts only after every task of
    the current one has returned. Inside a phase tasks run concurrently, at
    most ``config.max_concurrent`` at a time, and one failure never cancels
    its siblings.

    Failure policy:
    - collect: keep going; a task whose dependency did not complete is skipped.
    - fail-fast: after a phase with any failure, all later tasks are skipped.
    """

    cfg = config or DispatchConfig()
    ctx = dict(context or {})
    sem = asyncio.Semaphore(max(1, cfg.max_concurrent))

    results: list[TaskExecutionResult] = []
    unsuccessful: set[str] = set()
    phases_run = 0
    halted = False
    notes: list[str] = []

    async def run_one(st: ScheduledTask) -> TaskExecutionResult:
        task = st.task
        agent = agents.get(task.category)
        if agent is None:
            return _result(st, "failed", f"no agent registered for category: {task.category}")

        async with sem:
            started = time.monotonic()
            try:
                if cfg.task_timeout_s is None:
                    artifact = await agent.run(task, context=ctx)
                else:
                    artifact = await asyncio.wait_for(
                        agent.run(task, context=ctx), timeout=cfg.task_timeout_s
                    )
            except asyncio.TimeoutError:
                elapsed = time.monotonic() - started
                logger.warning("task %s timed out after %.1fs", task.id, elapsed)
                return _result(
                    st, "failed", f"timed out after {cfg.task_timeout_s:g}s", elapsed_s=elapsed
                )
            except Exception as e:
                elapsed = time.monotonic() - started
                logger.warning("task %s failed: %s", task.id, e)
                return _result(st, "failed", str(e) or type(e).__name__, elapsed_s=elapsed)

        elapsed = time.monotonic() - started
        return TaskExecutionResult(
            task_id=task.id,
            title=task.title,
            category=task.category,
            phase=st.phase,
            status="completed",
            message=f"{task.category} task completed",
            artifact=artifact,
            elapsed_s=elapsed,
        )

    for phase, members in group_by_phase(scheduled):
        if halted:
            for st in members:
                results.append(_result(st, "skipped", "skipped after failure in an earlier phase"))
                unsuccessful.add(st.id)
            continue

        runnable: list[ScheduledTask] = []
        for st in members:
            blocked = [d for d in st.task.dependencies if d in unsuccessful]
            if blocked:
                results.append(
                    _result(st, "skipped", "dependency did not complete: " + ", ".join(blocked))
                )
                unsuccessful.add(st.id)
            else:
                runnable.append(st)

        logger.info("phase %d: dispatching %d tasks", phase, len(runnable))
        phase_results = await asyncio.gather(*[run_one(st) for st in runnable])
        phases_run += 1

        failed = [r for r in phase_results if r.status != "completed"]
        for r in phase_results:
            results.append(r)
            if r.status != "completed":
                unsuccessful.add(r.task_id)
        logger.info(
            "phase %d: %d completed, %d failed",
            phase,
            len(phase_results) - len(failed),
            len(failed),
        )

        if failed and cfg.failure_policy == "fail-fast":
            halted = True
            notes.append(f"halted after phase {phase}: {len(failed)} task(s) failed")

    return DispatchResult(results=results, phases_run=phases_run, notes=notes)


def _result(st: ScheduledTask, status: Any, message: str, elapsed_s: float = 0.0) -> TaskExecutionResult:
    return TaskExecutionResult(
        task_id=st.id,
        title=st.task.title,
        category=st.task.category,
        phase=st.phase,
        status=status,
        message=message,
        elapsed_s=elapsed_s,
    )
