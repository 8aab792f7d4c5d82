from __future__ import annotations

import asyncio
import json
import logging
import os
from dataclasses import asdict, replace
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.table import Table

from delivery_planner.core.ai.llm import LLMClient
from delivery_planner.core.ai.openai_agents import OpenAIBreakdownClient, build_agents
from delivery_planner.core.breakdown.parse_breakdown import parse_tasks_from_breakdown
from delivery_planner.core.categorize.categorize_tasks import categorize_tasks
from delivery_planner.core.dispatch.dispatch_config import DispatchConfigError, load_or_default
from delivery_planner.core.dispatch.dispatcher import dispatch_plan, dropped_dependencies, filter_tasks
from delivery_planner.core.errors import PlanError, PlanLoadError, TaskValidationError
from delivery_planner.core.graph.phases import assign_phases
from delivery_planner.core.io.load_tasks import dump_tasks_yaml, load_task_file
from delivery_planner.core.model import (
    TASK_PRIORITIES,
    PlanningConstraints,
    Task,
    TaskPlan,
    ValidationIssue,
)
from delivery_planner.core.plan.execution_plan import build_execution_plan
from delivery_planner.core.validate.parse_tasks import parse_constraints, parse_tasks
from delivery_planner.core.validate.validate_tasks import plan_tasks, summarize_plan

app = typer.Typer(add_completion=False, no_args_is_help=True)
console = Console()


@app.callback()
def _callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Delivery planner CLI."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command("validate")
def validate(
    path: str = typer.Argument(..., help="Path to a task file (.yaml/.yml/.json)"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
    team_size: Optional[int] = typer.Option(None, "--team-size", min=1, help="Override constraints.team_size"),
    require_capability: list[str] = typer.Option(
        [], "--require-capability", help="Required capability (repeatable)"
    ),
    constraint: list[str] = typer.Option([], "--constraint", help="Technical constraint (repeatable)"),
) -> None:
    """Validate a task breakdown: dependencies, cycles, coverage."""
    _check_format(format, "E_VALIDATE_UNKNOWN_FORMAT")

    tasks, constraints = _load_or_exit(path, format, "validate")
    constraints = replace(
        constraints,
        required_capabilities=constraints.required_capabilities + list(require_capability),
        technical_constraints=constraints.technical_constraints + list(constraint),
        team_size=team_size or constraints.team_size,
    )

    result = plan_tasks(tasks, constraints)
    report = result.report

    if format == "json":
        _emit_json(
            "validate",
            ok=report.is_valid,
            errors=[_issue_item(i) for i in report.errors],
            exit_code=0 if report.is_valid else 2,
            extra={
                "warnings": [_issue_item(i) for i in report.warnings],
                "summary": {
                    "task_count": report.task_count,
                    "total_hours": report.total_hours,
                    "critical_path": report.critical_path,
                    "critical_path_hours": report.critical_path_hours,
                    "cycles": report.cycles,
                    "recommendations": report.recommendations,
                },
            },
        )

    for issue in report.warnings:
        typer.echo(f"WARN {issue}", err=True)
    if not report.is_valid:
        _print_errors(report.errors)
        raise typer.Exit(code=2)

    typer.echo(summarize_plan(result))
    for rec in report.recommendations:
        typer.echo(f"- {rec}")


@app.command("plan")
def plan(
    path: str = typer.Argument(..., help="Path to a task file (.yaml/.yml/.json)"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
    team_size: Optional[int] = typer.Option(None, "--team-size", min=1, help="Override constraints.team_size"),
) -> None:
    """Print the phased execution plan for a valid task breakdown."""
    _check_format(format, "E_PLAN_UNKNOWN_FORMAT")

    tasks, constraints = _load_or_exit(path, format, "plan")
    if team_size:
        constraints = replace(constraints, team_size=team_size)

    result = plan_tasks(tasks, constraints)
    report = result.report

    if format == "json":
        _emit_json(
            "plan",
            ok=report.is_valid,
            errors=[_issue_item(i) for i in report.errors],
            exit_code=0 if report.is_valid else 2,
            extra={
                "tasks": [st.to_dict() for st in result.scheduled_tasks],
                "execution_plan": asdict(result.execution_plan) if result.execution_plan else None,
                "critical_path": report.critical_path,
            },
        )

    if not report.is_valid:
        _print_errors(report.errors)
        raise typer.Exit(code=2)

    typer.echo(summarize_plan(result))
    _print_schedule(result)


@app.command("categorize")
def categorize(
    path: str = typer.Argument(..., help="Draft tasks file (.yaml/.yml/.json)"),
    out: str = typer.Option(..., "--out", help="Path to write categorized tasks YAML"),
    tech: list[str] = typer.Option([], "--tech", help="Technology stack entry (repeatable)"),
    mode: str = typer.Option("autonomous", "--mode", help="Execution mode label for recommendations"),
) -> None:
    """Infer category, priority and acceptance criteria for draft tasks."""
    try:
        loaded = load_task_file(path)
    except PlanLoadError as e:
        _print_errors([e])
        raise typer.Exit(code=1)

    drafts = loaded["tasks"]
    if not isinstance(drafts, list) or not all(isinstance(d, dict) for d in drafts):
        _print_errors(
            [
                TaskValidationError(
                    code="E_INVALID_TYPE",
                    message="tasks must be an array of objects",
                    file=loaded["__file__"],
                    path="tasks",
                )
            ]
        )
        raise typer.Exit(code=2)

    result = categorize_tasks(drafts, technology_stack=list(tech), execution_mode=mode)
    dump_tasks_yaml([c.task for c in result.tasks], out)

    counts = ", ".join(f"{k}={v}" for k, v in sorted(result.summary.tasks_by_category.items()))
    typer.echo(f"OK: wrote {result.summary.total_tasks} tasks to {out} ({counts})")
    if result.summary.critical_path_tasks:
        typer.echo("Schedule first: " + ", ".join(result.summary.critical_path_tasks))
    for rec in result.recommendations:
        typer.echo(f"- {rec}")


@app.command("parse-breakdown")
def parse_breakdown_cmd(
    path: str = typer.Argument(..., help="Markdown task breakdown"),
    out: str = typer.Option(..., "--out", help="Path to write tasks YAML"),
    default_hours: float = typer.Option(0.0, "--default-hours", min=0.0, help="Estimate for each task"),
) -> None:
    """Split a markdown breakdown (## headings) into tasks."""
    p = Path(path)
    if not p.exists():
        _print_errors([PlanLoadError(code="E_FILE_NOT_FOUND", message="file does not exist", file=str(p))])
        raise typer.Exit(code=1)

    tasks = parse_tasks_from_breakdown(p.read_text(encoding="utf-8"), default_hours=default_hours)
    if not tasks:
        _print_errors(
            [
                TaskValidationError(
                    code="E_BREAKDOWN_EMPTY",
                    message="no task headings found (expected lines starting with ## or **Task)",
                    file=str(p),
                )
            ]
        )
        raise typer.Exit(code=2)

    dump_tasks_yaml(tasks, out)
    typer.echo(f"OK: wrote {len(tasks)} tasks to {out}")


@app.command("breakdown")
def breakdown(
    path: str = typer.Argument(..., help="Business requirements document (markdown/text)"),
    out: str = typer.Option(..., "--out", help="Path to write tasks YAML"),
    model: Optional[str] = typer.Option(None, "--model"),
    project: str = typer.Option("", "--project", help="Project name for context"),
    tech: list[str] = typer.Option([], "--tech", help="Technology stack entry (repeatable)"),
) -> None:
    """AI-assisted breakdown of a requirements document into tasks."""
    p = Path(path)
    if not p.exists():
        _print_errors([PlanLoadError(code="E_FILE_NOT_FOUND", message="file does not exist", file=str(p))])
        raise typer.Exit(code=1)

    if not os.getenv("OPENAI_API_KEY"):
        _print_errors(
            [
                TaskValidationError(
                    code="E_BREAKDOWN_NO_API_KEY",
                    message="OPENAI_API_KEY is not set",
                    path="OPENAI_API_KEY",
                )
            ]
        )
        raise typer.Exit(code=2)

    client = OpenAIBreakdownClient()
    raw_tasks = client.propose_tasks(
        brd=p.read_text(encoding="utf-8"),
        context={"project_name": project, "technology_stack": list(tech)},
        model=model,
    )

    tasks, errors = parse_tasks(raw_tasks, file=str(p))
    if errors:
        _print_errors(errors)
        raise typer.Exit(code=2)

    dump_tasks_yaml(tasks, out)
    report = plan_tasks(tasks).report
    typer.echo(f"OK: wrote {len(tasks)} tasks to {out}")
    if not report.is_valid:
        typer.echo("WARN: breakdown does not validate:", err=True)
        _print_errors(report.errors)
        raise typer.Exit(code=2)


@app.command("run")
def run(
    path: str = typer.Argument(..., help="Path to a task file (.yaml/.yml/.json)"),
    config: Optional[str] = typer.Option(None, "--config", help="Dispatch config YAML"),
    max_concurrent: Optional[int] = typer.Option(None, "--max-concurrent", min=1),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Per-task timeout in seconds"),
    fail_fast: bool = typer.Option(False, "--fail-fast", help="Stop after the first phase with a failure"),
    category: list[str] = typer.Option([], "--category", help="Only run these categories (repeatable)"),
    min_priority: Optional[str] = typer.Option(None, "--min-priority", help="critical|high|medium|low"),
    project: str = typer.Option("", "--project", help="Project name for agent context"),
    tech: list[str] = typer.Option([], "--tech", help="Technology stack entry (repeatable)"),
) -> None:
    """Validate, then dispatch tasks to category agents phase by phase."""
    tasks, constraints = _load_or_exit(path, "text", "run")

    if min_priority is not None and min_priority not in TASK_PRIORITIES:
        _print_errors(
            [
                TaskValidationError(
                    code="E_RUN_UNKNOWN_PRIORITY",
                    message=f"unknown priority: {min_priority} (choose one of: {', '.join(TASK_PRIORITIES)})",
                    path="min_priority",
                )
            ]
        )
        raise typer.Exit(code=2)

    try:
        cfg = load_or_default(config)
    except FileNotFoundError:
        _print_errors(
            [
                PlanLoadError(
                    code="E_CONFIG_FILE_NOT_FOUND",
                    message=f"config file not found: {config}",
                    path="config",
                )
            ]
        )
        raise typer.Exit(code=1)
    except DispatchConfigError as e:
        _print_errors([TaskValidationError(code="E_CONFIG_INVALID", message=str(e), file=config, path="config")])
        raise typer.Exit(code=2)

    if max_concurrent:
        cfg = replace(cfg, max_concurrent=max_concurrent)
    if timeout is not None:
        cfg = replace(cfg, task_timeout_s=timeout if timeout > 0 else None)
    if fail_fast:
        cfg = replace(cfg, failure_policy="fail-fast")

    report = plan_tasks(tasks, constraints).report
    if not report.is_valid:
        _print_errors(report.errors)
        raise typer.Exit(code=2)

    if not os.getenv("OPENAI_API_KEY"):
        _print_errors(
            [
                TaskValidationError(
                    code="E_RUN_NO_API_KEY",
                    message="OPENAI_API_KEY is not set",
                    path="OPENAI_API_KEY",
                )
            ]
        )
        raise typer.Exit(code=2)

    selected = filter_tasks(tasks, categories=category or None, min_priority=min_priority)
    for tid, dep in dropped_dependencies(selected, tasks):
        typer.echo(f"WARN: {tid} depends on {dep}, which is filtered out and will not run", err=True)
    scheduled = assign_phases(selected)
    estimate = build_execution_plan(scheduled, team_size=cfg.team_size)
    typer.echo(
        f"Dispatching {len(scheduled)} tasks in {estimate.total_phases} phases "
        f"(estimated {estimate.estimated_duration} for a team of {cfg.team_size})"
    )
    context: dict[str, Any] = {"project_name": project, "technology_stack": list(tech)}

    llm = LLMClient()
    result = asyncio.run(dispatch_plan(scheduled, build_agents(llm), context=context, config=cfg))

    table = Table(title="delivery-planner run")
    table.add_column("Phase")
    table.add_column("Task")
    table.add_column("Category")
    table.add_column("Status")
    table.add_column("Sec")
    table.add_column("Message")
    for r in result.results:
        table.add_row(str(r.phase), r.task_id, r.category, r.status, f"{r.elapsed_s:.1f}", r.message)
    console.print(table)
    for note in result.notes:
        typer.echo(f"NOTE: {note}", err=True)

    done = len(result.by_status("completed"))
    typer.echo(f"{done}/{len(result.results)} tasks completed in {result.phases_run} phases")
    typer.echo(llm.usage.summary())
    if not result.ok:
        raise typer.Exit(code=2)


def _check_format(format: str, code: str) -> None:
    if format not in ("text", "json"):
        err = TaskValidationError(
            code=code,
            message=f"unknown format: {format} (choose one of: text, json)",
            file=None,
            path="format",
        )
        _print_errors([err])
        raise typer.Exit(code=2)


def _load_or_exit(path: str, format: str, command: str) -> tuple[list[Task], PlanningConstraints]:
    try:
        loaded = load_task_file(path)
    except PlanLoadError as e:
        if format == "json":
            _emit_json(command, ok=False, errors=[_error_item(e)], exit_code=1)
        _print_errors([e])
        raise typer.Exit(code=1)

    file = loaded["__file__"]
    tasks, task_errors = parse_tasks(loaded["tasks"], file=file)
    constraints, constraint_errors = parse_constraints(loaded["constraints"], file=file)
    errors = task_errors + constraint_errors
    if errors:
        if format == "json":
            _emit_json(command, ok=False, errors=[_error_item(e) for e in errors], exit_code=2)
        _print_errors(errors)
        raise typer.Exit(code=2)
    return tasks, constraints


def _error_item(e: PlanError) -> dict:
    source = "load" if isinstance(e, PlanLoadError) else "parse"
    return {
        "code": e.code,
        "message": e.message,
        "file": e.file,
        "path": e.path,
        "severity": "error",
        "source": source,
    }


def _issue_item(i: ValidationIssue) -> dict:
    return {
        "code": i.code,
        "message": i.message,
        "task_id": i.task_id,
        "suggestion": i.suggestion,
        "severity": i.severity,
        "source": "validate",
    }


def _emit_json(
    command: str,
    *,
    ok: bool,
    errors: list[dict],
    exit_code: int,
    extra: Optional[dict] = None,
) -> None:
    payload: dict[str, Any] = {
        "tool": "delivery-planner",
        "command": command,
        "ok": ok,
        "error_count": len(errors),
        "errors": errors,
    }
    payload.update(extra or {})
    typer.echo(json.dumps(payload, indent=2, sort_keys=True))
    raise typer.Exit(code=exit_code)


def _print_schedule(result: TaskPlan) -> None:
    table = Table(title="Schedule")
    table.add_column("Phase")
    table.add_column("Task")
    table.add_column("Category")
    table.add_column("Priority")
    table.add_column("Hours")
    table.add_column("Parallel")
    for st in sorted(result.scheduled_tasks, key=lambda s: s.phase):
        table.add_row(
            str(st.phase),
            st.id,
            st.task.category,
            st.task.priority,
            f"{st.task.estimated_hours:g}",
            "yes" if st.can_start_in_parallel else "no",
        )
    console.print(table)


def _print_errors(errors: list) -> None:
    for e in errors:
        typer.echo(str(e), err=True)


def main() -> None:
    app(prog_name="delivery-planner")


cli = typer.main.get_command(app)

if __name__ == "__main__":
    main()
