from delivery_planner.core.model import PlanningConstraints, Task
from delivery_planner.core.validate.validate_tasks import (
    missing_capabilities,
    plan_tasks,
    summarize_plan,
    validate_tasks,
)


def _task(tid, deps=(), hours=1, category="backend", title=None, description="", criteria=("done",), **kw):
    return Task(
        id=tid,
        title=title or f"Task {tid}",
        description=description,
        category=category,
        priority="medium",
        estimated_hours=hours,
        dependencies=list(deps),
        acceptance_criteria=list(criteria),
        **kw,
    )


def _codes(report):
    return [i.code for i in report.issues]


def test_three_task_scenario_is_valid():
    tasks = [_task("A", hours=2), _task("B", ["A"], hours=3), _task("C", ["A"], hours=1)]
    report = validate_tasks(tasks)

    assert report.is_valid is True
    assert report.errors == []
    assert report.total_hours == 6
    assert report.critical_path == ["A", "B"]
    assert report.critical_path_hours == 5
    assert report.task_count == 3


def test_dangling_dependency_is_an_error_with_both_ids():
    report = validate_tasks([_task("Z", ["ghost"], title="Wire notifications")])

    assert report.is_valid is False
    [err] = report.errors
    assert err.code == "E_UNKNOWN_DEPENDENCY"
    assert err.task_id == "Z"
    assert '"Z"' in err.message and '"ghost"' in err.message
    assert err.suggestion


def test_cycle_is_reported_and_no_critical_path():
    report = validate_tasks([_task("X", ["Y"]), _task("Y", ["X"])])

    assert report.is_valid is False
    assert "E_CYCLE_DETECTED" in _codes(report)
    assert len(report.cycles) == 1
    assert set(report.cycles[0]) == {"X", "Y"}
    assert report.critical_path == []
    assert report.critical_path_hours == 0


def test_duplicate_ids_are_errors():
    report = validate_tasks([_task("A"), _task("A", hours=5)])
    assert report.is_valid is False
    assert _codes(report).count("E_DUPLICATE_ID") == 1


def test_missing_acceptance_criteria_is_only_a_warning():
    report = validate_tasks([_task("A", criteria=())])
    assert report.is_valid is True
    assert [w.code for w in report.warnings] == ["W_MISSING_ACCEPTANCE_CRITERIA"]


def test_constraint_mention_warns():
    tasks = [_task("A", title="Migrate to MongoDB", description="")]
    report = validate_tasks(tasks, PlanningConstraints(technical_constraints=["mongodb"]))
    assert report.is_valid is True
    assert "W_CONSTRAINT_CONFLICT" in _codes(report)


def test_missing_capability_warns_once_with_all_names():
    tasks = [_task("A", title="Build payments API")]
    constraints = PlanningConstraints(required_capabilities=["API", "Search", "Export"])
    report = validate_tasks(tasks, constraints)

    [w] = [i for i in report.issues if i.code == "W_MISSING_CAPABILITY"]
    assert "Search" in w.message and "Export" in w.message
    assert "API" not in w.message.split(":", 1)[1]
    assert w.task_id is None
    assert missing_capabilities(tasks, ["api"]) == []


def test_validity_ignores_warnings():
    tasks = [_task("A", criteria=()), _task("B", ["A"], criteria=())]
    report = validate_tasks(tasks, PlanningConstraints(required_capabilities=["GraphQL"]))
    assert report.warnings
    assert report.is_valid is True


def test_recommendations():
    tasks = [
        _task("big", hours=20, category="backend", skill_level="senior"),
        _task("ui", hours=2, category="frontend", skill_level="senior"),
        _task("api", hours=2, category="backend", skill_level="junior"),
    ]
    recs = validate_tasks(tasks).recommendations

    assert any("1 large tasks" in r for r in recs)
    assert any("junior/mid-level" in r for r in recs)
    assert any("3 tasks can be started in parallel" in r for r in recs)
    assert any("testing tasks" in r for r in recs)
    assert any("documentation tasks" in r for r in recs)


def test_plan_tasks_builds_schedule_and_plan():
    tasks = [_task("A", hours=2), _task("B", ["A"], hours=3), _task("C", ["A"], hours=1)]
    result = plan_tasks(tasks, PlanningConstraints(team_size=1))

    assert [st.phase for st in result.scheduled_tasks] == [1, 2, 2]
    assert result.execution_plan is not None
    assert result.execution_plan.total_phases == 2
    assert result.execution_plan.total_hours == 5


def test_plan_tasks_with_cycle_does_not_raise():
    result = plan_tasks([_task("X", ["Y"]), _task("Y", ["X"])])
    assert result.report.is_valid is False
    assert result.scheduled_tasks == []
    assert result.execution_plan is None


def test_plan_tasks_schedules_around_dangling_dependency():
    result = plan_tasks([_task("Z", ["ghost"])])
    assert result.report.is_valid is False
    assert [st.phase for st in result.scheduled_tasks] == [1]


def test_summarize_plan():
    tasks = [_task("A", hours=2), _task("B", ["A"], hours=3), _task("C", ["A"], hours=1)]
    text = summarize_plan(plan_tasks(tasks))

    lines = text.splitlines()
    assert lines[0] == "OK: 3 tasks, 0 errors, 0 warnings"
    assert "Total hours: 6" in lines
    assert "Critical path: A -> B (5h)" in lines
    assert "Phases: 2 (estimated 1 days)" in lines


def test_non_finite_estimate_is_reported_not_raised():
    tasks = [_task("A", hours=2), _task("B", ["A"], hours=float("nan")), _task("C", ["A"], hours=float("inf"))]
    result = plan_tasks(tasks)

    bad = [i for i in result.report.errors if i.code == "E_INVALID_ESTIMATE"]
    assert [i.task_id for i in bad] == ["B", "C"]
    assert result.report.is_valid is False
    assert result.report.total_hours == 2
    assert result.report.critical_path == []
    assert [st.phase for st in result.scheduled_tasks] == [1, 2, 2]
    assert result.execution_plan is None


def test_invalid_team_size_is_reported_not_raised():
    tasks = [_task("A", hours=2), _task("B", ["A"], hours=3)]
    result = plan_tasks(tasks, PlanningConstraints(team_size=0))

    assert [i.code for i in result.report.errors] == ["E_INVALID_TEAM_SIZE"]
    assert result.report.is_valid is False
    assert result.report.critical_path == ["A", "B"]
    assert result.execution_plan is None
    assert "Phases:" not in summarize_plan(result)
