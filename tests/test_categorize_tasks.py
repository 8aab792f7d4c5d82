from delivery_planner.core.categorize.categorize_tasks import (
    categorize_tasks,
    infer_category,
    infer_complexity,
    infer_priority,
    is_parallelizable,
)
from delivery_planner.core.io.load_tasks import load_task_file


def _drafts():
    return load_task_file("examples/draft-tasks.yaml")["tasks"]


def test_ids_follow_category_and_position():
    result = categorize_tasks(_drafts())
    assert [c.task.id for c in result.tasks] == [
        "design-1",
        "backend-2",
        "devops-3",
        "documentation-4",
    ]


def test_inferred_fields():
    by_id = {c.task.id: c for c in categorize_tasks(_drafts()).tasks}

    design = by_id["design-1"]
    assert design.task.complexity == "simple"
    assert design.task.estimated_hours == 2
    assert design.task.ai_capability == "analysis"
    assert design.parallelizable is True

    backend = by_id["backend-2"]
    assert backend.task.priority == "high"
    assert backend.task.ai_capability == "code-generation"
    assert backend.task.estimated_hours == 4
    assert backend.parallelizable is False
    assert "API endpoints return correct responses" in backend.task.acceptance_criteria

    assert by_id["devops-3"].task.ai_capability == "deployment"


def test_explicit_values_win():
    drafts = [
        {
            "title": "Design the dashboard",
            "category": "frontend",
            "priority": "low",
            "complexity": "complex",
            "estimated_hours": 12,
        }
    ]
    [c] = categorize_tasks(drafts).tasks
    assert c.task.id == "frontend-1"
    assert c.task.priority == "low"
    assert c.task.complexity == "complex"
    assert c.task.estimated_hours == 12


def test_invalid_explicit_values_are_inferred():
    [c] = categorize_tasks([{"title": "Deploy service", "category": "ops", "priority": "p0"}]).tasks
    assert c.task.category == "backend"
    assert c.task.priority == "medium"


def test_summary_and_recommendations():
    result = categorize_tasks(_drafts(), technology_stack=["Docker"], execution_mode="supervised")

    assert result.summary.total_tasks == 4
    assert result.summary.tasks_by_category == {
        "design": 1,
        "backend": 1,
        "devops": 1,
        "documentation": 1,
    }
    assert result.summary.parallelizable_tasks == ["design-1", "documentation-4"]
    assert result.recommendations[0] == "Total tasks identified: 4 for supervised execution"
    assert "1 tasks require code generation capabilities" in result.recommendations
    assert all("Docker" in c.technical_specs for c in result.tasks)


def test_keyword_helpers():
    assert infer_category("Set up webhook sync", "") == "integration"
    assert infer_category("Something else entirely", "") == "backend"
    assert infer_complexity("Multi-region system", "") == "complex"
    assert infer_priority("Fix security hole", "") == "critical"
    assert infer_priority("Optional polish", "") == "low"
    assert is_parallelizable("Write component styles after login", "", "frontend") is False


def test_critical_path_tasks_in_summary():
    drafts = _drafts() + [{"title": "Write README section", "dependencies": ["backend-2"]}]
    summary = categorize_tasks(drafts).summary
    assert summary.critical_path_tasks == ["backend-2", "documentation-5"]


def test_non_finite_hours_fall_back_to_complexity():
    [c] = categorize_tasks([{"title": "Simple UI tweak", "estimated_hours": float("nan")}]).tasks
    assert c.task.estimated_hours == 2
