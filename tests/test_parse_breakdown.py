from pathlib import Path

from delivery_planner.core.breakdown.parse_breakdown import DEFAULT_CRITERIA, parse_tasks_from_breakdown


def test_parse_example_breakdown():
    text = Path("examples/breakdown.md").read_text(encoding="utf-8")
    tasks = parse_tasks_from_breakdown(text, default_hours=3)

    assert [t.id for t in tasks] == ["task-1", "task-2", "task-3", "task-4"]
    assert [t.category for t in tasks] == ["design", "backend", "testing", "documentation"]

    first = tasks[0]
    assert first.title == "Design: Critical onboarding UI"
    assert first.description == "Wireframes for the onboarding flow. Include mobile layouts."
    assert first.priority == "critical"
    assert first.estimated_hours == 3

    assert tasks[2].title == "Task 3: Simple test cases for profiles"
    assert tasks[2].complexity == "simple"
    assert tasks[3].description == ""
    assert all(t.dependencies == [] for t in tasks)
    assert all(t.acceptance_criteria == DEFAULT_CRITERIA for t in tasks)


def test_text_before_first_heading_is_ignored():
    tasks = parse_tasks_from_breakdown("intro line\n\n## Build API\nbody\n")
    assert len(tasks) == 1
    assert tasks[0].description == "body"


def test_no_headings():
    assert parse_tasks_from_breakdown("just prose\nmore prose\n") == []
