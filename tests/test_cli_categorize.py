from typer.testing import CliRunner

from delivery_planner.cli import app
from delivery_planner.core.io.load_tasks import load_task_file
from delivery_planner.core.validate.parse_tasks import parse_tasks

runner = CliRunner()


def test_cli_categorize_writes_valid_tasks(tmp_path):
    out = tmp_path / "categorized.yaml"
    r = runner.invoke(
        app,
        ["categorize", "examples/draft-tasks.yaml", "--out", str(out), "--tech", "Docker"],
    )
    assert r.exit_code == 0
    assert "OK: wrote 4 tasks" in r.stdout
    assert "backend=1" in r.stdout
    assert "Schedule first: backend-2" in r.stdout

    tasks, errors = parse_tasks(load_task_file(str(out))["tasks"])
    assert errors == []
    assert [t.id for t in tasks] == ["design-1", "backend-2", "devops-3", "documentation-4"]
    assert all(t.acceptance_criteria for t in tasks)


def test_cli_categorize_then_validate(tmp_path):
    out = tmp_path / "categorized.yaml"
    assert runner.invoke(app, ["categorize", "examples/draft-tasks.yaml", "--out", str(out)]).exit_code == 0
    r = runner.invoke(app, ["validate", str(out)])
    assert r.exit_code == 0


def test_cli_categorize_missing_file(tmp_path):
    r = runner.invoke(app, ["categorize", "examples/nope.yaml", "--out", str(tmp_path / "x.yaml")])
    assert r.exit_code == 1
    assert "E_FILE_NOT_FOUND" in r.output
