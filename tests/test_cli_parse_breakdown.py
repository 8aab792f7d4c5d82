from typer.testing import CliRunner

from delivery_planner.cli import app
from delivery_planner.core.io.load_tasks import load_task_file

runner = CliRunner()


def test_cli_parse_breakdown(tmp_path):
    out = tmp_path / "tasks.yaml"
    r = runner.invoke(
        app,
        ["parse-breakdown", "examples/breakdown.md", "--out", str(out), "--default-hours", "2"],
    )
    assert r.exit_code == 0
    assert "OK: wrote 4 tasks" in r.stdout

    raw = load_task_file(str(out))["tasks"]
    assert [t["id"] for t in raw] == ["task-1", "task-2", "task-3", "task-4"]
    assert raw[0]["estimated_hours"] == 2


def test_cli_parse_breakdown_without_headings(tmp_path):
    src = tmp_path / "notes.md"
    src.write_text("no headings here\n", encoding="utf-8")
    r = runner.invoke(app, ["parse-breakdown", str(src), "--out", str(tmp_path / "out.yaml")])
    assert r.exit_code == 2
    assert "E_BREAKDOWN_EMPTY" in r.output


def test_cli_parse_breakdown_missing_file(tmp_path):
    r = runner.invoke(app, ["parse-breakdown", "examples/nope.md", "--out", str(tmp_path / "out.yaml")])
    assert r.exit_code == 1
    assert "E_FILE_NOT_FOUND" in r.output
