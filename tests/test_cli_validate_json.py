import json

from typer.testing import CliRunner

from delivery_planner.cli import app

runner = CliRunner()


def test_cli_validate_json_success():
    r = runner.invoke(app, ["validate", "examples/basic-tasks.yaml", "--format", "json"])
    assert r.exit_code == 0
    payload = json.loads(r.stdout)
    assert payload["tool"] == "delivery-planner"
    assert payload["command"] == "validate"
    assert payload["ok"] is True
    assert payload["error_count"] == 0
    assert payload["errors"] == []
    assert payload["summary"]["task_count"] == 5
    assert payload["summary"]["total_hours"] == 23
    assert payload["summary"]["critical_path"] == ["design-1", "backend-1", "testing-1"]
    assert payload["summary"]["cycles"] == []


def test_cli_validate_json_failure_contains_codes():
    r = runner.invoke(app, ["validate", "examples/invalid-unknown-dep.yaml", "--format", "json"])
    assert r.exit_code == 2
    payload = json.loads(r.stdout)
    assert payload["ok"] is False
    codes = {e["code"] for e in payload["errors"]}
    assert "E_UNKNOWN_DEPENDENCY" in codes
    assert all(e["source"] == "validate" for e in payload["errors"])


def test_cli_validate_json_cycle_lists_cycle():
    r = runner.invoke(app, ["validate", "examples/invalid-cycle.yaml", "--format", "json"])
    assert r.exit_code == 2
    payload = json.loads(r.stdout)
    assert len(payload["summary"]["cycles"]) == 1
    assert payload["summary"]["critical_path"] == []


def test_cli_validate_json_parse_errors():
    r = runner.invoke(app, ["validate", "examples/invalid-bad-type.json", "--format", "json"])
    assert r.exit_code == 2
    payload = json.loads(r.stdout)
    assert payload["error_count"] == 3
    assert {e["source"] for e in payload["errors"]} == {"parse"}


def test_cli_validate_json_missing_file():
    r = runner.invoke(app, ["validate", "examples/nope.yaml", "--format", "json"])
    assert r.exit_code == 1
    payload = json.loads(r.stdout)
    assert payload["errors"][0]["code"] == "E_FILE_NOT_FOUND"
    assert payload["errors"][0]["source"] == "load"
