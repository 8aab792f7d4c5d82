from typer.testing import CliRunner

import delivery_planner.cli as cli_mod
from delivery_planner.cli import app
from delivery_planner.core.dispatch.contracts import Artifact
from delivery_planner.core.model import TASK_CATEGORIES

runner = CliRunner()


class FakeAgent:
    def __init__(self, fail=()):
        self.fail = set(fail)
        self.seen = []

    async def run(self, task, *, context):
        self.seen.append(task.id)
        if task.id in self.fail:
            raise RuntimeError("agent error")
        return Artifact(type="doc", content="ok", format="markdown")


def _patch_agents(monkeypatch, agent):
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")
    monkeypatch.setattr(cli_mod, "build_agents", lambda llm=None: {c: agent for c in TASK_CATEGORIES})


def test_cli_run_requires_api_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    r = runner.invoke(app, ["run", "examples/basic-tasks.yaml"])
    assert r.exit_code == 2
    assert "E_RUN_NO_API_KEY" in r.output


def test_cli_run_rejects_invalid_plan_first(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    r = runner.invoke(app, ["run", "examples/invalid-cycle.yaml"])
    assert r.exit_code == 2
    assert "E_CYCLE_DETECTED" in r.output
    assert "E_RUN_NO_API_KEY" not in r.output


def test_cli_run_dispatches_all_phases(monkeypatch):
    agent = FakeAgent()
    _patch_agents(monkeypatch, agent)
    r = runner.invoke(app, ["run", "examples/basic-tasks.yaml"])
    assert r.exit_code == 0
    assert "5/5 tasks completed in 3 phases" in r.stdout
    assert "LLM usage: 0 calls, 0 input / 0 output tokens" in r.stdout
    assert agent.seen[0] == "design-1"
    assert set(agent.seen[-2:]) == {"testing-1", "documentation-1"}


def test_cli_run_fail_fast_from_config(monkeypatch):
    agent = FakeAgent(fail={"backend-1"})
    _patch_agents(monkeypatch, agent)
    r = runner.invoke(app, ["run", "examples/basic-tasks.yaml", "--config", "examples/dispatch.yaml"])
    assert r.exit_code == 2
    assert "2/5 tasks completed in 2 phases" in r.output
    assert "halted after phase 2" in r.output
    assert "Dispatching 5 tasks in 3 phases (estimated 1 days for a team of 2)" in r.output
    assert "testing-1" not in agent.seen


def test_cli_run_filters_categories(monkeypatch):
    agent = FakeAgent()
    _patch_agents(monkeypatch, agent)
    r = runner.invoke(app, ["run", "examples/basic-tasks.yaml", "--category", "backend", "--category", "design"])
    assert r.exit_code == 0
    assert sorted(agent.seen) == ["backend-1", "design-1"]
    assert "2/2 tasks completed in 2 phases" in r.stdout


def test_cli_run_unknown_priority(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")
    r = runner.invoke(app, ["run", "examples/basic-tasks.yaml", "--min-priority", "asap"])
    assert r.exit_code == 2
    assert "E_RUN_UNKNOWN_PRIORITY" in r.output


def test_cli_run_missing_config(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")
    r = runner.invoke(app, ["run", "examples/basic-tasks.yaml", "--config", "examples/nope.yaml"])
    assert r.exit_code == 1
    assert "E_CONFIG_FILE_NOT_FOUND" in r.output


def test_cli_run_warns_about_filtered_dependencies(monkeypatch):
    agent = FakeAgent()
    _patch_agents(monkeypatch, agent)
    r = runner.invoke(app, ["run", "examples/basic-tasks.yaml", "--category", "frontend"])
    assert r.exit_code == 0
    assert "WARN: frontend-1 depends on design-1, which is filtered out" in r.output
    assert agent.seen == ["frontend-1"]
