"""Tests for step definition loading and the exec runner."""

from pathlib import Path

import pytest

from agentic_task_runner.step_runner import load_step_definition, run_step


class TestLoadStepDefinition:

    def test_yaml_paths_resolve_against_step_file(self, tmp_path):
        step = tmp_path / "step.yaml"
        step.write_text("file_path: scripts/job.py\ntask: print a report\nmax_repairs: 2\n")
        
        data = load_step_definition(step)
        
        assert data["file_path"] == str((tmp_path / "scripts" / "job.py").resolve())
        assert data["cwd"] == str((tmp_path / "scripts").resolve())
        assert data["max_repairs"] == 2

    def test_json(self, tmp_path):
        step = tmp_path / "step.json"
        step.write_text('{"file_path": "job.py", "task": "t", "cwd": "."}')
        assert load_step_definition(step)["cwd"] == str(tmp_path.resolve())

    def test_missing_task(self, tmp_path):
        step = tmp_path / "step.yaml"
        step.write_text("file_path: job.py\n")
        with pytest.raises(ValueError, match="task"):
            load_step_definition(step)

    def test_unsupported_suffix(self, tmp_path):
        step = tmp_path / "step.toml"
        step.write_text("")
        with pytest.raises(ValueError, match="Unsupported"):
            load_step_definition(step)


class TestRunStep:

    def test_repairs_existing_file(self, tmp_path, oracle, client):
        (tmp_path / "job.py").write_text("raise SystemExit(5)")
        step = tmp_path / "step.yaml"
        step.write_text("file_path: job.py\ntask: print done\n")
        client.responses = ["print('done')"]
        
        state = run_step(step, oracle, use_graph=False)
        
        assert state.status == "SUCCESS"
        assert state.repairs == 1
        assert (tmp_path / "job.py").read_text() == "print('done')"

    def test_gave_up_is_returned_not_raised(self, tmp_path, oracle, client):
        (tmp_path / "job.py").write_text("raise SystemExit(5)")
        step = tmp_path / "step.yaml"
        step.write_text("file_path: job.py\ntask: t\nmax_repairs: 1\n")
        client.responses = ["raise SystemExit(5)"]
        
        state = run_step(step, oracle, use_graph=False)
        
        assert state.status == "GAVE_UP"


class TestMaxRepairsValidation:

    @pytest.mark.parametrize("value", ["'three'", "-1", "1.5", "true"])
    def test_rejected(self, tmp_path, value):
        step = tmp_path / "step.yaml"
        step.write_text(f"file_path: job.py\ntask: t\nmax_repairs: {value}\n")
        with pytest.raises(ValueError, match="max_repairs"):
            load_step_definition(step)

    def test_zero_means_run_once(self, tmp_path):
        step = tmp_path / "step.yaml"
        step.write_text("file_path: job.py\ntask: t\nmax_repairs: 0\n")
        assert load_step_definition(step)["max_repairs"] == 0

    def test_defaults_when_absent(self, tmp_path):
        step = tmp_path / "step.yaml"
        step.write_text("file_path: job.py\ntask: t\n")
        assert load_step_definition(step)["max_repairs"] == 3
