"""Tests for the session driver: attempts, feedback, exit and abort."""

import pytest

from agentic_task_runner.model_client import ModelClientError
from agentic_task_runner.session import (
    ABORTED,
    EXHAUSTED,
    EXIT,
    SUCCESS,
    Operator,
    append_feedback,
    run_session,
)

from conftest import py_cmd


FAIL_PLAN = py_cmd("import sys; sys.exit(1)")
OK_PLAN = py_cmd("print('ok')")


class FakeOperator(Operator):
    """Scripted operator answers."""

    def __init__(self, task="build it", confirm=True, feedback=None):
        self.task = task
        self.confirm = confirm
        self.feedback = list(feedback or [])
        self.plans_seen = []
        self.feedback_asked = 0

    def ask_task(self):
        return self.task

    def confirm_plan(self, plan):
        self.plans_seen.append(plan)
        return self.confirm

    def ask_feedback(self, result):
        self.feedback_asked += 1
        return self.feedback.pop(0) if self.feedback else ""


class TestExitSentinel:

    @pytest.mark.parametrize("task", ["exit", "EXIT", "Exit", "  exit  "])
    def test_exit_before_any_oracle_call(self, oracle, client, state, task):
        result = run_session(oracle, FakeOperator(task=task), state=state)
        assert result.outcome == EXIT
        assert result.exit_code == 0
        assert client.calls == []

    def test_exit_inside_a_sentence_is_a_task(self, oracle, client, state):
        client.responses = [OK_PLAN]
        result = run_session(oracle, FakeOperator(task="exit the vim tutorial"), state=state)
        assert result.outcome == SUCCESS


class TestAttempts:

    def test_success_on_first_attempt(self, oracle, client, state):
        client.responses = [OK_PLAN]
        operator = FakeOperator()
        
        result = run_session(oracle, operator, state=state)
        
        assert result.outcome == SUCCESS
        assert result.exit_code == 0
        assert result.attempts == 1
        assert state.executed_commands == [OK_PLAN]
        assert operator.feedback_asked == 0

    def test_ceiling_stops_without_fourth_plan(self, oracle, client, state):
        client.responses = [FAIL_PLAN] * 4
        operator = FakeOperator(feedback=["one", "two", "three"])
        
        result = run_session(oracle, operator, state=state)
        
        assert result.outcome == EXHAUSTED
        assert result.exit_code != 0
        assert result.attempts == 3
        assert len(client.calls) == 3
        assert operator.feedback_asked == 3
        assert result.task == "build it\nError: one\nError: two\nError: three"

    def test_feedback_reaches_next_plan_prompt(self, oracle, client, state):
        client.responses = [FAIL_PLAN, OK_PLAN]
        operator = FakeOperator(feedback=["missing dependency"])
        
        result = run_session(oracle, operator, state=state)
        
        assert result.outcome == SUCCESS
        assert result.attempts == 2
        assert "Error: missing dependency" in client.prompts[1]
        assert "Error:" not in client.prompts[0]

    def test_empty_feedback_falls_back_to_diagnostic(self, oracle, client, state):
        client.responses = [py_cmd("import sys; sys.stderr.write('no such module'); sys.exit(1)"), OK_PLAN]
        result = run_session(oracle, FakeOperator(feedback=[""]), state=state)
        assert result.outcome == SUCCESS
        assert "Error: no such module" in result.task

    def test_plan_prompt_carries_state(self, oracle, client, state):
        state.executed_commands = ["npm init -y"]
        client.responses = [OK_PLAN]
        run_session(oracle, FakeOperator(), state=state)
        prompt = client.prompts[0]
        assert state.current_directory in prompt
        assert "npm init -y" in prompt
        assert "Project root: unknown" in prompt

    def test_planning_failure_uses_an_attempt(self, oracle, client, state):
        client.responses = [ModelClientError("API error: overloaded"), OK_PLAN]
        result = run_session(oracle, FakeOperator(feedback=["retry"]), state=state)
        assert result.outcome == SUCCESS
        assert result.attempts == 2

    def test_custom_ceiling(self, oracle, client, state):
        client.responses = [FAIL_PLAN]
        result = run_session(oracle, FakeOperator(), state=state, max_attempts=1)
        assert result.outcome == EXHAUSTED
        assert len(client.calls) == 1


class TestAbort:

    def test_declined_plan_aborts_without_retry(self, oracle, client, state):
        client.responses = [OK_PLAN, OK_PLAN]
        operator = FakeOperator(confirm=False)
        
        result = run_session(oracle, operator, state=state)
        
        assert result.outcome == ABORTED
        assert result.exit_code == 2
        assert len(client.calls) == 1
        assert state.executed_commands == []
        assert operator.feedback_asked == 0


def test_append_feedback_accumulates():
    task = append_feedback(append_feedback("goal", "a"), "b")
    assert task == "goal\nError: a\nError: b"
