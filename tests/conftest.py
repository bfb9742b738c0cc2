"""Shared fixtures: a scripted model client and an oracle around it."""

import sys

import pytest

from agentic_task_runner.execution_state import ExecutionState
from agentic_task_runner.model_client import CompletionResult, ModelClient
from agentic_task_runner.oracle import Oracle


PY = sys.executable


def py_cmd(code: str) -> str:
    """Shell command line running `code` with the current interpreter."""
    return f'"{PY}" -c "{code}"'


class ScriptedClient(ModelClient):
    """Returns canned responses in order and records every call."""

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.calls = []

    def complete(self, messages, model, timeout=30.0, max_tokens=None):
        self.calls.append({"messages": messages, "model": model, "max_tokens": max_tokens})
        if not self.responses:
            raise AssertionError("ScriptedClient ran out of responses")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return CompletionResult(content=response, model=model)

    @property
    def prompts(self):
        return [call["messages"][-1].content for call in self.calls]


@pytest.fixture
def client():
    return ScriptedClient()


@pytest.fixture
def oracle(client):
    return Oracle(client=client, planner_model="test/planner", coder_model="test/coder")


@pytest.fixture
def state(tmp_path):
    return ExecutionState(current_directory=str(tmp_path))
