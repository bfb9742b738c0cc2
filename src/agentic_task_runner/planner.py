"""Plan requests: ask the oracle for the next batch of shell commands."""

from agentic_task_runner.execution_state import ExecutionState
from agentic_task_runner.oracle import Oracle


def build_plan_prompt(task: str, state: ExecutionState) -> str:
    """Embed the task and everything already done into a planning prompt."""
    executed = "\n".join(state.executed_commands) or "(none)"
    return f"""Current directory: {state.current_directory}
Project root: {state.project_root or "unknown"}
Executed commands:
{executed}

Give the next set of bash commands only (no long-running dev servers).
Skip commands already run.

Task: {task}"""


def request_plan(oracle: Oracle, task: str, state: ExecutionState) -> str:
    """
    Get plan text for `task` given the current state.
    
    Raises:
        OracleError: if the planning call fails or returns nothing
    """
    return oracle.plan(build_plan_prompt(task, state))
