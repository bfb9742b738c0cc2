"""Run a generated artifact and repair it with the code oracle until it works.

    RUNNING -> SUCCESS                       (exit 0)
            -> FAILED -> repair -> RUNNING   (while repairs < max_repairs)
            -> FAILED -> GAVE_UP             (repair budget spent)
    static assets (no interpreter) -> SKIPPED
"""

import os
from pathlib import Path
from typing import List, Optional

import click

from agentic_task_runner.artifact_generator import write_code_to_file
from agentic_task_runner.constants import DEFAULT_ARTIFACT_TIMEOUT_S, INTERPRETERS
from agentic_task_runner.execution_state import ArtifactState
from agentic_task_runner.oracle import Oracle
from agentic_task_runner.shell import run_process


class ArtifactRuntimeFailure(Exception):
    """A generated artifact still fails after the repair budget is spent."""

    kind = "ARTIFACT"

    def __init__(self, state: ArtifactState):
        self.state = state
        super().__init__(
            f"{state.file_path} still failing after {state.repairs} repair(s):\n{state.diagnostic}"
        )


def interpreter_for(file_path: str) -> Optional[List[str]]:
    """argv prefix that runs `file_path`, or None for a static asset."""
    interpreter = INTERPRETERS.get(Path(file_path).suffix.lower())
    return list(interpreter) if interpreter else None


def is_runnable(file_path: str) -> bool:
    return interpreter_for(file_path) is not None


def build_repair_prompt(code: str, diagnostic: str, task: str, file_path: str) -> str:
    return f"""The file {os.path.basename(file_path)} failed when run.

CODE:
{code}

ERROR:
{diagnostic}

Fix it so it works for the task: {task}
Return ONLY the fixed code - no markdown, no explanation, no triple backticks."""


def execution_node(state: ArtifactState, timeout: float = DEFAULT_ARTIFACT_TIMEOUT_S) -> ArtifactState:
    """
    Run the file at state.file_path with the interpreter for its extension.
    
    Sets status to SUCCESS on exit 0, FAILED otherwise, SKIPPED when the
    file is not runnable. Never raises.
    """
    interpreter = interpreter_for(state.file_path)
    if interpreter is None:
        state.status = "SKIPPED"
        return state
    
    state.status = "RUNNING"
    result = run_process(
        interpreter + [state.file_path],
        cwd=state.cwd,
        timeout=timeout,
    )
    state.last_stdout = result.stdout
    state.last_stderr = result.stderr
    state.exit_code = result.exit_code
    
    if result.timed_out:
        state.last_stderr = (result.stderr or "") + f"\nExecution timed out after {timeout} seconds"
    elif result.spawn_error:
        state.last_stderr = result.spawn_error
    
    state.status = "SUCCESS" if result.ok else "FAILED"
    return state


def repair_node(state: ArtifactState, oracle: Oracle) -> ArtifactState:
    """
    Replace the failing file with the oracle's fix.
    
    Only acts when state.status == FAILED and repairs remain; marks GAVE_UP
    when they do not. Overwrites the file in full and increments repairs.
    Does NOT re-execute.
    
    Raises:
        OracleError: if the repair call fails
    """
    if state.status != "FAILED":
        return state
    
    if state.repairs >= state.max_repairs:
        state.status = "GAVE_UP"
        return state
    
    current_contents = Path(state.file_path).read_text(encoding="utf-8")
    prompt = build_repair_prompt(current_contents, state.diagnostic, state.task, state.file_path)
    fixed_code = oracle.generate(prompt, purpose="repair")
    
    write_code_to_file(state.file_path, fixed_code)
    state.repairs += 1
    return state


def report_node(state: ArtifactState) -> None:
    """Echo what the last run produced."""
    if state.status == "SUCCESS":
        if state.last_stdout:
            click.echo(state.last_stdout.rstrip())
        if state.last_stderr:
            click.echo(state.last_stderr.rstrip(), err=True)
    elif state.status == "FAILED":
        click.echo(f"Runtime error in {state.file_path}:\n{state.diagnostic}", err=True)
    elif state.status == "SKIPPED":
        click.echo(f"Static asset, not run: {state.file_path}")


def run_validation_loop(
    state: ArtifactState,
    oracle: Oracle,
    timeout: float = DEFAULT_ARTIFACT_TIMEOUT_S,
) -> ArtifactState:
    """
    Run, and on failure repair and re-run, until the file works or the
    repair budget runs out. Ends in SUCCESS, SKIPPED or GAVE_UP.
    """
    while True:
        click.echo(f"Running {state.file_path}...")
        state = execution_node(state, timeout=timeout)
        report_node(state)
        
        if state.done:
            return state
        
        state = repair_node(state, oracle)
        if state.status == "GAVE_UP":
            return state
        
        click.echo(f"Applied repair {state.repairs}/{state.max_repairs}, retrying...")


def validate_and_fix(
    file_path: str,
    task: str,
    oracle: Oracle,
    cwd: Optional[str] = None,
    max_repairs: int = 3,
    timeout: float = DEFAULT_ARTIFACT_TIMEOUT_S,
    use_graph: bool = False,
) -> ArtifactState:
    """
    Validate an artifact already written to `file_path`.
    
    Args:
        use_graph: run the LangGraph rendition of the loop (traced nodes)
    
    Returns:
        Final ArtifactState (SUCCESS or SKIPPED)
    
    Raises:
        ArtifactRuntimeFailure: if the loop ends in GAVE_UP
        OracleError: if a repair call fails
    """
    state = ArtifactState(
        file_path=file_path,
        task=task,
        cwd=cwd,
        max_repairs=max_repairs,
    )
    
    if use_graph:
        from agentic_task_runner.execution_graph import run_execution_graph
        state = run_execution_graph(state, oracle, timeout=timeout)
    else:
        state = run_validation_loop(state, oracle, timeout=timeout)
    
    if state.status == "GAVE_UP":
        raise ArtifactRuntimeFailure(state)
    return state
