"""Execute one plan against the execution state.

Commands run strictly in plan order; the first unrecoverable failure ends
the plan, since later commands usually depend on earlier ones.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import click

from agentic_task_runner.artifact_generator import generate_file_content, write_code_to_file
from agentic_task_runner.classifier import (
    DIRECTORY_CHANGE,
    FILE_CREATION,
    candidate_commands,
    classify,
)
from agentic_task_runner.constants import (
    DEFAULT_ARTIFACT_TIMEOUT_S,
    DEFAULT_COMMAND_TIMEOUT_S,
    DEFAULT_MAX_REPAIRS,
)
from agentic_task_runner.execution_state import ExecutionState
from agentic_task_runner.oracle import Oracle, OracleError
from agentic_task_runner.runtime_validator import ArtifactRuntimeFailure, validate_and_fix
from agentic_task_runner.shell import CommandFailure, run_shell_command


class DirectoryError(Exception):
    """A cd target could not be created or entered."""

    kind = "DIRECTORY"


@dataclass
class PlanResult:
    """Outcome of executing one plan."""
    success: bool
    state: ExecutionState
    failed_command: Optional[str] = None
    failure_kind: Optional[str] = None  # COMMAND | TIMEOUT | DIRECTORY | ORACLE | ARTIFACT
    diagnostic: Optional[str] = None
    skipped_long_running: List[str] = field(default_factory=list)


def resolve_path(state: ExecutionState, target: str) -> str:
    """Resolve `target` against the logical current directory."""
    return os.path.normpath(os.path.join(state.current_directory, os.path.expanduser(target)))


def change_directory(state: ExecutionState, target: str) -> str:
    """
    Move the logical current directory to `target`, creating it if absent.
    
    The process working directory is left alone; every subprocess and file
    operation is given state.current_directory explicitly.
    
    Raises:
        DirectoryError: if the directory cannot be created or is not a directory
    """
    new_path = resolve_path(state, target)
    try:
        Path(new_path).mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DirectoryError(f"Cannot change directory to {new_path}: {e}") from e
    if not os.path.isdir(new_path):
        raise DirectoryError(f"Not a directory: {new_path}")
    
    state.current_directory = new_path
    if state.project_root is None:
        state.project_root = new_path
    return new_path


def create_file(
    state: ExecutionState,
    target: str,
    task: str,
    oracle: Oracle,
    max_repairs: int = DEFAULT_MAX_REPAIRS,
    artifact_timeout: float = DEFAULT_ARTIFACT_TIMEOUT_S,
    use_graph: bool = False,
) -> str:
    """
    Generate, write and validate the file named by a file-creation command.
    
    Raises:
        OracleError: if generation or a repair call fails
        ArtifactRuntimeFailure: if the file never runs cleanly
        OSError: if the file cannot be written
    """
    full_path = resolve_path(state, target)
    code = generate_file_content(oracle, full_path, task)
    write_code_to_file(full_path, code)
    click.echo(f"Wrote code to {full_path}")
    
    validate_and_fix(
        full_path,
        task,
        oracle,
        cwd=state.current_directory,
        max_repairs=max_repairs,
        timeout=artifact_timeout,
        use_graph=use_graph,
    )
    return full_path


def _fail(state, command, kind, diagnostic, skipped) -> PlanResult:
    click.echo(f"Failed: {command}", err=True)
    click.echo(diagnostic, err=True)
    return PlanResult(
        success=False,
        state=state,
        failed_command=command,
        failure_kind=kind,
        diagnostic=diagnostic,
        skipped_long_running=skipped,
    )


def execute_plan(
    plan_text: str,
    state: ExecutionState,
    task: str,
    oracle: Oracle,
    command_timeout: float = DEFAULT_COMMAND_TIMEOUT_S,
    artifact_timeout: float = DEFAULT_ARTIFACT_TIMEOUT_S,
    max_repairs: int = DEFAULT_MAX_REPAIRS,
    use_graph: bool = False,
) -> PlanResult:
    """
    Run every candidate command of `plan_text` in order, mutating `state`.
    
    - commands already in state.executed_commands are skipped
    - cd creates and enters the target directory
    - file-creation lines go through the generator and the runtime validator
    - anything else runs as a shell command in state.current_directory
    
    Stops at the first failure with success=False. Only completed commands
    are appended to history.
    """
    commands, skipped = candidate_commands(plan_text)
    for cmd in skipped:
        click.echo(f"Skipping long-running command: {cmd}")
    
    for cmd in commands:
        if state.has_run(cmd):
            click.echo(f"Skipping (already run): {cmd}")
            continue
        
        parsed = classify(cmd)
        
        if parsed.kind == DIRECTORY_CHANGE:
            try:
                new_path = change_directory(state, parsed.target)
            except DirectoryError as e:
                return _fail(state, cmd, DirectoryError.kind, str(e), skipped)
            state.record(cmd)
            click.echo(f"Changed directory to: {new_path}")
            continue
        
        if parsed.kind == FILE_CREATION:
            try:
                create_file(
                    state,
                    parsed.target,
                    task,
                    oracle,
                    max_repairs=max_repairs,
                    artifact_timeout=artifact_timeout,
                    use_graph=use_graph,
                )
            except OracleError as e:
                return _fail(state, cmd, "ORACLE", str(e), skipped)
            except ArtifactRuntimeFailure as e:
                return _fail(state, cmd, ArtifactRuntimeFailure.kind, e.state.diagnostic, skipped)
            except OSError as e:
                return _fail(state, cmd, DirectoryError.kind, f"Cannot write {parsed.target}: {e}", skipped)
            state.record(cmd)
            continue
        
        click.echo(f"\nExecuting: {cmd}")
        try:
            result = run_shell_command(cmd, cwd=state.current_directory, timeout=command_timeout)
        except CommandFailure as e:
            return _fail(state, cmd, e.kind, e.result.diagnostic, skipped)
        
        if result.stdout:
            click.echo(result.stdout.rstrip())
        if result.stderr:
            click.echo(result.stderr.rstrip(), err=True)
        state.record(cmd)
    
    return PlanResult(success=True, state=state, skipped_long_running=skipped)
