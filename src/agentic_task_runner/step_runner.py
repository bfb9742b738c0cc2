"""Thin runner that self-heals an existing file from a step definition.

Loads a step definition, runs the runtime validator, prints the outcome.
"""

import json
from pathlib import Path

import click
import yaml

from agentic_task_runner.constants import DEFAULT_ARTIFACT_TIMEOUT_S, DEFAULT_MAX_REPAIRS
from agentic_task_runner.execution_state import ArtifactState
from agentic_task_runner.oracle import Oracle
from agentic_task_runner.runtime_validator import ArtifactRuntimeFailure, validate_and_fix


def load_step_definition(step_file: Path) -> dict:
    """
    Load a step definition from YAML or JSON.
    
    Required fields:
        - file_path: str (file to run and repair; relative to the step file)
        - task: str (what the file is supposed to do)
    
    Optional fields:
        - max_repairs: int (default 3)
        - cwd: str (working directory for the run; default: the file's directory)
    """
    content = step_file.read_text()
    
    if step_file.suffix in (".yaml", ".yml"):
        data = yaml.safe_load(content)
    elif step_file.suffix == ".json":
        data = json.loads(content)
    else:
        raise ValueError(f"Unsupported file type: {step_file.suffix}. Use .yaml, .yml, or .json")
    
    if not isinstance(data, dict):
        raise ValueError("Step definition must be a mapping")
    
    # Validate required fields
    for key in ("file_path", "task"):
        if key not in data:
            raise ValueError(f"Step definition missing required field: {key}")
    
    max_repairs = data.get("max_repairs", DEFAULT_MAX_REPAIRS)
    if isinstance(max_repairs, bool) or not isinstance(max_repairs, int) or max_repairs < 0:
        raise ValueError(f"max_repairs must be a non-negative integer, got {max_repairs!r}")
    data["max_repairs"] = max_repairs
    
    base = step_file.parent
    data["file_path"] = str((base / data["file_path"]).resolve())
    if data.get("cwd"):
        data["cwd"] = str((base / data["cwd"]).resolve())
    else:
        data["cwd"] = str(Path(data["file_path"]).parent)
    
    return data


def run_step(
    step_file: Path,
    oracle: Oracle,
    use_graph: bool = True,
    timeout: float = DEFAULT_ARTIFACT_TIMEOUT_S,
) -> ArtifactState:
    """
    Main entry point: load step, run the run/repair loop, print the outcome.
    
    Returns:
        Final ArtifactState (SUCCESS, SKIPPED or GAVE_UP)
    """
    step_def = load_step_definition(step_file)
    
    if not Path(step_def["file_path"]).exists():
        raise ValueError(f"File not found: {step_def['file_path']}")
    
    try:
        final_state = validate_and_fix(
            step_def["file_path"],
            step_def["task"],
            oracle,
            cwd=step_def["cwd"],
            max_repairs=step_def["max_repairs"],
            timeout=timeout,
            use_graph=use_graph,
        )
    except ArtifactRuntimeFailure as e:
        final_state = e.state
    
    click.echo("Execution complete.")
    click.echo(f"  Status: {final_state.status}")
    click.echo(f"  Exit code: {final_state.exit_code}")
    click.echo(f"  Repairs: {final_state.repairs}/{final_state.max_repairs}")
    
    return final_state
