#!/usr/bin/env python3
"""Proof script for the run/repair loop against a live model."""

import os
import tempfile
from pathlib import Path

# Ensure .env is loaded
from dotenv import load_dotenv
load_dotenv()

from agentic_task_runner.config import load_config
from agentic_task_runner.oracle import build_oracle
from agentic_task_runner.runtime_validator import ArtifactRuntimeFailure, validate_and_fix


def main():
    config = load_config(require_all=False)
    if config is None:
        print("ERROR: OPENROUTER_API_KEY not set")
        return
    
    # Syntax error (missing parenthesis)
    broken_code = '''# Broken Python file
def greet(name):
    print("Hello, " + name  # Missing closing parenthesis

greet("World")
'''
    
    workdir = tempfile.mkdtemp(prefix="execution_test_")
    file_path = os.path.join(workdir, "greet.py")
    Path(file_path).write_text(broken_code)
    
    print(f"Created broken file: {file_path}")
    print(f"\n=== ORIGINAL CODE ===")
    print(broken_code)
    
    print(f"\n=== RUNNING REPAIR LOOP ===")
    try:
        final_state = validate_and_fix(
            file_path,
            "Print a greeting for World",
            build_oracle(config),
            cwd=workdir,
            max_repairs=config.max_repairs,
        )
    except ArtifactRuntimeFailure as e:
        final_state = e.state
    
    print(f"\n=== FINAL STATE ===")
    print(f"  status: {final_state.status}")
    print(f"  exit_code: {final_state.exit_code}")
    print(f"  repairs: {final_state.repairs}")
    print(f"  last_stdout: {final_state.last_stdout}")
    
    if final_state.status == "SUCCESS":
        print(f"\n=== FIXED CODE ===")
        print(Path(file_path).read_text())
    
    print(f"\n{'='*40}")
    if final_state.status == "SUCCESS" and final_state.repairs == 1:
        print("PROOF PASSED: Syntax error fixed in one repair.")
    elif final_state.status == "SUCCESS":
        print(f"PROOF PARTIAL: Succeeded after {final_state.repairs} repairs")
    else:
        print(f"PROOF FAILED: Final status = {final_state.status}")
    print(f"Workspace left at {workdir}")


if __name__ == "__main__":
    main()
