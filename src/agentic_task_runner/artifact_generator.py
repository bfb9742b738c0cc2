"""Generate source for a target file from the task description."""

from pathlib import Path

from agentic_task_runner.oracle import Oracle


def build_generation_prompt(target_path: str, task: str) -> str:
    return (
        f'Based on the task "{task}", generate the complete working code '
        f"for the file: {target_path}.\n"
        "Respond with ONLY the code - no explanation, no markdown, no triple backticks."
    )


def generate_file_content(oracle: Oracle, target_path: str, task: str) -> str:
    """
    Ask the code oracle for the contents of `target_path`.
    
    Returns the effective source text (fences stripped, trimmed). Writing is
    left to the caller.
    
    Raises:
        OracleError: if the call fails or returns nothing
    """
    return oracle.generate(build_generation_prompt(target_path, task))


def write_code_to_file(file_path: str, code: str) -> Path:
    """Write `code` to `file_path`, creating parent directories. Full replace."""
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(code, encoding="utf-8")
    return path
