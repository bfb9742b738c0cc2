"""CLI entrypoint for the task runner."""

import os
from pathlib import Path

import click
from dotenv import load_dotenv

from agentic_task_runner.config import ConfigError, load_config

# Load .env file on CLI startup
load_dotenv()


def _load_config_or_exit():
    try:
        return load_config(require_all=True)
    except ConfigError as e:
        click.echo(f"Configuration error:\n{e}", err=True)
        raise SystemExit(1)


@click.group()
@click.version_option(package_name="agentic-task-runner")
def cli():
    """Task runner - plan shell commands with an LLM, run them, repair failures."""
    pass


@cli.command()
def check_config():
    """Check if required environment variables are configured."""
    config = _load_config_or_exit()
    click.echo("Configuration loaded successfully!")
    click.echo("  OPENROUTER_API_KEY: [set]")
    click.echo(f"  Planner model: {config.planner_model}")
    click.echo(f"  Coder model: {config.coder_model}")
    click.echo(f"  Max attempts: {config.max_attempts}")
    click.echo(f"  Max repairs: {config.max_repairs}")
    click.echo(f"  Timeouts: oracle={config.oracle_timeout_s}s, "
               f"command={config.command_timeout_s}s, artifact={config.artifact_timeout_s}s")
    click.echo(f"  LangSmith tracing: {'on' if config.tracing else 'off'}")


@cli.command("run")
@click.option("--task", default=None, help="Goal to accomplish (prompted for if omitted)")
@click.option("--yes", "-y", "auto_confirm", is_flag=True, help="Execute plans without confirmation")
@click.option("--planner-model", default=None, help="Model ID for planning")
@click.option("--coder-model", default=None, help="Model ID for code generation and repair")
@click.option("--max-attempts", type=int, default=None, help="Plan/execute rounds before giving up")
@click.option(
    "--workdir",
    type=click.Path(file_okay=False),
    default=None,
    help="Starting directory (default: current directory)",
)
@click.option("--trace-graph", is_flag=True, help="Run the repair loop as a LangGraph graph")
def run_task(task, auto_confirm, planner_model, coder_model, max_attempts, workdir, trace_graph):
    """Plan and execute a task, re-planning on failure.
    
    Exit codes: 0 done (or "exit"), 1 maximum attempts reached, 2 aborted.
    """
    from agentic_task_runner.execution_state import ExecutionState
    from agentic_task_runner.oracle import build_oracle
    from agentic_task_runner.session import ClickOperator, run_session
    
    config = _load_config_or_exit()
    if planner_model:
        config.planner_model = planner_model
    if coder_model:
        config.coder_model = coder_model
    if max_attempts is not None:
        if max_attempts < 1:
            click.echo("Error: --max-attempts must be at least 1.", err=True)
            raise SystemExit(1)
        config.max_attempts = max_attempts
    
    start_dir = Path(workdir).resolve() if workdir else Path(os.getcwd())
    start_dir.mkdir(parents=True, exist_ok=True)
    
    oracle = build_oracle(config)
    
    try:
        result = run_session(
            oracle,
            ClickOperator(auto_confirm=auto_confirm),
            task=task,
            state=ExecutionState.from_cwd(str(start_dir)),
            max_attempts=config.max_attempts,
            command_timeout=config.command_timeout_s,
            artifact_timeout=config.artifact_timeout_s,
            max_repairs=config.max_repairs,
            use_graph=trace_graph,
        )
    except Exception as e:
        click.echo(f"Fatal error: {e}", err=True)
        raise SystemExit(1)
    
    raise SystemExit(result.exit_code)


@cli.command("classify")
@click.argument("plan_file", type=click.Path(exists=True, dir_okay=False))
def classify_plan(plan_file: str):
    """Show how each line of PLAN_FILE would be dispatched. Runs nothing."""
    from agentic_task_runner.classifier import classify, is_long_running, strip_code_fences
    
    plan = strip_code_fences(Path(plan_file).read_text())
    for line in plan.split("\n"):
        parsed = classify(line)
        if parsed.kind == "SKIP":
            continue
        kind = "LONG_RUNNING" if is_long_running(parsed.line) else parsed.kind
        suffix = f" -> {parsed.target}" if parsed.target else ""
        click.echo(f"{kind:<17} {parsed.line}{suffix}")


# Model commands
@cli.group()
def model():
    """Model client commands."""
    pass


@model.command("test")
@click.option(
    "--model", "model_id",
    default=None,
    help="Model identifier (default: the configured planner model)",
)
@click.option(
    "--timeout",
    default=30.0,
    help="Request timeout in seconds",
)
def model_test(model_id, timeout: float):
    """Test the model client with a single API call."""
    from agentic_task_runner.model_client import (
        Message,
        ModelClientError,
        get_openrouter_client,
    )
    
    config = _load_config_or_exit()
    model_id = model_id or config.planner_model
    
    click.echo(f"Testing model: {model_id}")
    click.echo(f"Timeout: {timeout}s")
    
    messages = [
        Message(role="system", content="You are a helpful assistant. Respond concisely."),
        Message(role="user", content="Say 'Hello from Task Runner!' and nothing else."),
    ]
    
    try:
        client = get_openrouter_client(config.openrouter_api_key)
        click.echo("Calling OpenRouter API...")
        result = client.complete(messages=messages, model=model_id, timeout=timeout, max_tokens=200)
    except ModelClientError as e:
        click.echo(f"Model client error: {e}", err=True)
        raise SystemExit(1)
    
    click.echo("\nResponse received:")
    click.echo(f"  Model: {result.model}")
    click.echo(f"  Content: {result.content[:100]}{'...' if len(result.content) > 100 else ''}")
    if result.usage:
        click.echo(f"  Usage: {result.usage}")
    click.echo("\nModel test passed!")


@cli.command("exec")
@click.argument("step_file", type=click.Path(exists=True))
@click.option(
    "--no-trace",
    is_flag=True,
    help="Disable LangGraph tracing (run without graph wrapper)",
)
def exec_step(step_file: str, no_trace: bool):
    """Run and self-heal an existing file described by a step definition.
    
    STEP_FILE: Path to step definition (YAML or JSON)
    
    Step definition format:
    
    \b
        file_path: path/to/script.py
        task: what the script should do
        max_repairs: 3  # optional
    """
    from agentic_task_runner.oracle import OracleError, build_oracle
    from agentic_task_runner.step_runner import run_step
    
    config = _load_config_or_exit()
    step_path = Path(step_file).resolve()
    
    click.echo(f"Executing step: {step_path}")
    if not no_trace:
        click.echo("  (LangGraph tracing enabled)")
    click.echo()
    
    try:
        final_state = run_step(
            step_path,
            build_oracle(config),
            use_graph=not no_trace,
            timeout=config.artifact_timeout_s,
        )
    except (ValueError, OracleError) as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    
    raise SystemExit(0 if final_state.done else 1)


if __name__ == "__main__":
    cli()
