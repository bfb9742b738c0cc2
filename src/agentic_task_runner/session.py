"""Session driver: plan, confirm, execute, and re-plan with operator feedback."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import click

from agentic_task_runner.constants import (
    DEFAULT_ARTIFACT_TIMEOUT_S,
    DEFAULT_COMMAND_TIMEOUT_S,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_REPAIRS,
    EXIT_SENTINEL,
)
from agentic_task_runner.execution_state import ExecutionState
from agentic_task_runner.oracle import Oracle, OracleError
from agentic_task_runner.plan_executor import PlanResult, execute_plan
from agentic_task_runner.planner import request_plan


SUCCESS = "SUCCESS"
EXIT = "EXIT"
ABORTED = "ABORTED"
EXHAUSTED = "EXHAUSTED"

EXIT_CODES = {
    SUCCESS: 0,
    EXIT: 0,
    EXHAUSTED: 1,
    ABORTED: 2,
}


class UserAbort(Exception):
    """The operator declined a plan or interrupted a prompt."""
    pass


class Operator(ABC):
    """The human in the loop."""

    @abstractmethod
    def ask_task(self) -> str:
        pass

    @abstractmethod
    def confirm_plan(self, plan: str) -> bool:
        pass

    @abstractmethod
    def ask_feedback(self, result: PlanResult) -> str:
        pass


class ClickOperator(Operator):
    """Terminal operator backed by click prompts."""

    def __init__(self, auto_confirm: bool = False):
        self.auto_confirm = auto_confirm

    def ask_task(self) -> str:
        return click.prompt("What do you want to build?")

    def confirm_plan(self, plan: str) -> bool:
        click.echo(f"\nPlan:\n{plan}\n")
        if self.auto_confirm:
            return True
        return click.confirm("Execute this plan?", default=True)

    def ask_feedback(self, result: PlanResult) -> str:
        return click.prompt(
            "What went wrong? (used to improve the next plan)",
            default="",
            show_default=False,
        )


@dataclass
class SessionResult:
    """How a session ended."""
    outcome: str  # SUCCESS | EXIT | ABORTED | EXHAUSTED
    task: str
    attempts: int
    state: ExecutionState
    last_result: Optional[PlanResult] = None

    @property
    def exit_code(self) -> int:
        return EXIT_CODES[self.outcome]


def is_exit_sentinel(text: str) -> bool:
    return text.strip().lower() == EXIT_SENTINEL


def append_feedback(task: str, feedback: str) -> str:
    """Accumulate failure history into the task description."""
    return task + "\nError: " + feedback


def run_session(
    oracle: Oracle,
    operator: Operator,
    task: Optional[str] = None,
    state: Optional[ExecutionState] = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    command_timeout: float = DEFAULT_COMMAND_TIMEOUT_S,
    artifact_timeout: float = DEFAULT_ARTIFACT_TIMEOUT_S,
    max_repairs: int = DEFAULT_MAX_REPAIRS,
    use_graph: bool = False,
) -> SessionResult:
    """
    Main loop: up to `max_attempts` plan/execute rounds.
    
    Logic:
    1. Get the task; "exit" (any case) ends immediately, before any oracle call
    2. Ask the planner for a plan seeded with the execution state
    3. Operator confirms; declining aborts the whole session
    4. Execute; success ends the session
    5. On failure, append operator feedback to the task and try again
    
    Running out of attempts is a normal outcome (EXHAUSTED), not an error.
    """
    if state is None:
        state = ExecutionState.from_cwd()
    
    attempt = 0
    last_result = None
    
    try:
        if task is None:
            task = operator.ask_task()
        if is_exit_sentinel(task):
            click.echo("Exiting...")
            return SessionResult(outcome=EXIT, task=task, attempts=0, state=state)
        
        while attempt < max_attempts:
            try:
                plan = request_plan(oracle, task, state)
            except OracleError as e:
                click.echo(f"Planning failed: {e}", err=True)
                last_result = PlanResult(
                    success=False,
                    state=state,
                    failure_kind="ORACLE",
                    diagnostic=str(e),
                )
            else:
                if not operator.confirm_plan(plan):
                    raise UserAbort("Plan declined")
                
                last_result = execute_plan(
                    plan,
                    state,
                    task,
                    oracle,
                    command_timeout=command_timeout,
                    artifact_timeout=artifact_timeout,
                    max_repairs=max_repairs,
                    use_graph=use_graph,
                )
                state = last_result.state
                
                if last_result.success:
                    click.echo("\nAll done!")
                    return SessionResult(
                        outcome=SUCCESS,
                        task=task,
                        attempts=attempt + 1,
                        state=state,
                        last_result=last_result,
                    )
            
            attempt += 1
            feedback = operator.ask_feedback(last_result).strip()
            if not feedback:
                feedback = last_result.diagnostic or "the previous plan failed"
            task = append_feedback(task, feedback)
    
    except (UserAbort, click.Abort):
        click.echo("Aborted by user.")
        return SessionResult(
            outcome=ABORTED,
            task=task or "",
            attempts=attempt,
            state=state,
            last_result=last_result,
        )
    
    click.echo("\nMaximum attempts reached.")
    return SessionResult(
        outcome=EXHAUSTED,
        task=task,
        attempts=attempt,
        state=state,
        last_result=last_result,
    )
