"""LangGraph wrapper for the run/repair loop - trace harness only.

Same semantics as runtime_validator.run_validation_loop, with each run and
repair visible as a node in LangGraph Studio.
"""

from typing import Any, Optional
from typing_extensions import TypedDict

from langgraph.graph import StateGraph, END

from agentic_task_runner.constants import DEFAULT_ARTIFACT_TIMEOUT_S
from agentic_task_runner.execution_state import ArtifactState
from agentic_task_runner.runtime_validator import execution_node, repair_node, report_node


class ExecutionGraphState(TypedDict):
    """State for the execution graph - mirrors ArtifactState fields."""
    file_path: str
    task: str
    cwd: Optional[str]
    repairs: int
    max_repairs: int
    last_stdout: Optional[str]
    last_stderr: Optional[str]
    exit_code: Optional[int]
    status: str
    timeout: float
    # Oracle reference (passed through state)
    oracle: Any


def to_artifact_state(state: ExecutionGraphState) -> ArtifactState:
    return ArtifactState(
        file_path=state["file_path"],
        task=state["task"],
        cwd=state.get("cwd"),
        repairs=state["repairs"],
        max_repairs=state["max_repairs"],
        last_stdout=state.get("last_stdout"),
        last_stderr=state.get("last_stderr"),
        exit_code=state.get("exit_code"),
        status=state["status"],
    )


def to_graph_state(art: ArtifactState, oracle: Any, timeout: float) -> dict:
    return {
        "file_path": art.file_path,
        "task": art.task,
        "cwd": art.cwd,
        "repairs": art.repairs,
        "max_repairs": art.max_repairs,
        "last_stdout": art.last_stdout,
        "last_stderr": art.last_stderr,
        "exit_code": art.exit_code,
        "status": art.status,
        "timeout": timeout,
        "oracle": oracle,
    }


# --- Graph Nodes ---

def node_execute(state: ExecutionGraphState) -> ExecutionGraphState:
    """Run the file via subprocess."""
    art = execution_node(to_artifact_state(state), timeout=state["timeout"])
    report_node(art)
    return to_graph_state(art, state["oracle"], state["timeout"])


def node_repair(state: ExecutionGraphState) -> ExecutionGraphState:
    """Ask the oracle for a fix and overwrite the file."""
    art = repair_node(to_artifact_state(state), state["oracle"])
    return to_graph_state(art, state["oracle"], state["timeout"])


# --- Conditional Edges ---

def after_execute(state: ExecutionGraphState) -> str:
    if state["status"] in ("SUCCESS", "SKIPPED"):
        return "end"
    return "repair"


def after_repair(state: ExecutionGraphState) -> str:
    if state["status"] == "GAVE_UP":
        return "end"
    return "execute"


# --- Graph Builder ---

def build_execution_graph() -> StateGraph:
    """
    Build the execution graph.
    
    Flow:
        execute -> (success/skipped?) -> end
                -> (failed) -> repair -> (budget left?) -> execute
                                      -> (gave up) -> end
    """
    graph = StateGraph(ExecutionGraphState)
    
    graph.add_node("execute", node_execute)
    graph.add_node("repair", node_repair)
    
    graph.set_entry_point("execute")
    
    graph.add_conditional_edges(
        "execute",
        after_execute,
        {
            "end": END,
            "repair": "repair",
        }
    )
    graph.add_conditional_edges(
        "repair",
        after_repair,
        {
            "end": END,
            "execute": "execute",
        }
    )
    
    return graph


def run_execution_graph(
    state: ArtifactState,
    oracle: Any,
    timeout: float = DEFAULT_ARTIFACT_TIMEOUT_S,
) -> ArtifactState:
    """
    Run the execution graph and return final state.
    
    This is the traced equivalent of run_validation_loop().
    """
    compiled = build_execution_graph().compile()
    
    # Each run/repair cycle is two steps; leave headroom over the repair budget
    recursion_limit = 2 * (state.max_repairs + 1) + 5
    
    final_state = compiled.invoke(
        to_graph_state(state, oracle, timeout),
        config={"recursion_limit": recursion_limit},
    )
    
    return to_artifact_state(final_state)


# Pre-compiled graph for Studio discovery
execution_graph = build_execution_graph().compile()
