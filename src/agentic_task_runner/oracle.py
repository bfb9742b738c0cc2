"""Planning and code-generation oracle on top of a ModelClient."""

from dataclasses import dataclass
from typing import Optional

from agentic_task_runner.classifier import strip_code_fences
from agentic_task_runner.constants import (
    DEFAULT_CODER_MODEL,
    DEFAULT_ORACLE_TIMEOUT_S,
    DEFAULT_PLANNER_MODEL,
)
from agentic_task_runner.model_client import (
    Message,
    ModelClient,
    ModelClientError,
    compute_token_budget,
    traced_complete,
)


PLANNER_SYSTEM_PROMPT = """You are an autonomous developer working in a terminal.
Reply with bash commands only, one per line.
No explanations. No long-running dev servers."""

CODER_SYSTEM_PROMPT = """You are an AI developer.
Respond with ONLY the complete file contents.
No explanation, no markdown, no triple backticks."""


class OracleError(Exception):
    """The model call failed or returned no usable text."""
    pass


@dataclass
class Oracle:
    """Sends one prompt per call and returns fence-stripped text."""
    client: ModelClient
    planner_model: str = DEFAULT_PLANNER_MODEL
    coder_model: str = DEFAULT_CODER_MODEL
    timeout: float = DEFAULT_ORACLE_TIMEOUT_S
    tracing: bool = False

    def plan(self, prompt: str) -> str:
        return self._ask(PLANNER_SYSTEM_PROMPT, prompt, self.planner_model, "plan")

    def generate(self, prompt: str, purpose: str = "generate") -> str:
        return self._ask(CODER_SYSTEM_PROMPT, prompt, self.coder_model, purpose)

    def _ask(self, system: str, prompt: str, model: str, purpose: str) -> str:
        messages = [
            Message(role="system", content=system),
            Message(role="user", content=prompt),
        ]
        try:
            if self.tracing:
                result = traced_complete(
                    self.client,
                    messages,
                    model=model,
                    timeout=self.timeout,
                    purpose=purpose,
                )
            else:
                result = self.client.complete(
                    messages=messages,
                    model=model,
                    timeout=self.timeout,
                    max_tokens=compute_token_budget(purpose),
                )
        except ModelClientError as e:
            raise OracleError(f"{purpose} call to {model} failed: {e}") from e
        
        text = strip_code_fences(result.content or "")
        if not text:
            raise OracleError(f"{purpose} call to {model} returned no text")
        return text


def build_oracle(config, client: Optional[ModelClient] = None) -> Oracle:
    """Build an Oracle from a Config, creating an OpenRouter client if none is given."""
    if client is None:
        from agentic_task_runner.model_client import get_openrouter_client
        client = get_openrouter_client(config.openrouter_api_key)
    return Oracle(
        client=client,
        planner_model=config.planner_model,
        coder_model=config.coder_model,
        timeout=config.oracle_timeout_s,
        tracing=config.tracing,
    )
