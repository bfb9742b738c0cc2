"""Model client interface and OpenRouter implementation."""

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx


# =============================================================================
# TOKEN BUDGET POLICY
# =============================================================================

# Output budget per oracle purpose. Generated files need far more room than plans.
PURPOSE_BUDGET = {
    "plan": 4000,
    "generate": 16000,
    "repair": 16000,
    "ping": 200,
}

MAX_OUTPUT_TOKENS = 32000


def compute_token_budget(purpose: str) -> int:
    """Return max_tokens for an oracle call, clamped to MAX_OUTPUT_TOKENS."""
    return min(PURPOSE_BUDGET.get(purpose, 4000), MAX_OUTPUT_TOKENS)


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass
class Message:
    """A chat message."""
    role: str  # "system", "user", "assistant"
    content: str


@dataclass
class CompletionResult:
    """Result from a model completion call."""
    content: str
    model: str
    usage: Optional[Dict[str, Any]] = None
    raw_response: Optional[Dict[str, Any]] = None


class ModelClient(ABC):
    """Abstract interface for model clients."""
    
    @abstractmethod
    def complete(
        self,
        messages: List[Message],
        model: str,
        timeout: float = 30.0,
        max_tokens: Optional[int] = None,
    ) -> CompletionResult:
        """
        Execute a chat completion.
        
        Args:
            messages: List of chat messages
            model: Model identifier
            timeout: Request timeout in seconds
            max_tokens: Maximum output tokens (if None, use model default)
        
        Returns:
            CompletionResult with content and metadata
        
        Raises:
            ModelClientError: On API or network errors
        """
        pass


class ModelClientError(Exception):
    """Error from model client operations."""
    pass


class OpenRouterClient(ModelClient):
    """OpenRouter API client.
    
    Uses the OpenRouter chat completions endpoint.
    API docs: https://openrouter.ai/docs
    """
    
    BASE_URL = "https://openrouter.ai/api/v1/chat/completions"
    
    def __init__(self, api_key: Optional[str] = None):
        """
        Initialize OpenRouter client.
        
        Args:
            api_key: OpenRouter API key. If not provided, reads from
                     OPENROUTER_API_KEY environment variable.
        """
        self.api_key = api_key or os.environ.get("OPENROUTER_API_KEY")
        if not self.api_key:
            raise ModelClientError(
                "OPENROUTER_API_KEY environment variable is required."
            )
    
    def _make_request(
        self,
        payload: dict,
        headers: dict,
        timeout: float,
    ) -> dict:
        """Make HTTP request to OpenRouter API."""
        with httpx.Client(timeout=timeout) as client:
            response = client.post(
                self.BASE_URL,
                headers=headers,
                json=payload,
            )
            response.raise_for_status()
            try:
                return response.json()
            except ValueError:
                raise ModelClientError(
                    f"Unexpected API response format: not JSON: {response.text[:200]!r}"
                )
    
    def complete(
        self,
        messages: List[Message],
        model: str,
        timeout: float = 30.0,
        max_tokens: Optional[int] = None,
    ) -> CompletionResult:
        """
        Execute a chat completion via OpenRouter.
        
        Raises:
            ModelClientError: On API, network or timeout errors, and on
                              responses without content.
        """
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": "https://github.com/agentic-task-runner",
            "X-Title": "Agentic Task Runner",
        }
        
        payload = {
            "model": model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
        }
        
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        
        # Debug logging (env-gated)
        if os.environ.get("TASKRUNNER_DEBUG"):
            print(f"[DEBUG] model={model}, max_tokens={max_tokens}, timeout={timeout}")
        
        try:
            data = self._make_request(payload, headers, timeout)
        
        except httpx.HTTPStatusError as e:
            # Extract error message from response if available
            try:
                error_data = e.response.json()
                error_msg = error_data.get("error", {}).get("message", str(e))
            except (ValueError, AttributeError):
                error_msg = str(e)
            raise ModelClientError(f"API error: {error_msg}")
        
        except httpx.TimeoutException:
            raise ModelClientError(
                f"Request timed out after {timeout}s. "
                "Try again or use a faster model."
            )
        except httpx.RequestError as e:
            raise ModelClientError(f"Network error: {e}")
        
        if not isinstance(data, dict):
            raise ModelClientError(
                f"Unexpected API response format: expected an object, got {type(data).__name__}"
            )
        
        choices = data.get("choices") or []
        if not isinstance(choices, list) or not choices:
            raise ModelClientError("No choices in API response")
        
        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        if not isinstance(message, dict):
            raise ModelClientError("Unexpected API response format: missing message")
        content = message.get("content") or ""
        if not isinstance(content, str):
            raise ModelClientError("Unexpected API response format: content is not text")
        
        if not content.strip():
            raise ModelClientError("Empty content in API response")
        
        return CompletionResult(
            content=content,
            model=data.get("model", model),
            usage=data.get("usage"),
            raw_response=data,
        )


def get_openrouter_client(api_key: Optional[str] = None) -> OpenRouterClient:
    """Get an OpenRouter client instance."""
    return OpenRouterClient(api_key=api_key)


def traced_complete(
    client: ModelClient,
    messages: List[Message],
    model: str,
    timeout: float = 30.0,
    purpose: str = "plan",
) -> CompletionResult:
    """
    Wrapper that adds LangSmith tracing and the token budget for `purpose`.
    
    Each call becomes a traced span named "{purpose}_{model}" with the
    messages as input and content/model/usage as output.
    """
    from langsmith import traceable
    
    max_tokens = compute_token_budget(purpose)
    
    messages_dict = [{"role": m.role, "content": m.content} for m in messages]
    
    # Create trace name (replace / with _ for cleaner display)
    trace_name = f"{purpose}_{model.replace('/', '_')}"
    
    @traceable(
        name=trace_name,
        run_type="llm",
        metadata={
            "purpose": purpose,
            "model": model,
            "max_tokens": max_tokens,
        },
    )
    def _traced_call(messages_input: List[dict], model_name: str) -> dict:
        msg_objects = [Message(role=m["role"], content=m["content"]) for m in messages_input]
        
        result = client.complete(
            messages=msg_objects,
            model=model_name,
            timeout=timeout,
            max_tokens=max_tokens,
        )
        
        return {
            "content": result.content,
            "model": result.model,
            "usage": result.usage,
        }
    
    output = _traced_call(messages_dict, model)
    
    return CompletionResult(
        content=output["content"],
        model=output["model"],
        usage=output.get("usage"),
    )
