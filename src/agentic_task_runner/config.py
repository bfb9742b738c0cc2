"""Configuration loading for the task runner CLI."""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from agentic_task_runner.constants import (
    DEFAULT_ARTIFACT_TIMEOUT_S,
    DEFAULT_CODER_MODEL,
    DEFAULT_COMMAND_TIMEOUT_S,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_REPAIRS,
    DEFAULT_ORACLE_TIMEOUT_S,
    DEFAULT_PLANNER_MODEL,
)


@dataclass
class Config:
    """Application configuration loaded from environment."""
    
    openrouter_api_key: str
    planner_model: str = DEFAULT_PLANNER_MODEL
    coder_model: str = DEFAULT_CODER_MODEL
    oracle_timeout_s: float = DEFAULT_ORACLE_TIMEOUT_S
    command_timeout_s: float = DEFAULT_COMMAND_TIMEOUT_S
    artifact_timeout_s: float = DEFAULT_ARTIFACT_TIMEOUT_S
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    max_repairs: int = DEFAULT_MAX_REPAIRS
    tracing: bool = False


class ConfigError(Exception):
    """Raised when required configuration is missing or malformed."""
    pass


def _read_number(name: str, default, cast):
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {raw!r}")
    return value


def _read_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes", "on")


def load_config(require_all: bool = True) -> Optional[Config]:
    """
    Load configuration from environment variables.
    
    Args:
        require_all: If True, raises ConfigError if required vars are missing.
                     If False, returns None for missing config.
    
    Returns:
        Config object if all required vars present, None if require_all=False and missing.
    
    Raises:
        ConfigError: If required vars are missing (and require_all=True),
                     or if an optional numeric var is malformed.
    """
    load_dotenv()
    
    openrouter_api_key = os.environ.get("OPENROUTER_API_KEY")
    
    missing = []
    if not openrouter_api_key:
        missing.append("OPENROUTER_API_KEY")
    
    if missing:
        if require_all:
            raise ConfigError(
                f"Missing required environment variables: {', '.join(missing)}\n"
                f"Please set them in your environment or create a .env file.\n"
                f"See .env.example for the required format."
            )
        return None
    
    return Config(
        openrouter_api_key=openrouter_api_key,
        planner_model=os.environ.get("TASKRUNNER_PLANNER_MODEL") or DEFAULT_PLANNER_MODEL,
        coder_model=os.environ.get("TASKRUNNER_CODER_MODEL") or DEFAULT_CODER_MODEL,
        oracle_timeout_s=_read_number("TASKRUNNER_ORACLE_TIMEOUT_S", DEFAULT_ORACLE_TIMEOUT_S, float),
        command_timeout_s=_read_number("TASKRUNNER_COMMAND_TIMEOUT_S", DEFAULT_COMMAND_TIMEOUT_S, float),
        artifact_timeout_s=_read_number("TASKRUNNER_ARTIFACT_TIMEOUT_S", DEFAULT_ARTIFACT_TIMEOUT_S, float),
        max_attempts=_read_number("TASKRUNNER_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS, int),
        max_repairs=_read_number("TASKRUNNER_MAX_REPAIRS", DEFAULT_MAX_REPAIRS, int),
        tracing=_read_flag("LANGSMITH_TRACING"),
    )
