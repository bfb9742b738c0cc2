"""Constants for the task runner."""

import sys

# Default models for planning and code generation
DEFAULT_PLANNER_MODEL = "google/gemini-2.5-flash"
DEFAULT_CODER_MODEL = "google/gemini-2.5-flash"

# Overridable through the environment, see config.load_config
DEFAULT_ORACLE_TIMEOUT_S = 60.0
DEFAULT_COMMAND_TIMEOUT_S = 300.0
DEFAULT_ARTIFACT_TIMEOUT_S = 60.0

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_MAX_REPAIRS = 3

EXIT_SENTINEL = "exit"

# Dev servers never terminate on their own, so they are never run
LONG_RUNNING_COMMANDS = (
    "npm run dev",
    "yarn dev",
    "pnpm dev",
)

RECOGNIZED_EXTENSIONS = frozenset(
    ["js", "ts", "json", "jsx", "tsx", "py", "sh", "html", "css"]
)

FILE_CREATION_UTILITIES = frozenset(["touch"])

# Extension -> argv prefix. Anything not listed is a static asset.
INTERPRETERS = {
    ".py": [sys.executable],
    ".js": ["node"],
    ".sh": ["bash"],
    ".ts": ["npx", "ts-node"],
}
