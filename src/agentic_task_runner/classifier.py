"""Line classification for oracle-produced plans.

A plan is free text. Each line is mapped onto a closed set of shapes:

    SKIP              blank lines, comments, fence markers, a bare "bash" tag
    DIRECTORY_CHANGE  "cd <target>"
    FILE_CREATION     a file the code oracle should write (path = last token)
    SHELL_COMMAND     anything else, run verbatim

Long-running dev servers are flagged by a separate predicate and never
dispatched.
"""

import re
from dataclasses import dataclass
from typing import List, Literal, Optional, Tuple

from agentic_task_runner.constants import (
    FILE_CREATION_UTILITIES,
    LONG_RUNNING_COMMANDS,
    RECOGNIZED_EXTENSIONS,
)


CommandKind = Literal["SKIP", "DIRECTORY_CHANGE", "FILE_CREATION", "SHELL_COMMAND"]

SKIP = "SKIP"
DIRECTORY_CHANGE = "DIRECTORY_CHANGE"
FILE_CREATION = "FILE_CREATION"
SHELL_COMMAND = "SHELL_COMMAND"

COMMAND_KINDS = (SKIP, DIRECTORY_CHANGE, FILE_CREATION, SHELL_COMMAND)

FENCE = "```"

_FENCE_OPEN = re.compile(r"^```[\w+.-]*[ \t]*(?:\r?\n|$)", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"(?:\r?\n)?[ \t]*```[ \t]*$")

# ">", ">>", "2>", "&>", ">out.txt" ... but not descriptor duplication like "2>&1"
_REDIRECT_TOKEN = re.compile(r"^(?:\d|&)?>>?(?!&)")


@dataclass(frozen=True)
class Classification:
    """Result of classifying one plan line."""
    kind: CommandKind
    line: str
    target: Optional[str] = None  # directory for DIRECTORY_CHANGE, path for FILE_CREATION


def strip_code_fences(text: str) -> str:
    """
    Remove a leading fence opener (with optional language tag) and a trailing
    fence closer, then trim.
    
    Applied until nothing changes, so strip(strip(x)) == strip(x).
    """
    current = text.strip()
    while True:
        stripped = _FENCE_OPEN.sub("", current, count=1)
        stripped = _FENCE_CLOSE.sub("", stripped, count=1).strip()
        if stripped == current:
            return current
        current = stripped


def is_long_running(line: str) -> bool:
    """True if the line starts a dev server that never exits."""
    return any(cmd in line for cmd in LONG_RUNNING_COMMANDS)


def _is_skip(line: str) -> bool:
    return (
        not line
        or line.startswith("#")
        or line.startswith(FENCE)
        or line.lower() == "bash"
    )


def _has_redirection(tokens: List[str]) -> bool:
    return any(_REDIRECT_TOKEN.match(tok) for tok in tokens)


def _has_recognized_extension(token: str) -> bool:
    _, dot, ext = token.rpartition(".")
    return bool(dot) and ext.lower() in RECOGNIZED_EXTENSIONS


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def is_file_creation(line: str) -> bool:
    """
    True when the line asks for a file to exist.
    
    - the line is a bare path with a recognized extension ("app.py")
    - a file-creation utility is invoked ("touch app.py")
    - output is redirected into a file ("echo hi > notes.txt")
    
    A recognized extension inside a longer command ("node index.js") is
    an invocation, not a creation.
    """
    tokens = line.split()
    if not tokens:
        return False
    if len(tokens) == 1 and _has_recognized_extension(tokens[0]):
        return True
    if any(tok in FILE_CREATION_UTILITIES for tok in tokens):
        return True
    return _has_redirection(tokens)


def file_creation_target(line: str) -> str:
    """Path a file-creation line refers to: its last token, minus any redirect prefix."""
    last = line.split()[-1]
    last = _REDIRECT_TOKEN.sub("", last)
    return _unquote(last)


def classify(line: str) -> Classification:
    """Classify a single plan line. Pure; checks run in a fixed order."""
    stripped = line.strip()
    
    if _is_skip(stripped):
        return Classification(kind=SKIP, line=stripped)
    
    if stripped.startswith("cd "):
        target = _unquote(stripped[3:].strip())
        return Classification(kind=DIRECTORY_CHANGE, line=stripped, target=target)
    
    if is_file_creation(stripped):
        target = file_creation_target(stripped)
        if target:
            return Classification(kind=FILE_CREATION, line=stripped, target=target)
    
    return Classification(kind=SHELL_COMMAND, line=stripped)


def candidate_commands(plan_text: str) -> Tuple[List[str], List[str]]:
    """
    Split plan text into candidate command lines.
    
    Returns:
        (candidates, long_running) - both in plan order. Duplicates are kept;
        deduplication against history happens at execution time.
    """
    candidates = []
    long_running = []
    
    for raw in plan_text.split("\n"):
        line = raw.strip()
        if classify(line).kind == SKIP:
            continue
        if is_long_running(line):
            long_running.append(line)
            continue
        candidates.append(line)
    
    return candidates, long_running
