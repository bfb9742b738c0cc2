"""State records for the plan executor and the runtime validator."""

import os
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class ExecutionState:
    """Session-wide state, owned by the session driver and mutated in place."""
    current_directory: str
    executed_commands: List[str] = field(default_factory=list)
    project_root: Optional[str] = None

    @classmethod
    def from_cwd(cls, directory: Optional[str] = None) -> "ExecutionState":
        return cls(current_directory=os.path.abspath(directory or os.getcwd()))

    def has_run(self, command: str) -> bool:
        return command in self.executed_commands

    def record(self, command: str) -> None:
        self.executed_commands.append(command)


@dataclass
class ArtifactState:
    """Per-file state for the run/repair loop."""
    file_path: str
    task: str
    cwd: Optional[str] = None
    repairs: int = 0
    max_repairs: int = 3
    last_stdout: Optional[str] = None
    last_stderr: Optional[str] = None
    exit_code: Optional[int] = None
    status: str = "PENDING"  # PENDING | RUNNING | SUCCESS | FAILED | GAVE_UP | SKIPPED

    @property
    def diagnostic(self) -> str:
        """Captured stderr, falling back to stdout, then a generic message."""
        return (
            (self.last_stderr or "").strip()
            or (self.last_stdout or "").strip()
            or f"exited with code {self.exit_code}"
        )

    @property
    def done(self) -> bool:
        return self.status in ("SUCCESS", "SKIPPED")
