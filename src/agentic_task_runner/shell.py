"""Subprocess execution with captured output and a hard timeout."""

import os
import signal
import subprocess
from dataclasses import dataclass
from typing import List, Optional, Union


@dataclass
class CommandResult:
    """Outcome of one subprocess run."""
    command: str
    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0
    timed_out: bool = False
    spawn_error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.exit_code == 0 and not self.timed_out and self.spawn_error is None

    @property
    def diagnostic(self) -> str:
        """Captured stderr preferred, then the failure message."""
        if self.stderr.strip():
            return self.stderr.strip()
        if self.spawn_error:
            return self.spawn_error
        if self.timed_out:
            return f"Command timed out: {self.command}"
        return self.stdout.strip() or f"Command exited with code {self.exit_code}"


class CommandFailure(Exception):
    """A shell command exited non-zero or could not be spawned."""

    kind = "COMMAND"

    def __init__(self, result: CommandResult):
        self.result = result
        super().__init__(f"Command failed ({result.exit_code}): {result.command}\n{result.diagnostic}")


class CommandTimeout(CommandFailure):
    """A shell command ran past its timeout and was killed."""

    kind = "TIMEOUT"


def run_process(
    args: Union[str, List[str]],
    cwd: Optional[str] = None,
    timeout: Optional[float] = None,
) -> CommandResult:
    """
    Run a command and capture stdout, stderr and the exit code.
    
    A string is run through the shell; a list is exec'd directly.
    Never raises: spawn errors and timeouts are reported on the result.
    """
    shell = isinstance(args, str)
    display = args if shell else " ".join(args)
    
    # Own process group, so a timeout kills everything the shell started
    if os.name == "posix":
        popen_kwargs = dict(start_new_session=True)
    else:
        popen_kwargs = dict(creationflags=subprocess.CREATE_NEW_PROCESS_GROUP)
    
    try:
        proc = subprocess.Popen(
            args,
            shell=shell,
            cwd=cwd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            encoding="utf-8",
            errors="replace",
            **popen_kwargs,
        )
    except OSError as e:
        return CommandResult(command=display, exit_code=-1, spawn_error=str(e))
    
    try:
        stdout, stderr = proc.communicate(timeout=timeout)
    except subprocess.TimeoutExpired:
        _kill_group(proc)
        stdout, stderr = proc.communicate()
        return CommandResult(
            command=display,
            stdout=_decode(stdout),
            stderr=_decode(stderr),
            exit_code=-1,
            timed_out=True,
        )
    
    return CommandResult(
        command=display,
        stdout=stdout or "",
        stderr=stderr or "",
        exit_code=proc.returncode,
    )


def run_shell_command(command: str, cwd: str, timeout: Optional[float] = None) -> CommandResult:
    """
    Run a plan command verbatim in `cwd`.
    
    Raises:
        CommandTimeout: if the command exceeded `timeout`
        CommandFailure: on non-zero exit or spawn error
    """
    result = run_process(command, cwd=cwd, timeout=timeout)
    if result.timed_out:
        raise CommandTimeout(result)
    if not result.ok:
        raise CommandFailure(result)
    return result


def _decode(output) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode(errors="replace")
    return output


def _kill_group(proc: subprocess.Popen) -> None:
    if os.name == "posix":
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
    else:
        proc.kill()
