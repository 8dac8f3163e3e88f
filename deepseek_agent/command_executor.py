# deepseek_agent/command_executor.py
import logging
import os
import signal
import subprocess
from pathlib import Path
from typing import Optional

from deepseek_agent.data_models import CommandResult
from deepseek_agent.errors import ShellSpawnError

logger = logging.getLogger(__name__)


def _decode(raw: Optional[bytes]) -> str:
    if not raw:
        return ""
    return raw.decode("utf-8", errors="replace")


def _kill_process_tree(process: subprocess.Popen):
    """Kills the shell and everything it started; they share its session's process group."""
    killpg = getattr(os, "killpg", None)
    if killpg is not None:
        try:
            killpg(process.pid, signal.SIGKILL)
            return
        except (ProcessLookupError, PermissionError):
            logger.debug("Process group %s already gone", process.pid)
    process.kill()


def run_shell_command(command: str, timeout: Optional[float] = None) -> CommandResult:
    """
    Runs `command` through the default shell and captures stdout, stderr and the exit code.
    Raises ShellSpawnError when the shell itself cannot be started.
    """
    if not command or not command.strip():
        raise ValueError("No command given.")

    logger.debug("Running shell command: %s", command)
    try:
        process = subprocess.Popen(
            command, shell=True, stdout=subprocess.PIPE, stderr=subprocess.PIPE,
            stdin=subprocess.DEVNULL, cwd=Path.cwd(), start_new_session=True
        )
    except OSError as e: # FileNotFoundError, PermissionError, ...
        raise ShellSpawnError(command, str(e)) from e

    timed_out = False
    try:
        stdout, stderr = process.communicate(timeout=timeout)
    except subprocess.TimeoutExpired:
        _kill_process_tree(process)
        stdout, stderr = process.communicate()
        timed_out = True

    exit_code = process.returncode
    if exit_code is None or exit_code < 0:
        exit_code = -1 # killed by a signal or unknown

    stderr_text = _decode(stderr)
    if timed_out:
        note = f"Command timed out after {timeout} seconds and was killed."
        stderr_text = f"{stderr_text}\n{note}" if stderr_text else note
        exit_code = -1

    logger.debug("Command finished with exit code %s", exit_code)
    return CommandResult(exit_code=exit_code, stdout=_decode(stdout), stderr=stderr_text)


def run_command_tool(command: str, timeout: Optional[float] = None) -> str:
    return run_shell_command(command.strip(), timeout=timeout).render()
