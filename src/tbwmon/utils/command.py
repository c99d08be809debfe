"""
Command execution utilities.
"""

import logging
import subprocess
from dataclasses import dataclass
from typing import List, Optional, Union

logger = logging.getLogger(__name__)

# Exit code reported when the process could not be launched or timed out
LAUNCH_FAILED = -1

@dataclass
class CommandResult:
    """Result of command execution."""
    exit_code: int
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def success(self) -> bool:
        """Check if command succeeded."""
        return self.exit_code == 0

class CommandError(Exception):
    """Error executing command."""
    def __init__(self, cmd: str, exit_code: int, stderr: str):
        self.cmd = cmd
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(f"Command failed (exit code {exit_code}): {cmd}\n{stderr}")

def run_command(
    cmd: Union[str, List[str]],
    check: bool = True,
    timeout: Optional[float] = None
) -> CommandResult:
    """Run a command with a bounded timeout.

    A list is executed directly; a string goes through the shell. With
    ``check=False`` launch failures and timeouts are reported as a result with
    exit code ``LAUNCH_FAILED`` instead of raising.
    """
    cmd_str = cmd if isinstance(cmd, str) else " ".join(cmd)
    logger.debug(f"Running: {cmd_str}")

    try:
        process = subprocess.Popen(
            cmd,
            shell=isinstance(cmd, str),
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace"
        )
    except OSError as e:
        if check:
            raise CommandError(cmd_str, LAUNCH_FAILED, str(e))
        return CommandResult(LAUNCH_FAILED, "", str(e))

    try:
        stdout, stderr = process.communicate(timeout=timeout)
    except subprocess.TimeoutExpired:
        process.kill()
        stdout, stderr = process.communicate()
        logger.warning(f"Command timed out after {timeout}s: {cmd_str}")
        if check:
            raise CommandError(cmd_str, LAUNCH_FAILED, f"Timeout after {timeout}s")
        return CommandResult(LAUNCH_FAILED, stdout or "", stderr or "", timed_out=True)

    result = CommandResult(exit_code=process.returncode, stdout=stdout, stderr=stderr)

    if check and not result.success:
        raise CommandError(cmd_str, result.exit_code, stderr)

    return result
