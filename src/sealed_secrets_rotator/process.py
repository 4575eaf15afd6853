"""External command execution.

kubectl and kubeseal are invoked through a CommandRunner so the rotation
logic can be exercised against scripted fakes instead of real binaries.
"""

import subprocess
from typing import NamedTuple, Protocol

from icecream import ic

# Exit status reported when the executable itself is missing, as a shell would
COMMAND_NOT_FOUND = 127


class CommandResult(NamedTuple):
    """Captured result of a finished command.

    Attributes:
        stdout: Standard output decoded as text.
        stderr: Standard error decoded as text.
        returncode: Process exit status.

    """

    stdout: str
    stderr: str
    returncode: int

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def describe(self) -> str:
        """Summarize a failure for error messages.

        Returns:
            The exit code followed by stderr, when there is any.

        """
        detail = self.stderr.strip()
        if detail:
            return f"exit code {self.returncode}: {detail}"
        return f"exit code {self.returncode}"


class CommandRunner(Protocol):
    """Anything able to run a command to completion."""

    def run(self, cmd: list[str], stdin: str | None = None) -> CommandResult: ...


class SubprocessRunner:
    """CommandRunner backed by subprocess.run.

    Commands block until they exit; there is no timeout.
    """

    def run(self, cmd: list[str], stdin: str | None = None) -> CommandResult:
        """Run a command and capture its output.

        Args:
            cmd: The command and its arguments.
            stdin: Text fed to the command's standard input.

        Returns:
            The captured result. A missing executable is reported as
            exit code 127 instead of raising.

        """
        # Only argv is traced; stdin may carry key material or plaintext
        ic(cmd)
        try:
            completed = subprocess.run(
                cmd,
                input=stdin,
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError:
            return CommandResult(stdout="", stderr=f"{cmd[0]}: command not found", returncode=COMMAND_NOT_FOUND)

        ic(completed.returncode)
        return CommandResult(stdout=completed.stdout, stderr=completed.stderr, returncode=completed.returncode)
