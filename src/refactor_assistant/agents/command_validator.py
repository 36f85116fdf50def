"""Command validator: runs a shell command and reports pass/fail."""

import subprocess

from refactor_assistant.models import CommandRunResult

TIMEOUT_EXIT_CODE = -1
SHELL = "sh"


class CommandValidator:
    """Runs a validation command against the current working tree."""

    def __init__(
        self,
        timeout_seconds: float | None = None,
        cwd: str | None = None,
    ) -> None:
        self.timeout_seconds: float | None = timeout_seconds
        self.cwd: str | None = cwd

    def validate(self, command: str) -> bool:
        """Return True when ``command`` exits with status zero."""
        return self.run(command).passed

    def run(self, command: str) -> CommandRunResult:
        """subprocess.run of ``sh -c command`` with captured output.

        Output is kept for reporting only; success is decided by the exit
        status alone. A timeout or a failure to start the shell produces
        exit_code=-1 with the reason in stderr.
        """
        try:
            result = subprocess.run(
                [SHELL, "-c", command],
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
                cwd=self.cwd,
            )
            return CommandRunResult(
                command=command,
                exit_code=result.returncode,
                stdout=result.stdout,
                stderr=result.stderr,
            )
        except subprocess.TimeoutExpired:
            return CommandRunResult(
                command=command,
                exit_code=TIMEOUT_EXIT_CODE,
                stderr=f"Validation command timed out after {self.timeout_seconds}s",
                timed_out=True,
            )
        except OSError as exc:
            return CommandRunResult(
                command=command,
                exit_code=TIMEOUT_EXIT_CODE,
                stderr=f"Failed to start validation command: {exc}",
            )
