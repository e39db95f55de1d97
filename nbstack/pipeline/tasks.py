"""
Task runner collaborators for deferred tasks.

Deferred tasks run strictly after a successful commit, in append order.
Their diagnostics are surfaced in the report; nothing they return flows
back into the run.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, Sequence

from ..mutation.operations import Diagnostic


class TaskRunner(Protocol):
    def run_after_commit(self, name: str, args: Sequence[str]) -> list[Diagnostic]:
        ...


@dataclass
class RecordingTaskRunner:
    """Records deferred tasks so the user can run them later."""

    calls: list[tuple[str, tuple[str, ...]]] = field(default_factory=list)

    def run_after_commit(self, name: str, args: Sequence[str]) -> list[Diagnostic]:
        self.calls.append((name, tuple(args)))
        command = " ".join([name, *args])
        return [Diagnostic("notice", f"pending task: {command}", unit=name, code="task")]


class SubprocessTaskRunner:
    """Runs `<command...> <name> <args...>` in the project root."""

    def __init__(self, command: Sequence[str], cwd: Path, *, timeout: float | None = None):
        if not command:
            raise ValueError("command must not be empty")
        self.command = list(command)
        self.cwd = cwd
        self.timeout = timeout

    def run_after_commit(self, name: str, args: Sequence[str]) -> list[Diagnostic]:
        argv = [*self.command, name, *args]
        try:
            completed = subprocess.run(
                argv,
                cwd=str(self.cwd),
                text=True,
                check=False,
                capture_output=True,
                timeout=self.timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            return [Diagnostic("warning", f"task {name} could not run: {e}", unit=name, code="task")]

        if completed.returncode != 0:
            detail = (completed.stderr or completed.stdout or "").strip().splitlines()
            tail = detail[-1] if detail else "no output"
            return [
                Diagnostic(
                    "warning",
                    f"task {name} exited with {completed.returncode}: {tail}",
                    unit=name,
                    code="task",
                )
            ]
        return [Diagnostic("notice", f"ran task: {' '.join(argv)}", unit=name, code="task")]
