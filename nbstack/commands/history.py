"""History command - show past installs from the audit log."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..audit_log import read_audit_log


def run_history(root: Path, last_n: int | None = None, console: Console | None = None) -> int:
    console = console or Console()
    entries = read_audit_log(root, last_n=last_n)
    if not entries:
        console.print("No installs recorded.", style="dim")
        return 0

    table = Table(title="Install history")
    table.add_column("When")
    table.add_column("Options")
    table.add_column("Created", justify="right")
    table.add_column("Updated", justify="right")
    table.add_column("Fingerprint", style="dim")
    for entry in entries:
        options = entry.options
        summary = ", ".join(f"{k}={v}" for k, v in options.items() if k != "yes")
        table.add_row(
            entry.timestamp,
            summary,
            str(entry.changes.files_created),
            str(entry.changes.files_updated),
            entry.fingerprint[:12],
        )
    console.print(table)
    return 0
