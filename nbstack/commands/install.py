"""Install command implementation - run the stack pipeline against a project."""

from __future__ import annotations

from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..errors import SettingsError
from ..mutation.mutation_set import FinalizedMutations
from ..mutation.operations import Diagnostic, describe
from ..pipeline.orchestrator import Orchestrator, PipelineReport
from ..pipeline.stack import UNIT_ORDER, root_sequence
from ..pipeline.store import DiskFileStore
from ..pipeline.tasks import RecordingTaskRunner, SubprocessTaskRunner, TaskRunner
from ..settings import load_settings
from ..units import default_registry

SEVERITY_STYLES = {"notice": "cyan", "warning": "yellow", "error": "red"}


def _print_diagnostic(console: Console, diagnostic: Diagnostic) -> None:
    style = SEVERITY_STYLES.get(diagnostic.severity, "white")
    origin = f" ({diagnostic.unit})" if diagnostic.unit else ""
    console.print(f"[{style}]{diagnostic.severity}[/{style}]{origin}: {diagnostic.message}")


def render_plan(finalized: FinalizedMutations, console: Console) -> None:
    """Print the finalized operations in commit order."""
    table = Table(title="Planned operations")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Unit")
    table.add_column("Operation")
    for i, op in enumerate(finalized.operations, start=1):
        table.add_row(str(i), op.unit or "-", describe(op))
    console.print(table)


def render_report(report: PipelineReport, console: Console) -> None:
    """
    Print the end-of-run report.

    Notices and warnings come first, in order; then either a success
    summary or an abort summary naming the first fatal diagnostic.
    """
    for diagnostic in report.diagnostics:
        if diagnostic.severity != "error":
            _print_diagnostic(console, diagnostic)

    if report.dry_run and report.finalized is not None and report.fatal is None:
        render_plan(report.finalized, console)
        console.print("[bold]DRY RUN[/bold] - nothing was written", style="yellow")
        return

    if report.success and report.commit is not None:
        commit = report.commit
        table = Table(title="Installation complete")
        table.add_column("Kind")
        table.add_column("Items")
        table.add_row("Files touched", "\n".join(commit.files_touched) or "(none)")
        table.add_row("Dependencies added", "\n".join(commit.dependencies_added) or "(none)")
        tasks = report.finalized.tasks if report.finalized else []
        table.add_row("Deferred tasks", "\n".join(t.name for t in tasks) or "(none)")
        console.print(table)
        return

    fatal = report.fatal
    origin = f"{fatal.unit}: " if fatal and fatal.unit else ""
    message = fatal.message if fatal else "unknown failure"
    console.print(
        Panel(
            f"{origin}{message}\nUnapplied operations: {report.unapplied_count}",
            title=f"Aborted ({report.state.value})",
            border_style="red",
        )
    )


def _task_runner(root: Path, command: tuple[str, ...]) -> TaskRunner:
    if command:
        return SubprocessTaskRunner(command, root)
    return RecordingTaskRunner()


def run_install(
    root: Path,
    *,
    framework: str | None = None,
    typescript: bool | None = None,
    ssr: bool | None = None,
    yes: bool = False,
    dry_run: bool = False,
    console: Console | None = None,
) -> int:
    """
    Install the stack into `root`.

    Returns:
        Exit code: 0 on success (or a successful dry run), 1 otherwise
    """
    console = console or Console(stderr=True)

    try:
        settings = load_settings(root)
    except SettingsError as e:
        console.print(f"[red]Error:[/red] {e}")
        return 1

    orchestrator = Orchestrator(
        DiskFileStore(root),
        registry=default_registry(),
        settings=settings,
        task_runner=_task_runner(root, settings.task_command),
        audit_root=root,
        console=console,
    )

    def _confirm(finalized: FinalizedMutations) -> bool:
        render_plan(finalized, console)
        return click.confirm("Apply these changes?", default=True, err=True)

    report = orchestrator.run(
        {"framework": framework, "typescript": typescript, "ssr": ssr, "yes": yes},
        dry_run=dry_run,
        confirm=None if yes else _confirm,
    )
    render_report(report, console)
    return report.exit_code


def run_units(console: Console | None = None) -> int:
    """List the units in dependency order."""
    console = console or Console()
    registry = default_registry()
    invoked = set(root_sequence(UNIT_ORDER, registry))

    table = Table(title="Units")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Unit")
    table.add_column("Role")
    table.add_column("Invoked by")
    for i, name in enumerate(UNIT_ORDER, start=1):
        unit = registry.get(name)
        role = unit.metadata.role if unit else "external"
        invoker = "pipeline" if name in invoked else (unit.metadata.composed_by or "-") if unit else "-"
        table.add_row(str(i), name, role, invoker)
    console.print(table)
    return 0
