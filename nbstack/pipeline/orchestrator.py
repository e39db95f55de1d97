"""
Orchestrator: options -> units -> finalize -> commit -> deferred tasks.

State machine:

    Init -> OptionsValidated -> Composing -> Finalized -> Committing -> Done
      \\_______________________________________________________/
                           -> Aborted (on any fatal diagnostic)

Key invariants:
- No filesystem write happens before Finalized
- Units run strictly sequentially in the declared order
- Deferred tasks run only after a successful commit, in append order
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Mapping

from rich.console import Console

from ..audit_log import ChangeSummary, log_operation
from ..errors import ConfigConflict, UnitError
from ..mutation.config import ConfigCoordinator
from ..mutation.mutation_set import FinalizedMutations, MutationSet
from ..mutation.operations import Diagnostic
from ..options import InstallOptions, validate_options
from ..settings import Settings
from ..units import default_registry
from ..units.registry import UnitRegistry
from .commit import CommitResult, Committer
from .stack import (
    GENERATION_TASKS,
    ROOT_UNIT,
    UNIT_ORDER,
    next_steps_message,
    root_sequence,
    unit_args,
    validate_order,
    welcome_message,
)
from .store import FileStore
from .tasks import RecordingTaskRunner, TaskRunner


class PipelineState(str, Enum):
    INIT = "init"
    OPTIONS_VALIDATED = "options_validated"
    COMPOSING = "composing"
    FINALIZED = "finalized"
    COMMITTING = "committing"
    DONE = "done"
    ABORTED = "aborted"


_TRANSITIONS: dict[PipelineState, set[PipelineState]] = {
    PipelineState.INIT: {PipelineState.OPTIONS_VALIDATED},
    PipelineState.OPTIONS_VALIDATED: {PipelineState.COMPOSING},
    PipelineState.COMPOSING: {PipelineState.FINALIZED},
    PipelineState.FINALIZED: {PipelineState.COMMITTING},
    PipelineState.COMMITTING: {PipelineState.DONE},
    PipelineState.DONE: set(),
    PipelineState.ABORTED: set(),
}


@dataclass
class PipelineReport:
    """Everything the end-of-run report needs."""

    state: PipelineState = PipelineState.INIT
    options: InstallOptions | None = None
    diagnostics: list[Diagnostic] = field(default_factory=list)
    mutations: MutationSet | None = None
    finalized: FinalizedMutations | None = None
    commit: CommitResult | None = None
    fatal: Diagnostic | None = None
    dry_run: bool = False

    @property
    def success(self) -> bool:
        if self.dry_run:
            return self.state == PipelineState.FINALIZED
        return self.state == PipelineState.DONE

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1

    @property
    def unapplied_count(self) -> int:
        if self.commit is not None:
            return len(self.commit.unapplied)
        if self.finalized is not None:
            return len(self.finalized.operations)
        if self.mutations is not None:
            return len(self.mutations.operations)
        return 0


class Orchestrator:
    """
    Top-level driver of one install run.

    Shared state (the MutationSet and the coordinator's document) lives in
    the run, never in module globals, so runs against different trees do
    not interfere. Two runs against the same tree are not safe to run
    concurrently.
    """

    def __init__(
        self,
        store: FileStore,
        *,
        registry: UnitRegistry | None = None,
        settings: Settings | None = None,
        task_runner: TaskRunner | None = None,
        order: tuple[str, ...] = UNIT_ORDER,
        generation_tasks: tuple[tuple[str, tuple[str, ...]], ...] = GENERATION_TASKS,
        audit_root: Path | None = None,
        console: Console | None = None,
    ):
        self.store = store
        self.registry = registry or default_registry()
        self.settings = settings or Settings()
        self.task_runner = task_runner or RecordingTaskRunner()
        self.order = tuple(order)
        self.generation_tasks = generation_tasks
        self.audit_root = audit_root
        self.console = console or Console(stderr=True)
        self.coordinator = ConfigCoordinator()
        self.state = PipelineState.INIT

        validate_order(self.order, self.registry)

    # -------------------------------------------------------------------------
    # State machine
    # -------------------------------------------------------------------------

    def _transition(self, report: PipelineReport, target: PipelineState) -> None:
        if target != PipelineState.ABORTED and target not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Invalid pipeline transition: {self.state.value} -> {target.value}")
        self.state = target
        report.state = target

    def _abort(self, report: PipelineReport, fatal: Diagnostic) -> PipelineReport:
        report.fatal = fatal
        self._transition(report, PipelineState.ABORTED)
        self.console.print(f"aborted: {fatal.message}", style="red")
        return report

    # -------------------------------------------------------------------------
    # Phases
    # -------------------------------------------------------------------------

    def compose(self, options: InstallOptions) -> MutationSet:
        """Run every unit of the root sequence into a fresh MutationSet."""
        ms = MutationSet()

        with ms.attributed(ROOT_UNIT):
            ms.notice(welcome_message(options), code="welcome")
            for name in self.order:
                unit = self.registry.get(name)
                if unit is None:
                    continue
                meta = unit.metadata
                ms.add_dependency(meta.name, meta.locator, **meta.constraints)

        for name in root_sequence(self.order, self.registry):
            self.console.print(f"Composing {name}...", style="dim")
            self.registry.invoke(name, unit_args(name, options), options, ms)

        with ms.attributed(ROOT_UNIT):
            for task_name, task_args in self.generation_tasks:
                ms.defer_task(task_name, task_args)
            ms.notice(next_steps_message(options), code="next_steps")

        return ms

    def run_tasks(self, finalized: FinalizedMutations) -> list[Diagnostic]:
        diagnostics: list[Diagnostic] = []
        for task in finalized.tasks:
            self.console.print(f"Running {task.name}...", style="dim")
            diagnostics.extend(self.task_runner.run_after_commit(task.name, task.args))
        return diagnostics

    # -------------------------------------------------------------------------
    # run(): the whole pipeline
    # -------------------------------------------------------------------------

    def run(
        self,
        raw_options: Mapping[str, Any],
        *,
        dry_run: bool = False,
        confirm: Callable[[FinalizedMutations], bool] | None = None,
    ) -> PipelineReport:
        """
        Validate, compose, finalize and (unless dry_run) commit.

        Args:
            raw_options: Option values as supplied by the user
            dry_run: Stop after Finalized without touching the store
            confirm: Called with the finalized plan before commit; a False
                return aborts without writing

        Returns:
            PipelineReport; report.exit_code is 0 on Done (or a successful
            dry run) and 1 otherwise
        """
        if self.state != PipelineState.INIT:
            raise RuntimeError("An Orchestrator runs exactly once")
        report = PipelineReport(dry_run=dry_run)

        # Init -> OptionsValidated
        options, option_diagnostics = validate_options(raw_options)
        report.diagnostics.extend(option_diagnostics)
        option_errors = [d for d in option_diagnostics if d.severity == "error"]
        if option_errors:
            return self._abort(report, option_errors[0])
        report.options = options
        self._transition(report, PipelineState.OPTIONS_VALIDATED)

        # OptionsValidated -> Composing
        self._transition(report, PipelineState.COMPOSING)
        ms = self.compose(options)
        report.mutations = ms
        report.diagnostics.extend(ms.diagnostics)

        # Composing -> Finalized
        try:
            finalized = ms.finalize(self.coordinator)
        except UnitError:
            return self._abort(report, ms.errors()[0])
        except ConfigConflict as e:
            fatal = Diagnostic("error", e.message, e.unit or "", e.code)
            report.diagnostics.append(fatal)
            return self._abort(report, fatal)
        report.finalized = finalized
        self._transition(report, PipelineState.FINALIZED)

        if dry_run:
            return report

        if confirm is not None and not confirm(finalized):
            fatal = Diagnostic("error", "Installation cancelled.", ROOT_UNIT, "cancelled")
            report.diagnostics.append(fatal)
            return self._abort(report, fatal)

        # Finalized -> Committing
        self._transition(report, PipelineState.COMMITTING)
        self.console.print(f"Committing {len(finalized.operations)} operations...", style="dim")
        committer = Committer(self.store, self.settings)
        result = committer.commit(finalized)
        report.commit = result
        report.diagnostics.extend(result.diagnostics)
        if not result.success:
            fatal = next(d for d in result.diagnostics if d.severity == "error")
            return self._abort(report, fatal)

        # Committing -> Done
        report.diagnostics.extend(self.run_tasks(finalized))
        if self.audit_root is not None and self.settings.audit_enabled:
            self._log(options, finalized, result)
        self._transition(report, PipelineState.DONE)
        self.console.print("nb_stack install complete.", style="green")
        return report

    def _log(self, options: InstallOptions, finalized: FinalizedMutations, result: CommitResult) -> None:
        created = [s.path for s in result.applied if s.changed and s.before is None]
        updated = [p for p in result.files_touched if p not in created]
        log_operation(
            self.audit_root,
            "install",
            ChangeSummary(created, updated, list(result.dependencies_added)),
            options=options.to_dict(),
            fingerprint=finalized.fingerprint,
            invocations=[inv.to_dict() for inv in finalized.invocations],
        )
