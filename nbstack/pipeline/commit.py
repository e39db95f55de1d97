"""
Commit: materialize finalized operations against a FileStore.

Two passes:
1. render - compute every operation's effect in memory, in append order,
   against the last pending content of each path (disk is read once per
   path, on first touch). Policy violations abort here, before any write.
2. apply - write changed content in append order. An OSError stops the
   remaining writes; already-applied writes are not rolled back.

DeferTask operations are not rendered; the orchestrator hands them to the
task runner after a successful commit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import yaml

from ..errors import CommitError, CommitIOError, FileConflictError
from ..mutation.config import get_path, same_value, set_path
from ..mutation.mutation_set import FinalizedMutations
from ..mutation.operations import (
    AddDependency,
    CreateFile,
    DeferTask,
    Diagnostic,
    Operation,
    PatchFile,
    SetConfig,
)
from ..settings import Settings
from ..util import normalize_path
from .store import FileStore

_MISSING = object()


@dataclass(frozen=True)
class CommitStep:
    """Rendered effect of one operation on one path."""

    index: int
    operation: Operation
    path: str
    before: str | None
    after: str | None

    @property
    def changed(self) -> bool:
        return self.after is not None and self.after != self.before


@dataclass
class CommitResult:
    success: bool
    steps: list[CommitStep] = field(default_factory=list)
    applied: list[CommitStep] = field(default_factory=list)
    unapplied: list[Operation] = field(default_factory=list)
    dependencies_added: list[str] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)
    error: CommitError | None = None

    @property
    def files_touched(self) -> list[str]:
        touched: list[str] = []
        for step in self.applied:
            if step.changed and step.path not in touched:
                touched.append(step.path)
        return touched


def load_yaml_document(content: str | None, path: str) -> dict[str, Any]:
    if content is None or not content.strip():
        return {}
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise CommitError(f"{path}: invalid YAML: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise CommitError(f"{path}: expected a mapping at the top level")
    return data


def dump_yaml_document(document: dict[str, Any]) -> str:
    return yaml.safe_dump(document, sort_keys=False, default_flow_style=False, allow_unicode=True)


class Committer:
    """Applies a FinalizedMutations to a FileStore."""

    def __init__(self, store: FileStore, settings: Settings | None = None):
        self.store = store
        self.settings = settings or Settings()

    # -------------------------------------------------------------------------
    # render(): pure apart from first-touch reads
    # -------------------------------------------------------------------------

    def render(self, finalized: FinalizedMutations) -> tuple[list[CommitStep], list[str], list[Diagnostic]]:
        """
        Compute the effect of every operation without writing.

        Returns:
            (steps, dependencies_added, diagnostics)

        Raises:
            FileConflictError: CreateFile with on_exists='error' met other content
            CommitError: a patch target is missing, a transform failed, or a
                manifest/config document is malformed
        """
        working: dict[str, str | None] = {}
        steps: list[CommitStep] = []
        added: list[str] = []
        diagnostics: list[Diagnostic] = []

        def current(path: str) -> str | None:
            try:
                path = normalize_path(path)
            except ValueError as e:
                raise CommitError(str(e), unit=op.unit) from e
            if path not in working:
                try:
                    working[path] = self.store.read(path)
                except (OSError, UnicodeDecodeError) as e:
                    raise CommitIOError(f"reading {path} failed: {e}", unit=op.unit) from e
            return working[path]

        for index, op in enumerate(finalized.operations):
            if isinstance(op, DeferTask):
                continue

            if isinstance(op, AddDependency):
                path = self.settings.manifest_path
                before = current(path)
                after = self._render_dependency(op, before, path, diagnostics)
                if after != before:
                    added.append(op.name)
            elif isinstance(op, SetConfig):
                path = self.settings.config_path
                before = current(path)
                after = self._render_config(op, before, path, diagnostics)
            elif isinstance(op, CreateFile):
                path = op.path
                before = current(path)
                after = self._render_create(op, before, diagnostics)
            elif isinstance(op, PatchFile):
                path = op.path
                before = current(path)
                after = self._render_patch(op, before)
            else:
                raise CommitError(f"unsupported operation: {op!r}")

            path = normalize_path(path)
            working[path] = after
            steps.append(CommitStep(index, op, path, before, after))

        return steps, added, diagnostics

    def _render_dependency(
        self,
        op: AddDependency,
        before: str | None,
        path: str,
        diagnostics: list[Diagnostic],
    ) -> str | None:
        document = load_yaml_document(before, path)
        if document.get("dependencies") is None:
            document["dependencies"] = {}
        dependencies = document["dependencies"]
        if not isinstance(dependencies, dict):
            raise CommitError(f"{path}: 'dependencies' must be a mapping", unit=op.unit)

        entry = op.manifest_entry()
        existing = dependencies.get(op.name)
        if same_value(existing, entry):
            return before
        if existing is not None:
            diagnostics.append(
                Diagnostic("notice", f"replacing dependency {op.name}: {existing!r} -> {entry!r}", op.unit, "dependency")
            )
        dependencies[op.name] = entry
        return dump_yaml_document(document)

    def _render_config(
        self,
        op: SetConfig,
        before: str | None,
        path: str,
        diagnostics: list[Diagnostic],
    ) -> str | None:
        document = load_yaml_document(before, path)
        full_path = (op.namespace, *op.key_path)
        previous = get_path(document, full_path, _MISSING)
        if same_value(previous, op.value):
            return before
        try:
            set_path(document, full_path, op.value)
        except ValueError as e:
            raise CommitError(f"{path}: {e}", unit=op.unit) from e
        if previous is not _MISSING:
            diagnostics.append(
                Diagnostic("notice", f"changing {op.target}: {previous!r} -> {op.value!r}", op.unit, "config")
            )
        return dump_yaml_document(document)

    def _render_create(self, op: CreateFile, before: str | None, diagnostics: list[Diagnostic]) -> str | None:
        if before is None or before == op.content:
            return op.content
        if op.on_exists == "overwrite":
            return op.content
        if op.on_exists == "skip":
            diagnostics.append(Diagnostic("notice", f"kept existing {op.path}", op.unit, "skip"))
            return before
        raise FileConflictError(f"{op.path} already exists with different content", unit=op.unit)

    def _render_patch(self, op: PatchFile, before: str | None) -> str:
        if before is None:
            raise CommitError(f"cannot patch {op.path}: file does not exist", unit=op.unit)
        try:
            return op.transform(before)
        except Exception as e:
            raise CommitError(f"patching {op.path} failed: {e}", unit=op.unit) from e

    # -------------------------------------------------------------------------
    # commit(): render, then write in order
    # -------------------------------------------------------------------------

    def commit(self, finalized: FinalizedMutations) -> CommitResult:
        try:
            steps, added, diagnostics = self.render(finalized)
        except CommitError as e:
            return CommitResult(
                success=False,
                unapplied=list(finalized.operations),
                diagnostics=[Diagnostic("error", e.message, e.unit or "", e.code)],
                error=e,
            )

        result = CommitResult(success=True, steps=steps, dependencies_added=added, diagnostics=diagnostics)
        for position, step in enumerate(steps):
            if step.changed:
                try:
                    self.store.write(step.path, step.after or "")
                except OSError as e:
                    error = CommitIOError(f"writing {step.path} failed: {e}", unit=step.operation.unit)
                    remaining = {s.index for s in steps[position:]}
                    result.success = False
                    result.error = error
                    result.unapplied = [
                        op
                        for i, op in enumerate(finalized.operations)
                        if i in remaining or isinstance(op, DeferTask)
                    ]
                    result.diagnostics.append(Diagnostic("error", error.message, error.unit or "", error.code))
                    return result
            result.applied.append(step)
        return result
