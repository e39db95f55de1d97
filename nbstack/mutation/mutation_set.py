"""
MutationSet: the in-memory, append-only log of one run.

Units append operations and diagnostics; nothing is validated on append.
finalize() runs once, after every unit has run, and either produces the
effective operation list or raises the first fatal condition.
"""

from __future__ import annotations

import hashlib
import json
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Iterator, Sequence

from ..errors import ConfigConflict, UnitError
from .config import ConfigCoordinator, same_value
from .operations import (
    AddDependency,
    CreateFile,
    DeferTask,
    Diagnostic,
    OnExists,
    Operation,
    PatchFile,
    SetConfig,
    Severity,
    operation_to_dict,
)


@dataclass(frozen=True)
class UnitInvocation:
    """Audit record of one unit invocation. Not used for control flow."""

    unit: str
    args: tuple[str, ...]
    diagnostics: tuple[Diagnostic, ...] = ()
    parent: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "unit": self.unit,
            "args": list(self.args),
            "parent": self.parent,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }


@dataclass(frozen=True)
class FinalizedMutations:
    """Conflict-checked view of a MutationSet, consumed once by commit."""

    operations: tuple[Operation, ...]
    config: dict[str, Any]
    diagnostics: tuple[Diagnostic, ...]
    invocations: tuple[UnitInvocation, ...]
    fingerprint: str

    @property
    def tasks(self) -> list[DeferTask]:
        return [op for op in self.operations if isinstance(op, DeferTask)]

    @property
    def dependencies(self) -> list[AddDependency]:
        return [op for op in self.operations if isinstance(op, AddDependency)]


@dataclass
class MutationSet:
    """Ordered operations plus diagnostics for one orchestration run."""

    _operations: list[Operation] = field(default_factory=list)
    _diagnostics: list[Diagnostic] = field(default_factory=list)
    _invocations: list[UnitInvocation] = field(default_factory=list)
    _unit_stack: list[str] = field(default_factory=list)
    _finalized: bool = False

    # -------------------------------------------------------------------------
    # Appending
    # -------------------------------------------------------------------------

    @property
    def current_unit(self) -> str:
        return self._unit_stack[-1] if self._unit_stack else ""

    @property
    def unit_stack(self) -> tuple[str, ...]:
        return tuple(self._unit_stack)

    @contextmanager
    def attributed(self, unit: str) -> Iterator[None]:
        """Stamp everything appended inside the block with `unit`."""
        self._unit_stack.append(unit)
        try:
            yield
        finally:
            self._unit_stack.pop()

    def append(self, operation: Operation) -> MutationSet:
        if not operation.unit and self.current_unit:
            operation = replace(operation, unit=self.current_unit)
        self._operations.append(operation)
        return self

    def add_dependency(self, name: str, locator: str, **constraints: Any) -> MutationSet:
        return self.append(AddDependency(name, locator, constraints))

    def set_config(self, namespace: str, key_path: Sequence[str] | str, value: Any) -> MutationSet:
        return self.append(SetConfig(namespace, key_path, value))

    def create_file(self, path: str, content: str, on_exists: OnExists = "error") -> MutationSet:
        return self.append(CreateFile(path, content, on_exists))

    def patch_file(self, path: str, transform: Callable[[str], str]) -> MutationSet:
        return self.append(PatchFile(path, transform))

    def defer_task(self, name: str, args: Sequence[str] = ()) -> MutationSet:
        return self.append(DeferTask(name, tuple(args)))

    def diagnose(self, severity: Severity, message: str, *, code: str = "", unit: str | None = None) -> MutationSet:
        self._diagnostics.append(
            Diagnostic(severity, message, unit=self.current_unit if unit is None else unit, code=code)
        )
        return self

    def notice(self, message: str, *, code: str = "") -> MutationSet:
        return self.diagnose("notice", message, code=code)

    def warning(self, message: str, *, code: str = "") -> MutationSet:
        return self.diagnose("warning", message, code=code)

    def error(self, message: str, *, code: str = "unit_error") -> MutationSet:
        return self.diagnose("error", message, code=code)

    def record_invocation(self, invocation: UnitInvocation) -> None:
        self._invocations.append(invocation)

    # -------------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------------

    @property
    def operations(self) -> tuple[Operation, ...]:
        return tuple(self._operations)

    @property
    def diagnostics(self) -> tuple[Diagnostic, ...]:
        return tuple(self._diagnostics)

    @property
    def invocations(self) -> tuple[UnitInvocation, ...]:
        return tuple(self._invocations)

    def notices(self) -> list[Diagnostic]:
        return [d for d in self._diagnostics if d.severity == "notice"]

    def warnings(self) -> list[Diagnostic]:
        return [d for d in self._diagnostics if d.severity == "warning"]

    def errors(self) -> list[Diagnostic]:
        return [d for d in self._diagnostics if d.severity == "error"]

    def diagnostics_since(self, index: int) -> tuple[Diagnostic, ...]:
        return tuple(self._diagnostics[index:])

    def has_dependency(self, name: str) -> bool:
        return any(isinstance(op, AddDependency) and op.name == name for op in self._operations)

    def pending_config(self, namespace: str, key_path: Sequence[str] | str, default: Any = None) -> Any:
        """Last value asserted so far for a key, as seen by later units."""
        path = tuple(key_path.split(".")) if isinstance(key_path, str) else tuple(key_path)
        for op in reversed(self._operations):
            if isinstance(op, SetConfig) and op.namespace == namespace and op.key_path == path:
                return op.value
        return default

    def targets(self, path: str) -> list[Operation]:
        """Operations whose target is the given file path."""
        return [op for op in self._operations if isinstance(op, (CreateFile, PatchFile)) and op.path == path]

    def fingerprint(self) -> str:
        """sha256 over the canonical JSON of all operations."""
        payload = [operation_to_dict(op) for op in self._operations]
        canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=repr)
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()

    # -------------------------------------------------------------------------
    # Finalize
    # -------------------------------------------------------------------------

    def finalize(self, coordinator: ConfigCoordinator | None = None) -> FinalizedMutations:
        """
        Conflict-check the accumulated operations.

        Raises:
            UnitError: a unit reported an error diagnostic
            ConfigConflict: two units asserted different values for the
                same config key or the same dependency
            RuntimeError: finalize() was already called
        """
        if self._finalized:
            raise RuntimeError("MutationSet has already been finalized")
        self._finalized = True

        errors = self.errors()
        if errors:
            first = errors[0]
            raise UnitError(first.message, unit=first.unit)

        coordinator = coordinator or ConfigCoordinator()
        config_ops = [op for op in self._operations if isinstance(op, SetConfig)]
        document, conflicts = coordinator.merge(config_ops)
        conflicts = _dependency_conflicts(self._operations) + conflicts
        if conflicts:
            raise conflicts[0]

        return FinalizedMutations(
            operations=tuple(_collapse(self._operations)),
            config=document,
            diagnostics=self.diagnostics,
            invocations=self.invocations,
            fingerprint=self.fingerprint(),
        )


def _dependency_conflicts(operations: list[Operation]) -> list[ConfigConflict]:
    seen: dict[str, AddDependency] = {}
    conflicts: list[ConfigConflict] = []
    reported: set[str] = set()
    for op in operations:
        if not isinstance(op, AddDependency):
            continue
        first = seen.setdefault(op.name, op)
        if not same_value(first.payload(), op.payload()) and op.name not in reported:
            reported.add(op.name)
            conflicts.append(
                ConfigConflict("dependency", op.name, (first.unit, first.payload()), (op.unit, op.payload()))
            )
    return conflicts


def _collapse(operations: list[Operation]) -> list[Operation]:
    """Drop repeated SetConfig/AddDependency assertions, keeping the first."""
    seen: set[tuple[str, str]] = set()
    result: list[Operation] = []
    for op in operations:
        if isinstance(op, (SetConfig, AddDependency)):
            key = (op.kind, op.target)
            if key in seen:
                continue
            seen.add(key)
        result.append(op)
    return result
