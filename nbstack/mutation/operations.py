"""
Pending operations and diagnostics.

Operations are immutable records of a proposed change. Nothing in this
module touches storage; the commit phase interprets them against a
FileStore.

Identity of an operation is (kind, target), where target is the
dependency name, the namespaced config key path, or the file path.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Literal, Union

OnExists = Literal["overwrite", "skip", "error"]
Severity = Literal["notice", "warning", "error"]

ON_EXISTS_POLICIES: tuple[str, ...] = ("overwrite", "skip", "error")


@dataclass(frozen=True)
class Diagnostic:
    """A message produced while composing or committing."""

    severity: Severity
    message: str
    unit: str = ""
    code: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity,
            "message": self.message,
            "unit": self.unit,
            "code": self.code,
        }


@dataclass(frozen=True)
class AddDependency:
    name: str
    locator: str
    constraints: dict[str, Any] = field(default_factory=dict)
    unit: str = ""

    kind = "dependency"

    @property
    def target(self) -> str:
        return self.name

    def payload(self) -> dict[str, Any]:
        return {"locator": self.locator, "constraints": dict(self.constraints)}

    def manifest_entry(self) -> dict[str, Any]:
        """Entry as stored in the dependency manifest."""
        return {"source": self.locator, **self.constraints}


@dataclass(frozen=True)
class SetConfig:
    namespace: str
    key_path: tuple[str, ...]
    value: Any
    unit: str = ""

    kind = "config"

    def __post_init__(self) -> None:
        # Accept lists and dotted strings for convenience
        key_path = self.key_path
        if isinstance(key_path, str):
            key_path = tuple(key_path.split("."))
        object.__setattr__(self, "key_path", tuple(key_path))
        if not self.key_path:
            raise ValueError("key_path must not be empty")

    @property
    def target(self) -> str:
        return f"{self.namespace}:{'.'.join(self.key_path)}"

    def payload(self) -> dict[str, Any]:
        return {"value": self.value}


@dataclass(frozen=True)
class CreateFile:
    path: str
    content: str
    on_exists: OnExists = "error"
    unit: str = ""

    kind = "create_file"

    def __post_init__(self) -> None:
        if self.on_exists not in ON_EXISTS_POLICIES:
            raise ValueError(f"on_exists must be one of {ON_EXISTS_POLICIES}, got {self.on_exists!r}")

    @property
    def target(self) -> str:
        return self.path

    def payload(self) -> dict[str, Any]:
        return {"content": self.content, "on_exists": self.on_exists}


@dataclass(frozen=True)
class PatchFile:
    path: str
    transform: Callable[[str], str]
    unit: str = ""

    kind = "patch_file"

    @property
    def target(self) -> str:
        return self.path

    def payload(self) -> dict[str, Any]:
        describe = getattr(self.transform, "describe", None)
        if callable(describe):
            return {"transform": describe()}
        return {"transform": getattr(self.transform, "__qualname__", repr(self.transform))}


@dataclass(frozen=True)
class DeferTask:
    name: str
    args: tuple[str, ...] = ()
    unit: str = ""

    kind = "task"

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", tuple(self.args))

    @property
    def target(self) -> str:
        return self.name

    def payload(self) -> dict[str, Any]:
        return {"args": list(self.args)}


Operation = Union[AddDependency, SetConfig, CreateFile, PatchFile, DeferTask]


def identity(operation: Operation) -> tuple[str, str]:
    """(kind, target) pair used for conflict detection."""
    return (operation.kind, operation.target)


def operation_to_dict(operation: Operation) -> dict[str, Any]:
    """Serialize for fingerprinting and the audit log."""
    return {
        "kind": operation.kind,
        "target": operation.target,
        "unit": operation.unit,
        **operation.payload(),
    }


def describe(operation: Operation) -> str:
    """One-line human-readable form."""
    if isinstance(operation, AddDependency):
        return f"add dependency {operation.name} ({operation.locator})"
    if isinstance(operation, SetConfig):
        return f"set {operation.target} = {operation.value!r}"
    if isinstance(operation, CreateFile):
        return f"create {operation.path} (on exists: {operation.on_exists})"
    if isinstance(operation, PatchFile):
        return f"patch {operation.path}: {operation.payload()['transform']}"
    return f"run {operation.name} {' '.join(operation.args)}".rstrip()
