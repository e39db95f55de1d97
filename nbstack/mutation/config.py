"""
Configuration coordination across units.

Several units assert values under their own namespace and under the shared
`nb_stack` namespace. The coordinator folds those assertions into a single
effective document. Agreement is verified, never assumed: two assertions
for the same key must be structurally equal, otherwise the key is reported
as a conflict and no value is chosen for it.
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass
from typing import Any, Iterable

from ..errors import ConfigConflict
from .operations import SetConfig


@dataclass(frozen=True)
class Assignment:
    """The effective assignment for one (namespace, key_path)."""

    namespace: str
    key_path: tuple[str, ...]
    value: Any
    unit: str
    duplicates: int = 0


class ConfigCoordinator:
    """Single source of truth for effective configuration after all units ran."""

    def merge(self, operations: Iterable[SetConfig]) -> tuple[dict[str, Any], list[ConfigConflict]]:
        """
        Merge SetConfig operations in order.

        Returns:
            (document, conflicts). The document maps namespace -> nested
            mapping of key path -> value. Conflicting keys are left out of
            the document; there is at most one conflict per key.
        """
        assignments, conflicts = self.resolve(operations)
        document: dict[str, Any] = {}
        merged: list[Assignment] = []
        for assignment in assignments:
            # A key cannot be both a value and a mapping of deeper keys
            other = _overlapping(merged, assignment)
            if other is not None:
                conflicts.append(
                    ConfigConflict(
                        "config",
                        _target(assignment.namespace, assignment.key_path),
                        (other.unit, other.value),
                        (assignment.unit, assignment.value),
                    )
                )
                continue
            set_path(document, (assignment.namespace, *assignment.key_path), assignment.value)
            merged.append(assignment)
        return document, conflicts

    def resolve(self, operations: Iterable[SetConfig]) -> tuple[list[Assignment], list[ConfigConflict]]:
        """Collapse identical assertions and collect conflicting ones."""
        first_seen: dict[tuple[str, tuple[str, ...]], Assignment] = {}
        conflicted: set[tuple[str, tuple[str, ...]]] = set()
        conflicts: list[ConfigConflict] = []

        for op in operations:
            key = (op.namespace, op.key_path)
            current = first_seen.get(key)
            if current is None:
                first_seen[key] = Assignment(op.namespace, op.key_path, deepcopy(op.value), op.unit)
                continue
            if same_value(current.value, op.value):
                first_seen[key] = Assignment(
                    current.namespace,
                    current.key_path,
                    current.value,
                    current.unit,
                    duplicates=current.duplicates + 1,
                )
                continue
            if key in conflicted:
                continue
            conflicted.add(key)
            conflicts.append(
                ConfigConflict(
                    "config",
                    _target(op.namespace, op.key_path),
                    (current.unit, current.value),
                    (op.unit, op.value),
                )
            )

        assignments = [a for key, a in first_seen.items() if key not in conflicted]
        return assignments, conflicts


def get_path(document: dict[str, Any], path: tuple[str, ...], default: Any = None) -> Any:
    node: Any = document
    for part in path:
        if not isinstance(node, dict) or part not in node:
            return default
        node = node[part]
    return node


def set_path(document: dict[str, Any], path: tuple[str, ...], value: Any) -> Any:
    """
    Set a nested value, creating intermediate mappings.

    Returns the previous value (None when absent). Raises ValueError when an
    intermediate key holds a non-mapping value.
    """
    node = document
    for part in path[:-1]:
        child = node.get(part)
        if child is None:
            # An empty YAML key (`nb_routes:`) loads as None
            child = node[part] = {}
        if not isinstance(child, dict):
            raise ValueError(f"{'.'.join(path)}: {part!r} is not a mapping")
        node = child
    previous = node.get(path[-1])
    node[path[-1]] = deepcopy(value)
    return previous


def same_value(a: Any, b: Any) -> bool:
    """Structural equality that also requires matching types, so True and 1 differ."""
    if type(a) is not type(b):
        return False
    if isinstance(a, dict):
        return a.keys() == b.keys() and all(same_value(a[k], b[k]) for k in a)
    if isinstance(a, (list, tuple)):
        return len(a) == len(b) and all(same_value(x, y) for x, y in zip(a, b))
    return a == b


def _target(namespace: str, key_path: tuple[str, ...]) -> str:
    return f"{namespace}:{'.'.join(key_path)}"


def _overlapping(assignments: list[Assignment], candidate: Assignment) -> Assignment | None:
    full = (candidate.namespace, *candidate.key_path)
    for other in assignments:
        other_full = (other.namespace, *other.key_path)
        shortest = min(len(full), len(other_full))
        if full[:shortest] == other_full[:shortest]:
            return other
    return None
