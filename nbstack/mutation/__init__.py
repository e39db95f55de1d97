"""
Pending mutations: operations, diagnostics and their reconciliation.

Nothing in this package touches storage.
"""

from __future__ import annotations

from .config import Assignment, ConfigCoordinator
from .mutation_set import FinalizedMutations, MutationSet, UnitInvocation
from .operations import (
    AddDependency,
    CreateFile,
    DeferTask,
    Diagnostic,
    Operation,
    PatchFile,
    SetConfig,
    describe,
    identity,
)
from .transforms import EnsureLine, ReplaceText

__all__ = [
    # Operations
    "AddDependency",
    "CreateFile",
    "DeferTask",
    "Diagnostic",
    "Operation",
    "PatchFile",
    "SetConfig",
    "describe",
    "identity",
    # Transforms
    "EnsureLine",
    "ReplaceText",
    # Accumulation
    "Assignment",
    "ConfigCoordinator",
    "FinalizedMutations",
    "MutationSet",
    "UnitInvocation",
]
