"""
Unit registry: stable unit name -> Unit instance.

The registry is built once per orchestrator and passed explicitly; there
is no module-level registry. invoke() is the single entry point for
running a unit, whether from the pipeline or from a composing unit.
"""

from __future__ import annotations

from typing import Sequence

from ..errors import UnitError
from ..mutation.mutation_set import MutationSet, UnitInvocation
from ..options import InstallOptions
from .base import Unit, UnitContext


class UnitRegistry:
    def __init__(self, units: Sequence[Unit] = ()):
        self._units: dict[str, Unit] = {}
        for unit in units:
            self.register(unit)

    def register(self, unit: Unit) -> None:
        """
        Register a unit by its metadata name.

        Raises:
            ValueError: a unit with the same name is already registered
        """
        name = unit.metadata.name
        if name in self._units:
            raise ValueError(f"Duplicate unit name: {name}")
        self._units[name] = unit

    def get(self, name: str) -> Unit | None:
        return self._units.get(name)

    def names(self) -> list[str]:
        return list(self._units.keys())

    def __contains__(self, name: object) -> bool:
        return name in self._units

    def invoke(
        self,
        name: str,
        args: Sequence[str],
        options: InstallOptions,
        mutations: MutationSet,
    ) -> MutationSet:
        """
        Run the unit `name` with `args` into `mutations`.

        Names that are not registered are external units: they are
        appended as a DeferTask for the task runner instead of failing.
        A unit already on the composition stack is a cycle and is reported
        as an error; a unit that already ran is skipped with a notice.
        """
        args = tuple(args)
        parent = mutations.current_unit
        start = len(mutations.diagnostics)

        unit = self.get(name)
        if unit is None:
            mutations.defer_task(name, args)
            mutations.notice(f"{name} is not available in-process; deferred to the task runner.", code="external")
            mutations.record_invocation(UnitInvocation(name, args, mutations.diagnostics_since(start), parent))
            return mutations

        if name in mutations.unit_stack:
            chain = " -> ".join([*mutations.unit_stack, name])
            mutations.error(f"Composition cycle: {chain}", code="unit_error")
            mutations.record_invocation(UnitInvocation(name, args, mutations.diagnostics_since(start), parent))
            return mutations

        if any(inv.unit == name for inv in mutations.invocations):
            mutations.notice(f"{name} already ran in this run; skipping.", code="duplicate_invocation")
            return mutations

        with mutations.attributed(name):
            try:
                params = unit.parse_args(args)
                unit.run(params, UnitContext(options, mutations, self))
            except UnitError as e:
                mutations.error(e.message, code=e.code)
            except Exception as e:
                mutations.error(f"{name} failed: {e}", code="unit_error")

        mutations.record_invocation(UnitInvocation(name, args, mutations.diagnostics_since(start), parent))
        return mutations
