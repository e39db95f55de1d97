"""
Unit protocol for installer units.

A unit proposes mutations for one package of the stack. It never touches
storage: given its parsed flags and the run's options, it appends
operations and diagnostics to the shared MutationSet.

Key design decisions:
- Flags are the unit's whole input contract (name + flat string args),
  declared as click options so external callers and the pipeline speak
  the same language
- Units may read prior pending state (dependencies, config) but only
  ever append
- Composition goes through the registry, never by calling another
  unit's run() directly
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Sequence

import click

from ..errors import UnitError
from ..mutation.mutation_set import MutationSet
from ..options import InstallOptions

if TYPE_CHECKING:
    from .registry import UnitRegistry


@dataclass(frozen=True)
class UnitMetadata:
    """Static metadata about a unit."""

    name: str  # e.g., "nb_vite"
    role: str  # e.g., "build tooling"
    namespace: str  # config namespace owned by the unit
    locator: str  # e.g., "github:nordbeam/nb_vite"
    constraints: dict[str, Any] = field(default_factory=lambda: {"override": True})
    composed_by: str | None = None  # unit that composes this one, if any


@dataclass
class UnitContext:
    """Everything a unit may see while running."""

    options: InstallOptions
    mutations: MutationSet
    registry: UnitRegistry

    def compose(self, name: str, args: Sequence[str] = ()) -> MutationSet:
        """Invoke another unit into the same MutationSet."""
        return self.registry.invoke(name, args, self.options, self.mutations)


class Unit(ABC):
    """
    Base class for installer units.

    Subclasses provide metadata, declare their flags and implement run().
    """

    @property
    @abstractmethod
    def metadata(self) -> UnitMetadata:
        """Return static unit metadata."""
        ...

    def flags(self) -> list[click.Parameter]:
        """click options accepted by this unit. Override to add flags."""
        return []

    def parse_args(self, args: Sequence[str]) -> dict[str, Any]:
        """
        Parse the flat argument list into flag values.

        Raises:
            UnitError: unknown flag, missing value or bad value
        """
        command = click.Command(self.metadata.name, params=self.flags(), add_help_option=False)
        try:
            ctx = command.make_context(self.metadata.name, list(args))
        except click.ClickException as e:
            raise UnitError(f"{self.metadata.name}: {e.format_message()}", unit=self.metadata.name) from e
        return dict(ctx.params)

    @abstractmethod
    def run(self, params: dict[str, Any], ctx: UnitContext) -> MutationSet:
        """
        Append this unit's operations to ctx.mutations.

        MUST be deterministic: the same params, options and prior pending
        state always append the same operations. Raise UnitError when the
        unit cannot proceed.
        """
        ...
