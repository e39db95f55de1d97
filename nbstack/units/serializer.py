"""Serialization unit: JSON serialization with camelized props."""

from __future__ import annotations

from typing import Any

import click

from ..mutation.mutation_set import MutationSet
from .base import Unit, UnitContext, UnitMetadata


class SerializerUnit(Unit):
    @property
    def metadata(self) -> UnitMetadata:
        return UnitMetadata(
            name="nb_serializer",
            role="serialization",
            namespace="nb_serializer",
            locator="github:nordbeam/nb_serializer",
        )

    def flags(self) -> list[click.Parameter]:
        return [
            click.Option(["--with-phoenix"], is_flag=True, default=False),
            click.Option(["--camelize-props"], is_flag=True, default=False),
            click.Option(["--with-typescript"], is_flag=True, default=False),
        ]

    def run(self, params: dict[str, Any], ctx: UnitContext) -> MutationSet:
        ms = ctx.mutations
        ms.set_config("nb_serializer", ["with_phoenix"], params["with_phoenix"])
        ms.set_config("nb_serializer", ["camelize_props"], params["camelize_props"])
        ms.set_config("nb_serializer", ["typescript"], params["with_typescript"])
        ms.set_config("nb_stack", ["camelize_props"], params["camelize_props"])
        ms.set_config("nb_stack", ["typescript"], params["with_typescript"])
        return ms
