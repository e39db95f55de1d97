"""Type-generation unit: TypeScript types for props and serializers."""

from __future__ import annotations

from typing import Any

import click

from ..errors import UnitError
from ..mutation.mutation_set import MutationSet
from .base import Unit, UnitContext, UnitMetadata

DEFAULT_OUTPUT_DIR = "assets/js/types"

TYPES_INDEX_TEMPLATE = """\
// Generated by nb_ts. Regenerate with `mix ts.gen`.
export {};
"""


def types_index_path(output_dir: str = DEFAULT_OUTPUT_DIR) -> str:
    return f"{output_dir.rstrip('/')}/index.ts"


class TypesUnit(Unit):
    @property
    def metadata(self) -> UnitMetadata:
        return UnitMetadata(
            name="nb_ts",
            role="type generation",
            namespace="nb_ts",
            locator="github:nordbeam/nb_ts",
            composed_by="nb_inertia",
        )

    def flags(self) -> list[click.Parameter]:
        return [click.Option(["--output-dir"], default=DEFAULT_OUTPUT_DIR, show_default=True)]

    def run(self, params: dict[str, Any], ctx: UnitContext) -> MutationSet:
        output_dir = params["output_dir"].strip().rstrip("/")
        if not output_dir or output_dir.startswith("/"):
            raise UnitError(f"--output-dir must be a relative path, got {params['output_dir']!r}")
        ms = ctx.mutations
        ms.set_config("nb_ts", ["output_dir"], output_dir)
        ms.set_config("nb_stack", ["typescript"], True)
        ms.create_file(types_index_path(output_dir), TYPES_INDEX_TEMPLATE, on_exists="skip")
        return ms
