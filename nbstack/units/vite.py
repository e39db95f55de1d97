"""Build-tooling unit: Vite integration with HMR."""

from __future__ import annotations

from typing import Any

import click

from ..mutation.mutation_set import MutationSet
from .base import Unit, UnitContext, UnitMetadata

VITE_CONFIG_TEMPLATE = """\
import {{ defineConfig }} from 'vite';
import {{ nbVite }} from '@nordbeam/nb-vite';

export default defineConfig({{
  plugins: [
    nbVite({{ input: ['js/app.{entry_ext}'] }}),
  ],
}});
"""


def vite_config_path(typescript: bool) -> str:
    return f"assets/vite.config.{'ts' if typescript else 'js'}"


class ViteUnit(Unit):
    @property
    def metadata(self) -> UnitMetadata:
        return UnitMetadata(
            name="nb_vite",
            role="build tooling",
            namespace="nb_vite",
            locator="github:nordbeam/nb_vite",
        )

    def flags(self) -> list[click.Parameter]:
        return [click.Option(["--typescript"], is_flag=True, default=False)]

    def run(self, params: dict[str, Any], ctx: UnitContext) -> MutationSet:
        typescript = params["typescript"]
        config_path = vite_config_path(typescript)
        entry_ext = "tsx" if typescript else "jsx"

        ms = ctx.mutations
        ms.set_config("nb_vite", ["typescript"], typescript)
        ms.set_config("nb_vite", ["config_path"], config_path)
        ms.set_config("nb_stack", ["typescript"], typescript)
        ms.create_file(config_path, VITE_CONFIG_TEMPLATE.format(entry_ext=entry_ext), on_exists="skip")
        return ms
