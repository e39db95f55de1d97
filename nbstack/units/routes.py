"""Routing unit: type-safe route helpers."""

from __future__ import annotations

from typing import Any

import click

from ..mutation.mutation_set import MutationSet
from ..mutation.transforms import EnsureLine, ReplaceText
from .base import Unit, UnitContext, UnitMetadata

ROUTES_OUTPUT = "assets/js/routes.js"
VARIANTS = ("simple", "rich")

PLUGIN_IMPORT = "import { nbRoutes } from '@nordbeam/nb-routes/vite';"


class RoutesUnit(Unit):
    @property
    def metadata(self) -> UnitMetadata:
        return UnitMetadata(
            name="nb_routes",
            role="routing",
            namespace="nb_routes",
            locator="github:nordbeam/nb_routes",
        )

    def flags(self) -> list[click.Parameter]:
        return [
            click.Option(["--variant"], type=click.Choice(VARIANTS), default="rich"),
            click.Option(["--with-methods"], is_flag=True, default=False),
            click.Option(["--with-forms"], is_flag=True, default=False),
        ]

    def run(self, params: dict[str, Any], ctx: UnitContext) -> MutationSet:
        ms = ctx.mutations
        ms.set_config("nb_routes", ["variant"], params["variant"])
        ms.set_config("nb_routes", ["with_methods"], params["with_methods"])
        ms.set_config("nb_routes", ["with_forms"], params["with_forms"])
        ms.set_config("nb_routes", ["output"], ROUTES_OUTPUT)

        # Hook route regeneration into the build tool's config, if one is pending
        vite_config = ms.pending_config("nb_vite", ["config_path"])
        if vite_config is None:
            ms.warning("Build tooling is not configured; skipping the nbRoutes Vite plugin.")
            return ms

        ms.patch_file(vite_config, EnsureLine(PLUGIN_IMPORT, after="import { nbVite }"))
        ms.patch_file(vite_config, ReplaceText("  plugins: [\n", "  plugins: [\n    nbRoutes(),\n"))
        return ms
