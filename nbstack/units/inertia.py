"""Integration unit: Inertia.js with enhanced, route-aware components."""

from __future__ import annotations

from typing import Any

import click

from ..errors import UnitError
from ..mutation.mutation_set import MutationSet
from ..options import FRAMEWORKS
from .base import Unit, UnitContext, UnitMetadata

PAGE_EXTENSIONS = {
    "react": ("tsx", "jsx"),
    "vue": ("vue", "vue"),
    "svelte": ("svelte", "svelte"),
}

INERTIA_LIB_TEMPLATE = """\
// Enhanced Inertia components aware of nb_routes RouteResult objects.
export {{ router, Link, useForm }} from '@nordbeam/nb-inertia/{framework}';
"""

HOME_PAGES = {
    "react": """\
export default function Home({ greeting }{props_type}) {
  return <h1>{greeting}</h1>;
}
""",
    "vue": """\
<script setup{lang}>
defineProps(['greeting']);
</script>

<template>
  <h1>{{ greeting }}</h1>
</template>
""",
    "svelte": """\
<script{lang}>
  export let greeting;
</script>

<h1>{greeting}</h1>
""",
}

SSR_TEMPLATE = """\
// {mode} server-side rendering entry point.
import {{ createServer }} from '@nordbeam/nb-inertia/{framework}/ssr';

export default createServer({{ mode: '{mode}' }});
"""


def lib_path(typescript: bool) -> str:
    return f"assets/js/lib/inertia.{'ts' if typescript else 'js'}"


def home_page_path(framework: str, typescript: bool) -> str:
    ts_ext, js_ext = PAGE_EXTENSIONS[framework]
    return f"assets/js/pages/Home.{ts_ext if typescript else js_ext}"


def _home_page(framework: str, typescript: bool) -> str:
    template = HOME_PAGES[framework]
    if framework == "react":
        return template.replace("{props_type}", ": { greeting: string }" if typescript else "")
    return template.replace("{lang}", ' lang="ts"' if typescript else "")


class InertiaUnit(Unit):
    @property
    def metadata(self) -> UnitMetadata:
        return UnitMetadata(
            name="nb_inertia",
            role="integration",
            namespace="nb_inertia",
            locator="github:nordbeam/nb_inertia",
        )

    def flags(self) -> list[click.Parameter]:
        return [
            click.Option(["--client-framework"], default="react"),
            click.Option(["--camelize-props"], is_flag=True, default=False),
            click.Option(["--typescript"], is_flag=True, default=False),
            click.Option(["--ssr"], is_flag=True, default=False),
        ]

    def run(self, params: dict[str, Any], ctx: UnitContext) -> MutationSet:
        framework = params["client_framework"]
        typescript = params["typescript"]
        ssr = params["ssr"]
        ms = ctx.mutations

        if framework not in FRAMEWORKS:
            raise UnitError(f"Unsupported client framework '{framework}'.")
        if not ms.has_dependency("nb_vite"):
            raise UnitError("nb_inertia requires nb_vite; add the build tooling unit before integration.")

        if typescript:
            ctx.compose("nb_ts")

        ms.set_config("nb_inertia", ["client_framework"], framework)
        ms.set_config("nb_inertia", ["camelize_props"], params["camelize_props"])
        ms.set_config("nb_inertia", ["typescript"], typescript)
        ms.set_config("nb_inertia", ["ssr"], ssr)
        ms.set_config("nb_stack", ["camelize_props"], params["camelize_props"])
        ms.set_config("nb_stack", ["typescript"], typescript)

        ms.create_file(lib_path(typescript), INERTIA_LIB_TEMPLATE.format(framework=framework), on_exists="overwrite")
        ms.create_file(home_page_path(framework, typescript), _home_page(framework, typescript), on_exists="skip")

        if ssr:
            ext = "tsx" if typescript else "jsx"
            for mode, name in (("development", "ssr_dev"), ("production", "ssr_prod")):
                ms.create_file(
                    f"assets/js/{name}.{ext}",
                    SSR_TEMPLATE.format(mode=mode, framework=framework),
                    on_exists="skip",
                )
        return ms
