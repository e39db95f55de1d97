"""Tests for the unit registry and the five stack units."""

from __future__ import annotations

from typing import Any

import click
import pytest

from nbstack.errors import UnitError
from nbstack.mutation import CreateFile, DeferTask, MutationSet, PatchFile, SetConfig
from nbstack.options import InstallOptions
from nbstack.units import (
    InertiaUnit,
    RoutesUnit,
    TypesUnit,
    Unit,
    UnitContext,
    UnitMetadata,
    UnitRegistry,
    ViteUnit,
    default_registry,
)
from nbstack.units.routes import PLUGIN_IMPORT


class EchoUnit(Unit):
    """Unit that composes whatever it is told to."""

    def __init__(self, name: str, composes: str | None = None):
        self._name = name
        self.composes = composes

    @property
    def metadata(self) -> UnitMetadata:
        return UnitMetadata(name=self._name, role="test", namespace=self._name, locator=f"path:{self._name}")

    def flags(self) -> list[click.Parameter]:
        return [click.Option(["--level"], type=int, default=1)]

    def run(self, params: dict[str, Any], ctx: UnitContext) -> MutationSet:
        ctx.mutations.set_config(self._name, ["level"], params["level"])
        if self.composes:
            ctx.compose(self.composes)
        return ctx.mutations


class BrokenUnit(EchoUnit):
    """Fails with an unexpected exception."""

    def run(self, params: dict[str, Any], ctx: UnitContext) -> MutationSet:
        raise KeyError("missing_param")


def _config(ms: MutationSet) -> dict[str, Any]:
    return {op.target: op.value for op in ms.operations if isinstance(op, SetConfig)}


def _with_vite_dependency() -> MutationSet:
    ms = MutationSet()
    ms.add_dependency("nb_vite", "github:nordbeam/nb_vite", override=True)
    return ms


class TestRegistry:
    def test_duplicate_name_rejected(self):
        registry = UnitRegistry([EchoUnit("a")])
        with pytest.raises(ValueError, match="Duplicate unit name"):
            registry.register(EchoUnit("a"))

    def test_default_registry_names(self):
        assert default_registry().names() == ["nb_vite", "nb_routes", "nb_serializer", "nb_ts", "nb_inertia"]

    def test_unknown_unit_becomes_deferred_task(self):
        ms = MutationSet()
        UnitRegistry().invoke("nb_mailer", ["--with-templates"], InstallOptions(), ms)

        assert ms.operations == (DeferTask("nb_mailer", ("--with-templates",)),)
        assert ms.notices()[0].code == "external"
        assert ms.errors() == []

    def test_run_is_attributed_and_recorded(self):
        ms = MutationSet()
        UnitRegistry([EchoUnit("a")]).invoke("a", ["--level", "3"], InstallOptions(), ms)

        assert ms.operations[0].unit == "a"
        assert ms.operations[0].value == 3
        assert [inv.unit for inv in ms.invocations] == ["a"]
        assert ms.unit_stack == ()

    def test_bad_flag_is_unit_error(self):
        ms = MutationSet()
        UnitRegistry([EchoUnit("a")]).invoke("a", ["--nope"], InstallOptions(), ms)

        errors = ms.errors()
        assert len(errors) == 1
        assert errors[0].unit == "a"
        assert errors[0].message.startswith("a: ")
        with pytest.raises(UnitError):
            ms.finalize()

    def test_bad_flag_value_is_unit_error(self):
        with pytest.raises(UnitError):
            EchoUnit("a").parse_args(["--level", "high"])

    def test_unexpected_exception_is_unit_error(self):
        ms = MutationSet()
        UnitRegistry([BrokenUnit("broken")]).invoke("broken", [], InstallOptions(), ms)

        errors = ms.errors()
        assert len(errors) == 1
        assert errors[0].unit == "broken"
        assert errors[0].code == "unit_error"
        assert "missing_param" in errors[0].message
        assert ms.unit_stack == ()

    def test_composition_cycle_is_error(self):
        registry = UnitRegistry([EchoUnit("a", composes="b"), EchoUnit("b", composes="a")])
        ms = MutationSet()
        registry.invoke("a", [], InstallOptions(), ms)

        errors = ms.errors()
        assert len(errors) == 1
        assert "a -> b -> a" in errors[0].message

    def test_second_invocation_is_skipped(self):
        registry = UnitRegistry([EchoUnit("a")])
        ms = MutationSet()
        registry.invoke("a", [], InstallOptions(), ms)
        registry.invoke("a", [], InstallOptions(), ms)

        assert len(ms.operations) == 1
        assert ms.notices()[-1].code == "duplicate_invocation"

    def test_composed_invocation_records_parent(self):
        registry = UnitRegistry([EchoUnit("a", composes="b"), EchoUnit("b")])
        ms = MutationSet()
        registry.invoke("a", [], InstallOptions(), ms)

        parents = {inv.unit: inv.parent for inv in ms.invocations}
        assert parents == {"a": "", "b": "a"}
        assert [op.unit for op in ms.operations] == ["a", "b"]


class TestViteUnit:
    def test_typescript_config(self):
        ms = MutationSet()
        UnitRegistry([ViteUnit()]).invoke("nb_vite", ["--typescript"], InstallOptions(), ms)

        config = _config(ms)
        assert config["nb_vite:typescript"] is True
        assert config["nb_vite:config_path"] == "assets/vite.config.ts"
        assert config["nb_stack:typescript"] is True
        created = [op for op in ms.operations if isinstance(op, CreateFile)]
        assert [op.path for op in created] == ["assets/vite.config.ts"]
        assert created[0].on_exists == "skip"
        assert "js/app.tsx" in created[0].content

    def test_javascript_config(self):
        ms = MutationSet()
        UnitRegistry([ViteUnit()]).invoke("nb_vite", [], InstallOptions(), ms)
        assert _config(ms)["nb_vite:config_path"] == "assets/vite.config.js"


class TestRoutesUnit:
    def test_patches_pending_vite_config(self):
        registry = UnitRegistry([ViteUnit(), RoutesUnit()])
        ms = MutationSet()
        registry.invoke("nb_vite", ["--typescript"], InstallOptions(), ms)
        registry.invoke("nb_routes", ["--variant", "rich", "--with-methods", "--with-forms"], InstallOptions(), ms)

        config = _config(ms)
        assert config["nb_routes:variant"] == "rich"
        assert config["nb_routes:with_methods"] is True
        assert config["nb_routes:with_forms"] is True
        patches = [op for op in ms.operations if isinstance(op, PatchFile)]
        assert {op.path for op in patches} == {"assets/vite.config.ts"}
        assert len(patches) == 2

    def test_warns_without_build_tooling(self):
        ms = MutationSet()
        UnitRegistry([RoutesUnit()]).invoke("nb_routes", [], InstallOptions(), ms)

        assert _config(ms)["nb_routes:variant"] == "rich"
        assert not any(isinstance(op, PatchFile) for op in ms.operations)
        assert len(ms.warnings()) == 1

    def test_unknown_variant_rejected(self):
        ms = MutationSet()
        UnitRegistry([RoutesUnit()]).invoke("nb_routes", ["--variant", "fancy"], InstallOptions(), ms)
        assert ms.errors()[0].unit == "nb_routes"

    def test_patch_applies_to_vite_template(self):
        registry = UnitRegistry([ViteUnit(), RoutesUnit()])
        ms = MutationSet()
        registry.invoke("nb_vite", ["--typescript"], InstallOptions(), ms)
        registry.invoke("nb_routes", [], InstallOptions(), ms)

        content = next(op.content for op in ms.operations if isinstance(op, CreateFile))
        for op in ms.operations:
            if isinstance(op, PatchFile):
                content = op.transform(content)

        assert PLUGIN_IMPORT in content
        assert "nbRoutes()," in content
        assert content.index("import { nbVite }") < content.index(PLUGIN_IMPORT)


class TestSerializerUnit:
    def test_asserts_shared_keys(self):
        ms = MutationSet()
        default_registry().invoke(
            "nb_serializer", ["--with-phoenix", "--camelize-props"], InstallOptions(), ms
        )

        config = _config(ms)
        assert config["nb_serializer:with_phoenix"] is True
        assert config["nb_stack:camelize_props"] is True
        assert config["nb_stack:typescript"] is False


class TestTypesUnit:
    def test_creates_types_index(self):
        ms = MutationSet()
        UnitRegistry([TypesUnit()]).invoke("nb_ts", [], InstallOptions(), ms)

        assert _config(ms)["nb_ts:output_dir"] == "assets/js/types"
        paths = [op.path for op in ms.operations if isinstance(op, CreateFile)]
        assert paths == ["assets/js/types/index.ts"]

    def test_absolute_output_dir_rejected(self):
        ms = MutationSet()
        UnitRegistry([TypesUnit()]).invoke("nb_ts", ["--output-dir", "/tmp/types"], InstallOptions(), ms)
        assert ms.errors()[0].unit == "nb_ts"


class TestInertiaUnit:
    def test_requires_build_tooling_dependency(self):
        ms = MutationSet()
        default_registry().invoke("nb_inertia", ["--client-framework", "react"], InstallOptions(), ms)

        errors = ms.errors()
        assert len(errors) == 1
        assert errors[0].unit == "nb_inertia"
        assert "nb_vite" in errors[0].message

    def test_typescript_composes_types_unit(self):
        ms = _with_vite_dependency()
        default_registry().invoke(
            "nb_inertia", ["--client-framework", "react", "--camelize-props", "--typescript"], InstallOptions(), ms
        )

        assert [inv.unit for inv in ms.invocations] == ["nb_ts", "nb_inertia"]
        paths = [op.path for op in ms.operations if isinstance(op, CreateFile)]
        assert paths == ["assets/js/types/index.ts", "assets/js/lib/inertia.ts", "assets/js/pages/Home.tsx"]

    def test_javascript_skips_types_unit(self):
        ms = _with_vite_dependency()
        default_registry().invoke("nb_inertia", ["--client-framework", "react"], InstallOptions(), ms)

        assert [inv.unit for inv in ms.invocations] == ["nb_inertia"]
        paths = [op.path for op in ms.operations if isinstance(op, CreateFile)]
        assert "assets/js/types/index.ts" not in paths
        assert "assets/js/pages/Home.jsx" in paths

    def test_ssr_entry_points(self):
        ms = _with_vite_dependency()
        default_registry().invoke(
            "nb_inertia", ["--client-framework", "vue", "--ssr"], InstallOptions(framework="vue"), ms
        )

        paths = [op.path for op in ms.operations if isinstance(op, CreateFile)]
        assert "assets/js/pages/Home.vue" in paths
        assert "assets/js/ssr_dev.jsx" in paths
        assert "assets/js/ssr_prod.jsx" in paths
        assert _config(ms)["nb_inertia:ssr"] is True

    def test_metadata(self):
        meta = InertiaUnit().metadata
        assert meta.locator == "github:nordbeam/nb_inertia"
        assert meta.constraints == {"override": True}
        assert TypesUnit().metadata.composed_by == "nb_inertia"

    def test_unsupported_framework(self):
        ms = _with_vite_dependency()
        default_registry().invoke("nb_inertia", ["--client-framework", "angular"], InstallOptions(), ms)
        assert "angular" in ms.errors()[0].message
