"""Tests for operations and text transforms."""

from __future__ import annotations

import pytest

from nbstack.mutation import (
    AddDependency,
    CreateFile,
    DeferTask,
    EnsureLine,
    PatchFile,
    ReplaceText,
    SetConfig,
    describe,
    identity,
)
from nbstack.mutation.operations import operation_to_dict


class TestIdentity:
    def test_identity_uses_kind_and_target(self):
        assert identity(AddDependency("nb_vite", "github:nordbeam/nb_vite")) == ("dependency", "nb_vite")
        assert identity(SetConfig("nb_routes", ("variant",), "rich")) == ("config", "nb_routes:variant")
        assert identity(CreateFile("a/b.ts", "x")) == ("create_file", "a/b.ts")
        assert identity(PatchFile("a/b.ts", EnsureLine("x"))) == ("patch_file", "a/b.ts")
        assert identity(DeferTask("nb_routes.gen", ["--output", "x"])) == ("task", "nb_routes.gen")

    def test_key_path_accepts_dotted_string_and_list(self):
        assert SetConfig("ns", "a.b", 1).key_path == ("a", "b")
        assert SetConfig("ns", ["a", "b"], 1) == SetConfig("ns", ("a", "b"), 1)

    def test_empty_key_path_rejected(self):
        with pytest.raises(ValueError):
            SetConfig("ns", (), 1)

    def test_unknown_on_exists_policy_rejected(self):
        with pytest.raises(ValueError):
            CreateFile("a.txt", "x", on_exists="merge")  # type: ignore[arg-type]

    def test_defer_task_args_frozen_as_tuple(self):
        task = DeferTask("gen", ["--a", "b"])
        assert task.args == ("--a", "b")

    def test_create_file_defaults_to_error_policy(self):
        assert CreateFile("a.txt", "x").on_exists == "error"


class TestSerialization:
    def test_patch_payload_uses_transform_description(self):
        data = operation_to_dict(PatchFile("vite.config.ts", EnsureLine("import x;", after="import y")))
        assert data["transform"] == "ensure line 'import x;' after 'import y'"

    def test_describe_is_one_line(self):
        for op in (
            AddDependency("nb_ts", "github:nordbeam/nb_ts"),
            SetConfig("nb_ts", ("output_dir",), "assets/js/types"),
            CreateFile("a.ts", "line1\nline2"),
            PatchFile("a.ts", ReplaceText("a", "b")),
            DeferTask("gen", ("--x",)),
        ):
            assert "\n" not in describe(op)


class TestEnsureLine:
    def test_appends_when_missing(self):
        assert EnsureLine("c")("a\nb\n") == "a\nb\nc\n"

    def test_inserts_after_anchor(self):
        assert EnsureLine("x", after="a")("a\nb\n") == "a\nx\nb\n"

    def test_falls_back_to_end_when_anchor_missing(self):
        assert EnsureLine("x", after="zzz")("a\n") == "a\nx\n"

    def test_idempotent(self):
        transform = EnsureLine("x", after="a")
        once = transform("a\nb\n")
        assert transform(once) == once


class TestReplaceText:
    def test_replaces_once(self):
        assert ReplaceText("[", "[\n  p(),")("a [ b [") == "a [\n  p(), b ["

    def test_noop_when_already_applied(self):
        transform = ReplaceText("plugins: [\n", "plugins: [\n    nbRoutes(),\n")
        once = transform("plugins: [\n    nbVite(),\n")
        assert transform(once) == once

    def test_noop_when_anchor_missing(self):
        assert ReplaceText("nope", "yes")("content") == "content"

    def test_structural_equality(self):
        assert ReplaceText("a", "b") == ReplaceText("a", "b")
        assert EnsureLine("a") != EnsureLine("a", after="b")
