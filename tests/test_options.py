"""Tests for install option validation."""

from __future__ import annotations

from nbstack.options import OPTION_SPECS, InstallOptions, OptionSpec, validate_options


class TestValidateOptions:
    def test_defaults(self):
        options, diagnostics = validate_options({})
        assert options == InstallOptions(framework="react", typescript=True, ssr=False, yes=False)
        assert diagnostics == []

    def test_none_takes_default(self):
        options, diagnostics = validate_options({"framework": None, "typescript": None})
        assert options.framework == "react"
        assert options.typescript is True
        assert diagnostics == []

    def test_valid_values_pass_through(self):
        options, diagnostics = validate_options({"framework": "svelte", "typescript": False, "ssr": True, "yes": True})
        assert options == InstallOptions("svelte", False, True, True)
        assert diagnostics == []

    def test_unknown_framework_warns_and_defaults(self):
        options, diagnostics = validate_options({"framework": "angular"})

        assert options.framework == "react"
        assert len(diagnostics) == 1
        assert diagnostics[0].severity == "warning"
        assert "angular" in diagnostics[0].message
        assert "'react', 'vue', 'svelte'" in diagnostics[0].message

    def test_wrong_type_is_error(self):
        _, diagnostics = validate_options({"typescript": "yes"})
        assert [d.severity for d in diagnostics] == ["error"]
        assert "typescript" in diagnostics[0].message

    def test_bool_is_not_accepted_for_str_option(self):
        _, diagnostics = validate_options({"framework": True})
        assert [d.severity for d in diagnostics] == ["error"]

    def test_unknown_option_is_error(self):
        _, diagnostics = validate_options({"colour": "blue"})
        assert diagnostics[0].severity == "error"
        assert "colour" in diagnostics[0].message

    def test_validator_problem_falls_back_to_default(self):
        def no_svelte(value):
            return "svelte is not ready yet." if value == "svelte" else None

        specs = tuple(
            OptionSpec(s.name, s.type, s.default, s.choices, no_svelte, s.help) if s.name == "framework" else s
            for s in OPTION_SPECS
        )
        options, diagnostics = validate_options({"framework": "svelte"}, specs)

        assert options.framework == "react"
        assert diagnostics[0].severity == "warning"
        assert diagnostics[0].message == "svelte is not ready yet. Using 'react'."

    def test_to_dict(self):
        assert InstallOptions().to_dict() == {"framework": "react", "typescript": True, "ssr": False, "yes": False}
