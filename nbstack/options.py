"""
Global install options and their validation.

Policy: cosmetic choices fail soft, structural ones fail hard. A value
outside a closed enum is replaced by the declared default with a warning;
an unknown option or a value of the wrong type is an error.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping

from .mutation.operations import Diagnostic

FRAMEWORKS: tuple[str, ...] = ("react", "vue", "svelte")


@dataclass(frozen=True)
class OptionSpec:
    """Declared option: name, type, default and optional closed choices."""

    name: str
    type: type
    default: Any
    choices: tuple[Any, ...] | None = None
    validator: Callable[[Any], str | None] | None = None
    help: str = ""


OPTION_SPECS: tuple[OptionSpec, ...] = (
    OptionSpec("framework", str, "react", choices=FRAMEWORKS, help="Client framework"),
    OptionSpec("typescript", bool, True, help="Enable TypeScript"),
    OptionSpec("ssr", bool, False, help="Enable server-side rendering"),
    OptionSpec("yes", bool, False, help="Skip confirmation prompts"),
)


@dataclass(frozen=True)
class InstallOptions:
    """Validated options. Immutable for the duration of one run."""

    framework: str = "react"
    typescript: bool = True
    ssr: bool = False
    yes: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "framework": self.framework,
            "typescript": self.typescript,
            "ssr": self.ssr,
            "yes": self.yes,
        }


def validate_options(
    raw: Mapping[str, Any],
    specs: tuple[OptionSpec, ...] = OPTION_SPECS,
) -> tuple[InstallOptions, list[Diagnostic]]:
    """
    Check raw option values against their specs.

    Missing or None values take the declared default.

    Returns:
        (options, diagnostics). Options are always returned; the caller
        aborts when any diagnostic has severity 'error'.
    """
    diagnostics: list[Diagnostic] = []
    known = {spec.name: spec for spec in specs}

    for name in raw:
        if name not in known:
            diagnostics.append(Diagnostic("error", f"Unknown option '{name}'.", code="option_validation"))

    values: dict[str, Any] = {}
    for spec in specs:
        value = raw.get(spec.name)
        if value is None:
            values[spec.name] = spec.default
            continue

        if not isinstance(value, spec.type) or (spec.type is not bool and isinstance(value, bool)):
            diagnostics.append(
                Diagnostic(
                    "error",
                    f"Option '{spec.name}' expects {spec.type.__name__}, got {type(value).__name__}.",
                    code="option_validation",
                )
            )
            values[spec.name] = spec.default
            continue

        if spec.choices is not None and value not in spec.choices:
            allowed = ", ".join(f"'{c}'" for c in spec.choices)
            diagnostics.append(
                Diagnostic(
                    "warning",
                    f"Invalid {spec.name} '{value}'. Must be one of {allowed}. Using '{spec.default}'.",
                    code="option_validation",
                )
            )
            values[spec.name] = spec.default
            continue

        if spec.validator is not None:
            problem = spec.validator(value)
            if problem:
                diagnostics.append(
                    Diagnostic("warning", f"{problem} Using '{spec.default}'.", code="option_validation")
                )
                values[spec.name] = spec.default
                continue

        values[spec.name] = value

    return InstallOptions(**values), diagnostics
