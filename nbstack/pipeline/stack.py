"""
Composition of the nb_ stack.

The unit order is an explicit constant: a unit whose generated code other
units import runs first. A sixth unit must be given a position here.
"""

from __future__ import annotations

from ..options import InstallOptions
from ..units.registry import UnitRegistry
from ..units.routes import ROUTES_OUTPUT

ROOT_UNIT = "nb_stack"

UNIT_ORDER: tuple[str, ...] = (
    "nb_vite",  # build tooling
    "nb_routes",  # routing
    "nb_serializer",  # serialization
    "nb_ts",  # type generation, composed by nb_inertia
    "nb_inertia",  # integration
)

# Run after every unit so generation sees the final manifest and config
GENERATION_TASKS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (
        "nb_routes.gen",
        ("--variant", "rich", "--with-methods", "--with-forms", "--output", ROUTES_OUTPUT),
    ),
)


def unit_args(name: str, options: InstallOptions) -> list[str]:
    """Flags passed to a unit invoked from the root sequence."""
    if name == "nb_vite":
        return ["--typescript"] if options.typescript else []
    if name == "nb_routes":
        return ["--variant", "rich", "--with-methods", "--with-forms"]
    if name == "nb_serializer":
        return ["--with-phoenix", "--camelize-props"] + (["--with-typescript"] if options.typescript else [])
    if name == "nb_inertia":
        args = ["--client-framework", options.framework, "--camelize-props"]
        if options.typescript:
            args.append("--typescript")
        if options.ssr:
            args.append("--ssr")
        return args
    return []


def validate_order(order: tuple[str, ...], registry: UnitRegistry) -> None:
    """
    Check that the order is usable with the registry.

    Raises:
        ValueError: duplicate names, or a composed unit placed after (or
            without) the unit that composes it
    """
    if len(set(order)) != len(order):
        raise ValueError(f"Duplicate unit in order: {list(order)}")

    for position, name in enumerate(order):
        unit = registry.get(name)
        if unit is None or unit.metadata.composed_by is None:
            continue
        composer = unit.metadata.composed_by
        if composer not in order:
            raise ValueError(f"{name} is composed by {composer}, which is not in the unit order")
        if order.index(composer) < position:
            raise ValueError(f"{name} must be ordered before its composer {composer}")


def root_sequence(order: tuple[str, ...], registry: UnitRegistry) -> list[str]:
    """Units the pipeline invokes itself; composed units are left to their composer."""
    sequence = []
    for name in order:
        unit = registry.get(name)
        if unit is not None and unit.metadata.composed_by in order:
            continue
        sequence.append(name)
    return sequence


def welcome_message(options: InstallOptions) -> str:
    return "\n".join(
        [
            "Installing the nb_ frontend stack:",
            "  nb_vite, nb_routes, nb_serializer, nb_ts, nb_inertia",
            f"  Framework: {options.framework}",
            f"  TypeScript: {'enabled' if options.typescript else 'disabled'}",
            f"  SSR: {'enabled' if options.ssr else 'disabled'}",
        ]
    )


def next_steps_message(options: InstallOptions) -> str:
    lines = [
        "Next steps:",
        "  1. Create an Inertia-enabled controller (use NbInertia.Controller)",
        '  2. Add a route: get "/", PageController, :home',
        "  3. Start the server: mix phx.server",
        f"  Import components from @/lib/inertia (not @inertiajs/{options.framework})",
    ]
    if options.typescript:
        lines.append("  Regenerate types after changing props or serializers: mix ts.gen")
    if options.ssr:
        lines.append("  Build the SSR bundle before deploying: bun run build:ssr")
    return "\n".join(lines)
