"""
Installer units for the nb_ stack.

Each unit proposes mutations for one package; the pipeline composes them
in a fixed dependency order.
"""

from __future__ import annotations

from .base import Unit, UnitContext, UnitMetadata
from .inertia import InertiaUnit
from .registry import UnitRegistry
from .routes import RoutesUnit
from .serializer import SerializerUnit
from .ts import TypesUnit
from .vite import ViteUnit


def default_registry() -> UnitRegistry:
    """Registry with the five units of the stack."""
    return UnitRegistry([ViteUnit(), RoutesUnit(), SerializerUnit(), TypesUnit(), InertiaUnit()])


__all__ = [
    "InertiaUnit",
    "RoutesUnit",
    "SerializerUnit",
    "TypesUnit",
    "Unit",
    "UnitContext",
    "UnitMetadata",
    "UnitRegistry",
    "ViteUnit",
    "default_registry",
]
