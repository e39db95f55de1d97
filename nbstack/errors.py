"""
Exception taxonomy for the installer.

Fatal conditions are raised as exceptions at the phase boundary that
detects them. The pipeline converts them into error diagnostics so that
the end-of-run report can surface them with their originating unit.
"""

from __future__ import annotations

from typing import Any


class NbStackError(Exception):
    """Base class for installer errors."""

    code = "error"

    def __init__(self, message: str, *, unit: str | None = None):
        super().__init__(message)
        self.message = message
        self.unit = unit


class ConfigConflict(NbStackError):
    """Two units asserted different values for the same target."""

    code = "config_conflict"

    def __init__(
        self,
        kind: str,
        target: str,
        first: tuple[str, Any],
        second: tuple[str, Any],
    ):
        first_unit, first_value = first
        second_unit, second_value = second
        super().__init__(
            f"conflicting {kind} for {target}: "
            f"{first_unit or '<root>'} set {first_value!r}, "
            f"{second_unit or '<root>'} set {second_value!r}",
            unit=second_unit,
        )
        self.kind = kind
        self.target = target
        self.first = first
        self.second = second


class UnitError(NbStackError):
    """A unit cannot proceed with the options it was given."""

    code = "unit_error"


class CommitError(NbStackError):
    """Commit could not apply the finalized operations."""

    code = "commit_error"


class FileConflictError(CommitError):
    """CreateFile with on_exists='error' met an existing file with other content."""

    code = "file_conflict"


class CommitIOError(CommitError):
    """The file store failed while writing."""

    code = "commit_io"


class SettingsError(NbStackError):
    """nbstack.toml could not be interpreted."""

    code = "settings"
