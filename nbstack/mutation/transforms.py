"""
Text transforms for PatchFile operations.

Transforms are small frozen dataclasses rather than closures so that two
runs with the same options produce equal operations. Every transform is
idempotent: applying it to its own output returns the output unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class EnsureLine:
    """Insert `line` unless an identical line is already present.

    The line goes right after the first line containing `after`, or at the
    end of the file when `after` is empty or not found.
    """

    line: str
    after: str = ""

    def __call__(self, content: str) -> str:
        lines = content.splitlines()
        if self.line in (existing.rstrip() for existing in lines):
            return content

        insert_at = len(lines)
        if self.after:
            for i, existing in enumerate(lines):
                if self.after in existing:
                    insert_at = i + 1
                    break

        lines.insert(insert_at, self.line)
        return "\n".join(lines) + "\n"

    def describe(self) -> str:
        if self.after:
            return f"ensure line {self.line!r} after {self.after!r}"
        return f"ensure line {self.line!r}"


@dataclass(frozen=True)
class ReplaceText:
    """Replace `old` with `new` once; no-op when `new` is already present."""

    old: str
    new: str

    def __call__(self, content: str) -> str:
        if self.new in content or self.old not in content:
            return content
        return content.replace(self.old, self.new, 1)

    def describe(self) -> str:
        return f"replace {self.old!r} with {self.new!r}"
