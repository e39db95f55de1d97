"""
FileStore collaborators.

The orchestrator only needs read-current-content and write-final-content
for a relative POSIX path. read() returns None when the file does not
exist.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from ..util import normalize_path


@runtime_checkable
class FileStore(Protocol):
    def read(self, path: str) -> str | None:
        """Current content of `path`, or None if it does not exist."""
        ...

    def write(self, path: str, content: str) -> None:
        """Replace `path` with `content`, creating parent directories."""
        ...


class DiskFileStore:
    """FileStore over a working tree on disk."""

    def __init__(self, root: Path):
        self.root = root.resolve()

    def _resolve(self, path: str) -> Path:
        return self.root / normalize_path(path)

    def read(self, path: str) -> str | None:
        target = self._resolve(path)
        if not target.is_file():
            return None
        return target.read_text(encoding="utf-8")

    def write(self, path: str, content: str) -> None:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)

        # Write to temp, then rename
        temp_path = target.with_name(target.name + ".tmp")
        temp_path.write_text(content, encoding="utf-8")
        temp_path.replace(target)


class MemoryFileStore:
    """In-memory FileStore for previews and tests."""

    def __init__(self, files: dict[str, str] | None = None):
        self.files: dict[str, str] = {normalize_path(k): v for k, v in (files or {}).items()}
        self.reads: list[str] = []
        self.writes: list[str] = []

    def read(self, path: str) -> str | None:
        path = normalize_path(path)
        self.reads.append(path)
        return self.files.get(path)

    def write(self, path: str, content: str) -> None:
        path = normalize_path(path)
        self.writes.append(path)
        self.files[path] = content
