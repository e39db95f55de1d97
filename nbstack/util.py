"""Small shared helpers."""

from __future__ import annotations


def normalize_path(value: str) -> str:
    """Normalize to a relative POSIX path; reject escapes from the root."""
    normalized = value.strip().replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    if normalized.startswith("/"):
        raise ValueError(f"path must be relative to the project root: {value!r}")
    parts = [p for p in normalized.split("/") if p not in ("", ".")]
    if not parts or ".." in parts:
        raise ValueError(f"invalid project path: {value!r}")
    return "/".join(parts)
