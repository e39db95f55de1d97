"""
Audit trail of committed installs.

Each successful commit appends one JSON line to <root>/.nbstack/audit.log
recording the options, the unit invocation tree, the MutationSet
fingerprint and the created/updated paths. There is no rollback; the trail
is how a run is traced after the fact.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

AUDIT_DIR = ".nbstack"
AUDIT_FILENAME = "audit.log"


@dataclass
class ChangeSummary:
    created: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    dependencies_added: list[str] = field(default_factory=list)

    @property
    def files_created(self) -> int:
        return len(self.created)

    @property
    def files_updated(self) -> int:
        return len(self.updated)


@dataclass
class InstallRecord:
    """One line of the audit trail."""

    timestamp: str
    operation: str
    changes: ChangeSummary = field(default_factory=ChangeSummary)
    options: dict[str, Any] = field(default_factory=dict)
    fingerprint: str = ""
    invocations: list[dict[str, Any]] = field(default_factory=list)

    def to_json(self) -> str:
        return json.dumps(asdict(self), sort_keys=True)

    @classmethod
    def from_json(cls, line: str) -> InstallRecord:
        data = json.loads(line)
        return cls(
            timestamp=data["timestamp"],
            operation=data["operation"],
            changes=ChangeSummary(**data.get("changes", {})),
            options=data.get("options", {}),
            fingerprint=data.get("fingerprint", ""),
            invocations=data.get("invocations", []),
        )


def get_audit_log_path(root: Path) -> Path:
    return root / AUDIT_DIR / AUDIT_FILENAME


def log_operation(
    root: Path,
    operation: str,
    changes: ChangeSummary | None = None,
    *,
    options: dict[str, Any] | None = None,
    fingerprint: str = "",
    invocations: list[dict[str, Any]] | None = None,
) -> InstallRecord:
    """Append a record for `operation` and return it."""
    record = InstallRecord(
        timestamp=datetime.now(timezone.utc).isoformat(),
        operation=operation,
        changes=changes or ChangeSummary(),
        options=options or {},
        fingerprint=fingerprint,
        invocations=invocations or [],
    )

    path = get_audit_log_path(root)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as f:
        f.write(record.to_json() + "\n")
    return record


def read_audit_log(root: Path, last_n: int | None = None) -> list[InstallRecord]:
    """
    Records in the order they were written.

    Lines that do not parse are skipped so a torn final write does not hide
    the rest of the trail.
    """
    path = get_audit_log_path(root)
    if not path.exists():
        return []

    records: list[InstallRecord] = []
    for line in path.read_text(encoding="utf-8").splitlines():
        if not line.strip():
            continue
        try:
            records.append(InstallRecord.from_json(line))
        except (json.JSONDecodeError, KeyError, TypeError):
            continue

    if last_n is not None:
        records = records[-last_n:] if last_n > 0 else []
    return records
