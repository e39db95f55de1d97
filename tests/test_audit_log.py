"""Tests for the JSON Lines audit trail."""

from __future__ import annotations

from pathlib import Path

from nbstack.audit_log import ChangeSummary, get_audit_log_path, log_operation, read_audit_log


def test_records_appended_oldest_first(tmp_path: Path):
    log_operation(tmp_path, "install", ChangeSummary(created=["a.ts", "b.ts"]), fingerprint="a")
    log_operation(tmp_path, "install", ChangeSummary(updated=["a.ts"]), fingerprint="b")

    records = read_audit_log(tmp_path)

    assert [r.fingerprint for r in records] == ["a", "b"]
    assert records[0].changes.files_created == 2
    assert records[1].changes.files_updated == 1
    assert [r.fingerprint for r in read_audit_log(tmp_path, last_n=1)] == ["b"]


def test_options_and_invocations_round_trip(tmp_path: Path):
    log_operation(
        tmp_path,
        "install",
        options={"framework": "vue"},
        invocations=[{"unit": "nb_vite", "args": ["--typescript"]}],
    )

    record = read_audit_log(tmp_path)[0]

    assert record.options == {"framework": "vue"}
    assert record.invocations[0]["unit"] == "nb_vite"


def test_malformed_lines_skipped(tmp_path: Path):
    log_operation(tmp_path, "install")
    with get_audit_log_path(tmp_path).open("a", encoding="utf-8") as f:
        f.write("not json\n")

    assert len(read_audit_log(tmp_path)) == 1


def test_missing_log(tmp_path: Path):
    assert read_audit_log(tmp_path) == []
