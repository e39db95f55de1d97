"""Project settings loaded from an optional nbstack.toml at the target root."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .errors import SettingsError
from .util import normalize_path

SETTINGS_FILENAME = "nbstack.toml"


@dataclass(frozen=True)
class Settings:
    manifest_path: str = "deps.yaml"
    config_path: str = "config/config.yaml"
    task_command: tuple[str, ...] = ()
    audit_enabled: bool = True


def _coerce_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _path_setting(section: dict[str, Any], key: str, default: str) -> str:
    raw = section.get(key, default)
    if not isinstance(raw, str) or not raw.strip():
        raise SettingsError(f"paths.{key} must be a non-empty string")
    try:
        return normalize_path(raw)
    except ValueError as e:
        raise SettingsError(f"paths.{key}: {e}") from e


def parse_settings(data: dict[str, Any]) -> Settings:
    """Build Settings from parsed TOML data. Unknown keys are ignored."""
    defaults = Settings()

    paths = _coerce_dict(data.get("paths"))
    manifest_path = _path_setting(paths, "manifest", defaults.manifest_path)
    config_path = _path_setting(paths, "config", defaults.config_path)
    if manifest_path == config_path:
        raise SettingsError("paths.manifest and paths.config must differ")

    tasks = _coerce_dict(data.get("tasks"))
    command = tasks.get("command", [])
    if isinstance(command, str):
        command = command.split()
    if not isinstance(command, list) or not all(isinstance(c, str) for c in command):
        raise SettingsError("tasks.command must be a string or a list of strings")

    audit = _coerce_dict(data.get("audit"))
    enabled = audit.get("enabled", defaults.audit_enabled)
    if not isinstance(enabled, bool):
        raise SettingsError("audit.enabled must be a boolean")

    return Settings(
        manifest_path=manifest_path,
        config_path=config_path,
        task_command=tuple(command),
        audit_enabled=enabled,
    )


def load_settings(root: Path) -> Settings:
    """Load <root>/nbstack.toml, or defaults when it is absent."""
    import tomllib

    settings_path = root / SETTINGS_FILENAME
    if not settings_path.exists():
        return Settings()

    try:
        data = tomllib.loads(settings_path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise SettingsError(f"{settings_path}: {e}") from e
    return parse_settings(data)
