from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from flatcompose.models import ConfigError

DEFAULT_SETTINGS_FILE = "flatcompose.yaml"
SETTINGS_FILE_ENV = "FLATCOMPOSE_SETTINGS"
# Stripped in order from both ends of the rendered document.
DEFAULT_TRIM: tuple[str, ...] = ("-", " \f\v\r\t\n")
LINEARISE_ALLOWED_KEYS = {"trim"}


@dataclass(frozen=True)
class LineariseSettings:
    trim: tuple[str, ...] = DEFAULT_TRIM

    def to_json(self) -> dict[str, Any]:
        return {"trim": list(self.trim)}


def default_settings_path() -> Path:
    from_env = os.environ.get(SETTINGS_FILE_ENV, "").strip()
    raw = from_env or DEFAULT_SETTINGS_FILE
    return Path(raw).expanduser().resolve()


def _coerce_trim(value: Any, *, label: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        raise ConfigError(f"{label} must be a string or a list of strings")
    out: list[str] = []
    for index, item in enumerate(value):
        if not isinstance(item, str):
            raise ConfigError(f"{label}[{index}] must be a string")
        if item:
            out.append(item)
    return tuple(out)


def parse_settings(payload: Any, *, source: str = "settings") -> LineariseSettings:
    if payload is None:
        return LineariseSettings()
    if not isinstance(payload, dict):
        raise ConfigError(f"{source}: root must be a mapping")
    unknown_roots = sorted(str(key) for key in payload.keys() if key != "linearise")
    if unknown_roots:
        raise ConfigError(f"{source}: unknown keys: {unknown_roots}")

    section = payload.get("linearise")
    if section is None:
        return LineariseSettings()
    if not isinstance(section, dict):
        raise ConfigError(f"{source}: 'linearise' must be a mapping")
    unknown = sorted(set(str(key) for key in section.keys()) - LINEARISE_ALLOWED_KEYS)
    if unknown:
        raise ConfigError(
            f"{source}: linearise has unknown keys: {unknown}. "
            f"Allowed keys: {sorted(LINEARISE_ALLOWED_KEYS)}"
        )
    if "trim" not in section:
        return LineariseSettings()
    return LineariseSettings(
        trim=_coerce_trim(section["trim"], label=f"{source}: linearise.trim")
    )


def load_settings(
    path: str | Path | None, *, required: bool
) -> tuple[Path, LineariseSettings]:
    resolved_path = (
        default_settings_path() if path is None else Path(path).expanduser().resolve()
    )
    if not resolved_path.exists():
        if required:
            raise ConfigError(f"Settings file not found: {resolved_path}")
        return resolved_path, LineariseSettings()

    try:
        loaded = yaml.safe_load(resolved_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed parsing settings '{resolved_path}': {exc}") from exc
    return resolved_path, parse_settings(loaded, source=str(resolved_path))
