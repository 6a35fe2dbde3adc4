"""Global configuration for joinwindow."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

DEFAULTS: dict[str, Any] = {
    "tick_interval_seconds": 1,
    "countdown_max_units": 2,
    "thousands_separator": ",",
    "app_host": "0.0.0.0",
    "app_port": 8000,
}

TYPE_CASTERS: dict[str, Callable[[Any], Any]] = {
    "tick_interval_seconds": int,
    "countdown_max_units": int,
    "thousands_separator": str,
    "app_host": str,
    "app_port": int,
}


@dataclass(frozen=True)
class Settings:
    base_dir: Path
    tick_interval_seconds: int
    countdown_max_units: int
    thousands_separator: str
    app_host: str
    app_port: int
    config_path: Path


def _cast_value(key: str, value: Any) -> Any:
    if key not in TYPE_CASTERS:
        return value
    return TYPE_CASTERS[key](value)


def _load_toml_config(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        return {}
    with config_path.open("rb") as handle:
        return tomllib.load(handle)


def _config_layered_value(key: str, *, toml_config: dict[str, Any]) -> Any:
    env_key = f"JOINWINDOW_{key.upper()}"
    if env_key in os.environ:
        return _cast_value(key, os.environ[env_key])
    if key in toml_config:
        return _cast_value(key, toml_config[key])
    return DEFAULTS[key]


def load_settings(config_override: Path | None = None) -> Settings:
    base_dir = Path(os.getenv("JOINWINDOW_BASE_DIR", Path.cwd()))
    env_config = os.getenv("JOINWINDOW_CONFIG")
    config_path = Path(config_override or env_config or base_dir / "joinwindow.toml")
    toml_config = _load_toml_config(config_path)

    settings = Settings(
        base_dir=base_dir,
        tick_interval_seconds=_config_layered_value(
            "tick_interval_seconds", toml_config=toml_config
        ),
        countdown_max_units=_config_layered_value(
            "countdown_max_units", toml_config=toml_config
        ),
        thousands_separator=_config_layered_value(
            "thousands_separator", toml_config=toml_config
        ),
        app_host=_config_layered_value("app_host", toml_config=toml_config),
        app_port=_config_layered_value("app_port", toml_config=toml_config),
        config_path=config_path,
    )
    if settings.tick_interval_seconds < 1:
        raise ValueError("tick_interval_seconds must be at least 1")
    if settings.countdown_max_units < 1:
        raise ValueError("countdown_max_units must be at least 1")
    return settings


def get_settings() -> Settings:
    """Return the current settings, including updates from ``update_config_file``."""
    return settings


def settings_as_dict(settings: Settings) -> dict[str, Any]:
    return {
        "base_dir": str(settings.base_dir),
        "config_path": str(settings.config_path),
        "tick_interval_seconds": settings.tick_interval_seconds,
        "countdown_max_units": settings.countdown_max_units,
        "thousands_separator": settings.thousands_separator,
        "app_host": settings.app_host,
        "app_port": settings.app_port,
    }


def _toml_literal(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def write_config_file(config: dict[str, Any], *, path: Path) -> None:
    lines = ["# joinwindow configuration\n"]
    for key in sorted(config.keys()):
        lines.append(f"{key} = {_toml_literal(config[key])}\n")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("".join(lines), encoding="utf-8")


def update_config_file(updates: dict[str, Any], *, path: Path | None = None) -> Settings:
    current_settings = settings if "settings" in globals() else load_settings()
    target_path = path or current_settings.config_path
    existing = _load_toml_config(target_path)
    merged = {**existing}
    for key, value in updates.items():
        if key not in DEFAULTS:
            continue
        merged[key] = _cast_value(key, value)
    write_config_file(merged, path=target_path)
    new_settings = load_settings(target_path)
    globals()["settings"] = new_settings
    return new_settings


settings = load_settings()
