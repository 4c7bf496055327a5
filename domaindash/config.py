from __future__ import annotations

import json
import os
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any

DEFAULT_CONFIG_PATH = Path("~/.config/domaindash/config.json").expanduser()

CONFIG_ENV_OVERRIDES = {
    "base_url": "DOMAINDASH_BASE_URL",
    "refresh_interval_s": "DOMAINDASH_REFRESH_INTERVAL_S",
    "alert_ttl_s": "DOMAINDASH_ALERT_TTL_S",
    "timeout_s": "DOMAINDASH_TIMEOUT_S",
    "drop_stale": "DOMAINDASH_DROP_STALE",
}

_FLOAT_KEYS = {"refresh_interval_s", "alert_ttl_s", "timeout_s"}
_BOOL_KEYS = {"drop_stale"}


def get_config_path(path: Path | None = None) -> Path:
    candidate = path or Path(os.getenv("DOMAINDASH_CONFIG", DEFAULT_CONFIG_PATH))
    return candidate.expanduser()


def read_config_file(path: Path | None = None) -> dict[str, Any]:
    config_path = get_config_path(path)
    if not config_path.exists():
        return {}
    raw = config_path.read_text()
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError("invalid config json") from exc
    if not isinstance(data, dict):
        raise ValueError("config must be an object")
    return data


def get_env_overrides() -> dict[str, str]:
    overrides: dict[str, str] = {}
    for key, env_var in CONFIG_ENV_OVERRIDES.items():
        value = os.getenv(env_var)
        if value is not None:
            overrides[key] = value
    return overrides


@dataclass
class DashboardConfig:
    base_url: str = "http://127.0.0.1:8080"
    refresh_interval_s: float = 5.0
    alert_ttl_s: float = 5.0
    timeout_s: float = 3.0
    drop_stale: bool = True


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    if value.lower() in {"1", "true", "yes", "on"}:
        return True
    if value.lower() in {"0", "false", "off", "no"}:
        return False
    return default


def _parse_positive_float(value: object, default: float, *, key: str) -> float:
    if value is None:
        return default
    try:
        parsed = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        warnings.warn(f"Invalid number for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default
    if parsed <= 0:
        warnings.warn(f"Non-positive value for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default
    return parsed


def _coerce_bool(value: object, default: bool, *, key: str) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        return _parse_bool(value, default)
    warnings.warn(f"Invalid bool for {key}: {value!r}", RuntimeWarning, stacklevel=2)
    return default


def load_config(path: Path | None = None) -> DashboardConfig:
    cfg = DashboardConfig()
    try:
        data = read_config_file(path)
    except ValueError:
        data = {}
    cfg = _apply_dict(cfg, data)
    cfg = _apply_dict(cfg, get_env_overrides())
    return cfg


def _apply_dict(cfg: DashboardConfig, data: dict[str, Any]) -> DashboardConfig:
    for key, value in data.items():
        if not hasattr(cfg, key):
            continue
        if key in _FLOAT_KEYS:
            setattr(cfg, key, _parse_positive_float(value, getattr(cfg, key), key=key))
            continue
        if key in _BOOL_KEYS:
            setattr(cfg, key, _coerce_bool(value, getattr(cfg, key), key=key))
            continue
        if key == "base_url":
            if isinstance(value, str) and value.strip():
                cfg.base_url = value.strip()
            continue
        setattr(cfg, key, value)
    return cfg
