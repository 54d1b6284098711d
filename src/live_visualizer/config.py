"""Configuration helpers for the live visualizer client."""
from __future__ import annotations

import json
import os
from copy import deepcopy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_BASE_URL = "http://localhost:5000"
DEFAULT_CONNECT_TIMEOUT = 5.0
DEFAULT_TIMEOUT = 10.0

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


CONFIG_DEFAULTS: Dict[str, Any] = {
    "client": {
        "base_url": DEFAULT_BASE_URL,
        "connect_timeout": DEFAULT_CONNECT_TIMEOUT,
        "timeout": DEFAULT_TIMEOUT,
        "verbose": False,
    },
    "logging": {
        "log_level": "INFO",
        "log_path": None,
    },
}


@dataclass
class ClientSettings:
    base_url: str = DEFAULT_BASE_URL
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    timeout: float = DEFAULT_TIMEOUT
    verbose: bool = False


@dataclass
class CliSettings:
    client: ClientSettings = field(default_factory=ClientSettings)
    log_level: str = "INFO"
    log_path: Optional[Path] = None
    config_path: Path = Path("live_visualizer.json")


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _parse_float(raw: Any, source: str) -> float:
    if isinstance(raw, bool):
        raise RuntimeError(f"{source} must be a number, got {raw!r}")
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise RuntimeError(f"{source} must be a number, got {raw!r}") from exc


def _parse_bool(raw: Any, source: str) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, int) and raw in (0, 1):
        return bool(raw)
    if isinstance(raw, str):
        normalized = raw.strip().lower()
        if normalized in _TRUE_VALUES:
            return True
        if normalized in _FALSE_VALUES:
            return False
    raise RuntimeError(f"{source} must be a boolean, got {raw!r}")


def _get_float(name: str, file_key: str, file_value: Any) -> float:
    raw = _get_env(name)
    if raw is None:
        return _parse_float(file_value, f"Config value {file_key}")
    return _parse_float(raw, f"Environment variable {name}")


def _get_bool(name: str, file_key: str, file_value: Any) -> bool:
    raw = _get_env(name)
    if raw is None:
        return _parse_bool(file_value, f"Config value {file_key}")
    return _parse_bool(raw, f"Environment variable {name}")


def _deep_update(target: Dict[str, Any], overrides: Dict[str, Any]) -> None:
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _deep_update(target[key], value)
        else:
            target[key] = value


def load_config_file(path: Path) -> Dict[str, Any]:
    """Load client configuration from a JSON file, applying defaults."""
    path = Path(path).expanduser()
    merged = deepcopy(CONFIG_DEFAULTS)
    if not path.exists():
        return merged

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError):  # pragma: no cover - corrupt file
        data = {}

    if isinstance(data, dict):
        _deep_update(merged, data)
    return merged


def load_settings() -> CliSettings:
    """Load settings from the optional config file and environment variables."""
    config_path = Path(_get_env("LIVE_VISUALIZER_CONFIG_PATH", "live_visualizer.json"))
    config_data = load_config_file(config_path)
    client_section = config_data.get("client", {})
    logging_section = config_data.get("logging", {})

    client = ClientSettings(
        base_url=_get_env("LIVE_VISUALIZER_URL", client_section.get("base_url") or DEFAULT_BASE_URL),
        connect_timeout=_get_float(
            "LIVE_VISUALIZER_CONNECT_TIMEOUT",
            "client.connect_timeout",
            client_section.get("connect_timeout", DEFAULT_CONNECT_TIMEOUT),
        ),
        timeout=_get_float("LIVE_VISUALIZER_TIMEOUT", "client.timeout", client_section.get("timeout", DEFAULT_TIMEOUT)),
        verbose=_get_bool("LIVE_VISUALIZER_VERBOSE", "client.verbose", client_section.get("verbose", False)),
    )

    log_path_value = _get_env("LIVE_VISUALIZER_LOG_PATH", logging_section.get("log_path"))
    log_level = logging_section.get("log_level") or "INFO"

    return CliSettings(
        client=client,
        log_level=str(log_level).upper(),
        log_path=Path(log_path_value).expanduser() if log_path_value else None,
        config_path=config_path,
    )
