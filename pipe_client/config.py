"""Configuration loading for the pipe client.

Supports two optional configuration sources on top of built-in defaults:
1. Environment variables - take priority
2. A JSON config file passed with --config

Environment Variables:
    PIPE_CLIENT_CHUNK_SIZE=65536
    PIPE_CLIENT_PROGRESS_INTERVAL=0.25
    PIPE_CLIENT_CONNECT_TIMEOUT=30
    PIPE_CLIENT_READ_TIMEOUT=none
    PIPE_CLIENT_WAKE_ON_INPUT=true
    PIPE_CLIENT_ECHO_RESPONSE=true
    PIPE_CLIENT_FAIL_ON_ERROR=false

Example config.json:
    {
        "chunk_size": 16384,
        "progress_interval": 0.1,
        "headers": {"X-Pipe-Name": "logs"}
    }
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional


class ConfigError(Exception):
    """Raised when configuration loading fails."""

    pass


ENV_PREFIX = "PIPE_CLIENT_"

# Default chunk size: 64 KiB per body read
DEFAULT_CHUNK_SIZE = 64 * 1024

# Default progress tick cadence in seconds
DEFAULT_PROGRESS_INTERVAL = 0.25


@dataclass
class ClientConfig:
    """Tunables for a single upload."""

    chunk_size: int = DEFAULT_CHUNK_SIZE
    progress_interval: float = DEFAULT_PROGRESS_INTERVAL
    connect_timeout: Optional[float] = 30.0
    read_timeout: Optional[float] = None
    wake_on_input: bool = True
    echo_response: bool = True
    fail_on_error: bool = False
    headers: dict[str, str] = field(default_factory=dict)


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("1", "true", "yes", "on"):
        return True
    if text in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"not a boolean: {value!r}")


def _parse_positive_int(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"not an integer: {value!r}")
    number = int(value)
    if number <= 0:
        raise ValueError(f"must be positive: {value!r}")
    return number


def _parse_positive_float(value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError(f"not a number: {value!r}")
    number = float(value)
    if number <= 0:
        raise ValueError(f"must be positive: {value!r}")
    return number


def _parse_timeout(value: Any) -> Optional[float]:
    if value is None or str(value).strip().lower() in ("", "none", "null"):
        return None
    return _parse_positive_float(value)


def _parse_headers(value: Any) -> dict[str, str]:
    if not isinstance(value, dict):
        raise ValueError("headers must be an object")
    return {str(k): str(v) for k, v in value.items()}


# Field name -> value parser
PARSERS: dict[str, Callable[[Any], Any]] = {
    "chunk_size": _parse_positive_int,
    "progress_interval": _parse_positive_float,
    "connect_timeout": _parse_timeout,
    "read_timeout": _parse_timeout,
    "wake_on_input": _parse_bool,
    "echo_response": _parse_bool,
    "fail_on_error": _parse_bool,
    "headers": _parse_headers,
}


def _apply(values: dict[str, Any], source: str) -> dict[str, Any]:
    """Validate raw values against the known fields."""
    parsed: dict[str, Any] = {}
    for key, raw in values.items():
        parser = PARSERS.get(key)
        if parser is None:
            raise ConfigError(f"Unknown setting '{key}' in {source}")
        try:
            parsed[key] = parser(raw)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid value for '{key}' in {source}: {e}") from e
    return parsed


def load_from_json(config_path: str) -> dict[str, Any]:
    """Load settings from a JSON file.

    Args:
        config_path: Path to the JSON config file.

    Returns:
        Dictionary of validated settings.

    Raises:
        ConfigError: If the file doesn't exist, contains invalid JSON,
                    or holds unknown or invalid settings.
    """
    path = Path(config_path)

    if not path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in config file: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError("Config file must contain a JSON object")

    return _apply(data, config_path)


def load_from_env() -> dict[str, Any]:
    """Load settings from PIPE_CLIENT_* environment variables.

    Returns:
        Dictionary of validated settings.

    Raises:
        ConfigError: If a variable is unknown or malformed.
    """
    raw: dict[str, Any] = {}
    for env_key, env_value in os.environ.items():
        if not env_key.startswith(ENV_PREFIX):
            continue
        key = env_key[len(ENV_PREFIX):].lower()
        if key == "headers":
            try:
                raw[key] = json.loads(env_value)
            except json.JSONDecodeError as e:
                raise ConfigError(f"Invalid JSON in {env_key}: {e}") from e
        else:
            raw[key] = env_value
    return _apply(raw, "environment")


def load_config(config_path: Optional[str] = None) -> ClientConfig:
    """Build the client configuration.

    Priority order:
    1. PIPE_CLIENT_* environment variables
    2. The JSON config file (if given)
    3. Built-in defaults

    Args:
        config_path: Optional path to a JSON config file.

    Returns:
        The merged ClientConfig.

    Raises:
        ConfigError: If any source is invalid.
    """
    settings: dict[str, Any] = {}

    if config_path:
        settings.update(load_from_json(config_path))

    settings.update(load_from_env())

    return ClientConfig(**settings)
