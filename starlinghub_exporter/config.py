# ABOUTME: Configuration loading for the Starling Hub exporter
# ABOUTME: Merges CLI flags, environment variables and an optional YAML file into AppConfig
import logging
import math
import os
from dataclasses import dataclass
from typing import Mapping, Optional

import yaml


class ConfigInvalid(ValueError):
    """Raised when the exporter cannot start with the supplied configuration."""


@dataclass(frozen=True)
class AppConfig:
    """Exporter configuration, immutable once loaded."""
    url: str = ""
    key: str = ""
    listen_address: str = ":9112"
    telemetry_path: str = "/metrics"
    timeout_seconds: float = 10.0
    log_level: str = "INFO"
    log_file: Optional[str] = None


CONFIG_KEYS = (
    'url',
    'key',
    'listen_address',
    'telemetry_path',
    'timeout_seconds',
    'log_level',
    'log_file',
)

# Only the upstream endpoint and credential are read from the environment
ENV_VARS = {
    'url': 'STARLINGHUB_URL',
    'key': 'STARLINGHUB_KEY',
}


def load_config_file(path: str) -> dict:
    """
    Load exporter settings from a YAML file.

    Args:
        path: Path to YAML config file

    Returns:
        Mapping of config keys to values, only the keys present in the file

    Raises:
        ConfigInvalid: If the file is unreadable, not a mapping, or has unknown keys
    """
    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigInvalid(f"Config file not found: {path}") from e
    except OSError as e:
        raise ConfigInvalid(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigInvalid(f"Invalid YAML in config file: {e}") from e

    # An empty file is an empty config
    if data is None:
        return {}

    if not isinstance(data, dict):
        raise ConfigInvalid("Config file must contain a YAML mapping")

    unknown_keys = sorted(str(key) for key in data if key not in CONFIG_KEYS)
    if unknown_keys:
        raise ConfigInvalid(f"Unknown config keys: {', '.join(unknown_keys)}")

    return data


def build_config(
    cli_values: Mapping[str, object],
    environ: Optional[Mapping[str, str]] = None,
    config_path: Optional[str] = None,
) -> AppConfig:
    """
    Build the effective configuration.

    Precedence, highest first: CLI flags, environment variables, YAML file,
    built-in defaults. A CLI value of None means the flag was not given.

    Raises:
        ConfigInvalid: If a merged value is malformed
    """
    if environ is None:
        environ = os.environ

    merged: dict = {}
    if config_path:
        merged.update(load_config_file(config_path))

    for field, var in ENV_VARS.items():
        if environ.get(var):
            merged[field] = environ[var]

    for field, value in cli_values.items():
        if field not in CONFIG_KEYS:
            raise ConfigInvalid(f"Unknown config key: {field}")
        if value is not None:
            merged[field] = value

    config = AppConfig(**merged)
    _validate(config)
    return config


def _validate(config: AppConfig) -> None:
    for field in ('url', 'key', 'listen_address', 'telemetry_path', 'log_level'):
        if not isinstance(getattr(config, field), str):
            raise ConfigInvalid(f"'{field}' must be a string")

    if config.log_file is not None and not isinstance(config.log_file, str):
        raise ConfigInvalid("'log_file' must be a string")

    timeout = config.timeout_seconds
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
        raise ConfigInvalid("'timeout_seconds' must be a positive finite number")
    if not math.isfinite(timeout) or timeout <= 0:
        raise ConfigInvalid("'timeout_seconds' must be a positive finite number")

    if not config.telemetry_path.startswith('/'):
        raise ConfigInvalid(f"Telemetry path must start with '/': {config.telemetry_path}")

    if not isinstance(logging.getLevelName(config.log_level.upper()), int):
        raise ConfigInvalid(f"Unknown log level: {config.log_level}")

    parse_listen_address(config.listen_address)


def parse_listen_address(address: str) -> tuple[Optional[str], int]:
    """
    Split a listen address into host and port.

    ":9112" listens on all interfaces and yields a host of None.
    IPv6 hosts are written in brackets, e.g. "[::1]:9112".

    Raises:
        ConfigInvalid: If the address has no valid port
    """
    host, sep, port_text = address.rpartition(':')
    if not sep:
        raise ConfigInvalid(f"Listen address must be host:port: {address}")

    if host.startswith('[') and host.endswith(']'):
        host = host[1:-1]

    try:
        port = int(port_text)
    except ValueError as e:
        raise ConfigInvalid(f"Invalid port in listen address: {address}") from e

    if not 0 < port < 65536:
        raise ConfigInvalid(f"Port out of range in listen address: {address}")

    return (host or None), port
