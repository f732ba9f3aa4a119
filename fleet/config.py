"""
Runtime settings.

Defaults are overridden by an optional YAML file, then by environment
variables:

    FLEET_CONFIG     path of the YAML file
    FLEET_SNAPSHOT   snapshot file path
    FLEET_STORAGE    "file" (default) or "memory" to disable the snapshot
    FLEET_HOST       web server bind address
    FLEET_PORT       web server port
    FLEET_LOG_LEVEL  logging level name
    SECRET_KEY       Flask session secret
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from .exceptions import FleetConfigError

DEFAULT_SNAPSHOT = Path("data") / "units.json"

# YAML key -> Settings attribute
_FILE_KEYS = {
    "snapshot": "snapshot_path",
    "storage": "storage",
    "host": "host",
    "port": "port",
    "secretKey": "secret_key",
    "logLevel": "log_level",
}

_ENV_KEYS = {
    "FLEET_SNAPSHOT": "snapshot_path",
    "FLEET_STORAGE": "storage",
    "FLEET_HOST": "host",
    "FLEET_PORT": "port",
    "SECRET_KEY": "secret_key",
    "FLEET_LOG_LEVEL": "log_level",
}


@dataclass
class Settings:
    """Where the fleet is stored and how the web app runs."""

    snapshot_path: Optional[Path] = DEFAULT_SNAPSHOT
    host: str = "0.0.0.0"
    # 5001 avoids the macOS AirPlay receiver on 5000
    port: int = 5001
    secret_key: str = "dev-secret-key-change-in-prod"
    log_level: str = "INFO"

    @property
    def in_memory(self) -> bool:
        return self.snapshot_path is None


def _read_config_file(filename: Union[str, Path]) -> Dict[str, Any]:
    try:
        with open(filename, "r") as fp:
            data = yaml.safe_load(fp) or {}
    except OSError as e:
        raise FleetConfigError(f"Cannot read config file {filename}: {e}") from e
    except yaml.YAMLError as e:
        raise FleetConfigError(f"YAML parse error in {filename}: {e}") from e

    if not isinstance(data, dict):
        raise FleetConfigError(f"Config file {filename} must contain a mapping")
    unknown = sorted(set(data) - set(_FILE_KEYS))
    if unknown:
        raise FleetConfigError(f"Unknown config keys in {filename}: {', '.join(unknown)}")
    return {_FILE_KEYS[k]: v for k, v in data.items()}


def _apply(settings: Settings, values: Mapping[str, Any]) -> None:
    """Set raw values on settings, converting types as needed."""
    for attr, value in values.items():
        if attr == "storage":
            if value == "memory":
                settings.snapshot_path = None
            elif value == "file":
                settings.snapshot_path = settings.snapshot_path or DEFAULT_SNAPSHOT
            else:
                raise FleetConfigError(f"storage must be 'file' or 'memory', not {value!r}")
        elif attr == "snapshot_path":
            settings.snapshot_path = Path(value) if value else None
        elif attr == "port":
            try:
                settings.port = int(value)
            except (TypeError, ValueError):
                raise FleetConfigError(f"port must be an integer, not {value!r}") from None
        elif attr == "log_level":
            level = str(value).upper()
            if not isinstance(logging.getLevelName(level), int):
                raise FleetConfigError(f"Unknown log level: {value!r}")
            settings.log_level = level
        else:
            setattr(settings, attr, str(value))


def load_settings(
    config_file: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Build settings from defaults, the config file, then the environment."""
    environ = os.environ if environ is None else environ
    settings = Settings()

    config_file = config_file or environ.get("FLEET_CONFIG")
    if config_file:
        file_values = _read_config_file(config_file)
        # storage: memory wins over a snapshot path given in the same file
        _apply(settings, {k: v for k, v in file_values.items() if k != "storage"})
        if "storage" in file_values:
            _apply(settings, {"storage": file_values["storage"]})

    env_values = {attr: environ[key] for key, attr in _ENV_KEYS.items() if key in environ}
    storage = env_values.pop("storage", None)
    _apply(settings, env_values)
    if storage is not None:
        _apply(settings, {"storage": storage})

    return settings


def configure_logging(level: str) -> None:
    """Root logging setup for entry points."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
