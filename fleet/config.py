"""Configuration loading: optional YAML file plus environment overrides."""

import dataclasses
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from .errors import ConfigError
from .schema import schema_errors

DEFAULT_CONFIG_FILE = "fleet.yaml"
DEFAULT_DATA_FILE = "vehicles.dat"
DEFAULT_RENTALS_FILE = "rentals.yaml"
DEFAULT_LOG_LEVEL = "WARNING"


def _env_bool(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class FleetConfig:
    """Where fleet data lives and how verbose logging is.

    Paths in a config file are resolved relative to that file.
    """

    data_file: Path = Path(DEFAULT_DATA_FILE)
    rentals_file: Path = Path(DEFAULT_RENTALS_FILE)
    persist_rentals: bool = True
    log_level: str = DEFAULT_LOG_LEVEL


def _read_config_file(path: Path) -> Dict[str, Any]:
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"YAML parse error in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Error reading {path}: {e}") from e

    if data is None:
        return {}
    errors = schema_errors(data, "config")
    if errors:
        raise ConfigError(f"Invalid config {path}: {errors[0]}")
    return data


def load_config(
    path: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> FleetConfig:
    """
    Build a FleetConfig.

    Precedence (highest first):
    - FLEET_* environment variables
    - the YAML config file (explicit path, or fleet.yaml if present)
    - built-in defaults
    """
    env = os.environ if environ is None else environ
    values: Dict[str, Any] = {}

    config_path = Path(path) if path is not None else Path(DEFAULT_CONFIG_FILE)
    if path is not None and not config_path.is_file():
        raise ConfigError(f"Config file not found: {config_path}")
    if config_path.is_file():
        data = _read_config_file(config_path)
        base = config_path.parent
        if "dataFile" in data:
            values["data_file"] = base / data["dataFile"]
        if "rentalsFile" in data:
            values["rentals_file"] = base / data["rentalsFile"]
        if "persistRentals" in data:
            values["persist_rentals"] = data["persistRentals"]
        if "logLevel" in data:
            values["log_level"] = data["logLevel"]

    if env.get("FLEET_DATA_FILE"):
        values["data_file"] = Path(env["FLEET_DATA_FILE"])
    if env.get("FLEET_RENTALS_FILE"):
        values["rentals_file"] = Path(env["FLEET_RENTALS_FILE"])
    if "FLEET_PERSIST_RENTALS" in env:
        values["persist_rentals"] = _env_bool(
            env["FLEET_PERSIST_RENTALS"], values.get("persist_rentals", True)
        )
    if env.get("FLEET_LOG_LEVEL"):
        values["log_level"] = env["FLEET_LOG_LEVEL"].upper()

    return FleetConfig(**values)
