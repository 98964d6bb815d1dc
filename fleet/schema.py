"""Bundled JSON schemas for the fleet's YAML files."""

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List

import yaml
from jsonschema import Draft7Validator

SCHEMA_PATH = Path(__file__).parent / "schema.yaml"


@lru_cache(maxsize=None)
def _load_all() -> Dict[str, Any]:
    with open(SCHEMA_PATH) as f:
        return yaml.safe_load(f)


def load_schema(name: str) -> dict:
    """Return the schema registered under `name` ("config" or "rentals")."""
    schemas = _load_all()
    if name not in schemas:
        raise KeyError(f"No schema named '{name}'")
    return schemas[name]


def schema_errors(data: Any, name: str) -> List[str]:
    """Validate `data` against a named schema. Returns a list of messages."""
    validator = Draft7Validator(load_schema(name))
    errors = []
    for error in sorted(validator.iter_errors(data), key=lambda e: list(e.path)):
        message = error.message
        if error.path:
            message += f" (at {'.'.join(str(p) for p in error.path)})"
        errors.append(message)
    return errors
