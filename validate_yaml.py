#!/usr/bin/env python3
"""Validate fleet config and rental periods YAML files against the schema."""
import argparse
import sys
from pathlib import Path

import yaml

from fleet.config import DEFAULT_CONFIG_FILE, DEFAULT_RENTALS_FILE
from fleet.rental_store import normalize_dates
from fleet.schema import schema_errors


def guess_schema(filepath: Path) -> str:
    """Files named rentals*.yaml hold periods; anything else is config."""
    return "rentals" if filepath.name.startswith("rentals") else "config"


def validate_file(filepath: Path, schema_name: str) -> list[str]:
    """Validate a single YAML file. Returns list of errors."""
    errors = []
    try:
        with open(filepath) as f:
            data = yaml.safe_load(f)
        if isinstance(data, dict) and schema_name == "rentals":
            data = normalize_dates(data)
        errors.extend(
            f"Schema validation error: {message}"
            for message in schema_errors(data or {}, schema_name)
        )
    except yaml.YAMLError as e:
        errors.append(f"YAML parse error: {e}")
    except OSError as e:
        errors.append(f"Error: {e}")
    return errors


def main(argv=None):
    """Validate the given files, or fleet.yaml and rentals.yaml if present."""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("files", nargs="*", type=Path, help="YAML files to check")
    parser.add_argument(
        "--schema",
        choices=["config", "rentals"],
        help="Schema to validate against (default: guessed from file name)",
    )
    args = parser.parse_args(argv)

    files = args.files or [
        p for p in (Path(DEFAULT_CONFIG_FILE), Path(DEFAULT_RENTALS_FILE)) if p.exists()
    ]
    if not files:
        print("Warning: No YAML files to validate")
        return 0

    all_valid = True
    for filepath in files:
        errors = validate_file(filepath, args.schema or guess_schema(filepath))
        if errors:
            print(f"FAIL: {filepath.name}")
            for error in errors:
                print(f"  {error}")
            all_valid = False
        else:
            print(f"OK: {filepath.name}")

    return 0 if all_valid else 1


if __name__ == "__main__":
    sys.exit(main())
