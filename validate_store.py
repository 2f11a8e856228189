#!/usr/bin/env python3
"""Validate fuel log YAML stores against the schema."""
import sys
from pathlib import Path

import yaml
from jsonschema import validate, ValidationError

from fuellog.errors import FuelLogError
from fuellog.store import migrate


def load_schema() -> dict:
    """Load the JSON schema from schema.yaml."""
    schema_path = Path(__file__).parent / "schema.yaml"
    with open(schema_path) as f:
        return yaml.safe_load(f)


def validate_store_file(filepath: Path, schema: dict) -> list[str]:
    """
    Validate a single store file. Returns list of errors.

    Legacy layouts are migrated first, so they validate the same way the
    app would read them.
    """
    errors = []
    try:
        with open(filepath) as f:
            data = migrate(yaml.safe_load(f))
        validate(instance=data, schema=schema)
    except yaml.YAMLError as e:
        errors.append(f"YAML parse error: {e}")
    except ValidationError as e:
        errors.append(f"Schema validation error: {e.message}")
        if e.path:
            errors.append(f"  at path: {'.'.join(str(p) for p in e.path)}")
    except (OSError, FuelLogError) as e:
        errors.append(f"Error: {e}")
    return errors


def main(argv=None):
    """Validate the given store files (default: fuel_log.yaml)."""
    args = sys.argv[1:] if argv is None else argv
    paths = [Path(a) for a in args] or [Path("fuel_log.yaml")]
    schema = load_schema()

    all_valid = True
    for filepath in paths:
        if not filepath.exists():
            print(f"FAIL: {filepath.name}")
            print(f"  Error: file not found: {filepath}")
            all_valid = False
            continue
        errors = validate_store_file(filepath, schema)
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
