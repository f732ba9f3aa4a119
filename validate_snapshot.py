#!/usr/bin/env python3
"""Validate fleet snapshot files against the schema."""
import json
import sys
from collections import Counter
from pathlib import Path

from jsonschema import validate, ValidationError

from fleet.snapshot import load_schema


def find_duplicates(units: list) -> list[str]:
    """Report ids and unit numbers used by more than one record."""
    errors = []
    for key in ("id", "unitNumber"):
        counts = Counter(u[key] for u in units)
        dupes = sorted(value for value, n in counts.items() if n > 1)
        if dupes:
            errors.append(f"Duplicate {key}: {', '.join(str(d) for d in dupes)}")
    return errors


def validate_snapshot_file(filepath: Path, schema: dict) -> list[str]:
    """Validate a single snapshot file. Returns list of errors."""
    errors = []
    try:
        with open(filepath, encoding="utf-8") as f:
            data = json.load(f)
        validate(instance=data, schema=schema)
        errors.extend(find_duplicates(data["units"]))
    except json.JSONDecodeError as e:
        errors.append(f"JSON parse error: {e}")
    except ValidationError as e:
        errors.append(f"Schema validation error: {e.message}")
        if e.path:
            errors.append(f"  at path: {'.'.join(str(p) for p in e.path)}")
    except Exception as e:
        errors.append(f"Error: {e}")
    return errors


def main(argv=None):
    """Validate the given snapshot files, or every JSON file in data/."""
    schema = load_schema()
    args = sys.argv[1:] if argv is None else argv

    if args:
        files = [Path(a) for a in args]
    else:
        data_dir = Path(__file__).parent / "data"
        if not data_dir.exists():
            print(f"Error: data directory not found: {data_dir}")
            return 1
        files = sorted(data_dir.glob("*.json"))

    if not files:
        print("Warning: No snapshot files found")
        return 0

    all_valid = True
    for filepath in files:
        errors = validate_snapshot_file(filepath, schema)
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
