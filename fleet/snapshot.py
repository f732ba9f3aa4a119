"""
Persistence strategies for the unit store.

The store is handed one of these at construction:
- MemoryPersistence: nothing survives the process
- SnapshotPersistence: the whole fleet is rewritten to a JSON file after
  every mutation

A snapshot is advisory. Read and write problems are logged and never raised,
so the in-memory collection stays the source of truth for the running process.
"""

import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import yaml
from dateutil import tz
from dateutil.parser import isoparse
from jsonschema import ValidationError, validate

from .components import COMPONENT_NAMES
from .status import ComponentStatus
from .unit import Unit

_logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).parent / "schema.yaml"


def load_schema() -> dict:
    """Load the snapshot JSON schema from schema.yaml."""
    with open(SCHEMA_PATH) as f:
        return yaml.safe_load(f)


def unit_to_dict(unit: Unit) -> Dict[str, Any]:
    """Serialize a Unit to the wire/snapshot format (camelCase keys)."""
    d: Dict[str, Any] = {"id": unit.id, "unitNumber": unit.unit_number}
    for name in COMPONENT_NAMES:
        d[name] = unit.components[name].value
    return d


def unit_from_dict(dct: Dict[str, Any]) -> Unit:
    """Parse a snapshot record into a Unit."""
    return Unit(
        int(dct["id"]),
        int(dct["unitNumber"]),
        {name: ComponentStatus(dct[name]) for name in COMPONENT_NAMES},
    )


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC with milliseconds and a Z suffix."""
    moment = moment.astimezone(tz.tzutc())
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def read_snapshot(
    filename: Union[str, Path], schema: Optional[dict] = None
) -> Tuple[List[Unit], Optional[datetime]]:
    """
    Read and validate a snapshot file.

    Raises OSError, ValueError (bad JSON) or jsonschema.ValidationError.
    An unparseable lastUpdated is reported as None rather than rejected.
    """
    with open(filename, "r", encoding="utf-8") as fp:
        data = json.load(fp)
    validate(instance=data, schema=schema or load_schema())

    last_updated = None
    if data.get("lastUpdated"):
        try:
            last_updated = isoparse(data["lastUpdated"])
        except ValueError:
            _logger.warning(
                "Ignoring bad lastUpdated %r in %s", data["lastUpdated"], filename
            )
    return [unit_from_dict(d) for d in data["units"]], last_updated


def write_snapshot(
    filename: Union[str, Path],
    units: Iterable[Unit],
    moment: Optional[datetime] = None,
) -> datetime:
    """
    Write the whole collection to a snapshot file.

    Goes through a temporary file in the same directory and os.replace, so
    readers see either the old snapshot or the new one. Returns the
    timestamp written. Raises OSError.
    """
    path = Path(filename)
    moment = moment or datetime.now(tz.tzutc())
    data = {
        "units": [unit_to_dict(u) for u in units],
        "lastUpdated": format_timestamp(moment),
    }

    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent)
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fp:
            json.dump(data, fp, indent=2, ensure_ascii=False)
            fp.write("\n")
        os.replace(tmp_name, path)
    except Exception:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return moment


class Persistence:
    """Strategy the store uses to restore and record its collection."""

    def load(self) -> List[Unit]:
        """Initial collection, called once when the store is built."""
        raise NotImplementedError

    def save(self, units: List[Unit]) -> None:
        """Record the full collection after a mutation."""
        raise NotImplementedError


class MemoryPersistence(Persistence):
    """Keeps nothing: the store starts empty and saves are dropped."""

    def load(self) -> List[Unit]:
        return []

    def save(self, units: List[Unit]) -> None:
        pass


class SnapshotPersistence(Persistence):
    """Whole-collection JSON snapshot in a single file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.last_updated: Optional[datetime] = None
        self._schema = load_schema()

    def __repr__(self) -> str:
        return f"SnapshotPersistence({str(self.path)!r})"

    def load(self) -> List[Unit]:
        """
        Read the snapshot; a missing or corrupt file yields an empty fleet.

        In both cases a fresh empty snapshot is written in its place.
        """
        if not self.path.exists():
            _logger.info("No snapshot at %s, starting empty", self.path)
            self.save([])
            return []

        try:
            units, self.last_updated = read_snapshot(self.path, self._schema)
        except ValidationError as e:
            _logger.warning("Snapshot %s is malformed (%s), starting empty", self.path, e.message)
        except (OSError, ValueError) as e:
            _logger.warning("Snapshot %s is unreadable (%s), starting empty", self.path, e)
        else:
            _logger.info("Loaded %d units from %s", len(units), self.path)
            return units

        self.save([])
        return []

    def save(self, units: List[Unit]) -> None:
        try:
            self.last_updated = write_snapshot(self.path, units)
        except OSError as e:
            _logger.error("Could not write snapshot %s: %s", self.path, e)
