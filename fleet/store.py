"""UnitStore - the authoritative collection of bus units."""

import logging
import threading
from pathlib import Path
from typing import Dict, List, Optional, Union

from .snapshot import MemoryPersistence, Persistence, SnapshotPersistence
from .unit import Unit, UnitUpdate

_logger = logging.getLogger(__name__)


class UnitStore:
    """
    In-memory map of units keyed by id, with a pluggable persistence strategy.

    Every read returns copies, so callers cannot change stored units behind
    the store's back. Every successful mutation is followed by a full
    snapshot save; both happen under one lock so concurrent writers never
    interleave snapshot writes.

    Ids come from a counter seeded to max(loaded ids) + 1 and are never
    reused while the process lives, not even after delete_all.
    """

    def __init__(self, persistence: Optional[Persistence] = None):
        self.persistence = persistence or MemoryPersistence()
        self._lock = threading.RLock()
        self._units: Dict[int, Unit] = {}
        for unit in self.persistence.load():
            if unit.id in self._units:
                _logger.warning("Duplicate unit id %d in snapshot, keeping last", unit.id)
            self._units[unit.id] = unit
        self._next_id = max(self._units, default=0) + 1

    def __len__(self) -> int:
        return len(self._units)

    def count(self) -> int:
        """Number of live units."""
        return len(self._units)

    def get(self, id: int) -> Optional[Unit]:
        """Find a unit by store id."""
        unit = self._units.get(id)
        return unit.copy() if unit else None

    def get_by_number(self, unit_number: int) -> Optional[Unit]:
        """Find a unit by its bus number."""
        for unit in list(self._units.values()):
            if unit.unit_number == unit_number:
                return unit.copy()
        return None

    def list_all(self) -> List[Unit]:
        """All units, sorted by unit number."""
        units = sorted(list(self._units.values()), key=lambda u: (u.unit_number, u.id))
        return [u.copy() for u in units]

    def create(self, fields: UnitUpdate) -> Unit:
        """
        Add a unit and assign it the next id.

        Components not given in `fields` start as listo. Unit number
        uniqueness is the caller's job (see validation.ensure_unique_number).
        """
        if fields.unit_number is None:
            raise ValueError("unit_number is required to create a unit")

        with self._lock:
            unit = fields.apply_to(Unit(self._next_id, fields.unit_number))
            self._next_id += 1
            self._units[unit.id] = unit
            _logger.debug("Created unit %d (id %d)", unit.unit_number, unit.id)
            self._save()
            return unit.copy()

    def update(self, id: int, fields: UnitUpdate) -> Optional[Unit]:
        """Merge `fields` over an existing unit. None if the id is unknown."""
        with self._lock:
            existing = self._units.get(id)
            if existing is None:
                return None
            unit = fields.apply_to(existing)
            self._units[id] = unit
            _logger.debug("Updated unit id %d: %s", id, fields)
            self._save()
            return unit.copy()

    def delete_one(self, id: int) -> bool:
        """Remove a unit. Returns whether it existed."""
        with self._lock:
            if self._units.pop(id, None) is None:
                return False
            _logger.debug("Deleted unit id %d", id)
            self._save()
            return True

    def delete_all(self) -> None:
        """Remove every unit. The id counter keeps counting."""
        with self._lock:
            self._units.clear()
            _logger.debug("Deleted all units")
            self._save()

    def _save(self) -> None:
        self.persistence.save(self.list_all())


def open_store(snapshot_path: Optional[Union[str, Path]] = None) -> UnitStore:
    """Build a store backed by a snapshot file, or in memory when no path is given."""
    if snapshot_path is None:
        return UnitStore(MemoryPersistence())
    return UnitStore(SnapshotPersistence(snapshot_path))
