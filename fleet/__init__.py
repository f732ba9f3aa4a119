"""
Bus fleet maintenance status.

This package tracks which components of each bus are ready or in the workshop:
- ComponentStatus / Readiness: status of a component / of a whole unit
- Unit, UnitUpdate: a bus and a typed partial change to it
- UnitStore: authoritative collection with pluggable persistence
- MemoryPersistence, SnapshotPersistence: persistence strategies
- filters, export: listing filters, statistics and CSV output
"""

from .components import COMPONENT_NAMES, COMPONENT_TITLES
from .status import ComponentStatus, Readiness
from .unit import Unit, UnitUpdate
from .snapshot import (
    Persistence,
    MemoryPersistence,
    SnapshotPersistence,
    unit_to_dict,
    unit_from_dict,
)
from .store import UnitStore, open_store
from .filters import FleetStats, filter_units, fleet_stats
from .export import export_filename, units_to_csv

__all__ = [
    "COMPONENT_NAMES",
    "COMPONENT_TITLES",
    "ComponentStatus",
    "Readiness",
    "Unit",
    "UnitUpdate",
    "Persistence",
    "MemoryPersistence",
    "SnapshotPersistence",
    "unit_to_dict",
    "unit_from_dict",
    "UnitStore",
    "open_store",
    "FleetStats",
    "filter_units",
    "fleet_stats",
    "export_filename",
    "units_to_csv",
]
