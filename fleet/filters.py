"""Search, filters and statistics for fleet listings."""

from dataclasses import dataclass
from typing import Iterable, List

from .components import COMPONENT_NAMES
from .exceptions import InvalidFilterError
from .status import ComponentStatus, Readiness
from .unit import Unit

ALL = "all"

# Filter value -> readiness it selects
STATUS_FILTERS = {
    "ready": Readiness.READY,
    "partial": Readiness.PARTIAL,
    "workshop": Readiness.WORKSHOP,
}


@dataclass
class FleetStats:
    """Counts shown on the dashboard cards."""

    total: int = 0
    ready: int = 0
    partial: int = 0
    workshop: int = 0

    def to_dict(self) -> dict:
        return {
            "totalUnits": self.total,
            "readyUnits": self.ready,
            "partialUnits": self.partial,
            "workshopUnits": self.workshop,
        }


def matches_search(unit: Unit, term: str) -> bool:
    """Search term is matched as a substring of the unit number."""
    return term in str(unit.unit_number)


def matches_status(unit: Unit, status_filter: str) -> bool:
    if status_filter == ALL:
        return True
    if status_filter not in STATUS_FILTERS:
        raise InvalidFilterError(f"Unknown status filter: {status_filter!r}")
    return unit.readiness is STATUS_FILTERS[status_filter]


def matches_component(unit: Unit, component: str) -> bool:
    """With a component selected, keep only units where it is in the workshop."""
    if component == ALL:
        return True
    if component not in COMPONENT_NAMES:
        raise InvalidFilterError(f"Unknown component filter: {component!r}")
    return unit.status(component) is ComponentStatus.TALLER


def filter_units(
    units: Iterable[Unit],
    search: str = "",
    status: str = ALL,
    component: str = ALL,
) -> List[Unit]:
    """Units matching all three criteria, in their original order."""
    # Checked up front so a bad filter fails even on an empty fleet
    if status != ALL and status not in STATUS_FILTERS:
        raise InvalidFilterError(f"Unknown status filter: {status!r}")
    if component != ALL and component not in COMPONENT_NAMES:
        raise InvalidFilterError(f"Unknown component filter: {component!r}")

    return [
        u
        for u in units
        if matches_search(u, search)
        and matches_status(u, status)
        and matches_component(u, component)
    ]


def fleet_stats(units: Iterable[Unit]) -> FleetStats:
    """Count units by readiness. Partial is whatever is neither ready nor workshop."""
    units = list(units)
    ready = sum(1 for u in units if u.readiness is Readiness.READY)
    workshop = sum(1 for u in units if u.readiness is Readiness.WORKSHOP)
    return FleetStats(
        total=len(units),
        ready=ready,
        partial=len(units) - ready - workshop,
        workshop=workshop,
    )
