"""Unit class and the typed partial update applied to it."""

from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from .components import COMPONENT_NAMES
from .status import ComponentStatus, Readiness


class Unit:
    """A bus in the fleet with the status of each of its components."""

    def __init__(
        self,
        id: int,
        unit_number: int,
        components: Optional[Mapping[str, ComponentStatus]] = None,
    ):
        components = components or {}
        self.id = id
        self.unit_number = unit_number
        # Always complete and in display order
        self.components: Dict[str, ComponentStatus] = {
            name: components.get(name, ComponentStatus.LISTO)
            for name in COMPONENT_NAMES
        }

    def __repr__(self) -> str:
        return f"Unit(id={self.id}, unit_number={self.unit_number})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, Unit):
            return NotImplemented
        return (
            self.id == other.id
            and self.unit_number == other.unit_number
            and self.components == other.components
        )

    def status(self, name: str) -> ComponentStatus:
        """Status of a single component by name."""
        return self.components[name]

    @property
    def ready_count(self) -> int:
        """Number of components that are listo."""
        return sum(1 for s in self.components.values() if s is ComponentStatus.LISTO)

    @property
    def readiness(self) -> Readiness:
        """Overall state of the unit."""
        ready = self.ready_count
        if ready == len(COMPONENT_NAMES):
            return Readiness.READY
        if ready == 0:
            return Readiness.WORKSHOP
        return Readiness.PARTIAL

    def copy(self) -> "Unit":
        """Detached copy; changing it never affects the original."""
        return Unit(self.id, self.unit_number, dict(self.components))


@dataclass
class UnitUpdate:
    """
    Partial set of unit fields.

    Used both to create a unit (unit_number required, components default to
    listo) and to update one. A field left as None is not touched.
    """

    unit_number: Optional[int] = None
    MOT: Optional[ComponentStatus] = None
    TRAN: Optional[ComponentStatus] = None
    ELE: Optional[ComponentStatus] = None
    AA: Optional[ComponentStatus] = None
    FRE: Optional[ComponentStatus] = None
    SUS: Optional[ComponentStatus] = None
    DIR: Optional[ComponentStatus] = None
    HOJ: Optional[ComponentStatus] = None
    TEL: Optional[ComponentStatus] = None

    @classmethod
    def for_component(cls, name: str, status: ComponentStatus) -> "UnitUpdate":
        """Update that sets a single component."""
        if name not in COMPONENT_NAMES:
            raise KeyError(name)
        return cls(**{name: status})

    @property
    def components(self) -> Dict[str, ComponentStatus]:
        """Only the component fields that were supplied."""
        return {
            name: getattr(self, name)
            for name in COMPONENT_NAMES
            if getattr(self, name) is not None
        }

    def apply_to(self, unit: Unit) -> Unit:
        """Return a new Unit with the supplied fields merged over `unit`."""
        merged = unit.copy()
        if self.unit_number is not None:
            merged.unit_number = self.unit_number
        merged.components.update(self.components)
        return merged
