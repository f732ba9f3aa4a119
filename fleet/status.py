"""Status enums for components and whole units."""

from enum import Enum


class ComponentStatus(Enum):
    """State of a single component. Values are the wire strings."""

    LISTO = "listo"  # ready for service
    TALLER = "taller"  # in the workshop

    def toggled(self) -> "ComponentStatus":
        """The opposite status."""
        if self is ComponentStatus.LISTO:
            return ComponentStatus.TALLER
        return ComponentStatus.LISTO


class Readiness(Enum):
    """Overall unit state derived from its components. Lower value = better."""

    READY = 1  # every component listo
    PARTIAL = 2
    WORKSHOP = 3  # every component taller
