"""Exception hierarchy for the fleet package."""

from typing import List, Optional


class FleetError(Exception):
    """Base exception for all fleet errors."""


class FleetConfigError(FleetError):
    """Invalid configuration file or environment value."""


class UnitValidationError(FleetError, ValueError):
    """Input rejected before it reaches the store."""

    # Message shown to API clients
    message = "Datos inválidos"

    def __init__(self, detail: Optional[str] = None, errors: Optional[List[str]] = None):
        self.detail = detail or self.message
        self.errors = errors or []
        super().__init__(self.detail)


class InvalidUnitNumberError(UnitValidationError):
    """Unit number missing, not an integer, or outside 1-9999."""


class InvalidComponentError(UnitValidationError):
    """Name is not one of the nine components."""

    message = "Componente inválido"


class InvalidStatusError(UnitValidationError):
    """Status is neither listo nor taller."""

    message = "Estado inválido"


class InvalidFilterError(UnitValidationError):
    """Unknown value for a list filter."""

    message = "Filtro inválido"


class DuplicateUnitError(UnitValidationError):
    """Another live unit already has this unit number."""

    message = "Ya existe una unidad con este número"


class EmptyExportError(FleetError):
    """Nothing to export."""

    def __init__(self):
        super().__init__("No hay datos para exportar")
