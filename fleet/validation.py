"""Input checks run by callers before anything reaches the store."""

from typing import Any, List, Mapping, Optional

from .components import COMPONENT_NAMES, is_component
from .exceptions import (
    DuplicateUnitError,
    InvalidComponentError,
    InvalidStatusError,
    InvalidUnitNumberError,
    UnitValidationError,
)
from .status import ComponentStatus
from .unit import UnitUpdate

MIN_UNIT_NUMBER = 1
MAX_UNIT_NUMBER = 9999


def parse_unit_number(value: Any, allow_text: bool = True) -> int:
    """
    Convert a unit number from JSON, form or CLI input.

    Accepts ints, and strings of ASCII digits when `allow_text` is set.
    Booleans and floats are rejected.
    """
    if isinstance(value, bool):
        raise InvalidUnitNumberError("unitNumber must be an integer")
    if isinstance(value, str) and allow_text:
        value = value.strip()
        if not (value.isascii() and value.isdigit()):
            raise InvalidUnitNumberError("unitNumber must be an integer")
        value = int(value)
    if not isinstance(value, int):
        raise InvalidUnitNumberError("unitNumber must be an integer")
    if not MIN_UNIT_NUMBER <= value <= MAX_UNIT_NUMBER:
        raise InvalidUnitNumberError(
            f"unitNumber must be between {MIN_UNIT_NUMBER} and {MAX_UNIT_NUMBER}"
        )
    return value


def parse_component(name: Any) -> str:
    """Check a component name against the fixed set."""
    if not is_component(name):
        raise InvalidComponentError(f"Unknown component: {name!r}")
    return name


def parse_status(value: Any) -> ComponentStatus:
    """Convert 'listo'/'taller' into a ComponentStatus."""
    if isinstance(value, ComponentStatus):
        return value
    try:
        return ComponentStatus(value)
    except ValueError:
        raise InvalidStatusError(f"Unknown status: {value!r}") from None


def parse_new_unit(payload: Any, allow_text: bool = False) -> UnitUpdate:
    """
    Validate a create-unit payload.

    Expects {"unitNumber": int, <component>: status, ...}. Component fields
    are optional; unknown keys are ignored. All problems are collected into
    the raised error's `errors` list. A text unitNumber is only accepted with
    `allow_text`, for form input.
    """
    if not isinstance(payload, Mapping):
        raise UnitValidationError(errors=["body must be a JSON object"])

    errors: List[str] = []
    unit_number: Optional[int] = None
    if "unitNumber" not in payload:
        errors.append("unitNumber: required")
    else:
        try:
            unit_number = parse_unit_number(payload["unitNumber"], allow_text)
        except UnitValidationError as e:
            errors.append(f"unitNumber: {e.detail}")

    components = {}
    for name in COMPONENT_NAMES:
        if name not in payload:
            continue
        try:
            components[name] = parse_status(payload[name])
        except UnitValidationError as e:
            errors.append(f"{name}: {e.detail}")

    if errors:
        raise UnitValidationError(errors=errors)
    return UnitUpdate(unit_number=unit_number, **components)


def ensure_unique_number(store, unit_number: int) -> None:
    """Reject a unit number already used by a live unit."""
    if store.get_by_number(unit_number) is not None:
        raise DuplicateUnitError(f"Unit {unit_number} already exists")
