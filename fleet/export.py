"""CSV export of the fleet table."""

import csv
import io
from datetime import date
from typing import Iterable, List, Optional

from .components import COMPONENT_NAMES
from .exceptions import EmptyExportError
from .unit import Unit

CSV_HEADER = ["Autobús", *COMPONENT_NAMES]


def export_filename(day: Optional[date] = None) -> str:
    """Download name, e.g. unidades_autobus_2025-01-15.csv."""
    day = day or date.today()
    return f"unidades_autobus_{day.isoformat()}.csv"


def make_export_rows(units: Iterable[Unit]) -> List[List[str]]:
    """One row per unit: number followed by the raw status strings."""
    return [
        [str(u.unit_number)] + [u.components[name].value for name in COMPONENT_NAMES]
        for u in units
    ]


def units_to_csv(units: Iterable[Unit]) -> str:
    """Render units as CSV text. Raises EmptyExportError when there are none."""
    rows = make_export_rows(units)
    if not rows:
        raise EmptyExportError()

    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    writer.writerows(rows)
    # No trailing newline after the last row
    return buf.getvalue().rstrip("\n")
