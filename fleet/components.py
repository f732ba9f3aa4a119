"""Fixed component set tracked for every bus unit."""

# Order matters: it is the column order of tables, exports and snapshots.
COMPONENT_NAMES = ("MOT", "TRAN", "ELE", "AA", "FRE", "SUS", "DIR", "HOJ", "TEL")

COMPONENT_TITLES = {
    "MOT": "Motor",
    "TRAN": "Transmisión",
    "ELE": "Eléctrico",
    "AA": "Aire Acondicionado",
    "FRE": "Frenos",
    "SUS": "Suspensión",
    "DIR": "Dirección",
    "HOJ": "Hojalatería",
    "TEL": "Telecomunicaciones",
}


def is_component(name: str) -> bool:
    """Check if a name is one of the nine tracked components."""
    return name in COMPONENT_NAMES
