from __future__ import annotations
from typing import Dict, Final

from . import exceptions

# Unit of measure (lower-cased) -> multiplier to kWh
KWH_MULTIPLIERS: Final[Dict[str, float]] = {
    "wh": 0.001,
    "kwh": 1.0,
    "mwh": 1000.0,
}


def kwh_multiplier(uom: str) -> float:
    """Multiplier converting an energy value in `uom` to kWh."""
    try:
        return KWH_MULTIPLIERS[uom.strip().lower()]
    except KeyError:
        raise exceptions.UnitConversionError(f"Unsupported unit: {uom!r}") from None


def to_kwh(value: float, uom: str) -> float:
    return value * kwh_multiplier(uom)
