# advisor/units.py
"""
Unit conversion for stored biometric samples.

Each unit belongs to exactly one dimension and carries a factor to that
dimension's base unit. Step counts are bare counts and never convert into
anything else.
"""

from typing import Dict, Tuple


class UnitMismatchError(ValueError):
    pass


# unit -> (dimension, factor to base unit)
_UNITS: Dict[str, Tuple[str, float]] = {
    # length, base metre
    "m": ("length", 1.0),
    "cm": ("length", 0.01),
    "km": ("length", 1000.0),
    "in": ("length", 0.0254),
    "ft": ("length", 0.3048),
    "mi": ("length", 1609.344),
    # mass, base kilogram
    "kg": ("mass", 1.0),
    "g": ("mass", 0.001),
    "lb": ("mass", 0.45359237),
    # plain counts (steps)
    "count": ("count", 1.0),
    # frequency, base beats per minute
    "count/min": ("frequency", 1.0),
    "count/s": ("frequency", 60.0),
    # energy, base kilocalorie
    "kcal": ("energy", 1.0),
    "kJ": ("energy", 1 / 4.184),
}


def dimension_of(unit: str) -> str:
    try:
        return _UNITS[unit][0]
    except KeyError:
        raise UnitMismatchError(f"Unknown unit: {unit!r}") from None


def convert(value: float, from_unit: str, to_unit: str) -> float:
    """Convert value between two units of the same dimension."""
    if from_unit == to_unit:
        return float(value)

    src_dim = dimension_of(from_unit)
    dst_dim = dimension_of(to_unit)
    if src_dim != dst_dim:
        raise UnitMismatchError(f"Cannot convert {from_unit} ({src_dim}) to {to_unit} ({dst_dim})")

    return float(value) * _UNITS[from_unit][1] / _UNITS[to_unit][1]
