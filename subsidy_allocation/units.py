"""Boundary conversions between reporting units and internal units.

Internally, cost is an integer amount of minor currency units (cents) and
benefit is kilograms of CO2-equivalent. Tables and reports use major units
(dollars) and metric tonnes.
"""

from decimal import ROUND_HALF_EVEN, Decimal

MINOR_PER_MAJOR = 100
KG_PER_TONNE = 1000


def to_minor_units(amount: float, scale: int = MINOR_PER_MAJOR) -> int:
    """Convert a major-unit currency amount to integer minor units.

    Rounds half to even on the exact decimal representation of ``amount``,
    so ``19.99`` becomes ``1999`` rather than ``1998``.

    Parameters
    ----------
    amount : float
        Amount in major currency units.
    scale : int
        Minor units per major unit.

    Returns
    -------
    int
    """
    scaled = Decimal(str(amount)) * scale
    return int(scaled.quantize(Decimal(1), rounding=ROUND_HALF_EVEN))


def to_major_units(amount: int, scale: int = MINOR_PER_MAJOR) -> float:
    """Convert integer minor units back to major currency units."""
    return amount / scale


def tonnes_to_kg(tonnes: float, scale: int = KG_PER_TONNE) -> float:
    """Convert metric tonnes CO2e to kilograms."""
    return tonnes * scale


def kg_to_tonnes(kg: float, scale: int = KG_PER_TONNE) -> float:
    """Convert kilograms CO2e to metric tonnes."""
    return kg / scale
