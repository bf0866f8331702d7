"""
units.py — Unit Catalog and Unit Converter

The catalog is a static, process-wide registry of measurement units grouped
into conversion classes. Every unit carries a factor relative to the canonical
base unit of its class:

    MASS    -> gram (g)
    VOLUME  -> milliliter (ml)
    COUNT   -> piece (pcs)
    LENGTH  -> meter (m)

Conversion between two units of the same class is
``quantity * factor(from) / factor(to)``. Quantities stay in full double
precision; rounding to 4 decimals happens only in ``format_quantity``.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .config import QUANTITY_DECIMALS


class ConversionClass(str, Enum):
    MASS = "MASS"
    VOLUME = "VOLUME"
    COUNT = "COUNT"
    LENGTH = "LENGTH"


class Unit(BaseModel):
    """
    A registered measurement unit. Immutable once created.

    Attributes:
        short_name (str): Unique key, e.g. 'kg', 'ml', 'pcs'.
        display_name (str): Human readable name, e.g. 'Kilogram'.
        conversion_class (ConversionClass): Group of mutually convertible units.
        factor_to_base (float): How many base units one of this unit equals.
        allows_fractional (bool): Whether quantities like 0.25 are valid.
    """
    model_config = ConfigDict(frozen=True)

    short_name: str
    display_name: str
    conversion_class: ConversionClass
    factor_to_base: float = Field(..., gt=0)
    allows_fractional: bool = False


def _unit(short_name, display_name, conversion_class, factor_to_base=1.0, allows_fractional=False):
    return Unit(
        short_name=short_name,
        display_name=display_name,
        conversion_class=conversion_class,
        factor_to_base=factor_to_base,
        allows_fractional=allows_fractional,
    )


_MASS = ConversionClass.MASS
_VOLUME = ConversionClass.VOLUME
_COUNT = ConversionClass.COUNT
_LENGTH = ConversionClass.LENGTH

# Catalog order is the order compatible units are offered to the cashier.
PREDEFINED_UNITS: List[Unit] = [
    # Most used
    _unit("pcs", "Piece", _COUNT),
    _unit("kg", "Kilogram", _MASS, 1000.0, True),
    _unit("g", "Gram", _MASS, 1.0, True),
    _unit("l", "Liter", _VOLUME, 1000.0, True),
    _unit("ml", "Milliliter", _VOLUME, 1.0, True),
    _unit("box", "Box", _COUNT),
    _unit("pack", "Pack", _COUNT),
    _unit("dozen", "Dozen", _COUNT, 12.0),
    _unit("set", "Set", _COUNT),

    # Retail & grocery
    _unit("bag", "Bag", _COUNT),
    _unit("bottle", "Bottle", _COUNT),
    _unit("can", "Can", _COUNT),
    _unit("jar", "Jar", _COUNT),
    _unit("sachet", "Sachet", _COUNT),
    _unit("bundle", "Bundle", _COUNT),

    # Electronics / hardware
    _unit("unit", "Unit", _COUNT),
    _unit("pair", "Pair", _COUNT, 2.0),
    _unit("roll", "Roll", _COUNT),
    _unit("m", "Meter", _LENGTH, 1.0, True),
    _unit("ft", "Feet", _LENGTH, 0.3048, True),
    _unit("inch", "Inch", _LENGTH, 0.0254, True),
    _unit("sheet", "Sheet", _COUNT),

    # Wholesale / bulk
    _unit("carton", "Carton", _COUNT),
    _unit("case", "Case", _COUNT),
    _unit("packet", "Packet", _COUNT),
    _unit("lot", "Lot", _COUNT),
]

UNIT_CATALOG: Dict[str, Unit] = {u.short_name: u for u in PREDEFINED_UNITS}


def get_unit(short_name: str) -> Optional[Unit]:
    return UNIT_CATALOG.get(short_name)


def can_convert(from_unit: str, to_unit: str) -> bool:
    """True iff both units are registered and share a conversion class."""
    source = get_unit(from_unit)
    target = get_unit(to_unit)
    if source is None or target is None:
        return False
    return source.conversion_class == target.conversion_class


def convert(quantity: float, from_unit: str, to_unit: str) -> Optional[float]:
    """
    Converts ``quantity`` from ``from_unit`` into ``to_unit``.

    Returns:
        float | None: The converted quantity, or None when the units cannot be
        converted. Callers decide whether a missing conversion is an error.
    """
    if not can_convert(from_unit, to_unit):
        return None
    # Identity must be exact
    if from_unit == to_unit:
        return quantity
    return quantity * UNIT_CATALOG[from_unit].factor_to_base / UNIT_CATALOG[to_unit].factor_to_base


def compatible_units(short_name: str) -> List[Unit]:
    """Units a product stocked in ``short_name`` can be sold in (including itself)."""
    return [u for u in PREDEFINED_UNITS if can_convert(short_name, u.short_name)]


def allows_fractional(short_name: str) -> bool:
    # Unknown units are treated as whole-number units
    unit = get_unit(short_name)
    return unit.allows_fractional if unit else False


def format_quantity(quantity: float, decimals: int = QUANTITY_DECIMALS) -> str:
    """Display form of a quantity: at most ``decimals`` places, trailing zeros dropped."""
    text = f"{quantity:.{decimals}f}".rstrip("0").rstrip(".")
    return text or "0"
