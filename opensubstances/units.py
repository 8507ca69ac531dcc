"""Unit handling at the library boundary.

Internally temperatures are kelvin, pressures kPa, masses kg and densities
kg/m³. Public entry points also accept pint quantities and convert them here.

Example:
    >>> from opensubstances.units import Q_, as_kelvin, as_kilopascals
    >>> round(as_kelvin(Q_(25, "degC")), 2)
    298.15
    >>> round(as_kilopascals(Q_(1, "atm")), 3)
    101.325
"""

from __future__ import annotations

from decimal import Decimal
from typing import Union

import pint

ureg = pint.UnitRegistry()
Q_ = ureg.Quantity
Quantity = ureg.Quantity

# J / (mol K)
GAS_CONSTANT = 8.314462618

Number = Union[int, float, Decimal]


def _convert(value: Union[Number, Quantity], dimension: str, unit: str, label: str) -> float:
    if isinstance(value, Quantity):
        if not value.check(dimension):
            raise TypeError(f"{label} must have {dimension} units.")
        return float(value.to(unit).magnitude)
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise TypeError(f"{label} must be a number or a pint Quantity.")
    return float(value)


def as_kelvin(value: Union[Number, Quantity]) -> float:
    """Return a temperature in kelvin; bare numbers are taken as kelvin."""
    return _convert(value, "[temperature]", "kelvin", "Temperature")


def as_kilopascals(value: Union[Number, Quantity]) -> float:
    """Return a pressure in kPa; bare numbers are taken as kPa."""
    return _convert(value, "[mass] / [length] / [time] ** 2", "kilopascal", "Pressure")


def as_kilograms(value: Union[Number, Quantity]) -> Decimal:
    """Return a mass in kg as a Decimal; bare numbers are taken as kg."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return Decimal(value)
    return Decimal(repr(_convert(value, "[mass]", "kilogram", "Mass")))


def as_density(value: Union[Number, Quantity]) -> float:
    """Return a density in kg/m³; bare numbers are taken as kg/m³."""
    return _convert(value, "[mass] / [length] ** 3", "kilogram / meter ** 3", "Density")


def as_meters(value: Union[Number, Quantity]) -> float:
    """Return a length in meters; bare numbers are taken as meters."""
    return _convert(value, "[length]", "meter", "Length")
