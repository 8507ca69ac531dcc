"""Elements, isotopes and the periodic table."""

from __future__ import annotations

from typing import Optional, Union

from .isotopes import (
    get_isotope,
    isotope_key,
    parse_isotope_key,
    try_get_isotope,
    try_parse_isotope_key,
)
from .table import Element, ElementType, Isotope, PeriodicTable, get_periodic_table


def get_element(atomic_number: int) -> Element:
    return get_periodic_table().get_element(atomic_number)


def try_get_element(atomic_number: int) -> Optional[Element]:
    return get_periodic_table().try_get_element(atomic_number)


def get_element_by_symbol(symbol: str) -> Element:
    return get_periodic_table().get_element_by_symbol(symbol)


def get_common_isotope(element: Union[int, Element]) -> Isotope:
    return get_periodic_table().get_common_isotope(element)


def get_isotopes(element: Union[int, Element]) -> dict[int, Isotope]:
    return get_periodic_table().get_isotopes(element)


def add_isotope(
    atomic_number: int,
    mass_number: int,
    relative_abundance: float = 0.0,
    is_radioactive: bool = False,
) -> Isotope:
    return get_periodic_table().add_isotope(atomic_number, mass_number, relative_abundance, is_radioactive)


__all__ = [
    "Element",
    "ElementType",
    "Isotope",
    "PeriodicTable",
    "add_isotope",
    "get_common_isotope",
    "get_element",
    "get_element_by_symbol",
    "get_isotope",
    "get_isotopes",
    "get_periodic_table",
    "isotope_key",
    "parse_isotope_key",
    "try_get_element",
    "try_get_isotope",
    "try_parse_isotope_key",
]
