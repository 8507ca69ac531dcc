"""Isotope keys of the form ``<atomic number>:<mass number>``.

Example:
    >>> parse_isotope_key("8:16").symbol
    'O'
    >>> isotope_key(parse_isotope_key("1:2"))
    '1:2'
"""

from __future__ import annotations

import re
from typing import Optional

from ..errors import IsotopeKeyError
from .table import Isotope, PeriodicTable, get_periodic_table

SEPARATOR = ":"
_DIGITS = re.compile(r"[0-9]+")


def isotope_key(isotope: Isotope) -> str:
    return f"{isotope.atomic_number}{SEPARATOR}{isotope.mass_number}"


def _split_key(key: Optional[str]) -> tuple[str, str]:
    if not key:
        raise IsotopeKeyError(key, "Key is empty.")
    index = key.find(SEPARATOR)
    if index == -1:
        raise IsotopeKeyError(key, "No separator.")
    if index == 0:
        raise IsotopeKeyError(key, "No atomic number.")
    if index == len(key) - 1:
        raise IsotopeKeyError(key, "No mass number.")
    return key[:index], key[index + 1 :]


def parse_isotope_key(key: Optional[str], table: Optional[PeriodicTable] = None) -> Isotope:
    """Resolve an isotope key against the periodic table.

    Raises:
        IsotopeKeyError: The key is malformed or names no known isotope.
    """
    table = table or get_periodic_table()
    atomic_text, mass_text = _split_key(key)
    if not _DIGITS.fullmatch(atomic_text):
        raise IsotopeKeyError(key, "Cannot parse atomic number.")
    atomic_number = int(atomic_text)
    if table.try_get_element(atomic_number) is None:
        raise IsotopeKeyError(key, "Element with atomic number not found.")
    if not _DIGITS.fullmatch(mass_text):
        raise IsotopeKeyError(key, "Cannot parse mass number.")
    isotope = table.find_isotope(atomic_number, int(mass_text))
    if isotope is None:
        raise IsotopeKeyError(key, "Isotope with mass number not found.")
    return isotope


def try_parse_isotope_key(key: Optional[str], table: Optional[PeriodicTable] = None) -> Optional[Isotope]:
    """Like :func:`parse_isotope_key` but return None on any failure."""
    try:
        return parse_isotope_key(key, table)
    except IsotopeKeyError:
        return None


def get_isotope(key: str) -> Isotope:
    return parse_isotope_key(key)


def try_get_isotope(key: str) -> Optional[Isotope]:
    return try_parse_isotope_key(key)
