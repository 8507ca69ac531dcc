"""Periodic table of the elements with lazy, thread-safe loading.

The element dataset ships as ``data/elements.json`` inside this package and is
read on first use. Custom isotopes may be added at runtime.

Example:
    >>> from opensubstances.elements import get_periodic_table
    >>> table = get_periodic_table()
    >>> table.get_element(8).symbol
    'O'
    >>> table.get_common_isotope(8).mass_number
    16
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from enum import IntFlag
from importlib import resources
from typing import Any, Iterable, Optional, Union

from ..errors import ElementNotFoundError, InvalidArgumentError

logger = logging.getLogger(__name__)

DATA_PACKAGE = "opensubstances.elements.data"
DATA_FILE = "elements.json"
ELEMENT_COUNT = 118

# Daltons
PROTON_MASS = 1.007276466621
NEUTRON_MASS = 1.00866491595

_SUPERSCRIPT_DIGITS = str.maketrans("0123456789", "⁰¹²³⁴⁵⁶⁷⁸⁹")


class ElementType(IntFlag):
    """Element classification flags."""

    NONE = 0
    ALKALI = 1
    ALKALINE_EARTH = 2
    TRANSITION = 4
    GROUP3 = 8
    POST_TRANSITION = 16
    LANTHANIDE = 32
    ACTINIDE = 64
    REACTIVE_NONMETAL = 128
    NOBLE_GAS = 256
    METALLOID = 512
    PNICTOGEN = 1024
    CHALCOGEN = 2048
    HALOGEN = 4096

    @classmethod
    def from_names(cls, names: Iterable[str]) -> "ElementType":
        result = cls.NONE
        for name in names:
            result |= _TYPE_NAMES[name]
        return result


_TYPE_NAMES = {
    "Alkali": ElementType.ALKALI,
    "AlkalineEarth": ElementType.ALKALINE_EARTH,
    "Transition": ElementType.TRANSITION,
    "Group3": ElementType.GROUP3,
    "PostTransition": ElementType.POST_TRANSITION,
    "Lanthanide": ElementType.LANTHANIDE,
    "Actinide": ElementType.ACTINIDE,
    "ReactiveNonmetal": ElementType.REACTIVE_NONMETAL,
    "NobleGas": ElementType.NOBLE_GAS,
    "Metalloid": ElementType.METALLOID,
    "Pnictogen": ElementType.PNICTOGEN,
    "Chalcogen": ElementType.CHALCOGEN,
    "Halogen": ElementType.HALOGEN,
}

_METAL_TYPES = (
    ElementType.ALKALI
    | ElementType.ALKALINE_EARTH
    | ElementType.TRANSITION
    | ElementType.POST_TRANSITION
    | ElementType.LANTHANIDE
    | ElementType.ACTINIDE
)


@dataclass(frozen=True)
class Isotope:
    """A nuclide: one element with a specific mass number."""

    atomic_number: int
    mass_number: int
    symbol: str
    relative_abundance: float = 0.0
    is_radioactive: bool = False

    @property
    def key(self) -> str:
        """Isotope key in ``<atomic number>:<mass number>`` form."""
        return f"{self.atomic_number}:{self.mass_number}"

    @property
    def neutrons(self) -> int:
        return self.mass_number - self.atomic_number

    @property
    def atomic_mass(self) -> float:
        """Approximate nuclide mass in daltons from its nucleon counts."""
        return self.atomic_number * PROTON_MASS + self.neutrons * NEUTRON_MASS

    @property
    def element(self) -> "Element":
        return get_periodic_table().get_element(self.atomic_number)

    def __str__(self) -> str:
        common = get_periodic_table().try_get_common_isotope(self.atomic_number)
        if common is not None and common.mass_number == self.mass_number:
            return self.symbol
        return str(self.mass_number).translate(_SUPERSCRIPT_DIGITS) + self.symbol


@dataclass(frozen=True)
class Element:
    """A chemical element and its known isotopes (most common first)."""

    atomic_number: int
    symbol: str
    name: str
    average_mass: float
    block: str
    group: Optional[int]
    period: int
    type: ElementType
    isotopes: tuple[Isotope, ...] = field(default_factory=tuple)

    @property
    def average_molar_mass(self) -> float:
        """Average molar mass in g/mol."""
        return self.average_mass

    @property
    def is_metal(self) -> bool:
        return bool(self.type & _METAL_TYPES) and not self.type & ElementType.METALLOID

    @property
    def is_radioactive(self) -> bool:
        return all(isotope.is_radioactive for isotope in self.isotopes)

    def __str__(self) -> str:
        return self.symbol


class PeriodicTable:
    """Element and isotope lookups over the packaged dataset.

    Loading happens once, guarded by a lock with a double-checked flag; every
    accessor calls :meth:`ensure_initialized` first.
    """

    def __init__(self, data_package: str = DATA_PACKAGE, data_file: str = DATA_FILE) -> None:
        self._data_package = data_package
        self._data_file = data_file
        self._lock = threading.Lock()
        self._initialized = False
        self._elements: dict[int, Element] = {}
        self._by_symbol: dict[str, int] = {}
        self._isotopes: dict[int, dict[int, Isotope]] = {}
        self._common: dict[int, int] = {}

    def ensure_initialized(self) -> None:
        if self._initialized:
            return
        with self._lock:
            if self._initialized:
                return
            self._load()
            self._initialized = True
        logger.info("Periodic table loaded: %d elements", len(self._elements))

    def _load(self) -> None:
        text = resources.files(self._data_package).joinpath(self._data_file).read_text(encoding="utf-8")
        payload = json.loads(text)
        for item in payload["elements"]:
            self._add_element(item)

    def _add_element(self, item: dict[str, Any]) -> None:
        atomic_number = int(item["atomic_number"])
        symbol = str(item["symbol"])
        isotopes = tuple(
            Isotope(
                atomic_number=atomic_number,
                mass_number=int(entry["mass_number"]),
                symbol=symbol,
                relative_abundance=float(entry.get("abundance") or 0.0),
                is_radioactive=bool(entry.get("radioactive", False)),
            )
            for entry in item["isotopes"]
        )
        element = Element(
            atomic_number=atomic_number,
            symbol=symbol,
            name=str(item["name"]),
            average_mass=float(item["average_atomic_mass"]),
            block=str(item["block"]),
            group=item.get("group"),
            period=int(item["period"]),
            type=ElementType.from_names(item.get("types", [])),
            isotopes=isotopes,
        )
        self._elements[atomic_number] = element
        self._by_symbol[symbol] = atomic_number
        self._isotopes[atomic_number] = {isotope.mass_number: isotope for isotope in isotopes}
        if isotopes:
            self._common[atomic_number] = isotopes[0].mass_number

    def add_isotope(
        self,
        atomic_number: int,
        mass_number: int,
        relative_abundance: float = 0.0,
        is_radioactive: bool = False,
    ) -> Isotope:
        """Register a custom isotope of a known element.

        An existing isotope with the same mass number is replaced.
        """
        self.ensure_initialized()
        element = self.get_element(atomic_number)
        if mass_number < atomic_number:
            raise InvalidArgumentError("mass_number", mass_number, f">= {atomic_number}")
        isotope = Isotope(
            atomic_number=atomic_number,
            mass_number=mass_number,
            symbol=element.symbol,
            relative_abundance=relative_abundance,
            is_radioactive=is_radioactive,
        )
        with self._lock:
            self._isotopes[atomic_number][mass_number] = isotope
            existing = tuple(i for i in element.isotopes if i.mass_number != mass_number)
            self._elements[atomic_number] = Element(
                atomic_number=element.atomic_number,
                symbol=element.symbol,
                name=element.name,
                average_mass=element.average_mass,
                block=element.block,
                group=element.group,
                period=element.period,
                type=element.type,
                isotopes=existing + (isotope,),
            )
            self._common.setdefault(atomic_number, mass_number)
        logger.debug("Registered isotope %s", isotope.key)
        return isotope

    def get_element(self, atomic_number: int) -> Element:
        element = self.try_get_element(atomic_number)
        if element is None:
            raise ElementNotFoundError(atomic_number, f"1..{ELEMENT_COUNT}")
        return element

    def try_get_element(self, atomic_number: int) -> Optional[Element]:
        self.ensure_initialized()
        return self._elements.get(atomic_number)

    def get_element_by_symbol(self, symbol: str) -> Element:
        element = self.try_get_element_by_symbol(symbol)
        if element is None:
            raise ElementNotFoundError(symbol, "a known element symbol")
        return element

    def try_get_element_by_symbol(self, symbol: str) -> Optional[Element]:
        self.ensure_initialized()
        atomic_number = self._by_symbol.get(symbol)
        return None if atomic_number is None else self._elements[atomic_number]

    def get_isotopes(self, element: Union[int, Element]) -> dict[int, Isotope]:
        """Return the isotopes of an element keyed by mass number."""
        atomic_number = self.get_element(_atomic_number(element)).atomic_number
        return dict(self._isotopes[atomic_number])

    def find_isotope(self, atomic_number: int, mass_number: int) -> Optional[Isotope]:
        """Return the isotope with the given nucleon numbers, or None."""
        self.ensure_initialized()
        return self._isotopes.get(atomic_number, {}).get(mass_number)

    def get_common_isotope(self, element: Union[int, Element]) -> Isotope:
        atomic_number = _atomic_number(element)
        isotope = self.try_get_common_isotope(atomic_number)
        if isotope is None:
            raise ElementNotFoundError(atomic_number, f"1..{ELEMENT_COUNT}")
        return isotope

    def try_get_common_isotope(self, element: Union[int, Element]) -> Optional[Isotope]:
        self.ensure_initialized()
        atomic_number = _atomic_number(element)
        mass_number = self._common.get(atomic_number)
        if mass_number is None:
            return None
        return self._isotopes[atomic_number][mass_number]

    def elements(self) -> list[Element]:
        self.ensure_initialized()
        return [self._elements[number] for number in sorted(self._elements)]

    def __len__(self) -> int:
        self.ensure_initialized()
        return len(self._elements)


def _atomic_number(element: Union[int, Element]) -> int:
    return element.atomic_number if isinstance(element, Element) else int(element)


_DEFAULT_TABLE: Optional[PeriodicTable] = None
_DEFAULT_TABLE_LOCK = threading.Lock()


def get_periodic_table() -> PeriodicTable:
    """Return the process-wide periodic table."""
    global _DEFAULT_TABLE
    if _DEFAULT_TABLE is None:
        with _DEFAULT_TABLE_LOCK:
            if _DEFAULT_TABLE is None:
                _DEFAULT_TABLE = PeriodicTable()
    return _DEFAULT_TABLE
