"""Classification helpers over substances.

Water is identified by the catalog id ``"water"``.
"""

from __future__ import annotations

from decimal import Decimal

from .base import Homogeneous, Substance
from .composite import CompositeSubstance
from .homogeneous import Chemical

WATER_ID = "water"

# H, O, S and As neither qualify nor disqualify an ore.
_ORE_NEUTRAL = frozenset({1, 8, 16, 33})


def get_water_proportion(substance: Substance) -> Decimal:
    """Share of water, counting water inside nested constituents."""
    if not isinstance(substance, CompositeSubstance):
        return Decimal(1) if substance.id == WATER_ID else Decimal(0)
    total = Decimal(0)
    for constituent, proportion in substance.iter_constituents():
        total += get_water_proportion(constituent) * proportion
    return total


def is_water(substance: Substance) -> bool:
    if isinstance(substance, Chemical):
        return substance.id == WATER_ID
    return get_water_proportion(substance) >= Decimal("0.95")


def is_carbon(substance: Substance) -> bool:
    """Whether the substance is pure carbon in any allotrope."""
    if isinstance(substance, Chemical):
        elements = substance.formula.elements
        return len(elements) == 1 and elements[0].atomic_number == 6
    if not isinstance(substance, CompositeSubstance):
        return False
    return bool(substance.constituents) and all(
        is_carbon(constituent) for constituent, _ in substance.iter_constituents()
    )


def _hydrocarbon_proportions(substance: Substance) -> tuple[Decimal, Decimal, Decimal]:
    """Return (carbon, hydrocarbon, water) proportions."""
    if isinstance(substance, Chemical):
        if is_carbon(substance):
            return Decimal(1), Decimal(0), Decimal(0)
        if is_water(substance):
            return Decimal(0), Decimal(0), Decimal(1)
        numbers = {element.atomic_number for element in substance.formula.elements}
        if numbers == {1, 6}:
            return Decimal(0), Decimal(1), Decimal(0)
        return Decimal(0), Decimal(0), Decimal(0)
    if not isinstance(substance, CompositeSubstance):
        return Decimal(0), Decimal(0), Decimal(0)
    carbon = hydrocarbon = water = Decimal(0)
    for constituent, proportion in substance.iter_constituents():
        c, h, w = _hydrocarbon_proportions(constituent)
        carbon += c * proportion
        hydrocarbon += h * proportion
        water += w * proportion
    return carbon, hydrocarbon, water


def is_hydrocarbon(substance: Substance) -> bool:
    carbon, hydrocarbon, water = _hydrocarbon_proportions(substance)
    return hydrocarbon >= Decimal("0.25") and hydrocarbon >= Decimal("0.75") - (carbon + water)


def is_metal_ore(substance: Substance) -> bool:
    """Whether the substance is a metal-bearing ore.

    Homogeneous substances qualify when their chemicals contain a metal and no
    alkali, alkaline earth or nonmetal elements. Other substances qualify when
    at least half of them is ore.
    """
    if isinstance(substance, Homogeneous):
        has_metal = False
        for chemical in substance.get_chemical_constituents():
            for element in chemical.formula.elements:
                if element.atomic_number in _ORE_NEUTRAL:
                    continue
                if element.group in (1, 2) or not element.is_metal:
                    return False
                has_metal = True
        return has_metal
    share = sum(
        (proportion for constituent, proportion in substance.iter_constituents() if is_metal_ore(constituent)),
        Decimal(0),
    )
    return share >= Decimal("0.5")
