"""Phases of matter as combinable flags."""

from __future__ import annotations

from enum import IntFlag
from typing import Union


class PhaseType(IntFlag):
    """Phase of matter.

    Values combine, so a query for ``SOLID | LIQUID`` matches either.

    Example:
        >>> PhaseType.parse("Solid|Liquid") == PhaseType.SOLID | PhaseType.LIQUID
        True
        >>> PhaseType.GAS.to_text()
        'Gas'
    """

    NONE = 0
    SOLID = 1
    LIQUID = 2
    GAS = 4
    PLASMA = 8
    GLASS = 16
    LIQUID_CRYSTAL = 32
    BOSE_EINSTEIN_CONDENSATE = 64
    ELECTRON_DEGENERATE_MATTER = 128
    NEUTRON_DEGENERATE_MATTER = 256
    ANY = 511

    def to_text(self) -> str:
        """Return the wire name, e.g. ``Solid`` or ``Solid|Liquid``."""
        if self == PhaseType.NONE:
            return "None"
        if self == PhaseType.ANY:
            return "Any"
        names = [_WIRE_NAMES[member] for member in _SINGLE_PHASES if member & self]
        return "|".join(names)

    @classmethod
    def parse(cls, value: Union[str, int, "PhaseType"]) -> "PhaseType":
        """Read a phase from its wire name, a flag value or a member."""
        if isinstance(value, PhaseType):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            return cls(value)
        if not isinstance(value, str):
            raise ValueError(f"Cannot read a phase from {value!r}.")
        result = cls.NONE
        for part in value.split("|"):
            token = part.strip().replace(" ", "").lower()
            if token not in _BY_WIRE_NAME:
                raise ValueError(f"Unknown phase '{part.strip()}'.")
            result |= _BY_WIRE_NAME[token]
        return result


_SINGLE_PHASES = (
    PhaseType.SOLID,
    PhaseType.LIQUID,
    PhaseType.GAS,
    PhaseType.PLASMA,
    PhaseType.GLASS,
    PhaseType.LIQUID_CRYSTAL,
    PhaseType.BOSE_EINSTEIN_CONDENSATE,
    PhaseType.ELECTRON_DEGENERATE_MATTER,
    PhaseType.NEUTRON_DEGENERATE_MATTER,
)

_WIRE_NAMES = {
    PhaseType.NONE: "None",
    PhaseType.SOLID: "Solid",
    PhaseType.LIQUID: "Liquid",
    PhaseType.GAS: "Gas",
    PhaseType.PLASMA: "Plasma",
    PhaseType.GLASS: "Glass",
    PhaseType.LIQUID_CRYSTAL: "LiquidCrystal",
    PhaseType.BOSE_EINSTEIN_CONDENSATE: "BoseEinsteinCondensate",
    PhaseType.ELECTRON_DEGENERATE_MATTER: "ElectronDegenerateMatter",
    PhaseType.NEUTRON_DEGENERATE_MATTER: "NeutronDegenerateMatter",
    PhaseType.ANY: "Any",
}

_BY_WIRE_NAME = {name.lower(): member for member, name in _WIRE_NAMES.items()}
