"""Homogeneous substances and chemicals."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Literal, Optional, Union

from pydantic import Field, field_serializer, field_validator, model_validator

from ..formula import Formula
from ..proportions import to_decimal
from ..phase import PhaseType
from ..references import HomogeneousReference, SubstanceReference
from .base import (
    Homogeneous,
    PhaseSeparation,
    Pressure,
    Substance,
    SubstanceLike,
    Temperature,
    resolve,
    standard_conditions,
)

ANTOINE_COEFFICIENTS = ("antoine_coefficient_a", "antoine_coefficient_b", "antoine_coefficient_c")


def drop_partial_antoine(data: Any) -> Any:
    if isinstance(data, dict) and any(data.get(name) is None for name in ANTOINE_COEFFICIENTS):
        data = {key: value for key, value in data.items() if key not in ANTOINE_COEFFICIENTS}
    return data


class HomogeneousSubstance(Homogeneous, Substance):
    """A uniform substance that is not broken down into constituents.

    Parameters:
        antoine_coefficient_a: Antoine A (log10 bar, kelvin form). Kept only with B and C.
        antoine_maximum_temperature: Above this temperature the substance always boils.
        antoine_minimum_temperature: Below this temperature it never boils.
        fixed_phase: Phase regardless of conditions.
        greenhouse_potential: Global warming potential relative to CO₂.
        hardness: Vickers hardness in MPa.
        melting_point: Kelvin.
        molar_mass: g/mol.
        youngs_modulus: GPa.

    Example:
        >>> from opensubstances.phase import PhaseType
        >>> ice = HomogeneousSubstance(name="Ice", melting_point=273.15, density_solid=917.0)
        >>> ice.get_phase(250.0, 101.325) == PhaseType.SOLID
        True
        >>> ice.get_density(250.0, 101.325)
        917.0
    """

    type_name: Literal[":HomogeneousSubstance:"] = Field(default=":HomogeneousSubstance:", alias="$type")
    antoine_coefficient_a: Optional[float] = None
    antoine_coefficient_b: Optional[float] = None
    antoine_coefficient_c: Optional[float] = None
    antoine_maximum_temperature: Optional[float] = None
    antoine_minimum_temperature: Optional[float] = None
    fixed_phase: Optional[PhaseType] = None
    greenhouse_potential: float = 0.0
    hardness: float = 0.0
    is_conductive: Optional[bool] = None
    is_flammable: bool = False
    is_gemstone: bool = False
    is_metal: bool = False
    is_radioactive: bool = False
    melting_point: Optional[float] = None
    molar_mass: float = 0.0
    youngs_modulus: Optional[float] = None

    @model_validator(mode="before")
    @classmethod
    def _prepare(cls, data: Any) -> Any:
        data = drop_partial_antoine(data)
        if isinstance(data, dict) and data.get("is_conductive") is None:
            data = {**data, "is_conductive": bool(data.get("is_metal", False))}
        return data

    @field_validator("fixed_phase", mode="before")
    @classmethod
    def _parse_phase(cls, value: Any) -> Any:
        return None if value is None else PhaseType.parse(value)

    @field_serializer("fixed_phase")
    def _serialize_phase(self, value: Optional[PhaseType]) -> Optional[str]:
        return None if value is None else value.to_text()

    @property
    def constituents(self) -> dict[HomogeneousReference, Decimal]:
        return {self.get_homogeneous_reference(): Decimal(1)}

    @property
    def is_empty(self) -> bool:
        return self.id == ""

    def get_density(self, temperature: Temperature, pressure: Pressure) -> float:
        return self.phase_density(temperature, pressure)

    def get_chemical_constituents(self) -> list["Chemical"]:
        return []

    def contains(
        self,
        constituent: SubstanceLike,
        temperature: Optional[Temperature] = None,
        pressure: Optional[Pressure] = None,
        phase: PhaseType = PhaseType.ANY,
    ) -> bool:
        if not isinstance(constituent, (Substance, SubstanceReference)) or constituent.id != self.id:
            return False
        if phase == PhaseType.ANY:
            return True
        kelvin, kilopascals = standard_conditions(temperature, pressure)
        return bool(self.get_phase(kelvin, kilopascals) & phase)

    def separate_by_phase(self, temperature: Temperature, pressure: Pressure, *phases: PhaseType) -> PhaseSeparation:
        own_phase = self.get_phase(temperature, pressure)
        groups: PhaseSeparation = []
        matched = False
        for phase in phases:
            if own_phase & phase and not matched:
                groups.append(([self.get_reference()], Decimal(1)))
                matched = True
            else:
                groups.append(([], Decimal(0)))
        groups.append(([], Decimal(0)) if matched else ([self.get_reference()], Decimal(1)))
        return groups

    def add_constituent(self, constituent: SubstanceLike, proportion: Union[Decimal, float] = Decimal("0.5")) -> Substance:
        """Mix another substance in at the given proportion."""
        from .composite import Mixture, register_adhoc

        p = to_decimal(proportion)
        if p <= 0:
            return self
        other = resolve(constituent)
        if p >= 1:
            return other
        if not isinstance(other, Homogeneous):
            return other.combine(self, 1 - p)
        register_adhoc(self, other)
        return Mixture(constituents=[(self.get_homogeneous_reference(), 1 - p), (other.get_homogeneous_reference(), p)])

    def combine(self, other: SubstanceLike, proportion: Union[Decimal, float] = Decimal("0.5")) -> Substance:
        return self.add_constituent(other, proportion)

    def remove(self, constituent: SubstanceLike) -> Substance:
        if isinstance(constituent, (Substance, SubstanceReference)) and constituent.id == self.id:
            return NONE_SUBSTANCE
        return self


class Chemical(HomogeneousSubstance):
    """A homogeneous substance with a known molecular formula.

    Molar mass defaults to the formula's average mass; ``is_metal`` defaults to
    whether the formula is a single metallic element; ``is_radioactive`` to
    whether any of its isotopes is.

    Example:
        >>> from opensubstances.formula import Formula
        >>> water = Chemical(id="example_water", name="Water", formula=Formula.parse("H2O"))
        >>> round(water.molar_mass, 3)
        18.015
        >>> str(water.formula)
        'H₂O'
    """

    type_name: Literal[":Chemical:"] = Field(default=":Chemical:", alias="$type")
    formula: Formula = Formula.EMPTY

    @model_validator(mode="before")
    @classmethod
    def _derive_from_formula(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        formula = data.get("formula", Formula.EMPTY)
        if isinstance(formula, str):
            formula = Formula.parse(formula)
            data = {**data, "formula": formula}
        if not isinstance(formula, Formula):
            return data
        derived: dict[str, Any] = {}
        if not data.get("molar_mass"):
            derived["molar_mass"] = formula.average_mass
        if data.get("is_metal") is None:
            elements = formula.elements
            derived["is_metal"] = len(elements) == 1 and elements[0].is_metal
        if data.get("is_conductive") is None:
            derived["is_conductive"] = derived.get("is_metal", bool(data.get("is_metal", False)))
        if data.get("is_radioactive") is None:
            derived["is_radioactive"] = any(isotope.is_radioactive for isotope in formula.isotopes)
        return {**data, **derived} if derived else data

    @field_serializer("formula")
    def _serialize_formula(self, value: Formula) -> str:
        return str(value)

    def get_chemical_constituents(self) -> list["Chemical"]:
        return [] if self.is_empty else [self]


NONE_SUBSTANCE = Chemical(id="", name="None", formula=Formula.EMPTY)
