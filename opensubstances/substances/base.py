"""Base substance model and the homogeneous capability set.

Substances are frozen pydantic models shared by the registry. Every
composition operation returns a new substance.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, Iterator, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from ..config import get_settings
from ..ids import new_id
from ..phase import PhaseType
from ..references import HomogeneousReference, SubstanceReference, reference_equals
from ..units import GAS_CONSTANT, Quantity, as_kelvin, as_kilopascals

if TYPE_CHECKING:
    from .homogeneous import Chemical

Temperature = Union[float, int, Decimal, Quantity]
Pressure = Union[float, int, Decimal, Quantity]
SubstanceLike = Union["Substance", SubstanceReference]
ConstituentSelector = Union["Substance", SubstanceReference, Callable[["Substance"], bool]]

PhaseSeparation = list[tuple[list[SubstanceReference], Decimal]]


def resolve(item: SubstanceLike) -> "Substance":
    """Return the substance behind a reference, or the substance itself."""
    if isinstance(item, SubstanceReference):
        return item.substance
    return item


def standard_conditions(
    temperature: Optional[Temperature] = None,
    pressure: Optional[Pressure] = None,
) -> tuple[float, float]:
    """Return (kelvin, kPa), filling missing values from settings."""
    settings = get_settings()
    kelvin = settings.standard_temperature if temperature is None else as_kelvin(temperature)
    kilopascals = settings.standard_pressure if pressure is None else as_kilopascals(pressure)
    return kelvin, kilopascals


class Substance(BaseModel, ABC):
    """Common base of all substance variants.

    Parameters:
        id: Registry key. Ad-hoc substances receive a random id.
        name: Display name.
        common_names: Alternative names.
        categories: Free-form category labels.
        density_liquid: Liquid density in kg/m³.
        density_solid: Solid density in kg/m³.
        density_special: Density for phases other than solid, liquid or gas, in kg/m³.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    type_name: str = Field(alias="$type")
    id: str = Field(default_factory=new_id)
    name: str
    common_names: tuple[str, ...] = ()
    categories: frozenset[str] = frozenset()
    density_liquid: Optional[float] = None
    density_solid: Optional[float] = None
    density_special: Optional[float] = None

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("name must not be blank")
        return value

    @field_serializer("categories")
    def _serialize_categories(self, value: frozenset[str]) -> list[str]:
        return sorted(value)

    @field_serializer("common_names")
    def _serialize_common_names(self, value: tuple[str, ...]) -> list[str]:
        return list(value)

    def get_reference(self) -> SubstanceReference:
        return SubstanceReference(self.id)

    @abstractmethod
    def get_density(self, temperature: Temperature, pressure: Pressure) -> float:
        raise NotImplementedError

    @abstractmethod
    def get_phase(self, temperature: Temperature, pressure: Pressure) -> PhaseType:
        raise NotImplementedError

    @abstractmethod
    def get_homogenized(self) -> "Substance":
        raise NotImplementedError

    @abstractmethod
    def add_constituent(self, constituent: SubstanceLike, proportion: Union[Decimal, float] = Decimal("0.5")) -> "Substance":
        raise NotImplementedError

    @abstractmethod
    def combine(self, other: SubstanceLike, proportion: Union[Decimal, float] = Decimal("0.5")) -> "Substance":
        raise NotImplementedError

    @abstractmethod
    def remove(self, constituent: SubstanceLike) -> "Substance":
        raise NotImplementedError

    def with_name(self, name: str, *common_names: str) -> "Substance":
        """Return a copy under a new name and a new id."""
        return self.model_copy(update={"name": name, "id": new_id(), "common_names": tuple(common_names)})

    def get_proportion(self, selector: ConstituentSelector) -> Decimal:
        """Proportion of a constituent, or the summed proportion of constituents matching a predicate."""
        if callable(selector) and not isinstance(selector, (Substance, SubstanceReference)):
            if isinstance(self, Homogeneous) and selector(self):
                return Decimal(1)
            return sum(
                (value for key, value in self.constituents.items() if selector(key.homogeneous)),
                Decimal(0),
            )
        if isinstance(self, Homogeneous) and _same_homogeneous(selector, self):
            return Decimal(1)
        key = _homogeneous_key(selector)
        if key is None:
            return Decimal(0)
        return self.constituents.get(key, Decimal(0))

    def contains(
        self,
        constituent: SubstanceLike,
        temperature: Optional[Temperature] = None,
        pressure: Optional[Pressure] = None,
        phase: PhaseType = PhaseType.ANY,
    ) -> bool:
        """Whether constituent is present, optionally only in the given phase."""
        key = _homogeneous_key(constituent)
        if key is None or key not in self.constituents:
            return False
        if phase == PhaseType.ANY:
            return True
        kelvin, kilopascals = standard_conditions(temperature, pressure)
        return bool(key.homogeneous.get_phase(kelvin, kilopascals) & phase)

    def get_chemical_constituents(self) -> list["Chemical"]:
        found: dict[str, "Chemical"] = {}
        for key in self.constituents:
            for chemical in key.homogeneous.get_chemical_constituents():
                found.setdefault(chemical.id, chemical)
        return list(found.values())

    def separate_by_phase(
        self,
        temperature: Temperature,
        pressure: Pressure,
        *phases: PhaseType,
    ) -> PhaseSeparation:
        """Group constituents by phase.

        Returns one ``(references, proportion)`` entry per requested phase, then a
        final entry for constituents that matched none of them.
        """
        kelvin, kilopascals = as_kelvin(temperature), as_kilopascals(pressure)
        constituent_phases = [
            (key, value, key.homogeneous.get_phase(kelvin, kilopascals))
            for key, value in self.constituents.items()
        ]
        matched: set[HomogeneousReference] = set()
        groups: PhaseSeparation = []
        for phase in phases:
            hits = [(key, value) for key, value, found in constituent_phases if found & phase]
            matched.update(key for key, _ in hits)
            groups.append(([key for key, _ in hits], sum((value for _, value in hits), Decimal(0))))
        rest = [(key, value) for key, value, _ in constituent_phases if key not in matched]
        groups.append(([key for key, _ in rest], sum((value for _, value in rest), Decimal(0))))
        return groups

    def iter_constituents(self) -> Iterator[tuple["Substance", Decimal]]:
        for key, value in self.constituents.items():
            yield key.homogeneous, value

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SubstanceReference):
            return reference_equals(other, self)
        if isinstance(other, Substance):
            return type(self) is type(other) and self.id == other.id
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.get_reference())

    def __str__(self) -> str:
        return self.name


def _homogeneous_key(item: Any) -> Optional[HomogeneousReference]:
    if isinstance(item, HomogeneousReference):
        return item
    if isinstance(item, SubstanceReference):
        return HomogeneousReference(item.id)
    if isinstance(item, Homogeneous):
        return item.get_homogeneous_reference()
    return None


def _same_homogeneous(item: Any, substance: "Homogeneous") -> bool:
    key = _homogeneous_key(item)
    return key is not None and key.id == substance.id


def vapor_pressure(
    temperature: float,
    coefficient_a: Optional[float],
    coefficient_b: Optional[float],
    coefficient_c: Optional[float],
    maximum_temperature: Optional[float],
    minimum_temperature: Optional[float],
) -> Optional[float]:
    """Antoine vapor pressure in kPa.

    Example:
        >>> vapor_pressure(380.0, 4.6543, 1435.264, -64.848, 373.0, 255.9)
        inf
        >>> vapor_pressure(200.0, 4.6543, 1435.264, -64.848, 373.0, 255.9)
        -inf
        >>> vapor_pressure(300.0, None, None, None, None, None) is None
        True
    """
    if maximum_temperature is not None and temperature > maximum_temperature:
        return math.inf
    if minimum_temperature is not None and temperature < minimum_temperature:
        return -math.inf
    if coefficient_a is None or coefficient_b is None or coefficient_c is None:
        return None
    return 10 ** (coefficient_a - coefficient_b / (coefficient_c + temperature)) * 100


def ideal_gas_density(temperature: float, pressure: float, molar_mass: float) -> float:
    """Ideal gas density in kg/m³ from kelvin, kPa and g/mol."""
    return pressure * molar_mass / (GAS_CONSTANT * temperature)


class Homogeneous:
    """Capability set of substances with one uniform composition.

    Concrete classes provide the Antoine coefficients, ``fixed_phase`` and
    ``melting_point``; solutions override the ``effective_*`` hooks to fall
    back to their solvent.
    """

    def get_homogeneous_reference(self) -> HomogeneousReference:
        return HomogeneousReference(self.id)

    def get_reference(self) -> SubstanceReference:
        return self.get_homogeneous_reference()

    def get_homogenized(self) -> "Substance":
        return self

    def effective_antoine(self) -> tuple[Optional[float], ...]:
        return (
            self.antoine_coefficient_a,
            self.antoine_coefficient_b,
            self.antoine_coefficient_c,
            self.antoine_maximum_temperature,
            self.antoine_minimum_temperature,
        )

    def effective_fixed_phase(self) -> Optional[PhaseType]:
        return self.fixed_phase

    def effective_melting_point(self) -> Optional[float]:
        return self.melting_point

    def get_vapor_pressure(self, temperature: Temperature) -> Optional[float]:
        """Vapor pressure in kPa; None when no Antoine coefficients are known."""
        return vapor_pressure(as_kelvin(temperature), *self.effective_antoine())

    def get_phase(self, temperature: Temperature, pressure: Pressure) -> PhaseType:
        fixed_phase = self.effective_fixed_phase()
        if fixed_phase is not None:
            return fixed_phase
        kelvin, kilopascals = as_kelvin(temperature), as_kilopascals(pressure)
        melting_point = self.effective_melting_point()
        if melting_point is not None and kelvin < melting_point:
            return PhaseType.SOLID
        pressure_limit = self.get_vapor_pressure(kelvin)
        if pressure_limit is not None and kilopascals < pressure_limit:
            return PhaseType.GAS
        if melting_point is None:
            return PhaseType.SOLID
        return PhaseType.LIQUID

    def phase_density(self, temperature: Temperature, pressure: Pressure) -> float:
        """Density from the phase-specific values, else the ideal gas law."""
        kelvin, kilopascals = as_kelvin(temperature), as_kilopascals(pressure)
        phase = self.get_phase(kelvin, kilopascals)
        if phase == PhaseType.SOLID and self.density_solid is not None:
            return self.density_solid
        if phase == PhaseType.LIQUID and self.density_liquid is not None:
            return self.density_liquid
        if self.density_special is not None and phase not in (
            PhaseType.SOLID,
            PhaseType.LIQUID,
            PhaseType.GAS,
        ):
            return self.density_special
        return ideal_gas_density(kelvin, kilopascals, self.molar_mass)
