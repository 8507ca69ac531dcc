"""Mixtures and solutions: substances made of homogeneous constituents.

Constituent maps are keyed by ``HomogeneousReference`` and normalized on
construction. Operations that produce new nested substances register them
with the default registry so that their references resolve.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Callable, Literal, Mapping, Optional, Union

from pydantic import Field, field_serializer, field_validator, model_validator

from ..errors import InvalidArgumentError
from ..phase import PhaseType
from ..proportions import ONE, TOLERANCE, ZERO, add_proportion, normalize_keys, to_decimal
from ..references import HomogeneousReference, parse_homogeneous_reference
from .base import Homogeneous, Pressure, Substance, SubstanceLike, Temperature, resolve
from .homogeneous import NONE_SUBSTANCE, Chemical, drop_partial_antoine


EMPTY_NAME = "Empty"
MAJORITY = Decimal("0.5")


def register_adhoc(*substances: Substance) -> None:
    """Register substances that the default registry does not know yet."""
    from ..registry import get_registry

    registry = get_registry()
    for substance in substances:
        if substance.id and substance.id not in registry:
            registry.register(substance)


def _constituent_key(item: Any) -> HomogeneousReference:
    if isinstance(item, HomogeneousReference):
        return item
    if isinstance(item, str):
        return parse_homogeneous_reference(item)
    if isinstance(item, Homogeneous) and isinstance(item, Substance):
        register_adhoc(item)
        return item.get_homogeneous_reference()
    raise InvalidArgumentError("constituent", item, "a homogeneous substance, HomogeneousReference or 'HR:<id>' token")


def generated_name(constituents: Mapping[HomogeneousReference, Decimal]) -> str:
    """Describe a constituent map as ``"Name:xx.xxx%; ..."``."""
    if not constituents:
        return EMPTY_NAME
    return "; ".join(f"{key.homogeneous.name}:{value * 100:.3f}%" for key, value in constituents.items())


class CompositeSubstance(Substance):
    """Shared behavior of substances with a constituent map."""

    constituents: dict[HomogeneousReference, Decimal] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _prepare_constituents(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        raw = data.get("constituents") or {}
        pairs = raw.items() if isinstance(raw, Mapping) else raw
        grouped = normalize_keys((_constituent_key(key), value) for key, value in pairs)
        total = sum(grouped.values(), ZERO)
        if total and abs(total - ONE) > TOLERANCE:
            grouped = {key: value / total for key, value in grouped.items()}
        data = {**data, "constituents": grouped}
        if not data.get("name"):
            data["name"] = generated_name(grouped)
        return data

    @field_serializer("constituents")
    def _serialize_constituents(self, value: dict[HomogeneousReference, Decimal]) -> dict[str, Decimal]:
        return {str(key): proportion for key, proportion in value.items()}

    @property
    def is_empty(self) -> bool:
        return not self.constituents

    def _weighted_sum(self, attribute: str) -> float:
        return sum(
            getattr(key.homogeneous, attribute) * float(value) for key, value in self.constituents.items()
        )

    def _weighted_defined(self, attribute: str, accept: Callable[[Any], bool]) -> Optional[float]:
        values = [
            (getattr(key.homogeneous, attribute), value)
            for key, value in self.constituents.items()
        ]
        defined = [(found, value) for found, value in values if accept(found)]
        if not defined:
            return None
        return sum(found * float(value) for found, value in defined)

    def _majority(self, attribute: str) -> bool:
        share = sum(
            (value for key, value in self.constituents.items() if getattr(key.homogeneous, attribute)),
            ZERO,
        )
        return share >= MAJORITY

    def _weighted_density(self, temperature: Temperature, pressure: Pressure) -> float:
        return sum(
            key.homogeneous.get_density(temperature, pressure) * float(value)
            for key, value in self.constituents.items()
        )

    @property
    def greenhouse_potential(self) -> float:
        return self._weighted_sum("greenhouse_potential")

    @property
    def molar_mass(self) -> float:
        return self._weighted_sum("molar_mass")

    @property
    def is_metal(self) -> bool:
        return self._majority("is_metal")

    @property
    def is_radioactive(self) -> bool:
        return any(key.homogeneous.is_radioactive for key in self.constituents)


class Mixture(CompositeSubstance):
    """A heterogeneous substance whose constituents keep their own phases.

    Example:
        >>> from opensubstances.catalog import Substances
        >>> mixture = Substances.WATER.add_constituent(Substances.BENZENE, 0.25)
        >>> mixture.get_proportion(Substances.BENZENE)
        Decimal('0.25')
    """

    type_name: Literal[":Mixture:"] = Field(default=":Mixture:", alias="$type")

    @property
    def hardness(self) -> float:
        return self._weighted_defined("hardness", lambda value: value > 0) or 0.0

    @property
    def youngs_modulus(self) -> Optional[float]:
        return self._weighted_defined("youngs_modulus", lambda value: value is not None)

    @property
    def is_conductive(self) -> bool:
        return self._majority("is_conductive")

    @property
    def is_flammable(self) -> bool:
        return self._majority("is_flammable")

    @property
    def is_gemstone(self) -> bool:
        return bool(self.constituents) and all(key.homogeneous.is_gemstone for key in self.constituents)

    def get_phase(self, temperature: Temperature, pressure: Pressure) -> PhaseType:
        """Union of the constituents' phases."""
        phase = PhaseType.NONE
        for key in self.constituents:
            phase |= key.homogeneous.get_phase(temperature, pressure)
        return phase

    def get_density(self, temperature: Temperature, pressure: Pressure) -> float:
        """Explicit density of the dominant phase group, else the weighted constituent density."""
        if self.density_solid is not None or self.density_liquid is not None or self.density_special is not None:
            groups = self.separate_by_phase(temperature, pressure, PhaseType.SOLID, PhaseType.LIQUID, PhaseType.GAS)
            solid, liquid, gas, other = (proportion for _, proportion in groups)
            if self.density_solid is not None and solid >= max(liquid, gas, other):
                return self.density_solid
            if self.density_liquid is not None and liquid >= max(solid, gas, other):
                return self.density_liquid
            if self.density_special is not None and other > max(solid, liquid, gas):
                return self.density_special
        return self._weighted_density(temperature, pressure)

    def get_homogenized(self) -> "Solution":
        return Solution(constituents=self.constituents)

    def add_constituent(self, constituent: SubstanceLike, proportion: Union[Decimal, float] = Decimal("0.5")) -> Substance:
        p = to_decimal(proportion)
        if p <= 0:
            return self
        other = resolve(constituent)
        if p >= 1:
            return other
        if not isinstance(other, Homogeneous):
            return self.combine(other, p)
        register_adhoc(other)
        return Mixture(constituents=add_proportion(self.constituents, other.get_homogeneous_reference(), p))

    def combine(self, other: SubstanceLike, proportion: Union[Decimal, float] = Decimal("0.5")) -> Substance:
        """Merge both constituent maps, scaled by ``1 - proportion`` and ``proportion``."""
        p = to_decimal(proportion)
        if p <= 0:
            return self
        substance = resolve(other)
        if p >= 1:
            return substance
        if isinstance(substance, Chemical):
            return self.add_constituent(substance, p)
        if isinstance(substance, Mixture):
            incoming = substance.constituents
        elif isinstance(substance, Homogeneous):
            register_adhoc(substance)
            incoming = {substance.get_homogeneous_reference(): ONE}
        else:
            raise InvalidArgumentError("other", substance, "a mixture or homogeneous substance")
        merged = {key: value * (ONE - p) for key, value in self.constituents.items()}
        for key, value in incoming.items():
            merged[key] = merged.get(key, ZERO) + value * p
        return Mixture(constituents=merged)

    def remove(self, constituent: SubstanceLike) -> Substance:
        """Drop a constituent, also removing it from nested solutions."""
        key = HomogeneousReference(constituent.id)
        if key not in self.constituents:
            return self
        remaining: list[tuple[Any, Decimal]] = []
        for current, value in self.constituents.items():
            nested = current.homogeneous
            if isinstance(nested, Chemical):
                if current != key:
                    remaining.append((current, value))
                continue
            result = nested.remove(key)
            if not result.is_empty and isinstance(result, Homogeneous):
                remaining.append((result, value))
        if not remaining:
            return NONE_SUBSTANCE
        return Mixture(constituents=remaining)


class Solution(Homogeneous, CompositeSubstance):
    """A homogeneous blend whose dominant constituent acts as solvent.

    Phase, vapor pressure and Antoine data fall back to the solvent when not
    set. Hardness, conductivity, flammability and Young's modulus are derived
    from the constituents unless given.

    Example:
        >>> from opensubstances.catalog import Substances
        >>> Substances.SEAWATER.solvent == Substances.WATER.get_homogeneous_reference()
        True
    """

    type_name: Literal[":Solution:"] = Field(default=":Solution:", alias="$type")
    antoine_coefficient_a: Optional[float] = None
    antoine_coefficient_b: Optional[float] = None
    antoine_coefficient_c: Optional[float] = None
    antoine_maximum_temperature: Optional[float] = None
    antoine_minimum_temperature: Optional[float] = None
    fixed_phase: Optional[PhaseType] = None
    melting_point: Optional[float] = None
    explicit_hardness: Optional[float] = Field(default=None, alias="hardness")
    explicit_is_conductive: Optional[bool] = Field(default=None, alias="is_conductive")
    explicit_is_flammable: Optional[bool] = Field(default=None, alias="is_flammable")
    explicit_youngs_modulus: Optional[float] = Field(default=None, alias="youngs_modulus")
    is_gemstone: bool = False

    @model_validator(mode="before")
    @classmethod
    def _prepare(cls, data: Any) -> Any:
        return drop_partial_antoine(data)

    @field_validator("fixed_phase", mode="before")
    @classmethod
    def _parse_phase(cls, value: Any) -> Any:
        return None if value is None else PhaseType.parse(value)

    @field_serializer("fixed_phase")
    def _serialize_phase(self, value: Optional[PhaseType]) -> Optional[str]:
        return None if value is None else value.to_text()

    @property
    def solvent(self) -> HomogeneousReference:
        """The constituent with the largest proportion."""
        if not self.constituents:
            return HomogeneousReference.empty()
        return max(self.constituents.items(), key=lambda item: item[1])[0]

    @property
    def hardness(self) -> float:
        if self.explicit_hardness is not None:
            return self.explicit_hardness
        return self._weighted_defined("hardness", lambda value: value > 0) or 0.0

    @property
    def youngs_modulus(self) -> Optional[float]:
        if self.explicit_youngs_modulus is not None:
            return self.explicit_youngs_modulus
        return self._weighted_defined("youngs_modulus", lambda value: value is not None)

    @property
    def is_conductive(self) -> bool:
        if self.explicit_is_conductive is not None:
            return self.explicit_is_conductive
        return self._majority("is_metal")

    @property
    def is_flammable(self) -> bool:
        if self.explicit_is_flammable is not None:
            return self.explicit_is_flammable
        return self._majority("is_flammable")

    def _solvent_substance(self) -> Optional[Homogeneous]:
        found = self.solvent.homogeneous
        return found if isinstance(found, Homogeneous) and found.id else None

    def effective_antoine(self) -> tuple[Optional[float], ...]:
        own = super().effective_antoine()
        solvent = self._solvent_substance()
        if solvent is None:
            return own
        return tuple(
            value if value is not None else fallback
            for value, fallback in zip(own, solvent.effective_antoine())
        )

    def effective_fixed_phase(self) -> Optional[PhaseType]:
        if self.fixed_phase is not None:
            return self.fixed_phase
        solvent = self._solvent_substance()
        return None if solvent is None else solvent.effective_fixed_phase()

    def effective_melting_point(self) -> Optional[float]:
        if self.melting_point is not None:
            return self.melting_point
        solvent = self._solvent_substance()
        return None if solvent is None else solvent.effective_melting_point()

    def get_density(self, temperature: Temperature, pressure: Pressure) -> float:
        if self.density_solid is not None or self.density_liquid is not None or self.density_special is not None:
            return self.phase_density(temperature, pressure)
        return self._weighted_density(temperature, pressure)

    def add_constituent(self, constituent: SubstanceLike, proportion: Union[Decimal, float] = Decimal("0.5")) -> Substance:
        p = to_decimal(proportion)
        if p <= 0:
            return self
        other = resolve(constituent)
        if p >= 1:
            return other
        if not isinstance(other, Homogeneous):
            return other.combine(self, ONE - p)
        register_adhoc(other)
        return Solution(constituents=add_proportion(self.constituents, other.get_homogeneous_reference(), p))

    def combine(self, other: SubstanceLike, proportion: Union[Decimal, float] = Decimal("0.5")) -> Substance:
        p = to_decimal(proportion)
        if p <= 0:
            return self
        substance = resolve(other)
        if p >= 1:
            return substance
        if isinstance(substance, Chemical):
            return self.add_constituent(substance, p)
        if isinstance(substance, Solution) and substance.solvent == self.solvent:
            return self.dissolve(substance, p)
        if isinstance(substance, Homogeneous):
            return Mixture(constituents=[(self, ONE - p), (substance, p)])
        return substance.combine(self, ONE - p)

    def dissolve(self, other: SubstanceLike, proportion: Union[Decimal, float] = Decimal("0.5")) -> Substance:
        """Blend another substance into this solution.

        Composite substances contribute their constituents, others are added as
        a single constituent.
        """
        p = to_decimal(proportion)
        if p <= 0:
            return self
        substance = resolve(other)
        if p >= 1:
            return substance
        if not isinstance(substance, CompositeSubstance):
            return self.add_constituent(substance, p)
        merged = {key: value * (ONE - p) for key, value in self.constituents.items()}
        for key, value in substance.constituents.items():
            merged[key] = merged.get(key, ZERO) + value * p
        return Solution(constituents=merged)

    def remove(self, constituent: SubstanceLike) -> Substance:
        key = HomogeneousReference(constituent.id)
        if key not in self.constituents:
            return self
        remaining = {current: value for current, value in self.constituents.items() if current != key}
        if not remaining:
            return NONE_SUBSTANCE
        if len(remaining) == 1:
            return next(iter(remaining)).homogeneous
        return Solution(constituents=remaining)
