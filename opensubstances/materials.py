"""Physical bodies: a shape filled with substances.

A ``Material`` is a single body with one constituent map. A ``Composite`` is
an ordered stack of materials, core first and surface last. Materials are
mutable: constituent operations change the body in place and return it.

Example:
    >>> from opensubstances.catalog import Substances
    >>> from opensubstances.materials import Material
    >>> from opensubstances.shapes import Cuboid
    >>> water = Material.from_substance(Substances.WATER, Cuboid(axis_x=1, axis_y=1, axis_z=1), density=1000)
    >>> water.mass
    Decimal('1000.0')
    >>> halves = water.split()
    >>> [float(part.mass) for part in halves.components]
    [500.0, 500.0]
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence, Union

from .errors import EmptyCompositeError, InvalidArgumentError
from .phase import PhaseType
from .proportions import (
    ONE,
    ZERO,
    Proportion,
    add_proportion,
    add_proportions,
    normalize,
    remove_proportion,
    retain_proportions,
    to_decimal,
)
from .references import SubstanceReference, parse_reference
from .shapes import ORIGIN, Rotation, Shape, SinglePoint, Vector
from .substances import Substance, register_adhoc
from .substances.base import ConstituentSelector, Pressure, Temperature, standard_conditions
from .units import Quantity, as_density, as_kelvin, as_kilograms

logger = logging.getLogger(__name__)

MaterialConstituents = Union[Mapping[Any, Proportion], Iterable[tuple[Any, Proportion]]]
Mass = Union[int, float, Decimal, Quantity]
Density = Union[int, float, Decimal, Quantity]


def material_key(item: Any) -> SubstanceReference:
    """Reference used as a material constituent key."""
    if isinstance(item, SubstanceReference):
        return item
    if isinstance(item, str):
        return parse_reference(item)
    if isinstance(item, Substance):
        register_adhoc(item)
        return item.get_reference()
    raise InvalidArgumentError("constituent", item, "a substance, SubstanceReference or reference token")


def _keyed(items: MaterialConstituents) -> list[tuple[SubstanceReference, Proportion]]:
    pairs = items.items() if isinstance(items, Mapping) else items
    return [(material_key(key), value) for key, value in pairs]


def _split_proportions(proportions: Sequence[Proportion]) -> Optional[list[Decimal]]:
    """Proportions for ``split``, or None when the body stays whole."""
    if not proportions:
        return [Decimal("0.5"), Decimal("0.5")]
    values = [to_decimal(value) for value in proportions]
    if len(values) == 1:
        if values[0] <= 0 or values[0] >= 1:
            return None
        return [values[0], ONE - values[0]]
    if any(value < 0 for value in values):
        raise InvalidArgumentError("proportions", proportions, "non-negative proportions")
    total = sum(values, ZERO)
    if total <= 0:
        return None
    return [value / total for value in values]


class BaseMaterial(ABC):
    """Operations shared by single materials and composites."""

    shape: Shape

    @property
    @abstractmethod
    def constituents(self) -> dict[SubstanceReference, Decimal]:
        raise NotImplementedError

    @property
    @abstractmethod
    def mass(self) -> Decimal:
        raise NotImplementedError

    @property
    @abstractmethod
    def density(self) -> float:
        raise NotImplementedError

    @property
    @abstractmethod
    def temperature(self) -> Optional[float]:
        raise NotImplementedError

    @property
    @abstractmethod
    def is_empty(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    def get_clone(self, mass_fraction: Proportion = 1) -> "BaseMaterial":
        raise NotImplementedError

    @property
    def position(self) -> Vector:
        return self.shape.position

    @position.setter
    def position(self, value: Vector) -> None:
        self.shape = self.shape.clone_at_position(value)

    @property
    def rotation(self) -> Rotation:
        return self.shape.rotation

    @rotation.setter
    def rotation(self, value: Rotation) -> None:
        self.shape = self.shape.clone_with_rotation(value)

    @property
    def volume(self) -> float:
        return self.shape.volume

    def get_proportion(self, selector: ConstituentSelector) -> Decimal:
        """Share of the body's mass made of selector, counting nested constituents."""
        total = ZERO
        for key, value in self.constituents.items():
            substance = key.substance
            if _selects(selector, key, substance):
                total += value
            else:
                total += substance.get_proportion(selector) * value
        return total

    def contains(
        self,
        constituent: Union[Substance, SubstanceReference],
        phase: PhaseType = PhaseType.ANY,
        temperature: Optional[Temperature] = None,
        pressure: Optional[Pressure] = None,
    ) -> bool:
        """Whether constituent is present, optionally only in the given phase.

        The material's own temperature is used when none is given.
        """
        if temperature is None:
            temperature = self.temperature
        kelvin, kilopascals = standard_conditions(temperature, pressure)
        for key in self.constituents:
            substance = key.substance
            if _selects(constituent, key, substance):
                if phase == PhaseType.ANY or substance.get_phase(kelvin, kilopascals) & phase:
                    return True
            elif substance.contains(constituent, kelvin, kilopascals, phase):
                return True
        return False

    def split(self, *proportions: Proportion) -> "BaseMaterial":
        """Divide the body by mass into a composite of clones.

        No arguments splits in half. A single proportion ``p`` in (0, 1) gives
        ``[p, 1 - p]``; several proportions are normalized. A single proportion
        outside (0, 1) leaves the body whole and returns it.
        """
        shares = _split_proportions(proportions)
        if shares is None:
            return self
        return Composite([self.get_clone(share) for share in shares], shape=self.shape)


def _selects(selector: Any, key: SubstanceReference, substance: Substance) -> bool:
    if isinstance(selector, SubstanceReference):
        return selector.id == key.id
    if isinstance(selector, Substance):
        return selector.id == key.id
    return bool(selector(substance))


class Material(BaseMaterial):
    """A single body of uniform composition.

    Parameters:
        constituents: Mapping or pairs of substance (or reference) to proportion.
        shape: Geometry of the body. Defaults to a single point.
        mass: Mass in kg. Defaults to density times volume.
        density: Density in kg/m³. Defaults to mass over volume when a mass is
            given, else to the constituents' density at the material temperature.
        temperature: Temperature in kelvin.
    """

    def __init__(
        self,
        constituents: Optional[MaterialConstituents] = None,
        shape: Optional[Shape] = None,
        mass: Optional[Mass] = None,
        density: Optional[Density] = None,
        temperature: Optional[Temperature] = None,
    ) -> None:
        self._constituents: dict[SubstanceReference, Decimal] = normalize(_keyed(constituents or {}))
        self.shape = shape or SinglePoint()
        self._temperature = None if temperature is None else as_kelvin(temperature)
        volume = self.shape.volume
        mass_value = None if mass is None else as_kilograms(mass)
        if density is not None:
            self._density = as_density(density)
        elif mass_value is not None and volume > 0:
            self._density = float(mass_value) / volume
        else:
            self._density = self._constituent_density()
        self._mass = as_kilograms(self._density * volume) if mass_value is None else mass_value

    @classmethod
    def from_substance(
        cls,
        substance: Union[Substance, SubstanceReference],
        shape: Optional[Shape] = None,
        mass: Optional[Mass] = None,
        density: Optional[Density] = None,
        temperature: Optional[Temperature] = None,
    ) -> "Material":
        return cls({material_key(substance): ONE}, shape, mass, density, temperature)

    def _constituent_density(self) -> float:
        kelvin, kilopascals = standard_conditions(self._temperature)
        return sum(
            (key.substance.get_density(kelvin, kilopascals) * float(value) for key, value in self._constituents.items()),
            0.0,
        )

    @property
    def constituents(self) -> dict[SubstanceReference, Decimal]:
        return dict(self._constituents)

    @property
    def mass(self) -> Decimal:
        return self._mass

    @mass.setter
    def mass(self, value: Mass) -> None:
        self._mass = as_kilograms(value)

    @property
    def density(self) -> float:
        return self._density

    @density.setter
    def density(self, value: Density) -> None:
        self._density = as_density(value)

    @property
    def temperature(self) -> Optional[float]:
        return self._temperature

    @temperature.setter
    def temperature(self, value: Optional[Temperature]) -> None:
        self._temperature = None if value is None else as_kelvin(value)

    @property
    def is_empty(self) -> bool:
        """No constituents, no mass or density, no temperature and a point at the origin."""
        return (
            not self._constituents
            and self._mass == 0
            and self._density == 0
            and self._temperature is None
            and isinstance(self.shape, SinglePoint)
            and self.shape.position == ORIGIN
        )

    @property
    def substance(self) -> Substance:
        """The single substance of a one-constituent material."""
        if len(self._constituents) != 1:
            raise InvalidArgumentError("constituents", len(self._constituents), "exactly one constituent")
        return next(iter(self._constituents)).substance

    def _reset(self) -> None:
        self._constituents = {}
        self._density = 0.0
        self._mass = ZERO
        self._temperature = None
        self.shape = SinglePoint()

    def add_constituent(self, constituent: Any, proportion: Proportion = Decimal("0.5")) -> "Material":
        self._constituents = add_proportion(self._constituents, material_key(constituent), proportion)
        return self

    def add_constituents(self, constituents: MaterialConstituents) -> "Material":
        self._constituents = add_proportions(self._constituents, _keyed(constituents))
        return self

    def remove_constituent(self, constituent: Any) -> "Material":
        """Remove constituent; removing the last one empties the material."""
        key = material_key(constituent)
        if key not in self._constituents:
            return self
        if len(self._constituents) == 1:
            self._reset()
            return self
        self._constituents = remove_proportion(self._constituents, key)
        return self

    def remove_constituents(self, predicate: Callable[[Substance], bool]) -> "Material":
        """Remove every constituent whose substance satisfies predicate."""
        self._constituents = retain_proportions(self._constituents, lambda key: not predicate(key.substance))
        if not self._constituents:
            self._reset()
        return self

    def get_clone(self, mass_fraction: Proportion = 1) -> "Material":
        """Copy of this material holding ``mass_fraction`` of its mass."""
        fraction = to_decimal(mass_fraction)
        if fraction <= 0:
            return Material()
        return Material(self._constituents, self.shape, self._mass * fraction, self._density, self._temperature)

    def get_core(self) -> "Material":
        return self

    def get_surface(self) -> "Material":
        return self

    def get_homogenized(self) -> "Material":
        return self

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Material):
            return NotImplemented
        return (
            self._density == other._density
            and self._mass == other._mass
            and self.shape == other.shape
            and self._constituents == other._constituents
            and self._temperature == other._temperature
        )

    def __repr__(self) -> str:
        names = ", ".join(f"{key}={value}" for key, value in self._constituents.items())
        return f"Material({names or 'empty'}, mass={self._mass})"


class Composite(BaseMaterial):
    """A layered body made of component materials.

    Mass, density and temperature are aggregated from the components unless
    set explicitly.

    Raises:
        EmptyCompositeError: No components were given.
    """

    def __init__(
        self,
        components: Iterable[BaseMaterial],
        shape: Optional[Shape] = None,
        mass: Optional[Mass] = None,
        density: Optional[Density] = None,
        temperature: Optional[Temperature] = None,
    ) -> None:
        self._components: list[BaseMaterial] = list(components)
        if not self._components:
            raise EmptyCompositeError()
        self.shape = shape or SinglePoint()
        self._mass = None if mass is None else as_kilograms(mass)
        self._density = None if density is None else as_density(density)
        self._temperature = None if temperature is None else as_kelvin(temperature)

    @property
    def components(self) -> tuple[BaseMaterial, ...]:
        return tuple(self._components)

    def overrides(self) -> dict[str, Any]:
        """Explicitly set mass, density and temperature."""
        values = {"mass": self._mass, "density": self._density, "temperature": self._temperature}
        return {name: value for name, value in values.items() if value is not None}

    @property
    def constituents(self) -> dict[SubstanceReference, Decimal]:
        total_mass = sum((component.mass for component in self._components), ZERO)
        result: dict[SubstanceReference, Decimal] = {}
        for component in self._components:
            # Massless components weigh equally.
            share = component.mass / total_mass if total_mass else ONE / len(self._components)
            for key, value in component.constituents.items():
                result[key] = result.get(key, ZERO) + value * share
        return result

    @property
    def mass(self) -> Decimal:
        if self._mass is not None:
            return self._mass
        return sum((component.mass for component in self._components), ZERO)

    @mass.setter
    def mass(self, value: Optional[Mass]) -> None:
        self._mass = None if value is None else as_kilograms(value)

    @property
    def density(self) -> float:
        if self._density is not None:
            return self._density
        volume = sum(component.volume for component in self._components)
        if volume <= 0:
            return 0.0
        return float(sum((component.mass for component in self._components), ZERO)) / volume

    @density.setter
    def density(self, value: Optional[Density]) -> None:
        self._density = None if value is None else as_density(value)

    @property
    def temperature(self) -> Optional[float]:
        """Explicit temperature, else the mass-weighted average of the components that have one."""
        if self._temperature is not None:
            return self._temperature
        weighted = [
            (component.temperature, float(component.mass))
            for component in self._components
            if component.temperature is not None
        ]
        total_mass = sum(mass for _, mass in weighted)
        if not weighted:
            return None
        if total_mass <= 0:
            return sum(temperature for temperature, _ in weighted) / len(weighted)
        return sum(temperature * mass for temperature, mass in weighted) / total_mass

    @temperature.setter
    def temperature(self, value: Optional[Temperature]) -> None:
        self._temperature = None if value is None else as_kelvin(value)

    @property
    def is_empty(self) -> bool:
        return not self.overrides() and all(component.is_empty for component in self._components)

    def add_component(self, component: BaseMaterial) -> "Composite":
        self._components.append(component)
        return self

    def remove_component(self, component: BaseMaterial) -> BaseMaterial:
        """Remove component.

        Returns an empty material when nothing is left, the sole survivor when one
        component is left, and the composite otherwise.
        """
        for index, candidate in enumerate(self._components):
            if candidate is component:
                del self._components[index]
                break
        else:
            if component in self._components:
                self._components.remove(component)
        if not self._components:
            return Material()
        if len(self._components) == 1:
            return self._components[0]
        return self

    def add_constituent(self, constituent: Any, proportion: Proportion = Decimal("0.5")) -> "Composite":
        for component in self._components:
            component.add_constituent(constituent, proportion)  # type: ignore[attr-defined]
        return self

    def add_constituents(self, constituents: MaterialConstituents) -> "Composite":
        pairs = _keyed(constituents)
        for component in self._components:
            component.add_constituents(pairs)  # type: ignore[attr-defined]
        return self

    def remove_constituent(self, constituent: Any) -> "Composite":
        for component in self._components:
            component.remove_constituent(constituent)  # type: ignore[attr-defined]
        return self

    def remove_constituents(self, predicate: Callable[[Substance], bool]) -> "Composite":
        for component in self._components:
            component.remove_constituents(predicate)  # type: ignore[attr-defined]
        return self

    def get_clone(self, mass_fraction: Proportion = 1) -> BaseMaterial:
        fraction = to_decimal(mass_fraction)
        if fraction <= 0:
            return Material()
        return Composite(
            [component.get_clone(fraction) for component in self._components],
            shape=self.shape,
            mass=None if self._mass is None else self._mass * fraction,
            density=self._density,
            temperature=self._temperature,
        )

    def get_core(self) -> BaseMaterial:
        return self._components[0]

    def get_surface(self) -> BaseMaterial:
        return self._components[-1]

    def get_homogenized(self) -> Material:
        """Flatten the components into a single material of the same mass."""
        logger.debug("Homogenizing composite of %d components", len(self._components))
        return Material(self.constituents, self.shape, self.mass, self.density, self.temperature)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Composite):
            return NotImplemented
        return (
            self._components == other._components
            and self.shape == other.shape
            and self.overrides() == other.overrides()
        )

    def __repr__(self) -> str:
        return f"Composite({len(self._components)} components, mass={self.mass})"
