"""Geometric shapes giving materials a volume, position and rotation.

Lengths are meters. Rotations are unit quaternions ``(x, y, z, w)``.

Example:
    >>> from opensubstances.shapes import Cuboid, Sphere
    >>> Cuboid(axis_x=1, axis_y=2, axis_z=3).volume
    6.0
    >>> round(Sphere(radius=1).volume, 4)
    4.1888
"""

from __future__ import annotations

import math
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import InvalidArgumentError
from .units import as_meters

Vector = tuple[float, float, float]
Rotation = tuple[float, float, float, float]

ORIGIN: Vector = (0.0, 0.0, 0.0)
IDENTITY: Rotation = (0.0, 0.0, 0.0, 1.0)


def _length(value: Any, name: str) -> float:
    meters = as_meters(value)
    if meters < 0 or math.isnan(meters):
        raise InvalidArgumentError(name, value, "a non-negative length")
    return meters


class Shape(BaseModel):
    """Base shape: a position and a rotation."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, arbitrary_types_allowed=True)

    type_name: str = Field(alias="$type")
    position: Vector = ORIGIN
    rotation: Rotation = IDENTITY

    @field_validator("position", mode="before")
    @classmethod
    def _validate_position(cls, value: Any) -> Any:
        return tuple(as_meters(component) for component in value)

    @field_validator("rotation")
    @classmethod
    def _normalize_rotation(cls, value: Rotation) -> Rotation:
        norm = math.sqrt(sum(component * component for component in value))
        if norm == 0 or math.isnan(norm):
            raise ValueError("rotation must be a non-zero quaternion")
        if math.isclose(norm, 1.0, rel_tol=0.0, abs_tol=1e-12):
            return value
        return tuple(component / norm for component in value)  # type: ignore[return-value]

    @property
    def volume(self) -> float:
        raise NotImplementedError

    def clone_at_position(self, position: Vector) -> "Shape":
        return self.model_validate({**self.model_dump(), "position": position})

    def clone_with_rotation(self, rotation: Rotation) -> "Shape":
        return self.model_validate({**self.model_dump(), "rotation": rotation})


class SinglePoint(Shape):
    """A dimensionless point."""

    type_name: Literal[":SinglePoint:"] = Field(default=":SinglePoint:", alias="$type")

    @property
    def volume(self) -> float:
        return 0.0


class Sphere(Shape):
    type_name: Literal[":Sphere:"] = Field(default=":Sphere:", alias="$type")
    radius: float

    @field_validator("radius", mode="before")
    @classmethod
    def _validate_radius(cls, value: Any) -> float:
        return _length(value, "radius")

    @property
    def volume(self) -> float:
        return 4.0 / 3.0 * math.pi * self.radius**3


class Cuboid(Shape):
    """A rectangular box given by its full edge lengths."""

    type_name: Literal[":Cuboid:"] = Field(default=":Cuboid:", alias="$type")
    axis_x: float
    axis_y: float
    axis_z: float

    @field_validator("axis_x", "axis_y", "axis_z", mode="before")
    @classmethod
    def _validate_axis(cls, value: Any) -> float:
        return _length(value, "axis")

    @property
    def volume(self) -> float:
        return self.axis_x * self.axis_y * self.axis_z


AnyShape = Annotated[Union[SinglePoint, Sphere, Cuboid], Field(discriminator="type_name")]

SHAPE_TYPES: dict[str, type[Shape]] = {
    ":SinglePoint:": SinglePoint,
    ":Sphere:": Sphere,
    ":Cuboid:": Cuboid,
}
