from __future__ import annotations

from decimal import Decimal

import pytest

from opensubstances.catalog import Substances
from opensubstances.errors import EmptyCompositeError, InvalidArgumentError
from opensubstances.materials import BaseMaterial, Composite, Material
from opensubstances.phase import PhaseType
from opensubstances.references import HomogeneousReference
from opensubstances.serialization import dumps_material, loads_material
from opensubstances.shapes import Cuboid, SinglePoint


def _cube() -> Cuboid:
    return Cuboid(axis_x=1, axis_y=1, axis_z=1)


def _layers() -> Composite:
    water = Material.from_substance(Substances.WATER, _cube(), density=1000, temperature=300)
    iron = Material.from_substance(Substances.IRON, _cube(), density=3000, temperature=400)
    return Composite([water, iron])


def test_mass_follows_density_and_volume() -> None:
    material = Material.from_substance(Substances.WATER, _cube(), density=1000)
    assert material.mass == Decimal(1000)
    assert material.density == pytest.approx(1000.0)
    assert material.substance is Substances.WATER


def test_density_defaults() -> None:
    from_constituents = Material.from_substance(Substances.WATER, _cube(), temperature=300)
    assert from_constituents.density == pytest.approx(Substances.WATER.density_liquid)
    from_mass = Material.from_substance(Substances.WATER, Cuboid(axis_x=2, axis_y=1, axis_z=1), mass=500)
    assert from_mass.density == pytest.approx(250.0)
    point = Material.from_substance(Substances.WATER, mass=5)
    assert point.mass == Decimal(5)
    assert isinstance(point.shape, SinglePoint)


def test_constituents_are_normalized() -> None:
    material = Material({Substances.WATER: 3, "HR:benzene": 1}, _cube(), density=1000)
    assert material.constituents == {
        HomogeneousReference("water"): Decimal("0.75"),
        HomogeneousReference("benzene"): Decimal("0.25"),
    }
    with pytest.raises(InvalidArgumentError):
        Material({42: 1})
    with pytest.raises(InvalidArgumentError):
        material.substance


def test_split_by_mass() -> None:
    material = Material({Substances.WATER: 0.5, Substances.BENZENE: 0.5}, _cube(), density=1000)
    parts = material.split(0.8)
    assert isinstance(parts, Composite)
    first, second = parts.components
    assert first.mass == Decimal(800)
    assert second.mass == Decimal(200)
    assert first.get_proportion(Substances.WATER) == Decimal("0.5")
    assert parts.shape == material.shape


def test_split_variants() -> None:
    material = Material.from_substance(Substances.WATER, _cube(), density=1000)
    assert [part.mass for part in material.split().components] == [Decimal(500), Decimal(500)]
    assert [part.mass for part in material.split(2, 3, 5).components] == [Decimal(200), Decimal(300), Decimal(500)]
    assert material.split(1) is material
    assert material.split(0) is material
    with pytest.raises(InvalidArgumentError):
        material.split(-1, 2)


def test_proportions_count_nested_constituents() -> None:
    brick = Material.from_substance(Substances.BRICK, _cube(), density=1900)
    assert brick.get_proportion(Substances.BRICK) == Decimal(1)
    assert brick.get_proportion(Substances.SILICON_DIOXIDE) == Decimal("0.6")
    assert brick.contains(Substances.HEMATITE)
    assert not brick.contains(Substances.WATER)


def test_contains_uses_the_material_temperature() -> None:
    water = Material.from_substance(Substances.WATER, _cube(), density=1000, temperature=300)
    assert water.contains(Substances.WATER)
    assert water.contains(Substances.WATER, PhaseType.LIQUID)
    assert not water.contains(Substances.WATER, PhaseType.SOLID)
    assert water.contains(Substances.WATER, PhaseType.SOLID, temperature=250)


def test_constituent_mutations() -> None:
    material = Material.from_substance(Substances.WATER, _cube(), density=1000, temperature=300)
    assert material.add_constituent(Substances.BENZENE, 0.25) is material
    assert material.get_proportion(Substances.BENZENE) == Decimal("0.25")
    material.remove_constituent(Substances.BENZENE)
    assert material.get_proportion(Substances.WATER) == Decimal(1)
    material.add_constituents({Substances.ETHANOL: 0.2, Substances.BENZENE: 0.3})
    assert material.get_proportion(Substances.WATER) == Decimal("0.5")
    material.remove_constituents(lambda substance: substance.is_flammable)
    assert material.constituents == {HomogeneousReference("water"): Decimal(1)}


def test_removing_the_last_constituent_empties_the_material() -> None:
    material = Material.from_substance(Substances.WATER, _cube(), density=1000, temperature=300)
    assert material.remove_constituent(Substances.WATER) is material
    assert material.is_empty
    assert material.mass == 0
    assert material.density == 0.0
    assert material.temperature is None
    assert isinstance(material.shape, SinglePoint)


def test_position_and_rotation_go_through_the_shape() -> None:
    material = Material.from_substance(Substances.WATER, _cube(), density=1000)
    material.position = (1.0, 2.0, 3.0)
    material.rotation = (0.0, 0.0, 0.0, 2.0)
    assert material.shape.position == (1.0, 2.0, 3.0)
    assert material.rotation == (0.0, 0.0, 0.0, 1.0)
    assert material.volume == pytest.approx(1.0)


def test_composite_aggregates_components() -> None:
    composite = _layers()
    assert composite.mass == Decimal(4000)
    assert composite.density == pytest.approx(2000.0)
    assert composite.temperature == pytest.approx(375.0)
    assert composite.get_proportion(Substances.IRON) == Decimal("0.75")
    assert composite.get_core().substance is Substances.WATER
    assert composite.get_surface().substance is Substances.IRON
    assert not composite.is_empty


def test_composite_overrides() -> None:
    composite = _layers()
    composite.mass = 10
    composite.temperature = 290
    assert composite.mass == Decimal(10)
    assert composite.overrides() == {"mass": Decimal(10), "temperature": 290.0}
    composite.mass = None
    assert composite.mass == Decimal(4000)


def test_composite_temperature_without_mass() -> None:
    cold = Material.from_substance(Substances.WATER, temperature=300)
    warm = Material.from_substance(Substances.WATER, temperature=400)
    assert Composite([cold, warm]).temperature == pytest.approx(350.0)
    assert Composite([Material.from_substance(Substances.WATER)]).temperature is None


def test_empty_composite_is_rejected() -> None:
    with pytest.raises(EmptyCompositeError):
        Composite([])


def test_remove_component() -> None:
    composite = _layers()
    water, iron = composite.components
    assert composite.remove_component(iron) is water
    assert composite.remove_component(water).is_empty


def test_constituent_operations_reach_every_component() -> None:
    composite = _layers()
    composite.add_constituent(Substances.BENZENE, 0.5)
    assert all(component.get_proportion(Substances.BENZENE) == Decimal("0.5") for component in composite.components)
    composite.remove_constituent(Substances.BENZENE)
    assert not composite.contains(Substances.BENZENE)


def test_homogenize_and_split_composites() -> None:
    composite = _layers()
    flat = composite.get_homogenized()
    assert isinstance(flat, Material)
    assert flat.mass == Decimal(4000)
    assert flat.get_proportion(Substances.WATER) == Decimal("0.25")
    halves = composite.split()
    assert [part.mass for part in halves.components] == [Decimal(2000), Decimal(2000)]


def test_material_documents_round_trip() -> None:
    composite = _layers()
    text = dumps_material(composite)
    assert '"$type": ":Composite:"' in text
    assert loads_material(text) == composite
    single = Material({Substances.BRICK: 1}, _cube(), density=1900, temperature=290)
    assert loads_material(dumps_material(single)) == single


def test_emptiness_requires_the_default_state() -> None:
    assert Material().is_empty
    assert not Material(None, _cube(), density=1000).is_empty
    assert not Material(temperature=300).is_empty
    assert not Material(mass=5).is_empty
    shifted = Material()
    shifted.position = (1.0, 0.0, 0.0)
    assert not shifted.is_empty
    assert not Composite([Material(None, _cube(), density=1000)]).is_empty
    assert not Composite([Material()], temperature=300).is_empty
    assert Composite([Material(), Material()]).is_empty


def test_massless_components_weigh_equally() -> None:
    water = Material.from_substance(Substances.WATER)
    assert water.mass == 0
    assert water.split().constituents == {HomogeneousReference("water"): Decimal(1)}
    pair = Composite([water, Material.from_substance(Substances.IRON)])
    assert pair.constituents == {
        HomogeneousReference("water"): Decimal("0.5"),
        HomogeneousReference("iron"): Decimal("0.5"),
    }


def test_negative_constituent_proportions_are_rejected() -> None:
    with pytest.raises(InvalidArgumentError):
        Material({Substances.WATER: -1, Substances.BENZENE: 2})


def test_base_material_is_abstract() -> None:
    with pytest.raises(TypeError):
        BaseMaterial()  # type: ignore[abstract]
