from __future__ import annotations

from decimal import Decimal

import pytest
from pydantic import ValidationError

from opensubstances.catalog import Substances
from opensubstances.phase import PhaseType
from opensubstances.references import HomogeneousReference
from opensubstances.substances import (
    NONE_SUBSTANCE,
    Chemical,
    HomogeneousSubstance,
    Mixture,
    Solution,
    Substance,
    is_carbon,
    is_hydrocarbon,
    is_metal_ore,
    is_water,
)


def test_chemical_derives_properties_from_formula() -> None:
    iron = Chemical(name="Test Iron", formula="Fe")
    assert iron.is_metal
    assert iron.is_conductive
    assert iron.molar_mass == pytest.approx(55.845, abs=1e-3)

    uranium = Chemical(name="Test Uranium", formula="U")
    assert uranium.is_radioactive

    salt = Chemical(name="Test Salt", formula="NaCl")
    assert not salt.is_metal
    assert not salt.is_radioactive


def test_explicit_values_win_over_derived_ones() -> None:
    chemical = Chemical(name="Heavy Water", formula="H2O", molar_mass=20.03, is_conductive=True)
    assert chemical.molar_mass == pytest.approx(20.03)
    assert chemical.is_conductive


def test_partial_antoine_coefficients_are_dropped() -> None:
    substance = HomogeneousSubstance(name="Partial", antoine_coefficient_a=1.0, antoine_coefficient_b=2.0)
    assert substance.antoine_coefficient_a is None
    assert substance.get_vapor_pressure(300.0) is None


def test_blank_names_are_rejected() -> None:
    with pytest.raises(ValidationError):
        HomogeneousSubstance(name="  ")


@pytest.mark.parametrize(
    ("kelvin", "phase"),
    [(250.0, PhaseType.SOLID), (300.0, PhaseType.LIQUID), (400.0, PhaseType.GAS)],
)
def test_water_phase_follows_temperature(kelvin: float, phase: PhaseType) -> None:
    assert Substances.WATER.get_phase(kelvin, 101.325) == phase


def test_water_density_depends_on_phase() -> None:
    water = Substances.WATER
    assert water.get_density(300.0, 101.325) == water.density_liquid
    assert water.get_density(250.0, 101.325) == water.density_solid


def test_fixed_phase_and_special_density() -> None:
    matter = Substances.NEUTRON_DEGENERATE_MATTER
    assert matter.get_phase(300.0, 101.325) == PhaseType.NEUTRON_DEGENERATE_MATTER
    assert matter.get_density(300.0, 101.325) == pytest.approx(4e17)


def test_adding_to_a_homogeneous_substance_builds_a_mixture() -> None:
    mixture = Substances.WATER.add_constituent(Substances.BENZENE, 0.25)
    assert isinstance(mixture, Mixture)
    assert mixture.get_proportion(Substances.WATER) == Decimal("0.75")
    assert mixture.get_proportion(Substances.BENZENE) == Decimal("0.25")
    assert mixture.name == "Water:75.000%; Benzene:25.000%"
    assert mixture.get_phase(300.0, 101.325) == PhaseType.LIQUID
    assert not mixture.is_flammable
    assert Substances.WATER.add_constituent(Substances.BENZENE, 0.6).is_flammable


def test_boundary_proportions() -> None:
    water = Substances.WATER
    assert water.add_constituent(Substances.BENZENE, 0) is water
    assert water.add_constituent(Substances.BENZENE, 1) is Substances.BENZENE


def test_adding_a_mixture_merges_its_constituents() -> None:
    result = Substances.WATER.add_constituent(Substances.BRICK, 0.5)
    assert isinstance(result, Mixture)
    assert result.get_proportion(Substances.WATER) == Decimal("0.5")
    assert result.get_proportion(Substances.SILICON_DIOXIDE) == Decimal("0.3")


def test_mixtures_combine_by_proportion() -> None:
    first = Substances.WATER.add_constituent(Substances.BENZENE, 0.5)
    second = Substances.WATER.add_constituent(Substances.ETHANOL, 0.5)
    combined = first.combine(second, 0.5)
    assert combined.get_proportion(Substances.WATER) == Decimal("0.5")
    assert combined.get_proportion(Substances.BENZENE) == Decimal("0.25")
    assert combined.get_proportion(Substances.ETHANOL) == Decimal("0.25")


def test_removing_constituents_from_a_mixture() -> None:
    mixture = Substances.WATER.add_constituent(Substances.BENZENE, 0.25)
    water_only = mixture.remove(Substances.BENZENE)
    assert water_only.get_proportion(Substances.WATER) == Decimal(1)
    assert mixture.remove(Substances.ETHANOL) is mixture
    assert water_only.remove(Substances.WATER) is NONE_SUBSTANCE


def test_predicate_selectors_sum_matching_constituents() -> None:
    mixture = Substances.WATER.add_constituent(Substances.BENZENE, 0.25)
    assert mixture.get_proportion(lambda substance: substance.is_flammable) == Decimal("0.25")
    assert Substances.WATER.get_proportion(Substances.WATER) == Decimal(1)
    assert Substances.WATER.get_proportion(Substances.BENZENE) == Decimal(0)


def test_contains_respects_phase() -> None:
    mixture = Substances.WATER.add_constituent(Substances.METHANE, 0.5)
    assert mixture.contains(Substances.METHANE)
    assert mixture.contains(Substances.METHANE, 300.0, 101.325, PhaseType.GAS)
    assert not mixture.contains(Substances.METHANE, 300.0, 101.325, PhaseType.LIQUID)
    assert not mixture.contains(Substances.BENZENE)
    assert Substances.WATER.contains(Substances.WATER, 250.0, 101.325, PhaseType.SOLID)


def test_separate_by_phase_groups_constituents() -> None:
    mixture = Substances.WATER.add_constituent(Substances.METHANE, 0.5)
    groups = mixture.separate_by_phase(300.0, 101.325, PhaseType.SOLID, PhaseType.LIQUID, PhaseType.GAS)
    assert groups == [
        ([], Decimal(0)),
        ([HomogeneousReference("water")], Decimal("0.5")),
        ([HomogeneousReference("methane")], Decimal("0.5")),
        ([], Decimal(0)),
    ]


def test_mixture_density_is_weighted_by_proportion() -> None:
    mixture = Substances.WATER.add_constituent(Substances.METHANE, 0.5)
    expected = 0.5 * Substances.WATER.get_density(300.0, 101.325) + 0.5 * Substances.METHANE.get_density(
        300.0, 101.325
    )
    assert mixture.get_density(300.0, 101.325) == pytest.approx(expected)


def test_homogenizing_a_mixture_keeps_its_constituents() -> None:
    mixture = Substances.WATER.add_constituent(Substances.BENZENE, 0.25)
    solution = mixture.get_homogenized()
    assert isinstance(solution, Solution)
    assert solution.constituents == mixture.constituents
    assert solution.get_homogenized() is solution


def test_solution_solvent_and_fallbacks() -> None:
    seawater = Substances.SEAWATER
    assert seawater.solvent == HomogeneousReference("water")
    assert sum(seawater.constituents.values()) == pytest.approx(Decimal(1))
    assert seawater.get_phase(300.0, 101.325) == PhaseType.LIQUID
    assert seawater.get_phase(260.0, 101.325) == PhaseType.SOLID


def test_solution_explicit_and_derived_fields() -> None:
    brass = Substances.BRASS
    assert brass.hardness == pytest.approx(1540)
    assert brass.is_conductive
    assert not brass.is_flammable
    assert Substances.CARBON_STEEL.is_metal


def test_solution_add_constituent_scales_the_rest() -> None:
    bronze_like = Substances.BRASS.add_constituent(Substances.WHITE_TIN, 0.1)
    assert isinstance(bronze_like, Solution)
    assert bronze_like.get_proportion(Substances.COPPER) == Decimal("0.585")
    assert bronze_like.get_proportion(Substances.ZINC) == Decimal("0.315")
    assert bronze_like.get_proportion(Substances.WHITE_TIN) == Decimal("0.1")


def test_solutions_with_the_same_solvent_dissolve() -> None:
    brine = Solution(name="Brine", constituents={Substances.WATER: 0.9, Substances.SODIUM_CHLORIDE: 0.1})
    assert brine.solvent == HomogeneousReference("water")
    combined = Substances.SEAWATER.combine(brine, 0.5)
    assert isinstance(combined, Solution)
    assert float(combined.get_proportion(Substances.SODIUM_CHLORIDE)) == pytest.approx(0.05, rel=1e-3)


def test_solutions_with_different_solvents_form_a_mixture() -> None:
    combined = Substances.SEAWATER.combine(Substances.BRASS, 0.5)
    assert isinstance(combined, Mixture)
    assert combined.get_proportion(Substances.SEAWATER) == Decimal("0.5")
    assert combined.get_proportion(Substances.BRASS) == Decimal("0.5")


def test_removing_from_a_solution() -> None:
    assert Substances.BRASS.remove(Substances.ZINC) is Substances.COPPER
    assert Substances.BRASS.remove(Substances.GOLD) is Substances.BRASS


def test_with_name_creates_a_distinct_substance() -> None:
    renamed = Substances.BRASS.with_name("Yellow Brass", "Latten")
    assert renamed.name == "Yellow Brass"
    assert renamed.common_names == ("Latten",)
    assert renamed.id != "brass"
    assert renamed != Substances.BRASS
    assert renamed.constituents == Substances.BRASS.constituents


def test_none_substance() -> None:
    assert NONE_SUBSTANCE.is_empty
    assert NONE_SUBSTANCE.name == "None"
    assert not Substances.WATER.is_empty


def test_water_predicate() -> None:
    assert is_water(Substances.WATER)
    assert is_water(Substances.SEAWATER)
    assert not is_water(Substances.BRICK)


def test_carbon_predicate() -> None:
    assert is_carbon(Substances.DIAMOND)
    assert is_carbon(Substances.AMORPHOUS_CARBON)
    assert not is_carbon(Substances.WATER)
    assert not is_carbon(Substances.CARBON_DIOXIDE)


def test_hydrocarbon_predicate() -> None:
    assert is_hydrocarbon(Substances.METHANE)
    assert is_hydrocarbon(Substances.NATURAL_GAS)
    assert not is_hydrocarbon(Substances.CARBON_DIOXIDE)
    assert not is_hydrocarbon(Substances.WATER)


def test_metal_ore_predicate() -> None:
    assert is_metal_ore(Substances.HEMATITE)
    assert is_metal_ore(Substances.CASSITERITE)
    assert not is_metal_ore(Substances.SODIUM_CHLORIDE)
    assert not is_metal_ore(Substances.BRICK)


def test_negative_constituent_proportions_are_rejected() -> None:
    with pytest.raises(ValidationError):
        Mixture(constituents={"HR:water": -1, "HR:benzene": 2})


def test_substance_base_is_abstract() -> None:
    with pytest.raises(TypeError):
        Substance(id="x", name="X")  # type: ignore[abstract]
