"""Substance hierarchy: chemicals, homogeneous substances, mixtures and solutions."""

from .base import Homogeneous, Substance, ideal_gas_density, resolve, vapor_pressure
from .composite import CompositeSubstance, Mixture, Solution, register_adhoc
from .homogeneous import NONE_SUBSTANCE, Chemical, HomogeneousSubstance
from .predicates import get_water_proportion, is_carbon, is_hydrocarbon, is_metal_ore, is_water

__all__ = [
    "NONE_SUBSTANCE",
    "Chemical",
    "CompositeSubstance",
    "Homogeneous",
    "HomogeneousSubstance",
    "Mixture",
    "Solution",
    "Substance",
    "get_water_proportion",
    "ideal_gas_density",
    "is_carbon",
    "is_hydrocarbon",
    "is_metal_ore",
    "is_water",
    "register_adhoc",
    "resolve",
    "vapor_pressure",
]
