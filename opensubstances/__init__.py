"""OpenSubstances package exports."""

from .catalog import Substances
from .config import Settings, get_settings
from .elements import (
    Element,
    ElementType,
    Isotope,
    PeriodicTable,
    get_periodic_table,
    isotope_key,
    parse_isotope_key,
    try_parse_isotope_key,
)
from .errors import (
    ElementNotFoundError,
    EmptyCompositeError,
    FormulaParseError,
    InvalidArgumentError,
    IsotopeKeyError,
    MalformedDocumentError,
    MalformedReferenceError,
    MissingDiscriminatorError,
    SubstanceError,
    SubstanceNotFoundError,
    UnknownDiscriminatorError,
)
from .formula import Formula
from .materials import Composite, Material
from .phase import PhaseType
from .references import HomogeneousReference, SubstanceReference, parse_reference, reference_equals
from .registry import SubstanceRegistry, get_registry, set_registry
from .serialization import (
    ReflectiveCodec,
    StaticCodec,
    dump_material,
    dumps_material,
    dumps_substance,
    load_material,
    loads_material,
    loads_substance,
    validate_substance_document,
)
from .shapes import Cuboid, SinglePoint, Sphere
from .substances import (
    NONE_SUBSTANCE,
    Chemical,
    Homogeneous,
    HomogeneousSubstance,
    Mixture,
    Solution,
    Substance,
)
from .units import Q_, Quantity, ureg

__all__ = [
    "Substance",
    "Homogeneous",
    "HomogeneousSubstance",
    "Chemical",
    "Mixture",
    "Solution",
    "NONE_SUBSTANCE",
    "Substances",
    "SubstanceReference",
    "HomogeneousReference",
    "parse_reference",
    "reference_equals",
    "SubstanceRegistry",
    "get_registry",
    "set_registry",
    "Formula",
    "PhaseType",
    "Element",
    "ElementType",
    "Isotope",
    "PeriodicTable",
    "get_periodic_table",
    "isotope_key",
    "parse_isotope_key",
    "try_parse_isotope_key",
    "Material",
    "Composite",
    "SinglePoint",
    "Sphere",
    "Cuboid",
    "ReflectiveCodec",
    "StaticCodec",
    "dumps_substance",
    "loads_substance",
    "dump_material",
    "load_material",
    "dumps_material",
    "loads_material",
    "validate_substance_document",
    "Settings",
    "get_settings",
    "Quantity",
    "Q_",
    "ureg",
    "SubstanceError",
    "MalformedReferenceError",
    "MissingDiscriminatorError",
    "UnknownDiscriminatorError",
    "MalformedDocumentError",
    "FormulaParseError",
    "IsotopeKeyError",
    "ElementNotFoundError",
    "SubstanceNotFoundError",
    "InvalidArgumentError",
    "EmptyCompositeError",
]
