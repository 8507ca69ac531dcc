"""Built-in substance catalog.

The catalog ships as ``data/catalog.json``. Each entry is checked against the
packaged JSON Schema and decoded with the static codec when the registry
initializes. ``Substances`` exposes well-known entries as attributes.

Example:
    >>> from opensubstances.catalog import Substances
    >>> str(Substances.WATER.formula)
    'H₂O'
    >>> str(Substances.SEAWATER.solvent)
    'HR:water'
"""

from __future__ import annotations

import logging
from importlib import resources
from typing import Any, Optional

from .errors import MalformedDocumentError
from .serialization import StaticCodec, parse_json, validate_substance_document
from .substances import Substance

logger = logging.getLogger(__name__)

CATALOG_PACKAGE = "opensubstances.data"
CATALOG_FILENAME = "catalog.json"
CATALOG_VERSION = "1.0.0"


def read_catalog_document() -> dict[str, Any]:
    """Return the raw catalog document with exact decimal numbers."""
    text = resources.files(CATALOG_PACKAGE).joinpath(CATALOG_FILENAME).read_text(encoding="utf-8")
    document = parse_json(text)
    version = document.get("catalog_version") if isinstance(document, dict) else None
    if version != CATALOG_VERSION:
        raise MalformedDocumentError("Unsupported catalog version.", actual_value=version, expected=CATALOG_VERSION)
    return document


def load_catalog() -> list[Substance]:
    """Decode every catalog entry.

    Raises:
        MalformedDocumentError: An entry violates the schema or cannot be decoded.
    """
    codec = StaticCodec()
    substances = []
    for entry in read_catalog_document()["substances"]:
        validate_substance_document(entry)
        substances.append(codec.decode(entry, fallback_to_ancestor=False))
    logger.debug("Decoded %d catalog entries", len(substances))
    return substances


class CatalogEntry:
    """Attribute resolving a catalog id through the default registry on access."""

    def __init__(self, id: str) -> None:
        self.id = id
        self.attribute: Optional[str] = None

    def __set_name__(self, owner: type, name: str) -> None:
        self.attribute = name

    def __get__(self, instance: Any, owner: Optional[type] = None) -> Any:
        from .registry import get_registry

        return get_registry().get_substance(self.id)


class Substances:
    """Named catalog substances."""

    HYDROGEN = CatalogEntry("hydrogen")
    HELIUM = CatalogEntry("helium")
    NITROGEN = CatalogEntry("nitrogen")
    OXYGEN = CatalogEntry("oxygen")
    ARGON = CatalogEntry("argon")
    AMORPHOUS_CARBON = CatalogEntry("amorphous_carbon")
    DIAMOND = CatalogEntry("diamond")
    ALUMINIUM = CatalogEntry("aluminium")
    CHROMIUM = CatalogEntry("chromium")
    IRON = CatalogEntry("iron")
    NICKEL = CatalogEntry("nickel")
    COPPER = CatalogEntry("copper")
    ZINC = CatalogEntry("zinc")
    SILVER = CatalogEntry("silver")
    WHITE_TIN = CatalogEntry("white_tin")
    GOLD = CatalogEntry("gold")
    MERCURY = CatalogEntry("mercury")
    LEAD = CatalogEntry("lead")
    URANIUM = CatalogEntry("uranium")

    WATER = CatalogEntry("water")
    CARBON_DIOXIDE = CatalogEntry("carbon_dioxide")
    CARBON_MONOXIDE = CatalogEntry("carbon_monoxide")
    METHANE = CatalogEntry("methane")
    ETHANE = CatalogEntry("ethane")
    PROPANE = CatalogEntry("propane")
    BUTANE = CatalogEntry("butane")
    PENTANE = CatalogEntry("pentane")
    HEXANE = CatalogEntry("hexane")
    BENZENE = CatalogEntry("benzene")
    ETHANOL = CatalogEntry("ethanol")
    SILICON_DIOXIDE = CatalogEntry("silicon_dioxide")
    SODIUM_CHLORIDE = CatalogEntry("sodium_chloride")
    CALCIUM_CARBONATE = CatalogEntry("calcium_carbonate")
    CALCIUM_HYDROXIDE = CatalogEntry("calcium_hydroxide")
    HEMATITE = CatalogEntry("hematite")
    CASSITERITE = CatalogEntry("cassiterite")
    KAOLINITE = CatalogEntry("kaolinite")
    MUSCOVITE = CatalogEntry("muscovite")
    CORUNDUM = CatalogEntry("corundum")

    BICARBONATE = CatalogEntry("bicarbonate")
    SULFATE = CatalogEntry("sulfate")
    CHLORIDE = CatalogEntry("chloride")
    SODIUM_ION = CatalogEntry("sodium_ion")
    MAGNESIUM_ION = CatalogEntry("magnesium_ion")
    CALCIUM_ION = CatalogEntry("calcium_ion")
    POTASSIUM_ION = CatalogEntry("potassium_ion")
    CHROMIUM_ION = CatalogEntry("chromium_ion")
    IRON_ION = CatalogEntry("iron_ion")
    TITANIUM_ION = CatalogEntry("titanium_ion")

    FUZZBALL = CatalogEntry("fuzzball")
    NEUTRON_DEGENERATE_MATTER = CatalogEntry("neutron_degenerate_matter")
    BLOOD = CatalogEntry("blood")
    FLESH = CatalogEntry("flesh")
    KERATIN = CatalogEntry("keratin")
    PROTEIN = CatalogEntry("protein")

    BRASS = CatalogEntry("brass")
    BRONZE = CatalogEntry("bronze")
    CARBON_STEEL = CatalogEntry("carbon_steel")
    STAINLESS_STEEL = CatalogEntry("stainless_steel")
    SEAWATER = CatalogEntry("seawater")
    RUBY = CatalogEntry("ruby")
    SAPPHIRE = CatalogEntry("sapphire")

    BRICK = CatalogEntry("brick")
    NATURAL_GAS = CatalogEntry("natural_gas")

    @classmethod
    def names(cls) -> list[str]:
        return [name for name, value in vars(cls).items() if isinstance(value, CatalogEntry)]

    @classmethod
    def ids(cls) -> list[str]:
        return [value.id for value in vars(cls).values() if isinstance(value, CatalogEntry)]
