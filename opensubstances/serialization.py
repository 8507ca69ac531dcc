"""JSON encoding for substances, references and materials.

Substance documents are objects tagged with a ``"$type"`` discriminator,
written first. Two codecs produce identical output:

* ``ReflectiveCodec`` validates through a pydantic discriminated union.
* ``StaticCodec`` peeks the discriminator and dispatches through
  ``SUBSTANCE_TYPES``.

Example:
    >>> from opensubstances.catalog import Substances
    >>> from opensubstances.serialization import dumps_substance, loads_substance
    >>> text = dumps_substance(Substances.WATER, indent=None)
    >>> text.startswith('{"$type":":Chemical:","id":"water"')
    True
    >>> loads_substance(text) == Substances.WATER
    True
"""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Annotated, Any, ClassVar, Mapping, Optional, Union

import jsonschema
from pydantic import Field, TypeAdapter, ValidationError

from .config import get_settings
from .errors import InvalidArgumentError, MalformedDocumentError, MissingDiscriminatorError, UnknownDiscriminatorError
from .materials import BaseMaterial, Composite, Material
from .proportions import to_decimal
from .references import SubstanceReference, parse_reference
from .shapes import SHAPE_TYPES, AnyShape, Shape
from .substances import Chemical, CompositeSubstance, HomogeneousSubstance, Mixture, Solution, Substance

logger = logging.getLogger(__name__)

DISCRIMINATOR = "$type"
MATERIAL_TYPE = ":Material:"
COMPOSITE_TYPE = ":Composite:"
SCHEMA_PACKAGE = "opensubstances.data"
SCHEMA_FILENAME = "substance.schema.json"

SUBSTANCE_TYPES: dict[str, type[Substance]] = {
    ":Chemical:": Chemical,
    ":HomogeneousSubstance:": HomogeneousSubstance,
    ":Mixture:": Mixture,
    ":Solution:": Solution,
}

AnySubstance = Annotated[Union[Chemical, HomogeneousSubstance, Mixture, Solution], Field(discriminator="type_name")]

_SUBSTANCE_ADAPTER: TypeAdapter[Any] = TypeAdapter(AnySubstance)
_SHAPE_ADAPTER: TypeAdapter[Any] = TypeAdapter(AnyShape)

_LEADING_KEYS = (DISCRIMINATOR, "id", "name")


@lru_cache(maxsize=1)
def load_schema() -> dict[str, Any]:
    """Return the packaged substance JSON Schema."""
    text = resources.files(SCHEMA_PACKAGE).joinpath(SCHEMA_FILENAME).read_text(encoding="utf-8")
    return json.loads(text)


def validate_substance_document(document: Any) -> None:
    """Check a substance document against the packaged JSON Schema.

    Raises:
        MalformedDocumentError: The document violates the schema.
    """
    validator = jsonschema.Draft7Validator(load_schema())
    errors = sorted(validator.iter_errors(document), key=lambda item: [str(part) for part in item.path])
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.path) or "<root>"
        raise MalformedDocumentError(
            f"Substance document failed schema validation at {location}: {first.message}",
            actual_value=first.instance,
            expected=first.validator,
        )


def parse_json(text: Union[str, bytes]) -> Any:
    """Parse JSON text, reading every non-integer number as an exact Decimal."""
    try:
        return json.loads(text, parse_float=Decimal)
    except json.JSONDecodeError as exc:
        raise MalformedDocumentError(f"Invalid JSON: {exc.msg}", actual_value=exc.pos, expected="JSON text") from exc
    except UnicodeDecodeError as exc:
        raise MalformedDocumentError(f"Invalid JSON encoding: {exc.reason}", actual_value=exc.start, expected="UTF-8 text") from exc


def to_json(value: Any, indent: Optional[int] = 2) -> str:
    """Emit JSON keeping key order and writing Decimals exactly.

    ``indent=None`` gives the compact form without spaces.

    Example:
        >>> to_json({"$type": ":Mixture:", "p": Decimal("0.250")}, indent=None)
        '{"$type":":Mixture:","p":0.250}'
    """
    return _encode_json(value, indent, 0)


def _encode_json(value: Any, indent: Optional[int], level: int) -> str:
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ValueError(f"Cannot write {value} as a JSON number")
        return str(value)
    if isinstance(value, Mapping):
        colon = ":" if indent is None else ": "
        parts = [
            f"{json.dumps(str(key), ensure_ascii=False)}{colon}{_encode_json(item, indent, level + 1)}"
            for key, item in value.items()
        ]
        return _wrap("{", "}", parts, indent, level)
    if isinstance(value, (list, tuple)):
        return _wrap("[", "]", [_encode_json(item, indent, level + 1) for item in value], indent, level)
    return json.dumps(value, ensure_ascii=False, allow_nan=False)


def _wrap(opening: str, closing: str, parts: list[str], indent: Optional[int], level: int) -> str:
    if not parts:
        return opening + closing
    if indent is None:
        return opening + ",".join(parts) + closing
    inner = "\n" + " " * (indent * (level + 1))
    return opening + inner + ("," + inner).join(parts) + "\n" + " " * (indent * level) + closing


def _ordered(document: Mapping[str, Any]) -> dict[str, Any]:
    ordered = {key: document[key] for key in _LEADING_KEYS if key in document}
    ordered.update((key, value) for key, value in document.items() if key not in ordered)
    return ordered


def peek_discriminator(tree: Any) -> str:
    """Read the ``"$type"`` tag of a document without decoding it."""
    if not isinstance(tree, Mapping):
        raise MalformedDocumentError("Document must be a JSON object.", actual_value=type(tree).__name__, expected="object")
    value = tree.get(DISCRIMINATOR)
    if not isinstance(value, str) or not value:
        raise MissingDiscriminatorError(DISCRIMINATOR)
    return value


def decode_constituents(raw: Any, homogeneous_only: bool = True) -> dict[SubstanceReference, Decimal]:
    """Read a proportion map of reference tokens to numbers.

    Substance constituent maps accept only ``HR:`` keys; material maps also
    accept ``SR:`` keys.
    """
    if not isinstance(raw, Mapping):
        raise MalformedDocumentError("Proportion map must be a JSON object.", actual_value=raw, expected="object")
    allowed = ("HR",) if homogeneous_only else ("SR", "HR")
    result: dict[SubstanceReference, Decimal] = {}
    for token, value in raw.items():
        key = parse_reference(token, allowed=allowed)
        if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
            raise MalformedDocumentError(
                f"Proportion for '{token}' must be a number.", actual_value=value, expected="number"
            )
        if value < 0:
            raise MalformedDocumentError(
                f"Proportion for '{token}' must not be negative.", actual_value=value, expected="proportion >= 0"
            )
        result[key] = to_decimal(value)
    return result


def encode_constituents(constituents: Mapping[SubstanceReference, Decimal]) -> dict[str, Decimal]:
    return {str(key): value for key, value in constituents.items()}


class SubstanceCodec:
    """Encode and decode substance documents."""

    name: ClassVar[str] = ""

    def _dump(self, substance: Substance) -> dict[str, Any]:
        raise NotImplementedError

    def _validate(self, cls: type[Substance], data: dict[str, Any]) -> Substance:
        raise NotImplementedError

    def encode(self, substance: Substance) -> dict[str, Any]:
        """Encode from the runtime class of substance."""
        return _ordered(self._dump(substance))

    def decode(
        self,
        tree: Any,
        fallback_to_ancestor: Optional[bool] = None,
        expected: type = Substance,
    ) -> Substance:
        """Decode a document tree.

        Parameters:
            tree: Parsed JSON object.
            fallback_to_ancestor: Decode unknown discriminators as the nearest
                ancestor. Defaults to the ``OPENSUBSTANCES_ANCESTOR_FALLBACK`` setting.
            expected: Class or capability the decoded substance must be an instance of.

        Raises:
            MissingDiscriminatorError: The document has no ``"$type"``.
            UnknownDiscriminatorError: The discriminator is unknown and fallback is off.
            MalformedDocumentError: The document is not a valid substance.
        """
        cls, data = _prepare(tree, fallback_to_ancestor)
        try:
            substance = self._validate(cls, data)
        except ValidationError as exc:
            raise MalformedDocumentError(
                f"Invalid {cls.__name__} document: {exc.error_count()} validation error(s).",
                actual_value=exc.errors(include_url=False),
                expected=cls.__name__,
            ) from exc
        if not isinstance(substance, expected):
            raise MalformedDocumentError(
                f"Expected {expected.__name__}, decoded {type(substance).__name__}.",
                actual_value=data[DISCRIMINATOR],
                expected=expected.__name__,
            )
        return substance


class ReflectiveCodec(SubstanceCodec):
    """Codec driven by the pydantic discriminated union."""

    name = "reflective"

    def _dump(self, substance: Substance) -> dict[str, Any]:
        return _SUBSTANCE_ADAPTER.dump_python(substance, by_alias=True, exclude_none=True)

    def _validate(self, cls: type[Substance], data: dict[str, Any]) -> Substance:
        return _SUBSTANCE_ADAPTER.validate_python(data)


class StaticCodec(SubstanceCodec):
    """Codec dispatching on the discriminator through an explicit table."""

    name = "static"

    def _dump(self, substance: Substance) -> dict[str, Any]:
        return substance.model_dump(by_alias=True, exclude_none=True)

    def _validate(self, cls: type[Substance], data: dict[str, Any]) -> Substance:
        return cls.model_validate(data)


CODECS: dict[str, SubstanceCodec] = {codec.name: codec for codec in (ReflectiveCodec(), StaticCodec())}


def get_codec(name: str = "reflective") -> SubstanceCodec:
    try:
        return CODECS[name]
    except KeyError as exc:
        raise InvalidArgumentError("codec", name, sorted(CODECS)) from exc


def _prepare(tree: Any, fallback_to_ancestor: Optional[bool]) -> tuple[type[Substance], dict[str, Any]]:
    discriminator = peek_discriminator(tree)
    data = dict(tree)
    cls = SUBSTANCE_TYPES.get(discriminator)
    if cls is None:
        if fallback_to_ancestor is None:
            fallback_to_ancestor = get_settings().ancestor_fallback
        if not fallback_to_ancestor:
            raise UnknownDiscriminatorError(discriminator, sorted(SUBSTANCE_TYPES))
        cls = Mixture if "constituents" in data else HomogeneousSubstance
        logger.warning("Decoding unknown discriminator %s as %s", discriminator, cls.__name__)
        data[DISCRIMINATOR] = cls.model_fields["type_name"].default
    if issubclass(cls, CompositeSubstance) and "constituents" in data:
        data["constituents"] = decode_constituents(data["constituents"], homogeneous_only=True)
    return cls, data


def encode_substance(substance: Substance, codec: str = "reflective") -> dict[str, Any]:
    return get_codec(codec).encode(substance)


def decode_substance(
    tree: Any,
    codec: str = "reflective",
    fallback_to_ancestor: Optional[bool] = None,
    expected: type = Substance,
) -> Substance:
    return get_codec(codec).decode(tree, fallback_to_ancestor=fallback_to_ancestor, expected=expected)


def dumps_substance(substance: Substance, codec: str = "reflective", indent: Optional[int] = 2) -> str:
    return to_json(encode_substance(substance, codec), indent=indent)


def loads_substance(
    text: Union[str, bytes],
    codec: str = "reflective",
    fallback_to_ancestor: Optional[bool] = None,
    expected: type = Substance,
) -> Substance:
    return decode_substance(parse_json(text), codec, fallback_to_ancestor, expected)


def dumps_reference(reference: SubstanceReference) -> str:
    return json.dumps(str(reference))


def loads_reference(text: Union[str, bytes], homogeneous_only: bool = False) -> SubstanceReference:
    """Read a JSON string holding a reference token."""
    allowed = ("HR",) if homogeneous_only else ("SR", "HR")
    return parse_reference(parse_json(text), allowed=allowed)


def dump_shape(shape: Shape) -> dict[str, Any]:
    return _ordered(_SHAPE_ADAPTER.dump_python(shape, by_alias=True))


def load_shape(tree: Any) -> Shape:
    discriminator = peek_discriminator(tree)
    if discriminator not in SHAPE_TYPES:
        raise UnknownDiscriminatorError(discriminator, sorted(SHAPE_TYPES))
    try:
        return _SHAPE_ADAPTER.validate_python(dict(tree))
    except ValidationError as exc:
        raise MalformedDocumentError(
            f"Invalid shape document: {exc.error_count()} validation error(s).",
            actual_value=exc.errors(include_url=False),
            expected=discriminator,
        ) from exc


def dump_material(material: BaseMaterial) -> dict[str, Any]:
    """Encode a material or composite, components included."""
    if isinstance(material, Composite):
        document: dict[str, Any] = {
            DISCRIMINATOR: COMPOSITE_TYPE,
            "shape": dump_shape(material.shape),
            "components": [dump_material(component) for component in material.components],
        }
        document.update(material.overrides())
        return document
    document = {
        DISCRIMINATOR: MATERIAL_TYPE,
        "shape": dump_shape(material.shape),
        "constituents": encode_constituents(material.constituents),
        "mass": material.mass,
        "density": material.density,
    }
    if material.temperature is not None:
        document["temperature"] = material.temperature
    return document


def load_material(tree: Any) -> BaseMaterial:
    """Decode a material document; objects with ``components`` become composites."""
    if not isinstance(tree, Mapping):
        raise MalformedDocumentError("Material document must be a JSON object.", actual_value=tree, expected="object")
    shape = load_shape(tree["shape"]) if "shape" in tree else None
    try:
        if "components" in tree:
            components = tree["components"]
            if not isinstance(components, list):
                raise MalformedDocumentError("components must be a JSON array.", actual_value=components, expected="array")
            return Composite(
                [load_material(component) for component in components],
                shape=shape,
                mass=tree.get("mass"),
                density=tree.get("density"),
                temperature=tree.get("temperature"),
            )
        return Material(
            decode_constituents(tree.get("constituents", {}), homogeneous_only=False),
            shape=shape,
            mass=tree.get("mass"),
            density=tree.get("density"),
            temperature=tree.get("temperature"),
        )
    except TypeError as exc:
        raise MalformedDocumentError(f"Invalid material document: {exc}", actual_value=dict(tree), expected="material") from exc


def dumps_material(material: BaseMaterial, indent: Optional[int] = 2) -> str:
    return to_json(dump_material(material), indent=indent)


def loads_material(text: Union[str, bytes]) -> BaseMaterial:
    return load_material(parse_json(text))


def read_document(path: Union[str, Path]) -> Any:
    """Read and parse a JSON document from disk.

    Raises:
        InvalidArgumentError: The file cannot be read.
        MalformedDocumentError: The file is not UTF-8 JSON.
    """
    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        raise InvalidArgumentError("path", str(path), "a readable JSON file") from exc
    return parse_json(data)
