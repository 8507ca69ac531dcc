from __future__ import annotations

import logging
from decimal import Decimal
from pathlib import Path

import pytest

from opensubstances.catalog import Substances
from opensubstances.errors import (
    InvalidArgumentError,
    MalformedDocumentError,
    MalformedReferenceError,
    MissingDiscriminatorError,
    UnknownDiscriminatorError,
)
from opensubstances.references import HomogeneousReference, SubstanceReference
from opensubstances.registry import get_registry
from opensubstances.serialization import (
    ReflectiveCodec,
    StaticCodec,
    dumps_reference,
    dumps_substance,
    encode_substance,
    get_codec,
    loads_reference,
    loads_substance,
    parse_json,
    read_document,
    to_json,
    validate_substance_document,
)
from opensubstances.substances import Chemical, Homogeneous, HomogeneousSubstance, Mixture, Solution

CODECS = ["reflective", "static"]


def _catalog():
    registry = get_registry()
    return [registry.get_substance(id) for id in Substances.ids()]


def test_codecs_produce_identical_documents() -> None:
    reflective, static = ReflectiveCodec(), StaticCodec()
    for substance in _catalog():
        assert reflective.encode(substance) == static.encode(substance), substance.id


@pytest.mark.parametrize("codec", CODECS)
def test_catalog_round_trips_exactly(codec: str) -> None:
    for substance in _catalog():
        text = dumps_substance(substance, codec)
        decoded = loads_substance(text, codec)
        assert type(decoded) is type(substance), substance.id
        assert decoded.model_dump() == substance.model_dump(), substance.id
        assert dumps_substance(decoded, codec) == text


@pytest.mark.parametrize("codec", CODECS)
def test_encoded_catalog_documents_satisfy_the_schema(codec: str) -> None:
    for substance in _catalog():
        validate_substance_document(encode_substance(substance, codec))


def test_discriminator_and_identity_come_first() -> None:
    text = dumps_substance(Substances.WATER, indent=None)
    assert text.startswith('{"$type":":Chemical:","id":"water","name":"Water"')
    assert '"formula":"H₂O"' in text


def test_proportions_are_written_exactly() -> None:
    text = dumps_substance(Substances.BRICK, indent=None)
    assert '"constituents":{"HR:kaolinite":0.226,"HR:silicon_dioxide":0.6,' in text


@pytest.mark.parametrize("codec", CODECS)
def test_ad_hoc_mixture_round_trip(codec: str) -> None:
    mixture = Substances.WATER.add_constituent(Substances.BENZENE, 0.25)
    decoded = loads_substance(dumps_substance(mixture, codec), codec)
    assert isinstance(decoded, Mixture)
    assert decoded.id == mixture.id
    assert decoded.constituents == {
        HomogeneousReference("water"): Decimal("0.75"),
        HomogeneousReference("benzene"): Decimal("0.25"),
    }


@pytest.mark.parametrize("codec", CODECS)
def test_expected_type_is_enforced(codec: str) -> None:
    water = dumps_substance(Substances.WATER, codec)
    assert isinstance(loads_substance(water, codec, expected=Chemical), Chemical)
    assert isinstance(loads_substance(dumps_substance(Substances.SEAWATER, codec), codec, expected=Homogeneous), Solution)
    with pytest.raises(MalformedDocumentError):
        loads_substance(water, codec, expected=Mixture)


@pytest.mark.parametrize("codec", CODECS)
def test_missing_discriminator(codec: str) -> None:
    with pytest.raises(MissingDiscriminatorError) as excinfo:
        loads_substance('{"id": "x", "name": "X"}', codec)
    assert excinfo.value.error_code == "SER_001"


@pytest.mark.parametrize("codec", CODECS)
def test_unknown_discriminator_without_fallback(codec: str) -> None:
    with pytest.raises(UnknownDiscriminatorError) as excinfo:
        loads_substance('{"$type": ":Alloy:", "id": "x", "name": "X"}', codec, fallback_to_ancestor=False)
    assert excinfo.value.error_code == "SER_002"


@pytest.mark.parametrize("codec", CODECS)
def test_unknown_discriminator_falls_back_to_an_ancestor(codec: str, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="opensubstances.serialization"):
        plain = loads_substance(
            '{"$type": ":Alloy:", "id": "x", "name": "X", "melting_point": 900}',
            codec,
            fallback_to_ancestor=True,
        )
        blended = loads_substance(
            '{"$type": ":Alloy:", "id": "y", "name": "Y", "constituents": {"HR:copper": 0.6, "HR:zinc": 0.4}}',
            codec,
            fallback_to_ancestor=True,
        )
    assert type(plain) is HomogeneousSubstance
    assert plain.melting_point == pytest.approx(900)
    assert type(blended) is Mixture
    assert blended.get_proportion(Substances.COPPER) == Decimal("0.6")
    assert "Decoding unknown discriminator :Alloy:" in caplog.text


@pytest.mark.parametrize("codec", CODECS)
def test_general_references_are_rejected_in_substance_constituents(codec: str) -> None:
    with pytest.raises(MalformedReferenceError):
        loads_substance(
            '{"$type": ":Mixture:", "id": "m", "name": "M", "constituents": {"SR:water": 1}}',
            codec,
        )


@pytest.mark.parametrize(
    "text",
    [
        '{"$type": ":Chemical:", "id": "x", "name": "", "formula": "H2O"}',
        '{"$type": ":Chemical:", "id": "x", "name": "X", "formula": "Xq2"}',
        '{"$type": ":Mixture:", "id": "m", "name": "M", "constituents": {"HR:water": "lots"}}',
        '{"$type": ":Mixture:", "id": "m", "name": "M", "constituents": []}',
        '{"$type": ":Mixture:", "id": "m", "name": "M", "constituents": {"HR:water": -1, "HR:benzene": 2}}',
        "[1, 2]",
        "{not json",
    ],
)
def test_malformed_documents(text: str) -> None:
    with pytest.raises(MalformedDocumentError) as excinfo:
        loads_substance(text)
    assert excinfo.value.error_code == "SER_003"


def test_invalid_utf8_is_a_malformed_document() -> None:
    with pytest.raises(MalformedDocumentError) as excinfo:
        loads_substance(b'{"$type": ":Chemical:", "id": "x", "name": "\xff"}')
    assert excinfo.value.expected == "UTF-8 text"


def test_read_document(tmp_path: Path) -> None:
    path = tmp_path / "water.json"
    path.write_text(dumps_substance(Substances.WATER), encoding="utf-8")
    assert read_document(path)["id"] == "water"
    with pytest.raises(InvalidArgumentError):
        read_document(tmp_path / "missing.json")


def test_schema_violations_are_reported() -> None:
    with pytest.raises(MalformedDocumentError) as excinfo:
        validate_substance_document({"$type": ":Mixture:", "id": "m", "name": "M"})
    assert "constituents" in excinfo.value.description
    with pytest.raises(MalformedDocumentError):
        validate_substance_document(
            {"$type": ":Mixture:", "id": "m", "name": "M", "constituents": {"SR:water": 1}}
        )


def test_unknown_codec() -> None:
    with pytest.raises(InvalidArgumentError):
        get_codec("xml")


def test_reference_documents() -> None:
    assert dumps_reference(HomogeneousReference("water")) == '"HR:water"'
    assert loads_reference('"SR:brick"') == SubstanceReference("brick")
    assert loads_reference('"HR:water"', homogeneous_only=True) == HomogeneousReference("water")
    with pytest.raises(MalformedReferenceError):
        loads_reference('"SR:brick"', homogeneous_only=True)


def test_json_helpers() -> None:
    assert parse_json('{"p": 0.1}') == {"p": Decimal("0.1")}
    assert to_json({"a": [1, Decimal("0.50")]}) == '{\n  "a": [\n    1,\n    0.50\n  ]\n}'
    assert to_json({}, indent=None) == "{}"
    with pytest.raises(ValueError):
        to_json(Decimal("NaN"))
