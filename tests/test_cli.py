from __future__ import annotations

import json
from pathlib import Path

import pytest

from opensubstances.catalog import Substances
from opensubstances.cli import main
from opensubstances.materials import Material
from opensubstances.serialization import dumps_material, dumps_substance
from opensubstances.shapes import Cuboid


def _run_json(capsys: pytest.CaptureFixture[str], argv: list[str]) -> tuple[int, dict]:
    code = main([*argv, "--json"])
    return code, json.loads(capsys.readouterr().out)


def test_show_by_id_and_name(capsys: pytest.CaptureFixture[str]) -> None:
    code, payload = _run_json(capsys, ["show", "water"])
    assert code == 0
    assert payload["ok"] is True
    assert payload["document"]["$type"] == ":Chemical:"
    assert payload["document"]["id"] == "water"

    assert main(["show", "Salt"]) == 0
    out = capsys.readouterr().out
    assert "ok: True" in out
    assert "name: Sodium Chloride" in out


def test_show_static_codec(capsys: pytest.CaptureFixture[str]) -> None:
    code, payload = _run_json(capsys, ["show", "brick", "--codec", "static"])
    assert code == 0
    assert payload["document"]["constituents"]["HR:silicon_dioxide"] == 0.6


def test_show_unknown_substance(capsys: pytest.CaptureFixture[str]) -> None:
    code, payload = _run_json(capsys, ["show", "unobtainium"])
    assert code == 2
    assert payload["ok"] is False
    assert payload["errors"][0]["error_code"] == "REG_001"


def test_list_by_category(capsys: pytest.CaptureFixture[str]) -> None:
    code, payload = _run_json(capsys, ["list", "--category", "gem"])
    assert code == 0
    ids = [item["id"] for item in payload["substances"]]
    assert "sapphire" in ids
    assert "water" not in ids

    assert main(["list"]) == 0
    assert "water: Water [H₂O]" in capsys.readouterr().out


def test_formula(capsys: pytest.CaptureFixture[str]) -> None:
    code, payload = _run_json(capsys, ["formula", "H2O"])
    assert code == 0
    assert payload["formula"] == "H₂O"
    assert payload["charge"] == 0
    assert payload["elements"] == ["H", "O"]
    assert payload["average_mass"] == pytest.approx(18.015, abs=1e-3)


def test_invalid_formula(capsys: pytest.CaptureFixture[str]) -> None:
    code, payload = _run_json(capsys, ["formula", "H2(O"])
    assert code == 2
    assert payload["errors"][0]["error_code"] == "FRM_001"


def test_isotope(capsys: pytest.CaptureFixture[str]) -> None:
    code, payload = _run_json(capsys, ["isotope", "1:2"])
    assert code == 0
    assert payload["symbol"] == "H"
    assert payload["mass_number"] == 2

    code, payload = _run_json(capsys, ["isotope", "x"])
    assert code == 2
    assert payload["errors"][0]["error_code"] == "ISO_001"


def test_decode_substance_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "brass.json"
    path.write_text(dumps_substance(Substances.BRASS), encoding="utf-8")
    code, payload = _run_json(capsys, ["decode", str(path)])
    assert code == 0
    assert payload["document"]["id"] == "brass"
    assert payload["document"]["constituents"] == {"HR:copper": 0.65, "HR:zinc": 0.35}


def test_decode_unknown_type_needs_fallback(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "alloy.json"
    path.write_text('{"$type": ":Alloy:", "id": "alloy", "name": "Alloy", "melting_point": 900}', encoding="utf-8")
    code, payload = _run_json(capsys, ["decode", str(path)])
    assert code == 2
    assert payload["errors"][0]["error_code"] == "SER_002"

    code, payload = _run_json(capsys, ["decode", str(path), "--fallback"])
    assert code == 0
    assert payload["document"]["$type"] == ":HomogeneousSubstance:"


def test_decode_material_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    material = Material.from_substance(Substances.WATER, Cuboid(axis_x=1, axis_y=1, axis_z=1), density=1000)
    path = tmp_path / "material.json"
    path.write_text(dumps_material(material), encoding="utf-8")
    code, payload = _run_json(capsys, ["decode", str(path)])
    assert code == 0
    assert payload["document"]["$type"] == ":Material:"
    assert payload["document"]["mass"] == 1000


def test_decode_missing_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code, payload = _run_json(capsys, ["decode", str(tmp_path / "missing.json")])
    assert code == 2
    assert payload["errors"][0]["error_code"] == "ARG_001"


def test_decode_non_utf8_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "latin1.json"
    path.write_bytes('{"$type": ":Chemical:", "id": "x", "name": "Café", "formula": "H2O"}'.encode("latin-1"))
    code, payload = _run_json(capsys, ["decode", str(path)])
    assert code == 2
    assert payload["errors"][0]["error_code"] == "SER_003"
