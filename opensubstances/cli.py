"""OpenSubstances command line interface."""

from __future__ import annotations

import argparse
import json
import logging
from typing import Any

from .config import get_settings
from .elements import parse_isotope_key
from .errors import InvalidArgumentError, SubstanceError, SubstanceNotFoundError
from .formula import Formula
from .registry import get_registry
from .serialization import (
    COMPOSITE_TYPE,
    MATERIAL_TYPE,
    CODECS,
    decode_substance,
    dump_material,
    encode_substance,
    load_material,
    peek_discriminator,
    read_document,
    to_json,
    validate_substance_document,
)
from .substances import Chemical, Substance


def _substance_summary(substance: Substance) -> dict[str, Any]:
    summary: dict[str, Any] = {"id": substance.id, "name": substance.name, "type": substance.type_name}
    if isinstance(substance, Chemical):
        summary["formula"] = str(substance.formula)
    return summary


def _print_output(payload: dict[str, Any], *, as_json: bool) -> None:
    if as_json:
        print(to_json(payload, indent=None))
        return

    if "ok" in payload:
        print(f"ok: {payload['ok']}")
    document = payload.get("document")
    if isinstance(document, dict):
        for key, value in document.items():
            if isinstance(value, dict):
                print(f"{key}:")
                for inner_key, inner_value in value.items():
                    print(f"  {inner_key}: {inner_value}")
            else:
                print(f"{key}: {value}")
    substances = payload.get("substances")
    if isinstance(substances, list):
        for item in substances:
            formula = f" [{item['formula']}]" if "formula" in item else ""
            print(f"{item['id']}: {item['name']}{formula}")
    for key in ("formula", "charge", "atoms", "average_mass", "monoisotopic_mass", "key", "symbol", "mass_number"):
        if key in payload:
            print(f"{key}: {payload[key]}")

    errors = payload.get("errors")
    if isinstance(errors, list) and errors:
        print("errors:")
        for item in errors:
            print(f"  - {item.get('error_code', '<unknown>')}: {item.get('description', '')}")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="opensubstances")
    subparsers = parser.add_subparsers(dest="command", required=True)

    show_parser = subparsers.add_parser("show", help="Show a catalog or registered substance")
    show_parser.add_argument("substance", help="Substance id, name or common name")
    show_parser.add_argument("--codec", choices=sorted(CODECS), default="reflective")
    show_parser.add_argument("--json", action="store_true", help="Emit JSON output")

    list_parser = subparsers.add_parser("list", help="List registered substances")
    list_parser.add_argument("--category", help="Only substances carrying this category")
    list_parser.add_argument("--json", action="store_true", help="Emit JSON output")

    formula_parser = subparsers.add_parser("formula", help="Parse a chemical formula")
    formula_parser.add_argument("text", help="Formula such as H2O, SO4-2 or CuSO4.5H2O")
    formula_parser.add_argument("--json", action="store_true", help="Emit JSON output")

    isotope_parser = subparsers.add_parser("isotope", help="Look up an isotope key")
    isotope_parser.add_argument("key", help="Isotope key such as 8:16")
    isotope_parser.add_argument("--json", action="store_true", help="Emit JSON output")

    decode_parser = subparsers.add_parser("decode", help="Decode a substance or material JSON file")
    decode_parser.add_argument("path", help="Path to a JSON document")
    decode_parser.add_argument("--codec", choices=sorted(CODECS), default="reflective")
    decode_parser.add_argument(
        "--fallback", action="store_true", help="Decode unknown substance types as their nearest ancestor"
    )
    decode_parser.add_argument("--json", action="store_true", help="Emit JSON output")

    return parser


def _run(args: argparse.Namespace) -> int:
    if args.command == "show":
        substance = get_registry().resolve(args.substance)
        if substance is None:
            raise SubstanceNotFoundError(args.substance)
        payload: dict[str, Any] = {"ok": True, "document": encode_substance(substance, args.codec)}
        _print_output(payload, as_json=bool(args.json))
        return 0

    if args.command == "list":
        substances = get_registry().get_all()
        if args.category:
            substances = [substance for substance in substances if args.category in substance.categories]
        payload = {"ok": True, "substances": [_substance_summary(substance) for substance in substances]}
        _print_output(payload, as_json=bool(args.json))
        return 0

    if args.command == "formula":
        formula = Formula.parse(args.text)
        payload = {
            "ok": True,
            "formula": str(formula),
            "charge": formula.charge,
            "atoms": formula.number_of_atoms,
            "elements": [element.symbol for element in formula.elements],
            "average_mass": formula.average_mass,
            "monoisotopic_mass": formula.monoisotopic_mass,
        }
        _print_output(payload, as_json=bool(args.json))
        return 0

    if args.command == "isotope":
        isotope = parse_isotope_key(args.key)
        payload = {
            "ok": True,
            "key": isotope.key,
            "symbol": isotope.symbol,
            "atomic_number": isotope.atomic_number,
            "mass_number": isotope.mass_number,
            "relative_abundance": isotope.relative_abundance,
            "is_radioactive": isotope.is_radioactive,
        }
        _print_output(payload, as_json=bool(args.json))
        return 0

    if args.command == "decode":
        tree = read_document(args.path)
        if peek_discriminator(tree) in (MATERIAL_TYPE, COMPOSITE_TYPE):
            document = dump_material(load_material(tree))
        else:
            if not args.fallback:
                validate_substance_document(tree)
            substance = decode_substance(tree, args.codec, fallback_to_ancestor=bool(args.fallback) or None)
            document = encode_substance(substance, args.codec)
        _print_output({"ok": True, "document": document}, as_json=bool(args.json))
        return 0

    raise InvalidArgumentError("command", args.command, ["show", "list", "formula", "isotope", "decode"])


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=get_settings().log_level, format="%(levelname)s %(name)s: %(message)s")
    try:
        return _run(args)
    except SubstanceError as exc:
        payload = {"ok": False, "errors": [json.loads(exc.to_payload())]}
        as_json = bool(getattr(args, "json", False))
        _print_output(payload, as_json=as_json)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
