"""Molecular formulas: nuclide counts plus an ionic charge.

Formulas are immutable values keyed by isotope key (``"8:16"``). Text output
uses Unicode subscripts for counts and superscripts for mass numbers and
charge.

Example:
    >>> from opensubstances.formula import Formula
    >>> str(Formula.parse("H2O"))
    'H₂O'
    >>> sulfate = Formula.parse("SO4-2")
    >>> str(sulfate), sulfate.charge, sulfate.number_of_atoms
    ('O₄S²⁻', -2, 5)
    >>> str(Formula.parse("CuSO4.5H2O"))
    'CuH₁₀O₉S'
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from decimal import ROUND_HALF_EVEN, Decimal
from types import MappingProxyType
from typing import ClassVar, Iterator, Mapping, Optional, Union

from .elements import Element, Isotope, get_periodic_table, isotope_key, try_parse_isotope_key
from .errors import FormulaParseError, InvalidArgumentError

EMPTY_TEXT = "<empty>"

_SUBSCRIPT_DIGITS = "₀₁₂₃₄₅₆₇₈₉"
_SUPERSCRIPT_DIGITS = "⁰¹²³⁴⁵⁶⁷⁸⁹"
_TO_SUBSCRIPT = str.maketrans("0123456789", _SUBSCRIPT_DIGITS)
_TO_SUPERSCRIPT = str.maketrans("0123456789", _SUPERSCRIPT_DIGITS)
_SUPERSCRIPT_PLUS = "⁺"
_SUPERSCRIPT_MINUS = "⁻"
_HYDRATE_SEPARATORS = ".·"
_IGNORED = " \t,;:"

IsotopeLike = Union[str, Isotope]
Scalar = Union[int, float, Decimal]


def to_subscript(value: int) -> str:
    return str(value).translate(_TO_SUBSCRIPT)


def to_superscript(value: int) -> str:
    return str(value).translate(_TO_SUPERSCRIPT)


def _charge_text(charge: int) -> str:
    sign = _SUPERSCRIPT_PLUS if charge > 0 else _SUPERSCRIPT_MINUS
    return to_superscript(abs(charge)) + sign


@dataclass(frozen=True)
class _Token:
    kind: str
    value: Union[int, str] = 0
    script: str = "ascii"


def _tokenize(text: str) -> list[_Token]:
    tokens: list[_Token] = []
    index = 0
    while index < len(text):
        char = text[index]
        for script, digits in (("ascii", "0123456789"), ("sub", _SUBSCRIPT_DIGITS), ("sup", _SUPERSCRIPT_DIGITS)):
            if char in digits:
                end = index
                while end < len(text) and text[end] in digits:
                    end += 1
                value = int("".join(str(digits.index(c)) for c in text[index:end]))
                tokens.append(_Token("number", value, script))
                index = end
                break
        else:
            if char in "+-":
                tokens.append(_Token("sign", 1 if char == "+" else -1))
            elif char in (_SUPERSCRIPT_PLUS, _SUPERSCRIPT_MINUS):
                tokens.append(_Token("sign", 1 if char == _SUPERSCRIPT_PLUS else -1, "sup"))
            elif char in "([":
                tokens.append(_Token("open", ")" if char == "(" else "]"))
            elif char in ")]":
                tokens.append(_Token("close", char))
            elif char in _HYDRATE_SEPARATORS:
                tokens.append(_Token("dot"))
            elif char == "{":
                end = text.find("}", index)
                digits_text = text[index + 1 : end] if end != -1 else ""
                if not digits_text.isascii() or not digits_text.isdigit():
                    raise FormulaParseError(text, "Mass numbers must be written as {<digits>} before a symbol.")
                tokens.append(_Token("mass", int(digits_text)))
                index = end
            elif char.isascii() and char.isupper():
                symbol = char
                if index + 1 < len(text) and text[index + 1].isascii() and text[index + 1].islower():
                    symbol += text[index + 1]
                    index += 1
                tokens.append(_Token("symbol", symbol))
            elif char not in _IGNORED:
                raise FormulaParseError(text, f"Unexpected character '{char}'.")
            index += 1
    return tokens


class _Parser:
    """Recursive-descent reader over the token list produced by :func:`_tokenize`."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.tokens = _tokenize(text)
        self.position = 0
        self.charge: Optional[int] = None
        self.table = get_periodic_table()

    def _peek(self, offset: int = 0) -> Optional[_Token]:
        index = self.position + offset
        return self.tokens[index] if index < len(self.tokens) else None

    def _fail(self, reason: str) -> FormulaParseError:
        return FormulaParseError(self.text, reason)

    def parse(self) -> tuple[Counter, int]:
        counts = self._sequence(closer=None)
        return counts, self.charge or 0

    def _count(self) -> int:
        token = self._peek()
        if token is not None and token.kind == "number" and token.script in ("ascii", "sub"):
            self.position += 1
            return int(token.value)
        return 1

    def _sequence(self, closer: Optional[str]) -> Counter:
        total: Counter = Counter()
        part: Counter = Counter()
        multiplier = 1
        part_start = True
        mass_number: Optional[int] = None
        while self.position < len(self.tokens):
            token = self.tokens[self.position]
            if token.kind == "close":
                if token.value != closer:
                    raise self._fail(f"Unexpected '{token.value}'.")
                break
            if token.kind == "dot":
                if mass_number is not None:
                    raise self._fail("Mass number is not followed by an element symbol.")
                for key, count in part.items():
                    total[key] += count * multiplier
                part, multiplier, part_start = Counter(), 1, True
                self.position += 1
                continue
            if part_start and token.kind == "number" and token.script == "ascii":
                multiplier = int(token.value)
                part_start = False
                self.position += 1
                continue
            part_start = False
            if mass_number is not None and token.kind != "symbol":
                raise self._fail("Mass number is not followed by an element symbol.")
            if token.kind == "open":
                self.position += 1
                group = self._sequence(closer=str(token.value))
                if self._peek() is None:
                    raise self._fail(f"Missing closing '{token.value}'.")
                self.position += 1
                group_count = self._count()
                for key, count in group.items():
                    part[key] += count * group_count
            elif token.kind == "mass":
                mass_number = int(token.value)
                self.position += 1
            elif token.kind == "number" and token.script == "sup":
                self.position += 1
                following = self._peek()
                if following is not None and following.kind == "sign":
                    self.charge = int(token.value) * int(following.value)
                    self.position += 1
                elif following is None:
                    self.charge = int(token.value)
                else:
                    mass_number = int(token.value)
            elif token.kind == "sign":
                self.position += 1
                following = self._peek()
                if following is not None and following.kind == "number" and following.script in ("ascii", "sup"):
                    self.charge = int(token.value) * int(following.value)
                    self.position += 1
                else:
                    self.charge = int(token.value)
            elif token.kind == "symbol":
                self.position += 1
                isotope = self._isotope(str(token.value), mass_number)
                mass_number = None
                part[isotope_key(isotope)] += self._count()
            else:
                raise self._fail(f"Unexpected number {token.value}.")
        if mass_number is not None:
            raise self._fail("Mass number is not followed by an element symbol.")
        for key, count in part.items():
            total[key] += count * multiplier
        return total

    def _isotope(self, symbol: str, mass_number: Optional[int]) -> Isotope:
        element = self.table.try_get_element_by_symbol(symbol)
        if element is None:
            raise self._fail(f"Unknown element symbol '{symbol}'.")
        if mass_number is None:
            return self.table.get_common_isotope(element)
        isotope = self.table.find_isotope(element.atomic_number, mass_number)
        if isotope is None:
            raise self._fail(f"{symbol} has no isotope with mass number {mass_number}.")
        return isotope


class Formula:
    """An immutable chemical formula.

    Args:
        counts: Nuclide counts keyed by isotope key or :class:`Isotope`.
        charge: Net ionic charge.

    Raises:
        InvalidArgumentError: A key names no known isotope or a count is negative.
    """

    __slots__ = ("_counts", "_charge")

    EMPTY: ClassVar["Formula"]

    def __init__(self, counts: Optional[Mapping[IsotopeLike, int]] = None, charge: int = 0) -> None:
        normalized: dict[str, int] = {}
        for key, count in (counts or {}).items():
            text_key = isotope_key(key) if isinstance(key, Isotope) else str(key)
            if try_parse_isotope_key(text_key) is None:
                raise InvalidArgumentError("counts", key, "a known isotope key such as '8:16'")
            if count < 0:
                raise InvalidArgumentError("counts", count, "a non-negative count")
            if count:
                normalized[text_key] = normalized.get(text_key, 0) + int(count)
        self._counts = normalized
        self._charge = int(charge)

    @classmethod
    def parse(cls, text: Optional[str]) -> "Formula":
        """Parse formula text.

        Raises:
            FormulaParseError: The text is blank or not a formula.
        """
        if text is None or not text.strip():
            raise FormulaParseError(text, "Formula text is empty.")
        if text.strip().lower() == EMPTY_TEXT:
            return cls.EMPTY
        counts, charge = _Parser(text).parse()
        return cls(counts, charge)

    @classmethod
    def try_parse(cls, text: Optional[str]) -> Optional["Formula"]:
        try:
            return cls.parse(text)
        except FormulaParseError:
            return None

    @classmethod
    def of(cls, *isotopes: Union[Isotope, tuple[Isotope, int]], charge: int = 0) -> "Formula":
        """Build a formula from isotopes, optionally paired with counts."""
        counts: Counter = Counter()
        for item in isotopes:
            isotope, count = item if isinstance(item, tuple) else (item, 1)
            counts[isotope_key(isotope)] += count
        return cls(counts, charge)

    @property
    def counts(self) -> Mapping[str, int]:
        return MappingProxyType(self._counts)

    @property
    def charge(self) -> int:
        return self._charge

    @property
    def is_empty(self) -> bool:
        return not self._counts

    @property
    def number_of_atoms(self) -> int:
        return sum(self._counts.values())

    @property
    def nuclides(self) -> list[tuple[Isotope, int]]:
        """Isotopes with their counts in display order."""
        table = get_periodic_table()
        items = []
        for key, count in self._counts.items():
            atomic_number, mass_number = (int(part) for part in key.split(":"))
            items.append((table.find_isotope(atomic_number, mass_number), count))
        carbons = sorted((n for n in items if n[0].atomic_number == 6), key=lambda n: -n[0].mass_number)
        ordered = list(carbons)
        rest = items
        if carbons:
            ordered += sorted((n for n in items if n[0].atomic_number == 1), key=lambda n: -n[0].mass_number)
            rest = [n for n in items if n[0].atomic_number not in (1, 6)]
        ordered += sorted(rest, key=lambda n: (n[0].symbol, -n[0].mass_number))
        return ordered

    @property
    def isotopes(self) -> list[Isotope]:
        return [isotope for isotope, _ in self.nuclides]

    @property
    def elements(self) -> list[Element]:
        seen: dict[int, Element] = {}
        for isotope, _ in self.nuclides:
            seen.setdefault(isotope.atomic_number, isotope.element)
        return list(seen.values())

    @property
    def average_mass(self) -> float:
        """Sum of element average masses in g/mol."""
        return sum(isotope.element.average_mass * count for isotope, count in self.nuclides)

    @property
    def monoisotopic_mass(self) -> float:
        return sum(isotope.atomic_mass * count for isotope, count in self.nuclides)

    def __add__(self, other: "Formula") -> "Formula":
        if not isinstance(other, Formula):
            return NotImplemented
        counts = Counter(self._counts)
        counts.update(other._counts)
        return Formula(counts, self._charge + other._charge)

    def __sub__(self, other: "Formula") -> "Formula":
        if not isinstance(other, Formula):
            return NotImplemented
        counts = dict(self._counts)
        for key, count in other._counts.items():
            if key in counts:
                remaining = counts[key] - count
                if remaining <= 0:
                    del counts[key]
                else:
                    counts[key] = remaining
        return Formula(counts, self._charge - other._charge)

    def __mul__(self, factor: Scalar) -> "Formula":
        if factor < 0:
            raise InvalidArgumentError("factor", factor, "a non-negative number")
        return self._scale(Decimal(str(factor)), divide=False)

    __rmul__ = __mul__

    def __truediv__(self, divisor: Scalar) -> "Formula":
        if divisor <= 0:
            raise InvalidArgumentError("divisor", divisor, "a positive number")
        return self._scale(Decimal(str(divisor)), divide=True)

    def _scale(self, operand: Decimal, divide: bool) -> "Formula":
        def apply(value: int) -> int:
            scaled = Decimal(value) / operand if divide else Decimal(value) * operand
            return int(scaled.to_integral_value(rounding=ROUND_HALF_EVEN))

        counts = {key: apply(count) for key, count in self._counts.items()}
        return Formula({key: count for key, count in counts.items() if count}, apply(self._charge))

    def add(self, isotope: Isotope, amount: int = 1) -> "Formula":
        return self + Formula({isotope: amount})

    def subtract(self, isotope: Isotope, amount: int = 1) -> "Formula":
        return self - Formula({isotope: amount})

    def remove(self, *items: Union[Isotope, Element]) -> "Formula":
        """Drop every count of the given isotopes or elements."""
        counts = dict(self._counts)
        for item in items:
            if isinstance(item, Element):
                prefix = f"{item.atomic_number}:"
                for key in [k for k in counts if k.startswith(prefix)]:
                    del counts[key]
            else:
                counts.pop(isotope_key(item), None)
        return Formula(counts, self._charge)

    def contains(self, item: Union["Formula", Isotope, Element]) -> bool:
        """Whether every nuclide of item is present in at least the same amount."""
        if isinstance(item, Formula):
            return all(self._counts.get(key, 0) >= count for key, count in item._counts.items())
        if isinstance(item, Element):
            prefix = f"{item.atomic_number}:"
            return any(key.startswith(prefix) for key in self._counts)
        return isotope_key(item) in self._counts

    __contains__ = contains

    def __iter__(self) -> Iterator[tuple[Isotope, int]]:
        return iter(self.nuclides)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Formula):
            return NotImplemented
        return self._charge == other._charge and self._counts == other._counts

    def __hash__(self) -> int:
        return hash((frozenset(self._counts.items()), self._charge))

    def __str__(self) -> str:
        parts = []
        for isotope, count in self.nuclides:
            parts.append(str(isotope))
            if count > 1:
                parts.append(to_subscript(count))
        if self._charge:
            parts.append(_charge_text(self._charge))
        return "".join(parts) or EMPTY_TEXT

    def __repr__(self) -> str:
        return f"Formula({str(self)!r})"


Formula.EMPTY = Formula()
