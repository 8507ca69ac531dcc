"""Error taxonomy shared by every OpenSubstances module.

Each error carries a stable code and enough context to correct the input that
caused it.

Example:
    >>> from opensubstances.errors import FormulaParseError
    >>> err = FormulaParseError("H2Q", "Unknown element symbol 'Q'.")
    >>> err.error_code
    'FRM_001'
    >>> isinstance(err, ValueError)
    True
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any


@dataclass
class SubstanceError(Exception):
    """Base OpenSubstances error.

    Attributes:
        error_code: Stable error identifier.
        category: One of reference/serialization/formula/isotope/element/registry/argument/material.
        description: Human-readable error description.
        actual_value: Value that caused the failure.
        expected: What would have been accepted.
        remediation_hint: Correction instruction for the caller.

    Example:
        >>> err = SubstanceError(
        ...     error_code="REF_001",
        ...     category="reference",
        ...     description="Bad token",
        ...     actual_value="XX:water",
        ...     expected="SR:<id> or HR:<id>",
        ...     remediation_hint="Prefix the id with SR: or HR:.",
        ... )
        >>> err.to_dict()["category"]
        'reference'
    """

    error_code: str
    category: str
    description: str
    actual_value: Any
    expected: Any
    remediation_hint: str

    def __post_init__(self) -> None:
        super().__init__(self.description)

    def __str__(self) -> str:
        return self.description

    def to_dict(self) -> dict[str, Any]:
        """Return serializable error details."""
        return {
            "error_code": self.error_code,
            "category": self.category,
            "description": self.description,
            "actual_value": self.actual_value,
            "expected": self.expected,
            "remediation_hint": self.remediation_hint,
        }

    def to_payload(self) -> str:
        """Serialize the error as deterministic JSON.

        Example:
            >>> payload = IsotopeKeyError("8", "Missing separator.").to_payload()
            >>> '"error_code": "ISO_001"' in payload
            True
        """
        return json.dumps(self.to_dict(), sort_keys=True, indent=2, default=str)


class MalformedReferenceError(SubstanceError, ValueError):
    """Raised when a reference token lacks a recognized prefix."""

    def __init__(self, token: Any, allowed: str = "SR:<id> or HR:<id>"):
        super().__init__(
            error_code="REF_001",
            category="reference",
            description=f"'{token}' is not a valid reference token.",
            actual_value=token,
            expected=allowed,
            remediation_hint=f"Write references as {allowed}.",
        )


class MissingDiscriminatorError(SubstanceError, ValueError):
    """Raised when a substance document has no type discriminator."""

    def __init__(self, field: str = "$type"):
        super().__init__(
            error_code="SER_001",
            category="serialization",
            description=f"Type discriminator '{field}' missing or invalid.",
            actual_value=None,
            expected=field,
            remediation_hint=f"Add a non-empty string '{field}' field to the object.",
        )


class UnknownDiscriminatorError(SubstanceError, ValueError):
    """Raised when a type discriminator matches no known variant."""

    def __init__(self, discriminator: Any, known: list[str]):
        super().__init__(
            error_code="SER_002",
            category="serialization",
            description=f"Type discriminator '{discriminator}' is not recognized.",
            actual_value=discriminator,
            expected=known,
            remediation_hint="Use one of the known discriminators or enable ancestor fallback.",
        )


class MalformedDocumentError(SubstanceError, ValueError):
    """Raised when a serialized document cannot be decoded."""

    def __init__(self, description: str, actual_value: Any = None, expected: Any = None):
        super().__init__(
            error_code="SER_003",
            category="serialization",
            description=description,
            actual_value=actual_value,
            expected=expected,
            remediation_hint="Re-encode the document with opensubstances.serialization.",
        )


class FormulaParseError(SubstanceError, ValueError):
    """Raised when a chemical formula string cannot be parsed."""

    def __init__(self, text: Any, reason: str):
        super().__init__(
            error_code="FRM_001",
            category="formula",
            description=f"Formula '{text}' could not be parsed: {reason}",
            actual_value=text,
            expected="element symbols with counts, groups, hydrates and an optional charge",
            remediation_hint="Write formulas like 'H2O', 'SO4-2', 'CuSO4.5H2O' or '{13}CO2'.",
        )


class IsotopeKeyError(SubstanceError, ValueError):
    """Raised when an isotope key cannot be resolved."""

    def __init__(self, key: Any, reason: str):
        super().__init__(
            error_code="ISO_001",
            category="isotope",
            description=f"Isotope key '{key}' is invalid: {reason}",
            actual_value=key,
            expected="<atomic number>:<mass number>",
            remediation_hint="Use a key such as '8:16' naming a known isotope.",
        )


class ElementNotFoundError(SubstanceError, LookupError):
    """Raised by throwing periodic-table accessors on a miss."""

    def __init__(self, value: Any, limit: Any):
        super().__init__(
            error_code="ELM_001",
            category="element",
            description=f"No element matches '{value}'.",
            actual_value=value,
            expected=limit,
            remediation_hint="Use an atomic number between 1 and 118 or a known symbol.",
        )


class SubstanceNotFoundError(SubstanceError, LookupError):
    """Raised by throwing registry accessors on a miss."""

    def __init__(self, substance_id: Any):
        super().__init__(
            error_code="REG_001",
            category="registry",
            description=f"No substance is registered with id '{substance_id}'.",
            actual_value=substance_id,
            expected="a registered substance id",
            remediation_hint="Register the substance first or use try_get_substance().",
        )


class InvalidArgumentError(SubstanceError, ValueError):
    """Raised when a constructor or conversion receives an unsupported argument."""

    def __init__(self, name: str, value: Any, expected: Any):
        super().__init__(
            error_code="ARG_001",
            category="argument",
            description=f"Invalid value for {name}: {value!r}.",
            actual_value=value,
            expected=expected,
            remediation_hint=f"Pass {expected} for {name}.",
        )


class EmptyCompositeError(SubstanceError, ValueError):
    """Raised when a composite is built without components."""

    def __init__(self) -> None:
        super().__init__(
            error_code="MAT_001",
            category="material",
            description="A composite requires at least one component.",
            actual_value=0,
            expected=">= 1 component",
            remediation_hint="Use a plain Material for a single homogeneous body.",
        )
