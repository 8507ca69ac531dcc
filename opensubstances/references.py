"""Stable, serializable pointers to registered substances.

A reference is a kind code plus an id. ``SR`` references point at any
substance; ``HR`` references only resolve to homogeneous substances.

Example:
    >>> from opensubstances.references import HomogeneousReference, parse_reference
    >>> ref = parse_reference("HR:water")
    >>> ref == HomogeneousReference("water"), str(ref)
    (True, 'HR:water')
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Optional, cast

from .errors import MalformedReferenceError

if TYPE_CHECKING:
    from .substances import Substance

TOKEN_SEPARATOR = ":"


class SubstanceReference:
    """Reference to any substance by id."""

    __slots__ = ("_id",)

    reference_code: ClassVar[str] = "SR"

    def __init__(self, id: Optional[str] = "") -> None:
        object.__setattr__(self, "_id", id or "")

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    @classmethod
    def empty(cls) -> "SubstanceReference":
        return cls("")

    @classmethod
    def new(cls, id: Optional[str]) -> "SubstanceReference":
        return cls(id)

    @property
    def id(self) -> str:
        return self._id

    @property
    def is_empty(self) -> bool:
        return not self._id

    @property
    def substance(self) -> "Substance":
        """The referenced substance, or the none sentinel when it is not registered."""
        from .registry import get_registry
        from .substances import NONE_SUBSTANCE

        found = get_registry().try_get_substance(self._id)
        return NONE_SUBSTANCE if found is None else found

    def __eq__(self, other: object) -> bool:
        return reference_equals(self, other)

    def __hash__(self) -> int:
        return hash((self.reference_code, self._id))

    def __str__(self) -> str:
        return f"{self.reference_code}{TOKEN_SEPARATOR}{self._id}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._id!r})"

    def __reduce__(self) -> tuple[Any, ...]:
        return (type(self), (self._id,))


class HomogeneousReference(SubstanceReference):
    """Reference to a homogeneous substance by id."""

    __slots__ = ()

    reference_code: ClassVar[str] = "HR"

    @property
    def homogeneous(self) -> "Substance":
        """The referenced homogeneous substance, or the none sentinel."""
        from .registry import get_registry
        from .substances import NONE_SUBSTANCE, Homogeneous

        found = get_registry().try_get_substance(self._id, kind=Homogeneous)
        return NONE_SUBSTANCE if found is None else found

    @property
    def substance(self) -> "Substance":
        return self.homogeneous


_KINDS: dict[str, type[SubstanceReference]] = {
    SubstanceReference.reference_code: SubstanceReference,
    HomogeneousReference.reference_code: HomogeneousReference,
}


def reference_equals(reference: SubstanceReference, other: object) -> bool:
    """Compare a reference with another reference or a substance.

    References are equal when they have the same kind and id. A reference equals
    a substance when the substance's own reference is equal to it.
    """
    from .substances import Substance

    if isinstance(other, SubstanceReference):
        return type(reference) is type(other) and reference.id == other.id
    if isinstance(other, Substance):
        return reference_equals(reference, other.get_reference())
    return False


def parse_reference(token: Any, allowed: tuple[str, ...] = ("SR", "HR")) -> SubstanceReference:
    """Read a ``"<code>:<id>"`` token.

    Raises:
        MalformedReferenceError: The token is not a string or its code is not allowed.
    """
    expected = " or ".join(f"{code}:<id>" for code in allowed)
    if not isinstance(token, str):
        raise MalformedReferenceError(token, expected)
    code, separator, id_ = token.partition(TOKEN_SEPARATOR)
    if not separator or code not in allowed:
        raise MalformedReferenceError(token, expected)
    return _KINDS[code](id_)


def parse_homogeneous_reference(token: Any) -> HomogeneousReference:
    return cast(HomogeneousReference, parse_reference(token, allowed=("HR",)))
