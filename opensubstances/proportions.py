"""Proportion maps whose values lie in (0, 1] and sum to 1.

Every function returns a new dict; callers replace their map wholesale.

Example:
    >>> from decimal import Decimal
    >>> from opensubstances.proportions import add_proportion, normalize
    >>> normalize([("a", 1), ("b", 3)])
    {'a': Decimal('0.25'), 'b': Decimal('0.75')}
    >>> add_proportion({"a": Decimal("1")}, "b", Decimal("0.2"))
    {'a': Decimal('0.8'), 'b': Decimal('0.2')}
"""

from __future__ import annotations

from decimal import Decimal
from typing import Callable, Hashable, Iterable, Mapping, TypeVar, Union

from .errors import InvalidArgumentError

K = TypeVar("K", bound=Hashable)

ONE = Decimal(1)
ZERO = Decimal(0)
# Sums within this distance of 1 are already normalized.
TOLERANCE = Decimal("1e-20")

Proportion = Union[Decimal, int, float, str]


def to_decimal(value: Proportion) -> Decimal:
    """Convert a proportion to Decimal, reading floats through their shortest repr."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def normalize(entries: Union[Mapping[K, Proportion], Iterable[tuple[K, Proportion]]]) -> dict[K, Decimal]:
    """Group entries by key, drop zero ones and divide by the total."""
    grouped = normalize_keys(entries)
    total = sum(grouped.values(), ZERO)
    if total == 0:
        return {}
    if abs(total - ONE) <= TOLERANCE:
        return grouped
    return {key: value / total for key, value in grouped.items()}


def add_proportion(current: Mapping[K, Decimal], key: K, proportion: Proportion) -> dict[K, Decimal]:
    """Set key to proportion, scaling the other entries to fill the rest."""
    p = to_decimal(proportion)
    if p <= 0:
        return dict(current)
    if p >= 1 or not current:
        return {key: ONE}
    others = {k: v for k, v in current.items() if k != key}
    if not others:
        return {key: ONE}
    ratio = (ONE - p) / (ONE - current.get(key, ZERO))
    result = {k: v * ratio for k, v in others.items()}
    result[key] = p
    return result


def add_proportions(
    current: Mapping[K, Decimal],
    items: Union[Mapping[K, Proportion], Iterable[tuple[K, Proportion]]],
) -> dict[K, Decimal]:
    """Apply several additions at once.

    The aggregate added proportion ``a`` is applied once: entries that are not
    overwritten are scaled to sum to ``1 - a``.
    """
    added = normalize_keys(items)
    aggregate = sum(added.values(), ZERO)
    if aggregate <= 0:
        return dict(current)
    if aggregate >= 1 or not current:
        return normalize(added)
    survivors = {k: v for k, v in current.items() if k not in added}
    survivor_total = sum(survivors.values(), ZERO)
    if survivor_total <= 0:
        return normalize(added)
    ratio = (ONE - aggregate) / survivor_total
    result = {k: v * ratio for k, v in survivors.items()}
    result.update(added)
    return result


def normalize_keys(items: Union[Mapping[K, Proportion], Iterable[tuple[K, Proportion]]]) -> dict[K, Decimal]:
    """Group items by key without rescaling, dropping zero values.

    Raises:
        InvalidArgumentError: A proportion is negative.
    """
    pairs = items.items() if isinstance(items, Mapping) else items
    grouped: dict[K, Decimal] = {}
    for key, value in pairs:
        proportion = to_decimal(value)
        if proportion < 0:
            raise InvalidArgumentError("proportion", value, "a non-negative proportion")
        if proportion > 0:
            grouped[key] = grouped.get(key, ZERO) + proportion
    return grouped


def remove_proportion(current: Mapping[K, Decimal], key: K) -> dict[K, Decimal]:
    """Drop key and rescale the remaining entries to sum to 1.

    For a normalized map this is the same as multiplying by ``1 / (1 - removed)``.
    """
    if key not in current:
        return dict(current)
    return normalize({k: v for k, v in current.items() if k != key})


def retain_proportions(current: Mapping[K, Decimal], keep: Callable[[K], bool]) -> dict[K, Decimal]:
    """Keep entries whose key satisfies keep, renormalized by the surviving total."""
    return normalize({k: v for k, v in current.items() if keep(k)})


def is_normalized(proportions: Mapping[object, Decimal], tolerance: Decimal = TOLERANCE) -> bool:
    if not proportions:
        return True
    if any(value <= 0 or value > ONE for value in proportions.values()):
        return False
    return abs(sum(proportions.values(), ZERO) - ONE) <= tolerance
